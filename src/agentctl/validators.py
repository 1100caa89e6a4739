"""
Input validation for resource names.

Every name that becomes part of a filesystem path (command files, skill
directories, rule files) or a key in a target document passes through
``sanitize_name`` before anything is written.
"""

import re

from agentctl.errors import InvalidNameError

# Alphanumeric first character, then alphanumerics, dot, underscore, dash,
# or colon (namespaced names such as "skill:command").
_NAME_PATTERN = re.compile(r"[A-Za-z0-9][A-Za-z0-9._:-]*")


# ---------------------------------------------------------------------------
# Error message formatting helpers
# ---------------------------------------------------------------------------


def format_validation_error(field_name: str, reason: str) -> str:
    """
    Generate consistent error message for validation failures.

    Args:
        field_name: Human-readable field name (e.g., "Name")
        reason: Description of validation failure (e.g., "cannot be empty")

    Returns:
        Formatted error message string
    """
    return f"{field_name} {reason}"


def validate_resource_name(name: str) -> tuple[bool, str]:
    """
    Validate a resource name (server, command, rule, or skill).

    Args:
        name: The name to validate

    Returns:
        Tuple of (is_valid, error_message).
        Returns (True, "") if valid, (False, reason) if invalid.

    Validation rules:
        - Cannot be empty
        - Cannot contain path separators ('/' or '\\')
        - Cannot contain '..' (path traversal protection)
        - Must start with an alphanumeric character and contain only
          alphanumerics, '.', '_', '-', or ':'
    """
    if not name:
        return (False, format_validation_error("Name", "cannot be empty"))

    if "/" in name or "\\" in name:
        return (
            False,
            format_validation_error(
                "Name", "cannot contain path separators"
            ),
        )

    if ".." in name:
        return (
            False,
            format_validation_error("Name", "cannot contain '..'"),
        )

    if not _NAME_PATTERN.fullmatch(name):
        return (
            False,
            format_validation_error(
                "Name",
                "contains invalid characters (must be alphanumeric, "
                "dash, underscore, dot, or colon, and start with "
                "alphanumeric)",
            ),
        )

    return (True, "")


def sanitize_name(name: str) -> str:
    """Return *name* unchanged if it is safe, else raise.

    Raises:
        InvalidNameError: With the offending name and the rule it broke.
    """
    ok, reason = validate_resource_name(name)
    if not ok:
        raise InvalidNameError(name, reason)
    return name
