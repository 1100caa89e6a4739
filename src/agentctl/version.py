"""Version checking utilities for detecting a stale installed package."""

import tomllib
from pathlib import Path


def check_version_consistency(
    pyproject_path: Path | None = None,
) -> tuple[bool, str]:
    """Check if runtime version matches source version in pyproject.toml.

    Args:
        pyproject_path: Explicit pyproject.toml location. Defaults to the
            one at the repository root relative to this module.

    Returns:
        Tuple of (is_consistent, message) where:
        - is_consistent: True if versions match, False otherwise
        - message: Descriptive message about version status

    An editable install picks up source edits immediately, but a regular
    install keeps the version it was built with; this catches the case
    where the installed copy no longer matches the checkout.
    """
    from . import __version__ as runtime_version

    if pyproject_path is None:
        pyproject_path = (
            Path(__file__).parent.parent.parent / "pyproject.toml"
        )

    if not pyproject_path.exists():
        return (
            False,
            "Cannot find pyproject.toml for version comparison",
        )

    try:
        with open(pyproject_path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        return False, f"Failed to read version from pyproject.toml: {e}"

    source_version = data.get("project", {}).get("version", "unknown")

    if runtime_version != source_version:
        return False, (
            f"Version mismatch detected! "
            f"Runtime: {runtime_version}, Source: {source_version}. "
            f"Reinstall with: pip install -e ."
        )

    return True, f"Version verified: {runtime_version}"
