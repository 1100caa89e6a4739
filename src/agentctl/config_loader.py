"""
YAML configuration files for agentctl.

Finds the config files that apply to the current directory, expands
``!include`` directives and ``${VAR}`` references, and merges them into
one raw dict for ``config_schema.build_config()``.

Usage:
    from agentctl.config_loader import load_hierarchical_config

    raw = load_hierarchical_config()
"""

import logging
import os
import re
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

PROJECT_DIR_NAME = ".agentctl"
CONFIG_ENV_VAR = "AGENTCTL_CONFIG"

# ---------------------------------------------------------------------------
# ${VAR} expansion
# ---------------------------------------------------------------------------

# ${NAME} or ${NAME:-fallback}
_ENV_REF = re.compile(r"\$\{([^}:]+?)(?::-(.*?))?\}")


def _expand_ref(match: re.Match) -> str:
    name, fallback = match.group(1), match.group(2)
    return os.environ.get(name) or fallback or ""


def interpolate_env_vars(value: str) -> str:
    """Expand ``${VAR}`` and ``${VAR:-default}`` in *value*.

    An unset or empty variable expands to its default, or to ``""`` when
    there is none.  A ``${`` that is never closed is left as written.
    """
    return _ENV_REF.sub(_expand_ref, value)


def _interpolate_recursive(obj: Any) -> Any:
    """Expand env references in every string of a parsed YAML tree."""
    if isinstance(obj, dict):
        return {key: _interpolate_recursive(val) for key, val in obj.items()}
    if isinstance(obj, list):
        return [_interpolate_recursive(item) for item in obj]
    if isinstance(obj, str):
        return interpolate_env_vars(obj)
    return obj


# ---------------------------------------------------------------------------
# !include
# ---------------------------------------------------------------------------


class ConfigLoader(yaml.SafeLoader):
    """``SafeLoader`` that understands ``!include <path>``.

    Args:
        stream: Open file being parsed.
        include_stack: Files already being loaded above this one, used to
            reject include cycles.
    """

    def __init__(self, stream, include_stack: list[Path]) -> None:
        super().__init__(stream)
        self.include_stack = include_stack

    def construct_include(self, node: yaml.ScalarNode) -> Any:
        including = Path(self.name).resolve()
        target = Path(self.construct_scalar(node)).expanduser()
        if not target.is_absolute():
            target = including.parent / target
        target = target.resolve()

        if target in self.include_stack:
            cycle = [*self.include_stack, target]
            raise ValueError(
                "Circular include detected: "
                + " -> ".join(str(p) for p in cycle)
            )
        if not target.is_file():
            raise FileNotFoundError(
                f"Include file not found: {target} "
                f"(referenced from {including})"
            )
        return _load_yaml_with_includes(
            target, _include_stack=[*self.include_stack, target]
        )


ConfigLoader.add_constructor("!include", ConfigLoader.construct_include)


def _load_yaml_with_includes(
    path: Path, *, _include_stack: list[Path] | None = None
) -> Any:
    """Parse *path* with ``ConfigLoader``.

    Raises:
        yaml.YAMLError: The file is not valid YAML.
        FileNotFoundError: An ``!include`` target does not exist.
        ValueError: The includes form a cycle.
    """
    path = Path(path).resolve()
    with open(path, encoding="utf-8") as fh:
        loader = ConfigLoader(fh, _include_stack or [path])
        try:
            return loader.get_single_data()
        finally:
            loader.dispose()


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


def global_config_dir() -> Path:
    """``$XDG_CONFIG_HOME/agentctl``, else ``~/.config/agentctl``."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    return base / "agentctl"


def _candidate_paths() -> Iterator[Path]:
    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        yield Path(explicit).expanduser().resolve()
    project = Path.cwd() / PROJECT_DIR_NAME
    yield project / "config.yml"
    yield project / "config.yaml"
    yield global_config_dir() / "config.yml"


def discover_config_files() -> list[Path]:
    """Config files that exist, highest precedence first.

    1. The file named by ``AGENTCTL_CONFIG``.
    2. ``./.agentctl/config.yml``, then ``./.agentctl/config.yaml``.
    3. ``config.yml`` in ``global_config_dir()``.
    """
    return [path for path in _candidate_paths() if path.is_file()]


def resolve_config_path() -> Path:
    """The file ``ensure_config()`` would use.

    The highest-precedence existing file, else the project-level
    ``./.agentctl/config.yml``.  Nothing is created.
    """
    found = discover_config_files()
    if found:
        return found[0]
    return Path.cwd() / PROJECT_DIR_NAME / "config.yml"


# ---------------------------------------------------------------------------
# Starter file
# ---------------------------------------------------------------------------

_STARTER_CONFIG = """\
# agentctl configuration
#
# Sync settings can also be set via environment variables:
#   AGENTCTL_CONFIG_DIR, AGENTCTL_BACKUP_COUNT, AGENTCTL_HOME,
#   AGENTCTL_WAIT_FOR_LOCK, AGENTCTL_DEBUG
#
# sync:
#   config_dir: ~/.config/agentctl
#   backup_count: 3
#   wait_for_lock: true
#   tools:
#     - claude
#     - cursor
#
# logging:
#   level: INFO
#   file: null
"""


def ensure_config(target: Path | None = None) -> Path:
    """Return the config file in use, writing a commented starter if none.

    Args:
        target: Where to write the starter.  Defaults to
            ``resolve_config_path()``.  Ignored when a config file
            already exists.
    """
    found = discover_config_files()
    if found:
        logger.debug("Using existing config file %s", found[0])
        return found[0]

    path = target or resolve_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(_STARTER_CONFIG, encoding="utf-8")
    logger.info("Created starter config: %s", path)
    return path


# ---------------------------------------------------------------------------
# Merge
# ---------------------------------------------------------------------------


def _read_layer(path: Path) -> dict[str, Any]:
    try:
        data = _load_yaml_with_includes(path)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        logger.error("Cannot load config file %s: %s", path, exc)
        raise
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning(
            "Ignoring config file %s: top level is %s, not a mapping",
            path,
            type(data).__name__,
        )
        return {}
    return data


def load_hierarchical_config() -> dict[str, Any]:
    """Merge every discovered config file into one raw dict.

    Files are layered from the lowest precedence up and a higher file
    replaces whole top-level sections (``sync``, ``logging``) of a lower
    one.  ``${VAR}`` references are expanded after the merge.  With no
    config files the result is ``{}``.
    """
    paths = discover_config_files()
    if not paths:
        logger.debug("No config files found, using defaults")
        return {}

    merged: dict[str, Any] = {}
    for path in reversed(paths):
        logger.debug("Loading config: %s", path)
        merged.update(_read_layer(path))
    return _interpolate_recursive(merged)
