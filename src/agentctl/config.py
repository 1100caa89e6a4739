"""Runtime configuration for a sync run.

Reads sync settings from CLI args, environment variables, .env files,
and YAML config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    AGENTCTL_CONFIG_DIR: Canonical config directory (default:
        ``$XDG_CONFIG_HOME/agentctl`` or ``~/.config/agentctl``)
    AGENTCTL_BACKUP_COUNT: Backups kept per tool config (default: 3)
    AGENTCTL_HOME: Root for tool config paths (default: the home dir)
    AGENTCTL_WAIT_FOR_LOCK: Wait for busy targets (default: true)
    AGENTCTL_DEBUG: Enable debug logging (default: false)
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from agentctl.config_loader import global_config_dir
from agentctl.file_handler import DEFAULT_BACKUP_COUNT
from agentctl.sync.state import LEDGER_FILENAME

logger = logging.getLogger(__name__)


def default_config_dir() -> Path:
    """The canonical config directory when nothing overrides it."""
    return global_config_dir()


@dataclass
class Config:
    config_dir: Path
    backup_count: int = DEFAULT_BACKUP_COUNT
    wait_for_lock: bool = True
    tools: list[str] | None = None
    home: Path | None = None
    debug: bool = False

    @property
    def ledger_path(self) -> Path:
        return self.config_dir / LEDGER_FILENAME


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Raises:
        ValueError: If the backup count is negative or a tool name is
            empty.
    """
    if config.backup_count < 0:
        raise ValueError(
            f"Invalid backup count {config.backup_count}: must be 0 or more"
        )

    if config.tools is not None:
        config.tools = [t.strip() for t in config.tools]
        if not all(config.tools):
            raise ValueError("Tool names cannot be empty")

    if config.home is not None and not config.home.is_dir():
        logger.warning("Home override %s does not exist", config.home)


def _get_bool_env(key: str) -> bool | None:
    """Return True/False from env var, or None if unset."""
    val = os.getenv(key)
    if val is None:
        return None
    return val.lower() in ("true", "1", "yes", "on")


def load_config(
    config_dir: str | None = None,
    backup_count: int | None = None,
    home: str | None = None,
    tools: list[str] | None = None,
    wait_for_lock: bool | None = None,
    debug: bool = False,
    yaml_fallbacks: dict | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        config_dir: Override the canonical config directory.
        backup_count: Override the number of backups kept.
        home: Override the root for tool config paths.
        tools: Only sync these tools.
        wait_for_lock: ``False`` fails busy targets instead of waiting.
        debug: Enable debug logging (CLI flag).
        yaml_fallbacks: Dict of values from the YAML config ``sync``
            section.  Used when CLI arg and env var are both unset.

    Returns:
        Validated Config instance.

    Raises:
        ValueError: If a value is malformed.
    """
    fb = yaml_fallbacks or {}

    # --- Path fields: CLI > env > YAML > default ---

    raw_dir = config_dir or os.getenv("AGENTCTL_CONFIG_DIR") or fb.get(
        "config_dir"
    )
    final_dir = (
        Path(raw_dir).expanduser() if raw_dir else default_config_dir()
    )

    raw_home = home or os.getenv("AGENTCTL_HOME") or fb.get("home")
    final_home = Path(raw_home).expanduser() if raw_home else None

    # --- Numeric fields: CLI > env > YAML > default ---

    if backup_count is not None:
        final_backups = backup_count
    else:
        raw_backups = os.getenv("AGENTCTL_BACKUP_COUNT")
        if raw_backups is not None:
            try:
                final_backups = int(raw_backups)
            except ValueError:
                raise ValueError(
                    f"Invalid AGENTCTL_BACKUP_COUNT '{raw_backups}': "
                    "must be a number"
                ) from None
        elif "backup_count" in fb:
            final_backups = int(fb["backup_count"])
        else:
            final_backups = DEFAULT_BACKUP_COUNT

    # --- Boolean fields: CLI > env > YAML > default ---

    if wait_for_lock is not None:
        final_wait = wait_for_lock
    else:
        env_wait = _get_bool_env("AGENTCTL_WAIT_FOR_LOCK")
        if env_wait is not None:
            final_wait = env_wait
        else:
            final_wait = bool(fb.get("wait_for_lock", True))

    if debug:
        final_debug = True
    else:
        env_debug = _get_bool_env("AGENTCTL_DEBUG")
        if env_debug is not None:
            final_debug = env_debug
        else:
            final_debug = bool(fb.get("debug", False))

    config = Config(
        config_dir=final_dir,
        backup_count=final_backups,
        wait_for_lock=final_wait,
        tools=tools if tools is not None else fb.get("tools"),
        home=final_home,
        debug=final_debug,
    )

    validate_config(config)

    return config
