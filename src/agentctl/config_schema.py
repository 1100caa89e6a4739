"""Unified configuration schema for agentctl.

Defines Pydantic models for the YAML config structure, with sections for
sync behaviour and logging, plus the adapter that turns it into the
runtime ``Config`` dataclass.

Usage:
    from agentctl.config_schema import build_config, to_runtime_config

    raw = load_hierarchical_config()
    unified = build_config(raw)
    config = to_runtime_config(unified, cli_overrides={"debug": True})
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from agentctl.file_handler import DEFAULT_BACKUP_COUNT

if TYPE_CHECKING:
    from .config import Config

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class SyncConfig(BaseModel):
    """Sync settings.

    All fields are optional: env vars and CLI args can supply them at
    runtime instead.
    """

    config_dir: str | None = Field(
        default=None,
        description="Canonical config directory (holds the ledger)",
    )
    backup_count: int = Field(
        default=DEFAULT_BACKUP_COUNT,
        ge=0,
        description="Timestamped backups kept per tool config file",
    )
    wait_for_lock: bool = Field(
        default=True,
        description="Wait for a busy target instead of failing it",
    )
    tools: list[str] | None = Field(
        default=None, description="Only sync these tools"
    )
    home: str | None = Field(
        default=None, description="Root for tool config paths"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level unified configuration.

    Every section has defaults, so ``UnifiedConfig()`` (zero-config) is
    always valid.
    """

    sync: SyncConfig = Field(default_factory=SyncConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Missing sections get defaults.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)


# ---------------------------------------------------------------------------
# Adapter: UnifiedConfig -> runtime Config dataclass
# ---------------------------------------------------------------------------


def to_runtime_config(
    unified: UnifiedConfig,
    cli_overrides: dict | None = None,
) -> Config:
    """Convert a ``UnifiedConfig`` into the ``Config`` dataclass,
    applying CLI overrides on top.

    The precedence applied here is:
        CLI override > unified config value > default

    CLI overrides dict keys: config_dir, backup_count, home, tools,
    wait_for_lock, debug.

    Returns:
        ``Config`` instance (NOT validated; run ``validate_config()``).
    """
    # Import here to avoid circular imports (config.py imports config_schema)
    from .config import Config, default_config_dir

    overrides = cli_overrides or {}
    sync = unified.sync

    config_dir = overrides.get("config_dir") or sync.config_dir
    home = overrides.get("home") or sync.home
    backup_count = overrides.get("backup_count")
    wait_for_lock = overrides.get("wait_for_lock")

    return Config(
        config_dir=(
            Path(config_dir).expanduser()
            if config_dir
            else default_config_dir()
        ),
        backup_count=(
            sync.backup_count if backup_count is None else backup_count
        ),
        wait_for_lock=(
            sync.wait_for_lock if wait_for_lock is None else wait_for_lock
        ),
        tools=overrides.get("tools") or sync.tools,
        home=Path(home).expanduser() if home else None,
        debug=overrides.get("debug", False) or sync.debug,
    )
