"""Composition root: config sources in, one sync run out.

``load_runtime_config()`` resolves configuration with the unified
precedence (CLI args > env vars, with ``.env`` loaded first > YAML config
> defaults).  ``build_runtime_registry()`` wires the built-in adapters to
that config, and ``run_sync()`` runs the engine over a resource set.
"""

from __future__ import annotations

import logging
from typing import Any

from dotenv import load_dotenv

from agentctl.config import Config, load_config
from agentctl.config_loader import (
    discover_config_files,
    load_hierarchical_config,
)
from agentctl.config_schema import build_config
from agentctl.resources import ResourceSet
from agentctl.sync.adapter import AdapterRegistry
from agentctl.sync.adapters import build_registry
from agentctl.sync.engine import SyncEngine
from agentctl.sync.models import SyncReport
from agentctl.sync.state import SyncState

logger = logging.getLogger(__name__)


def load_runtime_config(overrides: dict[str, Any] | None = None) -> Config:
    """Resolve configuration from every source.

    Args:
        overrides: CLI values (config_dir, backup_count, home, tools,
            wait_for_lock, debug).

    Raises:
        ValueError: If any source holds a malformed value.
    """
    # .env first so ${VAR} interpolation in YAML can see its values
    load_dotenv()

    yaml_fallbacks: dict[str, Any] | None = None
    sources = []
    config_files = discover_config_files()
    if config_files:
        unified = build_config(load_hierarchical_config())
        yaml_fallbacks = {
            k: v
            for k, v in unified.sync.model_dump().items()
            if v is not None
        }
        sources.append(f"config file: {config_files[0]}")

    overrides = overrides or {}
    config = load_config(
        config_dir=overrides.get("config_dir"),
        backup_count=overrides.get("backup_count"),
        home=overrides.get("home"),
        tools=overrides.get("tools"),
        wait_for_lock=overrides.get("wait_for_lock"),
        debug=overrides.get("debug", False),
        yaml_fallbacks=yaml_fallbacks,
    )

    if overrides:
        sources.append("CLI arguments")
    sources.append("environment variables")
    logger.info("Configuration loaded from: %s", ", ".join(sources))
    logger.debug("Ledger: %s", config.ledger_path)
    return config


def build_runtime_registry(config: Config) -> AdapterRegistry:
    """Return the built-in adapters configured per *config*."""
    return build_registry(
        config.home,
        SyncState(config.config_dir),
        keep_backups=config.backup_count,
        wait_for_lock=config.wait_for_lock,
    )


def run_sync(
    resources: ResourceSet,
    config: Config | None = None,
    dry_run: bool = False,
) -> SyncReport:
    """Sync *resources* into every installed tool allowed by *config*."""
    if config is None:
        config = load_runtime_config()
    engine = SyncEngine(build_runtime_registry(config), dry_run=dry_run)
    report = engine.run(resources, tools=config.tools)
    logger.info(
        "Sync finished: %d changes, %d failures",
        report.total_changes,
        len(report.failed),
    )
    return report
