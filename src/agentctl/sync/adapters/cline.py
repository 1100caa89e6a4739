"""Cline: ``~/.cline/mcp_settings.json``."""

from __future__ import annotations

from pathlib import Path

from agentctl.sync.adapter import Adapter


class ClineAdapter(Adapter):
    name = "cline"

    def config_dir(self) -> Path:
        return self.home / ".cline"

    def config_path(self) -> Path:
        return self.config_dir() / "mcp_settings.json"
