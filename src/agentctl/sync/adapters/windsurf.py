"""Windsurf: Codeium's ``mcp_config.json`` plus ``~/.windsurfrules``."""

from __future__ import annotations

from pathlib import Path

from agentctl.sync.adapter import Adapter


class WindsurfAdapter(Adapter):
    name = "windsurf"

    def config_dir(self) -> Path:
        return self.home / ".codeium" / "windsurf"

    def config_path(self) -> Path:
        return self.config_dir() / "mcp_config.json"

    def rules_file(self) -> Path:
        return self.home / ".windsurfrules"
