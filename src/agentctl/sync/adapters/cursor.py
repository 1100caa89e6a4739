"""Cursor: ``~/.cursor/mcp.json``, commands and ``.mdc`` rules."""

from __future__ import annotations

from pathlib import Path

from agentctl.sync.adapter import Adapter
from agentctl.sync.markdown import CommandCodec


class CursorAdapter(Adapter):
    name = "cursor"
    command_codec = CommandCodec(fields=("description",))

    def config_dir(self) -> Path:
        return self.home / ".cursor"

    def config_path(self) -> Path:
        return self.config_dir() / "mcp.json"

    def commands_dir(self) -> Path:
        return self.config_dir() / "commands"

    def rules_dir(self) -> Path:
        return self.config_dir() / "rules"
