"""OpenCode: ``opencode.json`` with a strictly validated ``mcp`` section.

OpenCode rejects unknown keys in server entries, so the inline marker
cannot be used; owned names are kept in the ledger instead.
"""

from __future__ import annotations

from pathlib import Path

from agentctl.sync.adapter import Adapter
from agentctl.sync.codecs import OpenCodeCodec
from agentctl.sync.markdown import CommandCodec


class OpenCodeAdapter(Adapter):
    name = "opencode"
    server_key = "mcp"
    server_codec = OpenCodeCodec()
    uses_ledger = True
    command_codec = CommandCodec(fields=("description", "model"))

    def config_dir(self) -> Path:
        if self.platform == "win32":
            return self.home / "AppData" / "Roaming" / "opencode"
        return self.xdg_config_home() / "opencode"

    def config_path(self) -> Path:
        return self.config_dir() / "opencode.json"

    def commands_dir(self) -> Path:
        return self.config_dir() / "command"
