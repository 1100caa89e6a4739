"""Claude Code: ``~/.claude.json`` plus the ``~/.claude`` directory."""

from __future__ import annotations

from pathlib import Path

from agentctl.sync.adapter import Adapter
from agentctl.sync.codecs import TransportCodec


class ClaudeAdapter(Adapter):
    """Claude Code CLI.

    Servers live in ``~/.claude.json`` (a file beside, not inside, the
    config directory) next to a lot of state Claude Code keeps for
    itself, so everything outside ``mcpServers`` must survive untouched.
    """

    name = "claude"
    server_codec = TransportCodec()

    def config_dir(self) -> Path:
        return self.home / ".claude"

    def config_path(self) -> Path:
        return self.home / ".claude.json"

    def commands_dir(self) -> Path:
        return self.config_dir() / "commands"

    def rules_file(self) -> Path:
        return self.config_dir() / "CLAUDE.md"

    def skills_dir(self) -> Path:
        return self.config_dir() / "skills"
