"""OpenAI Codex CLI: ``config.toml``, or the legacy ``config.json``.

Current Codex reads ``[mcp_servers.<name>]`` tables from
``~/.codex/config.toml`` and rejects unknown keys, so ownership is kept
in the ledger.  Older installs only have ``config.json`` with an
``mcpServers`` object, which tolerates the inline marker.  Whichever
file exists decides the format; a fresh install gets TOML.
"""

from __future__ import annotations

from pathlib import Path

from agentctl.sync.adapter import Adapter, ServerTarget
from agentctl.sync.codecs import CodexCodec, StdioCodec
from agentctl.sync.document import JSON, TOML
from agentctl.sync.markdown import CommandCodec


class CodexAdapter(Adapter):
    name = "codex"
    command_codec = CommandCodec(fields=("description", "argument-hint"))

    def config_dir(self) -> Path:
        return self.home / ".codex"

    def toml_path(self) -> Path:
        return self.config_dir() / "config.toml"

    def legacy_json_path(self) -> Path:
        return self.config_dir() / "config.json"

    def uses_legacy_json(self) -> bool:
        return not self.toml_path().exists() and self.legacy_json_path().exists()

    def config_path(self) -> Path:
        if self.uses_legacy_json():
            return self.legacy_json_path()
        return self.toml_path()

    def server_target(self) -> ServerTarget:
        if self.uses_legacy_json():
            return ServerTarget(
                path=self.legacy_json_path(),
                fmt=JSON,
                key="mcpServers",
                codec=StdioCodec(),
            )
        return ServerTarget(
            path=self.toml_path(),
            fmt=TOML,
            key="mcp_servers",
            codec=CodexCodec(),
            ledger=True,
        )

    def commands_dir(self) -> Path:
        return self.config_dir() / "prompts"

    def rules_file(self) -> Path:
        return self.config_dir() / "AGENTS.md"

    def skills_dir(self) -> Path:
        return self.config_dir() / "skills"
