"""GitHub Copilot CLI: ``$XDG_CONFIG_HOME/github-copilot``."""

from __future__ import annotations

from pathlib import Path

from agentctl.sync.adapter import Adapter
from agentctl.sync.markdown import CommandCodec


class CopilotAdapter(Adapter):
    name = "copilot"
    command_codec = CommandCodec(fields=("description", "argument-hint"))

    def config_dir(self) -> Path:
        if self.platform == "win32":
            return self.home / "AppData" / "Roaming" / "github-copilot"
        return self.xdg_config_home() / "github-copilot"

    def config_path(self) -> Path:
        return self.config_dir() / "config.json"

    def commands_dir(self) -> Path:
        return self.config_dir() / "commands"

    def rules_file(self) -> Path:
        return self.config_dir() / "AGENTS.md"

    def skills_dir(self) -> Path:
        return self.config_dir() / "skills"
