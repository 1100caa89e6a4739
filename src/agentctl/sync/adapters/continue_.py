"""Continue: ``~/.continue/config.json`` plus ``rules.md``."""

from __future__ import annotations

from pathlib import Path

from agentctl.sync.adapter import Adapter


class ContinueAdapter(Adapter):
    name = "continue"

    def config_dir(self) -> Path:
        return self.home / ".continue"

    def config_path(self) -> Path:
        return self.config_dir() / "config.json"

    def rules_file(self) -> Path:
        return self.config_dir() / "rules.md"
