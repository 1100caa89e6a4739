"""Zed: ``context_servers`` in the editor's ``settings.json``."""

from __future__ import annotations

from pathlib import Path

from agentctl.sync.adapter import Adapter


class ZedAdapter(Adapter):
    """Zed editor.

    ``settings.json`` must be strict JSON; a file with comments is
    reported as malformed and left alone.
    """

    name = "zed"
    server_key = "context_servers"

    def config_dir(self) -> Path:
        if self.platform == "win32":
            return self.home / "AppData" / "Roaming" / "Zed"
        return self.xdg_config_home() / "zed"

    def config_path(self) -> Path:
        return self.config_dir() / "settings.json"
