"""Claude Desktop: ``claude_desktop_config.json`` in the app-support dir."""

from __future__ import annotations

from pathlib import Path

from agentctl.sync.adapter import Adapter


class ClaudeDesktopAdapter(Adapter):
    """Claude Desktop.  Launches stdio servers only."""

    name = "claude-desktop"

    def config_dir(self) -> Path:
        if self.platform == "darwin":
            return self.home / "Library" / "Application Support" / "Claude"
        if self.platform == "win32":
            return self.home / "AppData" / "Roaming" / "Claude"
        return self.xdg_config_home() / "Claude"

    def config_path(self) -> Path:
        return self.config_dir() / "claude_desktop_config.json"
