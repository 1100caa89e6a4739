"""Gemini CLI: ``~/.gemini/settings.json``."""

from __future__ import annotations

from pathlib import Path

from agentctl.sync.adapter import Adapter
from agentctl.sync.codecs import TransportCodec


class GeminiAdapter(Adapter):
    name = "gemini"
    server_codec = TransportCodec()

    def config_dir(self) -> Path:
        return self.home / ".gemini"

    def config_path(self) -> Path:
        return self.config_dir() / "settings.json"
