"""Built-in tool adapters and the default registry."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

from agentctl.file_handler import DEFAULT_BACKUP_COUNT
from agentctl.sync.adapter import Adapter, AdapterRegistry
from agentctl.sync.state import SyncState

from .claude import ClaudeAdapter
from .claude_desktop import ClaudeDesktopAdapter
from .cline import ClineAdapter
from .codex import CodexAdapter
from .continue_ import ContinueAdapter
from .copilot import CopilotAdapter
from .cursor import CursorAdapter
from .gemini import GeminiAdapter
from .opencode import OpenCodeAdapter
from .windsurf import WindsurfAdapter
from .zed import ZedAdapter

ADAPTER_CLASSES: tuple[type[Adapter], ...] = (
    ClaudeAdapter,
    ClaudeDesktopAdapter,
    ClineAdapter,
    CodexAdapter,
    ContinueAdapter,
    CopilotAdapter,
    CursorAdapter,
    GeminiAdapter,
    OpenCodeAdapter,
    WindsurfAdapter,
    ZedAdapter,
)


def build_registry(
    home: Path | None = None,
    state: SyncState | None = None,
    *,
    platform: str | None = None,
    env: Mapping[str, str] | None = None,
    keep_backups: int = DEFAULT_BACKUP_COUNT,
    wait_for_lock: bool = True,
) -> AdapterRegistry:
    """Return a registry holding one instance of every built-in adapter.

    All adapters share *home* and the ledger *state*; see ``Adapter`` for
    the remaining arguments.
    """
    registry = AdapterRegistry()
    for cls in ADAPTER_CLASSES:
        registry.register(
            cls(
                home,
                state,
                platform=platform,
                env=env,
                keep_backups=keep_backups,
                wait_for_lock=wait_for_lock,
            )
        )
    return registry


__all__ = [
    "ADAPTER_CLASSES",
    "ClaudeAdapter",
    "ClaudeDesktopAdapter",
    "ClineAdapter",
    "CodexAdapter",
    "ContinueAdapter",
    "CopilotAdapter",
    "CursorAdapter",
    "GeminiAdapter",
    "OpenCodeAdapter",
    "WindsurfAdapter",
    "ZedAdapter",
    "build_registry",
]
