"""Sync engine: project canonical resources onto each tool's config."""

from .adapter import Adapter, AdapterRegistry, ServerTarget
from .adapters import build_registry
from .engine import SyncEngine
from .models import ResourceType, SyncReport, SyncResult, ToolOutcome
from .ownership import (
    MANAGED_MARKER,
    MANAGED_VALUE,
    InlineMarkerStrategy,
    LedgerStrategy,
    OwnershipStrategy,
)
from .reporter import format_sync_report, report_to_json
from .state import SyncState

__all__ = [
    "MANAGED_MARKER",
    "MANAGED_VALUE",
    "Adapter",
    "AdapterRegistry",
    "InlineMarkerStrategy",
    "LedgerStrategy",
    "OwnershipStrategy",
    "ResourceType",
    "ServerTarget",
    "SyncEngine",
    "SyncReport",
    "SyncResult",
    "SyncState",
    "ToolOutcome",
    "build_registry",
    "format_sync_report",
    "report_to_json",
]
