"""Sync engine that projects one resource set onto every installed tool.

The ``SyncEngine`` walks the registry and, for each detected adapter:

1. Picks the resource kinds the adapter supports.
2. Skips a kind with nothing to write and nothing left from a prior run.
3. Writes the kind through the adapter (or, in dry-run mode, validates
   and counts what would be written).
4. Records a ``SyncResult`` per (tool, kind).

Error handling is per-pair: a failure in one (tool, kind) is logged and
recorded, and the run moves on to the next pair.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from agentctl.resources import ResourceSet
from agentctl.sync.adapter import Adapter, AdapterRegistry
from agentctl.sync.models import ResourceType, SyncReport, SyncResult

logger = logging.getLogger(__name__)


def resources_of_kind(resources: ResourceSet, kind: ResourceType) -> list:
    """Return the list in *resources* that holds *kind*."""
    return {
        ResourceType.MCP: resources.servers,
        ResourceType.COMMANDS: resources.commands,
        ResourceType.RULES: resources.rules,
        ResourceType.SKILLS: resources.skills,
    }[kind]


class SyncEngine:
    """Run a sync of one ``ResourceSet`` across a registry of adapters.

    Args:
        registry: The adapters to consider.
        dry_run: If ``True``, validate and count but do not write.
    """

    def __init__(
        self, registry: AdapterRegistry, dry_run: bool = False
    ) -> None:
        self.registry = registry
        self.dry_run = dry_run

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    def run(
        self,
        resources: ResourceSet,
        tools: list[str] | None = None,
    ) -> SyncReport:
        """Sync *resources* into every detected tool.

        Args:
            resources: The canonical set.
            tools: Restrict the run to these adapter names.  Names that
                are unknown or not installed are listed in
                ``SyncReport.skipped_tools``.

        Returns:
            A ``SyncReport`` with one result per (tool, kind) attempted.
        """
        started_at = datetime.now(timezone.utc).isoformat()
        adapters, skipped = self._select(tools)
        results: list[SyncResult] = []

        for adapter in adapters:
            for kind in adapter.supported_resources():
                result = self._sync_kind(adapter, kind, resources)
                if result is not None:
                    results.append(result)

        completed_at = datetime.now(timezone.utc).isoformat()
        return SyncReport(
            dry_run=self.dry_run,
            results=results,
            skipped_tools=skipped,
            started_at=started_at,
            completed_at=completed_at,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _select(
        self, tools: list[str] | None
    ) -> tuple[list[Adapter], list[str]]:
        """Return (detected adapters to sync, requested names skipped)."""
        detected = self.registry.detected()
        if tools is None:
            return detected, []

        wanted = set(tools)
        selected = [a for a in detected if a.name in wanted]
        found = {a.name for a in selected}
        skipped = sorted(wanted - found)
        for name in skipped:
            if name in self.registry:
                logger.info("Skipping %s: not installed", name)
            else:
                logger.warning("Skipping unknown tool %s", name)
        return selected, skipped

    def _sync_kind(
        self,
        adapter: Adapter,
        kind: ResourceType,
        resources: ResourceSet,
    ) -> SyncResult | None:
        """Sync one (tool, kind) pair.  ``None`` means nothing to do."""
        items = resources_of_kind(resources, kind)
        try:
            if not items and not adapter.has_managed(kind):
                return None
            if self.dry_run:
                changes = adapter.plan(kind, items)
            else:
                changes = adapter.write(kind, items)
        except Exception as exc:
            logger.error(
                "Error syncing %s into %s: %s", kind.value, adapter.name, exc
            )
            return SyncResult(
                tool=adapter.name,
                kind=kind,
                success=False,
                error=str(exc),
            )
        return SyncResult(
            tool=adapter.name, kind=kind, success=True, changes=changes
        )
