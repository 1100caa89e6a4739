"""Ownership strategies: which entries in a shared section are ours.

Every adapter reconciles its section the same way:

1. ``strip()`` removes every entry agentctl wrote last time.
2. The current canonical set is inserted, ``tag()`` applied to each.
3. ``commit()`` records the new set, for strategies that keep a record.

Entries a user added by hand are never stripped.  A canonical entry with
the same name as a user entry replaces it; from then on it is ours.

``InlineMarkerStrategy`` stores ownership in the entry itself
(``"_managedBy": "agentctl"``).  ``LedgerStrategy`` is for schemas that
reject unknown keys and stores the owned names in ``SyncState`` instead.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping, MutableMapping
from typing import Any

from agentctl.sync.models import ResourceType
from agentctl.sync.state import SyncState

logger = logging.getLogger(__name__)

MANAGED_MARKER = "_managedBy"
MANAGED_VALUE = "agentctl"


class OwnershipStrategy(ABC):
    """Decide and record which entries of a section agentctl owns."""

    @abstractmethod
    def is_managed(self, name: str, entry: Any) -> bool:
        """Return ``True`` if *entry* (stored under *name*) is ours."""

    def tag(self, entry: dict[str, Any]) -> dict[str, Any]:
        """Return *entry* as it should be stored.  Default: unchanged."""
        return entry

    def commit(self, names: list[str]) -> None:
        """Record *names* as owned after a successful write."""

    def managed_names(self, section: Mapping[str, Any]) -> list[str]:
        return [
            name
            for name, entry in section.items()
            if self.is_managed(name, entry)
        ]

    def strip(self, section: MutableMapping[str, Any]) -> list[str]:
        """Delete every owned entry from *section*.

        Returns:
            The names that were removed.
        """
        removed = self.managed_names(section)
        for name in removed:
            del section[name]
        logger.debug("Stripped %d managed entries", len(removed))
        return removed

    def replace(
        self,
        section: MutableMapping[str, Any],
        entries: Mapping[str, dict[str, Any]],
    ) -> list[str]:
        """Strip prior entries, then insert *entries* in order.

        Returns:
            The names now owned.
        """
        self.strip(section)
        for name, entry in entries.items():
            section[name] = self.tag(dict(entry))
        return list(entries)


class InlineMarkerStrategy(OwnershipStrategy):
    """Tag entries with ``marker: value`` inside the entry itself."""

    def __init__(
        self, marker: str = MANAGED_MARKER, value: str = MANAGED_VALUE
    ) -> None:
        self.marker = marker
        self.value = value

    def is_managed(self, name: str, entry: Any) -> bool:
        return isinstance(entry, Mapping) and entry.get(self.marker) == self.value

    def tag(self, entry: dict[str, Any]) -> dict[str, Any]:
        entry[self.marker] = self.value
        return entry


class LedgerStrategy(OwnershipStrategy):
    """Track owned names for (*adapter*, *kind*) in the side ledger.

    The previous name list is read once, on first use, so a strategy
    instance belongs to exactly one write.

    Args:
        state: The ledger store.
        adapter: Adapter name the names are recorded under.
        kind: Resource kind the names are recorded under.
    """

    def __init__(
        self,
        state: SyncState,
        adapter: str,
        kind: ResourceType = ResourceType.MCP,
    ) -> None:
        self.state = state
        self.adapter = adapter
        self.kind = kind
        self._previous: set[str] | None = None

    @property
    def previous(self) -> set[str]:
        """Names recorded by the last successful write."""
        if self._previous is None:
            self._previous = set(
                self.state.managed_names(self.adapter, self.kind)
            )
        return self._previous

    def is_managed(self, name: str, entry: Any) -> bool:
        return name in self.previous

    def commit(self, names: list[str]) -> None:
        self.state.update_managed(self.adapter, self.kind, names)
        self._previous = set(names)
