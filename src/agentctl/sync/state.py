"""Ownership ledger persistence.

Some targets reject unknown keys, so agentctl cannot tag its entries
inline.  For those, the names it owns are recorded in
``<config_dir>/sync-state.json``::

    {
      "version": 1,
      "last_sync": "2026-01-01T00:00:00+00:00",
      "managedServers": {"opencode": ["github", "memory"]},
      "managedResources": {"claude": {"commands": ["review"]}}
    }

MCP server names live under ``managedServers``; every other kind lives
under ``managedResources[adapter][kind]``.

Key design choices:

* **Atomic writes** -- ``save()`` goes through ``atomic_write()`` so
  readers never see partial data.
* **Read-modify-write under lock** -- ``update_managed()`` holds
  ``sync-state.json.lock`` across load and save, so two processes
  recording different adapters never drop each other's entries.
* **Dict-based state** -- state is a plain ``dict`` rather than a Pydantic
  model so unknown keys written by newer versions survive a round trip.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from agentctl.errors import MalformedDocumentError
from agentctl.file_handler import atomic_write, read_bytes_if_exists
from agentctl.locking import FileLock
from agentctl.sync.models import ResourceType

logger = logging.getLogger(__name__)

LEDGER_FILENAME = "sync-state.json"
LEDGER_VERSION = 1


class SyncState:
    """Load, save, and query the ownership ledger.

    Args:
        state_dir: Directory holding the ledger (the agentctl config dir).
    """

    def __init__(self, state_dir: Path) -> None:
        self._state_dir = Path(state_dir)

    @property
    def path(self) -> Path:
        """Path to the ledger file."""
        return self._state_dir / LEDGER_FILENAME

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> dict:
        """Load the ledger from disk.

        Returns:
            The state dict.  If the file does not exist (or is empty) an
            empty state with ``version=1`` is returned.

        Raises:
            MalformedDocumentError: The ledger exists but is not valid.
        """
        raw = read_bytes_if_exists(self.path)
        if raw is None or not raw.strip():
            return self._empty()
        try:
            state = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise MalformedDocumentError(self.path, str(exc)) from exc
        if not isinstance(state, dict):
            raise MalformedDocumentError(
                self.path, "top level is not an object"
            )
        state.setdefault("version", LEDGER_VERSION)
        return state

    def save(self, state: dict) -> None:
        """Persist the ledger atomically.

        The ``last_sync`` field is set to the current UTC ISO 8601 timestamp
        before writing.  Callers that did not load *state* under the ledger
        lock should use ``update_managed()`` instead.
        """
        state["last_sync"] = datetime.now(timezone.utc).isoformat()
        data = json.dumps(state, indent=2, sort_keys=True) + "\n"
        atomic_write(self.path, data.encode("utf-8"))
        logger.debug("Saved ledger %s", self.path)

    # ------------------------------------------------------------------
    # Entry helpers
    # ------------------------------------------------------------------

    def get_managed(
        self, state: dict, adapter: str, kind: ResourceType
    ) -> list[str]:
        """Return the names recorded for (*adapter*, *kind*).

        Entries of the wrong type are ignored rather than trusted.
        """
        if kind == ResourceType.MCP:
            names = _as_dict(state.get("managedServers")).get(adapter)
        else:
            per_adapter = _as_dict(state.get("managedResources")).get(adapter)
            names = _as_dict(per_adapter).get(kind.value)
        if not isinstance(names, list):
            return []
        return [n for n in names if isinstance(n, str)]

    def set_managed(
        self,
        state: dict,
        adapter: str,
        kind: ResourceType,
        names: list[str],
    ) -> None:
        """Record *names* for (*adapter*, *kind*), mutating *state*.

        An empty list removes the entry.
        """
        if kind == ResourceType.MCP:
            servers = _ensure_dict(state, "managedServers")
            if names:
                servers[adapter] = list(names)
            else:
                servers.pop(adapter, None)
            return

        resources = _ensure_dict(state, "managedResources")
        per_adapter = _ensure_dict(resources, adapter)
        if names:
            per_adapter[kind.value] = list(names)
        else:
            per_adapter.pop(kind.value, None)
            if not per_adapter:
                resources.pop(adapter, None)

    def clear_managed(
        self, state: dict, adapter: str, kind: ResourceType | None = None
    ) -> None:
        """Forget (*adapter*, *kind*), or every kind when *kind* is ``None``."""
        kinds = list(ResourceType) if kind is None else [kind]
        for k in kinds:
            self.set_managed(state, adapter, k, [])

    # ------------------------------------------------------------------
    # Locked operations
    # ------------------------------------------------------------------

    def managed_names(self, adapter: str, kind: ResourceType) -> list[str]:
        """Load the ledger and return the names for (*adapter*, *kind*)."""
        return self.get_managed(self.load(), adapter, kind)

    def update_managed(
        self, adapter: str, kind: ResourceType, names: list[str]
    ) -> None:
        """Record *names* for (*adapter*, *kind*) under the ledger lock."""
        with FileLock(self.path):
            state = self.load()
            if self.get_managed(state, adapter, kind) == list(names):
                return
            self.set_managed(state, adapter, kind, names)
            self.save(state)
        logger.debug(
            "Ledger now records %d %s for %s",
            len(names),
            kind.value,
            adapter,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _empty() -> dict:
        return {
            "version": LEDGER_VERSION,
            "last_sync": None,
            "managedServers": {},
            "managedResources": {},
        }


def _as_dict(value) -> dict:
    return value if isinstance(value, dict) else {}


def _ensure_dict(parent: dict, key: str) -> dict:
    value = parent.get(key)
    if not isinstance(value, dict):
        value = parent[key] = {}
    return value
