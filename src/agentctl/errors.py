"""Exception hierarchy shared by the sync engine and its adapters.

Contention on a file lock is deliberately *not* represented here:
``FileLock.try_lock()`` reports it as ``False``.  ``LockBusyError`` only
exists so an adapter running in fail-fast mode can turn that ``False``
into a per-target failure the orchestrator records.
"""

from __future__ import annotations

from pathlib import Path


class AgentctlError(Exception):
    """Base class for all agentctl errors."""


class InvalidNameError(ValueError, AgentctlError):
    """A resource name is unsafe to use as an on-disk name.

    Attributes:
        name: The offending name, verbatim.
        reason: Human-readable explanation of the rule it broke.
    """

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"invalid resource name {name!r}: {reason}")


class MalformedDocumentError(AgentctlError):
    """An existing target file could not be parsed.

    The file is left untouched; the write for that target is aborted.
    """

    def __init__(self, path: Path, detail: str) -> None:
        self.path = Path(path)
        self.detail = detail
        super().__init__(f"cannot parse {self.path}: {detail}")


class LockError(AgentctlError):
    """The lock system failed in an unexpected way."""


class LockBusyError(LockError):
    """A non-blocking lock attempt found the lock held elsewhere."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        super().__init__(f"{self.path} is locked by another process")
