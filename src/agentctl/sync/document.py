"""Read-modify-write helper for structured tool config files.

A ``RawDocument`` wraps a parsed JSON or TOML file as a mutable mapping.
Adapters only touch the one section they own (``mcpServers``, ``mcp``,
``mcp_servers`` ...) and every other key is written back untouched.

* A missing file, or one holding only whitespace, loads as an empty
  document.
* A file that does not parse raises ``MalformedDocumentError``.  Nothing
  is written over content we could not read.
* JSON is re-serialised with two-space indentation and a trailing
  newline.  TOML goes through tomlkit, which keeps comments, key order
  and formatting of everything outside the tables we replace.
* A file is only rewritten when its parsed content actually changed.
"""

from __future__ import annotations

import copy
import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping, MutableMapping
from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.exceptions import TOMLKitError

from agentctl.errors import MalformedDocumentError
from agentctl.file_handler import (
    DEFAULT_BACKUP_COUNT,
    read_bytes_if_exists,
    safe_write,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Formats
# =============================================================================


class DocumentFormat(ABC):
    """Parse and serialise one on-disk format."""

    name: str = ""

    @abstractmethod
    def new(self) -> MutableMapping[str, Any]:
        """Return an empty document."""

    @abstractmethod
    def parse(self, text: str, path: Path) -> MutableMapping[str, Any]:
        """Parse *text*, raising ``MalformedDocumentError`` on failure."""

    @abstractmethod
    def dump(self, data: MutableMapping[str, Any]) -> str:
        """Serialise *data* back to text."""

    def plain(self, data: MutableMapping[str, Any]) -> dict[str, Any]:
        """Detached builtin copy of *data*, used for change detection."""
        return copy.deepcopy(dict(data))


class JSONFormat(DocumentFormat):
    name = "json"

    def new(self) -> MutableMapping[str, Any]:
        return {}

    def parse(self, text: str, path: Path) -> MutableMapping[str, Any]:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise MalformedDocumentError(path, str(exc)) from exc
        if not isinstance(data, dict):
            raise MalformedDocumentError(
                path, f"top level is {type(data).__name__}, expected object"
            )
        return data

    def dump(self, data: MutableMapping[str, Any]) -> str:
        return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


class TOMLFormat(DocumentFormat):
    name = "toml"

    def new(self) -> MutableMapping[str, Any]:
        return tomlkit.document()

    def parse(self, text: str, path: Path) -> MutableMapping[str, Any]:
        try:
            return tomlkit.parse(text)
        except TOMLKitError as exc:
            raise MalformedDocumentError(path, str(exc)) from exc

    def dump(self, data: MutableMapping[str, Any]) -> str:
        return tomlkit.dumps(data)

    def plain(self, data: MutableMapping[str, Any]) -> dict[str, Any]:
        return data.unwrap()


JSON = JSONFormat()
TOML = TOMLFormat()


# =============================================================================
# Document
# =============================================================================


class RawDocument:
    """A parsed config file plus the bytes it was loaded from.

    Args:
        path: File the document belongs to.
        fmt: Format used to parse and serialise it.
        data: The parsed top-level mapping.
        original: Bytes on disk at load time, ``None`` if absent.
    """

    def __init__(
        self,
        path: Path,
        fmt: DocumentFormat,
        data: MutableMapping[str, Any],
        original: bytes | None = None,
    ) -> None:
        self.path = Path(path)
        self.fmt = fmt
        self.data = data
        self.original = original
        self.snapshot = fmt.plain(data)

    @classmethod
    def load(cls, path: Path, fmt: DocumentFormat) -> RawDocument:
        """Load *path*, or start an empty document if it is absent.

        Raises:
            MalformedDocumentError: The file exists but does not parse.
        """
        path = Path(path)
        raw = read_bytes_if_exists(path)
        if raw is None:
            return cls(path, fmt, fmt.new(), None)
        try:
            text = raw.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise MalformedDocumentError(path, str(exc)) from exc
        if not text.strip():
            return cls(path, fmt, fmt.new(), raw)
        return cls(path, fmt, fmt.parse(text, path), raw)

    @property
    def exists(self) -> bool:
        """``True`` if the file was on disk at load time."""
        return self.original is not None

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def get(self, key: str) -> Any:
        """Return the value at *key*, or ``None`` if absent."""
        return self.data.get(key)

    def get_mapping(self, key: str) -> Mapping[str, Any] | None:
        """Return *key* if it holds a mapping, else ``None``."""
        value = self.data.get(key)
        if isinstance(value, Mapping):
            return value
        return None

    def section(self, key: str) -> MutableMapping[str, Any]:
        """Return the mapping at *key*, creating it if absent.

        Raises:
            MalformedDocumentError: *key* exists but is not a mapping.
        """
        value = self.data.get(key)
        if value is None:
            self.data[key] = {}
            # tomlkit converts the dict to a table on assignment
            return self.data[key]
        if not isinstance(value, MutableMapping):
            raise MalformedDocumentError(
                self.path,
                f"{key!r} is {type(value).__name__}, expected a mapping",
            )
        return value

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def to_bytes(self) -> bytes:
        return self.fmt.dump(self.data).encode("utf-8")

    @property
    def changed(self) -> bool:
        """``True`` if the file is absent or its content was modified.

        Content is compared parsed, so a hand-formatted file is left
        alone when none of its values changed.
        """
        if self.original is None:
            return True
        return self.fmt.plain(self.data) != self.snapshot

    def save(self, keep_backups: int = DEFAULT_BACKUP_COUNT) -> bool:
        """Write the document back through ``safe_write()``.

        The caller must hold the lock for ``self.path``.  Nothing is
        written when the content is unchanged.

        Returns:
            ``True`` if the file was written.
        """
        if not self.changed:
            logger.debug("%s unchanged, not writing", self.path)
            return False
        data = self.to_bytes()
        safe_write(self.path, data, keep_backups=keep_backups)
        self.original = data
        self.snapshot = self.fmt.plain(self.data)
        logger.info("Wrote %s", self.path)
        return True
