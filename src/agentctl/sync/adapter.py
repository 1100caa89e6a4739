"""Adapter base class and registry.

An ``Adapter`` projects the canonical resource set onto one tool.  The
base class carries the whole read-modify-write cycle; a concrete adapter
mostly declares *where* things live and *which* codec shapes them:

* ``config_dir()`` / ``config_path()``: presence detection and the
  server document.
* ``server_key``, ``server_codec``, ``document_format`` and
  ``uses_ledger``: how servers are stored (see ``server_target()``).
* ``commands_dir()``, ``rules_dir()``, ``rules_file()`` and
  ``skills_dir()``: return ``None`` for kinds the tool does not have.

Every write validates names before touching disk, takes the target's
file lock, strips what agentctl wrote last time, inserts the current set
and persists through ``safe_write()``.  Unsupported kinds read as empty
and write nothing.
"""

from __future__ import annotations

import logging
import os
import shutil
import sys
from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, ClassVar

from agentctl.errors import (
    AgentctlError,
    InvalidNameError,
    LockBusyError,
    MalformedDocumentError,
)
from agentctl.file_handler import (
    DEFAULT_BACKUP_COUNT,
    atomic_write,
    read_bytes_if_exists,
    read_file_with_encoding,
    safe_write,
)
from agentctl.locking import FileLock
from agentctl.resources import Command, MCPServer, Resource, Rule, Skill
from agentctl.sync.codecs import ServerCodec, StdioCodec
from agentctl.sync.document import JSON, DocumentFormat, RawDocument
from agentctl.sync.markdown import (
    SKILL_FILENAME,
    CommandCodec,
    MdcRuleCodec,
    extract_managed_block,
    format_skill,
    join_rules,
    parse_skill,
    replace_managed_block,
)
from agentctl.sync.models import ResourceType
from agentctl.sync.ownership import (
    InlineMarkerStrategy,
    LedgerStrategy,
    OwnershipStrategy,
)
from agentctl.sync.state import SyncState
from agentctl.validators import sanitize_name, validate_resource_name

logger = logging.getLogger(__name__)

_SKILL_STEM = Path(SKILL_FILENAME).stem.lower()


@dataclass(frozen=True)
class ServerTarget:
    """Where and how an adapter stores MCP servers.

    Attributes:
        path: The config document.
        fmt: Its on-disk format.
        key: Top-level key of the servers section.
        codec: Entry shape.
        ledger: ``True`` when the schema forbids an inline marker.
    """

    path: Path
    fmt: DocumentFormat
    key: str
    codec: ServerCodec
    ledger: bool = False


# =============================================================================
# Helpers
# =============================================================================


def _resource_name(resource: Resource | Any, kind: str) -> str | None:
    """Validated on-disk name, or ``None`` to skip an unnamed resource."""
    name = resource.effective_name
    if not name:
        logger.warning("Skipping %s with an empty name", kind)
        return None
    return sanitize_name(name)


def _read_utf8(path: Path) -> str:
    """Text of *path*, which must be UTF-8.

    A leading BOM is kept in the returned text so that a rewrite leaves
    the bytes outside the managed block as they were.

    Raises:
        MalformedDocumentError: The file is in another encoding.  The
            detected encoding, if any, is named in the message.
    """
    raw = path.read_bytes()
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        _, guess = read_file_with_encoding(path)
        detail = f"not UTF-8 ({exc.reason} at byte {exc.start})"
        if guess != "utf-8":
            detail += f", looks like {guess}"
        raise MalformedDocumentError(path, detail) from exc


def _write_text_if_changed(path: Path, text: str) -> bool:
    data = text.encode("utf-8")
    if read_bytes_if_exists(path) == data:
        return False
    atomic_write(path, data)
    logger.debug("Wrote %s", path)
    return True


def _remove_path(path: Path) -> None:
    if path.is_dir():
        shutil.rmtree(path)
    else:
        path.unlink(missing_ok=True)
    logger.debug("Removed %s", path)


# =============================================================================
# Adapter
# =============================================================================


class Adapter(ABC):
    """Base class for all tool adapters.

    Args:
        home: Root for every path the adapter touches.  Defaults to the
            user's home directory.
        state: Ownership ledger.  Defaults to ``~/.config/agentctl``
            under *home*.
        platform: ``sys.platform`` value used for path selection.
        env: Environment used for path selection (``XDG_CONFIG_HOME``).
        keep_backups: Timestamped backups kept per config document.
        wait_for_lock: ``False`` fails fast with ``LockBusyError`` instead
            of waiting for another process.
    """

    name: ClassVar[str] = ""
    server_key: ClassVar[str] = "mcpServers"
    server_codec: ClassVar[ServerCodec] = StdioCodec()
    document_format: ClassVar[DocumentFormat] = JSON
    uses_ledger: ClassVar[bool] = False
    command_codec: ClassVar[CommandCodec] = CommandCodec()
    rule_codec: ClassVar[MdcRuleCodec] = MdcRuleCodec()

    def __init__(
        self,
        home: Path | None = None,
        state: SyncState | None = None,
        *,
        platform: str | None = None,
        env: Mapping[str, str] | None = None,
        keep_backups: int = DEFAULT_BACKUP_COUNT,
        wait_for_lock: bool = True,
    ) -> None:
        self.home = Path(home) if home is not None else Path.home()
        self.state = state or SyncState(self.home / ".config" / "agentctl")
        self.platform = platform or sys.platform
        self.env = os.environ if env is None else env
        self.keep_backups = keep_backups
        self.wait_for_lock = wait_for_lock

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r} home={self.home}>"

    # ------------------------------------------------------------------
    # Locations
    # ------------------------------------------------------------------

    @abstractmethod
    def config_dir(self) -> Path:
        """Directory whose existence means the tool is installed."""

    @abstractmethod
    def config_path(self) -> Path:
        """The document holding MCP servers."""

    def commands_dir(self) -> Path | None:
        return None

    def rules_dir(self) -> Path | None:
        return None

    def rules_file(self) -> Path | None:
        return None

    def skills_dir(self) -> Path | None:
        return None

    def xdg_config_home(self) -> Path:
        """``$XDG_CONFIG_HOME``, else ``~/.config`` under ``home``."""
        value = self.env.get("XDG_CONFIG_HOME")
        return Path(value) if value else self.home / ".config"

    def server_target(self) -> ServerTarget:
        """Describe the servers section.  Override for dual formats."""
        return ServerTarget(
            path=self.config_path(),
            fmt=self.document_format,
            key=self.server_key,
            codec=self.server_codec,
            ledger=self.uses_ledger,
        )

    # ------------------------------------------------------------------
    # Capabilities
    # ------------------------------------------------------------------

    def detect(self) -> bool:
        """``True`` if the tool appears to be installed."""
        return self.config_dir().is_dir()

    def supported_resources(self) -> list[ResourceType]:
        kinds = [ResourceType.MCP]
        if self.commands_dir() is not None:
            kinds.append(ResourceType.COMMANDS)
        if self.rules_dir() is not None or self.rules_file() is not None:
            kinds.append(ResourceType.RULES)
        if self.skills_dir() is not None:
            kinds.append(ResourceType.SKILLS)
        return kinds

    def supports(self, kind: ResourceType) -> bool:
        return kind in self.supported_resources()

    @property
    def supports_remote(self) -> bool:
        """``True`` if HTTP/SSE servers can be written to this tool."""
        return self.server_target().codec.supports_remote

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def read(self, kind: ResourceType) -> list:
        if not self.supports(kind):
            return []
        return {
            ResourceType.MCP: self.read_servers,
            ResourceType.COMMANDS: self.read_commands,
            ResourceType.RULES: self.read_rules,
            ResourceType.SKILLS: self.read_skills,
        }[kind]()

    def write(self, kind: ResourceType, items: list) -> int:
        """Write *items* of *kind*.  Returns the number of entries written."""
        if not self.supports(kind):
            return 0
        return {
            ResourceType.MCP: self.write_servers,
            ResourceType.COMMANDS: self.write_commands,
            ResourceType.RULES: self.write_rules,
            ResourceType.SKILLS: self.write_skills,
        }[kind](items)

    def plan(self, kind: ResourceType, items: list) -> int:
        """Validate *items* and count what ``write()`` would write."""
        if not self.supports(kind):
            return 0
        if kind == ResourceType.MCP:
            return len(self.prepare_servers(items))
        if kind == ResourceType.COMMANDS:
            return len(self.prepare_commands(items))
        if kind == ResourceType.RULES:
            if self.rules_dir() is not None:
                return len(self.prepare_rules(items))
            rules = self._rules_for_tool(items)
            return len([r for r in rules if r.content.strip()])
        return len(self.prepare_skills(items))

    def has_managed(self, kind: ResourceType) -> bool:
        """``True`` if a previous run left managed entries of *kind*."""
        if not self.supports(kind):
            return False
        if kind == ResourceType.MCP:
            target = self.server_target()
            if target.ledger:
                return bool(self.state.managed_names(self.name, kind))
            section = RawDocument.load(target.path, target.fmt).get_mapping(
                target.key
            )
            return bool(
                section and InlineMarkerStrategy().managed_names(section)
            )
        if kind == ResourceType.RULES and self.rules_dir() is None:
            path = self.rules_file()
            if not path.is_file():
                return False
            return extract_managed_block(_read_utf8(path), path) is not None
        return bool(self.state.managed_names(self.name, kind))

    # ------------------------------------------------------------------
    # Locking
    # ------------------------------------------------------------------

    @contextmanager
    def locked(self, path: Path) -> Iterator[FileLock]:
        """Hold the lock for *path*; fail fast unless ``wait_for_lock``."""
        lock = FileLock(path)
        if self.wait_for_lock:
            lock.lock()
        elif not lock.try_lock():
            raise LockBusyError(lock.path)
        try:
            yield lock
        finally:
            lock.unlock()

    def _commit(
        self, ownership: OwnershipStrategy, names: list[str], path: Path
    ) -> None:
        try:
            ownership.commit(names)
        except (OSError, AgentctlError) as exc:
            logger.warning(
                "Wrote %s but could not update the ownership ledger: %s",
                path,
                exc,
            )
            raise

    # ------------------------------------------------------------------
    # MCP servers
    # ------------------------------------------------------------------

    def read_servers(self) -> list[MCPServer]:
        target = self.server_target()
        doc = RawDocument.load(target.path, target.fmt)
        section = doc.get_mapping(target.key)
        servers = []
        for name, entry in (section or {}).items():
            if not isinstance(entry, Mapping):
                continue
            server = target.codec.decode(str(name), entry)
            if server is not None:
                servers.append(server)
        return servers

    def prepare_servers(
        self, servers: list[MCPServer]
    ) -> dict[str, dict[str, Any]]:
        """Filter, validate and encode *servers* for this tool.

        Raises:
            InvalidNameError: Before anything is written.
        """
        codec = self.server_target().codec
        entries: dict[str, dict[str, Any]] = {}
        for server in servers:
            if server.disabled:
                continue
            if server.is_remote and not codec.supports_remote:
                logger.debug(
                    "%s cannot reach remote server %s, skipping",
                    self.name,
                    server.effective_name,
                )
                continue
            name = _resource_name(server, "server")
            if name is None:
                continue
            if server.is_remote and not server.url:
                logger.warning("Skipping remote server %s with no url", name)
                continue
            if not server.is_remote and not server.command:
                logger.warning("Skipping server %s with no command", name)
                continue
            entries[name] = codec.encode(server)
        return entries

    def server_ownership(self, target: ServerTarget) -> OwnershipStrategy:
        if target.ledger:
            return LedgerStrategy(self.state, self.name, ResourceType.MCP)
        return InlineMarkerStrategy()

    def write_servers(self, servers: list[MCPServer]) -> int:
        target = self.server_target()
        entries = self.prepare_servers(servers)
        ownership = self.server_ownership(target)
        with self.locked(target.path):
            doc = RawDocument.load(target.path, target.fmt)
            if not entries and not doc.exists:
                self._commit(ownership, [], target.path)
                return 0
            names = ownership.replace(doc.section(target.key), entries)
            doc.save(self.keep_backups)
            self._commit(ownership, names, target.path)
        logger.info(
            "%s: wrote %d servers to %s", self.name, len(names), target.path
        )
        return len(names)

    # ------------------------------------------------------------------
    # Directory targets
    # ------------------------------------------------------------------

    def _write_directory(
        self,
        kind: ResourceType,
        directory: Path,
        units: dict[str, dict[str, str]],
        unit_path: Callable[[str], Path],
    ) -> int:
        """Write one group of files per name; delete groups we dropped.

        Only names the ledger recorded for (adapter, *kind*) are ever
        deleted.  No backups are taken inside resource directories.
        """
        ledger = LedgerStrategy(self.state, self.name, kind)
        with self.locked(directory):
            for name, files in units.items():
                wanted = {
                    directory / relative: text
                    for relative, text in files.items()
                }
                unit = unit_path(name)
                if name in ledger.previous and unit.is_dir():
                    # Sub-files this unit no longer has
                    for path in unit.glob("*.md"):
                        if path not in wanted:
                            _remove_path(path)
                for path, text in wanted.items():
                    _write_text_if_changed(path, text)
            for name in sorted(ledger.previous - set(units)):
                valid, reason = validate_resource_name(name)
                if not valid:
                    logger.warning(
                        "Ignoring ledger entry %r: %s", name, reason
                    )
                    continue
                _remove_path(unit_path(name))
            self._commit(ledger, list(units), directory)
        logger.info(
            "%s: wrote %d %s to %s",
            self.name,
            len(units),
            kind.value,
            directory,
        )
        return len(units)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def read_commands(self) -> list[Command]:
        directory = self.commands_dir()
        if directory is None or not directory.is_dir():
            return []
        codec = self.command_codec
        return [
            codec.parse(path.name, _read_utf8(path), path)
            for path in sorted(directory.glob("*" + codec.suffix))
            if path.is_file()
        ]

    def prepare_commands(self, commands: list[Command]) -> dict[str, dict[str, str]]:
        codec = self.command_codec
        units: dict[str, dict[str, str]] = {}
        for command in commands:
            name = _resource_name(command, "command")
            if name is not None:
                units[name] = {codec.filename(name): codec.format(command)}
        return units

    def write_commands(self, commands: list[Command]) -> int:
        directory = self.commands_dir()
        if directory is None:
            return 0
        units = self.prepare_commands(commands)
        return self._write_directory(
            ResourceType.COMMANDS,
            directory,
            units,
            lambda name: directory / self.command_codec.filename(name),
        )

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def _rules_for_tool(self, rules: list[Rule]) -> list[Rule]:
        return [r for r in rules if not r.tools or self.name in r.tools]

    def read_rules(self) -> list[Rule]:
        directory = self.rules_dir()
        if directory is not None:
            if not directory.is_dir():
                return []
            codec = self.rule_codec
            return [
                codec.parse(path.name, _read_utf8(path), path)
                for path in sorted(directory.glob("*" + codec.suffix))
                if path.is_file()
            ]
        path = self.rules_file()
        if path is None or not path.is_file():
            return []
        text = _read_utf8(path).lstrip("\ufeff")
        if not text.strip():
            return []
        return [Rule(name=path.stem.lstrip(".") or path.name, content=text)]

    def prepare_rules(self, rules: list[Rule]) -> dict[str, dict[str, str]]:
        codec = self.rule_codec
        units: dict[str, dict[str, str]] = {}
        for rule in self._rules_for_tool(rules):
            name = _resource_name(rule, "rule")
            if name is not None:
                units[name] = {codec.filename(name): codec.format(rule)}
        return units

    def write_rules(self, rules: list[Rule]) -> int:
        directory = self.rules_dir()
        if directory is not None:
            units = self.prepare_rules(rules)
            return self._write_directory(
                ResourceType.RULES,
                directory,
                units,
                lambda name: directory / self.rule_codec.filename(name),
            )
        path = self.rules_file()
        if path is None:
            return 0
        return self._write_rules_file(path, self._rules_for_tool(rules))

    def _write_rules_file(self, path: Path, rules: list[Rule]) -> int:
        body = join_rules(rules)
        written = len([r for r in rules if r.content.strip()])
        with self.locked(path):
            if path.exists():
                text = _read_utf8(path)
            else:
                text = ""
            updated = replace_managed_block(text, body, path)
            if updated == text:
                logger.debug("%s unchanged, not writing", path)
                return written
            safe_write(
                path,
                updated.encode("utf-8"),
                keep_backups=self.keep_backups,
            )
        logger.info("%s: wrote %d rules to %s", self.name, written, path)
        return written

    # ------------------------------------------------------------------
    # Skills
    # ------------------------------------------------------------------

    def read_skills(self) -> list[Skill]:
        directory = self.skills_dir()
        if directory is None or not directory.is_dir():
            return []
        skills = []
        for path in sorted(directory.iterdir()):
            if path.is_dir():
                skill = parse_skill(path)
                if skill is not None:
                    skills.append(skill)
        return skills

    def prepare_skills(self, skills: list[Skill]) -> dict[str, dict[str, str]]:
        units: dict[str, dict[str, str]] = {}
        for skill in skills:
            name = _resource_name(skill, "skill")
            if name is None:
                continue
            for cmd in skill.commands:
                if sanitize_name(cmd.name).lower() == _SKILL_STEM:
                    raise InvalidNameError(
                        cmd.name, f"reserved for {SKILL_FILENAME} in a skill"
                    )
            units[name] = {
                f"{name}/{filename}": text
                for filename, text in format_skill(skill).items()
            }
        return units

    def write_skills(self, skills: list[Skill]) -> int:
        directory = self.skills_dir()
        if directory is None:
            return 0
        units = self.prepare_skills(skills)
        return self._write_directory(
            ResourceType.SKILLS, directory, units, lambda name: directory / name
        )


# =============================================================================
# Registry
# =============================================================================


class AdapterRegistry:
    """Name-keyed set of adapters, populated once at startup."""

    def __init__(self) -> None:
        self._adapters: dict[str, Adapter] = {}

    def register(self, adapter: Adapter) -> None:
        """Add *adapter*.

        Raises:
            ValueError: The name is empty or already registered.
        """
        if not adapter.name:
            raise ValueError(f"{type(adapter).__name__} has no name")
        if adapter.name in self._adapters:
            raise ValueError(f"adapter {adapter.name!r} is already registered")
        self._adapters[adapter.name] = adapter

    def get(self, name: str) -> Adapter | None:
        return self._adapters.get(name)

    def names(self) -> list[str]:
        return sorted(self._adapters)

    def all(self) -> list[Adapter]:
        """Every adapter, sorted by name."""
        return [self._adapters[name] for name in self.names()]

    def detected(self) -> list[Adapter]:
        """Adapters whose tool is installed, sorted by name.

        A detection failure is logged and counts as not installed.
        """
        found = []
        for adapter in self.all():
            try:
                present = adapter.detect()
            except OSError as exc:
                logger.warning("Could not detect %s: %s", adapter.name, exc)
                continue
            if present:
                found.append(adapter)
        return found

    def __contains__(self, name: object) -> bool:
        return name in self._adapters

    def __iter__(self) -> Iterator[Adapter]:
        return iter(self.all())

    def __len__(self) -> int:
        return len(self._adapters)
