"""Pydantic models for the canonical resource set.

Defines the four resource kinds that are projected onto every tool:

- ``MCPServer``: an MCP server launched over stdio or reached over HTTP/SSE.
- ``Command``: a slash command (prompt plus frontmatter metadata).
- ``Rule``: an instruction document, optionally scoped by path globs.
- ``Skill``: a ``SKILL.md`` prompt plus optional sub-commands.

``ResourceSet`` groups one run's worth of all four.  All models are
frozen (immutable) for safety.
"""

from __future__ import annotations

from enum import Enum
from typing import Union

from pydantic import BaseModel, Field, model_validator


class Transport(str, Enum):
    """How a client reaches an MCP server."""

    STDIO = "stdio"
    HTTP = "http"
    SSE = "sse"


class Scope(str, Enum):
    """Where a resource was defined.  Provenance only, not a destination."""

    LOCAL = "local"
    GLOBAL = "global"


class _Resource(BaseModel):
    """Fields shared by every resource kind.

    Attributes:
        name: Canonical resource name.
        namespace: Optional on-disk name override used to avoid collisions
            between merged sources.
        scope: Provenance tag.
    """

    name: str
    namespace: str | None = None
    scope: Scope = Scope.GLOBAL

    model_config = {"frozen": True}

    @property
    def effective_name(self) -> str:
        """The name written to disk: ``namespace`` if set, else ``name``."""
        return self.namespace or self.name


class MCPServer(_Resource):
    """An MCP server definition.

    Attributes:
        command: Executable for stdio servers.
        args: Arguments passed to ``command``.
        env: Environment variables for the server process.
        url: Endpoint for remote servers.
        transport: ``stdio``, ``http`` or ``sse``.  Defaults to ``http``
            when only ``url`` is given, else ``stdio``.
        disabled: Disabled servers are never written to a tool.
        startup_timeout_sec: Seconds a tool waits for the server to start.
            Only Codex has this setting.
        tool_timeout_sec: Seconds a tool waits for one tool call.  Codex
            only.
    """

    command: str = ""
    args: list[str] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)
    url: str = ""
    transport: Transport = Transport.STDIO
    disabled: bool = False
    startup_timeout_sec: int | None = Field(default=None, gt=0)
    tool_timeout_sec: int | None = Field(default=None, gt=0)

    @model_validator(mode="before")
    @classmethod
    def _infer_transport(cls, data):
        if (
            isinstance(data, dict)
            and data.get("url")
            and not data.get("command")
            and "transport" not in data
        ):
            data = {**data, "transport": Transport.HTTP}
        return data

    @property
    def is_remote(self) -> bool:
        """``True`` for HTTP and SSE servers."""
        return self.transport in (Transport.HTTP, Transport.SSE)


class Command(_Resource):
    """A slash command.

    Attributes:
        description: One-line summary shown by the tool.
        prompt: The command body (Markdown).
        argument_hint: Placeholder text for the command's arguments.
        model: Model override, for tools that support one.
        allowed_tools: Tool allow-list.
        disallowed_tools: Tool deny-list.
    """

    description: str = ""
    prompt: str = ""
    argument_hint: str = ""
    model: str = ""
    allowed_tools: list[str] = Field(default_factory=list)
    disallowed_tools: list[str] = Field(default_factory=list)


class Rule(_Resource):
    """An instruction document.

    Attributes:
        content: Markdown body.
        priority: Higher is more important; 0 means unset.
        tools: Tools this rule is meant for (empty means all).
        applies: Legacy single file pattern.
        paths: File patterns (Claude Code style).
        globs: File patterns (Cursor style).
    """

    content: str = ""
    priority: int = 0
    tools: list[str] = Field(default_factory=list)
    applies: str = ""
    paths: list[str] = Field(default_factory=list)
    globs: list[str] = Field(default_factory=list)

    @property
    def patterns(self) -> list[str]:
        """Globs if present, else paths, else the legacy pattern."""
        if self.globs:
            return list(self.globs)
        if self.paths:
            return list(self.paths)
        return [self.applies] if self.applies else []


class SkillCommand(BaseModel):
    """A sub-command of a skill, invoked as ``skill:command``."""

    name: str
    description: str = ""
    content: str = ""

    model_config = {"frozen": True}


class Skill(_Resource):
    """A skill directory (``SKILL.md`` plus sub-command files).

    Attributes:
        description: One-line summary.
        content: Body of ``SKILL.md``.
        commands: Sub-commands, each written to ``<command>.md``.
    """

    description: str = ""
    content: str = ""
    commands: list[SkillCommand] = Field(default_factory=list)


Resource = Union[MCPServer, Command, Rule, Skill]


class ResourceSet(BaseModel):
    """The canonical set for one sync run."""

    servers: list[MCPServer] = Field(default_factory=list)
    commands: list[Command] = Field(default_factory=list)
    rules: list[Rule] = Field(default_factory=list)
    skills: list[Skill] = Field(default_factory=list)

    model_config = {"frozen": True}


def effective_name(resource: Resource) -> str:
    """Return the on-disk name of *resource* (namespace wins)."""
    return resource.effective_name


def filter_stdio_servers(servers: list[MCPServer]) -> list[MCPServer]:
    """Drop HTTP/SSE servers, for tools that can only launch processes."""
    return [s for s in servers if not s.is_remote]
