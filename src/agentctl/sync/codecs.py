"""Server entry codecs: ``MCPServer`` <-> one tool's entry shape.

Codecs produce schema-pure entries; ownership markers are added later by
the adapter's ``OwnershipStrategy``.  Decoding is forgiving: fields of the
wrong type are treated as absent rather than failing the whole read.

- ``StdioCodec``: ``{"command", "args", "env"}``.  Remote servers are
  not representable.
- ``TransportCodec``: ``StdioCodec`` plus ``{"transport", "url"}`` for
  remote servers.
- ``OpenCodeCodec``: strict ``{"type": "local"|"remote", "command": [...],
  "url", "env", "enabled"}``.
- ``CodexCodec``: TOML ``[mcp_servers.<name>]`` tables with
  ``command``/``args`` or ``url``, plus ``env``, ``enabled`` and the
  ``startup_timeout_sec``/``tool_timeout_sec`` timeouts.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from agentctl.resources import MCPServer, Transport


# =============================================================================
# Forgiving field readers
# =============================================================================


def as_str(value: Any) -> str:
    return str(value) if isinstance(value, str) else ""


def as_str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if isinstance(v, str)]


def as_str_dict(value: Any) -> dict[str, str]:
    if not isinstance(value, Mapping):
        return {}
    return {
        str(k): str(v) for k, v in value.items() if isinstance(v, str)
    }


def as_timeout(value: Any) -> int | None:
    """A positive whole number of seconds, else ``None``."""
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        return None
    return int(value)


def is_disabled(entry: Mapping[str, Any]) -> bool:
    """``True`` when *entry* carries an explicit ``enabled = false``."""
    return entry.get("enabled") is False


def _transport(value: Any, default: Transport) -> Transport:
    try:
        return Transport(value)
    except ValueError:
        return default


# =============================================================================
# Codecs
# =============================================================================


class ServerCodec:
    """Base codec: stdio entries only."""

    supports_remote = False

    def encode(self, server: MCPServer) -> dict[str, Any]:
        entry: dict[str, Any] = {"command": server.command}
        if server.args:
            entry["args"] = list(server.args)
        if server.env:
            entry["env"] = dict(server.env)
        return entry

    def decode(self, name: str, entry: Mapping[str, Any]) -> MCPServer | None:
        """Return the server stored as *entry*, or ``None`` to skip it."""
        return MCPServer(
            name=name,
            command=as_str(entry.get("command")),
            args=as_str_list(entry.get("args")),
            env=as_str_dict(entry.get("env")),
        )


class StdioCodec(ServerCodec):
    pass


class TransportCodec(ServerCodec):
    """Permissive JSON with an explicit ``transport`` for remote servers."""

    supports_remote = True

    def encode(self, server: MCPServer) -> dict[str, Any]:
        if server.is_remote:
            return {"transport": server.transport.value, "url": server.url}
        return super().encode(server)

    def decode(self, name: str, entry: Mapping[str, Any]) -> MCPServer | None:
        url = as_str(entry.get("url"))
        command = as_str(entry.get("command"))
        default = Transport.HTTP if url and not command else Transport.STDIO
        return MCPServer(
            name=name,
            command=command,
            args=as_str_list(entry.get("args")),
            env=as_str_dict(entry.get("env")),
            url=url,
            transport=_transport(entry.get("transport"), default),
        )


class OpenCodeCodec(ServerCodec):
    """OpenCode's strict ``mcp`` schema.  Disabled entries are skipped."""

    supports_remote = True

    def encode(self, server: MCPServer) -> dict[str, Any]:
        if server.is_remote:
            entry: dict[str, Any] = {"type": "remote", "url": server.url}
        else:
            entry = {
                "type": "local",
                "command": [server.command, *server.args],
            }
        if server.env:
            entry["env"] = dict(server.env)
        entry["enabled"] = True
        return entry

    def decode(self, name: str, entry: Mapping[str, Any]) -> MCPServer | None:
        if is_disabled(entry):
            return None
        env = as_str_dict(entry.get("env") or entry.get("environment"))
        if entry.get("type") == "remote":
            return MCPServer(
                name=name,
                url=as_str(entry.get("url")),
                transport=Transport.HTTP,
                env=env,
            )
        command = as_str_list(entry.get("command"))
        if not command:
            return MCPServer(name=name, env=env)
        return MCPServer(
            name=name, command=command[0], args=command[1:], env=env
        )


class CodexCodec(ServerCodec):
    """Codex ``config.toml`` tables.  Disabled entries are skipped."""

    supports_remote = True

    def encode(self, server: MCPServer) -> dict[str, Any]:
        if server.is_remote:
            entry: dict[str, Any] = {"url": server.url}
        else:
            entry = {"command": server.command}
            if server.args:
                entry["args"] = list(server.args)
        if server.env:
            entry["env"] = dict(server.env)
        entry["enabled"] = True
        if server.startup_timeout_sec:
            entry["startup_timeout_sec"] = server.startup_timeout_sec
        if server.tool_timeout_sec:
            entry["tool_timeout_sec"] = server.tool_timeout_sec
        return entry

    def decode(self, name: str, entry: Mapping[str, Any]) -> MCPServer | None:
        if is_disabled(entry):
            return None
        url = as_str(entry.get("url"))
        command = as_str(entry.get("command"))
        return MCPServer(
            name=name,
            command=command,
            args=as_str_list(entry.get("args")),
            env=as_str_dict(entry.get("env")),
            url=url,
            transport=(
                Transport.HTTP if url and not command else Transport.STDIO
            ),
            startup_timeout_sec=as_timeout(entry.get("startup_timeout_sec")),
            tool_timeout_sec=as_timeout(entry.get("tool_timeout_sec")),
        )
