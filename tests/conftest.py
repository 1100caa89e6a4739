"""Shared pytest fixtures for agentctl tests.

Every fixture roots paths in ``tmp_path``; no test touches the real home
directory.
"""

from pathlib import Path

import pytest

from agentctl.resources import (
    Command,
    MCPServer,
    ResourceSet,
    Rule,
    Skill,
    SkillCommand,
)
from agentctl.sync.adapter import AdapterRegistry
from agentctl.sync.adapters import build_registry
from agentctl.sync.state import SyncState


@pytest.fixture
def home(tmp_path: Path) -> Path:
    """A fake home directory."""
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def state(tmp_path: Path) -> SyncState:
    """A ledger bound to a temp config directory."""
    return SyncState(tmp_path / "agentctl")


@pytest.fixture
def registry(home: Path, state: SyncState) -> AdapterRegistry:
    """A fresh registry of every built-in adapter, rooted at ``home``."""
    return build_registry(home, state, platform="linux", env={})


_CONFIG_ENV_VARS = (
    "AGENTCTL_CONFIG",
    "AGENTCTL_CONFIG_DIR",
    "AGENTCTL_BACKUP_COUNT",
    "AGENTCTL_HOME",
    "AGENTCTL_WAIT_FOR_LOCK",
    "AGENTCTL_DEBUG",
    "AGENTCTL_LOG_LEVEL",
    "AGENTCTL_LOG_FILE",
    "XDG_CONFIG_HOME",
)


@pytest.fixture
def isolated_env(tmp_path: Path, monkeypatch) -> Path:
    """Run from an empty cwd with a fake HOME and no agentctl env vars."""
    for var in _CONFIG_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    user_home = tmp_path / "userhome"
    user_home.mkdir()
    monkeypatch.setenv("HOME", str(user_home))
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def servers() -> list[MCPServer]:
    return [
        MCPServer(
            name="github",
            command="npx",
            args=["-y", "@modelcontextprotocol/server-github"],
            env={"GITHUB_TOKEN": "${GITHUB_TOKEN}"},
        ),
        MCPServer(name="memory", command="mcp-memory"),
        MCPServer(name="docs", url="https://docs.example.com/mcp"),
    ]


@pytest.fixture
def resources(servers) -> ResourceSet:
    return ResourceSet(
        servers=servers,
        commands=[
            Command(
                name="review",
                description="Review the current diff",
                prompt="Review this code for bugs.",
                allowed_tools=["Read", "Grep"],
            )
        ],
        rules=[
            Rule(name="style", content="Use four spaces."),
            Rule(name="tests", content="Write tests first.", globs=["*.py"]),
        ],
        skills=[
            Skill(
                name="deploy",
                description="Ship it",
                content="Deploy the service.",
                commands=[
                    SkillCommand(
                        name="rollback",
                        description="Undo a deploy",
                        content="Roll back.",
                    )
                ],
            )
        ],
    )
