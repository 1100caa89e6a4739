"""Tests for sync.engine: orchestration across installed tools.

Covers:
- Only detected tools are synced; tool filters and skipped names
- One result per (tool, kind) with something to do
- Failure in one pair does not stop the others
- Dry run validates and counts without touching disk
- Clearing a kind that was managed before
"""

import json

import pytest

from agentctl.resources import Command, ResourceSet
from agentctl.sync.engine import SyncEngine, resources_of_kind
from agentctl.sync.models import ResourceType


@pytest.fixture
def installed(home):
    """Install Claude Code and Cursor in the fake home."""
    (home / ".claude").mkdir()
    (home / ".cursor").mkdir()
    return home


def _pairs(report) -> set[tuple[str, str]]:
    return {(r.tool, r.kind.value) for r in report.results}


class TestResourcesOfKind:
    def test_maps_every_kind(self, resources):
        assert resources_of_kind(resources, ResourceType.MCP) is resources.servers
        assert resources_of_kind(resources, ResourceType.SKILLS) is resources.skills


class TestSyncEngineRun:
    """Tests for SyncEngine.run()."""

    def test_nothing_installed(self, registry, resources):
        report = SyncEngine(registry).run(resources)
        assert report.results == []
        assert report.skipped_tools == []
        assert report.completed_at is not None

    def test_syncs_every_supported_kind(self, registry, resources, installed):
        report = SyncEngine(registry).run(resources)
        assert _pairs(report) == {
            ("claude", "mcp"),
            ("claude", "commands"),
            ("claude", "rules"),
            ("claude", "skills"),
            ("cursor", "mcp"),
            ("cursor", "commands"),
            ("cursor", "rules"),
        }
        assert report.failed == []
        assert (installed / ".claude" / "skills" / "deploy" / "SKILL.md").exists()
        assert (installed / ".cursor" / "rules" / "style.mdc").exists()

    def test_change_counts(self, registry, resources, installed):
        report = SyncEngine(registry).run(resources)
        by_pair = {(r.tool, r.kind.value): r.changes for r in report.results}
        assert by_pair[("claude", "mcp")] == 3
        assert by_pair[("claude", "rules")] == 2
        assert by_pair[("cursor", "commands")] == 1

    def test_empty_kind_without_history_skipped(self, registry, installed):
        report = SyncEngine(registry).run(
            ResourceSet(commands=[Command(name="a", prompt="A")])
        )
        assert _pairs(report) == {("claude", "commands"), ("cursor", "commands")}

    def test_empty_kind_with_history_cleared(self, registry, installed):
        engine = SyncEngine(registry)
        engine.run(ResourceSet(commands=[Command(name="a", prompt="A")]))
        report = engine.run(ResourceSet())
        assert _pairs(report) == {("claude", "commands"), ("cursor", "commands")}
        assert all(r.changes == 0 for r in report.results)
        assert not (installed / ".claude" / "commands" / "a.md").exists()

    def test_tools_filter(self, registry, resources, installed):
        report = SyncEngine(registry).run(
            resources, tools=["cursor", "zed", "nonexistent"]
        )
        assert {r.tool for r in report.results} == {"cursor"}
        assert report.skipped_tools == ["nonexistent", "zed"]
        assert not (installed / ".claude.json").exists()

    def test_unknown_tool_warned(self, registry, resources, caplog):
        SyncEngine(registry).run(resources, tools=["nonexistent"])
        assert "Skipping unknown tool nonexistent" in caplog.text


class TestFailureIsolation:
    """A failure in one (tool, kind) is recorded and the run continues."""

    def test_malformed_document_isolated(self, registry, resources, installed):
        bad = installed / ".claude.json"
        bad.write_text("{broken")

        report = SyncEngine(registry).run(resources)

        [failure] = report.failed
        assert (failure.tool, failure.kind) == ("claude", ResourceType.MCP)
        assert "cannot parse" in failure.error
        assert bad.read_text() == "{broken"
        assert ("claude", "commands") in {
            (r.tool, r.kind.value) for r in report.succeeded
        }
        assert json.loads((installed / ".cursor" / "mcp.json").read_text())

    def test_unexpected_exception_isolated(
        self, registry, resources, installed, monkeypatch
    ):
        claude = registry.get("claude")

        def boom(kind, items):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(claude, "write", boom)
        report = SyncEngine(registry).run(resources)

        assert {r.tool for r in report.failed} == {"claude"}
        assert len(report.failed) == 4
        assert all(r.error == "disk on fire" for r in report.failed)
        assert all(r.success for r in report.results if r.tool == "cursor")

    def test_invalid_name_fails_only_that_kind(self, registry, installed):
        resources = ResourceSet(commands=[Command(name="bad name", prompt="x")])
        report = SyncEngine(registry).run(resources)
        assert {r.tool for r in report.failed} == {"claude", "cursor"}
        assert all("invalid resource name" in r.error for r in report.failed)
        assert not (installed / ".claude" / "commands").exists()


class TestDryRun:
    def test_nothing_written(self, registry, resources, installed, state):
        report = SyncEngine(registry, dry_run=True).run(resources)
        assert report.dry_run
        assert report.failed == []
        assert report.total_changes > 0
        assert not (installed / ".claude.json").exists()
        assert not (installed / ".claude" / "commands").exists()
        assert not (installed / ".cursor" / "rules").exists()
        assert not state.path.exists()

    def test_counts_match_real_run(self, registry, resources, installed):
        planned = SyncEngine(registry, dry_run=True).run(resources)
        actual = SyncEngine(registry).run(resources)
        assert [(r.tool, r.kind, r.changes) for r in planned.results] == [
            (r.tool, r.kind, r.changes) for r in actual.results
        ]

    def test_invalid_name_reported(self, registry, installed):
        resources = ResourceSet(commands=[Command(name="../x", prompt="x")])
        report = SyncEngine(registry, dry_run=True).run(resources)
        assert len(report.failed) == 2
