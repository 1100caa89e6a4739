"""Tests for sync.ownership: inline markers and the ledger strategy."""

from agentctl.sync.models import ResourceType
from agentctl.sync.ownership import (
    MANAGED_MARKER,
    MANAGED_VALUE,
    InlineMarkerStrategy,
    LedgerStrategy,
)
from agentctl.sync.state import SyncState


class TestInlineMarkerStrategy:
    """Tests for InlineMarkerStrategy."""

    def test_tag_adds_marker(self):
        entry = InlineMarkerStrategy().tag({"command": "x"})
        assert entry == {"command": "x", MANAGED_MARKER: MANAGED_VALUE}

    def test_is_managed(self):
        s = InlineMarkerStrategy()
        assert s.is_managed("a", {MANAGED_MARKER: MANAGED_VALUE})
        assert not s.is_managed("a", {MANAGED_MARKER: "someone-else"})
        assert not s.is_managed("a", {"command": "x"})
        assert not s.is_managed("a", "not-a-mapping")

    def test_replace_keeps_user_entries(self):
        section = {
            "mine": {"command": "old", MANAGED_MARKER: MANAGED_VALUE},
            "users": {"command": "theirs"},
        }
        owned = InlineMarkerStrategy().replace(
            section, {"new": {"command": "fresh"}}
        )
        assert owned == ["new"]
        assert section == {
            "users": {"command": "theirs"},
            "new": {"command": "fresh", MANAGED_MARKER: MANAGED_VALUE},
        }

    def test_replace_takes_over_same_name(self):
        """A canonical entry replaces a user entry with the same name."""
        section = {"github": {"command": "hand-written"}}
        InlineMarkerStrategy().replace(section, {"github": {"command": "npx"}})
        assert section["github"] == {
            "command": "npx",
            MANAGED_MARKER: MANAGED_VALUE,
        }

    def test_replace_does_not_mutate_input(self):
        entries = {"a": {"command": "x"}}
        InlineMarkerStrategy().replace({}, entries)
        assert entries == {"a": {"command": "x"}}

    def test_strip_returns_removed(self):
        section = {
            "a": {MANAGED_MARKER: MANAGED_VALUE},
            "b": {},
        }
        assert InlineMarkerStrategy().strip(section) == ["a"]
        assert section == {"b": {}}


class TestLedgerStrategy:
    """Tests for LedgerStrategy."""

    def test_previous_read_from_ledger(self, tmp_path):
        state = SyncState(tmp_path)
        state.update_managed("opencode", ResourceType.MCP, ["a", "b"])
        s = LedgerStrategy(state, "opencode")
        assert s.previous == {"a", "b"}
        assert s.is_managed("a", {})
        assert not s.is_managed("c", {})

    def test_tag_is_schema_pure(self, tmp_path):
        s = LedgerStrategy(SyncState(tmp_path), "opencode")
        assert s.tag({"type": "local"}) == {"type": "local"}

    def test_commit_records_names(self, tmp_path):
        state = SyncState(tmp_path)
        s = LedgerStrategy(state, "claude", ResourceType.COMMANDS)
        s.commit(["review", "ship"])
        assert state.managed_names("claude", ResourceType.COMMANDS) == [
            "review",
            "ship",
        ]
        assert s.previous == {"review", "ship"}

    def test_replace_strips_only_recorded(self, tmp_path):
        state = SyncState(tmp_path)
        state.update_managed("opencode", ResourceType.MCP, ["old"])
        section = {"old": {"type": "local"}, "user": {"type": "remote"}}
        LedgerStrategy(state, "opencode").replace(
            section, {"new": {"type": "local"}}
        )
        assert set(section) == {"user", "new"}
