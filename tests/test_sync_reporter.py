"""Tests for sync.models and sync.reporter: report rollups and output."""

import json

from agentctl.sync.models import ResourceType, SyncReport, SyncResult
from agentctl.sync.reporter import format_sync_report, report_to_json


def _report(dry_run: bool = False) -> SyncReport:
    return SyncReport(
        dry_run=dry_run,
        results=[
            SyncResult(tool="claude", kind=ResourceType.MCP, success=True, changes=3),
            SyncResult(
                tool="claude",
                kind=ResourceType.COMMANDS,
                success=False,
                error="invalid resource name 'a b'",
            ),
            SyncResult(tool="cursor", kind=ResourceType.MCP, success=True, changes=2),
        ],
        skipped_tools=["zed"],
        started_at="2026-01-01T00:00:00+00:00",
        completed_at="2026-01-01T00:00:01+00:00",
    )


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class TestSyncReport:
    """Tests for SyncReport properties."""

    def test_counts(self):
        report = _report()
        assert len(report.succeeded) == 2
        assert len(report.failed) == 1
        assert report.total_changes == 5
        assert report.tools == ["claude", "cursor"]

    def test_tool_outcomes(self):
        claude, cursor = _report().tool_outcomes()
        assert claude.tool == "claude"
        assert not claude.success
        assert claude.changes == 3
        assert claude.errors == ["commands: invalid resource name 'a b'"]
        assert cursor.success
        assert cursor.errors == []

    def test_summary(self):
        summary = _report(dry_run=True).summary()
        assert summary.splitlines()[0] == "Sync report (dry run)"
        assert "Changes:  5" in summary
        assert "Failed:   1" in summary
        assert "Skipped:  1" in summary

    def test_empty_report(self):
        report = SyncReport(started_at="now")
        assert report.total_changes == 0
        assert report.tool_outcomes() == []


# ---------------------------------------------------------------------------
# Text output
# ---------------------------------------------------------------------------


class TestFormatSyncReport:
    """Tests for format_sync_report()."""

    def test_full_report(self):
        text = format_sync_report(_report())
        assert text.splitlines()[0] == "Sync report"
        assert "Synced 2 tools: wrote 5 entries, 1 tools with errors" in text
        assert "claude: FAILED" in text
        assert "  mcp: 3" in text
        assert "  commands: error: invalid resource name 'a b'" in text
        assert "cursor: OK" in text
        assert text.endswith("Skipped: zed")

    def test_dry_run_wording(self):
        text = format_sync_report(_report(dry_run=True))
        assert text.startswith("Sync report (DRY RUN)")
        assert "would write 5 entries" in text

    def test_nothing_to_sync(self):
        text = format_sync_report(SyncReport(started_at="now"))
        assert "No installed tools to sync." in text
        assert "Completed" not in text


# ---------------------------------------------------------------------------
# JSON output
# ---------------------------------------------------------------------------


class TestReportToJson:
    """Tests for report_to_json()."""

    def test_structure(self):
        data = report_to_json(_report())
        assert data["counts"] == {
            "total": 3,
            "succeeded": 2,
            "failed": 1,
            "changes": 5,
        }
        assert data["skipped_tools"] == ["zed"]
        assert data["results"][0] == {
            "tool": "claude",
            "kind": "mcp",
            "success": True,
            "changes": 3,
        }
        assert data["results"][1]["error"] == "invalid resource name 'a b'"
        assert data["tools"][0]["tool"] == "claude"
        assert data["tools"][0]["success"] is False

    def test_serialisable(self):
        json.dumps(report_to_json(_report()))
