"""Sync report formatting functions.

Provides human-readable and machine-readable output for sync runs:

- ``format_sync_report`` -- full post-sync summary, one block per tool.
- ``report_to_json`` -- structured dict for ``--json`` style output.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import SyncReport

# ------------------------------------------------------------------
# Human-readable report
# ------------------------------------------------------------------


def format_sync_report(report: SyncReport) -> str:
    """Format a complete sync report as human-readable text.

    Each tool gets an ``OK`` or ``FAILED`` line followed by its per-kind
    results.  Skipped tools are listed at the end.

    Args:
        report: The completed sync report.

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = []

    # Header
    header = "Sync report"
    if report.dry_run:
        header += " (DRY RUN)"
    lines.append(header)
    lines.append(f"Started: {report.started_at}")
    if report.completed_at:
        lines.append(f"Completed: {report.completed_at}")
    lines.append("")

    outcomes = report.tool_outcomes()
    failed_tools = [o for o in outcomes if not o.success]
    verb = "would write" if report.dry_run else "wrote"
    lines.append(
        f"Synced {len(outcomes)} tools: "
        f"{verb} {report.total_changes} entries, "
        f"{len(failed_tools)} tools with errors"
    )
    lines.append("")

    if not outcomes:
        lines.append("No installed tools to sync.")
        lines.append("")

    for outcome in outcomes:
        status = "OK" if outcome.success else "FAILED"
        lines.append(f"{outcome.tool}: {status}")
        for r in report.results:
            if r.tool != outcome.tool:
                continue
            if r.success:
                lines.append(f"  {r.kind.value}: {r.changes}")
            else:
                lines.append(f"  {r.kind.value}: error: {r.error}")
        lines.append("")

    if report.skipped_tools:
        lines.append(f"Skipped: {', '.join(report.skipped_tools)}")
        lines.append("")

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# JSON output
# ------------------------------------------------------------------


def report_to_json(report: SyncReport) -> dict:
    """Convert a sync report to a structured dict for JSON serialisation.

    Args:
        report: The sync report.

    Returns:
        Dict with run info, counts, per-tool outcomes and per-result
        details.
    """
    results_list = []
    for r in report.results:
        entry: dict = {
            "tool": r.tool,
            "kind": r.kind.value,
            "success": r.success,
            "changes": r.changes,
        }
        if r.error:
            entry["error"] = r.error
        results_list.append(entry)

    return {
        "dry_run": report.dry_run,
        "started_at": report.started_at,
        "completed_at": report.completed_at,
        "counts": {
            "total": len(report.results),
            "succeeded": len(report.succeeded),
            "failed": len(report.failed),
            "changes": report.total_changes,
        },
        "tools": [o.model_dump() for o in report.tool_outcomes()],
        "skipped_tools": list(report.skipped_tools),
        "results": results_list,
    }
