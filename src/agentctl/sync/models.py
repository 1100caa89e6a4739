"""Pydantic models for the sync orchestrator.

Defines the data contracts shared by the adapters, engine and reporter:

- ``ResourceType``: The four resource kinds an adapter can carry.
- ``SyncResult``: Outcome of syncing one (tool, kind) pair.
- ``ToolOutcome``: All results for one tool, rolled up.
- ``SyncReport``: Aggregate results for a full sync run.

All models are frozen (immutable) for safety.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class ResourceType(str, Enum):
    """Resource kinds, in the order the engine syncs them."""

    MCP = "mcp"
    COMMANDS = "commands"
    RULES = "rules"
    SKILLS = "skills"


class SyncResult(BaseModel):
    """Result of syncing one resource kind into one tool.

    Attributes:
        tool: Adapter name.
        kind: Resource kind that was synced.
        success: Whether the write (or dry-run plan) succeeded.
        changes: Number of managed entries written (or that would be).
        error: Error message if the operation failed.
    """

    tool: str
    kind: ResourceType
    success: bool
    changes: int = 0
    error: str | None = None

    model_config = {"frozen": True}


class ToolOutcome(BaseModel):
    """Per-tool summary: a tool succeeds only if every kind did.

    Attributes:
        tool: Adapter name.
        success: ``True`` when no kind failed.
        changes: Sum of changes across kinds.
        errors: ``"<kind>: <message>"`` for each failed kind.
    """

    tool: str
    success: bool
    changes: int = 0
    errors: list[str] = []

    model_config = {"frozen": True}


class SyncReport(BaseModel):
    """Aggregate report for a full sync run.

    Attributes:
        dry_run: Whether this was a dry-run (no changes applied).
        results: List of individual sync results.
        skipped_tools: Requested tools that were not detected or unknown.
        started_at: ISO 8601 timestamp when sync started.
        completed_at: ISO 8601 timestamp when sync completed.
    """

    dry_run: bool = False
    results: list[SyncResult] = []
    skipped_tools: list[str] = []
    started_at: str
    completed_at: str | None = None

    model_config = {"frozen": True}

    @property
    def succeeded(self) -> list[SyncResult]:
        """Results that succeeded."""
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> list[SyncResult]:
        """Results that failed."""
        return [r for r in self.results if not r.success]

    @property
    def total_changes(self) -> int:
        """Sum of ``changes`` across successful results."""
        return sum(r.changes for r in self.results if r.success)

    @property
    def tools(self) -> list[str]:
        """Tools that appear in the results, in first-seen order."""
        seen: dict[str, None] = {}
        for r in self.results:
            seen.setdefault(r.tool, None)
        return list(seen)

    def tool_outcomes(self) -> list[ToolOutcome]:
        """Roll the per-kind results up into one outcome per tool."""
        outcomes = []
        for tool in self.tools:
            results = [r for r in self.results if r.tool == tool]
            errors = [
                f"{r.kind.value}: {r.error}"
                for r in results
                if not r.success
            ]
            outcomes.append(
                ToolOutcome(
                    tool=tool,
                    success=not errors,
                    changes=sum(r.changes for r in results if r.success),
                    errors=errors,
                )
            )
        return outcomes

    def summary(self) -> str:
        """Format a human-readable summary of the sync run.

        Returns:
            Multi-line summary string with counts.
        """
        lines = [
            "Sync report" + (" (dry run)" if self.dry_run else ""),
            f"  Tools:    {len(self.tools)}",
            f"  Changes:  {self.total_changes}",
            f"  Failed:   {len(self.failed)}",
            f"  Skipped:  {len(self.skipped_tools)}",
            f"  Total:    {len(self.results)}",
        ]
        return "\n".join(lines)
