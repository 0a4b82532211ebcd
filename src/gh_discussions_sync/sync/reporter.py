"""Sync outcome and report formatting functions.

Provides human-readable and machine-readable output:

- ``format_outcome`` -- one-line summary of a single operation.
- ``format_sync_report`` -- full summary of a bulk pull.
- ``outcome_to_json`` / ``report_to_json`` -- structured dicts for MCP
  tool output.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import SyncOutcome, SyncReport

from .models import SyncAction

_ACTION_TEXT = {
    SyncAction.CREATE_LOCAL: "created local file",
    SyncAction.UPDATE_LOCAL: "updated local file",
    SyncAction.KEEP_LOCAL: "kept local version",
    SyncAction.PUSH: "pushed to GitHub",
    SyncAction.CANCELLED: "push cancelled",
    SyncAction.REPAIR: "repaired metadata",
    SyncAction.CREATE_REMOTE: "created on GitHub",
    SyncAction.COMMENT: "comment added",
    SyncAction.SKIP: "skipped",
}

# ------------------------------------------------------------------
# Human-readable output
# ------------------------------------------------------------------


def format_outcome(outcome: SyncOutcome) -> str:
    """Format a single outcome as one line of text."""
    if not outcome.success:
        return f"#{outcome.number}: failed ({outcome.error or 'unknown error'})"
    line = f"#{outcome.number}: {_ACTION_TEXT[outcome.action]}"
    if outcome.path and outcome.applied:
        line += f" -> {outcome.path}"
    return line


def format_sync_report(report: SyncReport) -> str:
    """Format a bulk pull report as human-readable text.

    Sections are only included when they contain at least one outcome.

    Args:
        report: The completed report.

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = []

    lines.append("Pull report")
    lines.append(f"Started: {report.started_at}")
    if report.completed_at:
        lines.append(f"Completed: {report.completed_at}")
    lines.append("")

    lines.append(
        f"Synced {len(report.outcomes)} of {report.total_count} discussions: "
        f"{len(report.created)} created, {len(report.updated)} updated, "
        f"{len(report.kept)} kept, {len(report.errors)} errors"
    )
    lines.append("")

    if report.created:
        lines.append("Created:")
        for o in report.created:
            lines.append(f"  #{o.number} -> {o.path}")
        lines.append("")

    if report.updated:
        lines.append("Updated:")
        for o in report.updated:
            lines.append(f"  #{o.number} -> {o.path}")
        lines.append("")

    if report.kept:
        lines.append("Kept local (remote newer):")
        for o in report.kept:
            lines.append(f"  #{o.number}")
        lines.append("")

    if report.errors:
        lines.append("Errors:")
        for o in report.errors:
            lines.append(f"  #{o.number}: {o.error}")
        lines.append("")

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# JSON output
# ------------------------------------------------------------------


def outcome_to_json(outcome: SyncOutcome) -> dict:
    """Convert one outcome to a dict for MCP ``structuredContent``."""
    entry: dict = {
        "number": outcome.number,
        "action": outcome.action.value,
        "success": outcome.success,
        "applied": outcome.applied,
    }
    if outcome.path:
        entry["path"] = outcome.path
    if outcome.error:
        entry["error"] = outcome.error
    return entry


def report_to_json(report: SyncReport) -> dict:
    """Convert a bulk pull report to a structured dict.

    Returns:
        Dict with timestamps, counts, and per-outcome details.
    """
    return {
        "started_at": report.started_at,
        "completed_at": report.completed_at,
        "counts": {
            "total": report.total_count,
            "created": len(report.created),
            "updated": len(report.updated),
            "kept": len(report.kept),
            "errors": len(report.errors),
        },
        "outcomes": [outcome_to_json(o) for o in report.outcomes],
    }
