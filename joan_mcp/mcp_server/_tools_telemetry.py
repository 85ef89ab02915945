"""Column sync diagnostics (3 tools)."""

from __future__ import annotations

from typing import Literal

from joan_mcp.mcp_server._core import _call, _finalize_tool_result


def get_column_sync_metrics(recent_failures: int = 10) -> dict:
    """Column sync health since the server started.

    Returns:
        Dict with total_events, failures, inferred_syncs, failure_rate,
        success_rate and the most recent failure events.
    """
    return _finalize_tool_result(_call("column_sync_metrics", recent=recent_failures))


def get_column_sync_failures(
    operation: Literal["create", "update", "complete", "bulk_update"] | None = None,
) -> dict:
    """Every failed status/column inference, optionally for one operation.

    A failure usually means a project board has no column named like the
    status (see get_status_aliases for the recognized names).
    """
    return _finalize_tool_result(_call("column_sync_failures", operation=operation))


def get_status_aliases() -> dict:
    """Column names recognized for each task status."""
    return _finalize_tool_result(_call("status_aliases"))


def register(mcp):
    """Register all telemetry tools with the FastMCP instance."""
    mcp.tool()(get_column_sync_metrics)
    mcp.tool()(get_column_sync_failures)
    mcp.tool()(get_status_aliases)
