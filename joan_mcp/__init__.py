"""joan-mcp: MCP adapter for Joan projects, tasks and Kanban columns."""

from joan_mcp.client import JoanClient
from joan_mcp.columns import (
    Column,
    Matched,
    Unmatched,
    find_column_for_status,
    is_done_column,
    match_column_for_status,
    match_status_for_column,
    require_column_for_status,
    resolve_default_column,
)
from joan_mcp.config import VERSION
from joan_mcp.exceptions import ApiError, ColumnInferenceError, JoanError, SetupError
from joan_mcp.telemetry import ColumnSyncEvent, ColumnSynchronizer, ColumnSyncTelemetry

__all__ = [
    "VERSION",
    "JoanClient",
    "JoanError",
    "SetupError",
    "ApiError",
    "ColumnInferenceError",
    "Column",
    "Matched",
    "Unmatched",
    "ColumnSyncEvent",
    "ColumnSyncTelemetry",
    "ColumnSynchronizer",
    "find_column_for_status",
    "require_column_for_status",
    "match_column_for_status",
    "match_status_for_column",
    "is_done_column",
    "resolve_default_column",
]
