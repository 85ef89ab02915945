"""Kanban column display."""

from joan_mcp.columns import sort_by_position
from joan_mcp.formatters._table import _listing


def _column_line(col):
    line = f"- {col.name} (ID: {col.id})"
    if col.is_default:
        line += " [default]"
    if col.wip_limit:
        line += f" [WIP: {col.wip_limit}]"
    return line


def format_columns_for_display(columns):
    """Render columns sorted by position, flagging the default and WIP limits.

    Accepts Column objects (see joan_mcp.columns.Column).
    """
    return _listing("column", sort_by_position(columns), _column_line)
