"""Text formatting package for joan-mcp tool responses.

Re-exports all public names so consumers can do:
    from joan_mcp.formatters import format_columns_for_display
"""

from joan_mcp.formatters._columns import format_columns_for_display
from joan_mcp.formatters._entities import (
    format_attachments_list,
    format_comments_list,
    format_milestones_list,
    format_projects_list,
    format_tasks_list,
)
from joan_mcp.formatters._table import _sanitize_str, _trunc

__all__ = [
    "format_attachments_list",
    "format_columns_for_display",
    "format_comments_list",
    "format_milestones_list",
    "format_projects_list",
    "format_tasks_list",
    "_sanitize_str",
    "_trunc",
]
