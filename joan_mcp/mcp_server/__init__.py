"""MCP server exposing JoanClient methods as tools and resources.

Package structure:
  __init__.py         : FastMCP init, register() calls, re-exports
  __main__.py         : ``python -m joan_mcp.mcp_server`` entry point
  _core.py            : Client caching, _call dispatcher, response contract, UUID validation
  _security.py        : Input validation
  _tools_projects.py  : 11 project/milestone tools
  _tools_columns.py   : 5 Kanban column tools (list, create, update, delete, reorder)
  _tools_tasks.py     : 7 task tools (column sync on create/update/complete/bulk)
  _tools_content.py   : 22 goal/note/comment/tag/attachment tools
  _tools_telemetry.py : 3 column sync diagnostics tools
  _resources.py       : joan:// resources

Run: python -m joan_mcp.mcp_server
Requires: python -m pip install .[mcp]
"""

from __future__ import annotations

from mcp.server.fastmcp import FastMCP

from joan_mcp.config import configure_logging
from joan_mcp.mcp_server import (
    _resources,
    _tools_columns,
    _tools_content,
    _tools_projects,
    _tools_tasks,
    _tools_telemetry,
)

mcp = FastMCP(
    "joan",
    instructions=(
        "Joan productivity tools: projects, Kanban columns, tasks, milestones, goals, notes. "
        "All IDs must be full 36-char UUIDs. "
        "Task status and Kanban column are kept in step: set one and the other "
        "is inferred from the column names (see get_status_aliases). "
        "Tasks store only todo, in_progress, done or cancelled; board states such as "
        "review or blocked select a column but are not written to the task. "
        "complete_task moves the task to the Done column and reports a "
        "'column_inference' error if the board has none. "
        "Use get_column_sync_failures to diagnose boards whose columns are not recognized."
    ),
)

for _mod in [
    _tools_projects,
    _tools_columns,
    _tools_tasks,
    _tools_content,
    _tools_telemetry,
    _resources,
]:
    _mod.register(mcp)

# ---------------------------------------------------------------------------
# Re-exports (tests import via mcp_mod.xxx)
# ---------------------------------------------------------------------------

# _core
from joan_mcp.mcp_server._core import (  # noqa: E402, F401
    MCP_RESPONSE_MODE,
    _call,
    _client,
    _contract_error,
    _ensure_contract_dict,
    _finalize_tool_result,
    _get_client,
    _validate_uuid,
)

# _security
from joan_mcp.mcp_server._security import (  # noqa: E402, F401
    _validate_color,
    _validate_column_name,
    _validate_input,
    _validate_status,
    _validate_tags,
)

# _tools_columns
from joan_mcp.mcp_server._tools_columns import (  # noqa: E402, F401
    create_column,
    delete_column,
    list_columns,
    reorder_columns,
    update_column,
)

# _tools_content
from joan_mcp.mcp_server._tools_content import (  # noqa: E402, F401
    add_tag_to_task,
    create_goal,
    create_note,
    create_task_comment,
    delete_goal,
    delete_note,
    delete_task_comment,
    get_goal,
    get_note,
    link_task_to_goal,
    list_attachments,
    list_goals,
    list_notes,
    list_project_tags,
    list_task_comments,
    list_task_tags,
    remove_tag_from_task,
    set_task_tags,
    unlink_task_from_goal,
    update_goal,
    update_note,
    update_task_comment,
)

# _tools_projects
from joan_mcp.mcp_server._tools_projects import (  # noqa: E402, F401
    create_milestone,
    create_project,
    delete_milestone,
    get_milestone,
    get_project,
    link_tasks_to_milestone,
    list_milestones,
    list_projects,
    unlink_task_from_milestone,
    update_milestone,
    update_project,
)

# _tools_tasks
from joan_mcp.mcp_server._tools_tasks import (  # noqa: E402, F401
    bulk_update_tasks,
    complete_task,
    create_task,
    delete_task,
    get_task,
    list_tasks,
    update_task,
)

# _tools_telemetry
from joan_mcp.mcp_server._tools_telemetry import (  # noqa: E402, F401
    get_column_sync_failures,
    get_column_sync_metrics,
    get_status_aliases,
)


def main():
    """Run the MCP server (stdio transport)."""
    configure_logging()
    mcp.run()
