"""Read-only joan:// resources (JSON text)."""

from __future__ import annotations

import json

from joan_mcp.mcp_server._core import _call, _finalize_tool_result


def _dump(result) -> str:
    return json.dumps(_finalize_tool_result(result), indent=2, default=str)


def projects_resource() -> str:
    """All projects."""
    return _dump(_call("list_projects"))


def project_resource(project_id: str) -> str:
    return _dump(_call("get_project", project_id=project_id))


def project_columns_resource(project_id: str) -> str:
    """Kanban columns of a project, board order."""
    return _dump(_call("list_columns", project_id=project_id))


def project_tasks_resource(project_id: str) -> str:
    return _dump(_call("list_tasks", project_id=project_id))


def task_resource(task_id: str) -> str:
    return _dump(_call("get_task", task_id=task_id))


def goals_resource() -> str:
    return _dump(_call("list_goals"))


def notes_resource() -> str:
    return _dump(_call("list_notes"))


RESOURCES = (
    ("joan://projects", projects_resource),
    ("joan://projects/{project_id}", project_resource),
    ("joan://projects/{project_id}/columns", project_columns_resource),
    ("joan://projects/{project_id}/tasks", project_tasks_resource),
    ("joan://tasks/{task_id}", task_resource),
    ("joan://goals", goals_resource),
    ("joan://notes", notes_resource),
)


def register(mcp):
    """Register all resources with the FastMCP instance."""
    for uri, fn in RESOURCES:
        mcp.resource(uri)(fn)
