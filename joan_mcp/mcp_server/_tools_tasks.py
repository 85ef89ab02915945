"""Task tools: reads and mutations with column sync (7 tools)."""

from __future__ import annotations

from typing import Literal

from joan_mcp import JoanError
from joan_mcp.formatters import format_tasks_list
from joan_mcp.mcp_server._core import (
    _call,
    _contract_error,
    _finalize_tool_result,
    _validate_uuid,
)
from joan_mcp.mcp_server._security import _validate_input, _validate_status, _validate_tags

TaskStatus = Literal["todo", "in_progress", "done", "cancelled"]
Priority = Literal["none", "low", "medium", "high"]


def list_tasks(
    project_id: str | None = None,
    status: TaskStatus | None = None,
    limit: int | None = None,
) -> dict:
    """List tasks, optionally for one project and/or one status.

    Returns:
        Dict with tasks (list), count, and display text.
    """
    try:
        if project_id is not None:
            _validate_uuid(project_id, "project_id")
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    result = _call("list_tasks", project_id=project_id, status=status, limit=limit)
    if isinstance(result, dict) and result.get("ok") is False:
        return _finalize_tool_result(result)
    return _finalize_tool_result(
        {"tasks": result, "count": len(result), "display": format_tasks_list(result)}
    )


def get_task(task_id: str, include_subtasks: bool = True) -> dict:
    """Get a task by UUID, with subtasks unless include_subtasks=False."""
    try:
        _validate_uuid(task_id)
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(
        _call("get_task", task_id=task_id, include_subtasks=include_subtasks)
    )


def create_task(
    title: str,
    description: str | None = None,
    project_id: str | None = None,
    column_id: str | None = None,
    status: str | None = None,
    priority: Priority | None = None,
    due_date: str | None = None,
    estimated_pomodoros: int | None = None,
    assignee_id: str | None = None,
    tags: list[str] | None = None,
    sync_column: bool = True,
) -> dict:
    """Create a task. In a project, status and Kanban column are kept in step.

    Args:
        title: Task title (max 500 chars).
        status: Places the task in the matching column when column_id is omitted.
            Only todo, in_progress, done and cancelled are stored on the task;
            board states such as review only pick the column.
        column_id: Sets the status from the column name when status is omitted.
        due_date: ISO date (YYYY-MM-DD).
        estimated_pomodoros: Estimate in 25-minute pomodoros.
        sync_column: False to skip status/column inference.

    Returns:
        Dict with ok, task, sync direction (or None), column_id and status.
    """
    try:
        title = _validate_input(title, "title")
        if description is not None:
            description = _validate_input(description, "description")
        if status is not None:
            status = _validate_status(status)
        tags = _validate_tags(tags)
        for value, field in (
            (project_id, "project_id"),
            (column_id, "column_id"),
            (assignee_id, "assignee_id"),
        ):
            if value is not None:
                _validate_uuid(value, field)
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(
        _call(
            "create_task",
            title=title,
            description=description,
            project_id=project_id,
            column_id=column_id,
            status=status,
            priority=priority,
            due_date=due_date,
            estimated_pomodoros=estimated_pomodoros,
            assignee_id=assignee_id,
            tags=tags,
            sync_column=sync_column,
        )
    )


def update_task(
    task_id: str,
    title: str | None = None,
    description: str | None = None,
    column_id: str | None = None,
    status: str | None = None,
    priority: Priority | None = None,
    due_date: str | None = None,
    estimated_pomodoros: int | None = None,
    assignee_id: str | None = None,
    tags: list[str] | None = None,
    sync_column: bool = True,
) -> dict:
    """Update a task. Changing only status moves it to the matching column;
    changing only column_id updates its status.

    Returns:
        Dict with ok, task, sync direction (or None), and the fields sent.
    """
    try:
        _validate_uuid(task_id)
        if title is not None:
            title = _validate_input(title, "title")
        if description is not None:
            description = _validate_input(description, "description")
        if status is not None:
            status = _validate_status(status)
        tags = _validate_tags(tags)
        for value, field in ((column_id, "column_id"), (assignee_id, "assignee_id")):
            if value is not None:
                _validate_uuid(value, field)
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(
        _call(
            "update_task",
            task_id=task_id,
            title=title,
            description=description,
            column_id=column_id,
            status=status,
            priority=priority,
            due_date=due_date,
            estimated_pomodoros=estimated_pomodoros,
            assignee_id=assignee_id,
            tags=tags,
            sync_column=sync_column,
        )
    )


def complete_task(task_id: str, sync_column: bool = True) -> dict:
    """Mark a task done and move it to its project's Done column.

    A board with columns but no recognizable Done column returns a
    'column_inference' error listing the expected and available names.
    """
    try:
        _validate_uuid(task_id)
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(_call("complete_task", task_id=task_id, sync_column=sync_column))


def delete_task(task_id: str) -> dict:
    """Delete a task permanently."""
    try:
        _validate_uuid(task_id)
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(_call("delete_task", task_id=task_id))


def bulk_update_tasks(updates: list[dict]) -> dict:
    """Move or re-status up to 100 tasks in one call.

    Args:
        updates: List of {task_id, column_id?, status?}. The side left out is
            inferred per task.

    Returns:
        Dict with ok, updated count, and per_task results.
    """
    try:
        if not isinstance(updates, list) or not updates:
            raise JoanError("[ERROR] updates must be a non-empty list")
        clean = []
        for item in updates:
            if not isinstance(item, dict):
                raise JoanError("[ERROR] each update must be an object")
            entry = {"task_id": _validate_uuid(item.get("task_id"))}
            if item.get("column_id") is not None:
                entry["column_id"] = _validate_uuid(item["column_id"], "column_id")
            if item.get("status") is not None:
                entry["status"] = _validate_status(item["status"])
            clean.append(entry)
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(_call("bulk_update_tasks", updates=clean))


def register(mcp):
    """Register all task tools with the FastMCP instance."""
    mcp.tool()(list_tasks)
    mcp.tool()(get_task)
    mcp.tool()(create_task)
    mcp.tool()(update_task)
    mcp.tool()(complete_task)
    mcp.tool()(delete_task)
    mcp.tool()(bulk_update_tasks)
