"""Project tools: projects and milestones (11 tools)."""

from __future__ import annotations

from typing import Literal

from joan_mcp import JoanError
from joan_mcp.formatters import format_milestones_list, format_projects_list
from joan_mcp.mcp_server._core import (
    _call,
    _contract_error,
    _finalize_tool_result,
    _validate_uuid,
)
from joan_mcp.mcp_server._security import _validate_input

ProjectStatus = Literal["planning", "active", "on_hold", "completed", "archived"]
MilestoneStatus = Literal["upcoming", "in_progress", "completed", "missed"]


def _is_error(result) -> bool:
    return isinstance(result, dict) and result.get("ok") is False


def list_projects(
    status: ProjectStatus | None = None,
    include_members: bool = False,
) -> dict:
    """List projects visible to the authenticated user.

    Returns:
        Dict with projects (list), count, and a human-readable display string.
    """
    result = _call("list_projects", status=status, include_members=include_members or None)
    if _is_error(result):
        return _finalize_tool_result(result)
    return _finalize_tool_result(
        {"projects": result, "count": len(result), "display": format_projects_list(result)}
    )


def get_project(project_id: str) -> dict:
    """Get one project by UUID."""
    try:
        _validate_uuid(project_id, "project_id")
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(_call("get_project", project_id=project_id))


def create_project(
    name: str,
    description: str | None = None,
    status: ProjectStatus | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
) -> dict:
    """Create a project. Dates are ISO (YYYY-MM-DD)."""
    try:
        name = _validate_input(name, "title")
        if description is not None:
            description = _validate_input(description, "description")
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(
        _call(
            "create_project",
            name=name,
            description=description,
            status=status,
            start_date=start_date,
            end_date=end_date,
        )
    )


def update_project(
    project_id: str,
    name: str | None = None,
    description: str | None = None,
    status: ProjectStatus | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
) -> dict:
    """Update project fields; omitted fields are left unchanged."""
    try:
        _validate_uuid(project_id, "project_id")
        if name is not None:
            name = _validate_input(name, "title")
        if description is not None:
            description = _validate_input(description, "description")
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(
        _call(
            "update_project",
            project_id=project_id,
            name=name,
            description=description,
            status=status,
            start_date=start_date,
            end_date=end_date,
        )
    )


def list_milestones(
    project_id: str,
    status: MilestoneStatus | None = None,
) -> dict:
    """List a project's milestones.

    Returns:
        Dict with milestones (list), count, and display text.
    """
    try:
        _validate_uuid(project_id, "project_id")
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    result = _call("list_milestones", project_id=project_id, status=status)
    if _is_error(result):
        return _finalize_tool_result(result)
    return _finalize_tool_result(
        {"milestones": result, "count": len(result), "display": format_milestones_list(result)}
    )


def get_milestone(project_id: str, milestone_id: str) -> dict:
    """Get one milestone of a project."""
    try:
        _validate_uuid(project_id, "project_id")
        _validate_uuid(milestone_id, "milestone_id")
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(
        _call("get_milestone", project_id=project_id, milestone_id=milestone_id)
    )


def create_milestone(
    project_id: str,
    name: str,
    description: str | None = None,
    target_date: str | None = None,
    status: MilestoneStatus | None = None,
) -> dict:
    """Create a milestone in a project. target_date is ISO 8601."""
    try:
        _validate_uuid(project_id, "project_id")
        name = _validate_input(name, "title")
        if description is not None:
            description = _validate_input(description, "description")
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(
        _call(
            "create_milestone",
            project_id=project_id,
            name=name,
            description=description,
            target_date=target_date,
            status=status,
        )
    )


def update_milestone(
    project_id: str,
    milestone_id: str,
    name: str | None = None,
    description: str | None = None,
    target_date: str | None = None,
    status: MilestoneStatus | None = None,
    progress: int | None = None,
) -> dict:
    """Update milestone fields; progress is a percentage (0-100)."""
    try:
        _validate_uuid(project_id, "project_id")
        _validate_uuid(milestone_id, "milestone_id")
        if name is not None:
            name = _validate_input(name, "title")
        if description is not None:
            description = _validate_input(description, "description")
        if progress is not None and not 0 <= progress <= 100:
            raise JoanError("[ERROR] progress must be between 0 and 100")
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(
        _call(
            "update_milestone",
            project_id=project_id,
            milestone_id=milestone_id,
            name=name,
            description=description,
            target_date=target_date,
            status=status,
            progress=progress,
        )
    )


def delete_milestone(project_id: str, milestone_id: str) -> dict:
    """Delete a milestone. Its tasks are kept."""
    try:
        _validate_uuid(project_id, "project_id")
        _validate_uuid(milestone_id, "milestone_id")
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(
        _call("delete_milestone", project_id=project_id, milestone_id=milestone_id)
    )


def link_tasks_to_milestone(project_id: str, milestone_id: str, task_ids: list[str]) -> dict:
    """Link one or more tasks to a milestone."""
    try:
        _validate_uuid(project_id, "project_id")
        _validate_uuid(milestone_id, "milestone_id")
        if not isinstance(task_ids, list) or not task_ids:
            raise JoanError("[ERROR] task_ids must be a non-empty list")
        for task_id in task_ids:
            _validate_uuid(task_id)
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(
        _call(
            "link_tasks_to_milestone",
            project_id=project_id,
            milestone_id=milestone_id,
            task_ids=task_ids,
        )
    )


def unlink_task_from_milestone(project_id: str, milestone_id: str, task_id: str) -> dict:
    """Remove a task from a milestone."""
    try:
        _validate_uuid(project_id, "project_id")
        _validate_uuid(milestone_id, "milestone_id")
        _validate_uuid(task_id)
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(
        _call(
            "unlink_task_from_milestone",
            project_id=project_id,
            milestone_id=milestone_id,
            task_id=task_id,
        )
    )


def register(mcp):
    """Register all project and milestone tools with the FastMCP instance."""
    mcp.tool()(list_projects)
    mcp.tool()(get_project)
    mcp.tool()(create_project)
    mcp.tool()(update_project)
    mcp.tool()(list_milestones)
    mcp.tool()(get_milestone)
    mcp.tool()(create_milestone)
    mcp.tool()(update_milestone)
    mcp.tool()(delete_milestone)
    mcp.tool()(link_tasks_to_milestone)
    mcp.tool()(unlink_task_from_milestone)
