"""Content tools: goals, notes, comments, tags, attachments (22 tools)."""

from __future__ import annotations

from typing import Literal

from joan_mcp import JoanError
from joan_mcp.config import VALID_ENTITY_TYPES
from joan_mcp.formatters import format_attachments_list, format_comments_list
from joan_mcp.mcp_server._core import (
    _call,
    _contract_error,
    _finalize_tool_result,
    _validate_uuid,
)
from joan_mcp.mcp_server._security import _validate_input, _validate_tags

GoalType = Literal["daily", "weekly", "monthly", "yearly", "standard"]
GoalStatus = Literal["active", "paused", "completed", "archived"]


def _listed(key: str, result, display=None) -> dict:
    if isinstance(result, dict) and result.get("ok") is False:
        return _finalize_tool_result(result)
    payload = {key: result, "count": len(result)}
    if display is not None:
        payload["display"] = display(result)
    return _finalize_tool_result(payload)


# -------------------------------------------------------------------
# Goals
# -------------------------------------------------------------------


def list_goals(status: GoalStatus | None = None) -> dict:
    """List goals."""
    return _listed("goals", _call("list_goals", status=status))


def get_goal(goal_id: str, include_stats: bool = False) -> dict:
    """Get a goal, optionally with its task completion stats."""
    try:
        _validate_uuid(goal_id, "goal_id")
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(_call("get_goal", goal_id=goal_id, include_stats=include_stats))


# -------------------------------------------------------------------
# Notes
# -------------------------------------------------------------------


def list_notes(tag: str | None = None, limit: int | None = None) -> dict:
    """List notes, optionally filtered by tag."""
    return _listed("notes", _call("list_notes", tag=tag, limit=limit))


def get_note(note_id: str) -> dict:
    """Get a note with its content."""
    try:
        _validate_uuid(note_id, "note_id")
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(_call("get_note", note_id=note_id))


def create_note(title: str, content: str | None = None, tags: list[str] | None = None) -> dict:
    """Create a note (content is markdown)."""
    try:
        title = _validate_input(title, "title")
        if content is not None:
            content = _validate_input(content, "content")
        tags = _validate_tags(tags)
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(_call("create_note", title=title, content=content, tags=tags))


# -------------------------------------------------------------------
# Comments, tags, attachments
# -------------------------------------------------------------------


def list_task_comments(task_id: str) -> dict:
    """List the comments on a task, oldest first."""
    try:
        _validate_uuid(task_id)
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _listed(
        "comments", _call("list_task_comments", task_id=task_id), format_comments_list
    )


def create_task_comment(task_id: str, content: str) -> dict:
    """Add a comment to a task (max 10000 chars)."""
    try:
        _validate_uuid(task_id)
        content = _validate_input(content, "comment")
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(_call("create_task_comment", task_id=task_id, content=content))


def list_project_tags(project_id: str) -> dict:
    """List the tags defined in a project."""
    try:
        _validate_uuid(project_id, "project_id")
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _listed("tags", _call("list_project_tags", project_id=project_id))


def list_task_tags(project_id: str, task_id: str) -> dict:
    """List the tags attached to one task."""
    try:
        _validate_uuid(project_id, "project_id")
        _validate_uuid(task_id)
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _listed("tags", _call("list_task_tags", project_id=project_id, task_id=task_id))


def list_attachments(
    entity_type: Literal["project", "milestone", "task", "note", "folder", "user"],
    entity_id: str,
) -> dict:
    """List files attached to a project, milestone, task, note, folder or user."""
    try:
        if entity_type not in VALID_ENTITY_TYPES:
            raise JoanError(
                f"[ERROR] entity_type must be one of: {', '.join(sorted(VALID_ENTITY_TYPES))}"
            )
        _validate_uuid(entity_id, "entity_id")
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _listed(
        "attachments",
        _call("list_attachments", entity_type=entity_type, entity_id=entity_id),
        format_attachments_list,
    )


# -------------------------------------------------------------------
# Goal writes
# -------------------------------------------------------------------


def create_goal(
    title: str,
    description: str | None = None,
    goal_type: GoalType | None = None,
    target_date: str | None = None,
) -> dict:
    """Create a goal. target_date is ISO 8601."""
    try:
        title = _validate_input(title, "title")
        if description is not None:
            description = _validate_input(description, "description")
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(
        _call(
            "create_goal",
            title=title,
            description=description,
            goal_type=goal_type,
            target_date=target_date,
        )
    )


def update_goal(
    goal_id: str,
    title: str | None = None,
    description: str | None = None,
    status: GoalStatus | None = None,
    target_date: str | None = None,
    progress: int | None = None,
) -> dict:
    """Update goal fields; progress is a percentage (0-100)."""
    try:
        _validate_uuid(goal_id, "goal_id")
        if title is not None:
            title = _validate_input(title, "title")
        if description is not None:
            description = _validate_input(description, "description")
        if progress is not None and not 0 <= progress <= 100:
            raise JoanError("[ERROR] progress must be between 0 and 100")
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(
        _call(
            "update_goal",
            goal_id=goal_id,
            title=title,
            description=description,
            status=status,
            target_date=target_date,
            progress=progress,
        )
    )


def delete_goal(goal_id: str) -> dict:
    """Delete a goal. Linked tasks are kept."""
    try:
        _validate_uuid(goal_id, "goal_id")
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(_call("delete_goal", goal_id=goal_id))


def link_task_to_goal(goal_id: str, task_id: str) -> dict:
    """Link a task to a goal so it counts toward the goal's progress."""
    try:
        _validate_uuid(goal_id, "goal_id")
        _validate_uuid(task_id)
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(_call("link_task_to_goal", goal_id=goal_id, task_id=task_id))


def unlink_task_from_goal(goal_id: str, task_id: str) -> dict:
    try:
        _validate_uuid(goal_id, "goal_id")
        _validate_uuid(task_id)
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(
        _call("unlink_task_from_goal", goal_id=goal_id, task_id=task_id)
    )


# -------------------------------------------------------------------
# Note, comment and tag writes
# -------------------------------------------------------------------


def update_note(
    note_id: str,
    title: str | None = None,
    content: str | None = None,
    tags: list[str] | None = None,
    is_pinned: bool | None = None,
    is_archived: bool | None = None,
) -> dict:
    """Update a note; omitted fields are left unchanged."""
    try:
        _validate_uuid(note_id, "note_id")
        if title is not None:
            title = _validate_input(title, "title")
        if content is not None:
            content = _validate_input(content, "content")
        tags = _validate_tags(tags)
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(
        _call(
            "update_note",
            note_id=note_id,
            title=title,
            content=content,
            tags=tags,
            is_pinned=is_pinned,
            is_archived=is_archived,
        )
    )


def delete_note(note_id: str) -> dict:
    """Delete a note permanently."""
    try:
        _validate_uuid(note_id, "note_id")
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(_call("delete_note", note_id=note_id))


def update_task_comment(task_id: str, comment_id: str, content: str) -> dict:
    """Replace the text of a task comment (max 10000 chars)."""
    try:
        _validate_uuid(task_id)
        _validate_uuid(comment_id, "comment_id")
        content = _validate_input(content, "comment")
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(
        _call("update_task_comment", task_id=task_id, comment_id=comment_id, content=content)
    )


def delete_task_comment(task_id: str, comment_id: str) -> dict:
    try:
        _validate_uuid(task_id)
        _validate_uuid(comment_id, "comment_id")
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(
        _call("delete_task_comment", task_id=task_id, comment_id=comment_id)
    )


def add_tag_to_task(project_id: str, task_id: str, tag_id: str) -> dict:
    """Attach one project tag to a task."""
    try:
        _validate_uuid(project_id, "project_id")
        _validate_uuid(task_id)
        _validate_uuid(tag_id, "tag_id")
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(
        _call("add_tag_to_task", project_id=project_id, task_id=task_id, tag_id=tag_id)
    )


def remove_tag_from_task(project_id: str, task_id: str, tag_id: str) -> dict:
    """Detach one tag from a task."""
    try:
        _validate_uuid(project_id, "project_id")
        _validate_uuid(task_id)
        _validate_uuid(tag_id, "tag_id")
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(
        _call("remove_tag_from_task", project_id=project_id, task_id=task_id, tag_id=tag_id)
    )


def set_task_tags(project_id: str, task_id: str, tag_ids: list[str]) -> dict:
    """Replace all tags on a task. An empty list removes every tag."""
    try:
        _validate_uuid(project_id, "project_id")
        _validate_uuid(task_id)
        if not isinstance(tag_ids, list):
            raise JoanError("[ERROR] tag_ids must be a list of tag UUIDs")
        for tag_id in tag_ids:
            _validate_uuid(tag_id, "tag_id")
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(
        _call("set_task_tags", project_id=project_id, task_id=task_id, tag_ids=tag_ids)
    )


def register(mcp):
    """Register all content tools with the FastMCP instance."""
    mcp.tool()(list_goals)
    mcp.tool()(get_goal)
    mcp.tool()(create_goal)
    mcp.tool()(update_goal)
    mcp.tool()(delete_goal)
    mcp.tool()(link_task_to_goal)
    mcp.tool()(unlink_task_from_goal)
    mcp.tool()(list_notes)
    mcp.tool()(get_note)
    mcp.tool()(create_note)
    mcp.tool()(update_note)
    mcp.tool()(delete_note)
    mcp.tool()(list_task_comments)
    mcp.tool()(create_task_comment)
    mcp.tool()(update_task_comment)
    mcp.tool()(delete_task_comment)
    mcp.tool()(list_project_tags)
    mcp.tool()(list_task_tags)
    mcp.tool()(add_tag_to_task)
    mcp.tool()(remove_tag_from_task)
    mcp.tool()(set_task_tags)
    mcp.tool()(list_attachments)
