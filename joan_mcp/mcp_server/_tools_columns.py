"""Kanban board tools: list, create, update, delete, reorder columns (5 tools)."""

from __future__ import annotations

from joan_mcp import JoanError
from joan_mcp.mcp_server._core import (
    _call,
    _contract_error,
    _finalize_tool_result,
    _validate_uuid,
)
from joan_mcp.mcp_server._security import _validate_color, _validate_column_name


def list_columns(project_id: str) -> dict:
    """List a project's Kanban columns in board order.

    Returns:
        Dict with columns (list), default_column_id, and display text marking
        the default column and WIP limits.
    """
    try:
        _validate_uuid(project_id, "project_id")
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(_call("list_columns", project_id=project_id))


def create_column(
    project_id: str,
    name: str,
    position: int | None = None,
    default_status: str | None = None,
    color: str | None = None,
) -> dict:
    """Create a Kanban column. Names must be unique within the project.

    Args:
        name: Display name (1-50 chars). Names like "In Progress" or "QA"
            are what status/column sync recognizes (see get_status_aliases).
        position: 0-indexed insert position; omit to append at the end.
        color: Hex code such as "#3B82F6".

    Returns:
        Dict with the created column and the status its name maps to (or None).
    """
    try:
        _validate_uuid(project_id, "project_id")
        name = _validate_column_name(name)
        color = _validate_color(color)
        if position is not None and position < 0:
            raise JoanError("[ERROR] position must be 0 or greater")
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(
        _call(
            "create_column",
            project_id=project_id,
            name=name,
            position=position,
            default_status=default_status,
            color=color,
        )
    )


def update_column(
    project_id: str,
    column_id: str,
    name: str | None = None,
    default_status: str | None = None,
    color: str | None = None,
) -> dict:
    """Rename or recolor a column. Use reorder_columns to move it."""
    try:
        _validate_uuid(project_id, "project_id")
        _validate_uuid(column_id, "column_id")
        if name is not None:
            name = _validate_column_name(name)
        color = _validate_color(color)
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(
        _call(
            "update_column",
            project_id=project_id,
            column_id=column_id,
            name=name,
            default_status=default_status,
            color=color,
        )
    )


def delete_column(project_id: str, column_id: str, move_tasks_to: str | None = None) -> dict:
    """Delete a column. A column that still holds tasks needs move_tasks_to."""
    try:
        _validate_uuid(project_id, "project_id")
        _validate_uuid(column_id, "column_id")
        if move_tasks_to is not None:
            _validate_uuid(move_tasks_to, "move_tasks_to")
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(
        _call(
            "delete_column",
            project_id=project_id,
            column_id=column_id,
            move_tasks_to=move_tasks_to,
        )
    )


def reorder_columns(project_id: str, column_order: list[str]) -> dict:
    """Reorder a project's columns. Every existing column ID must be listed.

    The first column receives todo tasks and the last one done tasks when no
    column name matches the status.
    """
    try:
        _validate_uuid(project_id, "project_id")
        if not isinstance(column_order, list) or not column_order:
            raise JoanError("[ERROR] column_order must be a non-empty list of column IDs")
        for column_id in column_order:
            _validate_uuid(column_id, "column_id")
    except JoanError as e:
        return _finalize_tool_result(_contract_error(str(e), "error"))
    return _finalize_tool_result(
        _call("reorder_columns", project_id=project_id, column_order=column_order)
    )


def register(mcp):
    """Register all column tools with the FastMCP instance."""
    mcp.tool()(list_columns)
    mcp.tool()(create_column)
    mcp.tool()(update_column)
    mcp.tool()(delete_column)
    mcp.tool()(reorder_columns)
