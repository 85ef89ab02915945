"""
JoanClient: public Python API for Joan projects and tasks.

Single entry point for the MCP server and programmatic use. All methods
return flat dicts suitable for JSON serialization. Task mutations keep the
status field and the Kanban column in step through ColumnSynchronizer.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from joan_mcp.api import (
    add_tag_to_task,
    bulk_update_tasks,
    complete_task,
    create_column,
    create_goal,
    create_milestone,
    create_note,
    create_project,
    create_task,
    create_task_comment,
    delete_column,
    delete_goal,
    delete_milestone,
    delete_note,
    delete_task,
    delete_task_comment,
    get_current_user,
    get_goal,
    get_goal_stats,
    get_milestone,
    get_note,
    get_project,
    get_project_columns,
    get_project_tasks,
    get_task,
    get_task_tags,
    get_task_with_subtasks,
    link_task_to_goal,
    link_tasks_to_milestone,
    list_attachments,
    list_goals,
    list_milestones,
    list_notes,
    list_project_tags,
    list_projects,
    list_task_comments,
    list_tasks,
    remove_tag_from_task,
    reorder_columns,
    set_task_tags,
    unlink_task_from_goal,
    unlink_task_from_milestone,
    update_column,
    update_goal,
    update_milestone,
    update_note,
    update_project,
    update_task,
    update_task_comment,
)
from joan_mcp.columns import Column, columns_from_payload, find_column_by_id, sort_by_position
from joan_mcp.converters import format_task, format_task_input, status_to_backend
from joan_mcp.exceptions import JoanError, SetupError
from joan_mcp.formatters import format_columns_for_display
from joan_mcp.statuses import ALIAS_TABLE_VERSION, alias_table, task_status_names
from joan_mcp.telemetry import ColumnSynchronizer, ColumnSyncTelemetry

logger = logging.getLogger(__name__)

BULK_UPDATE_LIMIT = 100

# Board states such as review or blocked can place a task but never be stored on it.
TASK_STATUSES = frozenset(task_status_names())


def _compact(data: Mapping[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


def _storable_status(status: str | None) -> str | None:
    """Return *status* if the API can store it on a task, else None."""
    if not status:
        return status
    key = status.strip().lower()
    if key in TASK_STATUSES:
        return key
    logger.warning(
        "Status %r is not a task status (%s); only the column is updated",
        status,
        ", ".join(sorted(TASK_STATUSES)),
    )
    return None


class JoanClient:
    """Public API surface for Joan project management.

    Each client owns its ColumnSyncTelemetry, so every server instance (and
    every test) sees its own event log. Raises JoanError/SetupError on failure.
    """

    def __init__(
        self,
        *,
        validate_token: bool = True,
        telemetry: ColumnSyncTelemetry | None = None,
        aliases: Mapping[str, Iterable[str]] | None = None,
    ):
        """Initialize the client.

        Args:
            validate_token: If True, fetch the current user once so a missing
                or rejected token fails here rather than mid-operation.
            telemetry: Event log to record column syncs into. A fresh one is
                created when omitted.
            aliases: Replacement status → column-name alias table.
        """
        self.telemetry = telemetry if telemetry is not None else ColumnSyncTelemetry()
        self.sync = ColumnSynchronizer(self.telemetry, aliases=aliases)
        if validate_token:
            try:
                get_current_user()
            except SetupError:
                raise
            except JoanError as e:
                raise SetupError(f"[SETUP_NEEDED] Could not validate token: {e}") from e

    # -------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------

    def _columns(self, project_id: str) -> list[Column]:
        return columns_from_payload(get_project_columns(project_id))

    def _columns_or_empty(self, project_id: str) -> list[Column]:
        """Column fetch for lenient flows: any failure means "no columns"."""
        try:
            return self._columns(project_id)
        except JoanError as e:
            logger.warning("Could not load columns for project %s: %s", project_id, e)
            return []

    def _infer(self, columns, *, task, status, column_id, operation):
        """Fill in whichever of status / column_id the caller left out.

        Returns (column_id, status, direction) where direction is
        "status-to-column", "column-to-status", or None. A column whose name
        maps to a board-only status (review, deploy, blocked) leaves the
        status unset.
        """
        if status and not column_id:
            match = self.sync.column_for_status(columns, status, task=task, operation=operation)
            if match.matched and match.column.id != task.get("column_id"):
                return match.column.id, status, "status-to-column"
        elif column_id and not status:
            target = find_column_by_id(columns, column_id)
            if target is not None and column_id != task.get("column_id"):
                inferred = self.sync.status_for_column(target, task=task, operation=operation)
                if inferred in TASK_STATUSES:
                    return column_id, inferred, "column-to-status"
                if inferred:
                    logger.warning(
                        "Column %r maps to board status %r; task status left unchanged",
                        target.name,
                        inferred,
                    )
        return column_id, status, None

    # -------------------------------------------------------------------
    # Projects
    # -------------------------------------------------------------------

    def list_projects(
        self, *, status: str | None = None, include_members: bool | None = None
    ) -> list[dict[str, Any]]:
        return list_projects(status=status, include_members=include_members)

    def get_project(self, project_id: str) -> dict[str, Any]:
        return get_project(project_id)

    def create_project(
        self,
        name: str,
        *,
        description: str | None = None,
        status: str | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> dict[str, Any]:
        payload = _compact(
            {
                "name": name,
                "description": description,
                "status": status,
                "start_date": start_date,
                "end_date": end_date,
            }
        )
        return {"ok": True, "project": create_project(payload)}

    def update_project(self, project_id: str, **fields: Any) -> dict[str, Any]:
        data = _compact(fields)
        if not data:
            raise JoanError("[ERROR] No fields to update.")
        return {"ok": True, "project": update_project(project_id, data)}

    # -------------------------------------------------------------------
    # Kanban columns
    # -------------------------------------------------------------------

    def list_columns(self, project_id: str) -> dict[str, Any]:
        """Kanban columns of a project, position order, plus display text."""
        columns = self._columns(project_id)
        return {
            "project_id": project_id,
            "columns": [c.to_dict() for c in sort_by_position(columns)],
            "default_column_id": (d.id if (d := self.sync.default_column(columns)) else None),
            "display": format_columns_for_display(columns),
        }

    def create_column(
        self,
        project_id: str,
        name: str,
        *,
        position: int | None = None,
        default_status: str | None = None,
        color: str | None = None,
    ) -> dict[str, Any]:
        """Add a column; without a position it is appended to the board."""
        payload = _compact(
            {"name": name, "position": position, "default_status": default_status, "color": color}
        )
        column = Column.from_dict(create_column(project_id, payload))
        return {
            "ok": True,
            "column": column.to_dict(),
            "inferred_status": self.sync.recognized_status(column),
        }

    def update_column(
        self,
        project_id: str,
        column_id: str,
        *,
        name: str | None = None,
        default_status: str | None = None,
        color: str | None = None,
    ) -> dict[str, Any]:
        """Rename or recolor a column. Position changes go through reorder_columns."""
        data = _compact({"name": name, "default_status": default_status, "color": color})
        if not data:
            raise JoanError("[ERROR] No fields to update.")
        column = Column.from_dict(update_column(project_id, column_id, data))
        return {
            "ok": True,
            "column": column.to_dict(),
            "inferred_status": self.sync.recognized_status(column),
        }

    def delete_column(
        self, project_id: str, column_id: str, *, move_tasks_to: str | None = None
    ) -> dict[str, Any]:
        if move_tasks_to == column_id:
            raise JoanError("[ERROR] move_tasks_to must be a different column.")
        result = delete_column(project_id, column_id, move_tasks_to=move_tasks_to)
        return {
            "ok": True,
            "column_id": column_id,
            "deleted": True,
            "tasks_moved": result.get("tasks_moved", 0),
        }

    def reorder_columns(self, project_id: str, column_order: list[str]) -> dict[str, Any]:
        """Set the board order; every existing column must appear exactly once.

        The first and last columns are where todo and done tasks land when
        no column name matches, so the result reports both.
        """
        if not column_order:
            raise JoanError("[ERROR] column_order must contain at least one column ID.")
        if len(set(column_order)) != len(column_order):
            raise JoanError("[ERROR] column_order contains duplicate column IDs.")
        existing = {c.id for c in self._columns(project_id)}
        missing = existing - set(column_order)
        unknown = set(column_order) - existing
        if missing or unknown:
            parts = []
            if missing:
                parts.append(f"missing: {', '.join(sorted(missing))}")
            if unknown:
                parts.append(f"unknown: {', '.join(sorted(unknown))}")
            raise JoanError(
                f"[ERROR] column_order must list every column of the project ({'; '.join(parts)})."
            )

        columns = columns_from_payload(reorder_columns(project_id, column_order))
        if not columns:
            columns = self._columns(project_id)
        ordered = sort_by_position(columns)
        return {
            "ok": True,
            "project_id": project_id,
            "columns": [c.to_dict() for c in ordered],
            "order": " → ".join(c.name for c in ordered),
            "first_column": ordered[0].name if ordered else None,
            "last_column": ordered[-1].name if ordered else None,
        }

    # -------------------------------------------------------------------
    # Tasks: reads
    # -------------------------------------------------------------------

    def list_tasks(
        self,
        *,
        project_id: str | None = None,
        status: str | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        backend_status = status_to_backend(status) if status else None
        if project_id:
            tasks = get_project_tasks(project_id, status=backend_status, limit=limit)
        else:
            tasks = list_tasks(status=backend_status, limit=limit)
        return [format_task(t) for t in tasks]

    def get_task(self, task_id: str, *, include_subtasks: bool = True) -> dict[str, Any]:
        task = get_task_with_subtasks(task_id) if include_subtasks else get_task(task_id)
        out = format_task(task)
        if isinstance(task.get("subtasks"), list):
            out["subtasks"] = [format_task(s) for s in task["subtasks"]]
        return out

    # -------------------------------------------------------------------
    # Tasks: mutations
    # -------------------------------------------------------------------

    def create_task(
        self,
        title: str,
        *,
        description: str | None = None,
        project_id: str | None = None,
        column_id: str | None = None,
        status: str | None = None,
        priority: str | None = None,
        due_date: str | None = None,
        estimated_pomodoros: int | None = None,
        assignee_id: str | None = None,
        tags: list[str] | None = None,
        sync_column: bool = True,
    ) -> dict[str, Any]:
        """Create a task; with a project, place it in the column matching its status.

        A status without a column picks the column (lenient inference), a
        column without a status picks the status. Failing to load columns
        never blocks creation. A status tasks cannot carry (a board state
        like "review", or a project's custom name) only picks the column.
        """
        direction = None
        if project_id and sync_column and (bool(status) != bool(column_id)):
            columns = self._columns_or_empty(project_id)
            placeholder = {"id": "", "project_id": project_id}
            column_id, status, direction = self._infer(
                columns, task=placeholder, status=status, column_id=column_id, operation="create"
            )
        status = _storable_status(status)

        payload = format_task_input(
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
        )
        task = create_task(payload)
        return {
            "ok": True,
            "task": format_task(task),
            "sync": direction,
            "column_id": task.get("column_id", column_id),
            "status": status,
        }

    def update_task(
        self,
        task_id: str,
        *,
        title: str | None = None,
        description: str | None = None,
        column_id: str | None = None,
        status: str | None = None,
        priority: str | None = None,
        due_date: str | None = None,
        estimated_pomodoros: int | None = None,
        assignee_id: str | None = None,
        tags: list[str] | None = None,
        sync_column: bool = True,
    ) -> dict[str, Any]:
        """Update a task, moving it between columns when its status changes.

        Changing only the status moves the task to the matching column;
        changing only the column updates the status, unless the column
        stands for a board-only state. Inference problems are logged and the
        update goes ahead with the fields as given.
        """
        direction = None
        if sync_column and (bool(status) != bool(column_id)):
            try:
                existing = format_task(get_task(task_id))
            except JoanError as e:
                logger.warning("Could not load task %s for column sync: %s", task_id, e)
                existing = None
            if existing and existing.get("project_id"):
                columns = self._columns_or_empty(existing["project_id"])
                column_id, status, direction = self._infer(
                    columns, task=existing, status=status, column_id=column_id, operation="update"
                )
        status = _storable_status(status)

        payload = format_task_input(
            title=title,
            description=description,
            status=status,
            priority=priority,
            due_date=due_date,
            estimated_pomodoros=estimated_pomodoros,
            column_id=column_id,
            assignee_id=assignee_id,
            tags=tags,
        )
        if not payload:
            raise JoanError("[ERROR] No fields to update.")
        task = update_task(task_id, payload)
        return {"ok": True, "task": format_task(task), "sync": direction, "fields": payload}

    def complete_task(self, task_id: str, *, sync_column: bool = True) -> dict[str, Any]:
        """Mark a task done and move it to the project's Done column.

        Column inference is strict here: a project whose board has no
        recognizable Done column raises ColumnInferenceError after the task
        has been completed, so the caller can report the board problem.
        """
        task = format_task(get_task(task_id))
        complete_task(task_id)

        moved_to = None
        if sync_column and task.get("project_id"):
            columns = self._columns(task["project_id"])
            match = self.sync.column_for_status(
                columns, "done", task=task, operation="complete", required=True
            )
            if match.matched and match.column.id != task.get("column_id"):
                update_task(task_id, {"column_id": match.column.id})
                moved_to = match.column.name
                logger.info("Moved task #%s to %s column", task.get("task_number"), moved_to)

        return {
            "ok": True,
            "task_id": task_id,
            "task_number": task.get("task_number"),
            "column_synced": moved_to is not None,
            "column": moved_to,
        }

    def delete_task(self, task_id: str) -> dict[str, Any]:
        delete_task(task_id)
        return {"ok": True, "task_id": task_id, "deleted": True}

    def bulk_update_tasks(self, updates: list[dict[str, Any]]) -> dict[str, Any]:
        """Move/re-status many tasks in one API call.

        Each update is {task_id, column_id?, status?}. The missing side is
        inferred per task; a task whose lookup fails keeps its update as given.
        Columns are fetched once per project, failures included.
        """
        if not updates:
            raise JoanError("[ERROR] updates must contain at least one entry.")
        if len(updates) > BULK_UPDATE_LIMIT:
            raise JoanError(f"[ERROR] At most {BULK_UPDATE_LIMIT} updates per call.")

        columns_by_project: dict[str, list[Column]] = {}
        enriched = []
        per_task = []
        for update in updates:
            task_id = update["task_id"]
            column_id = update.get("column_id")
            status = update.get("status")
            direction = None
            if bool(status) != bool(column_id):
                try:
                    task = format_task(get_task(task_id))
                except JoanError as e:
                    logger.error("Failed to infer column/status for task %s: %s", task_id, e)
                    task = None
                project_id = task.get("project_id") if task else None
                if project_id:
                    if project_id not in columns_by_project:
                        columns_by_project[project_id] = self._columns_or_empty(project_id)
                    column_id, status, direction = self._infer(
                        columns_by_project[project_id],
                        task=task,
                        status=status,
                        column_id=column_id,
                        operation="bulk_update",
                    )
            status = _storable_status(status)

            enriched.append(
                {
                    "id": task_id,
                    "column_id": column_id,
                    "status": status_to_backend(status) if status else None,
                    "order_index": 0,
                }
            )
            per_task.append(
                {"task_id": task_id, "column_id": column_id, "status": status, "sync": direction}
            )

        payload = [_compact(u) for u in enriched]
        result = bulk_update_tasks(payload)
        return {"ok": True, "updated": result.get("updated", len(payload)), "per_task": per_task}

    # -------------------------------------------------------------------
    # Milestones
    # -------------------------------------------------------------------

    def list_milestones(
        self, project_id: str, *, status: str | None = None
    ) -> list[dict[str, Any]]:
        return list_milestones(project_id, status=status)

    def get_milestone(self, project_id: str, milestone_id: str) -> dict[str, Any]:
        return get_milestone(project_id, milestone_id)

    def create_milestone(
        self,
        project_id: str,
        name: str,
        *,
        description: str | None = None,
        target_date: str | None = None,
        status: str | None = None,
    ) -> dict[str, Any]:
        payload = _compact(
            {
                "name": name,
                "description": description,
                "target_date": target_date,
                "status": status,
            }
        )
        return {"ok": True, "milestone": create_milestone(project_id, payload)}

    def update_milestone(self, project_id: str, milestone_id: str, **fields: Any) -> dict[str, Any]:
        data = _compact(fields)
        if not data:
            raise JoanError("[ERROR] No fields to update.")
        return {"ok": True, "milestone": update_milestone(project_id, milestone_id, data)}

    def delete_milestone(self, project_id: str, milestone_id: str) -> dict[str, Any]:
        delete_milestone(project_id, milestone_id)
        return {"ok": True, "milestone_id": milestone_id, "deleted": True}

    def link_tasks_to_milestone(
        self, project_id: str, milestone_id: str, task_ids: list[str]
    ) -> dict[str, Any]:
        if not task_ids:
            raise JoanError("[ERROR] task_ids must contain at least one task ID.")
        link_tasks_to_milestone(project_id, milestone_id, task_ids)
        return {"ok": True, "milestone_id": milestone_id, "linked": len(task_ids)}

    def unlink_task_from_milestone(
        self, project_id: str, milestone_id: str, task_id: str
    ) -> dict[str, Any]:
        unlink_task_from_milestone(project_id, milestone_id, task_id)
        return {"ok": True, "milestone_id": milestone_id, "task_id": task_id, "unlinked": True}

    # -------------------------------------------------------------------
    # Goals
    # -------------------------------------------------------------------

    def list_goals(self, *, status: str | None = None) -> list[dict[str, Any]]:
        return list_goals(status=status)

    def get_goal(self, goal_id: str, *, include_stats: bool = False) -> dict[str, Any]:
        goal = get_goal(goal_id)
        if include_stats:
            goal = {**goal, "stats": get_goal_stats(goal_id)}
        return goal

    def create_goal(
        self,
        title: str,
        *,
        description: str | None = None,
        goal_type: str | None = None,
        target_date: str | None = None,
    ) -> dict[str, Any]:
        payload = _compact(
            {
                "title": title,
                "description": description,
                "type": goal_type,
                "target_date": target_date,
            }
        )
        return {"ok": True, "goal": create_goal(payload)}

    def update_goal(self, goal_id: str, **fields: Any) -> dict[str, Any]:
        data = _compact(fields)
        if not data:
            raise JoanError("[ERROR] No fields to update.")
        return {"ok": True, "goal": update_goal(goal_id, data)}

    def delete_goal(self, goal_id: str) -> dict[str, Any]:
        delete_goal(goal_id)
        return {"ok": True, "goal_id": goal_id, "deleted": True}

    def link_task_to_goal(self, goal_id: str, task_id: str) -> dict[str, Any]:
        link_task_to_goal(goal_id, task_id)
        return {"ok": True, "goal_id": goal_id, "task_id": task_id, "linked": True}

    def unlink_task_from_goal(self, goal_id: str, task_id: str) -> dict[str, Any]:
        unlink_task_from_goal(goal_id, task_id)
        return {"ok": True, "goal_id": goal_id, "task_id": task_id, "unlinked": True}

    # -------------------------------------------------------------------
    # Notes
    # -------------------------------------------------------------------

    def list_notes(
        self, *, tag: str | None = None, limit: int | None = None
    ) -> list[dict[str, Any]]:
        return list_notes(tag=tag, limit=limit)

    def get_note(self, note_id: str) -> dict[str, Any]:
        return get_note(note_id)

    def create_note(
        self, title: str, *, content: str | None = None, tags: list[str] | None = None
    ) -> dict[str, Any]:
        data: dict[str, Any] = {"title": title}
        if content is not None:
            data["content"] = content
        if tags:
            data["tags"] = tags
        return {"ok": True, "note": create_note(data)}

    def update_note(self, note_id: str, **fields: Any) -> dict[str, Any]:
        data = _compact(fields)
        if not data:
            raise JoanError("[ERROR] No fields to update.")
        return {"ok": True, "note": update_note(note_id, data)}

    def delete_note(self, note_id: str) -> dict[str, Any]:
        delete_note(note_id)
        return {"ok": True, "note_id": note_id, "deleted": True}

    # -------------------------------------------------------------------
    # Comments, tags, attachments
    # -------------------------------------------------------------------

    def list_task_comments(self, task_id: str) -> list[dict[str, Any]]:
        return list_task_comments(task_id)

    def create_task_comment(self, task_id: str, content: str) -> dict[str, Any]:
        return {"ok": True, "comment": create_task_comment(task_id, content)}

    def update_task_comment(self, task_id: str, comment_id: str, content: str) -> dict[str, Any]:
        return {"ok": True, "comment": update_task_comment(task_id, comment_id, content)}

    def delete_task_comment(self, task_id: str, comment_id: str) -> dict[str, Any]:
        delete_task_comment(task_id, comment_id)
        return {"ok": True, "task_id": task_id, "comment_id": comment_id, "deleted": True}

    def list_project_tags(self, project_id: str) -> list[dict[str, Any]]:
        return list_project_tags(project_id)

    def list_task_tags(self, project_id: str, task_id: str) -> list[dict[str, Any]]:
        return get_task_tags(project_id, task_id)

    def add_tag_to_task(self, project_id: str, task_id: str, tag_id: str) -> dict[str, Any]:
        add_tag_to_task(project_id, task_id, tag_id)
        return {"ok": True, "task_id": task_id, "tag_id": tag_id, "added": True}

    def remove_tag_from_task(self, project_id: str, task_id: str, tag_id: str) -> dict[str, Any]:
        remove_tag_from_task(project_id, task_id, tag_id)
        return {"ok": True, "task_id": task_id, "tag_id": tag_id, "removed": True}

    def set_task_tags(self, project_id: str, task_id: str, tag_ids: list[str]) -> dict[str, Any]:
        """Replace every tag on a task; an empty list clears them."""
        tags = set_task_tags(project_id, task_id, list(dict.fromkeys(tag_ids)))
        return {"ok": True, "task_id": task_id, "tags": tags, "count": len(tags)}

    def list_attachments(self, entity_type: str, entity_id: str) -> list[dict[str, Any]]:
        return list_attachments(entity_type, entity_id)

    # -------------------------------------------------------------------
    # Column sync diagnostics
    # -------------------------------------------------------------------

    def column_sync_metrics(self, *, recent: int = 10) -> dict[str, Any]:
        return {
            **self.telemetry.get_metrics(),
            "recent_failures": [e.to_dict() for e in self.telemetry.get_recent_failures(recent)],
        }

    def column_sync_failures(self, *, operation: str | None = None) -> dict[str, Any]:
        failures = self.telemetry.get_failures()
        if operation:
            failures = [e for e in failures if e.operation == operation]
        return {"count": len(failures), "failures": [e.to_dict() for e in failures]}

    def status_aliases(self) -> dict[str, Any]:
        """Alias table in use, its version, and which statuses tasks can carry."""
        custom = self.sync.aliases is not None
        table = self.sync.aliases if custom else alias_table()
        return {
            "version": None if custom else ALIAS_TABLE_VERSION,
            "custom": custom,
            "aliases": {k: list(v) for k, v in table.items()},
            "task_statuses": sorted(TASK_STATUSES),
        }
