"""
Conversions between the tool-facing task format and the Joan API format.

Tools speak todo/in_progress/done/cancelled, string priorities and
pomodoros; the API stores pending/completed, integer priorities and minutes.
"""

from __future__ import annotations

from typing import Any

STATUS_TO_BACKEND = {
    "todo": "pending",
    "in_progress": "in_progress",
    "done": "completed",
    "cancelled": "cancelled",
}
STATUS_TO_FRONTEND = {v: k for k, v in STATUS_TO_BACKEND.items()}

PRIORITY_TO_NUMBER = {"none": 0, "low": 1, "medium": 2, "high": 3}
PRIORITY_TO_STRING = {v: k for k, v in PRIORITY_TO_NUMBER.items()}

POMODORO_MINUTES = 25


def status_to_backend(status: str) -> str:
    """Unknown statuses collapse to 'pending'."""
    return STATUS_TO_BACKEND.get(status, "pending")


def status_to_frontend(status: str | None) -> str:
    """Unknown statuses collapse to 'todo'."""
    return STATUS_TO_FRONTEND.get(status or "", "todo")


def priority_to_number(priority: str) -> int:
    return PRIORITY_TO_NUMBER.get(priority, 0)


def priority_to_string(priority: int | None) -> str:
    return PRIORITY_TO_STRING.get(priority, "none")  # type: ignore[arg-type]


def pomodoros_to_minutes(pomodoros: int) -> int:
    return pomodoros * POMODORO_MINUTES


def minutes_to_pomodoros(minutes: int | float) -> int:
    # Half-up, so 12.5 min (half a pomodoro) counts as one.
    return int(minutes / POMODORO_MINUTES + 0.5)


def format_task(task: dict[str, Any]) -> dict[str, Any]:
    """API task dict → tool-facing task dict (input is not modified)."""
    out = dict(task)
    out["status"] = status_to_frontend(task.get("status"))
    out["priority"] = priority_to_string(task.get("priority"))
    estimated = task.get("estimated_minutes")
    actual = task.get("actual_minutes")
    out["estimated_pomodoros"] = minutes_to_pomodoros(estimated) if estimated else None
    out["actual_pomodoros"] = minutes_to_pomodoros(actual) if actual else None
    return out


def format_task_input(
    *,
    title: str | None = None,
    description: str | None = None,
    status: str | None = None,
    priority: str | None = None,
    due_date: str | None = None,
    estimated_pomodoros: int | None = None,
    project_id: str | None = None,
    column_id: str | None = None,
    assignee_id: str | None = None,
    tags: list[str] | None = None,
) -> dict[str, Any]:
    """Tool-facing fields → API payload. Fields left as None are omitted."""
    payload: dict[str, Any] = {
        "title": title,
        "description": description,
        "status": status_to_backend(status) if status else None,
        "priority": priority_to_number(priority) if priority else None,
        "due_date": due_date,
        "estimated_minutes": (
            pomodoros_to_minutes(estimated_pomodoros) if estimated_pomodoros else None
        ),
        "project_id": project_id,
        "column_id": column_id,
        "assignee_id": assignee_id,
        "tags": tags,
    }
    return {k: v for k, v in payload.items() if v is not None}
