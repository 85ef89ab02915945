"""Status registry: single source of truth for status ↔ column-name aliases.

Standalone module (no project imports). Teaching the matcher a new column
name means appending to a StatusDefinition's aliases; a new board state
means appending one StatusDefinition to STATUSES. Registration order is
significant: inverse inference returns the first status whose aliases
contain a column name.
"""

from dataclasses import dataclass

ALIAS_TABLE_VERSION = 1


@dataclass(frozen=True)
class StatusDefinition:
    """One canonical status and the column names that represent it."""

    name: str
    display_name: str
    aliases: tuple[str, ...]
    task_status: bool  # valid value for a task's status field
    position: str | None = None  # "first" / "last" board fallback, or None


STATUSES: tuple[StatusDefinition, ...] = (
    StatusDefinition(
        name="todo",
        display_name="To Do",
        aliases=("to do", "todo", "to-do", "backlog", "pending", "new", "open", "ready"),
        task_status=True,
        position="first",
    ),
    StatusDefinition(
        name="in_progress",
        display_name="In Progress",
        aliases=(
            "in progress",
            "in_progress",
            "in-progress",
            "doing",
            "wip",
            "working",
            "active",
            "development",
            "dev",
        ),
        task_status=True,
    ),
    StatusDefinition(
        name="review",
        display_name="Review",
        aliases=("review", "reviewing", "code review", "testing", "qa", "test"),
        task_status=False,
    ),
    StatusDefinition(
        name="deploy",
        display_name="Deploy",
        aliases=("deploy", "deployment", "deploying", "staging", "production"),
        task_status=False,
    ),
    StatusDefinition(
        name="done",
        display_name="Done",
        aliases=("done", "completed", "complete", "finished", "closed", "resolved"),
        task_status=True,
        position="last",
    ),
    StatusDefinition(
        name="cancelled",
        display_name="Cancelled",
        aliases=("cancelled", "canceled", "archived", "removed", "rejected", "abandoned"),
        task_status=True,
    ),
    StatusDefinition(
        name="blocked",
        display_name="Blocked",
        aliases=("blocked", "waiting", "on hold", "paused"),
        task_status=False,
    ),
)


def task_status_names() -> tuple[str, ...]:
    """Return the statuses a task can carry on the wire."""
    return tuple(status.name for status in STATUSES if status.task_status)


def alias_table() -> dict[str, tuple[str, ...]]:
    """Return {status: (aliases...)} in registration order.

    This is the default vocabulary for the column matcher; callers may pass
    their own mapping of the same shape instead.
    """
    return {status.name: status.aliases for status in STATUSES}


def positional_statuses() -> dict[str, str]:
    """Return {status: "first" | "last"} for statuses with a board fallback."""
    return {status.name: status.position for status in STATUSES if status.position}


DEFAULT_ALIASES: dict[str, tuple[str, ...]] = alias_table()
