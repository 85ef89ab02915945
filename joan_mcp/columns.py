"""
Kanban column model and status ↔ column inference.

Joan tracks a task's lifecycle twice: a fixed ``status`` field and the
project-specific Kanban column the task sits in. Column names are free-form,
so moving between the two representations is heuristic:

    exact name → alias table → fuzzy (edit distance ≤ 2) → board position

Everything here is pure. Inputs are never mutated and nothing touches the
network; the only side effect is logging. Telemetry lives in
``joan_mcp.telemetry``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from joan_mcp.exceptions import ColumnInferenceError, JoanError
from joan_mcp.statuses import DEFAULT_ALIASES, positional_statuses

logger = logging.getLogger(__name__)

FUZZY_MAX_DISTANCE = 2

_POSITIONAL = positional_statuses()


# ---------------------------------------------------------------------------
# Model
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Column:
    """One lane of a project's Kanban board (read-only snapshot)."""

    id: str
    name: str
    position: int = 0
    is_default: bool = False
    wip_limit: int | None = None
    project_id: str | None = None
    color: str | None = None
    description: str | None = None
    status_key: str | None = None
    task_count: int | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Column:
        if not isinstance(data, Mapping):
            raise JoanError(
                f"[ERROR] Invalid column payload: expected object, got {type(data).__name__}."
            )
        if not data.get("id"):
            raise JoanError("[ERROR] Invalid column payload: missing 'id'.")
        try:
            position = int(data.get("position") or 0)
        except (TypeError, ValueError):
            position = 0
        wip = data.get("wip_limit")
        if isinstance(wip, bool) or not isinstance(wip, (int, float)):
            wip = None
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            position=position,
            is_default=bool(data.get("is_default", False)),
            wip_limit=int(wip) if wip is not None else None,
            project_id=data.get("project_id"),
            color=data.get("color"),
            description=data.get("description"),
            status_key=data.get("status_key"),
            task_count=data.get("task_count"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "position": self.position,
            "is_default": self.is_default,
            "wip_limit": self.wip_limit,
            "project_id": self.project_id,
            "color": self.color,
            "description": self.description,
            "status_key": self.status_key,
            "task_count": self.task_count,
        }


def columns_from_payload(items: Iterable[Mapping[str, Any]]) -> list[Column]:
    """Build Column objects from API dicts, keeping input order."""
    return [item if isinstance(item, Column) else Column.from_dict(item) for item in items]


# ---------------------------------------------------------------------------
# Match results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Matched:
    """A column was found; ``strategy`` is exact, alias, fuzzy or position."""

    column: Column
    strategy: str
    distance: int | None = None

    matched = True


@dataclass(frozen=True)
class Unmatched:
    """No column qualified. ``reason`` is no_columns or no_match."""

    status: str
    reason: str
    available: tuple[str, ...] = field(default_factory=tuple)

    matched = False
    column = None


ColumnMatch = Union[Matched, Unmatched]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _normalize(text: str | None) -> str:
    return (text or "").strip().lower()


def levenshtein_distance(a: str, b: str) -> int:
    """Classic edit distance (insert, delete, substitute all cost 1)."""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        current = [i]
        for j, cb in enumerate(b, 1):
            if ca == cb:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(previous[j - 1], previous[j], current[j - 1]))
        previous = current
    return previous[-1]


def sort_by_position(columns: Iterable[Column]) -> list[Column]:
    """Return a new list ordered by position (stable for equal positions)."""
    return sorted(columns, key=lambda c: c.position)


def _aliases(aliases: Mapping[str, Iterable[str]] | None) -> Mapping[str, Iterable[str]]:
    return DEFAULT_ALIASES if aliases is None else aliases


def expected_names(
    status: str, aliases: Mapping[str, Iterable[str]] | None = None
) -> tuple[str, ...]:
    """Alias names a column would need for *status* to match it."""
    return tuple(_aliases(aliases).get(status, ()))


# ---------------------------------------------------------------------------
# Strategies (status → column)
# ---------------------------------------------------------------------------


def _match_exact(columns, wanted):
    for col in columns:
        if _normalize(col.name) == wanted:
            return col
    return None


def _match_alias(columns, wanted, aliases):
    # A set applies when keyed by the status or when it lists the status itself.
    for key, names in aliases.items():
        name_set = {_normalize(n) for n in names}
        if wanted != _normalize(key) and wanted not in name_set:
            continue
        for col in columns:
            if _normalize(col.name) in name_set:
                return col
    return None


def _match_fuzzy(columns, wanted):
    # First column within range wins, not the closest one.
    for col in columns:
        distance = levenshtein_distance(_normalize(col.name), wanted)
        if distance <= FUZZY_MAX_DISTANCE:
            return col, distance
    return None, None


def _match_position(columns, wanted):
    where = _POSITIONAL.get(wanted)
    if where is None:
        return None
    ordered = sort_by_position(columns)
    return ordered[0] if where == "first" else ordered[-1]


def find_column_for_status(
    columns: Iterable[Column],
    status: str,
    *,
    aliases: Mapping[str, Iterable[str]] | None = None,
) -> ColumnMatch:
    """Find the column that represents *status*, without raising.

    Returns Matched(column, strategy) or Unmatched(status, reason, available).
    Exact, alias and fuzzy matching keep input order for tie-breaks; only the
    positional fallback (todo → first, done → last) sorts by position.
    """
    columns = list(columns)
    if not columns:
        logger.warning("No columns available for status=%r", status)
        return Unmatched(status=status, reason="no_columns")

    table = _aliases(aliases)
    wanted = _normalize(status)

    col = _match_exact(columns, wanted)
    if col is not None:
        return Matched(col, "exact")

    col = _match_alias(columns, wanted, table)
    if col is not None:
        return Matched(col, "alias")

    col, distance = _match_fuzzy(columns, wanted)
    if col is not None:
        logger.info(
            "Fuzzy matched column %r for status %r (distance: %d)", col.name, status, distance
        )
        return Matched(col, "fuzzy", distance)

    col = _match_position(columns, wanted)
    if col is not None:
        return Matched(col, "position")

    available = tuple(c.name for c in columns)
    logger.warning(
        "Failed to infer column for status=%r. Available columns: %s",
        status,
        ", ".join(available),
    )
    return Unmatched(status=status, reason="no_match", available=available)


def require_column_for_status(
    columns: Iterable[Column],
    status: str,
    *,
    aliases: Mapping[str, Iterable[str]] | None = None,
) -> Column | None:
    """Strict variant of find_column_for_status.

    Raises ColumnInferenceError when the project has columns but none can be
    matched. A project with no columns at all yields None.
    """
    result = find_column_for_status(columns, status, aliases=aliases)
    if isinstance(result, Matched):
        return result.column
    if result.reason == "no_columns":
        return None
    raise inference_error(result, aliases)


def inference_error(
    result: Unmatched,
    aliases: Mapping[str, Iterable[str]] | None = None,
) -> ColumnInferenceError:
    """Build the strict-mode error for an Unmatched result."""
    expected = expected_names(result.status, aliases)
    return ColumnInferenceError(
        f"[ERROR] Cannot find column for status='{result.status}'. "
        f"Expected column names: {', '.join(expected) or 'unknown'}. "
        f"Available: {', '.join(result.available)}",
        status=result.status,
        expected=expected,
        available=result.available,
        reason=result.reason,
    )


def match_column_for_status(
    columns: Iterable[Column],
    status: str,
    *,
    required: bool = False,
    aliases: Mapping[str, Iterable[str]] | None = None,
) -> Column | None:
    """Return the matching column or None; ``required=True`` uses the strict contract."""
    if required:
        return require_column_for_status(columns, status, aliases=aliases)
    return find_column_for_status(columns, status, aliases=aliases).column


def column_id_for_status(columns: Iterable[Column], status: str) -> str | None:
    col = find_column_for_status(columns, status).column
    return col.id if col is not None else None


# ---------------------------------------------------------------------------
# Column → status, defaults
# ---------------------------------------------------------------------------


def match_status_for_column(
    column: Column,
    *,
    aliases: Mapping[str, Iterable[str]] | None = None,
) -> str | None:
    """Infer the canonical status a column stands for, or None.

    Only alias membership is consulted. An unrecognized name never falls
    back to fuzzy or positional guessing in this direction.
    """
    name = _normalize(column.name)
    for status, names in _aliases(aliases).items():
        if name in {_normalize(n) for n in names}:
            return status
    return None


def is_done_column(column: Column) -> bool:
    return match_status_for_column(column) == "done"


def resolve_default_column(columns: Iterable[Column]) -> Column | None:
    """Column flagged is_default, else the lowest-position column, else None."""
    columns = list(columns)
    if not columns:
        return None
    for col in columns:
        if col.is_default:
            return col
    return sort_by_position(columns)[0]


def find_column_by_id(columns: Iterable[Column], column_id: str | None) -> Column | None:
    if not column_id:
        return None
    for col in columns:
        if col.id == column_id:
            return col
    return None
