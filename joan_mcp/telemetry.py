"""
Column sync telemetry and the synchronizer that feeds it.

Every status ↔ column inference made on behalf of a task produces one
immutable ColumnSyncEvent. The log is observational only: no recorded
event ever changes a later match.

Usage:
    telemetry = ColumnSyncTelemetry()
    sync = ColumnSynchronizer(telemetry)
    match = sync.column_for_status(columns, "done", task=task, operation="complete")
    telemetry.get_metrics()
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any

from joan_mcp.columns import (
    Column,
    ColumnMatch,
    Unmatched,
    find_column_by_id,
    find_column_for_status,
    inference_error,
    match_status_for_column,
    resolve_default_column,
)

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class ColumnSyncEvent:
    """One inference attempt for one task."""

    task_id: str
    task_number: int | None
    operation: str
    status_before: str | None
    status_after: str | None
    column_before: str | None
    column_after: str | None
    inferred: bool
    inference_failed: bool
    timestamp: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class ColumnSyncTelemetry:
    """In-memory, append-only log of ColumnSyncEvents.

    One instance per server; there is no persistence. Tests construct their
    own instances or call clear() between cases.
    """

    def __init__(self) -> None:
        self._events: list[ColumnSyncEvent] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def record_event(self, event: ColumnSyncEvent) -> ColumnSyncEvent:
        """Append *event*, stamping a timestamp if it has none."""
        if not event.timestamp:
            event = ColumnSyncEvent(**{**event.to_dict(), "timestamp": _now_iso()})
        with self._lock:
            self._events.append(event)

        label = f"#{event.task_number}" if event.task_number is not None else event.task_id
        if event.inference_failed:
            logger.error(
                "Column sync failed for task %s: status=%s, column=%s",
                label,
                event.status_after,
                event.column_before,
            )
        elif event.inferred:
            logger.info(
                "Column synced for task %s: %s → %s",
                label,
                event.column_before,
                event.column_after,
            )
        return event

    def log(self, **fields: Any) -> ColumnSyncEvent:
        """Build and record an event from keyword fields (timestamp is added)."""
        fields.pop("timestamp", None)
        return self.record_event(ColumnSyncEvent(**fields))

    def get_all_events(self) -> list[ColumnSyncEvent]:
        with self._lock:
            return list(self._events)

    def get_failures(self) -> list[ColumnSyncEvent]:
        """Events where inference failed (missing column mappings, usually)."""
        return [e for e in self.get_all_events() if e.inference_failed]

    def get_recent_failures(self, limit: int = 10) -> list[ColumnSyncEvent]:
        """Last *limit* failures, oldest first."""
        if limit <= 0:
            return []
        return self.get_failures()[-limit:]

    def get_events_by_operation(self) -> dict[str, list[ColumnSyncEvent]]:
        grouped: dict[str, list[ColumnSyncEvent]] = {}
        for event in self.get_all_events():
            grouped.setdefault(event.operation, []).append(event)
        return grouped

    def get_events_for_operation(self, operation: str) -> list[ColumnSyncEvent]:
        return [e for e in self.get_all_events() if e.operation == operation]

    def get_metrics(self) -> dict[str, Any]:
        """Aggregate counts and rates; rates are 0 when nothing was recorded."""
        events = self.get_all_events()
        total = len(events)
        failures = sum(1 for e in events if e.inference_failed)
        inferred = sum(1 for e in events if e.inferred)
        return {
            "total_events": total,
            "failures": failures,
            "inferred_syncs": inferred,
            "failure_rate": failures / total if total else 0,
            "success_rate": (total - failures) / total if total else 0,
        }

    def clear(self) -> None:
        with self._lock:
            self._events = []


def _task_fields(task: Mapping[str, Any] | None) -> tuple[str, int | None, str | None, str | None]:
    task = task or {}
    return (
        str(task.get("id") or ""),
        task.get("task_number"),
        task.get("status"),
        task.get("column_id"),
    )


class ColumnSynchronizer:
    """Runs column inference for a task and records the outcome.

    Matching itself stays in joan_mcp.columns; this class only observes.
    """

    def __init__(
        self,
        telemetry: ColumnSyncTelemetry | None = None,
        aliases: Mapping[str, Iterable[str]] | None = None,
    ) -> None:
        self.telemetry = telemetry if telemetry is not None else ColumnSyncTelemetry()
        self.aliases = aliases

    def column_for_status(
        self,
        columns: Iterable[Column],
        status: str,
        *,
        task: Mapping[str, Any] | None = None,
        operation: str = "update",
        required: bool = False,
    ) -> ColumnMatch:
        """Status → column for *task*. Strict mode raises after recording the failure."""
        columns = list(columns)
        task_id, number, status_before, column_before_id = _task_fields(task)
        column_before = find_column_by_id(columns, column_before_id)
        before_name = column_before.name if column_before else column_before_id

        result = find_column_for_status(columns, status, aliases=self.aliases)
        self.telemetry.log(
            task_id=task_id,
            task_number=number,
            operation=operation,
            status_before=status_before,
            status_after=status,
            column_before=before_name,
            column_after=result.column.name if result.column is not None else before_name,
            inferred=result.matched,
            inference_failed=not result.matched,
        )
        if required and isinstance(result, Unmatched) and result.reason == "no_match":
            raise inference_error(result, self.aliases)
        return result

    def status_for_column(
        self,
        column: Column,
        *,
        task: Mapping[str, Any] | None = None,
        operation: str = "update",
    ) -> str | None:
        """Column → status for *task*; None when the column name is unrecognized."""
        task_id, number, status_before, column_before = _task_fields(task)
        status = match_status_for_column(column, aliases=self.aliases)
        self.telemetry.log(
            task_id=task_id,
            task_number=number,
            operation=operation,
            status_before=status_before,
            status_after=status if status is not None else status_before,
            column_before=column_before,
            column_after=column.name,
            inferred=status is not None,
            inference_failed=status is None,
        )
        if status is None:
            logger.warning(
                "Could not infer status from column=%r. Status unchanged.", column.name
            )
        return status

    def default_column(self, columns: Iterable[Column]) -> Column | None:
        return resolve_default_column(columns)

    def recognized_status(self, column: Column) -> str | None:
        """Column → status lookup that records nothing (board edits are not task syncs)."""
        return match_status_for_column(column, aliases=self.aliases)
