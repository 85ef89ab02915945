"""Tests for telemetry.py: ColumnSyncTelemetry and ColumnSynchronizer."""

import logging
import threading

import pytest

from joan_mcp.columns import Column, Matched, Unmatched
from joan_mcp.exceptions import ColumnInferenceError
from joan_mcp.telemetry import ColumnSyncEvent, ColumnSynchronizer, ColumnSyncTelemetry


def _event(**overrides):
    fields = {
        "task_id": "t1",
        "task_number": 7,
        "operation": "update",
        "status_before": "todo",
        "status_after": "done",
        "column_before": "To Do",
        "column_after": "Done",
        "inferred": True,
        "inference_failed": False,
    }
    fields.update(overrides)
    return ColumnSyncEvent(**fields)


def _failure(**overrides):
    return _event(inferred=False, inference_failed=True, **overrides)


# ---------------------------------------------------------------------------
# ColumnSyncTelemetry
# ---------------------------------------------------------------------------


class TestRecordEvent:
    def test_stamps_timestamp(self):
        telemetry = ColumnSyncTelemetry()
        recorded = telemetry.record_event(_event())
        assert recorded.timestamp.endswith("Z")
        assert telemetry.get_all_events() == [recorded]

    def test_keeps_given_timestamp(self):
        telemetry = ColumnSyncTelemetry()
        recorded = telemetry.record_event(_event(timestamp="2025-01-01T00:00:00Z"))
        assert recorded.timestamp == "2025-01-01T00:00:00Z"

    def test_log_builds_event(self):
        telemetry = ColumnSyncTelemetry()
        event = telemetry.log(**_event().to_dict())
        assert event.task_id == "t1"
        assert event.timestamp
        assert len(telemetry) == 1

    def test_failure_logs_error(self, caplog):
        telemetry = ColumnSyncTelemetry()
        with caplog.at_level(logging.INFO, logger="joan_mcp.telemetry"):
            telemetry.record_event(_failure())
        assert any(r.levelno == logging.ERROR for r in caplog.records)
        assert "Column sync failed for task #7" in caplog.text

    def test_inferred_logs_info(self, caplog):
        telemetry = ColumnSyncTelemetry()
        with caplog.at_level(logging.INFO, logger="joan_mcp.telemetry"):
            telemetry.record_event(_event())
        assert "Column synced for task #7" in caplog.text

    def test_events_are_immutable(self):
        event = ColumnSyncTelemetry().record_event(_event())
        with pytest.raises(AttributeError):
            event.inferred = False

    def test_all_events_returns_copy(self):
        telemetry = ColumnSyncTelemetry()
        telemetry.record_event(_event())
        telemetry.get_all_events().clear()
        assert len(telemetry) == 1


class TestQueries:
    def test_failures(self):
        telemetry = ColumnSyncTelemetry()
        telemetry.record_event(_event())
        telemetry.record_event(_failure(task_id="t2"))
        assert [e.task_id for e in telemetry.get_failures()] == ["t2"]

    def test_recent_failures_oldest_first(self):
        telemetry = ColumnSyncTelemetry()
        for i in range(5):
            telemetry.record_event(_failure(task_id=f"t{i}"))
        assert [e.task_id for e in telemetry.get_recent_failures(3)] == ["t2", "t3", "t4"]

    def test_recent_failures_zero_limit(self):
        telemetry = ColumnSyncTelemetry()
        telemetry.record_event(_failure())
        assert telemetry.get_recent_failures(0) == []

    def test_events_by_operation(self):
        telemetry = ColumnSyncTelemetry()
        telemetry.record_event(_event(operation="create"))
        telemetry.record_event(_event(operation="complete"))
        telemetry.record_event(_event(operation="create"))
        grouped = telemetry.get_events_by_operation()
        assert len(grouped["create"]) == 2
        assert len(grouped["complete"]) == 1
        assert len(telemetry.get_events_for_operation("create")) == 2

    def test_clear(self):
        telemetry = ColumnSyncTelemetry()
        telemetry.record_event(_event())
        telemetry.clear()
        assert len(telemetry) == 0


class TestMetrics:
    def test_empty(self):
        metrics = ColumnSyncTelemetry().get_metrics()
        assert metrics == {
            "total_events": 0,
            "failures": 0,
            "inferred_syncs": 0,
            "failure_rate": 0,
            "success_rate": 0,
        }

    def test_rates(self):
        telemetry = ColumnSyncTelemetry()
        telemetry.record_event(_event())
        telemetry.record_event(_event())
        telemetry.record_event(_event())
        telemetry.record_event(_failure())
        metrics = telemetry.get_metrics()
        assert metrics["total_events"] == 4
        assert metrics["failures"] == 1
        assert metrics["inferred_syncs"] == 3
        assert metrics["failure_rate"] == pytest.approx(0.25)
        assert metrics["success_rate"] == pytest.approx(0.75)

    def test_concurrent_appends(self):
        telemetry = ColumnSyncTelemetry()

        def worker():
            for _ in range(100):
                telemetry.record_event(_event(timestamp="x"))

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert telemetry.get_metrics()["total_events"] == 400


# ---------------------------------------------------------------------------
# ColumnSynchronizer
# ---------------------------------------------------------------------------


_TASK = {"id": "t1", "task_number": 12, "status": "todo", "column_id": "col-todo"}


class TestColumnForStatus:
    def test_match_records_inferred_event(self, board):
        sync = ColumnSynchronizer()
        result = sync.column_for_status(board, "done", task=_TASK, operation="complete")
        assert isinstance(result, Matched)
        assert result.column.id == "col-done"
        (event,) = sync.telemetry.get_all_events()
        assert event.operation == "complete"
        assert event.task_number == 12
        assert event.column_before == "To Do"
        assert event.column_after == "Done"
        assert event.status_before == "todo"
        assert event.status_after == "done"
        assert event.inferred is True
        assert event.inference_failed is False

    def test_unmatched_records_failure(self):
        sync = ColumnSynchronizer()
        cols = [Column(id="a", name="Alpha"), Column(id="o", name="Omega", position=1)]
        result = sync.column_for_status(cols, "in_progress", task=_TASK)
        assert isinstance(result, Unmatched)
        (event,) = sync.telemetry.get_failures()
        assert event.column_after == "col-todo"

    def test_strict_raises_after_recording(self):
        sync = ColumnSynchronizer()
        cols = [Column(id="a", name="Alpha")]
        with pytest.raises(ColumnInferenceError):
            sync.column_for_status(cols, "in_progress", task=_TASK, required=True)
        assert len(sync.telemetry.get_failures()) == 1

    def test_strict_empty_does_not_raise(self):
        sync = ColumnSynchronizer()
        result = sync.column_for_status([], "done", task=_TASK, required=True)
        assert result.reason == "no_columns"
        assert len(sync.telemetry.get_failures()) == 1

    def test_telemetry_does_not_change_decisions(self, board):
        sync = ColumnSynchronizer()
        sync.telemetry.record_event(_failure())
        assert sync.column_for_status(board, "todo").column.id == "col-todo"

    def test_uses_custom_aliases(self):
        sync = ColumnSynchronizer(aliases={"done": ("shipped",)})
        cols = [Column(id="s", name="Shipped"), Column(id="b", name="Backlog", position=1)]
        assert sync.column_for_status(cols, "done").column.id == "s"

    def test_shared_telemetry(self, board):
        telemetry = ColumnSyncTelemetry()
        ColumnSynchronizer(telemetry).column_for_status(board, "done")
        assert len(telemetry) == 1


class TestStatusForColumn:
    def test_alias_column(self):
        sync = ColumnSynchronizer()
        status = sync.status_for_column(Column(id="c", name="Doing"), task=_TASK)
        assert status == "in_progress"
        (event,) = sync.telemetry.get_all_events()
        assert event.status_after == "in_progress"
        assert event.inferred is True

    def test_unknown_column_warns_and_records_failure(self, caplog):
        sync = ColumnSynchronizer()
        with caplog.at_level(logging.WARNING, logger="joan_mcp.telemetry"):
            status = sync.status_for_column(Column(id="c", name="Icebox"), task=_TASK)
        assert status is None
        assert "Could not infer status" in caplog.text
        (event,) = sync.telemetry.get_failures()
        assert event.status_after == "todo"


class TestRecognizedStatus:
    def test_lookup_records_nothing(self):
        sync = ColumnSynchronizer()
        assert sync.recognized_status(Column(id="c", name="Code Review")) == "review"
        assert sync.recognized_status(Column(id="c", name="Icebox")) is None
        assert sync.telemetry.get_all_events() == []

    def test_custom_aliases(self):
        sync = ColumnSynchronizer(aliases={"done": ("shipped",)})
        assert sync.recognized_status(Column(id="c", name="Shipped")) == "done"


class TestDefaultColumn:
    def test_delegates(self, board):
        assert ColumnSynchronizer().default_column(board).id == "col-todo"

    def test_empty(self):
        assert ColumnSynchronizer().default_column([]) is None
