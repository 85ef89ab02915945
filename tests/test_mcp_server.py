"""Tests for MCP server tool wrappers.

Mocks at JoanClient level. Verifies each tool calls the correct client
method, validates its arguments, and converts errors to contract dicts.
"""

import pytest

mcp_mod = pytest.importorskip("joan_mcp.mcp_server", reason="mcp package not installed")

import importlib  # noqa: E402
import json  # noqa: E402
from unittest.mock import MagicMock, patch  # noqa: E402

from joan_mcp.exceptions import ColumnInferenceError, JoanError, SetupError  # noqa: E402

_core = importlib.import_module("joan_mcp.mcp_server._core")
_resources = importlib.import_module("joan_mcp.mcp_server._resources")

# Test UUIDs (36-char, 4 dashes: passes _validate_uuid)
_P1 = "00000000-0000-0000-0000-0000000000p1"
_T1 = "00000000-0000-0000-0000-0000000000t1"
_T2 = "00000000-0000-0000-0000-0000000000t2"
_C1 = "00000000-0000-0000-0000-0000000000c1"
_BAD = "bad-id"  # intentionally invalid for error tests


@pytest.fixture(autouse=True)
def _reset_client_cache():
    """Reset the cached JoanClient between tests."""
    _core._client = None
    yield
    _core._client = None


def _mock_client(**method_returns):
    """Return a patched JoanClient whose methods return given values."""
    client = MagicMock()
    for name, val in method_returns.items():
        getattr(client, name).return_value = val
    return client


# ---------------------------------------------------------------------------
# Response contract
# ---------------------------------------------------------------------------


class TestContract:
    def test_contract_error_shape(self):
        err = _core._contract_error("boom", "setup")
        assert err["ok"] is False
        assert err["type"] == "setup"
        assert err["error"] == "boom"
        assert err["error_detail"] == {"type": "setup", "message": "boom"}
        assert err["schema_version"] == "1.0"

    def test_dict_gains_ok(self):
        result = _core._finalize_tool_result({"a": 1})
        assert result == {"a": 1, "ok": True, "schema_version": "1.0"}

    def test_envelope_mode(self, monkeypatch):
        monkeypatch.setattr(_core, "MCP_RESPONSE_MODE", "envelope")
        assert _core._finalize_tool_result({"a": 1}) == {
            "ok": True,
            "schema_version": "1.0",
            "data": {"a": 1},
        }

    def test_envelope_mode_keeps_errors(self, monkeypatch):
        monkeypatch.setattr(_core, "MCP_RESPONSE_MODE", "envelope")
        assert _core._finalize_tool_result(_core._contract_error("x"))["ok"] is False

    def test_unknown_method(self):
        result = _core._call("drop_database")
        assert result["ok"] is False
        assert "Unknown method" in result["error"]

    def test_whitelist_matches_client(self):
        from joan_mcp.client import JoanClient

        assert "get_account" not in _core._ALLOWED_METHODS
        for name in _core._ALLOWED_METHODS:
            assert callable(getattr(JoanClient, name, None)), name

    def test_validate_uuid(self):
        assert _core._validate_uuid(_T1) == _T1
        with pytest.raises(JoanError, match="36-char UUID"):
            _core._validate_uuid(_BAD)


class TestErrorConversion:
    @patch("joan_mcp.mcp_server._core.JoanClient")
    def test_setup_error(self, MockClient):
        client = _mock_client()
        client.list_tasks.side_effect = SetupError("[SETUP_NEEDED] no token")
        MockClient.return_value = client
        result = mcp_mod.list_tasks()
        assert result["ok"] is False
        assert result["type"] == "setup"

    @patch("joan_mcp.mcp_server._core.JoanClient")
    def test_column_inference_error(self, MockClient):
        client = _mock_client()
        client.complete_task.side_effect = ColumnInferenceError(
            "[ERROR] Cannot find column for status='done'",
            status="done",
            expected=("done", "completed"),
            available=("Alpha",),
        )
        MockClient.return_value = client
        result = mcp_mod.complete_task(_T1)
        assert result["type"] == "column_inference"
        assert result["error_detail"]["expected"] == ["done", "completed"]
        assert result["error_detail"]["available"] == ["Alpha"]

    @patch("joan_mcp.mcp_server._core.JoanClient")
    def test_joan_error(self, MockClient):
        client = _mock_client()
        client.get_task.side_effect = JoanError("[ERROR] Resource not found")
        MockClient.return_value = client
        result = mcp_mod.get_task(_T1)
        assert result["type"] == "error"
        assert "Resource not found" in result["error"]

    @patch("joan_mcp.mcp_server._core.JoanClient")
    def test_unexpected_error(self, MockClient):
        client = _mock_client()
        client.get_project.side_effect = RuntimeError("kaboom")
        MockClient.return_value = client
        result = mcp_mod.get_project(_P1)
        assert result["error"] == "Unexpected error: kaboom"

    @patch("joan_mcp.mcp_server._core.JoanClient")
    def test_client_cached(self, MockClient):
        MockClient.return_value = _mock_client(list_goals=[])
        mcp_mod.list_goals()
        mcp_mod.list_goals()
        MockClient.assert_called_once_with(validate_token=False)


# ---------------------------------------------------------------------------
# Project tools
# ---------------------------------------------------------------------------


class TestProjectTools:
    @patch("joan_mcp.mcp_server._core.JoanClient")
    def test_list_projects(self, MockClient):
        MockClient.return_value = _mock_client(list_projects=[{"id": "p1", "name": "Site"}])
        result = mcp_mod.list_projects(status="active")
        assert result["count"] == 1
        assert "- Site (ID: p1)" in result["display"]

    @patch("joan_mcp.mcp_server._core.JoanClient")
    def test_list_columns(self, MockClient):
        client = _mock_client(list_columns={"columns": [], "display": "No columns found."})
        MockClient.return_value = client
        result = mcp_mod.list_columns(_P1)
        assert result["ok"] is True
        client.list_columns.assert_called_once_with(project_id=_P1)

    def test_list_columns_bad_id(self):
        result = mcp_mod.list_columns(_BAD)
        assert result["ok"] is False
        assert "project_id" in result["error"]

    @patch("joan_mcp.mcp_server._core.JoanClient")
    def test_create_project(self, MockClient):
        client = _mock_client(create_project={"ok": True, "project": {"id": "p9"}})
        MockClient.return_value = client
        mcp_mod.create_project("Site\x00", status="planning")
        client.create_project.assert_called_once_with(
            name="Site", description=None, status="planning", start_date=None, end_date=None
        )

    def test_get_milestone_bad_id(self):
        assert mcp_mod.get_milestone(_P1, _BAD)["ok"] is False

    @patch("joan_mcp.mcp_server._core.JoanClient")
    def test_create_milestone(self, MockClient):
        client = _mock_client(create_milestone={"ok": True, "milestone": {"id": "m1"}})
        MockClient.return_value = client
        mcp_mod.create_milestone(_P1, "Beta", status="upcoming")
        client.create_milestone.assert_called_once_with(
            project_id=_P1, name="Beta", description=None, target_date=None, status="upcoming"
        )

    def test_update_milestone_progress_range(self):
        result = mcp_mod.update_milestone(_P1, _T2, progress=101)
        assert result["ok"] is False
        assert "progress" in result["error"]

    @patch("joan_mcp.mcp_server._core.JoanClient")
    def test_link_tasks_to_milestone(self, MockClient):
        client = _mock_client(link_tasks_to_milestone={"ok": True, "linked": 2})
        MockClient.return_value = client
        assert mcp_mod.link_tasks_to_milestone(_P1, _C1, [_T1, _T2])["linked"] == 2
        client.link_tasks_to_milestone.assert_called_once_with(
            project_id=_P1, milestone_id=_C1, task_ids=[_T1, _T2]
        )

    def test_link_tasks_to_milestone_validates(self):
        assert mcp_mod.link_tasks_to_milestone(_P1, _C1, [])["ok"] is False
        assert mcp_mod.link_tasks_to_milestone(_P1, _C1, [_T1, _BAD])["ok"] is False


# ---------------------------------------------------------------------------
# Column tools
# ---------------------------------------------------------------------------


class TestColumnTools:
    @patch("joan_mcp.mcp_server._core.JoanClient")
    def test_create_column(self, MockClient):
        client = _mock_client(create_column={"ok": True, "inferred_status": "review"})
        MockClient.return_value = client
        result = mcp_mod.create_column(_P1, "  QA  ", color="#3b82f6")
        assert result["inferred_status"] == "review"
        client.create_column.assert_called_once_with(
            project_id=_P1, name="QA", position=None, default_status=None, color="#3b82f6"
        )

    def test_create_column_empty_name(self):
        result = mcp_mod.create_column(_P1, "   ")
        assert result["ok"] is False
        assert "must not be empty" in result["error"]

    def test_create_column_name_too_long(self):
        assert mcp_mod.create_column(_P1, "x" * 51)["ok"] is False

    def test_create_column_bad_color(self):
        result = mcp_mod.create_column(_P1, "QA", color="blue")
        assert result["ok"] is False
        assert "hex code" in result["error"]

    def test_create_column_negative_position(self):
        assert mcp_mod.create_column(_P1, "QA", position=-1)["ok"] is False

    @patch("joan_mcp.mcp_server._core.JoanClient")
    def test_delete_column(self, MockClient):
        client = _mock_client(delete_column={"ok": True, "tasks_moved": 1})
        MockClient.return_value = client
        mcp_mod.delete_column(_P1, _C1, move_tasks_to=_T2)
        client.delete_column.assert_called_once_with(
            project_id=_P1, column_id=_C1, move_tasks_to=_T2
        )

    def test_delete_column_bad_target(self):
        result = mcp_mod.delete_column(_P1, _C1, move_tasks_to=_BAD)
        assert result["ok"] is False
        assert "move_tasks_to" in result["error"]

    @patch("joan_mcp.mcp_server._core.JoanClient")
    def test_reorder_columns(self, MockClient):
        client = _mock_client(reorder_columns={"ok": True, "order": "B → A"})
        MockClient.return_value = client
        assert mcp_mod.reorder_columns(_P1, [_C1, _T1])["order"] == "B → A"
        client.reorder_columns.assert_called_once_with(project_id=_P1, column_order=[_C1, _T1])

    def test_reorder_columns_validates(self):
        assert mcp_mod.reorder_columns(_P1, [])["ok"] is False
        assert mcp_mod.reorder_columns(_P1, "not-a-list")["ok"] is False
        assert mcp_mod.reorder_columns(_P1, [_C1, _BAD])["ok"] is False

    @patch("joan_mcp.mcp_server._core.JoanClient")
    def test_client_error_becomes_contract_error(self, MockClient):
        client = MagicMock()
        client.reorder_columns.side_effect = JoanError("[ERROR] column_order must list every")
        MockClient.return_value = client
        result = mcp_mod.reorder_columns(_P1, [_C1])
        assert result["ok"] is False
        assert "must list every" in result["error"]


# ---------------------------------------------------------------------------
# Task tools
# ---------------------------------------------------------------------------


class TestTaskTools:
    @patch("joan_mcp.mcp_server._core.JoanClient")
    def test_list_tasks_wraps_list(self, MockClient):
        MockClient.return_value = _mock_client(
            list_tasks=[{"id": "t1", "title": "Ship", "status": "done"}]
        )
        result = mcp_mod.list_tasks(project_id=_P1, status="done")
        assert result["count"] == 1
        assert result["tasks"][0]["id"] == "t1"
        assert "Found 1 task(s)" in result["display"]

    @patch("joan_mcp.mcp_server._core.JoanClient")
    def test_create_task(self, MockClient):
        client = _mock_client(create_task={"ok": True, "task": {"id": "t1"}, "sync": None})
        MockClient.return_value = client
        mcp_mod.create_task("Ship it", project_id=_P1, status="in_progress")
        client.create_task.assert_called_once_with(
            title="Ship it",
            description=None,
            project_id=_P1,
            column_id=None,
            status="in_progress",
            priority=None,
            due_date=None,
            estimated_pomodoros=None,
            assignee_id=None,
            tags=None,
            sync_column=True,
        )

    def test_create_task_title_too_long(self):
        result = mcp_mod.create_task("x" * 501)
        assert result["ok"] is False
        assert "maximum length" in result["error"]

    def test_create_task_bad_column_id(self):
        assert mcp_mod.create_task("A", column_id=_BAD)["ok"] is False

    @patch("joan_mcp.mcp_server._core.JoanClient")
    def test_update_task(self, MockClient):
        client = _mock_client(update_task={"ok": True, "sync": "status-to-column"})
        MockClient.return_value = client
        result = mcp_mod.update_task(_T1, status="done")
        assert result["sync"] == "status-to-column"
        assert client.update_task.call_args.kwargs["status"] == "done"

    def test_update_task_bad_id(self):
        assert mcp_mod.update_task(_BAD, status="done")["ok"] is False

    @patch("joan_mcp.mcp_server._core.JoanClient")
    def test_complete_task(self, MockClient):
        client = _mock_client(complete_task={"ok": True, "column": "Done"})
        MockClient.return_value = client
        assert mcp_mod.complete_task(_T1)["column"] == "Done"
        client.complete_task.assert_called_once_with(task_id=_T1, sync_column=True)

    @patch("joan_mcp.mcp_server._core.JoanClient")
    def test_bulk_update(self, MockClient):
        client = _mock_client(bulk_update_tasks={"ok": True, "updated": 2})
        MockClient.return_value = client
        mcp_mod.bulk_update_tasks(
            [{"task_id": _T1, "status": "done"}, {"task_id": _T2, "column_id": _C1}]
        )
        client.bulk_update_tasks.assert_called_once_with(
            updates=[{"task_id": _T1, "status": "done"}, {"task_id": _T2, "column_id": _C1}]
        )

    def test_bulk_update_validates(self):
        assert mcp_mod.bulk_update_tasks([])["ok"] is False
        assert mcp_mod.bulk_update_tasks([{"task_id": _BAD}])["ok"] is False
        assert mcp_mod.bulk_update_tasks(["nope"])["ok"] is False
        assert mcp_mod.bulk_update_tasks([{"task_id": _T1, "status": 3}])["ok"] is False

    @patch("joan_mcp.mcp_server._core.JoanClient")
    def test_board_status_accepted_everywhere(self, MockClient):
        client = _mock_client(
            create_task={"ok": True}, update_task={"ok": True}, bulk_update_tasks={"ok": True}
        )
        MockClient.return_value = client
        assert mcp_mod.create_task("A", project_id=_P1, status="review")["ok"] is True
        assert mcp_mod.update_task(_T1, status=" review ")["ok"] is True
        assert mcp_mod.bulk_update_tasks([{"task_id": _T1, "status": "review"}])["ok"] is True
        assert client.create_task.call_args.kwargs["status"] == "review"
        assert client.update_task.call_args.kwargs["status"] == "review"
        client.bulk_update_tasks.assert_called_once_with(
            updates=[{"task_id": _T1, "status": "review"}]
        )

    def test_blank_status_rejected(self):
        result = mcp_mod.update_task(_T1, status="  ")
        assert result["ok"] is False
        assert "status" in result["error"]


# ---------------------------------------------------------------------------
# Content and telemetry tools
# ---------------------------------------------------------------------------


class TestContentTools:
    @patch("joan_mcp.mcp_server._core.JoanClient")
    def test_list_notes(self, MockClient):
        MockClient.return_value = _mock_client(list_notes=[{"id": "n1"}])
        assert mcp_mod.list_notes(tag="ideas")["notes"] == [{"id": "n1"}]

    @patch("joan_mcp.mcp_server._core.JoanClient")
    def test_comment_strips_control_chars(self, MockClient):
        client = _mock_client(create_task_comment={"ok": True})
        MockClient.return_value = client
        mcp_mod.create_task_comment(_T1, "hi\x07 there")
        client.create_task_comment.assert_called_once_with(task_id=_T1, content="hi there")

    def test_attachments_bad_entity_type(self):
        result = mcp_mod.list_attachments("planet", _T1)
        assert result["ok"] is False
        assert "entity_type" in result["error"]

    @patch("joan_mcp.mcp_server._core.JoanClient")
    def test_list_comments_display(self, MockClient):
        MockClient.return_value = _mock_client(list_task_comments=[])
        assert mcp_mod.list_task_comments(_T1)["display"] == "No comments found."

    @patch("joan_mcp.mcp_server._core.JoanClient")
    def test_create_goal(self, MockClient):
        client = _mock_client(create_goal={"ok": True, "goal": {"id": "g1"}})
        MockClient.return_value = client
        mcp_mod.create_goal("Read more", goal_type="weekly")
        client.create_goal.assert_called_once_with(
            title="Read more", description=None, goal_type="weekly", target_date=None
        )

    def test_update_goal_progress_range(self):
        assert mcp_mod.update_goal(_T1, progress=-5)["ok"] is False

    @patch("joan_mcp.mcp_server._core.JoanClient")
    def test_link_task_to_goal(self, MockClient):
        client = _mock_client(link_task_to_goal={"ok": True, "linked": True})
        MockClient.return_value = client
        mcp_mod.link_task_to_goal(_C1, _T1)
        client.link_task_to_goal.assert_called_once_with(goal_id=_C1, task_id=_T1)

    @patch("joan_mcp.mcp_server._core.JoanClient")
    def test_update_note(self, MockClient):
        client = _mock_client(update_note={"ok": True})
        MockClient.return_value = client
        mcp_mod.update_note(_C1, is_pinned=True)
        client.update_note.assert_called_once_with(
            note_id=_C1, title=None, content=None, tags=None, is_pinned=True, is_archived=None
        )

    def test_update_comment_too_long(self):
        assert mcp_mod.update_task_comment(_T1, _C1, "x" * 10_001)["ok"] is False

    @patch("joan_mcp.mcp_server._core.JoanClient")
    def test_set_task_tags(self, MockClient):
        client = _mock_client(set_task_tags={"ok": True, "count": 0})
        MockClient.return_value = client
        assert mcp_mod.set_task_tags(_P1, _T1, [])["count"] == 0
        client.set_task_tags.assert_called_once_with(project_id=_P1, task_id=_T1, tag_ids=[])

    def test_set_task_tags_validates(self):
        assert mcp_mod.set_task_tags(_P1, _T1, "urgent")["ok"] is False
        assert mcp_mod.set_task_tags(_P1, _T1, [_BAD])["ok"] is False

    def test_remove_tag_bad_id(self):
        result = mcp_mod.remove_tag_from_task(_P1, _T1, _BAD)
        assert result["ok"] is False
        assert "tag_id" in result["error"]


class TestTelemetryTools:
    @patch("joan_mcp.mcp_server._core.JoanClient")
    def test_metrics(self, MockClient):
        client = _mock_client(column_sync_metrics={"total_events": 0, "recent_failures": []})
        MockClient.return_value = client
        assert mcp_mod.get_column_sync_metrics(recent_failures=5)["total_events"] == 0
        client.column_sync_metrics.assert_called_once_with(recent=5)

    @patch("joan_mcp.mcp_server._core.JoanClient")
    def test_failures(self, MockClient):
        client = _mock_client(column_sync_failures={"count": 0, "failures": []})
        MockClient.return_value = client
        mcp_mod.get_column_sync_failures(operation="complete")
        client.column_sync_failures.assert_called_once_with(operation="complete")

    def test_aliases_with_real_client(self):
        with patch("joan_mcp.mcp_server._core.JoanClient") as MockClient:
            from joan_mcp.client import JoanClient

            MockClient.side_effect = lambda **kw: JoanClient(**kw)
            result = mcp_mod.get_status_aliases()
        assert "doing" in result["aliases"]["in_progress"]
        assert result["version"] == 1
        assert "review" not in result["task_statuses"]


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------


class TestResources:
    def test_uris(self):
        uris = [uri for uri, _fn in _resources.RESOURCES]
        assert "joan://projects/{project_id}/columns" in uris
        assert "joan://tasks/{task_id}" in uris

    @patch("joan_mcp.mcp_server._core.JoanClient")
    def test_columns_resource_is_json(self, MockClient):
        MockClient.return_value = _mock_client(list_columns={"columns": [{"id": "c1"}]})
        data = json.loads(_resources.project_columns_resource("p1"))
        assert data["columns"] == [{"id": "c1"}]
        assert data["ok"] is True

    @patch("joan_mcp.mcp_server._core.JoanClient")
    def test_projects_resource_list(self, MockClient):
        MockClient.return_value = _mock_client(list_projects=[{"id": "p1"}])
        assert json.loads(_resources.projects_resource()) == [{"id": "p1"}]
