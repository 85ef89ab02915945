"""Core helpers: client caching, _call dispatcher, response contract, UUID validation."""

from __future__ import annotations

from joan_mcp import ColumnInferenceError, JoanClient, JoanError, SetupError
from joan_mcp.config import CONTRACT_SCHEMA_VERSION, MCP_RESPONSE_MODE

_client: JoanClient | None = None


def _get_client() -> JoanClient:
    """Return a cached JoanClient, creating one on first use.

    The client owns the server's column sync telemetry, so the cache is
    also what keeps the event log alive between tool calls.
    """
    global _client
    if _client is None:
        _client = JoanClient(validate_token=False)
    return _client


def _contract_error(message: str, error_type: str = "error", **extra) -> dict:
    """Return a stable MCP error envelope with legacy compatibility fields."""
    out = {
        "ok": False,
        "schema_version": CONTRACT_SCHEMA_VERSION,
        "type": error_type,  # legacy
        "error": message,  # legacy
        "error_detail": {
            "type": error_type,
            "message": message,
        },
    }
    if extra:
        out["error_detail"].update(extra)
    return out


def _ensure_contract_dict(payload: dict) -> dict:
    """Add stable contract metadata to dict responses."""
    out = dict(payload)
    out.setdefault("schema_version", CONTRACT_SCHEMA_VERSION)
    if out.get("ok") is False:
        error_type = str(out.get("type", "error"))
        error_message = out.get("error", "Unknown error")
        if not isinstance(error_message, str):
            error_message = str(error_message)
            out["error"] = error_message
        out.setdefault("error_detail", {"type": error_type, "message": error_message})
        return out
    out.setdefault("ok", True)
    return out


def _finalize_tool_result(result):
    """Finalize tool response based on configured MCP response mode.

    Modes:
        - legacy (default): lists pass through; dicts gain ok/schema_version.
        - envelope: always return {"ok", "schema_version", "data"} for success.
    """
    if isinstance(result, dict):
        normalized = _ensure_contract_dict(result)
        if normalized.get("ok") is False:
            return normalized
        if MCP_RESPONSE_MODE == "envelope":
            data = dict(normalized)
            data.pop("ok", None)
            data.pop("schema_version", None)
            return {"ok": True, "schema_version": CONTRACT_SCHEMA_VERSION, "data": data}
        return normalized
    if MCP_RESPONSE_MODE == "envelope":
        return {"ok": True, "schema_version": CONTRACT_SCHEMA_VERSION, "data": result}
    return result


_ALLOWED_METHODS = {
    "list_projects",
    "get_project",
    "create_project",
    "update_project",
    "list_columns",
    "create_column",
    "update_column",
    "delete_column",
    "reorder_columns",
    "list_tasks",
    "get_task",
    "create_task",
    "update_task",
    "complete_task",
    "delete_task",
    "bulk_update_tasks",
    "list_milestones",
    "get_milestone",
    "create_milestone",
    "update_milestone",
    "delete_milestone",
    "link_tasks_to_milestone",
    "unlink_task_from_milestone",
    "list_goals",
    "get_goal",
    "create_goal",
    "update_goal",
    "delete_goal",
    "link_task_to_goal",
    "unlink_task_from_goal",
    "list_notes",
    "get_note",
    "create_note",
    "update_note",
    "delete_note",
    "list_task_comments",
    "create_task_comment",
    "update_task_comment",
    "delete_task_comment",
    "list_project_tags",
    "list_task_tags",
    "add_tag_to_task",
    "remove_tag_from_task",
    "set_task_tags",
    "list_attachments",
    "column_sync_metrics",
    "column_sync_failures",
    "status_aliases",
}


def _validate_uuid(value: str, field: str = "task_id") -> str:
    """Validate that a string is a 36-char UUID. Raises JoanError if not."""
    if not isinstance(value, str) or len(value) != 36 or value.count("-") != 4:
        raise JoanError(f"[ERROR] {field} must be a full 36-char UUID, got: {value!r}")
    return value


def _call(method_name: str, **kwargs):
    """Call a JoanClient method, converting exceptions to error dicts."""
    if method_name not in _ALLOWED_METHODS:
        return _contract_error(f"Unknown method: {method_name}", "error")
    try:
        client = _get_client()
        return getattr(client, method_name)(**kwargs)
    except SetupError as e:
        return _contract_error(str(e), "setup")
    except ColumnInferenceError as e:
        return _contract_error(
            str(e),
            "column_inference",
            status=e.status,
            expected=list(e.expected),
            available=list(e.available),
        )
    except JoanError as e:
        return _contract_error(str(e), "error")
    except Exception as e:
        return _contract_error(f"Unexpected error: {e}", "error")
