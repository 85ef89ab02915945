"""
HTTP request layer and Joan REST endpoints for joan-mcp.

Module-level functions, one per endpoint. Each returns parsed JSON (dicts
or lists of dicts) and raises JoanError / SetupError / ApiError on failure.
"""

import json
import logging
import re
import time
import urllib.error
import urllib.parse
import urllib.request
import uuid

from joan_mcp import config
from joan_mcp.exceptions import ApiError, HTTPError, JoanError, SetupError

logger = logging.getLogger(__name__)

_RETRYABLE_HTTP_CODES = frozenset({429, 502, 503, 504})


# ---------------------------------------------------------------------------
# Security helpers
# ---------------------------------------------------------------------------


def _mask_token(token):
    """Show only first 6 chars of a token for safe logging."""
    return token[:6] + "..." if len(token) > 6 else token


def _sanitize_error(body, max_len=500):
    """Truncate and clean error body for safe display."""
    if not body:
        return ""
    cleaned = re.sub(r"<[^>]+>", "", body)
    cleaned = re.sub(r"\s+", " ", cleaned).strip()
    if len(cleaned) > max_len:
        return cleaned[:max_len] + "... [truncated]"
    return cleaned


def _parse_error_body(body):
    """Return (message, details) from a JSON error body, tolerating garbage."""
    try:
        parsed = json.loads(body) if body else None
    except (json.JSONDecodeError, TypeError):
        parsed = None
    if isinstance(parsed, dict):
        message = parsed.get("error") or parsed.get("message") or "API request failed"
        return str(message), parsed.get("details")
    return _sanitize_error(body) or "API request failed", None


# ---------------------------------------------------------------------------
# HTTP request layer
# ---------------------------------------------------------------------------


def _log_http_event(**fields):
    """Emit structured HTTP logs when JOAN_MCP_HTTP_LOG is set."""
    if not config.HTTP_LOG_ENABLED:
        return
    logger.info("[HTTP] %s", json.dumps(fields, ensure_ascii=False, sort_keys=True))


def _parse_retry_after(headers):
    """Return Retry-After seconds from response headers, or None."""
    if not headers:
        return None
    value = headers.get("Retry-After")
    if value is None:
        return None
    try:
        secs = int(str(value).strip())
    except ValueError:
        return None
    return max(0, secs)


def _backoff(attempt):
    return config.HTTP_RETRY_BASE_SECONDS * (2**attempt)


def _http_request(url, data=None, headers=None, method="GET", idempotent=False):
    """Make an HTTP request with standard error handling.
    Returns parsed JSON on success (None for empty bodies).
    Raises HTTPError for HTTP errors (caller maps status codes).
    Raises JoanError on network/timeout/parse errors."""
    body = json.dumps(data).encode("utf-8") if data is not None else None
    request_id = (headers or {}).get("X-Request-Id")
    max_attempts = 1 + max(0, config.HTTP_MAX_RETRIES if idempotent else 0)
    timeout = config.HTTP_TIMEOUT_SECONDS
    last_error = None

    for attempt in range(max_attempts):
        start = time.perf_counter()
        will_retry = idempotent and attempt < max_attempts - 1
        req = urllib.request.Request(url, data=body, headers=headers or {}, method=method)
        _log_http_event(
            phase="request",
            method=method,
            url=url,
            attempt=attempt + 1,
            max_attempts=max_attempts,
            request_id=request_id,
        )
        try:
            with urllib.request.urlopen(req, timeout=timeout) as resp:
                raw = resp.read(config.HTTP_MAX_RESPONSE_BYTES + 1)
                if len(raw) > config.HTTP_MAX_RESPONSE_BYTES:
                    raise JoanError(
                        "[ERROR] Response too large from Joan API "
                        f"(>{config.HTTP_MAX_RESPONSE_BYTES} bytes)."
                    )
                _log_http_event(
                    phase="response",
                    method=method,
                    url=url,
                    status=getattr(resp, "status", 200),
                    bytes=len(raw),
                    latency_ms=round((time.perf_counter() - start) * 1000, 2),
                    request_id=request_id,
                )
                if not raw.strip():
                    return None
                try:
                    return json.loads(raw.decode("utf-8"))
                except (json.JSONDecodeError, UnicodeDecodeError):
                    raise JoanError(
                        "[ERROR] Unexpected response from Joan API (not valid JSON)."
                    ) from None
        except urllib.error.HTTPError as e:
            error_body = (
                e.read(config.HTTP_MAX_RESPONSE_BYTES).decode("utf-8", errors="replace")
                if e.fp
                else ""
            )
            retryable = e.code in _RETRYABLE_HTTP_CODES
            _log_http_event(
                phase="response",
                method=method,
                url=url,
                status=e.code,
                retryable=retryable,
                will_retry=will_retry and retryable,
                request_id=request_id,
            )
            if will_retry and retryable:
                retry_after = _parse_retry_after(getattr(e, "headers", None))
                time.sleep(_backoff(attempt) if retry_after is None else retry_after)
                continue
            raise HTTPError(e.code, e.reason, error_body, headers=e.headers) from e
        except TimeoutError as e:
            last_error = f"Request timed out after {timeout:g} seconds. Is the Joan API reachable?"
            _log_http_event(phase="network_error", url=url, error="timeout", will_retry=will_retry)
            if will_retry:
                time.sleep(_backoff(attempt))
                continue
            raise JoanError(f"[ERROR] {last_error}") from e
        except urllib.error.URLError as e:
            last_error = f"Connection failed: {e.reason}"
            _log_http_event(
                phase="network_error", url=url, error=str(e.reason), will_retry=will_retry
            )
            if will_retry:
                time.sleep(_backoff(attempt))
                continue
            raise JoanError(f"[ERROR] {last_error}") from e

    raise JoanError(f"[ERROR] {last_error or 'Request failed.'}")


def _build_url(path, params=None):
    url = config.API_URL + path
    if params:
        clean = {}
        for key, value in params.items():
            if value is None:
                continue
            clean[key] = str(value).lower() if isinstance(value, bool) else value
        if clean:
            url += "?" + urllib.parse.urlencode(clean)
    return url


def api_request(method, path, data=None, params=None):
    """Authenticated JSON request against the Joan API."""
    if not config.AUTH_TOKEN:
        raise SetupError(
            "[SETUP_NEEDED] No authentication token found. "
            "Set JOAN_AUTH_TOKEN in the environment or .env."
        )
    headers = {
        "Authorization": f"Bearer {config.AUTH_TOKEN}",
        "Content-Type": "application/json",
        "Accept": "application/json",
        "X-Request-Id": str(uuid.uuid4()),
    }
    url = _build_url(path, params)
    try:
        return _http_request(url, data, headers, method, idempotent=method == "GET")
    except HTTPError as e:
        message, details = _parse_error_body(e.body)
        if e.code == 401:
            raise SetupError(
                "[TOKEN_EXPIRED] Authentication failed. Check JOAN_AUTH_TOKEN "
                f"(token {_mask_token(config.AUTH_TOKEN)})."
            ) from e
        if e.code == 403:
            raise ApiError(403, f"[ERROR] Access denied: {message}", details) from e
        if e.code == 404:
            raise ApiError(404, f"[ERROR] Resource not found: {message}", details) from e
        if e.code == 422:
            detail = f"\nDetails: {json.dumps(details, indent=2)}" if details else ""
            raise ApiError(422, f"[ERROR] Validation error: {message}{detail}", details) from e
        if e.code == 429:
            raise ApiError(
                429, "[ERROR] Rate limit exceeded. Please wait before making more requests."
            ) from e
        raise ApiError(e.code, f"[ERROR] API Error ({e.code}): {message}", details) from e


def _as_list(result, *keys):
    """Unwrap list endpoints that answer with a bare array or a wrapper object."""
    if isinstance(result, list):
        return result
    if isinstance(result, dict):
        for key in (*keys, "items", "data"):
            value = result.get(key)
            if isinstance(value, list):
                return value
        return []
    if result is None:
        return []
    raise JoanError(
        f"[ERROR] Unexpected list response shape: got {type(result).__name__}."
    )


def _expect_object(result, operation):
    if isinstance(result, dict):
        return result
    raise JoanError(
        f"[ERROR] Unexpected {operation} response shape: "
        f"expected JSON object, got {type(result).__name__}."
    )


# ---------------------------------------------------------------------------
# Projects and columns
# ---------------------------------------------------------------------------


def list_projects(status=None, include_members=None, limit=None, offset=None):
    return _as_list(
        api_request(
            "GET",
            "/projects",
            params={
                "status": status,
                "include_members": include_members,
                "limit": limit,
                "offset": offset,
            },
        ),
        "projects",
    )


def get_project(project_id):
    return _expect_object(api_request("GET", f"/projects/{project_id}"), "project")


def create_project(data):
    return _expect_object(api_request("POST", "/projects", data), "create project")


def update_project(project_id, data):
    return _expect_object(api_request("PATCH", f"/projects/{project_id}", data), "update project")


def get_project_columns(project_id):
    return _as_list(api_request("GET", f"/tasks/kanban/{project_id}"), "columns")


def create_column(project_id, data):
    return _expect_object(
        api_request("POST", f"/projects/{project_id}/columns", data), "create column"
    )


def update_column(project_id, column_id, data):
    return _expect_object(
        api_request("PATCH", f"/projects/{project_id}/columns/{column_id}", data),
        "update column",
    )


def delete_column(project_id, column_id, move_tasks_to=None):
    result = api_request(
        "DELETE",
        f"/projects/{project_id}/columns/{column_id}",
        params={"move_tasks_to": move_tasks_to},
    )
    return result if isinstance(result, dict) else {"deleted": True}


def reorder_columns(project_id, column_order):
    return _as_list(
        api_request(
            "PUT", f"/projects/{project_id}/columns/reorder", {"column_order": column_order}
        ),
        "columns",
    )


def get_project_tasks(project_id, status=None, limit=None):
    return _as_list(
        api_request(
            "GET", f"/projects/{project_id}/tasks", params={"status": status, "limit": limit}
        ),
        "tasks",
    )


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


def list_tasks(status=None, limit=None):
    params = {"status": status, "limit": limit}
    return _as_list(api_request("GET", "/tasks", params=params), "tasks")


def get_task(task_id):
    return _expect_object(api_request("GET", f"/tasks/{task_id}"), "task")


def get_task_with_subtasks(task_id):
    return _expect_object(api_request("GET", f"/tasks/{task_id}/with-subtasks"), "task")


def create_task(data):
    return _expect_object(api_request("POST", "/tasks", data), "create task")


def update_task(task_id, data):
    return _expect_object(api_request("PATCH", f"/tasks/{task_id}", data), "update task")


def delete_task(task_id):
    api_request("DELETE", f"/tasks/{task_id}")


def complete_task(task_id):
    api_request("POST", f"/tasks/{task_id}/complete")


def bulk_update_tasks(updates):
    result = api_request("POST", "/tasks/batch-reorder", {"updates": updates})
    if isinstance(result, dict):
        return result
    return {"updated": len(updates)}


# ---------------------------------------------------------------------------
# Milestones, goals, notes
# ---------------------------------------------------------------------------


def list_milestones(project_id, status=None, include_tasks=None):
    return _as_list(
        api_request(
            "GET",
            f"/projects/{project_id}/milestones",
            params={"status": status, "include_tasks": include_tasks},
        ),
        "milestones",
    )


def get_milestone(project_id, milestone_id):
    return _expect_object(
        api_request("GET", f"/projects/{project_id}/milestones/{milestone_id}"), "milestone"
    )


def create_milestone(project_id, data):
    return _expect_object(
        api_request("POST", f"/projects/{project_id}/milestones", data), "create milestone"
    )


def update_milestone(project_id, milestone_id, data):
    return _expect_object(
        api_request("PATCH", f"/projects/{project_id}/milestones/{milestone_id}", data),
        "update milestone",
    )


def delete_milestone(project_id, milestone_id):
    api_request("DELETE", f"/projects/{project_id}/milestones/{milestone_id}")


def link_tasks_to_milestone(project_id, milestone_id, task_ids):
    api_request(
        "POST",
        f"/projects/{project_id}/milestones/{milestone_id}/tasks",
        {"task_ids": task_ids},
    )


def unlink_task_from_milestone(project_id, milestone_id, task_id):
    api_request("DELETE", f"/projects/{project_id}/milestones/{milestone_id}/tasks/{task_id}")


def list_goals(status=None, limit=None):
    params = {"status": status, "limit": limit}
    return _as_list(api_request("GET", "/goals", params=params), "goals")


def get_goal(goal_id):
    return _expect_object(api_request("GET", f"/goals/{goal_id}"), "goal")


def get_goal_stats(goal_id):
    return _expect_object(api_request("GET", f"/goals/{goal_id}/stats"), "goal stats")


def create_goal(data):
    return _expect_object(api_request("POST", "/goals", data), "create goal")


def update_goal(goal_id, data):
    return _expect_object(api_request("PATCH", f"/goals/{goal_id}", data), "update goal")


def delete_goal(goal_id):
    api_request("DELETE", f"/goals/{goal_id}")


def link_task_to_goal(goal_id, task_id):
    api_request("POST", f"/goals/{goal_id}/tasks", {"task_id": task_id})


def unlink_task_from_goal(goal_id, task_id):
    api_request("DELETE", f"/goals/{goal_id}/tasks/{task_id}")


def list_notes(folder_id=None, tag=None, limit=None):
    return _as_list(
        api_request("GET", "/notes", params={"folder_id": folder_id, "tag": tag, "limit": limit}),
        "notes",
    )


def get_note(note_id):
    return _expect_object(api_request("GET", f"/notes/{note_id}"), "note")


def create_note(data):
    return _expect_object(api_request("POST", "/notes", data), "create note")


def update_note(note_id, data):
    return _expect_object(api_request("PATCH", f"/notes/{note_id}", data), "update note")


def delete_note(note_id):
    api_request("DELETE", f"/notes/{note_id}")


# ---------------------------------------------------------------------------
# Comments, tags, attachments, user
# ---------------------------------------------------------------------------


def list_task_comments(task_id):
    return _as_list(api_request("GET", f"/tasks/{task_id}/comments"), "comments")


def create_task_comment(task_id, content):
    return _expect_object(
        api_request("POST", f"/tasks/{task_id}/comments", {"content": content}), "create comment"
    )


def update_task_comment(task_id, comment_id, content):
    return _expect_object(
        api_request("PATCH", f"/tasks/{task_id}/comments/{comment_id}", {"content": content}),
        "update comment",
    )


def delete_task_comment(task_id, comment_id):
    api_request("DELETE", f"/tasks/{task_id}/comments/{comment_id}")


def list_project_tags(project_id):
    return _as_list(api_request("GET", f"/projects/{project_id}/tags"), "tags")


def get_task_tags(project_id, task_id):
    return _as_list(api_request("GET", f"/projects/{project_id}/tasks/{task_id}/tags"), "tags")


def add_tag_to_task(project_id, task_id, tag_id):
    api_request("POST", f"/projects/{project_id}/tasks/{task_id}/tags", {"tag_id": tag_id})


def remove_tag_from_task(project_id, task_id, tag_id):
    api_request("DELETE", f"/projects/{project_id}/tasks/{task_id}/tags/{tag_id}")


def set_task_tags(project_id, task_id, tag_ids):
    return _as_list(
        api_request("PUT", f"/projects/{project_id}/tasks/{task_id}/tags", {"tag_ids": tag_ids}),
        "tags",
    )


def list_attachments(entity_type, entity_id):
    return _as_list(
        api_request("GET", f"/attachments/{entity_type}/{entity_id}"), "attachments"
    )


def get_current_user():
    return _expect_object(api_request("GET", "/auth/me"), "user")
