"""Input validation for tool arguments."""

from __future__ import annotations

import re

from joan_mcp import JoanError

_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")
_INPUT_LIMITS = {
    "title": 500,
    "description": 50_000,
    "content": 50_000,
    "comment": 10_000,
    "tag": 100,
    "column_name": 50,
    "status": 50,
}


def _validate_input(text: str, field: str) -> str:
    """Strip control characters and enforce length limits.

    Raises JoanError if text is not a string or exceeds the field limit.
    """
    if not isinstance(text, str):
        raise JoanError(f"[ERROR] {field} must be a string")
    cleaned = _CONTROL_RE.sub("", text)
    limit = _INPUT_LIMITS.get(field, 50_000)
    if len(cleaned) > limit:
        raise JoanError(f"[ERROR] {field} exceeds maximum length of {limit} characters")
    return cleaned


def _validate_tags(tags: list[str] | None) -> list[str] | None:
    if tags is None:
        return None
    if not isinstance(tags, list):
        raise JoanError("[ERROR] tags must be a list of strings")
    return [_validate_input(t, "tag") for t in tags]


def _validate_column_name(name: str) -> str:
    cleaned = _validate_input(name, "column_name").strip()
    if not cleaned:
        raise JoanError("[ERROR] column name must not be empty")
    return cleaned


def _validate_color(color: str | None) -> str | None:
    """Hex color like #3B82F6, or None."""
    if color is None:
        return None
    if not isinstance(color, str) or not _COLOR_RE.match(color):
        raise JoanError(f"[ERROR] color must be a hex code like #3B82F6, got: {color!r}")
    return color


def _validate_status(status: str) -> str:
    if not isinstance(status, str) or not status.strip():
        raise JoanError("[ERROR] status must be a non-empty string")
    return _validate_input(status, "status").strip()
