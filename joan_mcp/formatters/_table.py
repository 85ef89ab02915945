"""Low-level text helpers shared by the list formatters (stdlib only)."""

import re

_CONTROL_RE = re.compile(r"\x1b\[[0-9;]*[A-Za-z]|[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


def _trunc(s, maxlen):
    """Truncate string with ellipsis indicator."""
    if not s:
        return ""
    return s[: maxlen - 1] + "…" if len(s) > maxlen else s


def _sanitize_str(s):
    """Strip ANSI escape sequences and control chars from display text.
    Preserves newlines (\\n) and tabs (\\t)."""
    if not s:
        return s
    return _CONTROL_RE.sub("", str(s))


def _listing(noun, items, render, empty=None):
    """Build "Found N noun(s):" followed by one rendered line per item."""
    if not items:
        return empty or f"No {noun}s found."
    lines = [_sanitize_str(render(item)) for item in items]
    return f"Found {len(items)} {noun}(s):\n\n" + "\n".join(lines)
