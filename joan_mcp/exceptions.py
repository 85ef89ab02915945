"""
joan-mcp exception hierarchy.

All custom exceptions live here to avoid circular imports.
"""


class JoanError(Exception):
    """Exit code 1: validation, not-found, network, parse errors."""

    exit_code = 1


class SetupError(JoanError):
    """Exit code 2: missing or rejected auth token, no config."""

    exit_code = 2


class ApiError(JoanError):
    """Non-2xx response from the Joan API."""

    def __init__(self, status_code, message, details=None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class ColumnInferenceError(JoanError):
    """No Kanban column could be matched for a status in strict mode."""

    def __init__(self, message, *, status, expected=(), available=(), reason="no_match"):
        super().__init__(message)
        self.status = status
        self.expected = tuple(expected)
        self.available = tuple(available)
        self.reason = reason


class HTTPError(Exception):
    """Raised by _http_request for HTTP errors that callers want to handle."""

    def __init__(self, code, reason, body, headers=None):
        self.code = code
        self.reason = reason
        self.body = body
        self.headers = headers or {}
