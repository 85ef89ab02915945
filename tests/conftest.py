"""
Shared test fixtures for joan-mcp tests.
Patches config module to avoid loading a real .env or token and making API calls.
"""

import os
import sys

import pytest

# Add project root to path so imports work without an install
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch):
    """Ensure every test starts with a clean config state.
    Prevents tests from reading the real .env or hitting the real API."""
    from joan_mcp import config

    monkeypatch.setattr(config, "env", {})
    monkeypatch.setattr(config, "API_URL", "https://joan.test/api/v1")
    monkeypatch.setattr(config, "AUTH_TOKEN", "fake-token")
    monkeypatch.setattr(config, "HTTP_MAX_RETRIES", 2)
    monkeypatch.setattr(config, "HTTP_RETRY_BASE_SECONDS", 0)
    monkeypatch.setattr(config, "HTTP_LOG_ENABLED", False)


@pytest.fixture
def board():
    """A typical four-lane board, deliberately out of position order."""
    from joan_mcp.columns import Column

    return [
        Column(id="col-doing", name="In Progress", position=1),
        Column(id="col-todo", name="To Do", position=0, is_default=True),
        Column(id="col-review", name="Review", position=2, wip_limit=3),
        Column(id="col-done", name="Done", position=3),
    ]
