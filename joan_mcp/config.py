"""
joan-mcp shared configuration, constants, and logging setup.
Standalone module: no imports from other project files.
"""

import logging
import os
import sys

# ---------------------------------------------------------------------------
# .env path and helpers
# ---------------------------------------------------------------------------

_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))
_PROJECT_ROOT = os.path.dirname(_PACKAGE_DIR)

ENV_PATH = os.path.join(_PROJECT_ROOT, ".env")

_ENV_PREFIX = "JOAN_"


def load_env():
    """Read KEY=VALUE pairs from .env, then let JOAN_* process variables win."""
    env = {}
    if os.path.exists(ENV_PATH):
        with open(ENV_PATH) as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, val = line.split("=", 1)
                    env[key.strip()] = val.strip()
    for key, val in os.environ.items():
        if key.startswith(_ENV_PREFIX):
            env[key] = val
    return env


def _env_bool(key, default=False):
    """Parse common boolean env formats."""
    raw = env.get(key)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(key, default):
    """Parse integer env values with fallback."""
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(key, default):
    """Parse float env values with fallback."""
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_choice(key, choices, default):
    raw = (env.get(key) or "").strip().lower()
    return raw if raw in choices else default


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

VERSION = "0.3.0"

DEFAULT_API_URL = "https://joan-api.alexbbenson.workers.dev/api/v1"

VALID_ENTITY_TYPES = {"project", "milestone", "task", "note", "folder", "user"}

CONTRACT_SCHEMA_VERSION = "1.0"

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "silent": logging.CRITICAL + 10,
}

# ---------------------------------------------------------------------------
# Module-level state (loaded from .env and JOAN_* variables)
# ---------------------------------------------------------------------------

env = load_env()

API_URL = (env.get("JOAN_API_URL") or DEFAULT_API_URL).rstrip("/")
AUTH_TOKEN = env.get("JOAN_AUTH_TOKEN", "")
HTTP_TIMEOUT_SECONDS = max(1, _env_int("JOAN_MCP_TIMEOUT_MS", 10_000)) / 1000.0
HTTP_MAX_RETRIES = _env_int("JOAN_MCP_MAX_RETRIES", 2)
HTTP_RETRY_BASE_SECONDS = _env_float("JOAN_MCP_RETRY_BASE_SECONDS", 0.5)
HTTP_MAX_RESPONSE_BYTES = _env_int("JOAN_MCP_MAX_RESPONSE_BYTES", 5_000_000)
HTTP_LOG_ENABLED = _env_bool("JOAN_MCP_HTTP_LOG", False)
LOG_LEVEL = _env_choice("JOAN_MCP_LOG_LEVEL", LOG_LEVELS, "info")
MCP_RESPONSE_MODE = _env_choice("JOAN_MCP_RESPONSE_MODE", {"legacy", "envelope"}, "legacy")


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


def configure_logging(level=None):
    """Attach a stderr handler to the ``joan_mcp`` logger.

    stdout carries the MCP stdio transport, so log output must never go
    there. Idempotent: a second call only updates the level.
    """
    name = (level or LOG_LEVEL).lower()
    numeric = LOG_LEVELS.get(name, logging.INFO)
    pkg_logger = logging.getLogger("joan_mcp")
    pkg_logger.setLevel(numeric)
    if not pkg_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S",
            )
        )
        pkg_logger.addHandler(handler)
    for handler in pkg_logger.handlers:
        handler.setLevel(numeric)
    return pkg_logger
