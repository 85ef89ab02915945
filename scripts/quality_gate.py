"""Run lint, format, type and test checks for joan-mcp; print a JSON report.

Usage:
    python scripts/quality_gate.py              # everything
    python scripts/quality_gate.py --skip-tests # no pytest
    python scripts/quality_gate.py --fix        # ruff --fix before checking
"""

from __future__ import annotations

import argparse
import json
import re
import subprocess
import sys
import time
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent

MYPY_TARGETS = [
    "joan_mcp/columns.py",
    "joan_mcp/statuses.py",
    "joan_mcp/telemetry.py",
    "joan_mcp/converters.py",
    "joan_mcp/client.py",
    "joan_mcp/exceptions.py",
]

_FILE_LINE_RE = re.compile(r"^\S+:\d+:\d+:")


def _run(cmd: list[str]) -> subprocess.CompletedProcess:
    return subprocess.run(cmd, capture_output=True, text=True, cwd=str(ROOT), timeout=300)


def _tool(*args: str) -> list[str]:
    return [sys.executable, "-m", *args]


def _outcome(proc: subprocess.CompletedProcess, started: float, **counts: int) -> dict:
    ok = proc.returncode == 0
    out: dict = {"status": "pass" if ok else "fail", **counts}
    out["duration_s"] = round(time.monotonic() - started, 1)
    if not ok:
        out["output"] = (proc.stdout.strip() or proc.stderr.strip())[-2000:]
    return out


def check_ruff_lint(fix: bool = False) -> dict:
    started = time.monotonic()
    if fix:
        _run(_tool("ruff", "check", "--fix", "."))
    proc = _run(_tool("ruff", "check", "."))
    errors = sum(1 for line in proc.stdout.splitlines() if _FILE_LINE_RE.match(line))
    return _outcome(proc, started, errors=errors)


def check_ruff_format() -> dict:
    started = time.monotonic()
    proc = _run(_tool("ruff", "format", "--check", "."))
    lines = proc.stdout.splitlines() + proc.stderr.splitlines()
    pending = sum(1 for line in lines if line.startswith("Would reformat"))
    return _outcome(proc, started, files_to_reformat=pending)


def check_mypy() -> dict:
    started = time.monotonic()
    proc = _run(_tool("mypy", *MYPY_TARGETS))
    errors = sum(1 for line in proc.stdout.splitlines() if ": error:" in line)
    return _outcome(proc, started, errors=errors)


def check_pytest() -> dict:
    started = time.monotonic()
    proc = _run(_tool("pytest", "tests/", "-q", "--no-header", "--tb=short"))
    lines = reversed(proc.stdout.splitlines())
    summary = next((line for line in lines if re.search(r"\d+ (passed|failed)", line)), "")
    passed = re.search(r"(\d+) passed", summary)
    failed = re.search(r"(\d+) failed", summary)
    return _outcome(
        proc,
        started,
        passed=int(passed.group(1)) if passed else 0,
        failed=int(failed.group(1)) if failed else 0,
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Run joan-mcp quality checks")
    parser.add_argument("--skip-tests", action="store_true", help="Skip pytest")
    parser.add_argument("--fix", action="store_true", help="Run ruff --fix first")
    args = parser.parse_args()

    started = time.monotonic()
    checks: dict[str, dict] = {}
    for name, run in (
        ("ruff_lint", lambda: check_ruff_lint(fix=args.fix)),
        ("ruff_format", check_ruff_format),
        ("mypy", check_mypy),
    ):
        print(f"Running {name}...", file=sys.stderr)
        checks[name] = run()

    if args.skip_tests:
        checks["pytest"] = {"status": "skip", "reason": "--skip-tests"}
    else:
        print("Running pytest...", file=sys.stderr)
        checks["pytest"] = check_pytest()

    overall = "pass" if all(c["status"] in ("pass", "skip") for c in checks.values()) else "fail"
    print(
        json.dumps(
            {
                "overall": overall,
                "checks": checks,
                "total_duration_s": round(time.monotonic() - started, 1),
            },
            indent=2,
        )
    )


if __name__ == "__main__":
    main()
