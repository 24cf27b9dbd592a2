#!/usr/bin/env python3
"""Run the text_converter tests headless (QT_QPA_PLATFORM=offscreen).

Usage:
  python scripts/run_tests_offscreen.py [--suite NAME] [--log-level LEVEL] [--log-cats CATS] [--] [pytest args...]

Examples:
  python scripts/run_tests_offscreen.py --suite codecs
  python scripts/run_tests_offscreen.py --log-level debug --log-cats executor,scheduler -- \
      tests/test_scheduler.py::test_debounce_timer_fires_once_after_quiescence
"""

from __future__ import annotations

import argparse
import os
import shlex
import subprocess
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
TESTS = ROOT / "tests"

SUITES: dict[str, list[str]] = {
    "codecs": ["test_codecs_*.py"],
    "engine": [
        "test_registry.py",
        "test_executor.py",
        "test_config_store.py",
        "test_scheduler.py",
        "test_sniffer.py",
        "test_tags.py",
    ],
    "app": ["test_controller.py", "test_settings_manager.py", "test_logger.py"],
}


def _suite_paths(name: str) -> list[str]:
    paths: list[str] = []
    for pattern in SUITES[name]:
        paths.extend(str(p.relative_to(ROOT)) for p in sorted(TESTS.glob(pattern)))
    return paths


def main() -> int:
    p = argparse.ArgumentParser(description="Run the text_converter test suite with Qt offscreen mode")
    p.add_argument("--suite", choices=sorted(SUITES), help="Only run one group of test modules")
    p.add_argument("--timeout", type=int, default=300, help="Maximum seconds for the whole run")
    p.add_argument("--log-level", default="warning", help="TEXT_CONVERTER_LOG_LEVEL for the run")
    p.add_argument("--log-cats", default="", help="TEXT_CONVERTER_LOG_CATS, e.g. executor,scheduler")
    p.add_argument("--verbose", action="store_true", help="Don't pass -q")
    p.add_argument("pytest_args", nargs=argparse.REMAINDER, help="Extra pytest args")
    args = p.parse_args()

    env = os.environ.copy()
    env.setdefault("QT_QPA_PLATFORM", "offscreen")
    env["TEXT_CONVERTER_LOG_LEVEL"] = args.log_level
    if args.log_cats:
        env["TEXT_CONVERTER_LOG_CATS"] = args.log_cats

    cmd = ["uv", "run", "python", "-m", "pytest"]
    if not args.verbose:
        cmd += ["-q"]
    # per-test limit for pytest-timeout; the whole run is bounded below
    cmd.append(f"--timeout={min(60, args.timeout)}")
    if args.suite:
        cmd += _suite_paths(args.suite)
    cmd += [a for a in args.pytest_args if a != "--"]

    print("Running:", " ".join(shlex.quote(c) for c in cmd))
    try:
        return subprocess.run(cmd, cwd=ROOT, env=env, check=False, timeout=args.timeout).returncode
    except subprocess.TimeoutExpired:
        print(f"pytest run timed out after {args.timeout} seconds", file=sys.stderr)
        return 124


if __name__ == "__main__":
    raise SystemExit(main())
