#!/usr/bin/env python3
"""
Test runner for threadview using pytest.

- Run all tests: python tests/run_tests.py
- Run one module: python tests/run_tests.py view_state
- Run a group: python tests/run_tests.py viewer
- Pass pytest options: python tests/run_tests.py -k pagination -x
"""

import subprocess
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent

GROUPS = {
    "viewer": ["view_state", "pagination", "refresh", "rendering", "session"],
    "actions": ["message_actions"],
    "sync": ["cache", "sync", "jmap_client"],
    "ambient": ["config", "logging", "cli"],
}


def paths_for(name):
    modules = GROUPS.get(name, [name])
    return [f"tests/test_{module}.py" for module in modules]


def run_pytest(args):
    cmd = [sys.executable, "-m", "pytest", "--tb=short", *args]
    return subprocess.run(cmd, cwd=str(project_root)).returncode


def main():
    args = sys.argv[1:]

    if args and args[0] in ("--help", "-h"):
        print(__doc__)
        return 0

    if not args or args[0].startswith("-"):
        print("Running all tests...")
        print("=" * 70)
        return run_pytest(["tests/", *args])

    print(f"Running tests for: {args[0]}")
    print("=" * 70)
    return run_pytest([*paths_for(args[0]), *args[1:]])


if __name__ == "__main__":
    sys.exit(main())
