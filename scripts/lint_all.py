#!/usr/bin/env python3
"""Run import sorting, formatting and the test suite for StoreRec.

Usage:
    python scripts/lint_all.py [--check] [--skip-tests] [-k EXPR]

Options:
    --check: Report formatting problems instead of rewriting files
    --skip-tests: Skip running pytest
    -k: Only run tests matching the pytest expression
"""

import argparse
import subprocess
import sys
from pathlib import Path
from typing import List, Tuple

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent

SOURCE_DIRS = ["storerec", "tests", "scripts"]


def run_command(cmd: List[str], description: str) -> bool:
    """Run a command from the project root and report whether it passed."""
    print(f"\n{'=' * 60}")
    print(f"{description}: {' '.join(cmd)}")
    print(f"{'=' * 60}\n")

    try:
        result = subprocess.run(cmd, cwd=PROJECT_ROOT, check=False)
    except FileNotFoundError as e:
        print(f"\n✗ {cmd[0]} is not installed: {e}\n")
        return False

    passed = result.returncode == 0
    mark = "✓" if passed else "✗"
    print(f"\n{mark} {description} (exit code: {result.returncode})\n")
    return passed


def formatting_commands(check: bool) -> List[Tuple[List[str], str]]:
    """isort before black, so black has the final say on layout."""
    if check:
        return [
            (["isort", *SOURCE_DIRS, "--check-only", "--diff"], "isort"),
            (["black", *SOURCE_DIRS, "--check"], "black"),
        ]
    return [
        (["isort", *SOURCE_DIRS], "isort"),
        (["black", *SOURCE_DIRS], "black"),
    ]


def main() -> int:
    """Run every check, returning 0 only if all of them passed."""
    parser = argparse.ArgumentParser(
        description="Run StoreRec formatting and test checks",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only check formatting (don't modify files)",
    )
    parser.add_argument(
        "--skip-tests",
        action="store_true",
        help="Skip running pytest",
    )
    parser.add_argument(
        "-k",
        dest="keyword",
        default=None,
        help="Only run tests matching this pytest expression",
    )
    args = parser.parse_args()

    results = [
        run_command(cmd, description)
        for cmd, description in formatting_commands(args.check)
    ]

    if not args.skip_tests:
        pytest_cmd = ["pytest", "tests/", "-v"]
        if args.keyword:
            pytest_cmd.extend(["-k", args.keyword])
        results.append(run_command(pytest_cmd, "pytest"))

    if all(results):
        print("✓ All checks passed!")
        return 0

    print("✗ Some checks failed. Please fix the issues above.")
    return 1


if __name__ == "__main__":
    sys.exit(main())
