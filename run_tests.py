#!/usr/bin/env python3
"""Test runner script for the OBB labeler.

Runs the unit and integration suites, optionally with coverage.
"""
import sys
import subprocess
import argparse
from typing import List


def run_command(cmd: List[str]) -> int:
    """Run a command and return the exit code."""
    print(f"Running: {' '.join(cmd)}")
    return subprocess.run(cmd).returncode


def pytest_command(paths: List[str], coverage: bool, verbose: bool) -> List[str]:
    cmd = [sys.executable, "-m", "pytest", *paths]
    if verbose:
        cmd.append("-v")
    if coverage:
        cmd.extend(["--cov=labeler", "--cov-report=term-missing"])
    return cmd


def main() -> int:
    parser = argparse.ArgumentParser(description="Run the labeler test suites")
    parser.add_argument("suite", nargs="?", default="all", choices=["unit", "integration", "all"])
    parser.add_argument("--no-coverage", action="store_true", help="Skip coverage reporting")
    parser.add_argument("-q", "--quiet", action="store_true", help="Less verbose output")
    args = parser.parse_args()

    paths = {
        "unit": ["tests/unit/"],
        "integration": ["tests/integration/"],
        "all": ["tests/"],
    }[args.suite]

    print(f"Running {args.suite} tests...")
    return run_command(pytest_command(paths, not args.no_coverage, not args.quiet))


if __name__ == "__main__":
    sys.exit(main())
