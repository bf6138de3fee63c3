#!/usr/bin/env python3
# Copyright 2026 Checklint Contributors
# SPDX-License-Identifier: Apache-2.0

"""Run the local CI pipeline: format, lint, tests, fixture self-check, build."""

import argparse
import pathlib
import subprocess
import sys
import time

from yachalk import chalk

# ###############
# Public Interface
# ###############

STEPS: list[tuple[str, list[str]]] = [
    ("Format check", ["uv", "run", "ruff", "format", "--check", "src/", "tests/", "tools/"]),
    ("Lint", ["uv", "run", "ruff", "check", "src/", "tests/", "tools/"]),
    ("Type check", ["uv", "run", "ty", "check", "src/"]),
    ("Tests", ["uv", "run", "pytest", "--cov=checklint", "--cov-report=term-missing"]),
    (
        "Fixture self-check",
        ["uv", "run", "checklint", "lint", "tests/fixtures/check.yml", "--exclude-rule", "link-validity"],
    ),
    ("Build", ["uv", "build"]),
]


def main() -> int:
    """Run the selected CI steps and print a summary."""
    parser = argparse.ArgumentParser(description="Run checklint CI steps locally.")
    parser.add_argument(
        "--skip",
        action="append",
        default=[],
        metavar="STEP",
        help="Skip a step by name (repeatable), e.g. --skip Build",
    )
    args = parser.parse_args()

    steps = [(name, cmd) for name, cmd in STEPS if name not in args.skip]
    results = [_run_step(name, cmd) for name, cmd in steps]

    _banner("Summary")
    for name, passed, elapsed in results:
        label = chalk.green("PASS") if passed else chalk.red("FAIL")
        print(f"  {label}  {name} ({elapsed:.1f}s)")
    print()
    return 0 if all(passed for _, passed, _ in results) else 1


# ################
# Implementation
# ################

_RULE = "=" * 60


def _banner(title: str) -> None:
    print(f"\n{chalk.blue(_RULE)}")
    print(chalk.blue(f"  {title}"))
    print(chalk.blue(_RULE))


def _run_step(name: str, cmd: list[str]) -> tuple[str, bool, float]:
    _banner(name)
    start = time.monotonic()
    proc = subprocess.run(cmd, cwd=pathlib.Path(__file__).parent.parent)
    return name, proc.returncode == 0, time.monotonic() - start


if __name__ == "__main__":
    sys.exit(main())
