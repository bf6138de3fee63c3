# Copyright 2026 Checklint Contributors
# SPDX-License-Identifier: Apache-2.0

"""Entry point for the checklint command-line interface."""

import argparse
import logging
import sys
from pathlib import Path

from checklint.compiler.loader import ParseError, load_check
from checklint.config.settings import CONFIG_FILE_NAME, ConfigurationError, Settings, load_settings
from checklint.validation.engine import Engine, RuleFilter
from checklint.views.display import render_check
from checklint.views.report import format_report

# ###############
# Public Interface
# ###############


def main() -> None:
    """Run the checklint CLI."""
    parser = argparse.ArgumentParser(
        prog="checklint",
        description="checklint - validator for Check documents",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    # lint subcommand
    lint_parser = subparsers.add_parser(
        "lint",
        help="Validate one or more Checks",
        description=(
            "Validate a Check file, every .yml/.yaml file in a directory, "
            "or a Check read from standard input."
        ),
    )
    lint_parser.add_argument(
        "path",
        nargs="?",
        default=None,
        help="Check file or directory (default: read from standard input)",
    )
    lint_parser.add_argument(
        "--rule",
        dest="rules",
        action="append",
        default=[],
        metavar="NAME",
        help="Run only this rule (repeatable; default: all rules)",
    )
    lint_parser.add_argument(
        "--exclude-rule",
        dest="exclude_rules",
        action="append",
        default=[],
        metavar="NAME",
        help="Skip this rule (repeatable), e.g. link-validity when offline",
    )
    _add_common_arguments(lint_parser)

    # show subcommand
    show_parser = subparsers.add_parser(
        "show",
        help="Print a readable summary of a Check",
        description="Load a Check and print its sections.",
    )
    show_parser.add_argument(
        "path",
        nargs="?",
        default=None,
        help="Check file (default: read from standard input)",
    )
    _add_common_arguments(show_parser)

    # rules subcommand
    rules_parser = subparsers.add_parser(
        "rules",
        help="List the available rules",
        description="List every registered rule with its description.",
    )
    _add_common_arguments(rules_parser)

    args = parser.parse_args()
    if args.command is None:
        parser.print_help()
        sys.exit(0)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    sys.exit(_dispatch(args))


# ################
# Implementation
# ################

_CHECK_SUFFIXES = (".yml", ".yaml")

_EXIT_OK = 0
_EXIT_FAILED = 1
_EXIT_USAGE = 2


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default=None,
        help=f"Configuration file (default: {CONFIG_FILE_NAME} in the current directory, if present)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log rule execution and link attempts",
    )


def _dispatch(args: argparse.Namespace) -> int:
    """Dispatch to the appropriate subcommand handler."""
    try:
        settings = _load_settings(args.config)
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return _EXIT_USAGE

    if args.command == "lint":
        return _cmd_lint(args, settings)
    if args.command == "show":
        return _cmd_show(args, settings)
    if args.command == "rules":
        return _cmd_rules(settings)
    return _EXIT_OK


def _load_settings(config: str | None) -> Settings:
    """Load the explicit config file, or the default one if it exists."""
    if config is not None:
        return load_settings(Path(config))
    default = Path.cwd() / CONFIG_FILE_NAME
    if default.exists():
        return load_settings(default)
    return Settings()


def _read_input(path: Path | None) -> bytes:
    """Return the raw bytes of *path*, or of stdin when None; decoding is left to the loader."""
    if path is None:
        return sys.stdin.buffer.read()
    return path.read_bytes()


def _cmd_lint(args: argparse.Namespace, settings: Settings) -> int:
    """Handle the lint subcommand."""
    engine = Engine(settings)
    include = frozenset(args.rules) if args.rules else settings.include_rules
    rule_filter = RuleFilter(include=include, exclude=settings.exclude_rules | frozenset(args.exclude_rules))
    try:
        rule_filter.validate(engine.rules)
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return _EXIT_USAGE

    if args.path is None:
        sources: list[tuple[str, Path | None]] = [("<stdin>", None)]
    else:
        path = Path(args.path)
        if path.is_dir():
            files = sorted(f for f in path.iterdir() if f.is_file() and f.suffix in _CHECK_SUFFIXES)
            if not files:
                print(f"No Check files found in '{path}'.")
                return _EXIT_OK
            sources = [(str(f), f) for f in files]
        elif path.exists():
            sources = [(str(path), path)]
        else:
            print(f"Error: '{path}' does not exist.", file=sys.stderr)
            return _EXIT_USAGE

    has_failures = False
    for label, source in sources:
        try:
            data = _read_input(source)
        except OSError as exc:
            print(f"Error: cannot read '{label}': {exc}", file=sys.stderr)
            has_failures = True
            continue
        try:
            check = load_check(data, strict=settings.strict)
        except ParseError as exc:
            print(f"Parse error - {label}: {exc}")
            has_failures = True
            continue

        result = engine.run(check, rule_filter)
        for line in format_report(result.diagnostics):
            print(line)
        if not result.passed:
            has_failures = True

    return _EXIT_FAILED if has_failures else _EXIT_OK


def _cmd_show(args: argparse.Namespace, settings: Settings) -> int:
    """Handle the show subcommand."""
    path = Path(args.path) if args.path is not None else None
    try:
        data = _read_input(path)
    except OSError as exc:
        print(f"Error: cannot read '{args.path}': {exc}", file=sys.stderr)
        return _EXIT_USAGE
    try:
        check = load_check(data, strict=settings.strict)
    except ParseError as exc:
        print(f"Parse error - {exc}")
        return _EXIT_FAILED
    print(render_check(check))
    return _EXIT_OK


def _cmd_rules(settings: Settings) -> int:
    """Handle the rules subcommand."""
    engine = Engine(settings)
    width = max(len(name) for name in engine.rules.names())
    for rule in engine.rules:
        print(f"{rule.name.ljust(width)}  {rule.description}")
    return _EXIT_OK
