# Copyright 2026 Checklint Contributors
# SPDX-License-Identifier: Apache-2.0

"""Single-call lint entry point for embedding hosts.

The host passes the document text and receives plain data back, so the
function can be exposed without filesystem or process access. A host that
provides its own network primitive passes it as *link_probe*.
"""

from __future__ import annotations

import asyncio
from typing import TypedDict

from checklint.compiler.loader import ParseError
from checklint.config.settings import Settings
from checklint.validation.engine import Engine, RuleFilter
from checklint.validation.links import LinkProbe
from checklint.views.report import format_report

# ###############
# Public Interface
# ###############


class LintOutcome(TypedDict):
    """Plain-data result of :func:`lint`."""

    result: bool
    messages: list[str]


def lint(
    text: str | bytes,
    *,
    rule_filter: RuleFilter | None = None,
    settings: Settings | None = None,
    link_probe: LinkProbe | None = None,
) -> LintOutcome:
    """Lint one Check document.

    Args:
        text: The Check as YAML text or UTF-8 bytes.
        rule_filter: Rules to run; the settings' filter when None.
        settings: Linter configuration; defaults apply when None.
        link_probe: Network primitive for link checks.

    Returns:
        ``result`` is True iff the Check passed. ``messages`` holds one report
        line per diagnostic, or the parse error if the document could not be
        loaded.

    Raises:
        ConfigurationError: If *rule_filter* names an unknown rule.
    """
    engine = Engine(settings, link_probe=link_probe)
    try:
        outcome = engine.lint(text, rule_filter)
    except ParseError as exc:
        return {"result": False, "messages": [f"Parse error - {exc}"]}
    return {"result": outcome.passed, "messages": format_report(outcome.diagnostics)}


async def alint(
    text: str | bytes,
    *,
    rule_filter: RuleFilter | None = None,
    settings: Settings | None = None,
    link_probe: LinkProbe | None = None,
) -> LintOutcome:
    """Awaitable form of :func:`lint` for hosts running an event loop.

    The lint runs on a worker thread so the host's loop keeps serving other
    tasks. Link checks run on that thread's own loop, so *link_probe* must not
    hold resources bound to the host's loop.
    """
    return await asyncio.to_thread(lint, text, rule_filter=rule_filter, settings=settings, link_probe=link_probe)
