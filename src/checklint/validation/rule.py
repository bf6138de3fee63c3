# Copyright 2026 Checklint Contributors
# SPDX-License-Identifier: Apache-2.0

"""The rule abstraction shared by the engine and the built-in rules."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from checklint.compiler.index import ExpressionIndex
from checklint.compiler.resolver import Resolver
from checklint.model.check import Check
from checklint.model.diagnostic import Diagnostic, Severity

# ###############
# Public Interface
# ###############

RuleFunc = Callable[[Check, ExpressionIndex, Resolver], list[Diagnostic]]


@dataclass(frozen=True)
class Rule:
    """A named, independently toggleable validator.

    Attributes:
        name: Stable identifier, used as ``rule_id`` of its diagnostics and in
            rule filters.
        description: One-line summary shown by ``checklint rules``.
        func: The validator.
        cancellable: Whether *func* accepts ``deadline`` and ``cancel``
            keyword arguments.
    """

    name: str
    description: str
    func: Callable[..., list[Diagnostic]]
    cancellable: bool = False


def make_diagnostic(
    check: Check,
    rule_id: str,
    field_path: str,
    message: str,
    severity: Severity = Severity.ERROR,
) -> Diagnostic:
    """Create a diagnostic attributed to *check*."""
    return Diagnostic(
        check_id=check.id,
        field_path=field_path,
        rule_id=rule_id,
        severity=severity,
        message=message,
    )
