# Copyright 2026 Checklint Contributors
# SPDX-License-Identifier: Apache-2.0

"""Diagnostics produced by lint rules and the verdict derived from them."""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass

# ###############
# Public Interface
# ###############


class Severity(enum.Enum):
    """How serious a diagnostic is. Only errors fail a Check."""

    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class Diagnostic:
    """A located report of one rule violation.

    Attributes:
        check_id: Identifier of the Check the diagnostic belongs to.
        field_path: Dotted location inside the Check, e.g.
            ``values.expected_token_timeout.conditions[1].when``.
        rule_id: Name of the rule that produced the diagnostic.
        severity: Error or warning.
        message: Human-readable description of the problem.
    """

    check_id: str
    field_path: str
    rule_id: str
    severity: Severity
    message: str

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR


class Verdict(enum.Enum):
    """Aggregate outcome of a lint run."""

    PASS = "pass"
    FAIL = "fail"

    @classmethod
    def of(cls, diagnostics: Iterable[Diagnostic]) -> Verdict:
        """Return PASS iff no diagnostic has error severity."""
        if any(d.is_error for d in diagnostics):
            return cls.FAIL
        return cls.PASS
