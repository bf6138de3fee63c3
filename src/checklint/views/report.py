# Copyright 2026 Checklint Contributors
# SPDX-License-Identifier: Apache-2.0

"""Line-oriented rendering of diagnostics.

One line per diagnostic::

    <check_id>  - <field_path> - <message>

No lines at all means the Check passed.
"""

from __future__ import annotations

from collections.abc import Iterable

from checklint.model.diagnostic import Diagnostic, Severity

# ###############
# Public Interface
# ###############


def format_diagnostic(diagnostic: Diagnostic) -> str:
    """Render one diagnostic as a single report line."""
    message = diagnostic.message
    if diagnostic.severity == Severity.WARNING:
        message = f"warning: {message}"
    return f"{diagnostic.check_id}  - {diagnostic.field_path} - {message}"


def format_report(diagnostics: Iterable[Diagnostic]) -> list[str]:
    """Render diagnostics in order, one line each."""
    return [format_diagnostic(d) for d in diagnostics]
