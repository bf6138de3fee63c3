# Copyright 2026 Checklint Contributors
# SPDX-License-Identifier: Apache-2.0

"""Text renderings of diagnostics and Checks."""

from checklint.views.display import render_check
from checklint.views.report import format_diagnostic, format_report

__all__ = [
    "format_diagnostic",
    "format_report",
    "render_check",
]
