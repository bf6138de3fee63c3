# Copyright 2026 Checklint Contributors
# SPDX-License-Identifier: Apache-2.0

"""Message templates with embedded ``${...}`` expressions.

``failure_message`` and ``warning_message`` are plain text in which each
``${expression}`` segment is an expression in the same language as
``expect``. The text around the segments is not interpreted.
"""

from __future__ import annotations

from dataclasses import dataclass

from checklint.model.expression import Expression
from checklint.parser.lexer import ExpressionError
from checklint.parser.parser import parse_expression

# ###############
# Public Interface
# ###############


@dataclass(frozen=True)
class Interpolation:
    """One ``${...}`` segment of a message template.

    Attributes:
        source: The text between ``${`` and ``}``.
        line: 1-based line of the first character of ``source`` in the template.
        column: 1-based column of the first character of ``source``.
    """

    source: str
    line: int
    column: int


def interpolations(template: str) -> list[Interpolation]:
    """Return the ``${...}`` segments of *template* in order.

    Raises:
        ExpressionError: If a ``${`` is never closed.
    """
    segments: list[Interpolation] = []
    start = template.find("${")
    while start != -1:
        begin = start + 2
        end = template.find("}", begin)
        if end == -1:
            line, column = _location(template, start)
            raise ExpressionError("Unterminated interpolation: missing '}'", line, column)
        line, column = _location(template, begin)
        segments.append(Interpolation(source=template[begin:end], line=line, column=column))
        start = template.find("${", end + 1)
    return segments


def parse_interpolation(segment: Interpolation) -> Expression:
    """Parse one segment, reporting errors at their position in the template."""
    try:
        return parse_expression(segment.source)
    except ExpressionError as exc:
        line = segment.line + exc.line - 1
        column = segment.column + exc.column - 1 if exc.line == 1 else exc.column
        raise type(exc)(exc.reason, line, column) from None


# ################
# Implementation
# ################


def _location(text: str, index: int) -> tuple[int, int]:
    line_start = text.rfind("\n", 0, index) + 1
    return text.count("\n", 0, index) + 1, index - line_start + 1
