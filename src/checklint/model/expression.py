# Copyright 2026 Checklint Contributors
# SPDX-License-Identifier: Apache-2.0

"""Abstract syntax tree for the expression language of `when` and `expect` fields.

Nodes are immutable. An expression tree is built by
:func:`checklint.parser.parse_expression` and is only inspected, never
evaluated.
"""

from __future__ import annotations

import decimal
import enum
from dataclasses import dataclass

# ###############
# Public Interface
# ###############


class Namespace(enum.Enum):
    """Namespaces an identifier may be referenced from."""

    FACTS = "facts"
    VALUES = "values"
    ENV = "env"


class ComparisonOp(enum.Enum):
    """Binary comparison operators."""

    EQ = "=="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="

    @property
    def is_ordering(self) -> bool:
        """Return True for operators that require an ordered operand."""
        return self not in (ComparisonOp.EQ, ComparisonOp.NE)


class LogicalOp(enum.Enum):
    """Boolean connectives."""

    AND = "&&"
    OR = "||"
    NOT = "!"


@dataclass(frozen=True)
class Literal:
    """A string, integer, float, or boolean constant."""

    value: str | int | float | bool


@dataclass(frozen=True)
class ListLiteral:
    """A bracketed sequence of literals, e.g. ``["aws", "gcp"]``."""

    items: tuple[Literal, ...]


@dataclass(frozen=True)
class FieldReference:
    """A ``namespace.identifier`` reference such as ``facts.corosync_token``."""

    namespace: Namespace
    identifier: str

    @property
    def dotted(self) -> str:
        return f"{self.namespace.value}.{self.identifier}"


@dataclass(frozen=True)
class Comparison:
    """A binary comparison between two operands."""

    op: ComparisonOp
    left: Expression
    right: Expression


@dataclass(frozen=True)
class Logical:
    """A boolean connective. ``!`` has one operand, ``&&`` and ``||`` have two."""

    op: LogicalOp
    operands: tuple[Expression, ...]


@dataclass(frozen=True)
class Branch:
    """One ``if`` arm of a :class:`Conditional`."""

    condition: Expression
    result: Literal


@dataclass(frozen=True)
class Conditional:
    """An ``if c { r } else if ... else { r }`` chain selecting a result literal.

    Only ``expect_enum`` fields hold a conditional, and only at the root.
    """

    branches: tuple[Branch, ...]
    otherwise: Literal | None = None

    @property
    def results(self) -> list[Literal]:
        """Every literal the chain can yield, in source order."""
        results = [branch.result for branch in self.branches]
        if self.otherwise is not None:
            results.append(self.otherwise)
        return results


Expression = Literal | ListLiteral | FieldReference | Comparison | Logical | Conditional


def references(expr: Expression) -> list[FieldReference]:
    """Return every field reference in *expr*, in left-to-right order."""
    if isinstance(expr, FieldReference):
        return [expr]
    if isinstance(expr, Comparison):
        return references(expr.left) + references(expr.right)
    if isinstance(expr, Logical):
        result: list[FieldReference] = []
        for operand in expr.operands:
            result.extend(references(operand))
        return result
    if isinstance(expr, Conditional):
        result = []
        for branch in expr.branches:
            result.extend(references(branch.condition))
        return result
    return []


def render(expr: Expression) -> str:
    """Render *expr* back to expression source text.

    Parentheses are emitted only where operator precedence requires them, so
    parsing the rendered text yields an equal tree.
    """
    if isinstance(expr, Conditional):
        return _render_conditional(expr)
    return _render(expr, 0)


# ################
# Implementation
# ################

# Binding strength, weakest first. Operands bind tighter than any operator.
_PRECEDENCE: dict[LogicalOp, int] = {
    LogicalOp.OR: 1,
    LogicalOp.AND: 2,
    LogicalOp.NOT: 3,
}
_COMPARISON_PRECEDENCE = 4
_ATOM_PRECEDENCE = 5


def _precedence(expr: Expression) -> int:
    if isinstance(expr, Logical):
        return _PRECEDENCE[expr.op]
    if isinstance(expr, Comparison):
        return _COMPARISON_PRECEDENCE
    return _ATOM_PRECEDENCE


# Only these characters need escaping; the lexer accepts every other character verbatim.
_STRING_ESCAPES = str.maketrans({"\\": "\\\\", '"': '\\"', "\n": "\\n", "\t": "\\t"})


def _render_literal(value: str | int | float | bool) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return '"' + value.translate(_STRING_ESCAPES) + '"'
    if isinstance(value, float):
        return _render_float(value)
    return str(value)


def _render_float(value: float) -> str:
    """Render *value* in positional notation with at least one fractional digit."""
    text = format(decimal.Decimal(repr(value)), "f")
    if "." not in text:
        text += ".0"
    return text


def _render(expr: Expression, parent: int) -> str:
    """Render *expr*, wrapping it in parentheses if it binds looser than *parent*."""
    own = _precedence(expr)
    if isinstance(expr, Literal):
        text = _render_literal(expr.value)
    elif isinstance(expr, ListLiteral):
        text = "[" + ", ".join(_render_literal(item.value) for item in expr.items) + "]"
    elif isinstance(expr, FieldReference):
        text = expr.dotted
    elif isinstance(expr, Comparison):
        # Comparisons do not chain, so both sides must bind tighter.
        left = _render(expr.left, own + 1)
        right = _render(expr.right, own + 1)
        text = f"{left} {expr.op.value} {right}"
    elif expr.op == LogicalOp.NOT:
        text = "!" + _render(expr.operands[0], own)
    else:
        # && and || are left-associative.
        left = _render(expr.operands[0], own)
        right = _render(expr.operands[1], own + 1)
        text = f"{left} {expr.op.value} {right}"
    if own < parent:
        return f"({text})"
    return text


def _render_conditional(expr: Conditional) -> str:
    arms = [f"if {_render(b.condition, 0)} {{ {_render_literal(b.result.value)} }}" for b in expr.branches]
    if expr.otherwise is not None:
        arms.append(f"{{ {_render_literal(expr.otherwise.value)} }}")
    return " else ".join(arms)
