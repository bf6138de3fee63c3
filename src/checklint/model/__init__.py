# Copyright 2026 Checklint Contributors
# SPDX-License-Identifier: Apache-2.0

"""Document model for Checks, expressions, and diagnostics."""

from checklint.model.check import (
    EXPRESSION_FIELDS,
    MESSAGE_FIELDS,
    Check,
    ConditionValue,
    Expectation,
    Fact,
    ListValue,
    Metadata,
    ScalarValue,
    Shape,
    Value,
    ValueCondition,
)
from checklint.model.diagnostic import Diagnostic, Severity, Verdict
from checklint.model.expression import (
    Branch,
    Comparison,
    ComparisonOp,
    Conditional,
    Expression,
    FieldReference,
    ListLiteral,
    Literal,
    Logical,
    LogicalOp,
    Namespace,
    references,
    render,
)

__all__ = [
    # Document
    "EXPRESSION_FIELDS",
    "MESSAGE_FIELDS",
    "Check",
    "ConditionValue",
    "Expectation",
    "Fact",
    "ListValue",
    "Metadata",
    "ScalarValue",
    "Shape",
    "Value",
    "ValueCondition",
    # Expressions
    "Branch",
    "Comparison",
    "ComparisonOp",
    "Conditional",
    "Expression",
    "FieldReference",
    "ListLiteral",
    "Literal",
    "Logical",
    "LogicalOp",
    "Namespace",
    "references",
    "render",
    # Diagnostics
    "Diagnostic",
    "Severity",
    "Verdict",
]
