# Copyright 2026 Checklint Contributors
# SPDX-License-Identifier: Apache-2.0

"""Core document entities for the Check model."""

from __future__ import annotations

import enum
from typing import Annotated, Literal

from pydantic import BaseModel
from pydantic import Field as _Field

# ###############
# Public Interface
# ###############

Scalar = str | int | float | bool


class Shape(enum.Enum):
    """Shape of a value declared in a Value default or condition."""

    SCALAR = "scalar"
    LIST = "list"


class ScalarValue(BaseModel):
    """A single string, number, or boolean value."""

    kind: Literal["scalar"] = "scalar"
    value: Scalar

    @property
    def shape(self) -> Shape:
        return Shape.SCALAR


class ListValue(BaseModel):
    """An ordered list of scalar values."""

    kind: Literal["list"] = "list"
    items: list[Scalar] = _Field(default_factory=list)

    @property
    def shape(self) -> Shape:
        return Shape.LIST


# Either a scalar or a list of scalars.
# The `kind` discriminator keeps the shape explicit.
ConditionValue = Annotated[ScalarValue | ListValue, _Field(discriminator="kind")]


class Metadata(BaseModel):
    """Classification tags of a Check."""

    target_type: str | None = None
    provider: list[str] = _Field(default_factory=list)


class Fact(BaseModel):
    """A data point supplied by a gatherer at run time."""

    name: str
    gatherer: str
    argument: str


class ValueCondition(BaseModel):
    """An alternative value selected when its expression holds."""

    value: ConditionValue
    when: str


class Value(BaseModel):
    """A derived datum with a default and optional conditional overrides."""

    name: str
    default: ConditionValue
    conditions: list[ValueCondition] = _Field(default_factory=list)


# Expectation fields holding an expression, and those holding a message template.
EXPRESSION_FIELDS = ("expect", "expect_same", "expect_enum")
MESSAGE_FIELDS = ("failure_message", "warning_message")


class Expectation(BaseModel):
    """A named assertion over facts and values.

    An expectation carries one expression field:

    - ``expect``: a boolean expression evaluated on each target.
    - ``expect_same``: an expression whose result must agree across targets.
    - ``expect_enum``: an ``if``/``else`` chain yielding ``"passing"``,
      ``"warning"``, or ``"critical"``.

    ``failure_message`` and ``warning_message`` are message templates that may
    embed expressions as ``${...}``.
    """

    name: str
    expect: str | None = None
    expect_same: str | None = None
    expect_enum: str | None = None
    failure_message: str | None = None
    warning_message: str | None = None

    @property
    def expression_fields(self) -> list[str]:
        """Names of the expression fields that are set, in declaration order."""
        return [key for key in EXPRESSION_FIELDS if getattr(self, key) is not None]


class Check(BaseModel):
    """Top-level model representing one parsed Check document."""

    id: str
    name: str
    group: str
    description: str
    remediation: str
    metadata: Metadata | None = None
    facts: list[Fact] = _Field(default_factory=list)
    values: list[Value] = _Field(default_factory=list)
    expectations: list[Expectation] = _Field(default_factory=list)
    premium: bool | None = None
