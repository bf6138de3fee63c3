# Copyright 2026 Checklint Contributors
# SPDX-License-Identifier: Apache-2.0

"""Parses every expression-bearing field of a Check exactly once."""

from __future__ import annotations

import dataclasses
from collections.abc import Callable

from checklint.model.check import EXPRESSION_FIELDS, MESSAGE_FIELDS, Check, Expectation
from checklint.model.expression import Expression
from checklint.parser import (
    ExpressionError,
    interpolations,
    parse_enum_expression,
    parse_expression,
    parse_interpolation,
)

# ###############
# Public Interface
# ###############


@dataclasses.dataclass(frozen=True)
class ExpressionSite:
    """One expression together with its parse outcome.

    A site is a `when`, `expect`, `expect_same` or `expect_enum` field, or one
    ``${...}`` segment of a `failure_message` or `warning_message`. Exactly one
    of ``expression`` and ``error`` is set.

    Attributes:
        field_path: Dotted location of the field, e.g.
            ``expectations.timeout.expect``.
        source: The raw expression text.
        owner: Name of the Value or Expectation that declares the field.
        owner_kind: ``"value"`` or ``"expectation"``.
        expression: The parsed tree, or None if parsing failed.
        error: The parse failure, or None if parsing succeeded.
    """

    field_path: str
    source: str
    owner: str
    owner_kind: str
    expression: Expression | None = None
    error: ExpressionError | None = None

    @property
    def is_valid(self) -> bool:
        return self.expression is not None

    @property
    def field(self) -> str:
        """Name of the field holding the expression, e.g. ``when`` or ``failure_message``."""
        return self.field_path.rsplit(".", 1)[-1]


class ExpressionIndex:
    """All expression sites of a Check in document order.

    Value conditions come first, then expectations. Within an expectation the
    expression field precedes the message templates. A failure to parse one
    expression never prevents the others from being parsed.
    """

    def __init__(self, sites: list[ExpressionSite]) -> None:
        self._sites = tuple(sites)

    @classmethod
    def build(cls, check: Check) -> ExpressionIndex:
        sites: list[ExpressionSite] = []
        for value in check.values:
            for i, condition in enumerate(value.conditions):
                path = f"values.{value.name}.conditions[{i}].when"
                sites.append(_parse_site(path, condition.when, value.name, "value"))
        for expectation in check.expectations:
            sites.extend(_expectation_sites(expectation))
        return cls(sites)

    @property
    def sites(self) -> tuple[ExpressionSite, ...]:
        return self._sites

    def valid(self) -> list[ExpressionSite]:
        """Return the sites whose expression parsed successfully."""
        return [site for site in self._sites if site.is_valid]

    def invalid(self) -> list[ExpressionSite]:
        """Return the sites whose expression failed to parse."""
        return [site for site in self._sites if not site.is_valid]

    def __iter__(self):
        return iter(self._sites)

    def __len__(self) -> int:
        return len(self._sites)


# ################
# Implementation
# ################

_PARSERS: dict[str, Callable[[str], Expression]] = {
    "expect": parse_expression,
    "expect_same": parse_expression,
    "expect_enum": parse_enum_expression,
}


def _expectation_sites(expectation: Expectation) -> list[ExpressionSite]:
    sites: list[ExpressionSite] = []
    prefix = f"expectations.{expectation.name}"
    for key in EXPRESSION_FIELDS:
        source = getattr(expectation, key)
        if source is not None:
            sites.append(_parse_site(f"{prefix}.{key}", source, expectation.name, "expectation", _PARSERS[key]))
    for key in MESSAGE_FIELDS:
        template = getattr(expectation, key)
        if template is not None:
            sites.extend(_template_sites(f"{prefix}.{key}", template, expectation.name))
    return sites


def _template_sites(path: str, template: str, owner: str) -> list[ExpressionSite]:
    try:
        segments = interpolations(template)
    except ExpressionError as exc:
        return [ExpressionSite(field_path=path, source=template, owner=owner, owner_kind="expectation", error=exc)]
    sites = []
    for segment in segments:
        site = ExpressionSite(field_path=path, source=segment.source, owner=owner, owner_kind="expectation")
        try:
            sites.append(dataclasses.replace(site, expression=parse_interpolation(segment)))
        except ExpressionError as exc:
            sites.append(dataclasses.replace(site, error=exc))
    return sites


def _parse_site(
    path: str,
    source: str,
    owner: str,
    owner_kind: str,
    parse: Callable[[str], Expression] = parse_expression,
) -> ExpressionSite:
    try:
        expression = parse(source)
    except ExpressionError as exc:
        return ExpressionSite(field_path=path, source=source, owner=owner, owner_kind=owner_kind, error=exc)
    return ExpressionSite(field_path=path, source=source, owner=owner, owner_kind=owner_kind, expression=expression)
