# Copyright 2026 Checklint Contributors
# SPDX-License-Identifier: Apache-2.0

"""Built-in structural rules.

Each rule is a pure function over a loaded Check, its parsed expressions,
and the reference resolver. Rules never depend on one another's output; the
only coupling is that reference checks ignore expressions that failed to
parse, which are reported by ``valid-expression`` instead.
"""

from __future__ import annotations

import functools
from collections.abc import Iterable

from checklint.compiler.index import ExpressionIndex
from checklint.compiler.resolver import Resolver
from checklint.config.settings import Settings
from checklint.model.check import Check
from checklint.model.diagnostic import Diagnostic, Severity
from checklint.model.expression import Conditional, Namespace
from checklint.validation.rule import Rule, make_diagnostic

# ###############
# Public Interface
# ###############

EXPECTATIONS_NOT_EMPTY = "expectations-not-empty"
EXPECTATION_FORM = "expectation-form"
UNIQUE_NAMES = "unique-names"
VALID_EXPRESSION = "valid-expression"
VALID_REFERENCE = "valid-reference"
VALUE_CYCLES = "value-cycles"
VALUE_SHAPE_CONSISTENCY = "value-shape-consistency"
METADATA_ENUM_VALIDITY = "metadata-enum-validity"
DEPRECATED_FIELDS = "deprecated-fields"


def check_expectations_not_empty(check: Check, index: ExpressionIndex, resolver: Resolver) -> list[Diagnostic]:
    """The ``expectations`` list must contain at least one entry."""
    if check.expectations:
        return []
    return [make_diagnostic(check, EXPECTATIONS_NOT_EMPTY, "expectations", "List must not be empty")]


def check_expectation_form(check: Check, index: ExpressionIndex, resolver: Resolver) -> list[Diagnostic]:
    """Each expectation sets exactly one expression field and only the messages that fit it.

    An ``expect_enum`` chain must be able to yield both ``"passing"`` and
    ``"warning"``. ``warning_message`` is only meaningful on ``expect_enum``, and
    the ``failure_message`` of an ``expect_same`` cannot interpolate expressions.
    """
    diagnostics: list[Diagnostic] = []

    def _report(field_path: str, message: str) -> None:
        diagnostics.append(make_diagnostic(check, EXPECTATION_FORM, field_path, message))

    chains = {site.field_path: site.expression for site in index.valid() if site.field == "expect_enum"}
    for expectation in check.expectations:
        prefix = f"expectations.{expectation.name}"
        present = expectation.expression_fields
        if not present:
            _report(prefix, "Expectation must set one of 'expect', 'expect_same' or 'expect_enum'")
        elif len(present) > 1:
            found = ", ".join(f"'{key}'" for key in present)
            _report(prefix, f"Expectation must set only one expression field, found {found}")

        chain = chains.get(f"{prefix}.expect_enum")
        if isinstance(chain, Conditional):
            results = {literal.value for literal in chain.results}
            if "passing" not in results:
                _report(f"{prefix}.expect_enum", 'Return value "passing" not found')
            if "warning" not in results:
                _report(
                    f"{prefix}.expect_enum",
                    "Return value \"warning\" not found; use 'expect' if no warning outcome is needed",
                )

        if expectation.warning_message is not None and expectation.expect_enum is None:
            _report(f"{prefix}.warning_message", "warning_message is only available for expect_enum expectations")
        if (
            expectation.expect_same is not None
            and expectation.failure_message is not None
            and "${" in expectation.failure_message
        ):
            _report(f"{prefix}.failure_message", "String interpolation is not allowed here")
    return diagnostics


def check_unique_names(check: Check, index: ExpressionIndex, resolver: Resolver) -> list[Diagnostic]:
    """Fact, Value, and Expectation names are unique; no Value shares a Fact's name."""
    diagnostics: list[Diagnostic] = []

    def _report_duplicates(section: str, kind: str, names: Iterable[str]) -> set[str]:
        seen: set[str] = set()
        for name in names:
            if name in seen:
                diagnostics.append(
                    make_diagnostic(check, UNIQUE_NAMES, f"{section}.{name}", f"Duplicate {kind} name '{name}'")
                )
            seen.add(name)
        return seen

    fact_names = _report_duplicates("facts", "fact", (f.name for f in check.facts))
    _report_duplicates("values", "value", (v.name for v in check.values))
    _report_duplicates("expectations", "expectation", (e.name for e in check.expectations))

    for value in check.values:
        if value.name in fact_names:
            diagnostics.append(
                make_diagnostic(
                    check,
                    UNIQUE_NAMES,
                    f"values.{value.name}",
                    f"Value name '{value.name}' collides with a fact of the same name",
                )
            )
    return diagnostics


def check_valid_expressions(check: Check, index: ExpressionIndex, resolver: Resolver) -> list[Diagnostic]:
    """Every expression field and every ``${...}`` segment of a message parses."""
    return [
        make_diagnostic(check, VALID_EXPRESSION, site.field_path, str(site.error))
        for site in index.invalid()
    ]


def check_valid_references(check: Check, index: ExpressionIndex, resolver: Resolver) -> list[Diagnostic]:
    """Every ``facts.*``, ``values.*``, and ``env.*`` reference resolves.

    Expressions that failed to parse are skipped.
    """
    diagnostics: list[Diagnostic] = []
    for site, ref in resolver.unresolved():
        if ref.namespace == Namespace.FACTS:
            message = f"Reference '{ref.dotted}' does not match any declared fact"
        elif ref.namespace == Namespace.VALUES:
            message = f"Reference '{ref.dotted}' does not match any declared value"
        else:
            known = ", ".join(sorted(resolver.env_identifiers))
            message = f"Reference '{ref.dotted}' is not a known environment identifier (known: {known})"
        diagnostics.append(make_diagnostic(check, VALID_REFERENCE, site.field_path, message))
    return diagnostics


def check_value_cycles(check: Check, index: ExpressionIndex, resolver: Resolver) -> list[Diagnostic]:
    """Values do not depend on each other cyclically through their conditions."""
    diagnostics: list[Diagnostic] = []
    for cycle in resolver.value_cycles():
        cycle_str = " -> ".join(f"values.{name}" for name in cycle)
        diagnostics.append(
            make_diagnostic(
                check,
                VALUE_CYCLES,
                f"values.{cycle[0]}",
                f"Cyclic value dependency: {cycle_str}",
            )
        )
    return diagnostics


def check_value_shapes(check: Check, index: ExpressionIndex, resolver: Resolver) -> list[Diagnostic]:
    """Every condition value has the same shape (scalar or list) as its Value's default."""
    diagnostics: list[Diagnostic] = []
    for value in check.values:
        expected = value.default.shape
        for i, condition in enumerate(value.conditions):
            actual = condition.value.shape
            if actual != expected:
                diagnostics.append(
                    make_diagnostic(
                        check,
                        VALUE_SHAPE_CONSISTENCY,
                        f"values.{value.name}.conditions[{i}].value",
                        f"Condition value is a {actual.value} but the default of '{value.name}' "
                        f"is a {expected.value}",
                    )
                )
    return diagnostics


def check_metadata_enums(
    check: Check,
    index: ExpressionIndex,
    resolver: Resolver,
    *,
    target_types: frozenset[str],
    providers: frozenset[str],
) -> list[Diagnostic]:
    """``metadata.target_type`` and every ``metadata.provider`` entry are known values."""
    if check.metadata is None:
        return []
    diagnostics: list[Diagnostic] = []
    target_type = check.metadata.target_type
    if target_type is not None and target_type not in target_types:
        diagnostics.append(
            make_diagnostic(
                check,
                METADATA_ENUM_VALIDITY,
                "metadata.target_type",
                f"Unknown target type '{target_type}' (expected one of: {', '.join(sorted(target_types))})",
            )
        )
    for i, provider in enumerate(check.metadata.provider):
        if provider not in providers:
            diagnostics.append(
                make_diagnostic(
                    check,
                    METADATA_ENUM_VALIDITY,
                    f"metadata.provider[{i}]",
                    f"Unknown provider '{provider}' (expected one of: {', '.join(sorted(providers))})",
                )
            )
    return diagnostics


def check_deprecated_fields(check: Check, index: ExpressionIndex, resolver: Resolver) -> list[Diagnostic]:
    """Warn about fields that are still accepted but scheduled for removal."""
    if check.premium is None:
        return []
    return [
        make_diagnostic(
            check,
            DEPRECATED_FIELDS,
            "premium",
            "Property 'premium' is deprecated and will be removed in the future",
            Severity.WARNING,
        )
    ]


def structural_rules(settings: Settings) -> list[Rule]:
    """Return the structural rules in registration order."""
    return [
        Rule(
            EXPECTATIONS_NOT_EMPTY,
            "The expectations list contains at least one entry",
            check_expectations_not_empty,
        ),
        Rule(
            EXPECTATION_FORM,
            "Each expectation has one expression field and matching messages",
            check_expectation_form,
        ),
        Rule(
            UNIQUE_NAMES,
            "Fact, value, and expectation names are unique",
            check_unique_names,
        ),
        Rule(
            VALID_EXPRESSION,
            "Every expression and message interpolation parses",
            check_valid_expressions,
        ),
        Rule(
            VALID_REFERENCE,
            "Every facts/values/env reference resolves",
            check_valid_references,
        ),
        Rule(
            VALUE_CYCLES,
            "Values do not depend on each other cyclically",
            check_value_cycles,
        ),
        Rule(
            VALUE_SHAPE_CONSISTENCY,
            "Condition values match the scalar/list shape of the default",
            check_value_shapes,
        ),
        Rule(
            METADATA_ENUM_VALIDITY,
            "Metadata target type and providers are known values",
            functools.partial(
                check_metadata_enums,
                target_types=settings.target_types,
                providers=settings.providers,
            ),
        ),
        Rule(
            DEPRECATED_FIELDS,
            "Deprecated fields are reported as warnings",
            check_deprecated_fields,
        ),
    ]
