# Copyright 2026 Checklint Contributors
# SPDX-License-Identifier: Apache-2.0

"""Human-readable summary of a Check for ``checklint show``."""

from __future__ import annotations

from yachalk import chalk

from checklint.model.check import EXPRESSION_FIELDS, MESSAGE_FIELDS, Check, ConditionValue, ListValue

# ###############
# Public Interface
# ###############


def render_check(check: Check) -> str:
    """Render *check* as a multi-line summary with highlighted section headers."""
    lines: list[str] = [
        f"{_header(check.id)}  {check.name}",
        f"{_header('Group')}  {check.group}",
        f"{_header('Description')}  {_indent(check.description.strip())}",
        "",
        _header("Remediation"),
        f"  {_indent(check.remediation.strip())}",
    ]

    if check.metadata is not None:
        lines += ["", _header("Metadata")]
        if check.metadata.target_type is not None:
            lines.append(f"  {_header('Target type')}  {check.metadata.target_type}")
        if check.metadata.provider:
            lines.append(f"  {_header('Providers')}  {', '.join(check.metadata.provider)}")

    lines += ["", _header("Facts")]
    for fact in check.facts:
        lines.append(f"  {_header('Name')}  {fact.name}")
        lines.append(f"  {_header('Gatherer')}  {fact.gatherer}")
        lines.append(f"  {_header('Argument')}  {fact.argument}")

    if check.values:
        lines += ["", _header("Values")]
        for value in check.values:
            lines.append(f"  {_header('Name')}  {value.name}")
            lines.append(f"  {_header('Default')}  {_format_value(value.default)}")
            for condition in value.conditions:
                lines.append(f"    {_format_value(condition.value)} when {condition.when}")

    lines += ["", _header("Expectations")]
    for expectation in check.expectations:
        lines.append(f"  {_header('Name')}  {expectation.name}")
        for key in (*EXPRESSION_FIELDS, *MESSAGE_FIELDS):
            text = getattr(expectation, key)
            if text is not None:
                label = key.replace("_", " ").capitalize()
                lines.append(f"  {_header(label)}  {text.strip()}")

    return "\n".join(lines)


# ################
# Implementation
# ################

_HEADER_WIDTH = 16


def _header(title: str) -> str:
    """Return *title* padded to a fixed width on a highlighted background."""
    return chalk.black.bg_green(f"  {title}  ".ljust(_HEADER_WIDTH))


def _indent(text: str) -> str:
    return text.replace("\n", "\n  ")


def _format_value(value: ConditionValue) -> str:
    if isinstance(value, ListValue):
        return "[" + ", ".join(str(item) for item in value.items) + "]"
    return str(value.value)
