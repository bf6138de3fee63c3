# Copyright 2026 Checklint Contributors
# SPDX-License-Identifier: Apache-2.0

"""Rule engine, built-in rules, and link checking."""

from checklint.validation.engine import (
    Engine,
    LintResult,
    RuleFilter,
    RuleRegistry,
    build_registry,
    default_registry,
)
from checklint.validation.links import (
    HttpxProbe,
    LinkCheck,
    LinkProbe,
    LinkProbeError,
    LinkReport,
    LinkState,
    LinkValidator,
    extract_links,
)
from checklint.validation.rule import Rule, RuleFunc

__all__ = [
    "Engine",
    "LintResult",
    "Rule",
    "RuleFilter",
    "RuleFunc",
    "RuleRegistry",
    "build_registry",
    "default_registry",
    "HttpxProbe",
    "LinkCheck",
    "LinkProbe",
    "LinkProbeError",
    "LinkReport",
    "LinkState",
    "LinkValidator",
    "extract_links",
]
