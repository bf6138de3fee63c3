# Copyright 2026 Checklint Contributors
# SPDX-License-Identifier: Apache-2.0

"""Rule registry, rule selection, and the lint run that aggregates diagnostics.

A rule is a plain function ``(check, index, resolver) -> list[Diagnostic]``.
Rules share only immutable inputs, so each can be written and tested in
isolation. The engine runs the selected rules in registration order and
concatenates their diagnostics into a single, deterministic sequence.
"""

from __future__ import annotations

import functools
import logging
import threading
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from checklint.compiler.index import ExpressionIndex
from checklint.compiler.loader import load_check
from checklint.compiler.resolver import Resolver
from checklint.config.settings import ConfigurationError, Settings
from checklint.model.check import Check
from checklint.model.diagnostic import Diagnostic, Verdict
from checklint.validation.checks import structural_rules
from checklint.validation.links import LinkProbe, Sleep, link_rule
from checklint.validation.rule import Rule

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############


class RuleRegistry:
    """Ordered mapping of rule name to rule.

    Registration order is execution order. Once frozen, the registry is
    read-only and can be shared freely.
    """

    def __init__(self, rules: Iterable[Rule] = ()) -> None:
        self._rules: dict[str, Rule] = {}
        self._frozen = False
        for rule in rules:
            self.register(rule)

    def register(self, rule: Rule) -> None:
        if self._frozen:
            raise RuntimeError("Cannot register rules on a frozen registry")
        if rule.name in self._rules:
            raise ValueError(f"Rule '{rule.name}' is already registered")
        self._rules[rule.name] = rule

    def freeze(self) -> RuleRegistry:
        self._frozen = True
        return self

    def names(self) -> list[str]:
        return list(self._rules)

    def get(self, name: str) -> Rule:
        try:
            return self._rules[name]
        except KeyError:
            raise ConfigurationError(f"Unknown rule '{name}'") from None

    def __contains__(self, name: object) -> bool:
        return name in self._rules

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules.values())

    def __len__(self) -> int:
        return len(self._rules)


@dataclass(frozen=True)
class RuleFilter:
    """Selects which registered rules run.

    Attributes:
        include: Names of the rules to run, or None for every rule.
        exclude: Names of rules to skip; applied after *include*.
    """

    include: frozenset[str] | None = None
    exclude: frozenset[str] = frozenset()

    @classmethod
    def all(cls) -> RuleFilter:
        return cls()

    @classmethod
    def only(cls, *names: str) -> RuleFilter:
        return cls(include=frozenset(names))

    @classmethod
    def excluding(cls, *names: str) -> RuleFilter:
        return cls(exclude=frozenset(names))

    @classmethod
    def from_settings(cls, settings: Settings) -> RuleFilter:
        return cls(include=settings.include_rules, exclude=settings.exclude_rules)

    def validate(self, registry: RuleRegistry) -> None:
        """Raise ConfigurationError if the filter names a rule that is not registered."""
        named = set(self.exclude) | set(self.include or ())
        unknown = sorted(name for name in named if name not in registry)
        if unknown:
            known = ", ".join(registry.names())
            raise ConfigurationError(f"Unknown rule(s): {', '.join(unknown)}. Known rules: {known}")

    def select(self, registry: RuleRegistry) -> list[Rule]:
        """Return the enabled rules in registration order."""
        self.validate(registry)
        return [
            rule
            for rule in registry
            if (self.include is None or rule.name in self.include) and rule.name not in self.exclude
        ]


@dataclass(frozen=True)
class LintResult:
    """Outcome of linting one Check.

    Attributes:
        check_id: Identifier of the linted Check.
        diagnostics: Diagnostics in rule registration order, then document order.
        verdict: PASS iff no diagnostic is an error.
    """

    check_id: str
    diagnostics: tuple[Diagnostic, ...] = field(default_factory=tuple)
    verdict: Verdict = Verdict.PASS

    @property
    def passed(self) -> bool:
        return self.verdict == Verdict.PASS


def build_registry(
    settings: Settings | None = None,
    *,
    link_probe: LinkProbe | None = None,
    sleep: Sleep | None = None,
) -> RuleRegistry:
    """Build a frozen registry of the built-in rules configured by *settings*.

    Args:
        settings: Known enumerations and network settings; defaults apply when None.
        link_probe: Network primitive for the link-validity rule; an
            httpx-based probe is used when None.
        sleep: Coroutine function used for retry backoff, replaceable by a fake clock.
    """
    settings = settings or Settings()
    registry = RuleRegistry(structural_rules(settings))
    registry.register(link_rule(settings.links, probe=link_probe, sleep=sleep))
    return registry.freeze()


@functools.cache
def default_registry() -> RuleRegistry:
    """Return the process-wide registry built from default settings."""
    return build_registry()


class Engine:
    """Runs the selected rules over a Check.

    Args:
        settings: Linter configuration; defaults apply when None.
        link_probe: Network primitive for link checks, e.g. one provided by
            an embedding host.
        sleep: Coroutine function used for retry backoff.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        link_probe: LinkProbe | None = None,
        sleep: Sleep | None = None,
    ) -> None:
        self._settings = settings or Settings()
        if settings is None and link_probe is None and sleep is None:
            self._registry = default_registry()
        else:
            self._registry = build_registry(self._settings, link_probe=link_probe, sleep=sleep)

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def rules(self) -> RuleRegistry:
        return self._registry

    def run(
        self,
        check: Check,
        rule_filter: RuleFilter | None = None,
        *,
        deadline: float | None = None,
        cancel: threading.Event | None = None,
    ) -> LintResult:
        """Run every enabled rule over *check*.

        Args:
            check: The loaded Check.
            rule_filter: Rules to run; when None the filter from the settings is used.
            deadline: Seconds allowed for network checks, overriding the settings.
            cancel: Event that, once set, stops issuing new network checks.

        Returns:
            The aggregated :class:`LintResult`.

        Raises:
            ConfigurationError: If *rule_filter* names an unknown rule. No rule
                runs in that case.
        """
        if rule_filter is None:
            rule_filter = RuleFilter.from_settings(self._settings)
        rules = rule_filter.select(self._registry)

        index = ExpressionIndex.build(check)
        resolver = Resolver(check, index, self._settings.env_identifiers)

        diagnostics: list[Diagnostic] = []
        for rule in rules:
            logger.debug("Running rule %s on check %s", rule.name, check.id)
            if rule.cancellable:
                found = rule.func(check, index, resolver, deadline=deadline, cancel=cancel)
            else:
                found = rule.func(check, index, resolver)
            diagnostics.extend(found)

        verdict = Verdict.of(diagnostics)
        logger.debug("Check %s: %d diagnostic(s), verdict %s", check.id, len(diagnostics), verdict.value)
        return LintResult(check_id=check.id, diagnostics=tuple(diagnostics), verdict=verdict)

    def lint(self, text: str | bytes, rule_filter: RuleFilter | None = None, **kwargs) -> LintResult:
        """Load *text* as a Check and run the enabled rules over it.

        Raises:
            ParseError: If the document is structurally invalid.
            ConfigurationError: If *rule_filter* names an unknown rule.
        """
        if rule_filter is None:
            rule_filter = RuleFilter.from_settings(self._settings)
        rule_filter.validate(self._registry)
        check = load_check(text, strict=self._settings.strict)
        return self.run(check, rule_filter, **kwargs)
