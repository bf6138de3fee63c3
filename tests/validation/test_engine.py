# Copyright 2026 Checklint Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the rule registry, rule filters, and the lint engine."""

import threading
from pathlib import Path

import pytest

from checklint.compiler import ParseError, load_check
from checklint.config import ConfigurationError, Settings
from checklint.model import Verdict
from checklint.validation import (
    Engine,
    LinkProbeError,
    Rule,
    RuleFilter,
    RuleRegistry,
    build_registry,
    default_registry,
)

FIXTURES = Path(__file__).parent.parent / "fixtures"

# ###############
# Test Helpers
# ###############


class _FailingProbe:
    """Probe for which every request fails; records the URLs it was asked about."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    async def __call__(self, method: str, url: str, timeout: float) -> int:
        self.calls.append(url)
        raise LinkProbeError("connection refused")


async def _no_sleep(delay: float) -> None:
    return None


def _sample() -> str:
    return (FIXTURES / "check.yml").read_text()


def _without_expectations(text: str) -> str:
    return text.split("expectations:")[0]


# A Check with at least one defect for every built-in rule.
_DEFECTIVE = """\
id: 1A2B3C
name: Everything wrong
group: Corosync
description: See https://docs.example.com/corosync for details.
remediation: Adjust the token timeout.
premium: true
metadata:
  target_type: mainframe
  provider: [aws, ibm]
facts:
  - name: token
    gatherer: corosync.conf
    argument: totem.token
  - name: token
    gatherer: corosync.conf
    argument: totem.token
values:
  - name: a
    default: 1
    conditions:
      - value: [1, 2]
        when: values.b == 1
  - name: b
    default: 1
    conditions:
      - value: 2
        when: values.a == 1 && env.region == "eu"
expectations:
  - name: broken
    expect: facts.token ? 1
  - name: dangling
    expect: values.nonexistent == facts.token
  - name: shapeless
    warning_message: Token is tolerated
"""

# ###############
# Registry
# ###############


class TestRuleRegistry:
    def test_default_rules_in_order(self) -> None:
        assert default_registry().names() == [
            "expectations-not-empty",
            "expectation-form",
            "unique-names",
            "valid-expression",
            "valid-reference",
            "value-cycles",
            "value-shape-consistency",
            "metadata-enum-validity",
            "deprecated-fields",
            "link-validity",
        ]

    def test_default_registry_is_shared(self) -> None:
        assert default_registry() is default_registry()
        assert Engine().rules is default_registry()

    def test_duplicate_registration_rejected(self) -> None:
        rule = Rule("r", "d", lambda check, index, resolver: [])
        registry = RuleRegistry([rule])
        with pytest.raises(ValueError, match="already registered"):
            registry.register(rule)

    def test_frozen_registry_is_read_only(self) -> None:
        registry = build_registry()
        with pytest.raises(RuntimeError):
            registry.register(Rule("extra", "d", lambda check, index, resolver: []))

    def test_get_unknown_rule(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown rule 'nope'"):
            default_registry().get("nope")


# ###############
# Rule Filter
# ###############


class TestRuleFilter:
    def test_all_selects_everything(self) -> None:
        registry = default_registry()
        assert [r.name for r in RuleFilter.all().select(registry)] == registry.names()

    def test_only(self) -> None:
        selected = RuleFilter.only("valid-reference", "unique-names").select(default_registry())
        assert [r.name for r in selected] == ["unique-names", "valid-reference"]

    def test_excluding(self) -> None:
        selected = RuleFilter.excluding("link-validity").select(default_registry())
        assert "link-validity" not in [r.name for r in selected]
        assert len(selected) == len(default_registry()) - 1

    def test_exclude_applies_after_include(self) -> None:
        rule_filter = RuleFilter(include=frozenset({"unique-names"}), exclude=frozenset({"unique-names"}))
        assert rule_filter.select(default_registry()) == []

    def test_unknown_name_is_configuration_error(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            RuleFilter.excluding("link-validty").validate(default_registry())
        assert "Unknown rule(s): link-validty" in str(exc_info.value)
        assert "Known rules:" in str(exc_info.value)

    def test_from_settings(self) -> None:
        settings = Settings(include_rules=frozenset({"unique-names"}), exclude_rules=frozenset({"link-validity"}))
        rule_filter = RuleFilter.from_settings(settings)
        assert rule_filter.include == frozenset({"unique-names"})
        assert rule_filter.exclude == frozenset({"link-validity"})


# ###############
# End-to-End
# ###############


class TestEndToEnd:
    def test_sample_check_passes(self) -> None:
        result = Engine().lint(_sample())
        assert result.diagnostics == ()
        assert result.verdict == Verdict.PASS
        assert result.passed
        assert result.check_id == "156F64"

    def test_missing_expectations(self) -> None:
        result = Engine().lint(_without_expectations(_sample()))
        assert len(result.diagnostics) == 1
        diag = result.diagnostics[0]
        assert diag.field_path == "expectations"
        assert diag.message == "List must not be empty"
        assert result.verdict == Verdict.FAIL

    def test_empty_expectations(self) -> None:
        result = Engine().lint(_without_expectations(_sample()) + "expectations: []\n")
        assert [d.field_path for d in result.diagnostics] == ["expectations"]

    def test_unknown_value_reference(self) -> None:
        text = _sample().replace("== values.expected_token_timeout", "== values.nonexistent")
        result = Engine().lint(text)
        assert len(result.diagnostics) == 1
        diag = result.diagnostics[0]
        assert diag.rule_id == "valid-reference"
        assert diag.field_path == "expectations.timeout.expect"
        assert "values.nonexistent" in diag.message
        assert not result.passed

    def test_warning_only_passes(self) -> None:
        result = Engine().lint(_sample() + "premium: false\n")
        assert [d.rule_id for d in result.diagnostics] == ["deprecated-fields"]
        assert result.passed

    def test_parse_error_propagates(self) -> None:
        with pytest.raises(ParseError):
            Engine().lint((FIXTURES / "invalid_check.yml").read_text())


# ###############
# Rule Selection and Ordering
# ###############


class TestRuleSelection:
    def _engine(self) -> tuple[Engine, _FailingProbe]:
        probe = _FailingProbe()
        return Engine(link_probe=probe, sleep=_no_sleep), probe

    def test_every_rule_reports_on_defective_check(self) -> None:
        engine, _ = self._engine()
        result = engine.lint(_DEFECTIVE, RuleFilter.excluding("expectations-not-empty"))
        reported = {d.rule_id for d in result.diagnostics}
        assert reported == set(engine.rules.names()) - {"expectations-not-empty"}

    def test_diagnostics_follow_registration_order(self) -> None:
        engine, _ = self._engine()
        result = engine.lint(_DEFECTIVE)
        order = engine.rules.names()
        positions = [order.index(d.rule_id) for d in result.diagnostics]
        assert positions == sorted(positions)

    @pytest.mark.parametrize("rule_name", default_registry().names())
    def test_disabling_a_rule_removes_exactly_its_diagnostics(self, rule_name: str) -> None:
        engine, _ = self._engine()
        enabled = engine.lint(_DEFECTIVE).diagnostics
        disabled = engine.lint(_DEFECTIVE, RuleFilter.excluding(rule_name)).diagnostics
        assert disabled == tuple(d for d in enabled if d.rule_id != rule_name)

    def test_unknown_rule_fails_before_any_rule_runs(self) -> None:
        engine, probe = self._engine()
        with pytest.raises(ConfigurationError):
            engine.lint(_DEFECTIVE, RuleFilter.only("link-validity", "no-such-rule"))
        assert probe.calls == []

    def test_unknown_rule_reported_before_parse_error(self) -> None:
        with pytest.raises(ConfigurationError):
            Engine().lint("", RuleFilter.only("no-such-rule"))

    def test_settings_filter_used_by_default(self) -> None:
        engine = Engine(Settings(include_rules=frozenset({"deprecated-fields"})))
        result = engine.lint(_DEFECTIVE)
        assert {d.rule_id for d in result.diagnostics} == {"deprecated-fields"}

    def test_run_on_loaded_check(self) -> None:
        result = Engine().run(load_check(_sample()), RuleFilter.only("valid-reference"))
        assert result.passed


# ###############
# Cancellation
# ###############


class TestCancellation:
    def test_cancelled_run_reports_truncation(self) -> None:
        probe = _FailingProbe()
        cancel = threading.Event()
        cancel.set()
        engine = Engine(link_probe=probe, sleep=_no_sleep)
        result = engine.lint(_DEFECTIVE, RuleFilter.only("link-validity"), cancel=cancel)
        assert [(d.field_path, d.message) for d in result.diagnostics] == [
            ("links", "Link check truncated: 1 of 1 link(s) not checked")
        ]
        assert probe.calls == []
        assert not result.passed


# ###############
# Expectation Kinds
# ###############

_KINDS = """\
id: 0B6DB2
name: SBD watchdog timeout
group: SBD
description: SBD watchdog timeout matches the recommendation.
remediation: Adjust `Timeout (watchdog)` in the SBD device header.
facts:
  - name: sbd_watchdog_timeout
    gatherer: sbd_dump
    argument: Timeout (watchdog)
values:
  - name: expected_watchdog_timeout
    default: 5
    conditions:
      - value: 15
        when: env.provider == "azure"
expectations:
  - name: watchdog_timeout
    expect_enum: |
      if facts.sbd_watchdog_timeout == values.expected_watchdog_timeout { "passing" }
      else if facts.sbd_watchdog_timeout > values.expected_watchdog_timeout { "warning" }
      else { "critical" }
    failure_message: Watchdog timeout is ${facts.sbd_watchdog_timeout}, expected ${values.expected_watchdog_timeout}
    warning_message: Watchdog timeout ${facts.sbd_watchdog_timeout} is higher than needed
  - name: same_timeout
    expect_same: facts.sbd_watchdog_timeout
    failure_message: Watchdog timeouts differ across nodes
"""


class TestExpectationKinds:
    def test_all_kinds_pass(self) -> None:
        result = Engine().lint(_KINDS)
        assert result.diagnostics == ()

    def test_unknown_reference_in_message(self) -> None:
        text = _KINDS.replace("expected ${values.expected_watchdog_timeout}", "expected ${values.watchdog}")
        result = Engine().lint(text)
        assert [(d.rule_id, d.field_path) for d in result.diagnostics] == [
            ("valid-reference", "expectations.watchdog_timeout.failure_message")
        ]

    def test_non_ascii_digit_is_a_diagnostic(self) -> None:
        text = _sample().replace("== values.expected_token_timeout", "== ²")
        result = Engine().lint(text, RuleFilter.excluding("link-validity"))
        assert [(d.rule_id, d.field_path) for d in result.diagnostics] == [
            ("valid-expression", "expectations.timeout.expect")
        ]
        assert "Unknown operator: '²'" in result.diagnostics[0].message
