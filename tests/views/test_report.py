# Copyright 2026 Checklint Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for diagnostic report lines and the Check summary view."""

import re
from pathlib import Path

from checklint.compiler import load_check
from checklint.model import Check, Diagnostic, Expectation, Severity
from checklint.views import format_diagnostic, format_report, render_check

FIXTURES = Path(__file__).parent.parent / "fixtures"

_ANSI = re.compile(r"\x1b\[[0-9;]*m")


def _diag(field_path: str, message: str, severity: Severity = Severity.ERROR) -> Diagnostic:
    return Diagnostic(
        check_id="156F64",
        field_path=field_path,
        rule_id="some-rule",
        severity=severity,
        message=message,
    )


def _plain(text: str) -> str:
    return _ANSI.sub("", text)


# ###############
# Report Lines
# ###############


class TestFormatDiagnostic:
    def test_line_format(self) -> None:
        line = format_diagnostic(_diag("expectations", "List must not be empty"))
        assert line == "156F64  - expectations - List must not be empty"

    def test_warning_prefix(self) -> None:
        line = format_diagnostic(_diag("premium", "deprecated", Severity.WARNING))
        assert line == "156F64  - premium - warning: deprecated"

    def test_report_preserves_order(self) -> None:
        lines = format_report([_diag("b", "second"), _diag("a", "first")])
        assert lines == ["156F64  - b - second", "156F64  - a - first"]

    def test_empty_report(self) -> None:
        assert format_report([]) == []


# ###############
# Check Summary
# ###############


class TestRenderCheck:
    def test_sections_present(self) -> None:
        text = _plain(render_check(load_check((FIXTURES / "check.yml").read_text())))
        assert "156F64" in text
        assert "Corosync configuration file" in text
        for section in ("Group", "Remediation", "Metadata", "Facts", "Values", "Expectations"):
            assert section in text
        assert "aws, azure" in text
        assert '30000 when env.provider == "azure" || env.provider == "aws"' in text
        assert "[IPaddr2, SAPStartSrv, SAPInstance]" in text
        assert "facts.corosync_token_timeout == values.expected_token_timeout" in text

    def test_expectation_fields_labelled(self) -> None:
        check = Check(
            id="156F64",
            name="Corosync configuration file",
            group="Corosync",
            description="d",
            remediation="r",
            expectations=[
                Expectation(
                    name="graded",
                    expect_enum='if facts.a { "passing" } else { "critical" }\n',
                    failure_message="Token is ${facts.a}",
                )
            ],
        )
        text = _plain(render_check(check))
        assert re.search(r'Expect enum +if facts.a \{ "passing" \} else \{ "critical" \}$', text, re.M)
        assert re.search(r"Failure message +Token is \$\{facts.a\}", text)
        assert "Warning message" not in text
