# Copyright 2026 Checklint Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the expression parser and the expression tree helpers."""

import pytest

from checklint.model.expression import (
    Branch,
    Comparison,
    ComparisonOp,
    Conditional,
    FieldReference,
    ListLiteral,
    Literal,
    Logical,
    LogicalOp,
    Namespace,
    references,
    render,
)
from checklint.parser import ExpressionError, parse_enum_expression, parse_expression

# ###############
# Test Helpers
# ###############


def _ref(namespace: str, identifier: str) -> FieldReference:
    return FieldReference(namespace=Namespace(namespace), identifier=identifier)


def _error(source: str) -> ExpressionError:
    with pytest.raises(ExpressionError) as exc_info:
        parse_expression(source)
    return exc_info.value


def _dotted(source: str) -> set[str]:
    return {ref.dotted for ref in references(parse_expression(source))}


# ###############
# Operands
# ###############


class TestOperands:
    def test_reference(self) -> None:
        assert parse_expression("facts.corosync_token_timeout") == _ref("facts", "corosync_token_timeout")

    @pytest.mark.parametrize(
        "source,value",
        [('"azure"', "azure"), ("5000", 5000), ("-1", -1), ("2.5", 2.5), ("true", True), ("false", False)],
    )
    def test_literals(self, source: str, value: object) -> None:
        assert parse_expression(source) == Literal(value=value)

    def test_list_literal(self) -> None:
        expr = parse_expression('["aws", "gcp"]')
        assert expr == ListLiteral(items=(Literal("aws"), Literal("gcp")))

    def test_empty_list_literal(self) -> None:
        assert parse_expression("[]") == ListLiteral(items=())

    def test_parenthesised_operand(self) -> None:
        assert parse_expression("(values.a)") == _ref("values", "a")


# ###############
# Precedence and Associativity
# ###############


class TestPrecedence:
    def test_comparison(self) -> None:
        expr = parse_expression("facts.corosync_token_timeout == values.expected_token_timeout")
        assert expr == Comparison(
            op=ComparisonOp.EQ,
            left=_ref("facts", "corosync_token_timeout"),
            right=_ref("values", "expected_token_timeout"),
        )

    def test_and_binds_tighter_than_or(self) -> None:
        expr = parse_expression("facts.a || facts.b && facts.c")
        assert isinstance(expr, Logical)
        assert expr.op == LogicalOp.OR
        right = expr.operands[1]
        assert isinstance(right, Logical)
        assert right.op == LogicalOp.AND

    def test_or_is_left_associative(self) -> None:
        expr = parse_expression("facts.a || facts.b || facts.c")
        assert isinstance(expr, Logical)
        left = expr.operands[0]
        assert isinstance(left, Logical)
        assert left.operands == (_ref("facts", "a"), _ref("facts", "b"))

    def test_not_binds_tighter_than_and(self) -> None:
        expr = parse_expression("!facts.a && facts.b")
        assert isinstance(expr, Logical)
        assert expr.op == LogicalOp.AND
        assert expr.operands[0] == Logical(op=LogicalOp.NOT, operands=(_ref("facts", "a"),))

    def test_not_applies_to_comparison(self) -> None:
        expr = parse_expression('!env.provider == "aws"')
        assert isinstance(expr, Logical)
        assert expr.op == LogicalOp.NOT
        assert isinstance(expr.operands[0], Comparison)

    def test_parentheses_override_precedence(self) -> None:
        expr = parse_expression("(facts.a || facts.b) && facts.c")
        assert isinstance(expr, Logical)
        assert expr.op == LogicalOp.AND

    def test_list_equality_is_allowed(self) -> None:
        expr = parse_expression('values.order != ["IPaddr2", "SAPInstance"]')
        assert isinstance(expr, Comparison)
        assert expr.op == ComparisonOp.NE


# ###############
# Errors
# ###############


class TestErrors:
    def test_empty_expression(self) -> None:
        assert _error("   ").reason == "Empty expression"

    def test_unknown_operator(self) -> None:
        assert str(_error("facts.a ? 1")) == "Unknown operator: '?' (line 1, position 9)"

    def test_single_equals_is_unknown_operator(self) -> None:
        assert _error("facts.a = 1").reason == "Unknown operator: '='"

    def test_unbalanced_open_paren(self) -> None:
        assert _error("(facts.a == 1").reason == "Unbalanced '(': missing ')'"

    def test_unbalanced_close_paren(self) -> None:
        err = _error("facts.a == 1)")
        assert err.reason == "Unbalanced ')'"
        assert err.column == 13

    def test_unbalanced_bracket(self) -> None:
        assert _error('["aws", "gcp"').reason == "Unbalanced '[': missing ']'"

    def test_unknown_namespace(self) -> None:
        assert _error("facs.a == 1").reason == "Unknown namespace 'facs'"

    def test_bare_identifier(self) -> None:
        assert _error("provider == 1").reason.startswith("Bare identifier 'provider'")

    def test_missing_identifier_after_namespace(self) -> None:
        assert _error("values. == 1").reason == "Expected an identifier, got '=='"

    def test_keyword_after_namespace(self) -> None:
        assert _error("facts.true == 1").reason == "Expected an identifier, got 'true'"

    def test_identifier_at_end_of_expression(self) -> None:
        assert _error("facts.").reason == "Expected an identifier, got end of expression"

    def test_missing_dot_after_namespace(self) -> None:
        assert _error("facts").reason == "Expected '.', got end of expression"

    def test_superscript_digit_is_expression_error(self) -> None:
        assert _error("facts.corosync_token_timeout == ²").reason == "Unknown operator: '²'"

    def test_float_out_of_range(self) -> None:
        assert _error("facts.a == " + "9" * 400 + ".0").reason == "Number out of range"

    def test_chained_comparison(self) -> None:
        assert "cannot be chained" in _error("facts.a == facts.b == facts.c").reason

    def test_ordering_with_list(self) -> None:
        assert _error("facts.a < [1, 2]").reason == "List literal cannot be compared with '<'"

    def test_list_items_must_be_literals(self) -> None:
        assert _error("[facts.a]").reason == "List items must be literals, got 'facts'"

    def test_dangling_operator(self) -> None:
        assert _error("facts.a &&").reason == "Unexpected end of expression"

    def test_adjacent_operands(self) -> None:
        assert _error("facts.a facts.b").reason == "Unexpected token 'facts'"


# ###############
# References and Rendering
# ###############


class TestReferences:
    def test_references_in_document_order(self) -> None:
        expr = parse_expression('env.provider == "aws" && facts.a > values.b')
        assert [ref.dotted for ref in references(expr)] == ["env.provider", "facts.a", "values.b"]

    def test_literals_have_no_references(self) -> None:
        assert references(parse_expression('["aws"] == ["aws"]')) == []


class TestRender:
    @pytest.mark.parametrize(
        "source",
        [
            "facts.corosync_token_timeout == values.expected_token_timeout",
            'env.provider == "azure" || env.provider == "aws"',
            "(facts.a || facts.b) && !(facts.c == 1)",
            "!!facts.flag",
            'values.order == ["IPaddr2", "SAPStartSrv"]',
            "facts.a || (facts.b || facts.c)",
            "facts.ratio >= -0.5 && true",
            'facts.a == "café"',
            'facts.a == "tab\\there\\nnext"',
            'facts.a == "bell\x07 form\x0c return\r"',
            "facts.a == 99999999999999999999.0",
            "facts.a == 0.0000001",
            "facts.a == -12345678901234567890123.5",
        ],
    )
    def test_render_preserves_tree_and_references(self, source: str) -> None:
        expr = parse_expression(source)
        rendered = render(expr)
        assert parse_expression(rendered) == expr
        assert _dotted(rendered) == _dotted(source)

    def test_render_drops_redundant_parentheses(self) -> None:
        assert render(parse_expression("((facts.a)) && (facts.b == 1)")) == "facts.a && facts.b == 1"

    def test_render_escapes_strings(self) -> None:
        assert render(parse_expression(r'facts.a == "x\"y"')) == r'facts.a == "x\"y"'

    def test_render_keeps_non_ascii_verbatim(self) -> None:
        assert render(parse_expression('facts.a == "café"')) == 'facts.a == "café"'

    def test_render_large_float_positionally(self) -> None:
        assert render(parse_expression("facts.a == 99999999999999999999.0")) == "facts.a == 100000000000000000000.0"

    def test_render_small_float_positionally(self) -> None:
        assert render(Comparison(op=ComparisonOp.EQ, left=_ref("facts", "a"), right=Literal(value=1e-7))) == (
            "facts.a == 0.0000001"
        )


# ###############
# Enum Chains
# ###############

_CHAIN = (
    'if facts.timeout == values.expected { "passing" } '
    'else if facts.timeout > values.expected { "warning" } '
    'else { "critical" }'
)


class TestConditional:
    def test_if_else_chain(self) -> None:
        expr = parse_enum_expression(_CHAIN)
        assert len(expr.branches) == 2
        assert expr.branches[0] == Branch(
            condition=Comparison(op=ComparisonOp.EQ, left=_ref("facts", "timeout"), right=_ref("values", "expected")),
            result=Literal("passing"),
        )
        assert expr.otherwise == Literal("critical")
        assert [result.value for result in expr.results] == ["passing", "warning", "critical"]

    def test_references_come_from_conditions(self) -> None:
        dotted = [ref.dotted for ref in references(parse_enum_expression(_CHAIN))]
        assert dotted == ["facts.timeout", "values.expected", "facts.timeout", "values.expected"]

    def test_final_else_is_optional(self) -> None:
        expr = parse_enum_expression('if facts.a { "passing" }')
        assert expr == Conditional(branches=(Branch(condition=_ref("facts", "a"), result=Literal("passing")),))
        assert expr.otherwise is None

    def test_multi_line_chain(self) -> None:
        expr = parse_enum_expression('if facts.a {\n  "passing"\n} else {\n  "critical"\n}\n')
        assert [result.value for result in expr.results] == ["passing", "critical"]

    def test_block_must_hold_a_literal(self) -> None:
        with pytest.raises(ExpressionError) as exc_info:
            parse_enum_expression('if facts.a { facts.b } else { "critical" }')
        assert exc_info.value.reason == "Branch result must be a literal, got 'facts'"
        assert exc_info.value.column == 14

    def test_missing_if(self) -> None:
        with pytest.raises(ExpressionError) as exc_info:
            parse_enum_expression("facts.a == 1")
        assert exc_info.value.reason.startswith("Expected 'if'")

    def test_unclosed_block(self) -> None:
        with pytest.raises(ExpressionError) as exc_info:
            parse_enum_expression('if facts.a { "passing"')
        assert exc_info.value.reason == "Expected '}', got end of expression"

    def test_tokens_after_final_else(self) -> None:
        with pytest.raises(ExpressionError) as exc_info:
            parse_enum_expression('if facts.a { "passing" } else { "critical" } "warning"')
        assert exc_info.value.reason == "Unexpected token 'warning'"

    def test_plain_parser_rejects_chain(self) -> None:
        assert _error('if facts.a { "passing" }').reason == "Unexpected token 'if'"

    def test_render_round_trip(self) -> None:
        expr = parse_enum_expression(_CHAIN)
        assert parse_enum_expression(render(expr)) == expr

    def test_render_layout(self) -> None:
        rendered = render(parse_enum_expression('if (facts.a) {"passing"} else {"critical"}'))
        assert rendered == 'if facts.a { "passing" } else { "critical" }'
