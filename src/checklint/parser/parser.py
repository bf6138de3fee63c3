# Copyright 2026 Checklint Contributors
# SPDX-License-Identifier: Apache-2.0

"""Recursive-descent parser for `when` and `expect` expressions.

Converts a token stream produced by the lexer into an expression tree.

Grammar, lowest precedence first::

    or          := and ("||" and)*
    and         := unary ("&&" unary)*
    unary       := "!" unary | comparison
    comparison  := operand (("==" | "!=" | "<" | "<=" | ">" | ">=") operand)?
    operand     := literal | list | reference | "(" or ")"
    list        := "[" (literal ("," literal)*)? "]"
    reference   := ("facts" | "values" | "env") "." IDENTIFIER
"""

import math

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
)
from checklint.parser.lexer import ExpressionError, Token, TokenType, tokenize

# ###############
# Public Interface
# ###############


def parse_expression(source: str) -> Expression:
    """Parse expression text into an expression tree.

    Args:
        source: The text of a single `when` or `expect` field.

    Returns:
        The root node of the parsed expression.

    Raises:
        ExpressionError: If the expression is empty, contains an unknown
            operator, has unbalanced grouping, references an unknown
            namespace, or otherwise violates the grammar.
    """
    tokens = tokenize(source)
    return _Parser(tokens).parse()


def parse_enum_expression(source: str) -> Conditional:
    """Parse the text of an ``expect_enum`` field.

    Grammar::

        enum    := "if" or block ("else" "if" or block)* ("else" block)?
        block   := "{" literal "}"

    Raises:
        ExpressionError: If the text is not such a chain or a condition is
            not a valid expression.
    """
    tokens = tokenize(source)
    return _Parser(tokens).parse_conditional()


# ################
# Implementation
# ################

_COMPARISON_OPS: dict[TokenType, ComparisonOp] = {
    TokenType.EQ: ComparisonOp.EQ,
    TokenType.NE: ComparisonOp.NE,
    TokenType.LT: ComparisonOp.LT,
    TokenType.LE: ComparisonOp.LE,
    TokenType.GT: ComparisonOp.GT,
    TokenType.GE: ComparisonOp.GE,
}

_NAMESPACES: dict[str, Namespace] = {ns.value: ns for ns in Namespace}

_LITERAL_TYPES: frozenset[TokenType] = frozenset(
    {
        TokenType.STRING,
        TokenType.INTEGER,
        TokenType.FLOAT,
        TokenType.TRUE,
        TokenType.FALSE,
    }
)

# Token classes without fixed text, named for error messages.
_TOKEN_NAMES: dict[TokenType, str] = {
    TokenType.STRING: "a string",
    TokenType.INTEGER: "an integer",
    TokenType.FLOAT: "a number",
    TokenType.IDENTIFIER: "an identifier",
    TokenType.EOF: "end of expression",
}


def _describe(token_type: TokenType) -> str:
    return _TOKEN_NAMES.get(token_type, repr(token_type.value))


def _number(tok: Token) -> int | float:
    """Convert an INTEGER or FLOAT token, rejecting values Python cannot represent."""
    try:
        value = int(tok.value) if tok.type == TokenType.INTEGER else float(tok.value)
    except ValueError:
        raise ExpressionError("Number out of range", tok.line, tok.column) from None
    if isinstance(value, float) and math.isinf(value):
        raise ExpressionError("Number out of range", tok.line, tok.column)
    return value


class _Parser:
    """Recursive-descent parser for expression token streams."""

    def __init__(self, tokens: list[Token]) -> None:
        self._tokens = tokens
        self._pos = 0

    def parse(self) -> Expression:
        """Parse the full token stream and return the root expression."""
        if self._at_end():
            tok = self._current()
            raise ExpressionError("Empty expression", tok.line, tok.column)
        expr = self._parse_or()
        if not self._at_end():
            tok = self._current()
            if tok.type == TokenType.RPAREN:
                raise ExpressionError("Unbalanced ')'", tok.line, tok.column)
            raise ExpressionError(f"Unexpected token {tok.value!r}", tok.line, tok.column)
        return expr

    def parse_conditional(self) -> Conditional:
        """Parse the full token stream as an if/else chain."""
        if self._at_end():
            tok = self._current()
            raise ExpressionError("Empty expression", tok.line, tok.column)
        branches = [self._parse_branch()]
        otherwise = None
        while self._check(TokenType.ELSE):
            self._advance()
            if self._check(TokenType.IF):
                branches.append(self._parse_branch())
            else:
                otherwise = self._parse_block()
                break
        if not self._at_end():
            tok = self._current()
            raise ExpressionError(f"Unexpected token {tok.value!r}", tok.line, tok.column)
        return Conditional(branches=tuple(branches), otherwise=otherwise)

    # ------------------------------------------------------------------
    # Token access helpers
    # ------------------------------------------------------------------

    def _current(self) -> Token:
        """Return the current (un-consumed) token."""
        return self._tokens[self._pos]

    def _peek_type(self) -> TokenType:
        """Return the token type of the current token."""
        return self._tokens[self._pos].type

    def _at_end(self) -> bool:
        """Return True if the current token is the EOF token."""
        return self._peek_type() == TokenType.EOF

    def _advance(self) -> Token:
        """Consume and return the current token, stopping at EOF."""
        tok = self._tokens[self._pos]
        if self._pos < len(self._tokens) - 1:
            self._pos += 1
        return tok

    def _check(self, *types: TokenType) -> bool:
        """Return True if the current token matches any of the given types."""
        return self._peek_type() in types

    def _expect(self, *types: TokenType) -> Token:
        """Consume the current token if it matches any of the given types.

        Raises ExpressionError if the current token does not match.
        """
        tok = self._current()
        if tok.type not in types:
            expected = " or ".join(_describe(t) for t in types)
            got = "end of expression" if tok.type == TokenType.EOF else repr(tok.value)
            raise ExpressionError(f"Expected {expected}, got {got}", tok.line, tok.column)
        return self._advance()

    # ------------------------------------------------------------------
    # Boolean structure
    # ------------------------------------------------------------------

    def _parse_or(self) -> Expression:
        left = self._parse_and()
        while self._check(TokenType.OR):
            self._advance()
            right = self._parse_and()
            left = Logical(op=LogicalOp.OR, operands=(left, right))
        return left

    def _parse_and(self) -> Expression:
        left = self._parse_unary()
        while self._check(TokenType.AND):
            self._advance()
            right = self._parse_unary()
            left = Logical(op=LogicalOp.AND, operands=(left, right))
        return left

    def _parse_unary(self) -> Expression:
        if self._check(TokenType.NOT):
            self._advance()
            return Logical(op=LogicalOp.NOT, operands=(self._parse_unary(),))
        return self._parse_comparison()

    def _parse_comparison(self) -> Expression:
        """Parse an operand optionally followed by one comparison.

        Comparisons do not chain: ``a == b == c`` is rejected.
        """
        left = self._parse_operand()
        if self._peek_type() not in _COMPARISON_OPS:
            return left
        op_tok = self._advance()
        op = _COMPARISON_OPS[op_tok.type]
        right = self._parse_operand()
        if op.is_ordering and (isinstance(left, ListLiteral) or isinstance(right, ListLiteral)):
            raise ExpressionError(
                f"List literal cannot be compared with {op.value!r}",
                op_tok.line,
                op_tok.column,
            )
        if self._peek_type() in _COMPARISON_OPS:
            tok = self._current()
            raise ExpressionError(
                f"Comparison {tok.value!r} cannot be chained; use parentheses",
                tok.line,
                tok.column,
            )
        return Comparison(op=op, left=left, right=right)

    # ------------------------------------------------------------------
    # Operands
    # ------------------------------------------------------------------

    def _parse_operand(self) -> Expression:
        tok = self._current()
        if tok.type in _LITERAL_TYPES:
            return self._parse_literal()
        if tok.type == TokenType.LBRACKET:
            return self._parse_list()
        if tok.type == TokenType.IDENTIFIER:
            return self._parse_reference()
        if tok.type == TokenType.LPAREN:
            self._advance()
            inner = self._parse_or()
            if not self._check(TokenType.RPAREN):
                closing = self._current()
                raise ExpressionError("Unbalanced '(': missing ')'", closing.line, closing.column)
            self._advance()
            return inner
        if tok.type == TokenType.EOF:
            raise ExpressionError("Unexpected end of expression", tok.line, tok.column)
        if tok.type == TokenType.RPAREN:
            raise ExpressionError("Unbalanced ')'", tok.line, tok.column)
        raise ExpressionError(f"Unexpected token {tok.value!r}", tok.line, tok.column)

    def _parse_literal(self) -> Literal:
        tok = self._advance()
        if tok.type == TokenType.STRING:
            return Literal(value=tok.value)
        if tok.type in (TokenType.INTEGER, TokenType.FLOAT):
            return Literal(value=_number(tok))
        return Literal(value=tok.type == TokenType.TRUE)

    def _parse_list(self) -> ListLiteral:
        """Parse: [ literal (, literal)* ]"""
        open_tok = self._expect(TokenType.LBRACKET)
        items: list[Literal] = []
        if not self._check(TokenType.RBRACKET):
            items.append(self._parse_list_item())
            while self._check(TokenType.COMMA):
                self._advance()
                items.append(self._parse_list_item())
        if not self._check(TokenType.RBRACKET):
            tok = self._current()
            if tok.type == TokenType.EOF:
                raise ExpressionError("Unbalanced '[': missing ']'", open_tok.line, open_tok.column)
            raise ExpressionError(f"Expected ',' or ']', got {tok.value!r}", tok.line, tok.column)
        self._advance()
        return ListLiteral(items=tuple(items))

    def _parse_list_item(self) -> Literal:
        tok = self._current()
        if tok.type not in _LITERAL_TYPES:
            got = "end of expression" if tok.type == TokenType.EOF else repr(tok.value)
            raise ExpressionError(f"List items must be literals, got {got}", tok.line, tok.column)
        return self._parse_literal()

    def _parse_reference(self) -> FieldReference:
        """Parse: namespace . identifier"""
        ns_tok = self._advance()
        namespace = _NAMESPACES.get(ns_tok.value)
        if namespace is None:
            if not self._check(TokenType.DOT):
                raise ExpressionError(
                    f"Bare identifier {ns_tok.value!r}; expected facts.<name>, values.<name> or env.<name>",
                    ns_tok.line,
                    ns_tok.column,
                )
            raise ExpressionError(f"Unknown namespace {ns_tok.value!r}", ns_tok.line, ns_tok.column)
        self._expect(TokenType.DOT)
        name_tok = self._expect(TokenType.IDENTIFIER)
        return FieldReference(namespace=namespace, identifier=name_tok.value)

    # ------------------------------------------------------------------
    # Conditional chains
    # ------------------------------------------------------------------

    def _parse_branch(self) -> Branch:
        self._expect(TokenType.IF)
        condition = self._parse_or()
        return Branch(condition=condition, result=self._parse_block())

    def _parse_block(self) -> Literal:
        """Parse: { literal }"""
        self._expect(TokenType.LBRACE)
        tok = self._current()
        if tok.type not in _LITERAL_TYPES:
            got = "end of expression" if tok.type == TokenType.EOF else repr(tok.value)
            raise ExpressionError(f"Branch result must be a literal, got {got}", tok.line, tok.column)
        result = self._parse_literal()
        self._expect(TokenType.RBRACE)
        return result
