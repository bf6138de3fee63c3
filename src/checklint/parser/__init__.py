# Copyright 2026 Checklint Contributors
# SPDX-License-Identifier: Apache-2.0

"""Lexer and parsers for expressions and message templates of Check fields."""

from checklint.parser.lexer import ExpressionError, LexerError, Token, TokenType, tokenize
from checklint.parser.parser import parse_enum_expression, parse_expression
from checklint.parser.template import Interpolation, interpolations, parse_interpolation

__all__ = [
    "parse_enum_expression",
    "parse_expression",
    "parse_interpolation",
    "interpolations",
    "Interpolation",
    "tokenize",
    "ExpressionError",
    "LexerError",
    "Token",
    "TokenType",
]
