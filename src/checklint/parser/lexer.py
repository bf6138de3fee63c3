# Copyright 2026 Checklint Contributors
# SPDX-License-Identifier: Apache-2.0

"""Lexical scanner for `when` and `expect` expressions.

Converts raw expression text into a sequence of tokens for subsequent parsing.
"""

import enum
from dataclasses import dataclass

# ###############
# Public Interface
# ###############


class TokenType(enum.Enum):
    """All token types produced by the expression lexer."""

    # Keywords
    TRUE = "true"
    FALSE = "false"
    IF = "if"
    ELSE = "else"

    # Grouping and punctuation
    LPAREN = "("
    RPAREN = ")"
    LBRACKET = "["
    RBRACKET = "]"
    LBRACE = "{"
    RBRACE = "}"
    COMMA = ","
    DOT = "."

    # Comparison operators
    EQ = "=="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="

    # Logical operators
    AND = "&&"
    OR = "||"
    NOT = "!"

    # Literals
    STRING = "STRING"
    INTEGER = "INTEGER"
    FLOAT = "FLOAT"

    # Identifiers
    IDENTIFIER = "IDENTIFIER"

    # End of input
    EOF = "EOF"


@dataclass(frozen=True)
class Token:
    """A lexical token with its source location.

    Attributes:
        type: The kind of token.
        value: The raw text of the token (or decoded string content for STRING tokens).
        line: 1-based line number where the token starts.
        column: 1-based column number where the token starts.
    """

    type: TokenType
    value: str
    line: int
    column: int


class ExpressionError(Exception):
    """Raised when an expression cannot be scanned or parsed.

    Attributes:
        line: 1-based line number of the error.
        column: 1-based column number of the error.
    """

    def __init__(self, message: str, line: int, column: int) -> None:
        super().__init__(f"{message} (line {line}, position {column})")
        self.reason = message
        self.line = line
        self.column = column


class LexerError(ExpressionError):
    """Raised when the scanner encounters an invalid character or unterminated literal."""


def tokenize(source: str) -> list[Token]:
    """Tokenize expression text into a sequence of tokens.

    Returns a list of tokens. The final token is always an EOF token.
    Whitespace is consumed and not included in the output.

    Args:
        source: The text of a single `when` or `expect` field.

    Returns:
        A list of Token objects ending with a single EOF token.

    Raises:
        LexerError: On unknown operators, unexpected characters, or
            unterminated string literals.
    """
    return _Lexer(source).tokenize()


# ################
# Implementation
# ################

_KEYWORDS: dict[str, TokenType] = {
    "true": TokenType.TRUE,
    "false": TokenType.FALSE,
    "if": TokenType.IF,
    "else": TokenType.ELSE,
}

_SINGLE_CHAR_TOKENS: dict[str, TokenType] = {
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    ",": TokenType.COMMA,
    ".": TokenType.DOT,
}

# Two-character operators are matched before their one-character prefixes.
_TWO_CHAR_TOKENS: dict[str, TokenType] = {
    "==": TokenType.EQ,
    "!=": TokenType.NE,
    "<=": TokenType.LE,
    ">=": TokenType.GE,
    "&&": TokenType.AND,
    "||": TokenType.OR,
}

_ONE_CHAR_OPERATORS: dict[str, TokenType] = {
    "<": TokenType.LT,
    ">": TokenType.GT,
    "!": TokenType.NOT,
}


def _is_digit(ch: str) -> bool:
    """ASCII digits only; ``str.isdigit`` also accepts characters such as ``²``."""
    return "0" <= ch <= "9"


class _Lexer:
    """Internal scanner state machine."""

    def __init__(self, source: str) -> None:
        self._source = source
        self._pos = 0
        self._line = 1
        self._column = 1
        self._tokens: list[Token] = []

    def tokenize(self) -> list[Token]:
        """Run the scanner and return all tokens including the terminal EOF."""
        while self._pos < len(self._source):
            self._skip_whitespace()
            if self._pos >= len(self._source):
                break
            self._scan_token()
        self._tokens.append(Token(TokenType.EOF, "", self._line, self._column))
        return self._tokens

    # ------------------------------------------------------------------
    # Low-level character access helpers
    # ------------------------------------------------------------------

    def _current(self) -> str:
        """Return the character at the current position, or '' at end of input."""
        if self._pos < len(self._source):
            return self._source[self._pos]
        return ""

    def _peek(self) -> str:
        """Return the character one position ahead, or '' at end of input."""
        if self._pos + 1 < len(self._source):
            return self._source[self._pos + 1]
        return ""

    def _advance(self) -> str:
        """Consume the current character, update position tracking, and return it."""
        ch = self._source[self._pos]
        self._pos += 1
        if ch == "\n":
            self._line += 1
            self._column = 1
        else:
            self._column += 1
        return ch

    def _skip_whitespace(self) -> None:
        while self._pos < len(self._source) and self._current() in " \t\r\n":
            self._advance()

    # ------------------------------------------------------------------
    # Token scanning dispatcher
    # ------------------------------------------------------------------

    def _scan_token(self) -> None:
        """Dispatch to the appropriate handler based on the current character."""
        ch = self._current()
        line = self._line
        col = self._column
        pair = ch + self._peek()

        if pair in _TWO_CHAR_TOKENS:
            self._advance()
            self._advance()
            self._tokens.append(Token(_TWO_CHAR_TOKENS[pair], pair, line, col))
        elif ch in _ONE_CHAR_OPERATORS:
            self._advance()
            self._tokens.append(Token(_ONE_CHAR_OPERATORS[ch], ch, line, col))
        elif ch in _SINGLE_CHAR_TOKENS:
            self._advance()
            self._tokens.append(Token(_SINGLE_CHAR_TOKENS[ch], ch, line, col))
        elif ch == '"':
            self._scan_string(line, col)
        elif _is_digit(ch) or (ch == "-" and _is_digit(self._peek())):
            self._scan_number(line, col)
        elif ch.isalpha() or ch == "_":
            self._scan_identifier_or_keyword(line, col)
        else:
            raise LexerError(f"Unknown operator: {ch!r}", line, col)

    # ------------------------------------------------------------------
    # Literal scanners
    # ------------------------------------------------------------------

    def _scan_string(self, line: int, col: int) -> None:
        """Scan a double-quoted string literal with escape sequences."""
        self._advance()  # opening "
        chars: list[str] = []
        while self._pos < len(self._source):
            ch = self._current()
            if ch == '"':
                self._advance()  # closing "
                self._tokens.append(Token(TokenType.STRING, "".join(chars), line, col))
                return
            if ch == "\n":
                raise LexerError("Unterminated string literal", line, col)
            if ch == "\\":
                self._advance()
                if self._pos >= len(self._source):
                    raise LexerError("Unterminated string literal", line, col)
                esc = self._current()
                if esc == "n":
                    chars.append("\n")
                elif esc == "t":
                    chars.append("\t")
                elif esc == "\\":
                    chars.append("\\")
                elif esc == '"':
                    chars.append('"')
                else:
                    raise LexerError(
                        f"Invalid escape sequence: '\\{esc}'",
                        self._line,
                        self._column,
                    )
                self._advance()
            else:
                chars.append(ch)
                self._advance()
        raise LexerError("Unterminated string literal", line, col)

    def _scan_number(self, line: int, col: int) -> None:
        """Scan an integer or floating-point literal with an optional leading minus.

        A float requires at least one digit on both sides of the decimal point.
        """
        start = self._pos
        if self._current() == "-":
            self._advance()
        while self._pos < len(self._source) and _is_digit(self._current()):
            self._advance()

        if self._pos < len(self._source) and self._current() == "." and _is_digit(self._peek()):
            self._advance()  # consume the '.'
            while self._pos < len(self._source) and _is_digit(self._current()):
                self._advance()
            value = self._source[start : self._pos]
            self._tokens.append(Token(TokenType.FLOAT, value, line, col))
        else:
            value = self._source[start : self._pos]
            self._tokens.append(Token(TokenType.INTEGER, value, line, col))

    def _scan_identifier_or_keyword(self, line: int, col: int) -> None:
        """Scan an identifier and map it to a keyword token type if applicable."""
        start = self._pos
        while self._pos < len(self._source) and (self._current().isalnum() or self._current() == "_"):
            self._advance()
        value = self._source[start : self._pos]
        token_type = _KEYWORDS.get(value, TokenType.IDENTIFIER)
        self._tokens.append(Token(token_type, value, line, col))
