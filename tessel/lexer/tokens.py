"""
Lexeme definitions for the Tessel front end.

Tessel has no separate tokenization pass: parser rules ask the lexer for
one lexeme at a time. This module defines what those lexemes are:
- Reserved words (type names and the `mut` keyword)
- Punctuation and the `->` arrow
- Identifier and integer character classes
- Source locations used by every diagnostic
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any


class TokenType(Enum):
    """Kinds of lexemes the lexer can match."""

    EOF = auto()

    # Literals and names
    INTEGER = auto()                # 42, -7
    IDENTIFIER = auto()             # f, tru, my_var1
    WORD = auto()                   # any brace-free run inside a block

    # Reserved words
    INT = auto()                    # Int
    ARRAY = auto()                  # Array
    MUT = auto()                    # mut

    # Punctuation
    LEFT_PAREN = auto()             # (
    RIGHT_PAREN = auto()            # )
    LEFT_BRACKET = auto()           # [
    RIGHT_BRACKET = auto()          # ]
    LEFT_BRACE = auto()             # {
    RIGHT_BRACE = auto()            # }
    COMMA = auto()                  # ,
    COLON = auto()                  # :
    ASSIGN = auto()                 # =
    ARROW = auto()                  # ->


@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in the source code.

    Used for error reporting and AST spans.
    """
    filename: str
    line: int
    column: int
    offset: int  # Character offset from start of input

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}"

    def __repr__(self) -> str:
        return f"SourceLocation({self.filename!r}, {self.line}, {self.column}, {self.offset})"


@dataclass(frozen=True)
class Token:
    """
    A lexeme matched by the lexer.

    Carries the lexeme kind, the raw text, its semantic value (an int for
    INTEGER, the name for IDENTIFIER) and where it starts.
    """
    type: TokenType
    lexeme: str
    value: Any
    location: SourceLocation

    def __str__(self) -> str:
        if self.value is not None and self.value != self.lexeme:
            return f"{self.type.name}({self.lexeme!r} -> {self.value!r})"
        return f"{self.type.name}({self.lexeme!r})"


KEYWORDS = {
    "Int": TokenType.INT,
    "Array": TokenType.ARRAY,
    "mut": TokenType.MUT,
}

SYMBOLS = {
    "->": TokenType.ARROW,
    "(": TokenType.LEFT_PAREN,
    ")": TokenType.RIGHT_PAREN,
    "[": TokenType.LEFT_BRACKET,
    "]": TokenType.RIGHT_BRACKET,
    "{": TokenType.LEFT_BRACE,
    "}": TokenType.RIGHT_BRACE,
    ",": TokenType.COMMA,
    ":": TokenType.COLON,
    "=": TokenType.ASSIGN,
}

SYMBOL_TEXT = {token_type: text for text, token_type in SYMBOLS.items()}
KEYWORD_TEXT = {token_type: text for text, token_type in KEYWORDS.items()}

BLOCK_DELIMITERS = frozenset("{}")


def describe(token_type: TokenType) -> str:
    """Human-readable name of a lexeme kind, as used in diagnostics."""
    if token_type in SYMBOL_TEXT:
        return f"'{SYMBOL_TEXT[token_type]}'"
    if token_type in KEYWORD_TEXT:
        return f"'{KEYWORD_TEXT[token_type]}'"
    if token_type is TokenType.EOF:
        return "end of input"
    return token_type.name.lower()


def is_identifier_start(char: str) -> bool:
    return char.isalpha() or char == '_'


def is_identifier_continue(char: str) -> bool:
    return char.isalnum() or char == '_'
