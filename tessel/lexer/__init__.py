"""
Tessel Lexer Package

Lexeme-level matching for the Tessel front end. Lexing is fused with
parsing: parser rules call the Lexer for one lexeme at a time instead of
consuming a pre-built token stream.

Key Features:
- Identifier, integer, keyword and symbol matchers that never consume on mismatch
- // and /* */ comments skipped between lexemes
- Offset to line/column mapping for diagnostics
"""

from .tokens import Token, TokenType, SourceLocation, KEYWORDS, describe
from .lexer import Lexer
from .errors import Diagnostic

__all__ = [
    "Lexer",
    "Token",
    "TokenType",
    "SourceLocation",
    "KEYWORDS",
    "Diagnostic",
    "describe",
]
