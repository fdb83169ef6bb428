"""
Tessel Lexer - on-demand lexeme matching over an in-memory source string.

There is no token list: the parser owns the cursor and asks for exactly the
lexeme a grammar rule expects at that point. Every matcher either consumes
its lexeme plus the whitespace/comments after it and returns a Token, or
returns None without moving the cursor.
"""

import re
from bisect import bisect_right
from typing import List, Optional

from .tokens import (
    Token, TokenType, SourceLocation, KEYWORDS, KEYWORD_TEXT, SYMBOL_TEXT, BLOCK_DELIMITERS,
    is_identifier_start, is_identifier_continue
)


class Lexer:
    """
    Cursor over Tessel source text.

    Tracks the current character offset, maps offsets to line/column
    positions and skips insignificant whitespace and comments between
    lexemes (never inside one).
    """

    def __init__(self, source: str, filename: str = "<string>"):
        """
        Initialize the lexer with source code.

        Args:
            source: Source code string
            filename: Name reported in source locations
        """
        self.source = source
        self.filename = filename
        self.pos = 0
        # End offset of the last matched lexeme, before trailing whitespace
        self.last_end = 0

        self._line_starts: List[int] = [0]
        for index, char in enumerate(source):
            if char == '\n':
                self._line_starts.append(index + 1)

        self._compile_patterns()

    def _compile_patterns(self):
        """Compile regex patterns used by the matchers."""
        self.integer_pattern = re.compile(r'-?[0-9]+')
        self.word_pattern = re.compile(r'[^\s{}]+')

    # ------------------------------------------------------------------
    # Cursor
    # ------------------------------------------------------------------

    def at_end(self) -> bool:
        return self.pos >= len(self.source)

    def peek(self, offset: int = 0) -> str:
        """Peek at a character ahead without advancing ('' past the end)."""
        peek_pos = self.pos + offset
        if peek_pos < len(self.source):
            return self.source[peek_pos]
        return ''

    def location(self, offset: Optional[int] = None) -> SourceLocation:
        """Source location of `offset` (defaults to the cursor)."""
        if offset is None:
            offset = self.pos
        line_index = bisect_right(self._line_starts, offset) - 1
        column = offset - self._line_starts[line_index] + 1
        return SourceLocation(self.filename, line_index + 1, column, offset)

    def reset(self, pos: int):
        """Move the cursor back to a previously saved position."""
        self.pos = pos
        self.last_end = pos

    @property
    def remainder(self) -> str:
        return self.source[self.pos:]

    def at_word_boundary(self) -> bool:
        """True if the last lexeme is followed by whitespace, a brace or end of input."""
        return (self.last_end < self.pos or self.at_end()
                or self.peek() in BLOCK_DELIMITERS)

    # ------------------------------------------------------------------
    # Insignificant input
    # ------------------------------------------------------------------

    def skip_whitespace_and_comments(self):
        """Skip whitespace, // line comments and /* block */ comments."""
        source = self.source
        while self.pos < len(source):
            if source[self.pos].isspace():
                self.pos += 1
                continue

            if source.startswith('//', self.pos):
                newline = source.find('\n', self.pos)
                self.pos = len(source) if newline == -1 else newline + 1
                continue

            if source.startswith('/*', self.pos):
                close = source.find('*/', self.pos + 2)
                # An unterminated comment runs to the end of input
                self.pos = len(source) if close == -1 else close + 2
                continue

            break

    def _emit(self, token_type: TokenType, lexeme: str, value) -> Token:
        start = self.pos
        self.pos += len(lexeme)
        self.last_end = self.pos
        token = Token(token_type, lexeme, value, self.location(start))
        self.skip_whitespace_and_comments()
        return token

    # ------------------------------------------------------------------
    # Lexeme matchers
    # ------------------------------------------------------------------

    def check_symbol(self, token_type: TokenType) -> bool:
        return self.source.startswith(SYMBOL_TEXT[token_type], self.pos)

    def match_symbol(self, token_type: TokenType) -> Optional[Token]:
        """Match a punctuation symbol such as '(' or '->'."""
        text = SYMBOL_TEXT[token_type]
        if not self.source.startswith(text, self.pos):
            return None
        return self._emit(token_type, text, None)

    def match_keyword(self, token_type: TokenType) -> Optional[Token]:
        """Match a reserved word that is not the prefix of a longer identifier."""
        text = KEYWORD_TEXT[token_type]
        end = self.pos + len(text)
        if not self.source.startswith(text, self.pos):
            return None
        if end < len(self.source) and is_identifier_continue(self.source[end]):
            return None
        return self._emit(token_type, text, None)

    def scan_identifier(self) -> Optional[Token]:
        """Match an identifier; reserved words are not identifiers."""
        if not is_identifier_start(self.peek()):
            return None

        end = self.pos + 1
        while end < len(self.source) and is_identifier_continue(self.source[end]):
            end += 1

        lexeme = self.source[self.pos:end]
        if lexeme in KEYWORDS:
            return None
        return self._emit(TokenType.IDENTIFIER, lexeme, lexeme)

    def scan_integer(self) -> Optional[Token]:
        """Match a signed decimal integer not glued to an identifier character."""
        match = self.integer_pattern.match(self.source, self.pos)
        if not match:
            return None

        end = match.end()
        if end < len(self.source) and is_identifier_continue(self.source[end]):
            return None
        lexeme = match.group()
        return self._emit(TokenType.INTEGER, lexeme, int(lexeme))

    def scan_word(self) -> Optional[Token]:
        """Match a maximal run of characters that are neither whitespace nor braces."""
        match = self.word_pattern.match(self.source, self.pos)
        if not match:
            return None
        lexeme = match.group()
        return self._emit(TokenType.WORD, lexeme, lexeme)
