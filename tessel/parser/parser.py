"""
Tessel Recursive Descent Parser

Each grammar rule is a method that consumes a prefix of the remaining input
and returns an AST value, or raises ParseError. Lexing is fused with
parsing: rules ask the Lexer for the lexeme they expect next.

Alternatives are combined with ordered choice. An alternative that fails
without consuming input lets the next one run; one that fails after
consuming input commits, unless it was wrapped in `_attempt`, which rewinds
the cursor first. When every alternative fails, the error that got furthest
into the input is reported.
"""

import logging
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence, TypeVar

from ..lexer.lexer import Lexer
from ..lexer.tokens import Token, TokenType, SourceLocation, KEYWORD_TEXT, describe
from .ast_nodes import (
    SourceSpan, Type, IntType, ArrayType, Expr, IntLiteral, VectorLiteral,
    MutDecl, Reference, RawText, Block, Parameter, FunctionDef, Program
)
from .errors import (
    ParseError, create_expected_error, create_unclosed_delimiter_error,
    create_inconsistent_vector_error, create_nesting_too_deep_error,
    create_trailing_input_error
)

logger = logging.getLogger(__name__)

T = TypeVar("T")
Rule = Callable[[], T]

DEFAULT_MAX_DEPTH = 128

# Python frames used per nesting level by the recursive type and vector rules
FRAMES_PER_LEVEL = 4
# Frames kept free for callers and for building the error
FRAME_HEADROOM = 200


def recursion_safe_depth() -> int:
    """Deepest type or vector nesting the interpreter stack can hold."""
    return max(1, (sys.getrecursionlimit() - FRAME_HEADROOM) // FRAMES_PER_LEVEL)


@dataclass
class ParseResult:
    """
    Outcome of applying a rule to a whole input string.

    On success `value` holds the parsed node and `remainder` the input the
    rule did not consume. On failure `error` is set and `remainder` is the
    untouched input.
    """
    value: Any = None
    remainder: str = ""
    error: Optional[ParseError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Any:
        """Return the parsed value, or raise the parse error."""
        if self.error is not None:
            raise self.error
        return self.value


class Parser:
    """
    Tessel parser.

    Holds the lexer cursor and the current nesting depth; every public
    `parse_*` method is one grammar rule.
    """

    def __init__(self, source: str, filename: str = "<string>",
                 max_depth: int = DEFAULT_MAX_DEPTH):
        """
        Initialize the parser.

        Args:
            source: Complete source text
            filename: Name reported in diagnostics
            max_depth: Deepest nesting of blocks, vectors and types accepted
        """
        self.source = source
        self.lexer = Lexer(source, filename)
        self.max_depth = max_depth
        # Blocks are parsed iteratively; only types and vectors recurse
        self.recursive_depth = min(max_depth, recursion_safe_depth())
        self._depth = 0

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def run(self, rule: Rule) -> ParseResult:
        """
        Apply `rule` (a bound `parse_*` method) from the start of the input.

        Leading whitespace and comments are skipped first. The failure is
        returned as a value instead of raised.
        """
        self.lexer.reset(0)
        self._depth = 0
        self.lexer.skip_whitespace_and_comments()

        try:
            value = rule()
        except RecursionError:
            # The interpreter stack ran out below the configured depth limit
            error = create_nesting_too_deep_error(self.recursive_depth, self.lexer.location())
        except ParseError as parse_error:
            error = parse_error
        else:
            return ParseResult(value=value, remainder=self.lexer.remainder)

        logger.debug("parse failed at offset %d: %s", error.offset, error.diagnostic.message)
        return ParseResult(remainder=self.source, error=error)

    def parse(self) -> Program:
        """
        Parse the entire input as a program.

        Returns:
            Program AST node

        Raises:
            ParseError: If the input is not a program, or input is left over
        """
        result = self.run(self.parse_program)
        program_node = result.unwrap()

        if not self.lexer.at_end():
            raise create_trailing_input_error(self.source, self.lexer.location())
        return program_node

    # ------------------------------------------------------------------
    # Combinators
    # ------------------------------------------------------------------

    def _choice(self, *alternatives: Rule) -> Any:
        """Ordered choice: the first alternative that succeeds wins."""
        start = self.lexer.pos
        errors: List[ParseError] = []

        for alternative in alternatives:
            try:
                return alternative()
            except ParseError as error:
                if self.lexer.pos != start:
                    raise
                errors.append(error)

        raise self._furthest_error(errors)

    def _attempt(self, rule: Rule) -> Rule:
        """Wrap `rule` so that a failure rewinds the cursor before propagating."""
        def attempt():
            start = self.lexer.pos
            try:
                return rule()
            except ParseError as error:
                if self.lexer.pos != start:
                    logger.debug("backtracking to offset %d: %s",
                                 start, error.diagnostic.message)
                self.lexer.reset(start)
                raise
        return attempt

    def _bounded(self, rule: Rule) -> Rule:
        """Wrap `rule` so that it must end at a word boundary."""
        def bounded():
            value = rule()
            if not self.lexer.at_word_boundary():
                raise self._error_at(("whitespace", "'{'", "'}'"), self.lexer.last_end)
            return value
        return bounded

    def _many(self, rule: Rule) -> List[Any]:
        """Apply `rule` until it fails without consuming input."""
        values = []
        while True:
            start = self.lexer.pos
            try:
                values.append(rule())
            except ParseError:
                if self.lexer.pos != start:
                    raise
                return values

    def _furthest_error(self, errors: Sequence[ParseError]) -> ParseError:
        furthest = max(error.offset for error in errors)
        candidates = [error for error in errors if error.offset == furthest]
        if len(candidates) == 1:
            return candidates[0]

        expected: List[str] = []
        for error in candidates:
            for construct in error.expected:
                if construct not in expected:
                    expected.append(construct)
        if not expected:
            return candidates[0]
        return create_expected_error(expected, self.source, candidates[0].location)

    @contextmanager
    def _nesting(self, location: SourceLocation):
        if self._depth >= self.recursive_depth:
            raise create_nesting_too_deep_error(self.recursive_depth, location)
        self._depth += 1
        try:
            yield
        finally:
            self._depth -= 1

    # ------------------------------------------------------------------
    # Lexeme helpers
    # ------------------------------------------------------------------

    def _error_at(self, expected: Sequence[str], offset: Optional[int] = None) -> ParseError:
        return create_expected_error(expected, self.source, self.lexer.location(offset))

    def _expect(self, token_type: TokenType, *alternatives: str) -> Token:
        """Consume a symbol or keyword of the given type or raise an error."""
        if token_type in KEYWORD_TEXT:
            token = self.lexer.match_keyword(token_type)
        else:
            token = self.lexer.match_symbol(token_type)

        if token is None:
            raise self._error_at(alternatives + (describe(token_type),))
        return token

    def _span(self, start: Token) -> SourceSpan:
        return SourceSpan(start.location, self.lexer.location(self.lexer.last_end))

    def _identifier_token(self) -> Token:
        token = self.lexer.scan_identifier()
        if token is None:
            raise self._error_at(("identifier",))
        return token

    # ------------------------------------------------------------------
    # Names and types
    # ------------------------------------------------------------------

    def parse_identifier(self) -> str:
        """identifier := (letter | '_') (letter | digit | '_')*, not a reserved word"""
        return self._identifier_token().value

    def parse_type(self) -> Type:
        """type := 'Int' | '[' type ']' | 'Array' '(' type ')'"""
        return self._choice(self._int_type, self._list_type, self._array_type)

    def _int_type(self) -> IntType:
        token = self._expect(TokenType.INT)
        return IntType(self._span(token))

    def _list_type(self) -> ArrayType:
        open_token = self._expect(TokenType.LEFT_BRACKET)
        with self._nesting(open_token.location):
            element = self.parse_type()
        self._expect(TokenType.RIGHT_BRACKET)
        return ArrayType(element, self._span(open_token))

    def _array_type(self) -> ArrayType:
        keyword = self._expect(TokenType.ARRAY)
        open_token = self._expect(TokenType.LEFT_PAREN)
        with self._nesting(open_token.location):
            element = self.parse_type()
        self._expect(TokenType.RIGHT_PAREN)
        return ArrayType(element, self._span(keyword))

    # ------------------------------------------------------------------
    # Parameter lists
    # ------------------------------------------------------------------

    def parse_parameter_list(self, allow_references: bool = False) -> List[Any]:
        """
        param-list := '(' (binding (',' binding)*)? ')'

        With `allow_references` (result lists) a bare identifier is also
        accepted as an entry and produces a Reference.
        """
        self._expect(TokenType.LEFT_PAREN)

        entries = []
        if not self.lexer.check_symbol(TokenType.RIGHT_PAREN):
            entries.append(self._parameter_entry(allow_references))
            while self.lexer.match_symbol(TokenType.COMMA):
                entries.append(self._parameter_entry(allow_references))
            self._expect(TokenType.RIGHT_PAREN, "','")
        else:
            self._expect(TokenType.RIGHT_PAREN)

        return entries

    def _parameter_entry(self, allow_references: bool):
        name = self._identifier_token()

        if allow_references and not self.lexer.check_symbol(TokenType.COLON):
            return Reference(name.value, self._span(name))

        if allow_references:
            self._expect(TokenType.COLON, "','", "')'")
        else:
            self._expect(TokenType.COLON)
        annotation = self._choice(self.parse_type, self._reference)
        return Parameter(name.value, annotation, self._span(name))

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _integer(self) -> IntLiteral:
        token = self.lexer.scan_integer()
        if token is None:
            raise self._error_at(("integer",))
        return IntLiteral(token.value, self._span(token))

    def _reference(self) -> Reference:
        token = self._identifier_token()
        return Reference(token.value, self._span(token))

    def _raw_text(self) -> RawText:
        token = self.lexer.scan_word()
        if token is None:
            raise self._error_at(("block item",))
        return RawText(token.value, self._span(token))

    def parse_vector(self) -> VectorLiteral:
        """
        vector := '[' (element (',' element)*)? ']'

        Elements are all integers (a flat vector) or all vectors of one type
        (a matrix).
        """
        open_token = self._expect(TokenType.LEFT_BRACKET)

        elements: List[Expr] = []
        with self._nesting(open_token.location):
            if not self.lexer.check_symbol(TokenType.RIGHT_BRACKET):
                elements.append(self._vector_element())
                while self.lexer.match_symbol(TokenType.COMMA):
                    start = self.lexer.location()
                    element = self._vector_element()
                    if not self._same_shape(elements[0], element):
                        raise create_inconsistent_vector_error(start)
                    elements.append(element)
                self._expect(TokenType.RIGHT_BRACKET, "','")
            else:
                self._expect(TokenType.RIGHT_BRACKET)

        if elements and isinstance(elements[0], VectorLiteral):
            return VectorLiteral(True, ArrayType(elements[0].datatype), tuple(elements),
                                 self._span(open_token))
        return VectorLiteral(False, ArrayType(IntType()), tuple(elements),
                             self._span(open_token))

    def _vector_element(self) -> Expr:
        return self._choice(self.parse_vector, self._integer)

    @staticmethod
    def _same_shape(first: Expr, other: Expr) -> bool:
        if isinstance(first, IntLiteral):
            return isinstance(other, IntLiteral)
        return isinstance(other, VectorLiteral) and other.datatype == first.datatype

    def parse_mut_decl(self) -> MutDecl:
        """mut-decl := 'mut' identifier '=' (vector | integer | identifier)"""
        keyword = self._expect(TokenType.MUT)
        name = self._identifier_token()
        self._expect(TokenType.ASSIGN)
        value = self._choice(self.parse_vector, self._integer, self._reference)
        return MutDecl(name.value, value, self._span(keyword))

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    def parse_block(self) -> Block:
        """
        block := '{' (block | item)* '}'

        Nesting is tracked with an explicit stack of open braces, so an inner
        '}' only closes the innermost open block.
        """
        open_token = self._expect(TokenType.LEFT_BRACE)
        logger.debug("parsing block at offset %d", open_token.location.offset)

        # One frame per open brace: (opening token, items parsed so far)
        stack = [(open_token, [])]
        while True:
            if self.lexer.at_end():
                raise create_unclosed_delimiter_error(
                    "{", stack[-1][0].location, self.lexer.location()
                )

            if self.lexer.check_symbol(TokenType.LEFT_BRACE):
                if self._depth + len(stack) >= self.max_depth:
                    raise create_nesting_too_deep_error(self.max_depth, self.lexer.location())
                stack.append((self.lexer.match_symbol(TokenType.LEFT_BRACE), []))
                continue

            close_token = self.lexer.match_symbol(TokenType.RIGHT_BRACE)
            if close_token is not None:
                brace, items = stack.pop()
                block = Block(tuple(items), SourceSpan(brace.location, close_token.location))
                if not stack:
                    return block
                stack[-1][1].append(block)
                continue

            stack[-1][1].append(self._block_item())

    def _block_item(self) -> Expr:
        """item := mut-decl | vector | integer | identifier | raw-word"""
        return self._choice(
            self._attempt(self._bounded(self.parse_mut_decl)),
            self._attempt(self._bounded(self.parse_vector)),
            self._attempt(self._bounded(self._integer)),
            self._attempt(self._bounded(self._reference)),
            self._raw_text,
        )

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def parse_declaration(self) -> FunctionDef:
        """declaration := identifier param-list '->' result-list block+"""
        name = self._identifier_token()
        logger.debug("parsing declaration %r at offset %d", name.value, name.location.offset)

        params = self.parse_parameter_list()
        self._expect(TokenType.ARROW)
        results = self.parse_parameter_list(allow_references=True)

        blocks = [self.parse_block()]
        while self.lexer.check_symbol(TokenType.LEFT_BRACE):
            blocks.append(self.parse_block())

        span = self._span(name)
        logger.debug("parsed declaration %r at %s", name.value, span)
        return FunctionDef(name.value, tuple(params), tuple(results), tuple(blocks), span)

    def parse_program(self) -> Program:
        """program := declaration+"""
        start = self.lexer.location()
        items = [self.parse_declaration()]
        items.extend(self._many(self.parse_declaration))
        span = SourceSpan(start, self.lexer.location(self.lexer.last_end))
        return Program(tuple(items), span)


def program(source: str, filename: str = "<string>") -> ParseResult:
    """
    Parse a program from the start of `source`.

    Trailing input that is not a declaration is returned as the remainder
    rather than reported as an error. Trailing text that starts with an
    identifier is parsed as a declaration, so `f () -> () {} x` fails.

    Args:
        source: Source code string
        filename: Filename for error reporting

    Returns:
        ParseResult holding a Program or a ParseError
    """
    parser = Parser(source, filename)
    return parser.run(parser.parse_program)


def parse_string(source: str, filename: str = "<string>") -> Program:
    """
    Convenience function to parse a complete source string.

    Args:
        source: Source code string
        filename: Filename for error reporting

    Returns:
        Program AST

    Raises:
        ParseError: If parsing fails or input is left after the program
    """
    return Parser(source, filename).parse()
