"""
Error handling for the Tessel parser.

There is a single failure kind, ParseError, carrying the offset where a rule
gave up and the constructs that would have been accepted there. Lexical and
syntactic mismatches both surface through it.
"""

from typing import Optional, List, Sequence

from ..lexer.tokens import SourceLocation
from ..lexer.errors import Diagnostic


class ParseError(Exception):
    """
    Exception raised when a parser rule cannot match the input.

    Contains detailed diagnostic information for error reporting.
    """

    def __init__(
        self,
        message: str,
        location: SourceLocation,
        expected: Sequence[str] = (),
        code: Optional[str] = None,
        help_text: Optional[str] = None,
        suggestions: Optional[List[str]] = None
    ):
        super().__init__(message)
        self.diagnostic = Diagnostic(
            message=message,
            location=location,
            severity="error",
            code=code,
            help_text=help_text,
            suggestions=suggestions
        )
        self.expected = tuple(expected)

    @property
    def location(self) -> SourceLocation:
        return self.diagnostic.location

    @property
    def offset(self) -> int:
        return self.diagnostic.offset

    @property
    def code(self) -> Optional[str]:
        return self.diagnostic.code

    def __str__(self) -> str:
        return str(self.diagnostic)


PARSER_ERROR_CODES = {
    "P001": "Unexpected input",
    "P004": "Unclosed delimiter",
    "P005": "Inconsistent vector shape",
    "P010": "Unexpected end of input",
    "P013": "Nesting too deep",
    "P014": "Trailing input",
}


def _format_expected(expected: Sequence[str]) -> str:
    if not expected:
        return "valid input"
    if len(expected) == 1:
        return expected[0]
    return ", ".join(expected[:-1]) + " or " + expected[-1]


def _describe_found(source: str, location: SourceLocation) -> str:
    if location.offset >= len(source):
        return "end of input"
    return repr(source[location.offset])


def create_expected_error(expected: Sequence[str], source: str,
                          location: SourceLocation) -> ParseError:
    """Create an error for input that does not start any of the expected constructs."""
    expected_str = _format_expected(expected)
    if location.offset >= len(source):
        return create_unexpected_eof_error(expected, location)

    found_str = _describe_found(source, location)
    return ParseError(
        message=f"Expected {expected_str}, found {found_str}",
        location=location,
        expected=expected,
        code="P001",
        help_text=f"The parser expected to see {expected_str} at this position, but found {found_str} instead."
    )


def create_unexpected_eof_error(expected: Sequence[str], location: SourceLocation) -> ParseError:
    """Create an error for unexpected end of input."""
    expected_str = _format_expected(expected)
    return ParseError(
        message=f"Unexpected end of input, expected {expected_str}",
        location=location,
        expected=expected,
        code="P010",
        help_text=f"The parser reached the end of the input while expecting {expected_str}.",
        suggestions=[f"Add the missing {expected_str}"]
    )


def create_unclosed_delimiter_error(delimiter: str, open_location: SourceLocation,
                                    current_location: SourceLocation) -> ParseError:
    """Create an error for an unclosed delimiter."""
    closing_delimiters = {
        "(": ")",
        "[": "]",
        "{": "}",
    }

    closing = closing_delimiters.get(delimiter, delimiter)

    return ParseError(
        message=f"Unclosed delimiter '{delimiter}'",
        location=current_location,
        expected=(f"'{closing}'",),
        code="P004",
        help_text=f"The opening '{delimiter}' at {open_location} was never closed.",
        suggestions=[f"Add a closing '{closing}'"]
    )


def create_inconsistent_vector_error(location: SourceLocation) -> ParseError:
    """Create an error for a vector mixing integers and nested vectors of different shape."""
    return ParseError(
        message="Inconsistent vector element shape",
        location=location,
        expected=("element with the same shape as the first element",),
        code="P005",
        help_text="All elements of a vector must be integers, or all must be vectors of the same type."
    )


def create_nesting_too_deep_error(limit: int, location: SourceLocation) -> ParseError:
    """Create an error for nesting beyond the parser's depth limit."""
    return ParseError(
        message=f"Nesting too deep (limit is {limit})",
        location=location,
        code="P013",
        help_text="Blocks, vectors and types may be nested at most "
                  f"{limit} levels deep."
    )


def create_trailing_input_error(source: str, location: SourceLocation) -> ParseError:
    """Create an error for input left over after a complete parse."""
    found_str = _describe_found(source, location)
    return ParseError(
        message=f"Expected end of input, found {found_str}",
        location=location,
        expected=("end of input",),
        code="P014",
        help_text="The program ended but more input follows it."
    )
