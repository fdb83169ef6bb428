"""
Tessel Front End

Turns Tessel source text into an abstract syntax tree for later stages
(interpretation or compilation) to consume.

Architecture:
    tessel/
    ├── lexer/           # Lexeme matching, source locations, diagnostics
    ├── parser/          # AST nodes, grammar rules, canonical printer
    └── cli.py           # Command-line entry point
"""

__version__ = "0.1.0"

from .lexer import Lexer
from .parser import Parser, ParseResult, ParseError, program, parse_string, render

__all__ = [
    "Lexer",
    "Parser",
    "ParseResult",
    "ParseError",
    "program",
    "parse_string",
    "render",

    "__version__",
]
