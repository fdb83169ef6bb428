"""
Tessel Parser Package

Recursive descent parser for the Tessel language with ordered-choice
backtracking. Produces immutable Abstract Syntax Trees with source spans.

Key Features:
- Lexing fused with parsing (no token stream)
- Balanced-brace blocks of arbitrary content
- Array types and vector/matrix literals
- Failures returned as values at the entry point, with furthest-offset diagnostics
"""

from .ast_nodes import *
from .parser import Parser, ParseResult, program, parse_string, DEFAULT_MAX_DEPTH
from .printer import render
from .errors import ParseError

__all__ = [
    # Core parser
    "Parser", "ParseResult", "program", "parse_string", "DEFAULT_MAX_DEPTH",

    # AST nodes
    "AST", "ASTNode", "ASTVisitor", "SourceSpan",
    "Program", "FunctionDef", "Parameter",
    "Expr", "IntLiteral", "VectorLiteral", "MutDecl", "Reference", "RawText", "Block",
    "Type", "IntType", "ArrayType",

    # Printing
    "render",

    # Error handling
    "ParseError",
]
