"""
Abstract Syntax Tree node definitions for Tessel.

Every node is an immutable dataclass that exclusively owns its children
(child collections are tuples, there are no parent pointers), so a parsed
Program is a strict tree. Equality is structural; the optional source span
is ignored when comparing nodes.
"""

from abc import ABC
from typing import Any, ClassVar, List, Optional, Tuple, Union
from dataclasses import dataclass, field
from enum import Enum

from ..lexer.tokens import SourceLocation


class ASTNodeType(Enum):
    """Enumeration of all AST node types."""

    # Top-level
    PROGRAM = "Program"
    FUNCTION_DEF = "FunctionDef"
    PARAMETER = "Parameter"

    # Expressions
    INT_LITERAL = "IntLiteral"
    VECTOR_LITERAL = "VectorLiteral"
    MUT_DECL = "MutDecl"
    REFERENCE = "Reference"
    RAW_TEXT = "RawText"
    BLOCK = "Block"

    # Types
    INT_TYPE = "IntType"
    ARRAY_TYPE = "ArrayType"


@dataclass(frozen=True)
class SourceSpan:
    """Represents a span of source code (start and end locations)."""
    start: SourceLocation
    end: SourceLocation

    def __str__(self) -> str:
        return f"{self.start.filename}:{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"


class ASTVisitor:
    """
    Visitor base class.

    `visit` dispatches to `visit_<NodeType>` (e.g. `visit_FunctionDef`) and
    falls back to `generic_visit`, which visits the children.
    """

    def visit(self, node: 'ASTNode') -> Any:
        method = getattr(self, f"visit_{node.node_type.value}", self.generic_visit)
        return method(node)

    def generic_visit(self, node: 'ASTNode') -> Any:
        for child in node.children():
            self.visit(child)


class ASTNode(ABC):
    """Base class for all AST nodes."""

    node_type: ClassVar[ASTNodeType]

    def accept(self, visitor: ASTVisitor) -> Any:
        """Accept a visitor (visitor pattern)."""
        return visitor.visit(self)

    def children(self) -> List['ASTNode']:
        """Get all child nodes."""
        return []


def _span_field():
    return field(default=None, compare=False, repr=False)


# ============================================================================
# Type system
# ============================================================================

class Type(ASTNode):
    """Base class for types."""
    pass


@dataclass(frozen=True)
class IntType(Type):
    """The primitive integer type, written `Int`."""
    node_type: ClassVar[ASTNodeType] = ASTNodeType.INT_TYPE

    span: Optional[SourceSpan] = _span_field()


@dataclass(frozen=True)
class ArrayType(Type):
    """Array whose elements have type `element`, written `[T]` or `Array(T)`."""
    node_type: ClassVar[ASTNodeType] = ASTNodeType.ARRAY_TYPE

    element: Type
    span: Optional[SourceSpan] = _span_field()

    def children(self) -> List[ASTNode]:
        return [self.element]


# ============================================================================
# Expressions
# ============================================================================

class Expr(ASTNode):
    """Base class for expressions."""
    pass


@dataclass(frozen=True)
class IntLiteral(Expr):
    """Signed integer literal."""
    node_type: ClassVar[ASTNodeType] = ASTNodeType.INT_LITERAL

    value: int
    span: Optional[SourceSpan] = _span_field()


@dataclass(frozen=True)
class VectorLiteral(Expr):
    """
    Literal collection.

    `is_matrix` distinguishes a flat vector of integers from a vector of
    vectors; `datatype` is the collection type (`Array(Int)` for a flat
    vector); `value` holds the element expressions in order.
    """
    node_type: ClassVar[ASTNodeType] = ASTNodeType.VECTOR_LITERAL

    is_matrix: bool
    datatype: Type
    value: Tuple[Expr, ...]
    span: Optional[SourceSpan] = _span_field()

    def children(self) -> List[ASTNode]:
        return [self.datatype, *self.value]


@dataclass(frozen=True)
class MutDecl(Expr):
    """Mutable binding declaration: `mut name = value`."""
    node_type: ClassVar[ASTNodeType] = ASTNodeType.MUT_DECL

    name: str
    value: Expr
    span: Optional[SourceSpan] = _span_field()

    def children(self) -> List[ASTNode]:
        return [self.value]


@dataclass(frozen=True)
class Reference(Expr):
    """A bare identifier used as a value."""
    node_type: ClassVar[ASTNodeType] = ASTNodeType.REFERENCE

    name: str
    span: Optional[SourceSpan] = _span_field()


@dataclass(frozen=True)
class RawText(Expr):
    """A brace-free word inside a block that is not any other expression."""
    node_type: ClassVar[ASTNodeType] = ASTNodeType.RAW_TEXT

    text: str
    span: Optional[SourceSpan] = _span_field()


@dataclass(frozen=True)
class Block(Expr):
    """Brace-delimited region; items are nested blocks and expressions."""
    node_type: ClassVar[ASTNodeType] = ASTNodeType.BLOCK

    items: Tuple[Expr, ...]
    span: Optional[SourceSpan] = _span_field()

    def children(self) -> List[ASTNode]:
        return list(self.items)


# ============================================================================
# Declarations
# ============================================================================

@dataclass(frozen=True)
class Parameter(ASTNode):
    """
    A `name: annotation` binding.

    The annotation is either a Type or a Reference to a value.
    """
    node_type: ClassVar[ASTNodeType] = ASTNodeType.PARAMETER

    name: str
    annotation: Union[Type, Reference]
    span: Optional[SourceSpan] = _span_field()

    def children(self) -> List[ASTNode]:
        return [self.annotation]


ResultEntry = Union[Parameter, Reference]


@dataclass(frozen=True)
class FunctionDef(ASTNode):
    """Top-level declaration: `name (params) -> (results) { ... } ...`."""
    node_type: ClassVar[ASTNodeType] = ASTNodeType.FUNCTION_DEF

    name: str
    params: Tuple[Parameter, ...]
    results: Tuple[ResultEntry, ...]
    blocks: Tuple[Block, ...]
    span: Optional[SourceSpan] = _span_field()

    def children(self) -> List[ASTNode]:
        return [*self.params, *self.results, *self.blocks]


@dataclass(frozen=True)
class Program(ASTNode):
    """Root AST node representing a complete program."""
    node_type: ClassVar[ASTNodeType] = ASTNodeType.PROGRAM

    items: Tuple[FunctionDef, ...]
    span: Optional[SourceSpan] = _span_field()

    def children(self) -> List[ASTNode]:
        return list(self.items)


# Alias for the main AST type
AST = Program
