"""
Canonical source printer for Tessel ASTs.

Renders any node back to the text the parser accepts for it, so that
`program(render(ast)).value == ast` for every AST the parser can build.
"""

from typing import Iterable

from .ast_nodes import (
    ASTNode, ASTVisitor, IntType, ArrayType, IntLiteral, VectorLiteral,
    MutDecl, Reference, RawText, Block, Parameter, FunctionDef, Program
)


def wrap_list(left: str, right: str, parts: Iterable[str]) -> str:
    """Join rendered parts with ', ' between a pair of delimiters."""
    return left + ", ".join(parts) + right


class SourcePrinter(ASTVisitor):
    """Visitor producing canonical source text for each node."""

    def visit_IntType(self, node: IntType) -> str:
        return "Int"

    def visit_ArrayType(self, node: ArrayType) -> str:
        return f"[{self.visit(node.element)}]"

    def visit_IntLiteral(self, node: IntLiteral) -> str:
        return str(node.value)

    def visit_VectorLiteral(self, node: VectorLiteral) -> str:
        return wrap_list("[", "]", (self.visit(element) for element in node.value))

    def visit_MutDecl(self, node: MutDecl) -> str:
        return f"mut {node.name} = {self.visit(node.value)}"

    def visit_Reference(self, node: Reference) -> str:
        return node.name

    def visit_RawText(self, node: RawText) -> str:
        return node.text

    def visit_Block(self, node: Block) -> str:
        if not node.items:
            return "{}"
        return "{ " + " ".join(self.visit(item) for item in node.items) + " }"

    def visit_Parameter(self, node: Parameter) -> str:
        return f"{node.name}: {self.visit(node.annotation)}"

    def visit_FunctionDef(self, node: FunctionDef) -> str:
        params = wrap_list("(", ")", (self.visit(param) for param in node.params))
        results = wrap_list("(", ")", (self.visit(result) for result in node.results))
        blocks = " ".join(self.visit(block) for block in node.blocks)
        return f"{node.name} {params} -> {results} {blocks}"

    def visit_Program(self, node: Program) -> str:
        return "\n".join(self.visit(item) for item in node.items)

    def generic_visit(self, node: ASTNode) -> str:
        raise TypeError(f"Cannot render {type(node).__name__}")


def render(node: ASTNode) -> str:
    """Render an AST node as canonical Tessel source."""
    return node.accept(SourcePrinter())
