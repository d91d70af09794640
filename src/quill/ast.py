"""
Abstract Syntax Tree (AST) node definitions for Quill.

The AST represents the structure of a parsed program, which the runtime
interpreter walks directly.  Nodes are immutable once built, and every node
renders back to source-like text with ``str(node)``; prefix, infix and index
expressions are fully parenthesized so the rendering can be parsed again.
"""

from dataclasses import dataclass, field, fields
from typing import Optional, List, Tuple, Any
from abc import ABC
from .tokens import SourceSpan, TokenType, operator_symbol


# =============================================================================
# Base Classes
# =============================================================================

@dataclass(frozen=True)
class AstNode(ABC):
    """Base class for all AST nodes."""
    span: SourceSpan  # Source location for error reporting

    def accept(self, visitor: "AstVisitor") -> Any:
        """Accept a visitor for traversal."""
        method_name = f"visit_{self.__class__.__name__}"
        method = getattr(visitor, method_name, visitor.generic_visit)
        return method(self)


class AstVisitor(ABC):
    """Base class for AST visitors."""

    def generic_visit(self, node: AstNode) -> Any:
        """Default visit method."""
        raise NotImplementedError(f"No visitor for {node.__class__.__name__}")


# =============================================================================
# Expression Nodes
# =============================================================================

@dataclass(frozen=True)
class Expression(AstNode):
    """Base class for all expressions."""
    pass


@dataclass(frozen=True)
class Identifier(Expression):
    """A variable or function name reference."""
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class IntegerLiteral(Expression):
    """An integer literal (e.g., 42)."""
    value: int

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class StringLiteral(Expression):
    """A string literal (e.g., "hello")."""
    value: str

    def __str__(self) -> str:
        return quote_string(self.value)


@dataclass(frozen=True)
class BooleanLiteral(Expression):
    """The literals true and false."""
    value: bool

    def __str__(self) -> str:
        return "true" if self.value else "false"


@dataclass(frozen=True)
class PrefixExpr(Expression):
    """A unary operation (e.g., -n, !ok)."""
    operator: TokenType  # MINUS or BANG
    operand: Expression

    def __str__(self) -> str:
        return f"({operator_symbol(self.operator)}{self.operand})"


@dataclass(frozen=True)
class InfixExpr(Expression):
    """A binary operation (e.g., a + b)."""
    left: Expression
    operator: TokenType
    right: Expression

    def __str__(self) -> str:
        return f"({self.left} {operator_symbol(self.operator)} {self.right})"


@dataclass(frozen=True)
class IfExpr(Expression):
    """An if-else expression (returns a value)."""
    condition: Expression
    consequence: "Block"
    alternative: Optional["Block"] = None

    def __str__(self) -> str:
        text = f"if ({self.condition}) {self.consequence}"
        if self.alternative is not None:
            text += f" else {self.alternative}"
        return text


@dataclass(frozen=True)
class FunctionLiteral(Expression):
    """A function literal (e.g., fn(x, y) { x + y })."""
    parameters: List[Identifier]
    body: "Block"

    def __str__(self) -> str:
        params = ", ".join(str(p) for p in self.parameters)
        return f"fn({params}) {self.body}"


@dataclass(frozen=True)
class CallExpr(Expression):
    """A call (e.g., add(1, 2))."""
    callee: Expression
    arguments: List[Expression]

    def __str__(self) -> str:
        args = ", ".join(str(a) for a in self.arguments)
        return f"{self.callee}({args})"


@dataclass(frozen=True)
class ArrayLiteral(Expression):
    """An array literal (e.g., [1, 2, 3])."""
    elements: List[Expression]

    def __str__(self) -> str:
        return "[" + ", ".join(str(e) for e in self.elements) + "]"


@dataclass(frozen=True)
class HashLiteral(Expression):
    """A hash literal; pairs are kept in source order."""
    pairs: List[Tuple[Expression, Expression]] = field(default_factory=list)

    def __str__(self) -> str:
        return "{" + ", ".join(f"{k}: {v}" for k, v in self.pairs) + "}"


@dataclass(frozen=True)
class IndexExpr(Expression):
    """Index access (e.g., xs[0], table["key"])."""
    collection: Expression
    index: Expression

    def __str__(self) -> str:
        return f"({self.collection}[{self.index}])"


# =============================================================================
# Statement Nodes
# =============================================================================

@dataclass(frozen=True)
class Statement(AstNode):
    """Base class for all statements."""
    pass


@dataclass(frozen=True)
class LetStatement(Statement):
    """A binding in the current scope (e.g., let x = 5)."""
    name: Identifier
    value: Expression

    def __str__(self) -> str:
        return f"let {self.name} = {self.value}"


@dataclass(frozen=True)
class ReturnStatement(Statement):
    """A return statement."""
    value: Expression

    def __str__(self) -> str:
        return f"return {self.value}"


@dataclass(frozen=True)
class ExpressionStatement(Statement):
    """An expression used as a statement."""
    expression: Expression

    def __str__(self) -> str:
        return str(self.expression)


@dataclass(frozen=True)
class Block(Statement):
    """A brace-delimited sequence of statements."""
    statements: List[Statement]

    def __str__(self) -> str:
        if not self.statements:
            return "{ }"
        return "{ " + "; ".join(str(s) for s in self.statements) + " }"


@dataclass(frozen=True)
class Program(AstNode):
    """The root of a parsed source text."""
    statements: List[Statement]

    def __str__(self) -> str:
        return "; ".join(str(s) for s in self.statements)


# =============================================================================
# Rendering Helpers
# =============================================================================

_ESCAPES = {
    '\\': '\\\\',
    '"': '\\"',
    '\n': '\\n',
    '\t': '\\t',
    '\r': '\\r',
}


def quote_string(value: str) -> str:
    """Render a string as a double-quoted literal the lexer accepts."""
    return '"' + "".join(_ESCAPES.get(ch, ch) for ch in value) + '"'


class PrintVisitor(AstVisitor):
    """Debug visitor that renders the AST structure as indented lines."""

    def __init__(self, indent: int = 0):
        self.indent = indent
        self.lines: List[str] = []

    def _emit(self, text: str) -> None:
        self.lines.append("  " * self.indent + text)

    def _child(self, node: AstNode) -> None:
        child = PrintVisitor(self.indent + 2)
        node.accept(child)
        self.lines.extend(child.lines)

    def generic_visit(self, node: AstNode) -> None:
        self._emit(f"{node.__class__.__name__}")
        for f in fields(node):
            if f.name == "span":
                continue
            value = getattr(node, f.name)
            if isinstance(value, AstNode):
                self._emit(f"  {f.name}:")
                self._child(value)
            elif isinstance(value, list):
                self._emit(f"  {f.name}: [")
                for item in value:
                    if isinstance(item, AstNode):
                        self._child(item)
                    elif isinstance(item, tuple):
                        for part in item:
                            self._child(part)
                    else:
                        self._emit(f"    {item!r}")
                self._emit("  ]")
            elif isinstance(value, TokenType):
                self._emit(f"  {f.name}: {operator_symbol(value)}")
            else:
                self._emit(f"  {f.name}: {value!r}")


def format_ast(node: AstNode) -> str:
    """Render an AST node as an indented tree for debugging."""
    visitor = PrintVisitor()
    node.accept(visitor)
    return "\n".join(visitor.lines)


def print_ast(node: AstNode) -> None:
    """Print an AST node for debugging."""
    print(format_ast(node))
