"""
Abstract Syntax Tree (AST) node definitions for Lox.

Nodes are frozen dataclasses compared and hashed by identity
(``eq=False``), so two structurally identical variable references at
different places in the program stay distinct keys in the resolver's
distance map. Neither pass mutates a node after the parser builds it.
"""

from dataclasses import dataclass, fields
from typing import Any, List, Optional

from .tokens import Token


# Reserved names, shared by the resolver and the interpreter.
INITIALIZER_NAME = "init"
THIS_NAME = "this"
SUPER_NAME = "super"


# =============================================================================
# Base Classes
# =============================================================================

@dataclass(frozen=True, eq=False)
class AstNode:
    """Base class for all AST nodes."""


@dataclass(frozen=True, eq=False)
class Expression(AstNode):
    """Base class for all expressions."""


@dataclass(frozen=True, eq=False)
class Statement(AstNode):
    """Base class for all statements."""


# =============================================================================
# Expression Nodes
# =============================================================================

@dataclass(frozen=True, eq=False)
class Literal(Expression):
    """A literal value: number (float), string, true/false or nil (None)."""
    value: Any


@dataclass(frozen=True, eq=False)
class UnaryOp(Expression):
    """A prefix operation (e.g., -n, !ok)."""
    operator: Token
    operand: Expression


@dataclass(frozen=True, eq=False)
class BinaryOp(Expression):
    """An arithmetic, comparison or equality operation (e.g., a + b)."""
    left: Expression
    operator: Token
    right: Expression


@dataclass(frozen=True, eq=False)
class LogicalOp(Expression):
    """A short-circuiting `and` / `or`."""
    left: Expression
    operator: Token
    right: Expression


@dataclass(frozen=True, eq=False)
class ConditionalExpr(Expression):
    """The ternary `condition ? then_branch : else_branch`."""
    condition: Expression
    then_branch: Expression
    else_branch: Expression


@dataclass(frozen=True, eq=False)
class Grouping(Expression):
    """A parenthesized expression."""
    expression: Expression


@dataclass(frozen=True, eq=False)
class Identifier(Expression):
    """A variable reference."""
    name: Token


@dataclass(frozen=True, eq=False)
class Assignment(Expression):
    """Assignment to a variable (e.g., a = 1)."""
    name: Token
    value: Expression


@dataclass(frozen=True, eq=False)
class FunctionCall(Expression):
    """A call (e.g., f(1, 2)). `paren` is the closing ')' used for errors."""
    callee: Expression
    paren: Token
    arguments: List[Expression]


@dataclass(frozen=True, eq=False)
class MemberAccess(Expression):
    """Property read (e.g., point.x)."""
    object: Expression
    name: Token


@dataclass(frozen=True, eq=False)
class MemberAssignment(Expression):
    """Property write (e.g., point.x = 1)."""
    object: Expression
    name: Token
    value: Expression


@dataclass(frozen=True, eq=False)
class ThisExpr(Expression):
    """The `this` keyword inside a method."""
    keyword: Token


@dataclass(frozen=True, eq=False)
class SuperAccess(Expression):
    """`super.method` inside a subclass method."""
    keyword: Token
    method: Token


@dataclass(frozen=True, eq=False)
class VectorLiteral(Expression):
    """A vector literal (e.g., [1, 2, 3]). `bracket` is the opening '['."""
    bracket: Token
    elements: List[Expression]


# =============================================================================
# Statement Nodes
# =============================================================================

@dataclass(frozen=True, eq=False)
class ExpressionStatement(Statement):
    """An expression evaluated for its side effects."""
    expression: Expression


@dataclass(frozen=True, eq=False)
class PrintStatement(Statement):
    """print <expression>;"""
    expression: Expression


@dataclass(frozen=True, eq=False)
class VarDecl(Statement):
    """var name (= initializer)?;"""
    name: Token
    initializer: Optional[Expression] = None


@dataclass(frozen=True, eq=False)
class Block(Statement):
    """A braced list of statements with its own scope."""
    statements: List[Statement]


@dataclass(frozen=True, eq=False)
class IfStatement(Statement):
    """if (condition) then_branch (else else_branch)?"""
    condition: Expression
    then_branch: Statement
    else_branch: Optional[Statement] = None


@dataclass(frozen=True, eq=False)
class WhileStatement(Statement):
    """while (condition) body. `for` loops are desugared into this."""
    condition: Expression
    body: Statement


@dataclass(frozen=True, eq=False)
class FunctionDef(Statement):
    """A function or method declaration."""
    name: Token
    params: List[Token]
    body: List[Statement]


@dataclass(frozen=True, eq=False)
class ReturnStatement(Statement):
    """return (value)?;"""
    keyword: Token
    value: Optional[Expression] = None


@dataclass(frozen=True, eq=False)
class ClassDef(Statement):
    """class Name (< Superclass)? { methods }"""
    name: Token
    superclass: Optional[Identifier]
    methods: List[FunctionDef]


# =============================================================================
# Printing Helpers
# =============================================================================

class AstPrinter:
    """Renders expressions in a fully parenthesized prefix form.

        (* (- 123) (group 45.67))
    """

    def print(self, expr: Expression) -> str:
        if isinstance(expr, Literal):
            return self._literal(expr.value)
        elif isinstance(expr, UnaryOp):
            return self._parenthesize(expr.operator.lexeme, expr.operand)
        elif isinstance(expr, (BinaryOp, LogicalOp)):
            return self._parenthesize(expr.operator.lexeme, expr.left, expr.right)
        elif isinstance(expr, ConditionalExpr):
            return self._parenthesize("?:", expr.condition, expr.then_branch, expr.else_branch)
        elif isinstance(expr, Grouping):
            return self._parenthesize("group", expr.expression)
        elif isinstance(expr, Identifier):
            return expr.name.lexeme
        elif isinstance(expr, Assignment):
            return self._parenthesize(f"= {expr.name.lexeme}", expr.value)
        elif isinstance(expr, FunctionCall):
            return self._parenthesize("call", expr.callee, *expr.arguments)
        elif isinstance(expr, MemberAccess):
            return self._parenthesize(f". {expr.name.lexeme}", expr.object)
        elif isinstance(expr, MemberAssignment):
            return self._parenthesize(f".= {expr.name.lexeme}", expr.object, expr.value)
        elif isinstance(expr, ThisExpr):
            return "this"
        elif isinstance(expr, SuperAccess):
            return f"(super {expr.method.lexeme})"
        elif isinstance(expr, VectorLiteral):
            return self._parenthesize("vec", *expr.elements)
        raise TypeError(f"Unknown expression type: {type(expr).__name__}")

    def _parenthesize(self, name: str, *exprs: Expression) -> str:
        parts = [name] + [self.print(e) for e in exprs]
        return "(" + " ".join(parts) + ")"

    @staticmethod
    def _literal(value: Any) -> str:
        if value is None:
            return "nil"
        if value is True:
            return "true"
        if value is False:
            return "false"
        if isinstance(value, str):
            return f'"{value}"'
        return str(value)


def format_ast(node: Any, indent: int = 0) -> str:
    """Dump an AST node (or a list of them) as an indented tree."""
    lines: List[str] = []
    _format_into(node, indent, lines)
    return "\n".join(lines)


def _format_into(node: Any, indent: int, lines: List[str]) -> None:
    pad = "  " * indent
    if isinstance(node, list):
        for item in node:
            _format_into(item, indent, lines)
        return

    lines.append(f"{pad}{node.__class__.__name__}")
    for f in fields(node):
        value = getattr(node, f.name)
        if isinstance(value, AstNode):
            lines.append(f"{pad}  {f.name}:")
            _format_into(value, indent + 2, lines)
        elif isinstance(value, list):
            lines.append(f"{pad}  {f.name}: [")
            for item in value:
                if isinstance(item, AstNode):
                    _format_into(item, indent + 2, lines)
                elif isinstance(item, Token):
                    lines.append(f"{pad}    {item.lexeme}")
                else:
                    lines.append(f"{pad}    {item!r}")
            lines.append(f"{pad}  ]")
        elif isinstance(value, Token):
            lines.append(f"{pad}  {f.name}: {value.lexeme}")
        else:
            lines.append(f"{pad}  {f.name}: {value!r}")
