"""
Static resolver for Lox.

Walks the whole program once before it runs and computes, for every
variable reference, how many enclosing scopes separate it from the scope
that declares it. The interpreter uses these distances to jump straight to
the right environment frame instead of searching by name.

Along the way it reports scoping mistakes that can be found without running
anything:
- Redeclaring a name in the same local scope
- Reading a local variable inside its own initializer
- return at top level, or return with a value inside an initializer
- this/super outside a class, super in a class with no superclass
- A class inheriting from itself

Resolution never stops at the first problem; every diagnostic is collected.
"""

import logging
from contextlib import contextmanager, nullcontext
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Dict, List, Optional

from .ast import (
    INITIALIZER_NAME, THIS_NAME, SUPER_NAME,
    Expression, Statement,
    Literal, UnaryOp, BinaryOp, LogicalOp, ConditionalExpr, Grouping,
    Identifier, Assignment, FunctionCall, MemberAccess, MemberAssignment,
    ThisExpr, SuperAccess, VectorLiteral,
    ExpressionStatement, PrintStatement, VarDecl, Block, IfStatement,
    WhileStatement, FunctionDef, ReturnStatement, ClassDef,
)
from .tokens import Token
from .scopes import ScopeStack
from .errors import (
    Diagnostic,
    DiagnosticCollector,
    ResolveError,
    error_already_declared,
    error_own_initializer,
    error_top_level_return,
    error_initializer_return,
    error_this_outside_class,
    error_super_outside_class,
    error_super_without_superclass,
    error_inherits_itself,
)

logger = logging.getLogger(__name__)


class FunctionKind(Enum):
    """What kind of function body the resolver is currently inside."""
    NONE = auto()
    FUNCTION = auto()
    INITIALIZER = auto()
    METHOD = auto()


class ClassKind(Enum):
    """What kind of class body the resolver is currently inside."""
    NONE = auto()
    CLASS = auto()
    SUBCLASS = auto()


@dataclass
class ResolveResult:
    """Result of resolving a program."""
    diagnostics: List[Diagnostic]
    distances: Dict[Expression, int]
    has_errors: bool


class Resolver:
    """
    Computes lexical distances for variable references.

    Usage:
        resolver = Resolver(interpreter.resolve)
        result = resolver.resolve(statements)
        if not result.has_errors:
            interpreter.interpret(statements)

    ``on_resolve(node, distance)`` is called once per local reference;
    global references produce no call. ``on_error(token, message)`` is
    called for every diagnostic, in addition to recording it.
    """

    def __init__(self,
                 on_resolve: Optional[Callable[[Expression, int], None]] = None,
                 on_error: Optional[Callable[[Token, str], None]] = None,
                 scopes: Optional[ScopeStack] = None):
        self.on_resolve = on_resolve
        self.on_error = on_error
        self.scopes = scopes if scopes is not None else ScopeStack()
        self.diagnostics = DiagnosticCollector()
        self.distances: Dict[Expression, int] = {}
        self._current_function = FunctionKind.NONE
        self._current_class = ClassKind.NONE

    def resolve(self, statements: List[Statement]) -> ResolveResult:
        """Resolve a complete program (or one REPL unit)."""
        for stmt in statements:
            self._resolve_statement(stmt)

        logger.debug("resolved %d local references (%d errors)",
                     len(self.distances), self.diagnostics.error_count)
        return ResolveResult(
            diagnostics=self.diagnostics.diagnostics,
            distances=dict(self.distances),
            has_errors=self.diagnostics.has_errors,
        )

    # =========================================================================
    # Scope Handling
    # =========================================================================

    @contextmanager
    def _scope(self, name: str = ""):
        """Push a scope for the duration of a with-block."""
        scope = self.scopes.push(name=name)
        try:
            yield scope
        finally:
            self.scopes.pop()

    def _declare(self, name: Token) -> None:
        if self.scopes.is_empty():
            return
        scope = self.scopes.last()
        if scope.is_declared(name.lexeme):
            self._error(error_already_declared(name))
        scope.declare(name.lexeme)

    def _define(self, name: Token) -> None:
        if self.scopes.is_empty():
            return
        self.scopes.last().define(name.lexeme)

    def _resolve_local(self, expr: Expression, name: Token) -> None:
        distance = self.scopes.distance_to(name.lexeme)
        if distance is None:
            return  # global, looked up by name at run time
        self.distances[expr] = distance
        if self.on_resolve is not None:
            self.on_resolve(expr, distance)

    def _error(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.add(diagnostic)
        if self.on_error is not None:
            self.on_error(diagnostic.token, diagnostic.message)

    # =========================================================================
    # Statements
    # =========================================================================

    def _resolve_statements(self, statements: List[Statement]) -> None:
        for stmt in statements:
            self._resolve_statement(stmt)

    def _resolve_statement(self, stmt: Statement) -> None:
        if isinstance(stmt, Block):
            with self._scope("block"):
                self._resolve_statements(stmt.statements)
        elif isinstance(stmt, VarDecl):
            self._declare(stmt.name)
            if stmt.initializer is not None:
                self._resolve_expression(stmt.initializer)
            self._define(stmt.name)
        elif isinstance(stmt, FunctionDef):
            # Defined before the body so the function can call itself
            self._declare(stmt.name)
            self._define(stmt.name)
            self._resolve_function(stmt, FunctionKind.FUNCTION)
        elif isinstance(stmt, ClassDef):
            self._resolve_class(stmt)
        elif isinstance(stmt, ExpressionStatement):
            self._resolve_expression(stmt.expression)
        elif isinstance(stmt, PrintStatement):
            self._resolve_expression(stmt.expression)
        elif isinstance(stmt, IfStatement):
            self._resolve_expression(stmt.condition)
            self._resolve_statement(stmt.then_branch)
            if stmt.else_branch is not None:
                self._resolve_statement(stmt.else_branch)
        elif isinstance(stmt, WhileStatement):
            self._resolve_expression(stmt.condition)
            self._resolve_statement(stmt.body)
        elif isinstance(stmt, ReturnStatement):
            self._resolve_return(stmt)
        else:
            raise TypeError(f"Unknown statement type: {type(stmt).__name__}")

    def _resolve_return(self, stmt: ReturnStatement) -> None:
        if self._current_function == FunctionKind.NONE:
            self._error(error_top_level_return(stmt.keyword))
        if stmt.value is not None:
            if self._current_function == FunctionKind.INITIALIZER:
                self._error(error_initializer_return(stmt.keyword))
            self._resolve_expression(stmt.value)

    def _resolve_function(self, function: FunctionDef, kind: FunctionKind) -> None:
        enclosing = self._current_function
        self._current_function = kind
        try:
            with self._scope(f"function {function.name.lexeme}"):
                for param in function.params:
                    self._declare(param)
                    self._define(param)
                self._resolve_statements(function.body)
        finally:
            self._current_function = enclosing

    def _resolve_class(self, stmt: ClassDef) -> None:
        enclosing = self._current_class
        self._current_class = ClassKind.CLASS

        self._declare(stmt.name)
        self._define(stmt.name)

        if stmt.superclass is not None:
            if stmt.superclass.name.lexeme == stmt.name.lexeme:
                self._error(error_inherits_itself(stmt.superclass.name))
            self._current_class = ClassKind.SUBCLASS
            self._resolve_expression(stmt.superclass)

        super_scope = self._scope(SUPER_NAME) if stmt.superclass is not None else nullcontext()
        try:
            with super_scope as scope:
                if scope is not None:
                    scope.define(SUPER_NAME)
                with self._scope(THIS_NAME) as this_scope:
                    this_scope.define(THIS_NAME)
                    for method in stmt.methods:
                        if method.name.lexeme == INITIALIZER_NAME:
                            kind = FunctionKind.INITIALIZER
                        else:
                            kind = FunctionKind.METHOD
                        self._resolve_function(method, kind)
        finally:
            self._current_class = enclosing

    # =========================================================================
    # Expressions
    # =========================================================================

    def _resolve_expression(self, expr: Expression) -> None:
        if isinstance(expr, Identifier):
            self._resolve_identifier(expr)
        elif isinstance(expr, Assignment):
            self._resolve_expression(expr.value)
            self._resolve_local(expr, expr.name)
        elif isinstance(expr, Literal):
            pass
        elif isinstance(expr, Grouping):
            self._resolve_expression(expr.expression)
        elif isinstance(expr, UnaryOp):
            self._resolve_expression(expr.operand)
        elif isinstance(expr, (BinaryOp, LogicalOp)):
            self._resolve_expression(expr.left)
            self._resolve_expression(expr.right)
        elif isinstance(expr, ConditionalExpr):
            self._resolve_expression(expr.condition)
            self._resolve_expression(expr.then_branch)
            self._resolve_expression(expr.else_branch)
        elif isinstance(expr, FunctionCall):
            self._resolve_expression(expr.callee)
            for arg in expr.arguments:
                self._resolve_expression(arg)
        elif isinstance(expr, MemberAccess):
            # Property names are looked up dynamically; only the object resolves
            self._resolve_expression(expr.object)
        elif isinstance(expr, MemberAssignment):
            self._resolve_expression(expr.value)
            self._resolve_expression(expr.object)
        elif isinstance(expr, ThisExpr):
            if self._current_class == ClassKind.NONE:
                self._error(error_this_outside_class(expr.keyword))
                return
            self._resolve_local(expr, expr.keyword)
        elif isinstance(expr, SuperAccess):
            if self._current_class == ClassKind.NONE:
                self._error(error_super_outside_class(expr.keyword))
                return
            if self._current_class != ClassKind.SUBCLASS:
                self._error(error_super_without_superclass(expr.keyword))
                return
            self._resolve_local(expr, expr.keyword)
        elif isinstance(expr, VectorLiteral):
            for element in expr.elements:
                self._resolve_expression(element)
        else:
            raise TypeError(f"Unknown expression type: {type(expr).__name__}")

    def _resolve_identifier(self, expr: Identifier) -> None:
        if not self.scopes.is_empty():
            scope = self.scopes.last()
            if scope.is_declared(expr.name.lexeme) and not scope.is_defined(expr.name.lexeme):
                self._error(error_own_initializer(expr.name))
        self._resolve_local(expr, expr.name)


def resolve(statements: List[Statement], interpreter=None,
            raise_on_error: bool = False) -> ResolveResult:
    """
    Convenience function to resolve a program.

    Args:
        statements: Parsed statements
        interpreter: Optional interpreter whose ``resolve(node, depth)``
            receives every local distance
        raise_on_error: Raise instead of returning a result with errors

    Returns:
        ResolveResult with diagnostics and the distance map

    Raises:
        ResolveError: carrying the first diagnostic, if ``raise_on_error``
    """
    on_resolve = interpreter.resolve if interpreter is not None else None
    resolver = Resolver(on_resolve)
    result = resolver.resolve(statements)
    if raise_on_error and result.has_errors:
        raise ResolveError(resolver.diagnostics.first_error())
    return result
