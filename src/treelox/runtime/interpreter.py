"""
Tree-walking interpreter for Lox.

Executes statements against a chain of ``Environment`` frames, using the
distances the resolver computed to reach local variables directly.

Statement execution returns a completion value: ``None`` for normal
completion, or a ``ReturnSignal`` when a ``return`` ran. Blocks, ifs and
loops stop and pass the signal outward; ``LoxFunction.call`` consumes it.
Runtime errors are exceptions (``LoxRuntimeError``) and stop the current
``interpret`` call.
"""

import logging
import math
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from ..ast import (
    INITIALIZER_NAME, THIS_NAME, SUPER_NAME,
    Expression, Statement,
    Literal, UnaryOp, BinaryOp, LogicalOp, ConditionalExpr, Grouping,
    Identifier, Assignment, FunctionCall, MemberAccess, MemberAssignment,
    ThisExpr, SuperAccess, VectorLiteral,
    ExpressionStatement, PrintStatement, VarDecl, Block, IfStatement,
    WhileStatement, FunctionDef, ReturnStatement, ClassDef,
)
from ..tokens import Token, TokenType
from ..errors import (
    LoxRuntimeError,
    NativeCallError,
    error_operand_not_number,
    error_operands_not_numbers,
    error_bad_plus_operands,
    error_undefined_property,
    error_not_an_instance,
    error_not_callable,
    error_arity_mismatch,
    error_superclass_not_class,
    error_unassigned_variable,
    error_native_call,
)
from .environment import Environment
from .objects import LoxCallable, LoxClass, LoxFunction, LoxInstance
from .values import UNASSIGNED, is_number, is_truthy, is_equal, stringify
from .builtins import BuiltinRegistry, get_builtin_registry

logger = logging.getLogger(__name__)


@dataclass
class ReturnSignal:
    """Completion of a statement that executed ``return``."""
    value: Any = None


def _default_error_sink(error: LoxRuntimeError) -> None:
    print(error.diagnostic.format(show_source=False), file=sys.stderr)


def _divide(left: float, right: float) -> float:
    """IEEE division: x/0 is +-Infinity and 0/0 is NaN instead of raising."""
    if right == 0.0:
        if left == 0.0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right


class Interpreter:
    """
    Tree-walking interpreter for Lox.

    Usage:
        interpreter = Interpreter()
        resolver = Resolver(interpreter.resolve)
        if not resolver.resolve(statements).has_errors:
            interpreter.interpret(statements)

    Args:
        stdout: Called with the already-stringified value of every print
        on_error: Called with the ``LoxRuntimeError`` that ended an
            ``interpret`` call
        builtins: Registry of native functions installed into globals
    """

    def __init__(self,
                 stdout: Optional[Callable[[str], None]] = None,
                 on_error: Optional[Callable[[LoxRuntimeError], None]] = None,
                 builtins: Optional[BuiltinRegistry] = None):
        self.stdout = stdout or print
        self.on_error = on_error or _default_error_sink
        self.builtins = builtins or get_builtin_registry()
        self.globals = Environment(name="globals")
        self.environment = self.globals
        self.locals: Dict[Expression, int] = {}
        self.last_value: Any = None
        self.builtins.install(self.globals)

    # =========================================================================
    # Entry Points
    # =========================================================================

    def resolve(self, expr: Expression, depth: int) -> None:
        """Record the resolver's distance for a variable reference."""
        self.locals[expr] = depth

    def interpret(self, statements: List[Statement]) -> bool:
        """
        Execute statements in order.

        A runtime error is reported to ``on_error`` and abandons the rest of
        this call. Returns True if every statement completed.
        """
        self.last_value = None
        try:
            for stmt in statements:
                self._execute(stmt)
        except LoxRuntimeError as e:
            logger.debug("runtime error at line %d: %s", e.token.line, e.message)
            self.on_error(e)
            return False
        return True

    def execute_block(self, statements: List[Statement],
                      environment: Environment) -> Optional[ReturnSignal]:
        """Run statements in the given frame, restoring the current frame afterwards."""
        with self._use_environment(environment):
            for stmt in statements:
                signal = self._execute(stmt)
                if signal is not None:
                    return signal
        return None

    @contextmanager
    def _use_environment(self, environment: Environment):
        previous = self.environment
        self.environment = environment
        try:
            yield environment
        finally:
            self.environment = previous

    # =========================================================================
    # Statements
    # =========================================================================

    def _execute(self, stmt: Statement) -> Optional[ReturnSignal]:
        """Execute a statement; a non-None result means a return is in flight."""
        if isinstance(stmt, ExpressionStatement):
            self.last_value = self._evaluate(stmt.expression)
        elif isinstance(stmt, PrintStatement):
            self.stdout(stringify(self._evaluate(stmt.expression)))
        elif isinstance(stmt, VarDecl):
            value = UNASSIGNED
            if stmt.initializer is not None:
                value = self._evaluate(stmt.initializer)
            self.environment.define(stmt.name.lexeme, value)
        elif isinstance(stmt, Block):
            return self.execute_block(stmt.statements, Environment(self.environment))
        elif isinstance(stmt, IfStatement):
            if is_truthy(self._evaluate(stmt.condition)):
                return self._execute(stmt.then_branch)
            if stmt.else_branch is not None:
                return self._execute(stmt.else_branch)
        elif isinstance(stmt, WhileStatement):
            while is_truthy(self._evaluate(stmt.condition)):
                signal = self._execute(stmt.body)
                if signal is not None:
                    return signal
        elif isinstance(stmt, FunctionDef):
            function = LoxFunction(stmt, self.environment)
            self.environment.define(stmt.name.lexeme, function)
        elif isinstance(stmt, ReturnStatement):
            value = None
            if stmt.value is not None:
                value = self._evaluate(stmt.value)
            return ReturnSignal(value)
        elif isinstance(stmt, ClassDef):
            self._execute_class(stmt)
        else:
            raise TypeError(f"Unknown statement type: {type(stmt).__name__}")
        return None

    def _execute_class(self, stmt: ClassDef) -> None:
        superclass = None
        if stmt.superclass is not None:
            superclass = self._evaluate(stmt.superclass)
            if not isinstance(superclass, LoxClass):
                raise error_superclass_not_class(stmt.superclass.name)

        # Declared first, assigned last, so methods can refer to the class by name
        self.environment.define(stmt.name.lexeme, UNASSIGNED)

        method_closure = self.environment
        if superclass is not None:
            method_closure = Environment(self.environment, name=SUPER_NAME)
            method_closure.define(SUPER_NAME, superclass)

        methods = {
            method.name.lexeme: LoxFunction(
                method, method_closure, method.name.lexeme == INITIALIZER_NAME)
            for method in stmt.methods
        }
        klass = LoxClass(stmt.name.lexeme, superclass, methods)
        self.environment.assign(stmt.name, klass)

    # =========================================================================
    # Expressions
    # =========================================================================

    def _evaluate(self, expr: Expression) -> Any:
        if isinstance(expr, Literal):
            return expr.value
        elif isinstance(expr, Grouping):
            return self._evaluate(expr.expression)
        elif isinstance(expr, Identifier):
            return self._look_up_variable(expr.name, expr)
        elif isinstance(expr, Assignment):
            value = self._evaluate(expr.value)
            distance = self.locals.get(expr)
            if distance is not None:
                self.environment.assign_at(distance, expr.name.lexeme, value)
            else:
                self.globals.assign(expr.name, value)
            return value
        elif isinstance(expr, UnaryOp):
            return self._eval_unary_op(expr)
        elif isinstance(expr, BinaryOp):
            return self._eval_binary_op(expr)
        elif isinstance(expr, LogicalOp):
            left = self._evaluate(expr.left)
            if expr.operator.type == TokenType.OR:
                if is_truthy(left):
                    return left
            elif not is_truthy(left):
                return left
            return self._evaluate(expr.right)
        elif isinstance(expr, ConditionalExpr):
            if is_truthy(self._evaluate(expr.condition)):
                return self._evaluate(expr.then_branch)
            return self._evaluate(expr.else_branch)
        elif isinstance(expr, FunctionCall):
            return self._eval_function_call(expr)
        elif isinstance(expr, MemberAccess):
            obj = self._evaluate(expr.object)
            if not isinstance(obj, LoxInstance):
                raise error_not_an_instance(expr.name, "properties")
            return obj.get(expr.name)
        elif isinstance(expr, MemberAssignment):
            obj = self._evaluate(expr.object)
            if not isinstance(obj, LoxInstance):
                raise error_not_an_instance(expr.name, "fields")
            value = self._evaluate(expr.value)
            obj.set(expr.name, value)
            return value
        elif isinstance(expr, ThisExpr):
            return self._look_up_variable(expr.keyword, expr)
        elif isinstance(expr, SuperAccess):
            return self._eval_super(expr)
        elif isinstance(expr, VectorLiteral):
            elements = [self._evaluate(element) for element in expr.elements]
            return self.builtins.vector_class.create_instance(elements)
        raise TypeError(f"Unknown expression type: {type(expr).__name__}")

    def _look_up_variable(self, name: Token, expr: Expression) -> Any:
        distance = self.locals.get(expr)
        if distance is not None:
            value = self.environment.get_at(distance, name.lexeme)
        else:
            value = self.globals.get(name)
        if value is UNASSIGNED:
            raise error_unassigned_variable(name)
        return value

    def _eval_unary_op(self, expr: UnaryOp) -> Any:
        operand = self._evaluate(expr.operand)
        if expr.operator.type == TokenType.MINUS:
            if not is_number(operand):
                raise error_operand_not_number(expr.operator)
            return -operand
        if expr.operator.type == TokenType.BANG:
            return not is_truthy(operand)
        raise TypeError(f"Unknown unary operator: {expr.operator.lexeme}")

    def _eval_binary_op(self, expr: BinaryOp) -> Any:
        left = self._evaluate(expr.left)
        right = self._evaluate(expr.right)
        op = expr.operator
        kind = op.type

        if kind == TokenType.EQUAL_EQUAL:
            return is_equal(left, right)
        if kind == TokenType.BANG_EQUAL:
            return not is_equal(left, right)

        if kind == TokenType.PLUS:
            if is_number(left) and is_number(right):
                return left + right
            if isinstance(left, str) and isinstance(right, str):
                return left + right
            raise error_bad_plus_operands(op)

        # Everything else is numeric only
        if not (is_number(left) and is_number(right)):
            raise error_operands_not_numbers(op)

        if kind == TokenType.MINUS:
            return left - right
        elif kind == TokenType.STAR:
            return left * right
        elif kind == TokenType.SLASH:
            return _divide(left, right)
        elif kind == TokenType.GREATER:
            return left > right
        elif kind == TokenType.GREATER_EQUAL:
            return left >= right
        elif kind == TokenType.LESS:
            return left < right
        elif kind == TokenType.LESS_EQUAL:
            return left <= right
        raise TypeError(f"Unknown binary operator: {op.lexeme}")

    def _eval_function_call(self, expr: FunctionCall) -> Any:
        callee = self._evaluate(expr.callee)
        arguments = [self._evaluate(arg) for arg in expr.arguments]

        if not isinstance(callee, LoxCallable):
            raise error_not_callable(expr.paren)
        if len(arguments) != callee.arity:
            raise error_arity_mismatch(expr.paren, callee.arity, len(arguments))

        try:
            return callee.call(self, arguments)
        except NativeCallError as e:
            raise error_native_call(expr.paren, str(e)) from e

    def _eval_super(self, expr: SuperAccess) -> Any:
        distance = self.locals[expr]
        superclass = self.environment.get_at(distance, SUPER_NAME)
        # The frame binding "this" sits just inside the one binding "super"
        instance = self.environment.get_at(distance - 1, THIS_NAME)

        method = superclass.find_method(expr.method.lexeme)
        if method is None:
            raise error_undefined_property(expr.method)
        return method.bind(instance)
