"""
Lox-specific exceptions and error handling.

Error code ranges:
- E0xx: Lexer errors
- E1xx: Parser errors
- E2xx: Resolver (static scoping) errors
- E4xx: Runtime errors
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List

from .tokens import Token, TokenType


class ErrorSeverity(Enum):
    """Severity levels for diagnostics."""
    ERROR = "error"


@dataclass
class Diagnostic:
    """A single diagnostic message."""
    code: str                       # E001, E101, etc.
    message: str                    # Human-readable message
    severity: ErrorSeverity
    line: int
    token: Optional[Token] = None       # The offending token, when there is one
    source_line: Optional[str] = None   # The actual line of source code
    hints: List[str] = field(default_factory=list)

    @property
    def location(self) -> str:
        """Where the diagnostic points, in Lox's traditional ' at ...' form."""
        if self.token is None:
            return ""
        if self.token.type == TokenType.EOF:
            return " at end"
        return f" at '{self.token.lexeme}'"

    def format(self, show_source: bool = True) -> str:
        """Format the diagnostic for display."""
        parts = [
            f"[line {self.line}] {self.severity.value}[{self.code}]{self.location}: {self.message}"
        ]

        # Source line with caret
        if show_source and self.source_line is not None:
            parts.append("    |")
            parts.append(f"{self.line:>3} | {self.source_line}")
            if self.token is not None and self.token.column > 0:
                width = max(1, len(self.token.lexeme))
                parts.append(f"    | {' ' * (self.token.column - 1)}{'^' * width}")

        for hint in self.hints:
            parts.append(f"    = hint: {hint}")

        return "\n".join(parts)

    def to_json(self) -> dict:
        """Convert to JSON-serializable dict for tooling integration."""
        return {
            "code": self.code,
            "message": self.message,
            "severity": self.severity.value,
            "line": self.line,
            "column": self.token.column if self.token is not None else None,
            "lexeme": self.token.lexeme if self.token is not None else None,
            "hints": self.hints,
        }

    def __str__(self) -> str:
        return self.format(show_source=False)


class LoxError(Exception):
    """Base exception for Lox errors."""

    def __init__(self, diagnostic: Diagnostic):
        self.diagnostic = diagnostic
        super().__init__(diagnostic.message)

    def __str__(self) -> str:
        return self.diagnostic.format()


class LexerError(LoxError):
    """Error during lexical analysis (E0xx)."""
    pass


class ParserError(LoxError):
    """Error during parsing (E1xx)."""
    pass


class ResolveError(LoxError):
    """Static scoping error found by the resolver (E2xx)."""
    pass


class LoxRuntimeError(LoxError):
    """Error raised while evaluating a program (E4xx).

    Propagates to the top-level ``Interpreter.interpret`` boundary, which
    reports it and abandons the rest of that call.
    """

    def __init__(self, token: Token, message: str, code: str = "E400",
                 hints: Optional[List[str]] = None):
        self.token = token
        self.message = message
        super().__init__(Diagnostic(
            code=code,
            message=message,
            severity=ErrorSeverity.ERROR,
            line=token.line,
            token=token,
            hints=hints or [],
        ))


class NativeCallError(Exception):
    """Failure inside a native callable.

    Carries no token; the interpreter re-raises it as a LoxRuntimeError
    pointing at the call expression.
    """
    pass


# --- Lexer error codes ---

def error_unexpected_character(char: str, line: int, source_line: str = None) -> Diagnostic:
    """E001: Unexpected character."""
    return Diagnostic(
        code="E001",
        message=f"Unexpected character '{char}'.",
        severity=ErrorSeverity.ERROR,
        line=line,
        source_line=source_line,
    )


def error_unterminated_string(line: int, source_line: str = None) -> Diagnostic:
    """E002: Unterminated string literal."""
    return Diagnostic(
        code="E002",
        message="Unterminated string.",
        severity=ErrorSeverity.ERROR,
        line=line,
        source_line=source_line,
        hints=["string literals must be closed with a matching '\"'"],
    )


def error_unterminated_comment(line: int, source_line: str = None) -> Diagnostic:
    """E003: Unterminated block comment."""
    return Diagnostic(
        code="E003",
        message="Unterminated block comment (expected closing */).",
        severity=ErrorSeverity.ERROR,
        line=line,
        source_line=source_line,
    )


# --- Parser error codes ---

def error_unexpected_token(token: Token, message: str) -> Diagnostic:
    """E101: Unexpected token."""
    return Diagnostic(
        code="E101",
        message=message,
        severity=ErrorSeverity.ERROR,
        line=token.line,
        token=token,
    )


def error_invalid_assignment_target(token: Token) -> Diagnostic:
    """E102: Left-hand side of '=' is not assignable."""
    return Diagnostic(
        code="E102",
        message="Invalid assignment target.",
        severity=ErrorSeverity.ERROR,
        line=token.line,
        token=token,
    )


def error_too_many(token: Token, what: str) -> Diagnostic:
    """E103: More than 255 parameters or arguments."""
    return Diagnostic(
        code="E103",
        message=f"Can't have more than 255 {what}.",
        severity=ErrorSeverity.ERROR,
        line=token.line,
        token=token,
    )


def error_import_failed(token: Token, message: str) -> Diagnostic:
    """E104: An imported file could not be loaded."""
    return Diagnostic(
        code="E104",
        message=f"Import failed: {message}",
        severity=ErrorSeverity.ERROR,
        line=token.line,
        token=token,
    )


# --- Resolver error codes ---

def error_already_declared(token: Token) -> Diagnostic:
    """E201: Same name declared twice in one local scope."""
    return _resolver_error("E201", token, f"Already a variable named '{token.lexeme}' in this scope.")


def error_own_initializer(token: Token) -> Diagnostic:
    """E202: Local variable read inside its own initializer."""
    return _resolver_error("E202", token, "Can't read local variable in its own initializer.")


def error_top_level_return(token: Token) -> Diagnostic:
    """E203: return outside of any function."""
    return _resolver_error("E203", token, "Can't return from top-level code.")


def error_initializer_return(token: Token) -> Diagnostic:
    """E204: return with a value inside an initializer."""
    return _resolver_error("E204", token, "Can't return a value from an initializer.")


def error_this_outside_class(token: Token) -> Diagnostic:
    """E205: 'this' outside of a class body."""
    return _resolver_error("E205", token, "Can't use 'this' outside of a class.")


def error_super_outside_class(token: Token) -> Diagnostic:
    """E206: 'super' outside of a class body."""
    return _resolver_error("E206", token, "Can't use 'super' outside of a class.")


def error_super_without_superclass(token: Token) -> Diagnostic:
    """E207: 'super' in a class that does not inherit."""
    return _resolver_error("E207", token, "Can't use 'super' in a class with no superclass.")


def error_inherits_itself(token: Token) -> Diagnostic:
    """E208: class names itself as its superclass."""
    return _resolver_error("E208", token, "A class can't inherit from itself.")


def _resolver_error(code: str, token: Token, message: str) -> Diagnostic:
    return Diagnostic(
        code=code,
        message=message,
        severity=ErrorSeverity.ERROR,
        line=token.line,
        token=token,
    )


# --- Runtime error codes ---

def error_operand_not_number(token: Token) -> LoxRuntimeError:
    """E401: Unary operand must be a number."""
    return LoxRuntimeError(token, "Operand must be a number.", "E401")


def error_operands_not_numbers(token: Token) -> LoxRuntimeError:
    """E402: Binary operands must be numbers."""
    return LoxRuntimeError(token, "Operands must be numbers.", "E402")


def error_bad_plus_operands(token: Token) -> LoxRuntimeError:
    """E403: '+' needs two numbers or two strings."""
    return LoxRuntimeError(token, "Operands must be two numbers or two strings.", "E403")


def error_undefined_variable(token: Token) -> LoxRuntimeError:
    """E404: Global lookup found no binding."""
    return LoxRuntimeError(token, f"Undefined variable '{token.lexeme}'.", "E404")


def error_undefined_property(token: Token) -> LoxRuntimeError:
    """E405: Neither a field nor a method with that name."""
    return LoxRuntimeError(token, f"Undefined property '{token.lexeme}'.", "E405")


def error_not_an_instance(token: Token, what: str) -> LoxRuntimeError:
    """E406: Property access on a non-instance."""
    return LoxRuntimeError(token, f"Only instances have {what}.", "E406")


def error_not_callable(token: Token) -> LoxRuntimeError:
    """E407: Callee is not a function or class."""
    return LoxRuntimeError(token, "Can only call functions and classes.", "E407")


def error_arity_mismatch(token: Token, expected: int, actual: int) -> LoxRuntimeError:
    """E408: Wrong number of arguments."""
    return LoxRuntimeError(
        token, f"Expected {expected} arguments but got {actual}.", "E408")


def error_superclass_not_class(token: Token) -> LoxRuntimeError:
    """E409: Superclass expression did not evaluate to a class."""
    return LoxRuntimeError(token, "Superclass must be a class.", "E409")


def error_unassigned_variable(token: Token) -> LoxRuntimeError:
    """E410: Variable declared but read before any value was assigned."""
    return LoxRuntimeError(
        token,
        f"Variable '{token.lexeme}' is used before being assigned.",
        "E410",
        hints=["give the variable an initializer: var name = value;"],
    )


def error_native_call(token: Token, message: str) -> LoxRuntimeError:
    """E411: A native callable failed."""
    return LoxRuntimeError(token, message, "E411")


class DiagnosticCollector:
    """Collects diagnostics during one phase (scan, parse or resolve)."""

    def __init__(self, max_errors: int = 20):
        self.diagnostics: List[Diagnostic] = []
        self.max_errors = max_errors
        self._error_count = 0

    def add(self, diagnostic: Diagnostic) -> None:
        """Add a diagnostic."""
        self.diagnostics.append(diagnostic)
        self._error_count += 1

    def extend(self, diagnostics: List[Diagnostic]) -> None:
        for diagnostic in diagnostics:
            self.add(diagnostic)

    @property
    def error_count(self) -> int:
        return self._error_count

    @property
    def has_errors(self) -> bool:
        return self._error_count > 0

    @property
    def should_stop(self) -> bool:
        """Check if we've hit the max error limit."""
        return self._error_count >= self.max_errors

    def first_error(self) -> Optional[Diagnostic]:
        return self.diagnostics[0] if self.diagnostics else None

    def format_all(self, show_source: bool = True) -> str:
        """Format all diagnostics for display."""
        parts = [d.format(show_source) for d in self.diagnostics]
        if self._error_count > 0:
            parts.append(f"{self._error_count} error(s)")
        return "\n\n".join(parts)

    def to_json(self) -> dict:
        """Convert all diagnostics to JSON format."""
        return {
            "diagnostics": [d.to_json() for d in self.diagnostics],
            "error_count": self._error_count,
        }
