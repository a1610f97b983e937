"""
Session driver: source text -> tokens -> statements -> resolve -> interpret.

A ``Session`` owns one interpreter for its whole lifetime, so globals
defined by one ``run`` call (or REPL input) are visible to the next.
Programs with any lexical, syntax or scoping error are never executed.
"""

import io
import logging
import os
import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, TextIO

from .ast import Assignment, ExpressionStatement, MemberAssignment
from .config import LoxConfig
from .errors import Diagnostic, DiagnosticCollector, LoxRuntimeError
from .lexer import Lexer
from .parser import Parser
from .prelude import PRELUDE_FILENAME, PRELUDE_SOURCE
from .resolver import Resolver
from .runtime import Interpreter, stringify
from .tokens import Token, TokenType

logger = logging.getLogger(__name__)

_OPENERS = {TokenType.LEFT_BRACE, TokenType.LEFT_PAREN, TokenType.LEFT_BRACKET}
_CLOSERS = {TokenType.RIGHT_BRACE, TokenType.RIGHT_PAREN, TokenType.RIGHT_BRACKET}


class RunStatus(Enum):
    """Outcome of running one unit of source."""
    OK = "ok"
    STATIC_ERROR = "static_error"      # Lexer, parser or resolver diagnostics
    RUNTIME_ERROR = "runtime_error"


@dataclass
class RunResult:
    """Result of running one unit of source."""
    status: RunStatus
    diagnostics: List[Diagnostic] = field(default_factory=list)
    runtime_error: Optional[LoxRuntimeError] = None
    output: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == RunStatus.OK


def needs_more_input(source: str) -> bool:
    """True while a REPL unit has more '{', '(' or '[' than closers."""
    depth = 0
    for token in Lexer(source).scan_tokens():
        if token.type in _OPENERS:
            depth += 1
        elif token.type in _CLOSERS:
            depth -= 1
    return depth > 0


class Session:
    """
    One interpreter plus the pipeline that feeds it.

    Usage:
        session = Session()
        result = session.run('print "hi";')
        if result.status == RunStatus.RUNTIME_ERROR:
            ...

    Printed values go to ``stdout``; diagnostics and runtime errors go to
    ``stderr``. Both are also collected on the returned ``RunResult``.
    """

    def __init__(self, config: Optional[LoxConfig] = None,
                 stdout: Optional[TextIO] = None,
                 stderr: Optional[TextIO] = None,
                 base_dir: Optional[str] = None):
        self.config = config or LoxConfig()
        self.stdout = stdout if stdout is not None else sys.stdout
        self.stderr = stderr if stderr is not None else sys.stderr
        self.base_dir = base_dir or os.getcwd()
        self._output: List[str] = []
        self._runtime_error: Optional[LoxRuntimeError] = None
        self._source_lines: List[str] = []
        self.interpreter = Interpreter(stdout=self._print, on_error=self._report_runtime_error)

        if self.config.prelude:
            self._load_prelude()

    # =========================================================================
    # Sinks
    # =========================================================================

    def _print(self, text: str) -> None:
        self._output.append(text)
        self.stdout.write(text + "\n")

    def _report_runtime_error(self, error: LoxRuntimeError) -> None:
        self._runtime_error = error
        diagnostic = error.diagnostic
        if diagnostic.source_line is None:
            diagnostic.source_line = self._source_line(diagnostic.line)
        self.stderr.write(diagnostic.format(self.config.show_source) + "\n")

    def _report_diagnostics(self, diagnostics: List[Diagnostic]) -> None:
        for diagnostic in diagnostics:
            if diagnostic.source_line is None:
                diagnostic.source_line = self._source_line(diagnostic.line)
            self.stderr.write(diagnostic.format(self.config.show_source) + "\n")

    def _source_line(self, line: int) -> Optional[str]:
        if 1 <= line <= len(self._source_lines):
            return self._source_lines[line - 1]
        return None

    # =========================================================================
    # Running
    # =========================================================================

    def _load_prelude(self) -> None:
        result = self.run(PRELUDE_SOURCE, PRELUDE_FILENAME)
        if not result.ok:
            raise RuntimeError(f"Prelude failed to load: {result.status.value}")
        logger.debug("prelude loaded")

    def run(self, source: str, filename: Optional[str] = None, repl: bool = False) -> RunResult:
        """
        Run one unit of source.

        With ``repl=True`` a missing trailing ';' is supplied, and the value
        of a trailing expression statement (other than an assignment) is
        echoed when it is not nil and the ``echo`` setting is on.
        """
        self._output = []
        self._runtime_error = None
        self._source_lines = source.splitlines()
        diagnostics = DiagnosticCollector(self.config.max_errors)

        lexer = Lexer(source, filename)
        tokens = lexer.scan_tokens()
        diagnostics.extend(lexer.diagnostics.diagnostics)
        if repl:
            tokens = self._terminate_repl_unit(tokens)

        parser = Parser(tokens, filename, self.base_dir, self.config.max_errors)
        statements = parser.parse_program()
        diagnostics.extend(parser.diagnostics.diagnostics)

        if not diagnostics.has_errors:
            resolution = Resolver(self.interpreter.resolve).resolve(statements)
            diagnostics.extend(resolution.diagnostics)

        if diagnostics.has_errors:
            logger.debug("%s: %d static error(s), not running",
                         filename or "<source>", diagnostics.error_count)
            self._report_diagnostics(diagnostics.diagnostics)
            return RunResult(RunStatus.STATIC_ERROR, diagnostics.diagnostics,
                             output=list(self._output))

        if not self.interpreter.interpret(statements):
            return RunResult(RunStatus.RUNTIME_ERROR, diagnostics.diagnostics,
                             self._runtime_error, list(self._output))

        if repl and self.config.echo and statements:
            last = statements[-1]
            if (isinstance(last, ExpressionStatement)
                    and not isinstance(last.expression, (Assignment, MemberAssignment))
                    and self.interpreter.last_value is not None):
                self._print(stringify(self.interpreter.last_value))

        return RunResult(RunStatus.OK, diagnostics.diagnostics, output=list(self._output))

    def run_file(self, path: str) -> RunResult:
        """Run a source file; imports inside it resolve relative to its directory."""
        with open(path, "r", encoding="utf-8") as f:
            source = f.read()
        previous = self.base_dir
        self.base_dir = os.path.dirname(os.path.abspath(path))
        try:
            return self.run(source, path)
        finally:
            self.base_dir = previous

    @staticmethod
    def _terminate_repl_unit(tokens: List[Token]) -> List[Token]:
        """Add a ';' before EOF unless the unit already ends with ';' or '}'."""
        if len(tokens) < 2:
            return tokens
        last = tokens[-2]
        if last.type in (TokenType.SEMICOLON, TokenType.RIGHT_BRACE):
            return tokens
        semicolon = Token(TokenType.SEMICOLON, ";", None, last.line, last.column + len(last.lexeme))
        return tokens[:-1] + [semicolon, tokens[-1]]


def run_source(source: str, config: Optional[LoxConfig] = None,
               base_dir: Optional[str] = None) -> RunResult:
    """
    Run Lox source in a fresh session, capturing everything it writes.

    Example:
        result = run_source('print 1 + 2;')
        assert result.output == ["3"]
    """
    session = Session(config, stdout=io.StringIO(), stderr=io.StringIO(), base_dir=base_dir)
    return session.run(source)
