"""
Tests for diagnostics and the error collector.
"""

from treelox import Diagnostic, DiagnosticCollector, ErrorSeverity, LoxRuntimeError
from treelox.tokens import Token, TokenType


def _token(lexeme, line=1, column=1, token_type=TokenType.IDENTIFIER):
    return Token(token_type, lexeme, None, line, column)


class TestDiagnostic:
    """Test formatting of single diagnostics."""

    def test_format_with_source_and_caret(self):
        """The caret underlines the offending token."""
        diagnostic = Diagnostic(
            code="E101",
            message="Expect ';' after value.",
            severity=ErrorSeverity.ERROR,
            line=2,
            token=_token("oops", line=2, column=7),
            source_line="print oops",
        )
        assert diagnostic.format().splitlines() == [
            "[line 2] error[E101] at 'oops': Expect ';' after value.",
            "    |",
            "  2 | print oops",
            "    |       ^^^^",
        ]

    def test_format_without_token(self):
        """Lexer diagnostics have no token and no location."""
        diagnostic = Diagnostic("E001", "Unexpected character '@'.", ErrorSeverity.ERROR, 1)
        assert str(diagnostic) == "[line 1] error[E001]: Unexpected character '@'."

    def test_location_at_end(self):
        """Errors at EOF say 'at end'."""
        diagnostic = Diagnostic("E101", "Expect expression.", ErrorSeverity.ERROR, 3,
                                token=_token("", line=3, token_type=TokenType.EOF))
        assert diagnostic.location == " at end"

    def test_hints(self):
        """Hints follow the message."""
        diagnostic = Diagnostic("E002", "Unterminated string.", ErrorSeverity.ERROR, 1,
                                hints=["close it"])
        assert diagnostic.format().endswith("    = hint: close it")

    def test_to_json(self):
        """Diagnostics serialize for tools."""
        diagnostic = Diagnostic("E201", "Already a variable named 'a' in this scope.",
                                ErrorSeverity.ERROR, 4, token=_token("a", line=4, column=9))
        assert diagnostic.to_json() == {
            "code": "E201",
            "message": "Already a variable named 'a' in this scope.",
            "severity": "error",
            "line": 4,
            "column": 9,
            "lexeme": "a",
            "hints": [],
        }

    def test_runtime_error_carries_diagnostic(self):
        """Runtime errors build their diagnostic from the token."""
        error = LoxRuntimeError(_token("+", line=5), "Operands must be numbers.", "E402")
        assert error.diagnostic.line == 5
        assert error.diagnostic.code == "E402"
        assert error.token.lexeme == "+"


class TestDiagnosticCollector:
    """Test collecting diagnostics."""

    def test_counts(self):
        """Every added diagnostic is counted."""
        collector = DiagnosticCollector()
        collector.add(Diagnostic("E101", "bad", ErrorSeverity.ERROR, 1))
        collector.add(Diagnostic("E102", "worse", ErrorSeverity.ERROR, 2))
        assert collector.error_count == 2
        assert collector.has_errors

    def test_first_error_in_order(self):
        """first_error() returns the earliest diagnostic added."""
        collector = DiagnosticCollector()
        collector.add(Diagnostic("E201", "first", ErrorSeverity.ERROR, 3))
        collector.add(Diagnostic("E101", "second", ErrorSeverity.ERROR, 1))
        assert collector.first_error().code == "E201"

    def test_empty(self):
        """An empty collector has no errors."""
        collector = DiagnosticCollector()
        assert not collector.has_errors
        assert collector.first_error() is None
        assert collector.format_all() == ""

    def test_should_stop(self):
        """should_stop trips at max_errors."""
        collector = DiagnosticCollector(max_errors=2)
        collector.extend([Diagnostic("E101", "bad", ErrorSeverity.ERROR, n) for n in (1, 2)])
        assert collector.should_stop

    def test_format_all_summary(self):
        """format_all ends with a count line."""
        collector = DiagnosticCollector()
        collector.add(Diagnostic("E101", "bad", ErrorSeverity.ERROR, 1))
        assert collector.format_all().endswith("1 error(s)")

    def test_severity_is_error(self):
        """Every diagnostic is an error."""
        assert [s.value for s in ErrorSeverity] == ["error"]

    def test_to_json(self):
        """The collector serializes every diagnostic plus counts."""
        collector = DiagnosticCollector()
        collector.add(Diagnostic("E101", "bad", ErrorSeverity.ERROR, 1))
        data = collector.to_json()
        assert data["error_count"] == 1
        assert data["diagnostics"][0]["code"] == "E101"
