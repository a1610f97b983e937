"""
Lexer for Lox.

Converts source text into a flat list of tokens for the parser.
Supports:
- Single-line comments (//)
- Nestable multi-line comments (/* */)
- Double-quoted string literals (may span lines)
- Number literals (always scanned as floating point)
- All Lox keywords and operators, plus ?, : and [ ] for the
  ternary operator and vector literals
"""

import logging
from typing import List, Optional

from .tokens import Token, TokenType, KEYWORDS
from .errors import (
    DiagnosticCollector,
    LexerError,
    error_unexpected_character,
    error_unterminated_string,
    error_unterminated_comment,
)

logger = logging.getLogger(__name__)


SINGLE_CHAR_TOKENS = {
    '(': TokenType.LEFT_PAREN,
    ')': TokenType.RIGHT_PAREN,
    '{': TokenType.LEFT_BRACE,
    '}': TokenType.RIGHT_BRACE,
    '[': TokenType.LEFT_BRACKET,
    ']': TokenType.RIGHT_BRACKET,
    ',': TokenType.COMMA,
    '.': TokenType.DOT,
    '-': TokenType.MINUS,
    '+': TokenType.PLUS,
    ';': TokenType.SEMICOLON,
    '*': TokenType.STAR,
    '?': TokenType.QUESTION,
    ':': TokenType.COLON,
}

# first char -> (token if followed by '=', token otherwise)
EQUAL_SUFFIX_TOKENS = {
    '!': (TokenType.BANG_EQUAL, TokenType.BANG),
    '=': (TokenType.EQUAL_EQUAL, TokenType.EQUAL),
    '<': (TokenType.LESS_EQUAL, TokenType.LESS),
    '>': (TokenType.GREATER_EQUAL, TokenType.GREATER),
}


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def _is_alpha(ch: str) -> bool:
    return ("a" <= ch <= "z") or ("A" <= ch <= "Z") or ch == "_"


class Lexer:
    """
    Tokenizer for Lox.

    Errors do not stop scanning: each one is recorded in ``diagnostics``
    and the lexer moves on, so a single pass reports every bad character.

    Usage:
        lexer = Lexer(source_code)
        tokens = lexer.scan_tokens()
        if lexer.diagnostics.has_errors:
            ...
    """

    def __init__(self, source: str, filename: Optional[str] = None):
        self.source = source or ""
        self.filename = filename
        self.tokens: List[Token] = []
        self.diagnostics = DiagnosticCollector()
        self.start = 0          # Start of the lexeme being scanned
        self.pos = 0            # Current position in source
        self.line = 1           # Current line (1-indexed)
        self.line_start = 0     # Position of current line start
        self.start_column = 1   # Column of the lexeme being scanned
        self._lines: Optional[List[str]] = None

    @property
    def lines(self) -> List[str]:
        """Lazy-load line list for error reporting."""
        if self._lines is None:
            self._lines = self.source.splitlines()
        return self._lines

    def get_source_line(self, line_num: int) -> Optional[str]:
        """Get a specific line of source (1-indexed)."""
        if 1 <= line_num <= len(self.lines):
            return self.lines[line_num - 1]
        return None

    def scan_tokens(self) -> List[Token]:
        """Scan the whole source. The result always ends with one EOF token."""
        while not self._is_at_end():
            self.start = self.pos
            self.start_column = self.pos - self.line_start + 1
            self._scan_token()

        self.tokens.append(Token(TokenType.EOF, "", None, self.line, self.pos - self.line_start + 1))
        logger.debug("scanned %d tokens (%d errors) from %s",
                     len(self.tokens), self.diagnostics.error_count, self.filename or "<source>")
        return self.tokens

    # =========================================================================
    # Character Navigation
    # =========================================================================

    def _is_at_end(self) -> bool:
        return self.pos >= len(self.source)

    def _peek(self, offset: int = 0) -> str:
        """Look at character at current position + offset without consuming."""
        idx = self.pos + offset
        if idx >= len(self.source):
            return '\0'
        return self.source[idx]

    def _advance(self) -> str:
        """Consume and return current character."""
        ch = self.source[self.pos]
        self.pos += 1
        if ch == '\n':
            self.line += 1
            self.line_start = self.pos
        return ch

    def _match(self, expected: str) -> bool:
        """Consume character if it matches expected."""
        if self._is_at_end() or self.source[self.pos] != expected:
            return False
        self._advance()
        return True

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def _scan_token(self) -> None:
        start_line = self.line
        ch = self._advance()

        if ch in SINGLE_CHAR_TOKENS:
            self._add_token(SINGLE_CHAR_TOKENS[ch])
        elif ch in EQUAL_SUFFIX_TOKENS:
            with_equal, alone = EQUAL_SUFFIX_TOKENS[ch]
            self._add_token(with_equal if self._match('=') else alone)
        elif ch == '/':
            if self._match('/'):
                while self._peek() != '\n' and not self._is_at_end():
                    self._advance()
            elif self._match('*'):
                self._skip_block_comment(start_line)
            else:
                self._add_token(TokenType.SLASH)
        elif ch in ' \r\t\n':
            pass
        elif ch == '"':
            self._string(start_line)
        elif _is_digit(ch):
            self._number()
        elif _is_alpha(ch):
            self._identifier()
        else:
            self.diagnostics.add(error_unexpected_character(
                ch, start_line, self.get_source_line(start_line)))

    def _add_token(self, token_type: TokenType, literal=None, line: Optional[int] = None) -> None:
        text = self.source[self.start:self.pos]
        self.tokens.append(Token(
            token_type, text, literal,
            line if line is not None else self.line,
            self.start_column,
        ))

    def _skip_block_comment(self, start_line: int) -> None:
        """Skip /* ... */ comment; the opening delimiter is already consumed."""
        depth = 1
        while not self._is_at_end() and depth > 0:
            if self._peek() == '/' and self._peek(1) == '*':
                self._advance()
                self._advance()
                depth += 1
            elif self._peek() == '*' and self._peek(1) == '/':
                self._advance()
                self._advance()
                depth -= 1
            else:
                self._advance()

        if depth > 0:
            self.diagnostics.add(error_unterminated_comment(
                start_line, self.get_source_line(start_line)))

    def _string(self, start_line: int) -> None:
        while self._peek() != '"' and not self._is_at_end():
            self._advance()

        if self._is_at_end():
            self.diagnostics.add(error_unterminated_string(
                start_line, self.get_source_line(start_line)))
            return

        self._advance()  # closing quote
        value = self.source[self.start + 1:self.pos - 1]
        self._add_token(TokenType.STRING, value, line=start_line)

    def _number(self) -> None:
        while _is_digit(self._peek()):
            self._advance()

        # Fractional part needs at least one digit after the dot
        if self._peek() == '.' and _is_digit(self._peek(1)):
            self._advance()
            while _is_digit(self._peek()):
                self._advance()

        self._add_token(TokenType.NUMBER, float(self.source[self.start:self.pos]))

    def _identifier(self) -> None:
        while _is_alpha(self._peek()) or _is_digit(self._peek()):
            self._advance()
        text = self.source[self.start:self.pos]
        self._add_token(KEYWORDS.get(text, TokenType.IDENTIFIER))


def tokenize(source: str, filename: Optional[str] = None) -> List[Token]:
    """
    Convenience function to tokenize source code.

    Args:
        source: Lox source text
        filename: Optional filename for log messages

    Returns:
        List of tokens ending with EOF

    Raises:
        LexerError: carrying the first diagnostic, if any were recorded
    """
    lexer = Lexer(source, filename)
    tokens = lexer.scan_tokens()
    if lexer.diagnostics.has_errors:
        raise LexerError(lexer.diagnostics.first_error())
    return tokens
