"""
Unit tests for the Lox lexer.
"""

import pytest
from treelox import tokenize, Lexer, TokenType, LexerError


def _types(source):
    return [t.type for t in tokenize(source)]


class TestLexerBasics:
    """Test basic lexer functionality."""

    def test_empty_source(self):
        """Empty source produces only EOF."""
        tokens = tokenize("")
        assert len(tokens) == 1
        assert tokens[0].type == TokenType.EOF

    def test_whitespace_only(self):
        """Whitespace and newlines produce only EOF."""
        assert _types("  \t\r\n\n  ") == [TokenType.EOF]

    def test_var_declaration(self):
        """Basic var declaration tokenization."""
        assert _types("var x = 42;") == [
            TokenType.VAR,
            TokenType.IDENTIFIER,
            TokenType.EQUAL,
            TokenType.NUMBER,
            TokenType.SEMICOLON,
            TokenType.EOF,
        ]

    def test_identifier_lexeme(self):
        """Identifiers may contain underscores and digits after the first character."""
        tokens = tokenize("_foo_bar123")
        assert tokens[0].type == TokenType.IDENTIFIER
        assert tokens[0].lexeme == "_foo_bar123"
        assert tokens[0].literal is None

    def test_position_tracking(self):
        """Line and column are tracked for each token."""
        tokens = tokenize("var x = 5;")
        assert tokens[0].line == 1
        assert tokens[0].column == 1
        assert tokens[1].column == 5

    def test_multiline_position_tracking(self):
        """Line numbers advance across newlines and columns restart."""
        tokens = tokenize("var x = 5;\n  var y = 10;")
        var_tokens = [t for t in tokens if t.type == TokenType.VAR]
        assert var_tokens[0].line == 1
        assert var_tokens[1].line == 2
        assert var_tokens[1].column == 3

    def test_token_str(self):
        """Tokens render as type, lexeme and literal."""
        tokens = tokenize('x "hi"')
        assert str(tokens[0]) == "IDENTIFIER x"
        assert str(tokens[1]) == "STRING \"hi\" 'hi'"


class TestOperators:
    """Test single and double character operators."""

    def test_single_character_tokens(self):
        """Every single-character token is recognized."""
        assert _types("(){}[],.-+; / *?:") == [
            TokenType.LEFT_PAREN,
            TokenType.RIGHT_PAREN,
            TokenType.LEFT_BRACE,
            TokenType.RIGHT_BRACE,
            TokenType.LEFT_BRACKET,
            TokenType.RIGHT_BRACKET,
            TokenType.COMMA,
            TokenType.DOT,
            TokenType.MINUS,
            TokenType.PLUS,
            TokenType.SEMICOLON,
            TokenType.SLASH,
            TokenType.STAR,
            TokenType.QUESTION,
            TokenType.COLON,
            TokenType.EOF,
        ]

    def test_two_character_tokens(self):
        """Operators followed by '=' combine into one token."""
        assert _types("! != = == > >= < <=") == [
            TokenType.BANG,
            TokenType.BANG_EQUAL,
            TokenType.EQUAL,
            TokenType.EQUAL_EQUAL,
            TokenType.GREATER,
            TokenType.GREATER_EQUAL,
            TokenType.LESS,
            TokenType.LESS_EQUAL,
            TokenType.EOF,
        ]

    def test_no_space_needed(self):
        """Adjacent operators split correctly."""
        assert _types("a<=-b") == [
            TokenType.IDENTIFIER,
            TokenType.LESS_EQUAL,
            TokenType.MINUS,
            TokenType.IDENTIFIER,
            TokenType.EOF,
        ]


class TestKeywords:
    """Test keyword recognition."""

    @pytest.mark.parametrize("word,token_type", [
        ("and", TokenType.AND),
        ("class", TokenType.CLASS),
        ("else", TokenType.ELSE),
        ("false", TokenType.FALSE),
        ("fun", TokenType.FUN),
        ("for", TokenType.FOR),
        ("if", TokenType.IF),
        ("import", TokenType.IMPORT),
        ("nil", TokenType.NIL),
        ("or", TokenType.OR),
        ("print", TokenType.PRINT),
        ("return", TokenType.RETURN),
        ("super", TokenType.SUPER),
        ("this", TokenType.THIS),
        ("true", TokenType.TRUE),
        ("var", TokenType.VAR),
        ("while", TokenType.WHILE),
    ])
    def test_keyword(self, word, token_type):
        """Each reserved word has its own token type."""
        assert tokenize(word)[0].type == token_type

    def test_keyword_prefix_is_identifier(self):
        """Identifiers that merely start with a keyword stay identifiers."""
        tokens = tokenize("classy orchid variable")
        assert [t.type for t in tokens[:3]] == [TokenType.IDENTIFIER] * 3

    def test_keywords_are_case_sensitive(self):
        """'Var' is not the keyword 'var'."""
        assert tokenize("Var")[0].type == TokenType.IDENTIFIER


class TestComments:
    """Test comment handling."""

    def test_line_comment(self):
        """Line comments run to the end of the line."""
        assert _types("// nothing here\nvar") == [TokenType.VAR, TokenType.EOF]

    def test_line_comment_at_end_of_source(self):
        """A line comment may end the source without a newline."""
        assert _types("x; // trailing") == [
            TokenType.IDENTIFIER, TokenType.SEMICOLON, TokenType.EOF]

    def test_block_comment(self):
        """Block comments may span lines."""
        tokens = tokenize("/* one\ntwo\nthree */ var")
        assert tokens[0].type == TokenType.VAR
        assert tokens[0].line == 3

    def test_nested_block_comment(self):
        """Block comments nest."""
        assert _types("/* outer /* inner */ still outer */ var") == [
            TokenType.VAR, TokenType.EOF]

    def test_slash_is_division(self):
        """A lone slash is the division operator."""
        assert _types("a / b") == [
            TokenType.IDENTIFIER, TokenType.SLASH, TokenType.IDENTIFIER, TokenType.EOF]


class TestLiterals:
    """Test string and number literals."""

    def test_string_literal(self):
        """String literal value excludes the quotes."""
        token = tokenize('"hello world"')[0]
        assert token.type == TokenType.STRING
        assert token.literal == "hello world"
        assert token.lexeme == '"hello world"'

    def test_empty_string(self):
        """Empty string literal."""
        assert tokenize('""')[0].literal == ""

    def test_multiline_string(self):
        """Strings may span lines and are reported on their starting line."""
        tokens = tokenize('"one\ntwo" x')
        assert tokens[0].literal == "one\ntwo"
        assert tokens[0].line == 1
        assert tokens[1].line == 2

    def test_integer_is_float(self):
        """Numbers are always floating point."""
        token = tokenize("42")[0]
        assert token.type == TokenType.NUMBER
        assert token.literal == 42.0
        assert isinstance(token.literal, float)

    def test_fractional_number(self):
        """Numbers may have a fractional part."""
        assert tokenize("3.25")[0].literal == 3.25

    def test_trailing_dot_is_not_fraction(self):
        """A dot with no digit after it is a separate token."""
        assert _types("12.") == [TokenType.NUMBER, TokenType.DOT, TokenType.EOF]

    def test_method_call_on_number(self):
        """'1.foo' scans as number, dot, identifier."""
        assert _types("1.foo") == [
            TokenType.NUMBER, TokenType.DOT, TokenType.IDENTIFIER, TokenType.EOF]


class TestLexerErrors:
    """Test lexical error reporting."""

    def test_unexpected_character(self):
        """Unknown characters raise E001 through tokenize()."""
        with pytest.raises(LexerError) as exc_info:
            tokenize("var x = @;")
        assert exc_info.value.diagnostic.code == "E001"
        assert "E001" in str(exc_info.value)

    def test_unterminated_string(self):
        """Unterminated string raises E002."""
        with pytest.raises(LexerError) as exc_info:
            tokenize('"never closed')
        assert exc_info.value.diagnostic.code == "E002"

    def test_unterminated_block_comment(self):
        """Unterminated block comment raises E003."""
        with pytest.raises(LexerError) as exc_info:
            tokenize("/* unterminated /* nested */")
        assert exc_info.value.diagnostic.code == "E003"

    def test_scanning_continues_after_error(self):
        """Every bad character is reported and good tokens are kept."""
        lexer = Lexer("a # b $ c")
        tokens = lexer.scan_tokens()
        assert lexer.diagnostics.error_count == 2
        assert [t.lexeme for t in tokens if t.type == TokenType.IDENTIFIER] == ["a", "b", "c"]
        assert tokens[-1].type == TokenType.EOF

    def test_error_line_number(self):
        """Errors point at the line where they occur."""
        lexer = Lexer("x;\ny;\n@")
        lexer.scan_tokens()
        assert lexer.diagnostics.first_error().line == 3
        assert lexer.diagnostics.first_error().source_line == "@"

    def test_non_ascii_digit_rejected(self):
        """Only ASCII digits start a number."""
        lexer = Lexer("٣")
        lexer.scan_tokens()
        assert lexer.diagnostics.has_errors
