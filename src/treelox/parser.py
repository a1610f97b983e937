"""
Recursive descent parser for Lox.

Converts a token stream into a list of statement nodes. Parse errors are
recorded as diagnostics; the parser then skips ahead to the next statement
boundary and keeps going, so one pass reports as many errors as it can.
"""

import logging
import os
from typing import List, Optional, Set

from .tokens import Token, TokenType, STATEMENT_KEYWORDS
from .lexer import Lexer
from .ast import (
    # Expressions
    Expression, Literal, UnaryOp, BinaryOp, LogicalOp, ConditionalExpr,
    Grouping, Identifier, Assignment, FunctionCall, MemberAccess,
    MemberAssignment, ThisExpr, SuperAccess, VectorLiteral,
    # Statements
    Statement, ExpressionStatement, PrintStatement, VarDecl, Block,
    IfStatement, WhileStatement, FunctionDef, ReturnStatement, ClassDef,
)
from .errors import (
    ParserError,
    DiagnosticCollector,
    error_unexpected_token,
    error_invalid_assignment_target,
    error_too_many,
    error_import_failed,
)

logger = logging.getLogger(__name__)

MAX_ARGUMENTS = 255


class Parser:
    """
    Recursive descent parser for Lox.

    Usage:
        parser = Parser(tokens)
        statements = parser.parse_program()
        if parser.diagnostics.has_errors:
            ...

    Expression precedence, lowest to highest:
        assignment   =
        logic_or     or
        logic_and    and
        conditional  ?:
        equality     == !=
        comparison   < > <= >=
        term         + -
        factor       * /
        unary        ! -
        call         () .
    """

    def __init__(self, tokens: List[Token], filename: Optional[str] = None,
                 base_dir: Optional[str] = None, max_errors: int = 20):
        # Copied because imports splice tokens in place
        self.tokens = list(tokens)
        if not self.tokens or self.tokens[-1].type != TokenType.EOF:
            last_line = self.tokens[-1].line if self.tokens else 1
            self.tokens.append(Token(TokenType.EOF, "", None, last_line))
        self.filename = filename
        self.base_dir = base_dir or os.getcwd()
        self.pos = 0
        self.diagnostics = DiagnosticCollector(max_errors)
        self.imported: Set[str] = set()

    # =========================================================================
    # Token Navigation
    # =========================================================================

    def _current(self) -> Token:
        return self.tokens[self.pos]

    def _previous(self) -> Token:
        return self.tokens[self.pos - 1]

    def _is_at_end(self) -> bool:
        return self._current().type == TokenType.EOF

    def _check(self, token_type: TokenType) -> bool:
        return self._current().type == token_type

    def _advance(self) -> Token:
        """Consume and return current token."""
        token = self._current()
        if not self._is_at_end():
            self.pos += 1
        return token

    def _match(self, *token_types: TokenType) -> Optional[Token]:
        """Consume token if it matches any of the given types."""
        if self._current().type in token_types:
            return self._advance()
        return None

    def _consume(self, token_type: TokenType, message: str) -> Token:
        """Consume token of expected type, or raise error."""
        if self._check(token_type):
            return self._advance()
        raise self._error(self._current(), message)

    def _error(self, token: Token, message: str) -> ParserError:
        """Record a diagnostic and return the exception that unwinds to a statement boundary."""
        diagnostic = error_unexpected_token(token, message)
        self.diagnostics.add(diagnostic)
        return ParserError(diagnostic)

    def _synchronize(self) -> None:
        """Discard tokens until the start of the next statement."""
        self._advance()
        while not self._is_at_end():
            if self._previous().type == TokenType.SEMICOLON:
                return
            if self._current().type in STATEMENT_KEYWORDS:
                return
            self._advance()

    # =========================================================================
    # Program and Imports
    # =========================================================================

    def parse_program(self) -> List[Statement]:
        """Parse every declaration up to EOF."""
        statements: List[Statement] = []
        while not self._skip_semicolons_to_end():
            if self.diagnostics.should_stop:
                break
            if self._match(TokenType.IMPORT):
                try:
                    self._parse_import()
                except ParserError:
                    self._synchronize()
                continue
            stmt = self._parse_declaration()
            if stmt is not None:
                statements.append(stmt)

        logger.debug("parsed %d statements (%d errors) from %s",
                     len(statements), self.diagnostics.error_count,
                     self.filename or "<source>")
        return statements

    def _skip_semicolons_to_end(self) -> bool:
        while not self._is_at_end() and self._match(TokenType.SEMICOLON):
            pass
        return self._is_at_end()

    def _parse_import(self) -> None:
        """import "path"; splices the named file's tokens at the current position."""
        path_token = self._consume(TokenType.STRING, "Expect string path after 'import'.")
        self._consume(TokenType.SEMICOLON, "Expect ';' after import path.")

        path = os.path.abspath(os.path.join(self.base_dir, path_token.literal))
        if path in self.imported:
            logger.debug("skipping already imported %s", path)
            return
        if not os.path.isfile(path):
            self.diagnostics.add(error_import_failed(path_token, f"cannot find file '{path}'."))
            return

        try:
            with open(path, "r", encoding="utf-8") as f:
                source = f.read()
        except OSError as e:
            self.diagnostics.add(error_import_failed(path_token, f"cannot read '{path}': {e}"))
            return

        lexer = Lexer(source, path)
        imported_tokens = lexer.scan_tokens()
        if lexer.diagnostics.has_errors:
            for diagnostic in lexer.diagnostics.diagnostics:
                self.diagnostics.add(error_import_failed(
                    path_token, f"'{path}' [line {diagnostic.line}]: {diagnostic.message}"))
            return

        self.imported.add(path)
        # Drop the imported EOF so parsing continues into our own tokens
        self.tokens[self.pos:self.pos] = imported_tokens[:-1]
        logger.debug("imported %d tokens from %s", len(imported_tokens) - 1, path)

    # =========================================================================
    # Declarations
    # =========================================================================

    def _parse_declaration(self) -> Optional[Statement]:
        try:
            if self._match(TokenType.CLASS):
                return self._parse_class_decl()
            if self._match(TokenType.FUN):
                return self._parse_function("function")
            if self._match(TokenType.VAR):
                return self._parse_var_decl()
            return self._parse_statement()
        except ParserError:
            self._synchronize()
            return None

    def _parse_class_decl(self) -> ClassDef:
        name = self._consume(TokenType.IDENTIFIER, "Expect class name.")
        superclass = None
        if self._match(TokenType.LESS):
            superclass = Identifier(self._consume(TokenType.IDENTIFIER, "Expect superclass name."))

        self._consume(TokenType.LEFT_BRACE, "Expect '{' before class body.")
        methods = []
        while not self._check(TokenType.RIGHT_BRACE) and not self._is_at_end():
            methods.append(self._parse_function("method"))
        self._consume(TokenType.RIGHT_BRACE, "Expect '}' after class body.")
        return ClassDef(name, superclass, methods)

    def _parse_function(self, kind: str) -> FunctionDef:
        name = self._consume(TokenType.IDENTIFIER, f"Expect {kind} name.")
        self._consume(TokenType.LEFT_PAREN, f"Expect '(' after {kind} name.")
        params: List[Token] = []
        if not self._check(TokenType.RIGHT_PAREN):
            while True:
                if len(params) >= MAX_ARGUMENTS:
                    self.diagnostics.add(error_too_many(self._current(), "parameters"))
                params.append(self._consume(TokenType.IDENTIFIER, "Expect parameter name."))
                if not self._match(TokenType.COMMA):
                    break
        self._consume(TokenType.RIGHT_PAREN, "Expect ')' after parameters.")
        self._consume(TokenType.LEFT_BRACE, f"Expect '{{' before {kind} body.")
        return FunctionDef(name, params, self._parse_block_body())

    def _parse_var_decl(self) -> VarDecl:
        name = self._consume(TokenType.IDENTIFIER, "Expect variable name.")
        initializer = None
        if self._match(TokenType.EQUAL):
            initializer = self._parse_expression()
        self._consume(TokenType.SEMICOLON, "Expect ';' after variable declaration.")
        return VarDecl(name, initializer)

    # =========================================================================
    # Statements
    # =========================================================================

    def _parse_statement(self) -> Statement:
        if self._match(TokenType.PRINT):
            value = self._parse_expression()
            self._consume(TokenType.SEMICOLON, "Expect ';' after value.")
            return PrintStatement(value)
        if self._match(TokenType.LEFT_BRACE):
            return Block(self._parse_block_body())
        if self._match(TokenType.IF):
            return self._parse_if_statement()
        if self._match(TokenType.WHILE):
            return self._parse_while_statement()
        if self._match(TokenType.FOR):
            return self._parse_for_statement()
        if self._match(TokenType.RETURN):
            return self._parse_return_statement()
        if self._check(TokenType.IMPORT):
            raise self._error(self._current(), "Imports are only allowed at top level.")
        return self._parse_expression_statement()

    def _parse_expression_statement(self) -> ExpressionStatement:
        expr = self._parse_expression()
        self._consume(TokenType.SEMICOLON, "Expect ';' after expression.")
        return ExpressionStatement(expr)

    def _parse_block_body(self) -> List[Statement]:
        """Parse declarations up to '}'; the '{' is already consumed."""
        statements: List[Statement] = []
        while not self._check(TokenType.RIGHT_BRACE) and not self._is_at_end():
            stmt = self._parse_declaration()
            if stmt is not None:
                statements.append(stmt)
        self._consume(TokenType.RIGHT_BRACE, "Expect '}' after block.")
        return statements

    def _parse_if_statement(self) -> IfStatement:
        self._consume(TokenType.LEFT_PAREN, "Expect '(' after 'if'.")
        condition = self._parse_expression()
        self._consume(TokenType.RIGHT_PAREN, "Expect ')' after if condition.")
        then_branch = self._parse_statement()
        else_branch = self._parse_statement() if self._match(TokenType.ELSE) else None
        return IfStatement(condition, then_branch, else_branch)

    def _parse_while_statement(self) -> WhileStatement:
        self._consume(TokenType.LEFT_PAREN, "Expect '(' after 'while'.")
        condition = self._parse_expression()
        self._consume(TokenType.RIGHT_PAREN, "Expect ')' after condition.")
        return WhileStatement(condition, self._parse_statement())

    def _parse_for_statement(self) -> Statement:
        """Desugar for (init; cond; incr) body into a block around a while loop."""
        for_token = self._previous()
        self._consume(TokenType.LEFT_PAREN, "Expect '(' after 'for'.")

        if self._match(TokenType.SEMICOLON):
            initializer = None
        elif self._match(TokenType.VAR):
            initializer = self._parse_var_decl()
        else:
            initializer = self._parse_expression_statement()

        condition = None
        if not self._check(TokenType.SEMICOLON):
            condition = self._parse_expression()
        self._consume(TokenType.SEMICOLON, "Expect ';' after loop condition.")

        increment = None
        if not self._check(TokenType.RIGHT_PAREN):
            increment = self._parse_expression()
        self._consume(TokenType.RIGHT_PAREN, "Expect ')' after for clauses.")

        body = self._parse_statement()
        if increment is not None:
            body = Block([body, ExpressionStatement(increment)])
        if condition is None:
            condition = Literal(True)
        body = WhileStatement(condition, body)
        if initializer is not None:
            body = Block([initializer, body])

        logger.debug("desugared 'for' at line %d", for_token.line)
        return body

    def _parse_return_statement(self) -> ReturnStatement:
        keyword = self._previous()
        value = None
        if not self._check(TokenType.SEMICOLON):
            value = self._parse_expression()
        self._consume(TokenType.SEMICOLON, "Expect ';' after return value.")
        return ReturnStatement(keyword, value)

    # =========================================================================
    # Expressions
    # =========================================================================

    def parse_expression(self) -> Optional[Expression]:
        """Parse a single expression; returns None after a syntax error."""
        try:
            return self._parse_expression()
        except ParserError:
            return None

    def _parse_expression(self) -> Expression:
        return self._parse_assignment()

    def _parse_assignment(self) -> Expression:
        expr = self._parse_or()

        equals = self._match(TokenType.EQUAL)
        if equals is None:
            return expr

        value = self._parse_assignment()
        if isinstance(expr, Identifier):
            return Assignment(expr.name, value)
        if isinstance(expr, MemberAccess):
            return MemberAssignment(expr.object, expr.name, value)

        # Reported, but nothing to resynchronize
        self.diagnostics.add(error_invalid_assignment_target(equals))
        return expr

    def _parse_conditional(self) -> Expression:
        condition = self._parse_equality()
        if not self._match(TokenType.QUESTION):
            return condition
        then_branch = self._parse_conditional()
        self._consume(TokenType.COLON, "Expect ':' after then branch of conditional expression.")
        else_branch = self._parse_conditional()
        return ConditionalExpr(condition, then_branch, else_branch)

    def _parse_or(self) -> Expression:
        expr = self._parse_and()
        while True:
            op = self._match(TokenType.OR)
            if op is None:
                return expr
            expr = LogicalOp(expr, op, self._parse_and())

    def _parse_and(self) -> Expression:
        expr = self._parse_conditional()
        while True:
            op = self._match(TokenType.AND)
            if op is None:
                return expr
            expr = LogicalOp(expr, op, self._parse_conditional())

    def _parse_binary(self, operand, *operators: TokenType) -> Expression:
        """Left-associative binary level: operand (op operand)*."""
        expr = operand()
        while True:
            op = self._match(*operators)
            if op is None:
                return expr
            expr = BinaryOp(expr, op, operand())

    def _parse_equality(self) -> Expression:
        return self._parse_binary(self._parse_comparison,
                                  TokenType.BANG_EQUAL, TokenType.EQUAL_EQUAL)

    def _parse_comparison(self) -> Expression:
        return self._parse_binary(self._parse_term,
                                  TokenType.GREATER, TokenType.GREATER_EQUAL,
                                  TokenType.LESS, TokenType.LESS_EQUAL)

    def _parse_term(self) -> Expression:
        return self._parse_binary(self._parse_factor, TokenType.MINUS, TokenType.PLUS)

    def _parse_factor(self) -> Expression:
        return self._parse_binary(self._parse_unary, TokenType.SLASH, TokenType.STAR)

    def _parse_unary(self) -> Expression:
        op = self._match(TokenType.BANG, TokenType.MINUS)
        if op is not None:
            return UnaryOp(op, self._parse_unary())
        return self._parse_call()

    def _parse_call(self) -> Expression:
        expr = self._parse_primary()
        while True:
            if self._match(TokenType.LEFT_PAREN):
                arguments = self._parse_arguments(TokenType.RIGHT_PAREN)
                paren = self._consume(TokenType.RIGHT_PAREN, "Expect ')' after arguments.")
                expr = FunctionCall(expr, paren, arguments)
            elif self._match(TokenType.DOT):
                name = self._consume(TokenType.IDENTIFIER, "Expect property name after '.'.")
                expr = MemberAccess(expr, name)
            else:
                return expr

    def _parse_arguments(self, closing: TokenType) -> List[Expression]:
        """Comma-separated expressions up to (not including) the closing token."""
        arguments: List[Expression] = []
        if self._check(closing):
            return arguments
        while True:
            if len(arguments) >= MAX_ARGUMENTS:
                self.diagnostics.add(error_too_many(self._current(), "arguments"))
            arguments.append(self._parse_expression())
            if not self._match(TokenType.COMMA):
                return arguments

    def _parse_primary(self) -> Expression:
        if self._match(TokenType.FALSE):
            return Literal(False)
        if self._match(TokenType.TRUE):
            return Literal(True)
        if self._match(TokenType.NIL):
            return Literal(None)

        token = self._match(TokenType.NUMBER, TokenType.STRING)
        if token is not None:
            return Literal(token.literal)

        token = self._match(TokenType.IDENTIFIER)
        if token is not None:
            return Identifier(token)

        token = self._match(TokenType.THIS)
        if token is not None:
            return ThisExpr(token)

        token = self._match(TokenType.SUPER)
        if token is not None:
            self._consume(TokenType.DOT, "Expect '.' after 'super'.")
            method = self._consume(TokenType.IDENTIFIER, "Expect superclass method name.")
            return SuperAccess(token, method)

        if self._match(TokenType.LEFT_PAREN):
            expr = self._parse_expression()
            self._consume(TokenType.RIGHT_PAREN, "Expect ')' after expression.")
            return Grouping(expr)

        token = self._match(TokenType.LEFT_BRACKET)
        if token is not None:
            elements = self._parse_arguments(TokenType.RIGHT_BRACKET)
            self._consume(TokenType.RIGHT_BRACKET, "Expect ']' after vector elements.")
            return VectorLiteral(token, elements)

        raise self._error(self._current(), "Expect expression.")


def parse(tokens: List[Token], filename: Optional[str] = None,
          base_dir: Optional[str] = None) -> List[Statement]:
    """
    Convenience function to parse tokens into a list of statements.

    Args:
        tokens: List of tokens from the lexer
        filename: Optional filename for log messages
        base_dir: Directory that import paths are relative to (default: cwd)

    Returns:
        Parsed statements

    Raises:
        ParserError: carrying the first diagnostic, if any were recorded
    """
    parser = Parser(tokens, filename, base_dir)
    statements = parser.parse_program()
    if parser.diagnostics.has_errors:
        raise ParserError(parser.diagnostics.first_error())
    return statements
