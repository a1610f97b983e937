"""
treelox - a tree-walking interpreter for the Lox scripting language.

This module provides:
- Lexer: Tokenizes Lox source code
- Parser: Builds statement ASTs from tokens
- Resolver: Computes lexical distances and reports scoping errors
- Interpreter: Executes resolved programs
- Session: The whole pipeline, with prelude, config and REPL support

Usage:
    from treelox import tokenize, parse, Resolver, Interpreter

    statements = parse(tokenize('''
        fun greet(name) { return "hello, " + name; }
        print greet("world");
    '''))
    interpreter = Interpreter()
    result = Resolver(interpreter.resolve).resolve(statements)
    if not result.has_errors:
        interpreter.interpret(statements)

    # Or, in one call, with output captured:
    from treelox import run_source
    run_source('print 4 / 2;').output   # ["2"]
"""

import logging

from .tokens import (
    Token,
    TokenType,
    KEYWORDS,
)

from .lexer import (
    Lexer,
    tokenize,
)

from .parser import (
    Parser,
    parse,
)

from .ast import (
    INITIALIZER_NAME,
    # Base
    AstNode,
    Expression,
    Statement,
    # Expressions
    Literal,
    UnaryOp,
    BinaryOp,
    LogicalOp,
    ConditionalExpr,
    Grouping,
    Identifier,
    Assignment,
    FunctionCall,
    MemberAccess,
    MemberAssignment,
    ThisExpr,
    SuperAccess,
    VectorLiteral,
    # Statements
    ExpressionStatement,
    PrintStatement,
    VarDecl,
    Block,
    IfStatement,
    WhileStatement,
    FunctionDef,
    ReturnStatement,
    ClassDef,
    # Helpers
    AstPrinter,
    format_ast,
)

from .errors import (
    LoxError,
    LexerError,
    ParserError,
    ResolveError,
    LoxRuntimeError,
    NativeCallError,
    Diagnostic,
    DiagnosticCollector,
    ErrorSeverity,
)

from .scopes import (
    Scope,
    ScopeStack,
)

from .resolver import (
    Resolver,
    ResolveResult,
    FunctionKind,
    ClassKind,
    resolve,
)

from .runtime import (
    Interpreter,
    ReturnSignal,
    Environment,
    LoxCallable,
    LoxBindable,
    LoxFunction,
    LoxClass,
    LoxInstance,
    LoxVector,
    VectorInstance,
    BuiltinFunction,
    BuiltinRegistry,
    get_builtin_registry,
    stringify,
)

from .config import LoxConfig

from .session import (
    Session,
    RunResult,
    RunStatus,
    run_source,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    # Tokens
    'Token',
    'TokenType',
    'KEYWORDS',
    # Lexer
    'Lexer',
    'tokenize',
    # Parser
    'Parser',
    'parse',
    # AST
    'INITIALIZER_NAME',
    'AstNode',
    'Expression',
    'Statement',
    'Literal',
    'UnaryOp',
    'BinaryOp',
    'LogicalOp',
    'ConditionalExpr',
    'Grouping',
    'Identifier',
    'Assignment',
    'FunctionCall',
    'MemberAccess',
    'MemberAssignment',
    'ThisExpr',
    'SuperAccess',
    'VectorLiteral',
    'ExpressionStatement',
    'PrintStatement',
    'VarDecl',
    'Block',
    'IfStatement',
    'WhileStatement',
    'FunctionDef',
    'ReturnStatement',
    'ClassDef',
    'AstPrinter',
    'format_ast',
    # Errors
    'LoxError',
    'LexerError',
    'ParserError',
    'ResolveError',
    'LoxRuntimeError',
    'NativeCallError',
    'Diagnostic',
    'DiagnosticCollector',
    'ErrorSeverity',
    # Resolver
    'Scope',
    'ScopeStack',
    'Resolver',
    'ResolveResult',
    'FunctionKind',
    'ClassKind',
    'resolve',
    # Runtime
    'Interpreter',
    'ReturnSignal',
    'Environment',
    'LoxCallable',
    'LoxBindable',
    'LoxFunction',
    'LoxClass',
    'LoxInstance',
    'LoxVector',
    'VectorInstance',
    'BuiltinFunction',
    'BuiltinRegistry',
    'get_builtin_registry',
    'stringify',
    # Session
    'LoxConfig',
    'Session',
    'RunResult',
    'RunStatus',
    'run_source',
]
