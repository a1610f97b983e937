#!/usr/bin/env python3
"""
CLI for the treelox interpreter.

Usage:
    python -m treelox run FILE.lox
    python -m treelox check FILE.lox
    python -m treelox ast FILE.lox [--expr]
    python -m treelox tokens FILE.lox
    python -m treelox repl            (also the default with no arguments)

Exit codes:
    0   success
    64  usage error
    65  lexical, syntax or scoping error
    66  input file not found
    70  runtime error

Examples:
    # Run a script
    python -m treelox run examples/fib.lox

    # Report errors without running anything
    python -m treelox check examples/fib.lox

    # Use settings from a YAML file
    python -m treelox --config treelox.yaml repl
"""

import argparse
import logging
import sys
from pathlib import Path

EXIT_OK = 0
EXIT_USAGE = 64
EXIT_DATA_ERROR = 65
EXIT_NO_INPUT = 66
EXIT_SOFTWARE = 70


def _load_config(args):
    from .config import LoxConfig

    if args.config is None:
        return LoxConfig()
    return LoxConfig.load(args.config)


def _read_source(path_str: str):
    """Return the file's text, or None (after reporting) if it does not exist."""
    source_path = Path(path_str)
    if not source_path.is_file():
        print(f"Error: File not found: {source_path}", file=sys.stderr)
        return None
    return source_path.read_text(encoding="utf-8")


def cmd_run(args, config):
    """Run a Lox script."""
    from .session import Session, RunStatus

    if _read_source(args.file) is None:
        return EXIT_NO_INPUT

    session = Session(config)
    result = session.run_file(args.file)
    if result.status == RunStatus.STATIC_ERROR:
        return EXIT_DATA_ERROR
    if result.status == RunStatus.RUNTIME_ERROR:
        return EXIT_SOFTWARE
    return EXIT_OK


def cmd_check(args, config):
    """Check a Lox script for lexical, syntax and scoping errors."""
    from .lexer import Lexer
    from .parser import Parser
    from .resolver import Resolver
    from .errors import DiagnosticCollector

    source = _read_source(args.file)
    if source is None:
        return EXIT_NO_INPUT

    lexer = Lexer(source, args.file)
    lines = lexer.lines
    diagnostics = DiagnosticCollector(config.max_errors)
    tokens = lexer.scan_tokens()
    diagnostics.extend(lexer.diagnostics.diagnostics)

    base_dir = str(Path(args.file).resolve().parent)
    parser = Parser(tokens, args.file, base_dir, config.max_errors)
    statements = parser.parse_program()
    diagnostics.extend(parser.diagnostics.diagnostics)

    if not diagnostics.has_errors:
        diagnostics.extend(Resolver().resolve(statements).diagnostics)

    if diagnostics.has_errors:
        for diag in diagnostics.diagnostics:
            if diag.source_line is None and 1 <= diag.line <= len(lines):
                diag.source_line = lines[diag.line - 1]
        print(diagnostics.format_all(config.show_source), file=sys.stderr)
        return EXIT_DATA_ERROR

    print(f"OK: {Path(args.file).name} - {len(statements)} statement(s), no errors")
    return EXIT_OK


def cmd_ast(args, config):
    """Print the parsed syntax tree."""
    from .lexer import tokenize
    from .parser import Parser
    from .ast import AstPrinter, format_ast
    from .errors import LoxError

    source = _read_source(args.file)
    if source is None:
        return EXIT_NO_INPUT

    try:
        tokens = tokenize(source, args.file)
    except LoxError as e:
        print(e.diagnostic.format(config.show_source), file=sys.stderr)
        return EXIT_DATA_ERROR

    base_dir = str(Path(args.file).resolve().parent)
    parser = Parser(tokens, args.file, base_dir, config.max_errors)
    if args.expr:
        expression = parser.parse_expression()
        output = AstPrinter().print(expression) if expression is not None else None
    else:
        output = format_ast(parser.parse_program())

    if parser.diagnostics.has_errors:
        print(parser.diagnostics.format_all(show_source=False), file=sys.stderr)
        return EXIT_DATA_ERROR

    print(output)
    return EXIT_OK


def cmd_tokens(args, config):
    """Print the token stream."""
    from .lexer import Lexer

    source = _read_source(args.file)
    if source is None:
        return EXIT_NO_INPUT

    lexer = Lexer(source, args.file)
    for token in lexer.scan_tokens():
        print(f"{token.line:>4}:{token.column:<3} {token}")

    if lexer.diagnostics.has_errors:
        print(lexer.diagnostics.format_all(config.show_source), file=sys.stderr)
        return EXIT_DATA_ERROR
    return EXIT_OK


def cmd_repl(args, config):
    """Interactive read-eval-print loop."""
    from .session import Session, needs_more_input

    session = Session(config)
    print("treelox REPL - Ctrl-D to exit")
    while True:
        try:
            text = input(config.prompt)
            while needs_more_input(text):
                text += "\n" + input("... ")
        except EOFError:
            print()
            return EXIT_OK
        except KeyboardInterrupt:
            print()
            continue

        if text.strip():
            session.run(text, "<stdin>", repl=True)


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog='treelox',
        description='Tree-walking interpreter for the Lox language',
    )
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable debug logging')
    parser.add_argument('-c', '--config', metavar='FILE',
                        help='YAML configuration file')

    subparsers = parser.add_subparsers(dest='action')

    # run command
    run_parser = subparsers.add_parser('run', help='Run a Lox script')
    run_parser.add_argument('file', help='Lox source file')

    # check command
    check_parser = subparsers.add_parser('check', help='Check a Lox script for errors without running it')
    check_parser.add_argument('file', help='Lox source file')

    # ast command
    ast_parser = subparsers.add_parser('ast', help='Print the syntax tree of a Lox script')
    ast_parser.add_argument('file', help='Lox source file')
    ast_parser.add_argument('--expr', action='store_true',
                            help='Parse the file as a single expression and print it in prefix form')

    # tokens command
    tokens_parser = subparsers.add_parser('tokens', help='Print the tokens of a Lox script')
    tokens_parser.add_argument('file', help='Lox source file')

    # repl command
    subparsers.add_parser('repl', help='Start an interactive session')

    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        return EXIT_USAGE if e.code else EXIT_OK

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG,
                            format='%(name)s %(levelname)s: %(message)s')

    try:
        config = _load_config(args)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_NO_INPUT
    except ValueError as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        return EXIT_USAGE

    if args.action == 'run':
        return cmd_run(args, config)
    elif args.action == 'check':
        return cmd_check(args, config)
    elif args.action == 'ast':
        return cmd_ast(args, config)
    elif args.action == 'tokens':
        return cmd_tokens(args, config)
    else:
        return cmd_repl(args, config)


if __name__ == '__main__':
    sys.exit(main())
