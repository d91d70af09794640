#!/usr/bin/env python3
"""
CLI for the Quill interpreter.

Usage:
    python -m quill run FILE.ql
    python -m quill check [--json] FILE.ql
    python -m quill ast FILE.ql
    python -m quill repl

Examples:
    # Evaluate a script, printing anything it `puts` and its final value
    python -m quill run examples/closures.ql

    # Check syntax only
    python -m quill check examples/closures.ql

    # Dump the parsed tree
    python -m quill ast examples/closures.ql

    # Interactive session with settings from a YAML file
    python -m quill --config quill.yaml repl
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from .config import ConfigError, load_config


def _read_source(path_str: str):
    source_path = Path(path_str)
    if not source_path.exists():
        print(f"Error: File not found: {source_path}", file=sys.stderr)
        return source_path, None
    return source_path, source_path.read_text(encoding="utf-8")


def cmd_run(args, config):
    """Evaluate a source file."""
    from .runtime import Interpreter, Session

    source_path, source = _read_source(args.file)
    if source is None:
        return 1

    session = Session(Interpreter(max_call_depth=config.max_call_depth),
                      filename=str(source_path))
    result = session.run(source)

    if result.output and config.show_output:
        sys.stdout.write(result.output)

    if not result.success:
        print(f"Error: {result.error}", file=sys.stderr)
        return 1

    print(result.value.inspect())
    return 0


def cmd_check(args, config):
    """Check a source file for syntax errors."""
    from .errors import ParseError
    from .parser import parse

    source_path, source = _read_source(args.file)
    if source is None:
        return 1

    try:
        program = parse(source, str(source_path))
    except ParseError as e:
        if args.json:
            print(json.dumps([e.diagnostic.to_json()], indent=2))
            return 1
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps([]))
        return 0
    print(f"OK: {source_path.name} - {len(program.statements)} statement(s)")
    return 0


def cmd_ast(args, config):
    """Print the parsed tree of a source file."""
    from .ast import format_ast
    from .errors import ParseError
    from .parser import parse

    source_path, source = _read_source(args.file)
    if source is None:
        return 1

    try:
        program = parse(source, str(source_path))
    except ParseError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(format_ast(program))
    return 0


def cmd_repl(args, config):
    """Start the interactive session."""
    from . import repl

    return repl.start(config=config)


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog='quill',
        description='Quill scripting language interpreter',
    )
    parser.add_argument('--config', metavar='FILE',
                        help='YAML config file (default: $QUILL_CONFIG)')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable debug logging')

    subparsers = parser.add_subparsers(dest='action', required=True)

    # run command
    run_parser = subparsers.add_parser('run', help='Evaluate a source file')
    run_parser.add_argument('file', help='Quill source file')

    # check command
    check_parser = subparsers.add_parser('check', help='Check a source file for syntax errors')
    check_parser.add_argument('file', help='Quill source file')
    check_parser.add_argument('--json', action='store_true',
                              help='Report diagnostics as JSON')

    # ast command
    ast_parser = subparsers.add_parser('ast', help='Print the syntax tree of a source file')
    ast_parser.add_argument('file', help='Quill source file')

    # repl command
    subparsers.add_parser('repl', help='Start an interactive session')

    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, config.log_level),
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.action == 'run':
        return cmd_run(args, config)
    elif args.action == 'check':
        return cmd_check(args, config)
    elif args.action == 'ast':
        return cmd_ast(args, config)
    elif args.action == 'repl':
        return cmd_repl(args, config)
    else:
        parser.print_help()
        return 1


if __name__ == '__main__':
    sys.exit(main())
