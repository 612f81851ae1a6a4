"""CLI entry point for the Abacus interpreter.

Usage:
    python -m abacus [-v|-vv|-vvv] [--tokens] [--interactive] <program_file>
    python -m abacus [-v...] --emit-ast <program_file>
    python -m abacus [-v...] --ast <ast_json_file>

Options:
  -v             Increase debug verbosity (can be repeated)
  --tokens       Print the token stream before running the program
  --interactive  Let input(prompt) read a line from the terminal
  --emit-ast     Parse the given program and emit an AST JSON file
  --ast          Execute a previously emitted AST JSON file

Program output goes to stdout; lexer, parse and execution errors go to
stderr. Debug information is written to `debug.txt` in the current
directory when verbosity is greater than zero. The exit status is 1 when
any error was reported.
"""

import argparse
import json
import sys
from pathlib import Path
from .interpreter import scan, parse_program, Interpreter
from .errors import ParseError
from .ast_json import program_to_obj, program_from_obj


def read_source(path_arg: str) -> str:
    program_file = Path(path_arg)
    if not program_file.exists():
        print(f"Error: file {program_file} not found", file=sys.stderr)
        sys.exit(1)
    with open(program_file, 'r', encoding='utf-8') as f:
        return f.read()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Abacus language interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    parser.add_argument('--tokens', action='store_true', help='print the token stream before running')
    parser.add_argument('--interactive', action='store_true', help='read input() from the terminal')
    group = parser.add_mutually_exclusive_group()
    group.add_argument('--emit-ast', metavar='PROGRAM_FILE', help='emit AST JSON for the given program')
    group.add_argument('--ast', metavar='AST_JSON_FILE', help='execute AST from a JSON file')
    parser.add_argument('program', nargs='?', help='program file to execute')
    args = parser.parse_args(argv)

    # Emit AST mode
    if args.emit_ast:
        program_file = Path(args.emit_ast)
        source = read_source(args.emit_ast)
        try:
            statements = parse_program(source)
        except ParseError as e:
            print(f"Parse Error: {e.message}", file=sys.stderr)
            sys.exit(1)
        out_path = program_file.with_name(program_file.name + '.ast.json')
        with open(out_path, 'w', encoding='utf-8') as out:
            json.dump(program_to_obj(statements), out, ensure_ascii=False, indent=2)
        print(str(out_path))
        return

    interpreter = Interpreter(debug_level=args.v, interactive=args.interactive)
    try:
        # Execute from AST JSON
        if args.ast:
            ast_path = Path(args.ast)
            if not ast_path.exists():
                print(f"Error: file {ast_path} not found", file=sys.stderr)
                sys.exit(1)
            with open(ast_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            try:
                statements = program_from_obj(data)
            except (TypeError, ValueError, KeyError) as e:
                print(f"Error: invalid AST file {ast_path}: {e}", file=sys.stderr)
                sys.exit(1)
            interpreter.run(statements)
        else:
            # Default: execute source file
            if not args.program:
                parser.error('missing program file; or use --emit-ast/--ast')
            source = read_source(args.program)
            if args.tokens:
                # lexer errors are reported by the run below
                for token in scan(source, report=lambda e: None):
                    print(token)
            interpreter.run_source(source)
    finally:
        interpreter.close()
    if interpreter.error_count:
        sys.exit(1)


if __name__ == '__main__':
    main()
