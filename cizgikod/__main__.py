"""CLI entry point for the ÇizgiKod interpreter.

Usage:
    python -m cizgikod [-v|-vv|-vvv|-vvvv] [--strict] <program_file> [<program_file> ...]
    python -m cizgikod [-v...] --emit-tokens <program_file>
    python -m cizgikod [-v...] --tokens <tokens_json_file>

Options:
  -v             Increase debug verbosity (can be repeated)
  --strict       Reject assignments that change a variable's type
  --emit-tokens  Tokenize the given .cizgi file and emit a token JSON file
  --tokens       Execute a previously emitted token JSON file

Each program file is run independently: no variables survive from one
file to the next. Debug information is written to `debug.txt` in the
current directory when verbosity is greater than zero.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional
from .interpreter import Interpreter, RunResult
from .lexer import tokenize
from .token_json import tokens_to_obj, tokens_from_obj


def report(name: str, result: RunResult) -> bool:
    for warning in result.warnings:
        print(f"Warning: {warning}", file=sys.stderr)
    if result.ok:
        print(f"✔ Program parsed and executed successfully for {name}", file=sys.stderr)
        return True
    print(f"❌ Runtime error in {name}: {result.error}", file=sys.stderr)
    return False


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="ÇizgiKod language interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    parser.add_argument('--strict', action='store_true', help='treat assignments that change a variable type as errors')
    group = parser.add_mutually_exclusive_group()
    group.add_argument('--emit-tokens', metavar='CIZGI_FILE', help='emit token JSON for the given .cizgi file')
    group.add_argument('--tokens', metavar='TOKENS_JSON_FILE', help='execute tokens from a JSON file')
    parser.add_argument('programs', nargs='*', help='ÇizgiKod program files (.cizgi) to execute')
    args = parser.parse_args(argv)

    # Emit tokens mode
    if args.emit_tokens:
        program_file = Path(args.emit_tokens)
        if not program_file.exists():
            print(f"Error: file {program_file} not found", file=sys.stderr)
            sys.exit(1)
        with open(program_file, 'r', encoding='utf-8') as f:
            source = f.read()
        obj = tokens_to_obj(tokenize(source))
        out_path = program_file.with_name(program_file.name + '.tokens.json')
        with open(out_path, 'w', encoding='utf-8') as out:
            json.dump(obj, out, ensure_ascii=False, indent=2)
        print(str(out_path))
        return

    with Interpreter(debug_level=args.v, strict_types=args.strict) as interpreter:
        # Execute from token JSON
        if args.tokens:
            tokens_path = Path(args.tokens)
            if not tokens_path.exists():
                print(f"Error: file {tokens_path} not found", file=sys.stderr)
                sys.exit(1)
            with open(tokens_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            if not report(tokens_path.name, interpreter.run(tokens_from_obj(data))):
                sys.exit(1)
            return

        # Default: execute source files
        if not args.programs:
            parser.error('missing program file; or use --emit-tokens/--tokens')
        ok = True
        for program in args.programs:
            program_file = Path(program)
            if not program_file.exists():
                print(f"Error: file {program_file} not found", file=sys.stderr)
                ok = False
                continue
            with open(program_file, 'r', encoding='utf-8') as f:
                source = f.read()
            interpreter.debug(f"--- {program_file} ---")
            ok = report(program_file.name, interpreter.run_source(source)) and ok
        if not ok:
            sys.exit(1)


if __name__ == '__main__':
    main()
