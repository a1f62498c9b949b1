"""
Mini-Pascal command line driver.

    minipascal program.pas --tokens --symbols --listing -o program.obj
    minipascal --load program.obj
"""

import argparse
import logging
import sys
from typing import List, Optional

from minipascal.api.context import Context, Script
from minipascal.api.interpreter import MEMORY_SIZE
from minipascal.compiler import Lexer, PascalError


def memory_size(text: str) -> int:
    """argparse type for --memory-size: a positive cell count."""
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {text!r}") from None
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be positive, got {value}")
    return value


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="minipascal",
        description="Mini-Pascal -> stack machine compiler and runner",
    )
    ap.add_argument("source", nargs="?", help="input source file")
    ap.add_argument("--load", metavar="OBJ", help="run a saved object file instead of compiling")
    ap.add_argument("-o", "--output", metavar="OBJ", help="write the object file here")
    ap.add_argument("--tokens", action="store_true", help="print the token stream")
    ap.add_argument("--symbols", action="store_true", help="print the symbol table")
    ap.add_argument("--listing", action="store_true", help="print the generated code")
    ap.add_argument("--no-run", action="store_true", help="compile only")
    ap.add_argument("--memory-size", type=memory_size, default=MEMORY_SIZE,
                    help=f"machine memory cells (default {MEMORY_SIZE})")
    ap.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return ap


def print_tokens(source: str) -> None:
    print("=== Tokens ===")
    count = 0
    for token in Lexer(source):
        print(token)
        count += 1
    print(f">>> {count} tokens")


def main(argv: Optional[List[str]] = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    if (args.source is None) == (args.load is None):
        ap.error("give either a source file or --load OBJ")

    ctx = Context(memory_size=args.memory_size)

    try:
        if args.load:
            script = ctx.load(args.load)
            print(f">>> {len(script.bytecode)} instructions loaded from {args.load}")
        else:
            if args.tokens:
                with open(args.source, encoding="utf-8") as f:
                    print_tokens(f.read())

            script = ctx.compile_file(args.source)
            print(f">>> Compiled {args.source}: {len(script.bytecode)} instructions")

            if args.symbols:
                print(script.symbols.format())
            if args.listing:
                print(script.listing())

            if args.output:
                ctx.save(script, args.output)
                print(f">>> Object code written to {args.output}")
                script = ctx.load(args.output)

        if args.no_run:
            return 0

        print("=== Running ===")
        ctx.execute(script)
        print("=== Finished ===")
    except (PascalError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
