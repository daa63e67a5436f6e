#!/usr/bin/env python3
"""Command line runner: widebf program.bf < input > output"""

import argparse
import logging
import sys
from pathlib import Path

from widebf.brainfuck import (
    BrainfuckIOError,
    BrainfuckSyntaxError,
    CellWidth,
    ResourceExhaustedError,
    TapeMachine,
)
from widebf.brainfuck_debugger import BrainfuckDebugger
from widebf.config import RunConfig

logger = logging.getLogger("widebf")

EXIT_SYNTAX_ERROR = 1
EXIT_IO_ERROR = 2
EXIT_RESOURCE_EXHAUSTED = 3


def _non_negative(text: str) -> int:
    value = int(text)
    if value < 0:
        raise argparse.ArgumentTypeError(f"must not be negative, got {value}")
    return value


def build_parser(config: RunConfig) -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="widebf", description="Run a wide-cell Brainfuck program")
    ap.add_argument("program", nargs="?", help="Path to the program file")
    ap.add_argument("-e", "--eval", dest="code", default=None, help="Program text given inline")
    ap.add_argument("--input", default=None, help="Read program input from this file instead of stdin")
    ap.add_argument("--step-limit", type=_non_negative, default=config.step_limit,
                    help="Stop after this many instructions (0 for no limit)")
    ap.add_argument("--memory-size", type=int, default=config.memory_size, help="Tape length in bytes")
    ap.add_argument("--max-loop-depth", type=_non_negative, default=config.max_loop_depth,
                    help="Fail when loops nest deeper than this")
    ap.add_argument("--trace", action="store_true", help="Write a step-by-step trace to stderr")
    ap.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return ap


def main(argv=None, stdin=None, stdout=None) -> int:
    try:
        config = RunConfig.from_env()
    except ValueError as e:
        build_parser(RunConfig()).error(str(e))
    ap = build_parser(config)
    args = ap.parse_args(argv)

    if args.memory_size < CellWidth.QWORD:
        ap.error(f"--memory-size must be at least {int(CellWidth.QWORD)}, got {args.memory_size}")
    level = logging.DEBUG if args.verbose else logging.getLevelName(config.log_level)
    if not isinstance(level, int):
        ap.error(f"BF_LOG_LEVEL must be a logging level name, got {config.log_level!r}")
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    if args.code is not None:
        code = args.code.encode("utf-8")
    elif args.program:
        try:
            code = Path(args.program).read_bytes()
        except OSError as e:
            ap.error(f"cannot read program: {e}")
    else:
        ap.error("either a program file or -e CODE is required")

    stdin = stdin if stdin is not None else sys.stdin.buffer
    stdout = stdout if stdout is not None else sys.stdout.buffer
    try:
        instream = open(args.input, "rb") if args.input else stdin
    except OSError as e:
        logger.error("cannot open input: %s", e)
        return EXIT_IO_ERROR

    kwargs = dict(memory_size=args.memory_size, max_loop_depth=args.max_loop_depth)
    try:
        if args.trace:
            itp = BrainfuckDebugger(instream, stdout, **kwargs)
        else:
            itp = TapeMachine(instream, stdout, **kwargs)
        itp.interpret(code, max_steps=args.step_limit or None)
    except BrainfuckSyntaxError as e:
        logger.error("syntax error: %s", e)
        return EXIT_SYNTAX_ERROR
    except BrainfuckIOError as e:
        logger.error("I/O error at position %s: %s", e.position, e)
        return EXIT_IO_ERROR
    except ResourceExhaustedError as e:
        logger.error("resource exhausted: %s", e)
        return EXIT_RESOURCE_EXHAUSTED
    finally:
        stdout.flush()
        if instream is not stdin:
            instream.close()

    if itp.hit_step_limit:
        logger.warning("stopped after %d steps (step limit)", itp.steps)
    return 0


if __name__ == "__main__":
    sys.exit(main())
