"""Line-based front end: run rpn-lang scripts from files or standard input."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import TextIO

from .config import EngineConfig
from .engine import Engine, Output
from .errors import ResourceExhausted, RPNError
from .lexer import Token, tokenize

logger = logging.getLogger(__name__)

_PREFIXES = {"=": "> ", ">": "> ", "#": "< "}


def _write_output(token: Token, output: Output, stdout: TextIO) -> None:
    if isinstance(output, bytes):
        buffer = getattr(stdout, "buffer", None)
        if buffer is not None:
            stdout.flush()
            buffer.write(output)
            buffer.flush()
            stdout.write("\n")
        else:
            stdout.write(output.decode("utf-8", errors="replace") + "\n")
        return
    stdout.write(f"{_PREFIXES.get(token.text, '')}{output}\n")


def run_line(engine: Engine, line: str, stdout: TextIO, stderr: TextIO) -> None:
    """Run one line; recoverable errors are reported and the line continues."""
    try:
        tokens = tokenize(line)
    except RPNError as exc:
        stderr.write(f"error: {exc}\n")
        return

    for token in tokens:
        try:
            if not token.is_command:
                engine.push(token)
                continue
            outputs = engine.run_command(token)
        except ResourceExhausted:
            raise
        except RPNError as exc:
            logger.debug("command %r failed", token.display(), exc_info=True)
            stderr.write(f"error: {exc}\n")
            continue
        if token.text == ":":
            stdout.write("  ".join(outputs) + "\n")
            continue
        for output in outputs:
            _write_output(token, output, stdout)


def run_lines(
    engine: Engine,
    lines: Iterable[str],
    stdout: TextIO,
    stderr: TextIO,
    *,
    show_stack: bool = False,
) -> None:
    for line in lines:
        run_line(engine, line, stdout, stderr)
        if show_stack:
            stdout.write(f"{len(engine.stack)} elements in stack\n")


def main(
    argv: list[str] | None = None,
    *,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
) -> int:
    parser = argparse.ArgumentParser(prog="rpn-lang", description=__doc__)
    parser.add_argument("files", nargs="*", type=Path, help="scripts to run in order before reading stdin")
    parser.add_argument("--max-depth", type=int, default=None, help="recursion limit for recursive functions")
    parser.add_argument("--workers", type=int, default=None, help="threads used by the '>' command")
    parser.add_argument("--no-stdin", action="store_true", help="do not read standard input after the scripts")
    parser.add_argument("--show-stack", action="store_true", help="print the stack size after every line")
    parser.add_argument("--log-level", default="WARNING", help="logging level (default: WARNING)")
    args = parser.parse_args(argv)

    stdin = sys.stdin if stdin is None else stdin
    stdout = sys.stdout if stdout is None else stdout
    stderr = sys.stderr if stderr is None else stderr

    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    overrides: dict[str, int] = {}
    if args.max_depth is not None:
        overrides["max_depth"] = args.max_depth
    if args.workers is not None:
        overrides["workers"] = args.workers
    try:
        engine = Engine(EngineConfig(**overrides))
    except ValueError as exc:
        parser.error(str(exc))

    try:
        for path in args.files:
            logger.info("running %s", path)
            run_lines(engine, path.read_text(encoding="utf-8").splitlines(), stdout, stderr, show_stack=args.show_stack)
        if not args.no_stdin:
            run_lines(engine, stdin, stdout, stderr, show_stack=args.show_stack)
    except ResourceExhausted as exc:
        stderr.write(f"fatal: {exc}\n")
        return 1
    return 0
