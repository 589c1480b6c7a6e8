"""Interactive entry point: read lines, check them, parse them and run them."""

from __future__ import annotations

import os
import sys
from typing import Optional, Sequence

from .builtins import ShellExit
from .environment import Environment, ShellState
from .executor import execute
from .heredoc import ReadLine
from .lexer import is_blank, tokenize
from .parser import parse
from .syntax import ShellSyntaxError, check_syntax

BOLD_RED = "\x1b[1;31m"
RESET = "\x1b[0m"
PROMPT = f"tinyshell{BOLD_RED}${RESET} "
EXIT_MESSAGE = "exit"


def run_line(state: ShellState, line: str, read_line: ReadLine) -> int:
    """Run one command line and return the shell's exit status afterwards.

    Blank lines do nothing. A syntax error is reported on standard error and
    sets the status the error carries. ``exit`` raises
    :class:`~tinyshell.builtins.ShellExit`.
    """
    if is_blank(line):
        return state.exit_status
    elements = tokenize(line)
    try:
        check_syntax(elements)
    except ShellSyntaxError as exc:
        sys.stderr.write(exc.message + "\n")
        sys.stderr.flush()
        state.exit_status = exc.status
        return state.exit_status
    commands = parse(elements, state)
    return execute(state, commands, read_line)


def _next_line(read_line: ReadLine) -> Optional[str]:
    try:
        return read_line(PROMPT)
    except EOFError:
        return None


def repl(state: ShellState, read_line: ReadLine) -> int:
    """Read and run lines until end of input or ``exit``; return the final status.

    An interrupt while waiting for a line starts a fresh prompt.
    """
    while True:
        try:
            line = _next_line(read_line)
        except KeyboardInterrupt:
            sys.stdout.write("\n")
            sys.stdout.flush()
            continue
        if line is None:
            sys.stdout.write(EXIT_MESSAGE + "\n")
            sys.stdout.flush()
            return state.exit_status
        try:
            run_line(state, line, read_line)
        except ShellExit as exc:
            return exc.status
        except KeyboardInterrupt:
            sys.stdout.write("\n")
            sys.stdout.flush()


def _enable_line_editing() -> None:
    try:
        import readline  # noqa: F401  (enables editing and history for input())
    except ImportError:
        pass


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Start an interactive shell; any command-line argument is refused with status 1."""
    args = list(sys.argv[1:] if argv is None else argv)
    if args:
        return 1
    state = ShellState(
        env=Environment.from_entries(f"{name}={value}" for name, value in os.environ.items())
    )
    _enable_line_editing()
    return repl(state, input)