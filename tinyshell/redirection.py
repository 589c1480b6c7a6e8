"""Work out and open the files a command reads from and writes to."""

from __future__ import annotations

import os
from typing import BinaryIO

from .lexer import TokenType
from .parser import Command, Redirect

_PREPARE_FLAGS = {
    TokenType.REDIR_OUT: os.O_CREAT | os.O_TRUNC | os.O_RDWR,
    TokenType.REDIR_IN: os.O_RDONLY,
    TokenType.APPEND: os.O_CREAT | os.O_APPEND | os.O_RDWR,
}

_OUTPUT_TYPES = (TokenType.REDIR_OUT, TokenType.APPEND)


def prepare_redirections(command: Command) -> None:
    """Open and close every redirection target in order.

    Output files are created (``>`` truncates them); a missing or unreadable
    input file raises :class:`OSError` and stops at that redirection.
    """
    for redirect in command.redirects:
        flags = _PREPARE_FLAGS.get(redirect.type)
        if flags is None:
            continue
        descriptor = os.open(redirect.file or "", flags, 0o644)
        os.close(descriptor)


def input_file(command: Command) -> str | None:
    """Path standard input comes from, following the last input redirection."""
    if command.last_input is TokenType.HERE_DOC:
        return command.heredoc_files[-1] if command.heredoc_files else None
    if command.last_input is TokenType.REDIR_IN:
        files = [r.file for r in command.redirects if r.type is TokenType.REDIR_IN]
        return files[-1] if files else None
    return None


def output_target(command: Command) -> Redirect | None:
    """The redirection standard output ends up going to, or ``None``.

    The last ``>`` and the last ``>>`` are applied in the order in which the
    two kinds first appear, so the kind that first appears later wins.
    """
    winner: TokenType | None = None
    seen: set[TokenType] = set()
    for redirect in command.redirects:
        if redirect.type in _OUTPUT_TYPES and redirect.type not in seen:
            seen.add(redirect.type)
            winner = redirect.type
    if winner is None:
        return None
    return [r for r in command.redirects if r.type is winner][-1]


def open_input(command: Command) -> BinaryIO | None:
    """Open the command's input file for reading, or return ``None``."""
    path = input_file(command)
    if path is None:
        return None
    return open(path, "rb")


def open_output(command: Command) -> BinaryIO | None:
    """Open the command's output target, which must already exist, or return ``None``."""
    target = output_target(command)
    if target is None:
        return None
    if target.type is TokenType.APPEND:
        descriptor = os.open(target.file or "", os.O_WRONLY | os.O_APPEND)
        return os.fdopen(descriptor, "ab")
    descriptor = os.open(target.file or "", os.O_RDWR | os.O_TRUNC)
    return os.fdopen(descriptor, "wb")