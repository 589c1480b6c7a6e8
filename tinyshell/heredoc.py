"""Here-document collection: read lines up to a delimiter into temporary files."""

from __future__ import annotations

import os
from typing import Callable, Iterable, Optional

from .environment import ShellState
from .parser import Command, HereDoc

ReadLine = Callable[[str], Optional[str]]

PROMPT = "> "
DEFAULT_DIRECTORY = "/tmp"
FILE_PREFIX = "her_doc_"


class HeredocInterrupted(Exception):
    """Input for a here-document was interrupted; ``status`` is the status to set."""

    status = 1


def heredoc_path(index: int, command_index: int, directory: str | os.PathLike | None = None) -> str:
    """File that holds here-document ``index`` of the ``command_index``-th command with any."""
    base = DEFAULT_DIRECTORY if directory is None else os.fspath(directory)
    return os.path.join(base, f"{FILE_PREFIX}{command_index}{index}")


def _is_alpha(char: str) -> bool:
    return ("a" <= char <= "z") or ("A" <= char <= "Z")


def expand_heredoc_line(line: str, state: ShellState) -> str:
    """Expand ``$?`` and ``$NAME`` in a here-document line.

    A name is made of letters only. A ``$`` not followed by a letter or ``?``
    is kept as it is; an unknown variable expands to nothing.
    """
    parts: list[str] = []
    index = 0
    while index < len(line):
        char = line[index]
        if char != "$":
            parts.append(char)
            index += 1
            continue
        following = line[index + 1:index + 2]
        if following == "?":
            parts.append(str(state.exit_status))
            index += 2
            continue
        if not following or not _is_alpha(following):
            parts.append("$")
            index += 1
            continue
        end = index + 1
        while end < len(line) and _is_alpha(line[end]):
            end += 1
        value = state.env.get(line[index + 1:end])
        if value is not None:
            parts.append(value)
        index = end
    return "".join(parts)


def _read(read_line: ReadLine) -> str | None:
    try:
        return read_line(PROMPT)
    except EOFError:
        return None


def fill_heredoc(heredoc: HereDoc, path: str, state: ShellState, read_line: ReadLine) -> None:
    """Write lines from ``read_line`` to ``path`` until the delimiter or end of input."""
    with open(path, "w", encoding="utf-8", newline="") as handle:
        while True:
            line = _read(read_line)
            if line is None or line == heredoc.delimiter:
                break
            if heredoc.expand and "$" in line:
                line = expand_heredoc_line(line, state)
            handle.write(line + "\n")


def remove_heredoc_files(commands: Iterable[Command]) -> None:
    """Delete the here-document files of every command and forget them."""
    for command in commands:
        for path in command.heredoc_files:
            try:
                os.unlink(path)
            except FileNotFoundError:
                pass
        command.heredoc_files = []


def collect_heredocs(
    state: ShellState,
    commands: list[Command],
    read_line: ReadLine,
    directory: str | os.PathLike | None = None,
) -> list[str]:
    """Read every here-document of the pipeline into its own file.

    Each command's ``heredoc_files`` is filled in and all created paths are
    returned. On interruption (``KeyboardInterrupt``) or a file error, the
    files are removed, the exit status becomes 1 and an exception is raised.
    """
    created: list[str] = []
    command_index = 0
    try:
        for command in commands:
            if not command.heredocs:
                continue
            command.heredoc_files = [
                heredoc_path(index, command_index, directory)
                for index in range(len(command.heredocs))
            ]
            for heredoc, path in zip(command.heredocs, command.heredoc_files):
                fill_heredoc(heredoc, path, state, read_line)
                created.append(path)
            command_index += 1
    except KeyboardInterrupt:
        remove_heredoc_files(commands)
        state.exit_status = HeredocInterrupted.status
        raise HeredocInterrupted("here-document interrupted") from None
    except OSError:
        remove_heredoc_files(commands)
        state.exit_status = 1
        raise
    return created