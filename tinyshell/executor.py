"""Run parsed command lines: builtins inside the shell, other commands as processes."""

from __future__ import annotations

import copy
import io
import os
import subprocess
import sys
import tempfile
from typing import IO, Union

from .builtins import ShellExit, is_builtin, run_builtin
from .environment import ShellState
from .heredoc import HeredocInterrupted, ReadLine, collect_heredocs, remove_heredoc_files
from .parser import Command
from .redirection import open_input, open_output, prepare_redirections

NO_SUCH_FILE = "tinyshell: No such file or directory"
PERMISSION_DENIED = "tinyshell: Permission denied"
IS_DIRECTORY = "tinyshell: is a directory"
NOT_FOUND = "tinyshell: command not found"
DOT_USAGE = "tinyshell: .: filename argument required\n.: usage: . filename [arguments]"
QUIT_MESSAGE = "Quit: 3"
QUIT_STATUS = 131

_Outcome = Union[subprocess.Popen, int]
_Stream = Union[None, int, IO[bytes]]


class CommandError(Exception):
    """A command could not be started; ``status`` is the exit status it gives."""

    def __init__(self, message: str, status: int) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


def _exists_executable(path: str) -> bool:
    return bool(path) and os.path.exists(path) and os.access(path, os.X_OK)


def _plain_name(name: str) -> bool:
    if not name:
        return False
    return name[0] != "." and name[1:2] != "/" and name[0] != "/"


def _check_other_path(name: str) -> str | None:
    if name == ".":
        raise CommandError(DOT_USAGE, 2)
    if os.path.isdir(name):
        raise CommandError(IS_DIRECTORY, 126)
    if name.startswith("./") and len(name) > 2:
        rest = name[2:]
        if not os.path.exists(rest):
            raise CommandError(NO_SUCH_FILE, 127)
        if not os.access(rest, os.X_OK):
            raise CommandError(PERMISSION_DENIED, 126)
        return name
    if name and os.path.exists(name):
        if os.access(name, os.X_OK):
            return name
        raise CommandError(PERMISSION_DENIED, 126)
    return None


def resolve_command(state: ShellState, name: str) -> str:
    """Find the file to run for ``name``.

    Plain names are looked up in ``PATH`` first; paths are checked as given.
    Raises :class:`CommandError` with the shell's message and status when
    nothing runnable is found.
    """
    directories = state.search_path()
    if directories and _plain_name(name):
        for directory in directories:
            candidate = f"{directory}/{name}"
            if _exists_executable(candidate):
                return candidate
    found = _check_other_path(name)
    if found is not None:
        return found
    if _exists_executable(name):
        return name
    if name.startswith("/") and not os.path.exists(name):
        raise CommandError(NO_SUCH_FILE, 127)
    raise CommandError(NOT_FOUND, 127)


def _flush() -> None:
    sys.stdout.flush()
    sys.stderr.flush()


def _close(stream: _Stream) -> None:
    if stream is None:
        return
    if isinstance(stream, int):
        if stream >= 0:
            os.close(stream)
        return
    stream.close()


def _status_of(returncode: int) -> int:
    return 128 - returncode if returncode < 0 else returncode


def _wait(outcome: _Outcome) -> int:
    if isinstance(outcome, subprocess.Popen):
        return _status_of(outcome.wait())
    return outcome


def _finish(state: ShellState, status: int) -> int:
    state.exit_status = status
    if status == QUIT_STATUS:
        sys.stdout.write(QUIT_MESSAGE + "\n")
        sys.stdout.flush()
    return status


def _spawn(state: ShellState, command: Command, stdin: _Stream, stdout: _Stream) -> _Outcome:
    err = sys.stderr
    try:
        prepare_redirections(command)
    except OSError as exc:
        err.write(f"open: {exc.strerror}\n")
        return 1
    if command.command is None:
        return state.exit_status
    try:
        path = resolve_command(state, command.command)
    except CommandError as exc:
        err.write(exc.message + "\n")
        return exc.status
    try:
        infile = open_input(command)
    except OSError as exc:
        err.write(f"open: {exc.strerror}\n")
        return 1
    try:
        outfile = open_output(command)
    except OSError as exc:
        _close(infile)
        err.write(f"open: {exc.strerror}\n")
        return 1
    _flush()
    try:
        return subprocess.Popen(
            command.argv(),
            executable=path,
            env=state.env.to_dict(),
            stdin=infile if infile is not None else stdin,
            stdout=outfile if outfile is not None else stdout,
        )
    except OSError as exc:
        err.write(f"execve: {exc.strerror}\n")
        return 1
    finally:
        _close(infile)
        _close(outfile)


def _builtin_status(state: ShellState, command: Command, out: IO[str]) -> int:
    try:
        run_builtin(state, command, out, sys.stderr)
    except ShellExit as exc:
        return exc.status
    return 0


def _pipeline_builtin(
    state: ShellState, command: Command, to_pipe: bool
) -> tuple[int, IO[bytes] | None]:
    child = copy.deepcopy(state)
    try:
        prepare_redirections(command)
        target = open_output(command)
    except OSError as exc:
        sys.stderr.write(f"open: {exc.strerror}\n")
        return 1, None
    if target is not None:
        with io.TextIOWrapper(target, encoding="utf-8") as out:
            return _builtin_status(child, command, out), None
    if not to_pipe:
        status = _builtin_status(child, command, sys.stdout)
        sys.stdout.flush()
        return status, None
    buffer = tempfile.TemporaryFile()
    out = io.TextIOWrapper(buffer, encoding="utf-8")
    try:
        status = _builtin_status(child, command, out)
    finally:
        out.flush()
        out.detach()
    buffer.seek(0)
    return status, buffer


def run_pipeline(state: ShellState, commands: list[Command]) -> int:
    """Run the commands as a pipeline and return the status of the last one.

    Builtins run on a copy of the state, as they would in a child process, so
    they cannot change the shell's own variables.
    """
    outcomes: list[_Outcome] = []
    upstream: _Stream = None
    last = len(commands) - 1
    for index, command in enumerate(commands):
        to_pipe = index < last and not command.out_exist
        stdin = upstream
        if is_builtin(command.command):
            status, produced = _pipeline_builtin(state, command, to_pipe)
            _close(stdin)
            outcomes.append(status)
            upstream = produced if produced is not None else subprocess.DEVNULL
            continue
        read_end: int | None = None
        write_end: int | None = None
        if to_pipe:
            read_end, write_end = os.pipe()
        outcome = _spawn(state, command, stdin, write_end)
        _close(stdin)
        _close(write_end)
        outcomes.append(outcome)
        if read_end is not None and isinstance(outcome, subprocess.Popen):
            upstream = read_end
        else:
            _close(read_end)
            upstream = subprocess.DEVNULL
    _close(upstream)
    status = state.exit_status
    for outcome in outcomes:
        status = _wait(outcome)
    return _finish(state, status)


def _run_simple(state: ShellState, command: Command) -> int:
    if not is_builtin(command.command):
        return _finish(state, _wait(_spawn(state, command, None, None)))
    if command.redirects:
        try:
            prepare_redirections(command)
            target = open_output(command)
        except OSError:
            state.exit_status = 1
            sys.stderr.write(NO_SUCH_FILE + "\n")
            return 1
        if target is not None:
            with io.TextIOWrapper(target, encoding="utf-8") as out:
                return run_builtin(state, command, out, sys.stderr)
    status = run_builtin(state, command, sys.stdout, sys.stderr)
    sys.stdout.flush()
    return status


def execute(state: ShellState, commands: list[Command], read_line: ReadLine) -> int:
    """Collect here-documents, run the commands and return the new exit status.

    A lone builtin runs in the shell itself; ``exit`` raises
    :class:`~tinyshell.builtins.ShellExit`. Here-document files are removed
    afterwards.
    """
    if not commands:
        return state.exit_status
    try:
        collect_heredocs(state, commands, read_line)
    except HeredocInterrupted:
        return state.exit_status
    except OSError as exc:
        sys.stderr.write(f"open: {exc.strerror}\n")
        return state.exit_status
    try:
        if len(commands) == 1:
            return _run_simple(state, commands[0])
        return run_pipeline(state, commands)
    finally:
        remove_heredoc_files(commands)