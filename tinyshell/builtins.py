"""Commands the shell runs itself instead of starting a program."""

from __future__ import annotations

import os
from typing import TextIO

from .environment import ShellState
from .parser import Command
from .textutil import atoi

BUILTIN_NAMES = frozenset({"cd", "pwd", "export", "env", "echo", "exit", "unset"})

EXPORT_ERROR = "tinyshell: export: not a valid identifier\n"
UNSET_ERROR = "tinyshell: unset: not a valid identifier\n"
HOME_ERROR = "tinyshell: cd: HOME not set\n"
NUMERIC_ERROR = "tinyshell: exit: numeric argument required\n"
TOO_MANY_ERROR = "tinyshell: exit: too many arguments\n"


class ShellExit(Exception):
    """Raised by ``exit``: the shell should stop with ``status``."""

    def __init__(self, status: int) -> None:
        super().__init__(status)
        self.status = status


def _is_alpha(char: str) -> bool:
    return ("a" <= char <= "z") or ("A" <= char <= "Z")


def _is_alnum(char: str) -> bool:
    return _is_alpha(char) or ("0" <= char <= "9")


def is_builtin(name: str | None) -> bool:
    """True if ``name`` is one of the commands the shell runs itself."""
    return bool(name) and name in BUILTIN_NAMES


def is_echo_option(arg: str) -> bool:
    """True for ``-`` followed only by ``n`` characters (``-`` alone counts)."""
    return arg.startswith("-") and all(char == "n" for char in arg[1:])


def builtin_echo(args: list[str], out: TextIO) -> None:
    """Print the arguments separated by spaces; leading ``-n`` options drop the newline."""
    position = 0
    while position < len(args) and is_echo_option(args[position]):
        position += 1
    out.write(" ".join(args[position:]))
    if position == 0:
        out.write("\n")


def _current_dir(state: ShellState, err: TextIO) -> str | None:
    try:
        return os.getcwd()
    except OSError as exc:
        err.write(f"getcwd: {exc.strerror}\n")
        state.exit_status = 1
        return None


def _ensure_dir_variables(state: ShellState) -> None:
    if "PWD" not in state.env:
        state.env.add("PWD")
    if "OLDPWD" not in state.env:
        state.env.add("OLDPWD")


def _record_dir(state: ShellState, name: str, err: TextIO) -> None:
    _ensure_dir_variables(state)
    cwd = _current_dir(state, err)
    if cwd is not None:
        state.env.set(name, cwd)


def builtin_cd(state: ShellState, args: list[str], err: TextIO) -> None:
    """Change directory, keeping ``OLDPWD`` and ``PWD`` up to date.

    Without an argument, or with one starting with ``~``, go to ``HOME``.
    """
    _record_dir(state, "OLDPWD", err)
    if not args or args[0].startswith("~"):
        target = state.env.get("HOME")
        if target is None:
            state.exit_status = 1
            err.write(HOME_ERROR)
            return
    else:
        target = args[0]
    try:
        os.chdir(target)
    except OSError as exc:
        state.exit_status = 1
        err.write(f"tinyshell: {exc.strerror}\n")
        return
    _record_dir(state, "PWD", err)
    state.exit_status = 0


def builtin_pwd(state: ShellState, out: TextIO, err: TextIO) -> None:
    """Print the current directory."""
    cwd = _current_dir(state, err)
    if cwd is None:
        return
    out.write(cwd + "\n")
    state.exit_status = 0


def builtin_env(state: ShellState, out: TextIO) -> None:
    """Print every variable that has a value as ``NAME=value``."""
    for name, value in state.env.items():
        if name and value is not None:
            out.write(f"{name}={value}\n")
    state.exit_status = 0


def valid_export_name(arg: str) -> bool:
    """True if the part of ``arg`` before ``=`` is a valid variable name."""
    if not arg or not (_is_alpha(arg[0]) or arg[0] == "_"):
        return False
    name = arg.split("=", 1)[0]
    return all(_is_alnum(char) or char == "_" for char in name)


def _display_exports(state: ShellState, out: TextIO) -> None:
    for name, value in state.env.items():
        if value is None:
            out.write(f"declare -x {name}\n")
        else:
            out.write(f'declare -x {name}="{value}"\n')
    state.exit_status = 0


def builtin_export(state: ShellState, args: list[str], out: TextIO, err: TextIO) -> None:
    """List variables, or set each ``NAME[=value]`` argument.

    Invalid names are reported and skipped with status 1; naming an existing
    variable without ``=`` keeps its value.
    """
    if not args or args[0].startswith("#"):
        _display_exports(state, out)
        return
    for arg in args:
        if not valid_export_name(arg):
            state.exit_status = 1
            err.write(EXPORT_ERROR)
            continue
        name, _, rest = arg.partition("=")
        state.env.set(name, rest if "=" in arg else None)


def valid_unset_name(arg: str) -> bool:
    """True if ``arg`` starts with a letter or an underscore."""
    return bool(arg) and (arg[0] == "_" or _is_alpha(arg[0]))


def builtin_unset(state: ShellState, args: list[str], err: TextIO) -> None:
    """Remove each named variable; bad names are reported but status ends at 0."""
    if not args:
        return
    for arg in args:
        if not valid_unset_name(arg):
            state.exit_status = 1
            err.write(UNSET_ERROR)
            continue
        state.env.unset(arg)
    state.exit_status = 0


def builtin_exit(state: ShellState, args: list[str], err: TextIO) -> None:
    """Raise :class:`ShellExit` with the requested status.

    A non-numeric argument exits with 255; more than one argument only
    reports an error and sets status 1.
    """
    if not args:
        raise ShellExit(state.exit_status)
    first = args[0]
    if len(first) >= 2 and first[0] in "+-" and first[1] in "+-":
        err.write(NUMERIC_ERROR)
        state.exit_status = 255
        raise ShellExit(255)
    digits = first[1:] if first[:1] in ("+", "-") else first
    if not all("0" <= char <= "9" for char in digits):
        err.write(NUMERIC_ERROR)
        state.exit_status = 255
        raise ShellExit(255)
    if len(args) > 1:
        err.write(TOO_MANY_ERROR)
        state.exit_status = 1
        return
    err.write("exit\n")
    raise ShellExit(atoi(first) & 0xFF)


def run_builtin(state: ShellState, command: Command, out: TextIO, err: TextIO) -> int:
    """Run ``command`` if it names a builtin and return the shell's exit status."""
    name = command.command
    args = command.arguments
    if name == "cd":
        builtin_cd(state, args, err)
    elif name == "pwd":
        builtin_pwd(state, out, err)
    elif name == "export":
        builtin_export(state, args, out, err)
    elif name == "env":
        builtin_env(state, out)
    elif name == "unset":
        builtin_unset(state, args, err)
    elif name == "echo":
        builtin_echo(args, out)
    elif name == "exit":
        builtin_exit(state, args, err)
    return state.exit_status