import os
import signal

import pytest

from tinyshell.builtins import ShellExit
from tinyshell.environment import Environment, ShellState
from tinyshell.executor import (
    DOT_USAGE,
    IS_DIRECTORY,
    NO_SUCH_FILE,
    NOT_FOUND,
    PERMISSION_DENIED,
    CommandError,
    execute,
    resolve_command,
    run_pipeline,
)
from tinyshell.lexer import tokenize
from tinyshell.parser import parse


def _state(*entries):
    return ShellState(env=Environment.from_entries([f"PATH={os.environ['PATH']}", *entries]))


def _commands(line, state):
    return parse(tokenize(line), state)


def _script(directory, name, body, mode=0o755):
    path = directory / name
    path.write_text("#!/bin/sh\n" + body + "\n")
    path.chmod(mode)
    return path


def _no_input(prompt):
    raise EOFError


def test_resolve_finds_program_on_path(tmp_path):
    bindir = tmp_path / "bin"
    bindir.mkdir()
    _script(bindir, "tool", "exit 0")
    state = ShellState(env=Environment.from_entries([f"PATH={bindir}"]))
    assert resolve_command(state, "tool") == str(bindir / "tool")


def test_resolve_unknown_command(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    state = ShellState(env=Environment.from_entries([f"PATH={tmp_path}"]))
    with pytest.raises(CommandError) as info:
        resolve_command(state, "no-such-tool")
    assert info.value.status == 127
    assert info.value.message == NOT_FOUND


def test_resolve_missing_absolute_path(tmp_path):
    with pytest.raises(CommandError) as info:
        resolve_command(_state(), str(tmp_path / "missing"))
    assert info.value.status == 127
    assert info.value.message == NO_SUCH_FILE


def test_resolve_dot_needs_filename():
    with pytest.raises(CommandError) as info:
        resolve_command(_state(), ".")
    assert info.value.status == 2
    assert info.value.message == DOT_USAGE


def test_resolve_directory(tmp_path):
    with pytest.raises(CommandError) as info:
        resolve_command(_state(), str(tmp_path))
    assert info.value.status == 126
    assert info.value.message == IS_DIRECTORY


def test_resolve_relative_paths(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    _script(tmp_path, "runme", "exit 0")
    _script(tmp_path, "locked", "exit 0", mode=0o644)
    state = _state()
    assert resolve_command(state, "./runme") == "./runme"
    with pytest.raises(CommandError) as denied:
        resolve_command(state, "./locked")
    assert denied.value.status == 126
    assert denied.value.message == PERMISSION_DENIED
    with pytest.raises(CommandError) as missing:
        resolve_command(state, "./absent")
    assert missing.value.status == 127


def test_builtin_output_redirected(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    state = _state()
    status = execute(state, _commands("echo hello world > out.txt", state), _no_input)
    assert status == 0
    assert state.exit_status == 0
    assert (tmp_path / "out.txt").read_text() == "hello world\n"


def test_external_command_with_redirections(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "in.txt").write_text("line one\nline two\n")
    state = _state()
    status = execute(state, _commands("cat < in.txt > out.txt", state), _no_input)
    assert status == 0
    assert state.exit_status == 0
    assert (tmp_path / "out.txt").read_text() == "line one\nline two\n"


def test_exit_status_of_program(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    _script(tmp_path, "fail", "exit 3")
    state = _state()
    assert execute(state, _commands("./fail", state), _no_input) == 3
    assert state.exit_status == 3


def test_command_not_found_reports(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    state = _state()
    status = execute(state, _commands("definitely-not-a-command-xyz", state), _no_input)
    assert status == 127
    assert NOT_FOUND in capsys.readouterr().err


def test_signal_status(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    _script(tmp_path, "die", "kill -TERM $$")
    state = _state()
    assert execute(state, _commands("./die", state), _no_input) == 128 + int(signal.SIGTERM)


def test_pipeline_between_programs(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "in.txt").write_text("alpha\nbeta\n")
    state = _state()
    status = execute(state, _commands("cat in.txt | cat > out.txt", state), _no_input)
    assert status == 0
    assert (tmp_path / "out.txt").read_text() == "alpha\nbeta\n"


def test_pipeline_from_builtin(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    state = _state()
    status = execute(state, _commands("echo piped text | cat > out.txt", state), _no_input)
    assert status == 0
    assert state.exit_status == 0
    assert (tmp_path / "out.txt").read_text() == "piped text\n"


def test_pipeline_builtin_does_not_touch_shell_state(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    state = _state()
    commands = _commands("export FRESH=1 | cat > out.txt", state)
    assert run_pipeline(state, commands) == 0
    assert "FRESH" not in state.env


def test_simple_builtin_changes_state():
    state = _state()
    execute(state, _commands("export FRESH=yes", state), _no_input)
    assert state.env.get("FRESH") == "yes"


def test_pipeline_status_is_last_stage(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    _script(tmp_path, "fail", "exit 3")
    (tmp_path / "in.txt").write_text("x\n")
    state = _state()
    assert execute(state, _commands("./fail | cat in.txt > out.txt", state), _no_input) == 0
    assert execute(state, _commands("cat in.txt | ./fail", state), _no_input) == 3


def test_heredoc_feeds_command_and_is_removed(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    lines = iter(["one", "$VAR", "EOF"])
    state = _state("VAR=value")
    commands = _commands("cat << EOF > out.txt", state)
    execute(state, commands, lambda prompt: next(lines))
    assert (tmp_path / "out.txt").read_text() == "one\nvalue\n"
    assert commands[0].heredoc_files == []


def test_builtin_with_missing_input_fails(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    state = _state()
    assert execute(state, _commands("echo hi < missing.txt", state), _no_input) == 1
    assert state.exit_status == 1
    assert NO_SUCH_FILE in capsys.readouterr().err


def test_redirection_without_command_creates_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    state = _state()
    state.exit_status = 5
    assert execute(state, _commands("> made.txt", state), _no_input) == 5
    assert (tmp_path / "made.txt").read_text() == ""


def test_exit_builtin_raises():
    state = _state()
    with pytest.raises(ShellExit) as info:
        execute(state, _commands("exit 3", state), _no_input)
    assert info.value.status == 3


def test_empty_command_list_keeps_status():
    state = _state()
    state.exit_status = 7
    assert execute(state, [], _no_input) == 7