import pytest

from tinyshell.lexer import TokenType
from tinyshell.parser import Command, Redirect
from tinyshell.redirection import (
    input_file,
    open_input,
    open_output,
    output_target,
    prepare_redirections,
)


def out(path):
    return Redirect(TokenType.REDIR_OUT, str(path))


def app(path):
    return Redirect(TokenType.APPEND, str(path))


def inp(path):
    return Redirect(TokenType.REDIR_IN, str(path))


def test_prepare_creates_and_truncates(tmp_path):
    target = tmp_path / "out"
    target.write_text("old")
    prepare_redirections(Command(command="echo", redirects=[out(target)]))
    assert target.read_text() == ""


def test_prepare_append_keeps_content(tmp_path):
    target = tmp_path / "log"
    target.write_text("old")
    prepare_redirections(Command(command="echo", redirects=[app(target)]))
    assert target.read_text() == "old"


def test_prepare_missing_input_raises_and_stops(tmp_path):
    later = tmp_path / "later"
    command = Command(command="cat", redirects=[inp(tmp_path / "nope"), out(later)])
    with pytest.raises(FileNotFoundError):
        prepare_redirections(command)
    assert not later.exists()


def test_output_target_later_kind_wins(tmp_path):
    first = out(tmp_path / "a")
    second = app(tmp_path / "b")
    assert output_target(Command(redirects=[first, second])) is second
    assert output_target(Command(redirects=[second, first])) is first


def test_output_target_none_without_output(tmp_path):
    assert output_target(Command(redirects=[inp(tmp_path / "x")])) is None


def test_input_file_last_redirect(tmp_path):
    command = Command(
        redirects=[inp(tmp_path / "a"), inp(tmp_path / "b")],
        last_input=TokenType.REDIR_IN,
    )
    assert input_file(command) == str(tmp_path / "b")


def test_input_file_heredoc(tmp_path):
    files = [str(tmp_path / "h0"), str(tmp_path / "h1")]
    command = Command(
        redirects=[inp(tmp_path / "a")],
        heredoc_files=files,
        last_input=TokenType.HERE_DOC,
    )
    assert input_file(command) == files[-1]


def test_input_file_none():
    assert input_file(Command(command="ls")) is None


def test_open_input_reads_file(tmp_path):
    source = tmp_path / "in"
    source.write_bytes(b"data")
    command = Command(redirects=[inp(source)], last_input=TokenType.REDIR_IN)
    with open_input(command) as handle:
        assert handle.read() == b"data"


def test_open_output_truncates(tmp_path):
    target = tmp_path / "out"
    target.write_bytes(b"previous")
    command = Command(redirects=[out(target)])
    with open_output(command) as handle:
        handle.write(b"new")
    assert target.read_bytes() == b"new"


def test_open_output_appends(tmp_path):
    target = tmp_path / "log"
    target.write_bytes(b"one")
    command = Command(redirects=[app(target)])
    with open_output(command) as handle:
        handle.write(b"two")
    assert target.read_bytes() == b"onetwo"


def test_open_output_requires_prepared_file(tmp_path):
    command = Command(redirects=[out(tmp_path / "missing")])
    with pytest.raises(FileNotFoundError):
        open_output(command)
    prepare_redirections(command)
    with open_output(command) as handle:
        handle.write(b"ok")
    assert (tmp_path / "missing").read_bytes() == b"ok"


def test_open_none_without_redirections():
    command = Command(command="ls")
    assert open_input(command) is None
    assert open_output(command) is None