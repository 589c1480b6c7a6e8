"""Syntax checks run on a token list before it is parsed into commands."""

from __future__ import annotations

from .lexer import Element, State, TokenType

SYNTAX_STATUS = 258
EOF_MESSAGE = "syntax error: unexpected EOF"
PIPE_MESSAGE = "syntax error near unexpected token `|`"
REDIRECT_MESSAGE = "tinyshell: syntax error redirection"

_SPACES = (TokenType.WHITE_SPACE, TokenType.TAB)


class ShellSyntaxError(Exception):
    """A command line the shell refuses to run; ``status`` is the exit status to set."""

    status = SYNTAX_STATUS

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


def skip_space(elements: list[Element], index: int) -> int | None:
    """Index of the first non-blank token at or after ``index``, or ``None``."""
    while index < len(elements) and elements[index].type in _SPACES:
        index += 1
    return index if index < len(elements) else None


def _target_ok(elements: list[Element], index: int) -> bool:
    following = skip_space(elements, index + 1)
    if following is None:
        return False
    target = elements[following]
    if target.type not in (TokenType.WORD, TokenType.ENV) and target.state is not State.GENERAL:
        return False
    return True


def _followed_ok(elements: list[Element], following: int | None) -> bool:
    if following is None:
        return True
    target = elements[following]
    if target.type is TokenType.PIPE:
        return False
    return not (target.state is State.GENERAL and target.is_redirection())


def _bad_pipe(elements: list[Element], index: int) -> bool:
    current = elements[index]
    head, last = elements[0], elements[-1]
    if (
        (index + 1 < len(elements)
         and elements[index + 1].type is TokenType.PIPE
         and current.state is State.GENERAL)
        or (head.content or "")[:1] == "|"
        or last.type is TokenType.PIPE
    ):
        return True
    if head.type is TokenType.WHITE_SPACE and head.state is State.GENERAL:
        first = skip_space(elements, 0)
        if first is not None and elements[first].type is TokenType.PIPE:
            return True
    return False


def check_syntax(elements: list[Element]) -> None:
    """Raise :class:`ShellSyntaxError` if the tokens do not form a runnable line.

    Unbalanced quotes are reported first, then misplaced pipes, then
    redirections without a proper target.
    """
    single_quotes = double_quotes = 0
    pipe_error = redirect_error = False
    for index, element in enumerate(elements):
        if element.is_redirection() and element.state is State.GENERAL:
            following = skip_space(elements, index + 1)
            if (
                index + 1 >= len(elements)
                or not _target_ok(elements, index)
                or not _followed_ok(elements, following)
            ):
                redirect_error = True
                break
        if element.state is State.GENERAL:
            if element.type is TokenType.SINGLE_QUOTE:
                single_quotes += 1
            elif element.type is TokenType.DOUBLE_QUOTE:
                double_quotes += 1
        if (element.content or "")[:1] == "|":
            pipe_error = _bad_pipe(elements, index)
    if single_quotes % 2 or double_quotes % 2:
        raise ShellSyntaxError(EOF_MESSAGE)
    if pipe_error:
        raise ShellSyntaxError(PIPE_MESSAGE)
    if redirect_error:
        raise ShellSyntaxError(REDIRECT_MESSAGE)