"""Turn a checked token list into commands with their words and redirections."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field

from .environment import ShellState
from .lexer import Element, State, TokenType

_SPACES = (TokenType.WHITE_SPACE, TokenType.TAB)
_QUOTES = (TokenType.SINGLE_QUOTE, TokenType.DOUBLE_QUOTE)
_DROPPED_IN_GENERAL = (
    TokenType.WHITE_SPACE,
    TokenType.ENV,
    TokenType.SINGLE_QUOTE,
    TokenType.DOUBLE_QUOTE,
    TokenType.TAB,
)


@dataclass
class Redirect:
    """A ``<``, ``>`` or ``>>`` redirection and its target file."""

    type: TokenType
    file: str | None


@dataclass
class HereDoc:
    """A ``<<`` redirection: its delimiter and whether lines get expanded."""

    delimiter: str = ""
    expand: bool = True


@dataclass
class Command:
    """One stage of a pipeline."""

    command: str | None = None
    arguments: list[str] = field(default_factory=list)
    redirects: list[Redirect] = field(default_factory=list)
    heredocs: list[HereDoc] = field(default_factory=list)
    out_exist: bool = False
    last_input: TokenType = TokenType.NON
    heredoc_files: list[str] = field(default_factory=list)

    def argv(self) -> list[str]:
        """The argument vector handed to a program; empty without a command name."""
        if self.command is None:
            return []
        return [self.command, *self.arguments]


def expand_variable(element: Element, state: ShellState) -> Element:
    """Replace a ``$NAME`` or ``$?`` token with its value, in place.

    A variable with no value turns the token into a ``NON`` token with no
    content. A lone ``$`` stays as it is.
    """
    content = element.content or ""
    name = content[1:]
    if len(state.env):
        if name[:1] in ("?", ""):
            if name[:1] == "?":
                element.content = str(state.exit_status) + content[2:]
            element.type = TokenType.WORD
            return element
        for var_name, value in state.env.items():
            if value is not None and var_name == name:
                element.content = value
                element.type = TokenType.WORD
                return element
    element.content = None
    element.type = TokenType.NON
    return element


def _breaks_word(element: Element) -> bool:
    if element.state is not State.GENERAL:
        return False
    return (
        element.type in _SPACES
        or element.type is TokenType.PIPE
        or element.is_redirection()
    )


def _kept(element: Element) -> bool:
    if element.type is TokenType.NON:
        return False
    if element.state is State.GENERAL and element.type in _DROPPED_IN_GENERAL:
        return False
    if element.type is TokenType.ENV and element.state is State.IN_DQUOTE:
        return False
    return True


class _Reader:
    def __init__(self, elements: list[Element], state: ShellState) -> None:
        self.elements = elements
        self.pos = 0
        self.state = state

    def current(self) -> Element | None:
        return self.elements[self.pos] if self.pos < len(self.elements) else None

    def advance(self) -> None:
        self.pos += 1

    def skip(self, kinds: tuple[TokenType, ...]) -> None:
        while (element := self.current()) is not None and element.type in kinds:
            self.advance()

    def word(self) -> str | None:
        text: str | None = None
        seen = False
        while (element := self.current()) is not None and not _breaks_word(element):
            if element.type is TokenType.ENV and element.state in (
                State.GENERAL,
                State.IN_DQUOTE,
            ):
                expand_variable(element, self.state)
            if _kept(element):
                text = (text or "") + (element.content or "")
            if element.type is not TokenType.NON:
                seen = True
            self.advance()
        if text is None and seen:
            text = ""
        return text

    def delimiter(self, heredoc: HereDoc) -> str:
        text = ""
        while (element := self.current()) is not None and not _breaks_word(element):
            if element.type in _QUOTES:
                heredoc.expand = False
                if element.state is not State.GENERAL:
                    text += element.content or ""
            else:
                text += element.content or ""
            self.advance()
        return text


def _scan_redirections(elements: list[Element], start: int, command: Command) -> None:
    for element in elements[start:]:
        if element.type in (TokenType.APPEND, TokenType.REDIR_OUT):
            command.out_exist = True
        if element.type in (TokenType.REDIR_IN, TokenType.HERE_DOC):
            command.last_input = element.type
        if element.type is TokenType.PIPE:
            break


def _is_general_pipe(element: Element) -> bool:
    return element.type is TokenType.PIPE and element.state is State.GENERAL


def _is_general_redirection(element: Element) -> bool:
    return element.is_redirection() and element.state is State.GENERAL


def _parse_command(reader: _Reader) -> Command:
    command = Command()
    _scan_redirections(reader.elements, reader.pos, command)
    have_name = False
    while (element := reader.current()) is not None:
        if _is_general_redirection(element):
            reader.advance()
            reader.skip((TokenType.WHITE_SPACE,))
            if element.type is TokenType.HERE_DOC:
                heredoc = HereDoc()
                heredoc.delimiter = reader.delimiter(heredoc)
                command.heredocs.append(heredoc)
            else:
                command.redirects.append(Redirect(element.type, reader.word()))
        reader.skip(_SPACES)
        element = reader.current()
        if (
            element is not None
            and not _is_general_redirection(element)
            and not _is_general_pipe(element)
        ):
            word = reader.word()
            if word is not None:
                if have_name:
                    command.arguments.append(word)
                else:
                    command.command = word
                    have_name = True
        element = reader.current()
        if element is None or _is_general_pipe(element):
            break
    return command


def parse(elements: list[Element], state: ShellState) -> list[Command]:
    """Group tokens into pipeline stages, expanding variables on the way.

    The tokens passed in are left unchanged.
    """
    reader = _Reader([dataclasses.replace(element) for element in elements], state)
    commands: list[Command] = []
    while reader.current() is not None:
        command = _parse_command(reader)
        element = reader.current()
        if element is not None and _is_general_pipe(element):
            reader.advance()
        commands.append(command)
    return commands