"""Split a command line into typed tokens that remember their quoting state."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class TokenType(enum.Enum):
    """Kinds of token produced by the lexer and used by the parser."""

    WORD = "word"
    WHITE_SPACE = " "
    NEW_LINE = "\n"
    SINGLE_QUOTE = "'"
    DOUBLE_QUOTE = '"'
    ESCAPE = "\\"
    ENV = "$"
    PIPE = "|"
    REDIR_IN = "<"
    REDIR_OUT = ">"
    TAB = "\t"
    HERE_DOC = "<<"
    APPEND = ">>"
    NON = "none"


class State(enum.Enum):
    """Quoting context a token was read in."""

    IN_DQUOTE = "double"
    IN_SQUOTE = "single"
    GENERAL = "general"


_REDIRECTIONS = frozenset(
    {TokenType.REDIR_IN, TokenType.REDIR_OUT, TokenType.APPEND, TokenType.HERE_DOC}
)

_OPERATOR_TYPES = {
    "\t": TokenType.TAB,
    " ": TokenType.WHITE_SPACE,
    "\n": TokenType.NEW_LINE,
    "\\": TokenType.ESCAPE,
    "|": TokenType.PIPE,
}

_QUOTES = {
    '"': (State.IN_DQUOTE, TokenType.DOUBLE_QUOTE),
    "'": (State.IN_SQUOTE, TokenType.SINGLE_QUOTE),
}

_OPERATORS = "\t \n'\"\\|"


@dataclass
class Element:
    """One token: its text, its kind and the quoting state it was read in."""

    content: str | None
    type: TokenType
    state: State = State.GENERAL

    def is_redirection(self) -> bool:
        """True for ``<``, ``>``, ``>>`` and ``<<`` tokens."""
        return self.type in _REDIRECTIONS


def is_operator(char: str) -> bool:
    """True for characters that always form a token of their own."""
    return len(char) == 1 and char in _OPERATORS


def is_blank(line: str) -> bool:
    """True if ``line`` holds nothing but spaces and tabs."""
    return all(char in " \t" for char in line)


def _is_name_char(char: str) -> bool:
    return ("0" <= char <= "9") or ("a" <= char <= "z") or ("A" <= char <= "Z") or char in "_?"


def _quote(elements: list[Element], char: str, state: State) -> State:
    quote_state, quote_type = _QUOTES[char]
    if state is State.GENERAL:
        elements.append(Element(char, quote_type, State.GENERAL))
        return quote_state
    if state is quote_state:
        elements.append(Element(char, quote_type, State.GENERAL))
        return State.GENERAL
    elements.append(Element(char, quote_type, state))
    return state


def _read_word(line: str, start: int, elements: list[Element], state: State) -> int:
    end = start
    while end < len(line) and line[end] not in "$<>" and not is_operator(line[end]):
        end += 1
    elements.append(Element(line[start:end], TokenType.WORD, state))
    return end - 1


def _read_variable(line: str, start: int, elements: list[Element], state: State) -> int:
    end = start + 1
    while (
        end < len(line)
        and line[end] not in "$<>"
        and not is_operator(line[end])
        and _is_name_char(line[end])
    ):
        end += 1
    elements.append(Element(line[start:end], TokenType.ENV, state))
    return end - 1


def _read_redirection(line: str, start: int, elements: list[Element], state: State) -> int:
    pair = line[start:start + 2]
    if pair == "<<":
        elements.append(Element("<<", TokenType.HERE_DOC, state))
        return start + 1
    if pair == ">>":
        elements.append(Element(">>", TokenType.APPEND, state))
        return start + 1
    if line[start] == "<":
        elements.append(Element("<", TokenType.REDIR_IN, state))
    else:
        elements.append(Element(">", TokenType.REDIR_OUT, state))
    return start


def tokenize(line: str) -> list[Element]:
    """Turn a command line into a list of tokens.

    Every character of ``line`` ends up in exactly one token, so joining the
    token texts gives the line back.
    """
    elements: list[Element] = []
    state = State.GENERAL
    index = 0
    while index < len(line):
        char = line[index]
        if char in _QUOTES:
            state = _quote(elements, char, state)
        elif is_operator(char):
            elements.append(Element(char, _OPERATOR_TYPES[char], state))
        elif char == "$":
            index = _read_variable(line, index, elements, state)
        elif char in "<>":
            index = _read_redirection(line, index, elements, state)
        else:
            index = _read_word(line, index, elements, state)
        index += 1
    return elements