"""The shell's variable table and the state that travels through a session."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from .textutil import after_char, split_fields


def split_assignment(entry: str) -> tuple[str, str | None]:
    """Split ``NAME=value`` into its name and value.

    The value is ``None`` when the entry has no ``=`` at all, and an empty
    string when nothing follows the ``=``.
    """
    name, _, _ = entry.partition("=")
    return name, after_char(entry, "=")


@dataclass
class _Variable:
    name: str
    value: str | None


class Environment:
    """An ordered table of shell variables; a variable may exist without a value."""

    def __init__(self, entries: Iterable[str] = ()) -> None:
        self._variables: list[_Variable] = []
        for entry in entries:
            self.add(entry)

    @classmethod
    def from_entries(cls, entries: Iterable[str]) -> "Environment":
        """Build a table from ``NAME=value`` strings, keeping their order."""
        return cls(entries)

    def _find(self, name: str) -> _Variable | None:
        if not name:
            return None
        for variable in self._variables:
            if variable.name and variable.name == name:
                return variable
        return None

    def get(self, name: str) -> str | None:
        """Value of ``name``, or ``None`` if it is unset or has no value."""
        variable = self._find(name)
        return variable.value if variable is not None else None

    def set(self, name: str, value: str | None) -> None:
        """Give ``name`` a value, adding it at the end if it is new.

        Setting an existing variable to ``None`` leaves its value alone.
        """
        variable = self._find(name)
        if variable is None:
            self._variables.append(_Variable(name, value))
        elif value is not None:
            variable.value = value

    def add(self, entry: str) -> None:
        """Append a ``NAME=value`` entry without looking for an existing one."""
        name, value = split_assignment(entry)
        self._variables.append(_Variable(name, value))

    def unset(self, name: str) -> None:
        """Remove the first variable called ``name``, if there is one."""
        variable = self._find(name)
        if variable is not None:
            self._variables.remove(variable)

    def names(self) -> list[str]:
        """Variable names in table order."""
        return [variable.name for variable in self._variables]

    def items(self) -> list[tuple[str, str | None]]:
        """``(name, value)`` pairs in table order."""
        return [(variable.name, variable.value) for variable in self._variables]

    def to_entries(self) -> list[str]:
        """``NAME=value`` strings for a child process; missing values become empty."""
        return [f"{name}={value or ''}" for name, value in self.items()]

    def to_dict(self) -> dict[str, str]:
        """Mapping for a child process; the first of repeated names wins."""
        result: dict[str, str] = {}
        for name, value in self.items():
            result.setdefault(name, value or "")
        return result

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self._find(name) is not None

    def __len__(self) -> int:
        return len(self._variables)


@dataclass
class ShellState:
    """What the shell keeps between command lines."""

    env: Environment = field(default_factory=Environment)
    exit_status: int = 0

    def search_path(self) -> list[str]:
        """Directories named by ``PATH``, empty fields left out."""
        return split_fields(self.env.get("PATH"), ":")