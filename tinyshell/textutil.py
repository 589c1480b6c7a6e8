"""Small text helpers shared by the shell: integer parsing and field splitting."""

from __future__ import annotations

import re

_NUMBER = re.compile(r"[ \t\n\v\f\r]*([+-]?)([0-9]*)")


def _wrap_int32(value: int) -> int:
    """Reduce ``value`` to a signed 32-bit integer, wrapping on overflow."""
    value &= 0xFFFFFFFF
    return value - (1 << 32) if value >= (1 << 31) else value


def atoi(text: str) -> int:
    """Parse a leading decimal integer the way C ``atoi`` does.

    Leading whitespace is skipped, one optional sign is accepted and parsing
    stops at the first non-digit. Text without digits gives 0. The result is
    a 32-bit signed integer; larger values wrap around.
    """
    match = _NUMBER.match(text)
    sign, digits = match.group(1), match.group(2)
    magnitude = _wrap_int32(int(digits)) if digits else 0
    return _wrap_int32(-magnitude) if sign == "-" else magnitude


def split_fields(text: str | None, sep: str) -> list[str]:
    """Split ``text`` on ``sep`` and drop empty fields; ``None`` gives an empty list."""
    if text is None:
        return []
    return [field for field in text.split(sep) if field]


def after_char(text: str, char: str) -> str | None:
    """Return what follows the first ``char`` in ``text``, or ``None`` if absent."""
    index = text.find(char)
    if index < 0:
        return None
    return text[index + 1:]