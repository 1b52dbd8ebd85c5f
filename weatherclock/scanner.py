# ABOUTME: Key-anchored scanning primitives over a raw response payload.
# ABOUTME: Finds keys, matching braces, and numeric/string values without building a parse tree.

import re
from collections.abc import Iterator

_WHITESPACE = b" \t\r\n"
_NUMERIC = frozenset(b"0123456789+-.")
_NUMERIC_PREFIX = re.compile(rb"[+-]?(?:\d+\.?\d*|\.\d+)")


def find_key(text: bytes, key: bytes, start: int = 0) -> int | None:
    """Return the offset of the first `key` at or after `start`, or None."""
    if not key or start < 0:
        return None
    pos = text.find(key, start)
    return pos if pos >= 0 else None


def find_section(text: bytes, key: bytes) -> int | None:
    """Return where a named section key (e.g. b'"hourly":') first appears in the payload."""
    return find_key(text, key, 0)


def _matching(text: bytes, open_pos: int | None, opener: int, closer: int) -> int | None:
    if open_pos is None or open_pos < 0 or open_pos >= len(text) or text[open_pos] != opener:
        return None
    depth = 0
    for i in range(open_pos, len(text)):
        c = text[i]
        if c == opener:
            depth += 1
        elif c == closer:
            depth -= 1
            if depth == 0:
                return i
    return None


def matching_brace(text: bytes, open_pos: int | None) -> int | None:
    """Index of the `}` closing the object that opens at `open_pos`."""
    return _matching(text, open_pos, ord("{"), ord("}"))


def matching_bracket(text: bytes, open_pos: int | None) -> int | None:
    """Index of the `]` closing the array that opens at `open_pos`."""
    return _matching(text, open_pos, ord("["), ord("]"))


def _parse_decimal(run: bytes) -> float:
    try:
        return float(run)
    except ValueError:
        # Malformed runs like b"1.2.3" read as their longest numeric prefix.
        match = _NUMERIC_PREFIX.match(run)
        return float(match.group()) if match else 0.0


def _number_at(text: bytes, pos: int) -> tuple[float, int] | None:
    length = len(text)
    while pos < length and text[pos] in _WHITESPACE:
        pos += 1
    end = pos
    while end < length and text[end] in _NUMERIC:
        end += 1
    if end <= pos:
        return None
    return _parse_decimal(text[pos:end]), end


def number_after(text: bytes, key: bytes, start: int = 0) -> tuple[float, int] | None:
    """Parse the number that follows `key` (key includes its colon).

    Returns the value and the offset just past the numeric run, or None when
    the key is missing or not followed by a number.
    """
    pos = find_key(text, key, start)
    if pos is None:
        return None
    return _number_at(text, pos + len(key))


def int_after(text: bytes, key: bytes, start: int = 0) -> tuple[int, int] | None:
    """Like number_after, truncated toward zero."""
    found = number_after(text, key, start)
    if found is None:
        return None
    value, end = found
    return int(value), end


def field_number(text: bytes, field: bytes, start: int = 0) -> float | None:
    """Parse a number for a quoted field name, tolerating whitespace around the colon."""
    pos = find_key(text, field, start)
    if pos is None:
        return None
    colon = text.find(b":", pos + len(field))
    if colon < 0:
        return None
    found = _number_at(text, colon + 1)
    return found[0] if found is not None else None


def string_after(
    text: bytes, key: bytes, start: int = 0, capacity: int | None = None
) -> tuple[str, int] | None:
    """Read the quoted value after `key`, whose literal already ends with the opening quote.

    The value runs up to the next double quote (or the end of the payload).
    Empty values count as missing. The decoded text is truncated to `capacity`
    characters.
    """
    pos = find_key(text, key, start)
    if pos is None:
        return None
    value_start = pos + len(key)
    if value_start >= len(text):
        return None
    value_end = text.find(b'"', value_start)
    if value_end < 0:
        value_end = len(text)
    if value_end <= value_start:
        return None
    value = text[value_start:value_end].decode("utf-8", errors="replace")
    if capacity is not None:
        value = value[:capacity]
    return value, value_end


def objects_in(text: bytes, start: int, end: int | None = None) -> Iterator[tuple[int, int]]:
    """Yield (start, end) spans of consecutive objects found from `start` up to `end`."""
    limit = len(text) if end is None else end
    pos = start
    while pos < limit:
        obj_start = text.find(b"{", pos)
        if obj_start < 0 or obj_start > limit:
            return
        obj_end = matching_brace(text, obj_start)
        if obj_end is None or obj_end > limit:
            return
        yield obj_start, obj_end
        pos = obj_end + 1


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(value + (0.5 if value >= 0 else -0.5))
