"""Key parsing — turn a command-line key string into a :class:`Key`.

Accepted forms
--------------
* A single byte, taken literally: ``K`` → 75, ``7`` → 55.
* An integer literal with automatic base selection, as C ``strtol`` with
  base 0 reads it: ``75``, ``0x4B``, ``0113``.  Leading whitespace and a
  sign are allowed; trailing characters are not.

The single-byte rule wins, so a one-digit string is a character, not a
number.
"""

from __future__ import annotations

import os
import re

from caesar_harness.core.models import KEY_MAX, KEY_MIN, Key
from caesar_harness.exceptions import InvalidKeyError

_INTEGER_LITERAL = re.compile(
    rb"[ \t\n\r\f\v]*"
    rb"(?P<sign>[+-]?)"
    rb"(?:0[xX](?P<hex>[0-9a-fA-F]+)"
    rb"|(?P<oct>0[0-7]*)"
    rb"|(?P<dec>[1-9][0-9]*))"
)

_KEY_HINT = f"Use a single character (e.g. K) or an integer {KEY_MIN}..{KEY_MAX} (e.g. 75, 0x4B)."


def parse_key(text: str | None) -> Key:
    """Parse *text* into a :class:`Key`.

    Raises
    ------
    InvalidKeyError
        When *text* is empty, not a complete integer literal, or out of
        range.
    """
    if not text:
        raise InvalidKeyError("Key must not be empty.", hint=_KEY_HINT)

    try:
        raw = os.fsencode(text)
    except UnicodeEncodeError as exc:
        raise InvalidKeyError(f"Invalid key: '{text}'", hint=_KEY_HINT) from exc
    if len(raw) == 1:
        return Key(raw[0])

    value = _parse_integer_literal(raw)
    if value is None or not KEY_MIN <= value <= KEY_MAX:
        raise InvalidKeyError(f"Invalid key: '{text}'", hint=_KEY_HINT)
    return Key(value)


def _parse_integer_literal(raw: bytes) -> int | None:
    """Return the integer *raw* spells, or ``None`` if any of it is left over."""
    match = _INTEGER_LITERAL.fullmatch(raw)
    if match is None:
        return None

    if match["hex"] is not None:
        magnitude = int(match["hex"], 16)
    elif match["oct"] is not None:
        magnitude = int(match["oct"], 8)
    else:
        magnitude = int(match["dec"], 10)

    return -magnitude if match["sign"] == b"-" else magnitude
