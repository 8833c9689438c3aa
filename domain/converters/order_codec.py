"""
Order marker codec.

Coaches label exercises with markers such as "A1", "A2", "B1" to express
sequence and superset grouping. Storage needs an integer sort key, so each
marker is encoded as ``base26(letters) * 100 + digits``. That reserves 100
slots per letter prefix ("A0".."A99" sort before "B0").

There is no decode: the marker string is the durable display value and the
integer is only a secondary sort key.
"""

import re
from typing import Tuple

SLOTS_PER_PREFIX = 100

_NUMERIC = re.compile(r"^\d+$")
_LETTERS = re.compile(r"[A-Za-z]+")
_DIGITS = re.compile(r"\d+")


def letters_to_base26(letters: str) -> int:
    """
    Interpret a letter run as a positional base-26 number (A=0 ... Z=25).

    >>> letters_to_base26("A"), letters_to_base26("B"), letters_to_base26("BA")
    (0, 1, 26)
    """
    value = 0
    for char in letters.upper():
        value = value * 26 + (ord(char) - ord("A"))
    return value


def encode(marker: str) -> int:
    """
    Convert an order marker to its integer sort key.

    Purely numeric markers are returned as-is. Empty or unparseable input
    (no letters and no digits) encodes to 0.

    >>> encode("A0"), encode("A99"), encode("B0"), encode("C12"), encode("7")
    (0, 99, 100, 212, 7)
    """
    if not marker:
        return 0
    text = marker.strip()
    if _NUMERIC.match(text):
        return int(text)

    letters = _LETTERS.search(text)
    digits = _DIGITS.search(text)
    if letters is None and digits is None:
        return 0

    letter_value = letters_to_base26(letters.group()) if letters else 0
    number = int(digits.group()) if digits else 0
    return letter_value * SLOTS_PER_PREFIX + number


def sort_key(marker: str) -> Tuple[int, str]:
    """Sort key for exercises: encoded value, then the raw marker as tiebreak."""
    return encode(marker), (marker or "").strip().upper()
