"""Text normalization for game chat and listing text.

The game client renders boxed numerals, letters and a few symbols through
private-use codepoints in its own font. Spammers lean on these glyphs to dodge
plain-text filters, so every piece of text is folded back to ASCII before any
rule or classifier sees it.
"""

from __future__ import annotations

import unicodedata

from core.errors import InvalidArgument

# Everything below this codepoint is left alone.
LOWEST_REPLACEMENT = 0xE022

# (first, last, offset): first..last inclusive map to chr(c - offset).
_RANGES: tuple[tuple[int, int, int], ...] = (
    (0xE071, 0xE08A, 0xE030),  # A to Z
    (0xE060, 0xE069, 0xE030),  # 0 to 9
    (0xE0B1, 0xE0B9, 0xE080),  # 1 to 9
    (0xE090, 0xE098, 0xE05F),  # 1 to 9 again
)

_REPLACEMENTS: dict[str, str] = {
    # numerals
    "\ue055": "1",
    "\ue056": "2",
    "\ue057": "3",
    "\ue058": "4",
    "\ue059": "5",
    **{chr(0xE099 + offset): str(10 + offset) for offset in range(22)},
    # symbols
    "\ue0af": "+",
    "\ue070": "?",
    # letters in other sets
    "\ue022": "A",
    "\ue024": "_A",
    "\ue0b0": "E",
}


def _replace_char(char: str) -> str:
    code = ord(char)
    if code < LOWEST_REPLACEMENT:
        return char

    for first, last, offset in _RANGES:
        if first <= code <= last:
            return chr(code - offset)

    return _REPLACEMENTS.get(char, char)


def normalize(text: str) -> str:
    """Replace private-use glyphs with plain text and apply NFKD."""

    if text is None:
        raise InvalidArgument("text cannot be None")

    replaced = "".join(_replace_char(char) for char in text)
    return unicodedata.normalize("NFKD", replaced)


def word_count(text: str) -> int:
    """Count whitespace-separated words."""

    return len(text.split())
