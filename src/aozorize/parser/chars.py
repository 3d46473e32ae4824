"""Character classes used for implicit ruby base detection."""

from __future__ import annotations

from enum import Enum

# Treated as kanji when delimiting a ruby base.
_KANJI_LIKE = frozenset("仝々〆〇ヶ")


class CharType(Enum):
    LATIN = "latin"
    HIRAGANA = "hiragana"
    KATAKANA = "katakana"
    KANJI = "kanji"
    SPACE = "space"
    OTHER = "other"


def char_type(ch: str) -> CharType:
    u = ord(ch)
    if 0x41 <= u <= 0x5A or 0x61 <= u <= 0x7A:
        return CharType.LATIN
    if 0xC0 <= u <= 0xFF and u not in (0xD7, 0xF7):
        return CharType.LATIN
    if ch in _KANJI_LIKE:
        return CharType.KANJI
    if 0x3040 <= u <= 0x309F:
        return CharType.HIRAGANA
    if 0x30A0 <= u <= 0x30FF:
        return CharType.KATAKANA
    if 0x3400 <= u <= 0x4DBF or 0x4E00 <= u <= 0x9FFF or 0xF900 <= u <= 0xFAFF or 0x20000 <= u <= 0x3FFFF:
        return CharType.KANJI
    if ch.isspace():
        return CharType.SPACE
    return CharType.OTHER


def trailing_run_start(text: str) -> int:
    """Index where the trailing run of same-class characters begins.

    Returns ``len(text)`` when the text is empty or ends in whitespace.
    """
    if not text:
        return 0
    kind = char_type(text[-1])
    if kind is CharType.SPACE:
        return len(text)
    start = len(text)
    while start > 0 and char_type(text[start - 1]) is kind:
        start -= 1
    return start
