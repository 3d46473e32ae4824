"""Read-only character mapping tables used while parsing.

The tables are built once by :func:`build_tables` and handed to every
parser instance; nothing mutates them afterwards.
"""

from __future__ import annotations

import logging
import re
import unicodedata
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Static notation tables
# ---------------------------------------------------------------------------

# https://www.aozora.gr.jp/accent_separation.html
_ACCENTS = {
    "a`": "à", "a'": "á", "a^": "â", "a~": "ã", "a:": "ä", "a&": "å", "a_": "ā",
    "c,": "ç", "c'": "ć", "c^": "ĉ",
    "d/": "đ",
    "e`": "è", "e'": "é", "e^": "ê", "e:": "ë", "e_": "ē", "e~": "ẽ",
    "g^": "ĝ",
    "h^": "ĥ", "h/": "ħ",
    "i`": "ì", "i'": "í", "i^": "î", "i:": "ï", "i_": "ī", "i/": "ɨ", "i~": "ĩ",
    "j^": "ĵ",
    "l/": "ł", "l'": "ĺ",
    "m'": "ḿ",
    "n`": "ǹ", "n~": "ñ", "n'": "ń",
    "o`": "ò", "o'": "ó", "o^": "ô", "o~": "õ", "o:": "ö", "o/": "ø", "o_": "ō",
    "r'": "ŕ",
    "s'": "ś", "s,": "ş", "s^": "ŝ", "s&": "ß",
    "t,": "ţ",
    "u`": "ù", "u'": "ú", "u^": "û", "u:": "ü", "u_": "ū", "u&": "ů", "u~": "ũ",
    "y'": "ý", "y:": "ÿ",
    "z'": "ź",
    "A`": "À", "A'": "Á", "A^": "Â", "A~": "Ã", "A:": "Ä", "A&": "Å", "A_": "Ā",
    "C,": "Ç", "C'": "Ć", "C^": "Ĉ",
    "D/": "Đ",
    "E`": "È", "E'": "É", "E^": "Ê", "E:": "Ë", "E_": "Ē", "E~": "Ẽ",
    "G^": "Ĝ",
    "H^": "Ĥ",
    "I`": "Ì", "I'": "Í", "I^": "Î", "I:": "Ï", "I_": "Ī", "I~": "Ĩ",
    "J^": "Ĵ",
    "L/": "Ł", "L'": "Ĺ",
    "M'": "Ḿ",
    "N`": "Ǹ", "N~": "Ñ", "N'": "Ń",
    "O`": "Ò", "O'": "Ó", "O^": "Ô", "O~": "Õ", "O:": "Ö", "O/": "Ø", "O_": "Ō",
    "R'": "Ŕ",
    "S'": "Ś", "S,": "Ş", "S^": "Ŝ",
    "T,": "Ţ",
    "U`": "Ù", "U'": "Ú", "U^": "Û", "U:": "Ü", "U_": "Ū", "U&": "Ů", "U~": "Ũ",
    "Y'": "Ý",
    "Z'": "Ź",
    "ae&": "æ", "AE&": "Æ", "oe&": "œ", "OE&": "Œ",
}

_REPEAT_MARKS = {
    "／″＼": "〲",
    "／＼": "〱",
}

# Gaiji whose notation carries only a description and no code reference.
_GAIJI_DESCRIPTIONS = {
    "二の字点": "〻",
    "ます記号": "〼",
    "歌記号": "〽",
    "コト": "ヿ",
    "より": "ゟ",
    "くの字点": "〳",
    "濁点付きくの字点": "〴",
    "くの字点の下半分": "〵",
    "感嘆符二つ": "‼",
    "疑問符感嘆符": "⁈",
    "感嘆符疑問符": "⁉",
    "疑問符二つ": "⁇",
    "ローマ数字1": "Ⅰ",
    "ローマ数字2": "Ⅱ",
    "ローマ数字3": "Ⅲ",
    "ローマ数字4": "Ⅳ",
    "ローマ数字5": "Ⅴ",
}

_ROMAJI_KANA = {
    "A": "あ", "I": "い", "U": "う", "E": "え", "O": "お",
    "KA": "か", "KI": "き", "KU": "く", "KE": "け", "KO": "こ",
    "SA": "さ", "SI": "し", "SU": "す", "SE": "せ", "SO": "そ",
    "TA": "た", "TI": "ち", "TU": "つ", "TE": "て", "TO": "と",
    "NA": "な", "NI": "に", "NU": "ぬ", "NE": "ね", "NO": "の",
    "HA": "は", "HI": "ひ", "HU": "ふ", "HE": "へ", "HO": "ほ",
    "MA": "ま", "MI": "み", "MU": "む", "ME": "め", "MO": "も",
    "YA": "や", "YU": "ゆ", "YE": "え", "YO": "よ",
    "RA": "ら", "RI": "り", "RU": "る", "RE": "れ", "RO": "ろ",
    "WA": "わ", "WI": "ゐ", "WE": "ゑ", "WO": "を",
    "N": "ん",
}

_HENTAIGANA_NAME_RE = re.compile(r"^HENTAIGANA LETTER (?P<romaji>[A-Z]+)(?:-[A-Z]+)*-\d+$")

_VARIANT_KANA_RE = re.compile(r"^変体仮名(?P<kana>.)")
_UNICODE_REF_RE = re.compile(r"U\+(?P<hex>[0-9A-Fa-f]{4,6})")
_JIS_REF_RE = re.compile(
    r"(?:第[3-4３-４]水準)?(?P<plane>[0-9０-９]+)-(?P<row>[0-9０-９]+)-(?P<cell>[0-9０-９]+)$"
)


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class MappingTables:
    """Immutable lookup tables shared by every parse call."""

    jis: Mapping[tuple[int, int, int], str]
    descriptions: Mapping[str, str]
    variant_kana: Mapping[str, str]
    accents: Mapping[str, str]
    repeat_marks: Mapping[str, str]

    def resolve_gaiji(self, payload: str) -> str | None:
        """Resolve the inside of a ``※［＃…］`` notation, or ``None``.

        Lookup order: variant kana, explicit code point, description,
        JIS X 0213 plane-row-cell reference.
        """
        m = _VARIANT_KANA_RE.match(payload)
        if m:
            return m.group("kana")

        m = _UNICODE_REF_RE.search(payload)
        if m:
            code = int(m.group("hex"), 16)
            if code <= 0x10FFFF and not 0xD800 <= code <= 0xDFFF:
                return chr(code)

        description = _gaiji_description(payload)
        if description in self.descriptions:
            return self.descriptions[description]
        if description.isascii() and description:
            try:
                return unicodedata.lookup(description)
            except KeyError:
                pass

        m = _JIS_REF_RE.search(payload)
        if m:
            key = (int(m.group("plane")), int(m.group("row")), int(m.group("cell")))
            return self.jis.get(key)

        return None

    def normalize_char(self, ch: str) -> str:
        return self.variant_kana.get(ch, ch)

    def match_repeat_mark(self, text: str, pos: int) -> tuple[str, int] | None:
        """Return ``(replacement, length)`` for a repeat mark starting at *pos*."""
        for notation, replacement in self.repeat_marks.items():
            if text.startswith(notation, pos):
                return replacement, len(notation)
        return None

    def compose_accents(self, text: str) -> str:
        """Compose accent notation such as ``e'`` into precomposed letters."""
        out: list[str] = []
        i = 0
        while i < len(text):
            pair = text[i:i + 2]
            if len(pair) == 2 and pair in self.accents:
                out.append(self.accents[pair])
                i += 2
                continue
            triple = text[i:i + 3]
            if len(triple) == 3 and triple in self.accents:
                out.append(self.accents[triple])
                i += 3
                continue
            out.append(text[i])
            i += 1
        return "".join(out)


def build_tables() -> MappingTables:
    """Construct the process-wide tables. Call once at start-up."""
    jis = _build_jis_table()
    variant_kana = _build_variant_kana_table()
    logger.debug("Built mapping tables: %d JIS cells, %d variant kana", len(jis), len(variant_kana))
    return MappingTables(
        jis=MappingProxyType(jis),
        descriptions=MappingProxyType(dict(_GAIJI_DESCRIPTIONS)),
        variant_kana=MappingProxyType(variant_kana),
        accents=MappingProxyType(dict(_ACCENTS)),
        repeat_marks=MappingProxyType(dict(_REPEAT_MARKS)),
    )


def _build_jis_table() -> dict[tuple[int, int, int], str]:
    """Map JIS X 0213 (plane, row, cell) to text via the EUC-JIS-2004 codec."""
    table: dict[tuple[int, int, int], str] = {}
    for plane, prefix in ((1, b""), (2, b"\x8f")):
        for row in range(1, 95):
            for cell in range(1, 95):
                code = prefix + bytes((0xA0 + row, 0xA0 + cell))
                try:
                    table[(plane, row, cell)] = code.decode("euc_jis_2004")
                except UnicodeDecodeError:
                    continue
    return table


def _build_variant_kana_table() -> dict[str, str]:
    table = {"\U0001b000": "エ", "\U0001b001": "え"}
    for code in range(0x1B002, 0x1B120):
        ch = chr(code)
        m = _HENTAIGANA_NAME_RE.match(unicodedata.name(ch, ""))
        if not m:
            continue
        kana = _ROMAJI_KANA.get(m.group("romaji"))
        if kana:
            table[ch] = kana
    return table


def _gaiji_description(payload: str) -> str:
    """Return the descriptive part of a gaiji payload (before the first 、)."""
    head = payload.split("、", 1)[0].strip()
    if head.startswith("「") and head.endswith("」"):
        head = head[1:-1]
    return head
