"""Classification of ``［＃…］`` directive payloads.

``classify_directive`` only looks at the payload text; the scanner in
:mod:`aozorize.parser.annotation_parser` decides what each directive does
to the segment tree.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .base import (
    Caption,
    CenterAlign,
    Emphasis,
    EmphasisKind,
    Heading,
    HeadingLevel,
    HeadingStyle,
    IndentBlock,
    IndentStyle,
    KuntenMark,
    PageBreakKind,
    Warichu,
)


@dataclass(slots=True)
class PageBreakDirective:
    kind: PageBreakKind


@dataclass(slots=True)
class BlockOpen:
    family: str
    segment: Emphasis | Heading | IndentBlock | CenterAlign | Caption | Warichu
    line_scoped: bool = False
    page_scoped: bool = False


@dataclass(slots=True)
class BlockClose:
    family: str


@dataclass(slots=True)
class WrapPreceding:
    target: str
    segment: Emphasis | Heading | Caption


@dataclass(slots=True)
class CorrectionNote:
    original: str
    ruby: bool = False


@dataclass(slots=True)
class KuntenDirective:
    mark: KuntenMark
    value: str
    re: bool = False


@dataclass(slots=True)
class ImageDirective:
    path: str
    alt: str


@dataclass(slots=True)
class LiteralDirective:
    text: str


@dataclass(slots=True)
class UnknownDirective:
    pass


Directive = (
    PageBreakDirective
    | BlockOpen
    | BlockClose
    | WrapPreceding
    | CorrectionNote
    | KuntenDirective
    | ImageDirective
    | LiteralDirective
    | UnknownDirective
)

# ---------------------------------------------------------------------------
# Vocabulary
# ---------------------------------------------------------------------------

_PAGE_BREAKS = {
    "改丁": PageBreakKind.NEW_SIGNATURE,
    "改ページ": PageBreakKind.NEW_PAGE,
    "改見開き": PageBreakKind.NEW_SPREAD,
    "改段": PageBreakKind.NEW_COLUMN,
}

# https://www.aozora.gr.jp/annotation/emphasis.html
_EMPHASIS_STYLES = {
    "傍点": (EmphasisKind.DOT, "sesame_dot"),
    "白ゴマ傍点": (EmphasisKind.DOT, "white_sesame_dot"),
    "丸傍点": (EmphasisKind.DOT, "black_circle"),
    "白丸傍点": (EmphasisKind.DOT, "white_circle"),
    "黒三角傍点": (EmphasisKind.DOT, "black_triangle"),
    "白三角傍点": (EmphasisKind.DOT, "white_triangle"),
    "二重丸傍点": (EmphasisKind.DOT, "bullseye"),
    "蛇の目傍点": (EmphasisKind.DOT, "fisheye"),
    "ばつ傍点": (EmphasisKind.DOT, "saltire"),
    "傍線": (EmphasisKind.LINE, "solid"),
    "二重傍線": (EmphasisKind.LINE, "double"),
    "鎖線": (EmphasisKind.LINE, "dotted"),
    "破線": (EmphasisKind.LINE, "dashed"),
    "波線": (EmphasisKind.LINE, "wave"),
}

_FONT_STYLES = {
    "太字": EmphasisKind.BOLD,
    "斜体": EmphasisKind.ITALIC,
}

_HEADING_STYLES = {
    "": HeadingStyle.NORMAL,
    "同行": HeadingStyle.SAME_LINE,
    "窓": HeadingStyle.WINDOW,
}

_HEADING_LEVELS = {
    "大": HeadingLevel.LARGE,
    "中": HeadingLevel.MEDIUM,
    "小": HeadingLevel.SMALL,
}

_N = r"[0-9０-９]+"

_INDENT_LINE_RE = re.compile(rf"^(?P<level>{_N})字下げ$")
_INDENT_START_RE = re.compile(rf"^ここから(?P<level>{_N})字下げ$")
_INDENT_WRAP_START_RE = re.compile(rf"^ここから(?P<level>{_N})字下げ、折り返して(?P<wrap>{_N})字下げ$")
_INDENT_HANGING_START_RE = re.compile(rf"^ここから改行天付き、折り返して(?P<wrap>{_N})字下げ$")
_RAISE_LINE_RE = re.compile(rf"^地から(?P<level>{_N})字上げ$")
_RAISE_START_RE = re.compile(rf"^ここから地から(?P<level>{_N})字上げ$")

_HEADING_WRAP_RE = re.compile(r"^「(?P<target>.+)」は(?P<style>同行|窓)?(?P<level>大|中|小)見出し$")
_HEADING_START_RE = re.compile(r"^(?:ここから)?(?P<style>同行|窓)?(?P<level>大|中|小)見出し$")
_HEADING_END_RE = re.compile(r"^(?:ここで)?(?:同行|窓)?(?:大|中|小)?見出し終わり$")

_EMPHASIS_WRAP_RE = re.compile(r"^「(?P<target>.+)」(?P<left>の左)?に(?P<style>[^「」]*[点線])$")
_EMPHASIS_START_RE = re.compile(r"^(?P<left>左に)?(?P<style>.*[点線])$")
_EMPHASIS_END_RE = re.compile(r"^(?P<left>左に)?(?P<style>.*[点線])終わり$")

_FONT_WRAP_RE = re.compile(r"^「(?P<target>.+)」は(?P<style>太字|斜体)$")
_FONT_START_RE = re.compile(r"^(?:ここから)?(?P<style>太字|斜体)$")
_FONT_END_RE = re.compile(r"^(?:ここで)?(?P<style>太字|斜体)終わり$")

_CAPTION_WRAP_RE = re.compile(r"^「(?P<target>.+)」はキャプション$")

_CORRECTION_RE = re.compile(r"^(?P<ruby>ルビの)?「(?P<target>.+?)」(?:はママ|に「ママ」の注記)$")
_CORRECTION_SOURCE_RE = re.compile(r"^(?P<ruby>ルビの)?「(?P<target>.+?)」は底本では「.*」$")

_KAERITEN_RE = re.compile(
    r"^(?P<ichini>[一二三四])?(?P<jouge>[上中下])?(?P<kouotsu>[甲乙丙丁])?(?P<re>レ)?$"
)
_OKURIGANA_RE = re.compile(r"^（(?P<kana>.+)）$")

_IMAGE_RE = re.compile(
    r"^(?P<alt>.*)（(?P<path>[^（）、]+\.(?:png|jpe?g|gif))(?:、横[0-9０-９]+×縦[0-9０-９]+)?）入る$"
)


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def classify_directive(payload: str) -> Directive:
    """Classify the text between ``［＃`` and ``］``."""
    if not payload:
        # ［＃］ appears verbatim in notation legends.
        return LiteralDirective(text="［＃］")

    if payload in _PAGE_BREAKS:
        return PageBreakDirective(kind=_PAGE_BREAKS[payload])

    if payload.startswith("「") or payload.startswith("ルビの「"):
        directive = _classify_quoted(payload)
        if directive is not None:
            return directive

    return (
        _classify_layout(payload)
        or _classify_heading(payload)
        or _classify_emphasis(payload)
        or _classify_kunten(payload)
        or _classify_misc(payload)
        or UnknownDirective()
    )


def _classify_quoted(payload: str) -> Directive | None:
    m = _CORRECTION_RE.match(payload) or _CORRECTION_SOURCE_RE.match(payload)
    if m:
        return CorrectionNote(original=m.group("target"), ruby=bool(m.group("ruby")))

    m = _HEADING_WRAP_RE.match(payload)
    if m:
        heading = Heading(
            style=_HEADING_STYLES[m.group("style") or ""],
            level=_HEADING_LEVELS[m.group("level")],
        )
        return WrapPreceding(target=m.group("target"), segment=heading)

    m = _EMPHASIS_WRAP_RE.match(payload)
    if m and m.group("style") in _EMPHASIS_STYLES:
        kind, style = _EMPHASIS_STYLES[m.group("style")]
        side = "left" if m.group("left") else "right"
        return WrapPreceding(target=m.group("target"), segment=Emphasis(kind=kind, style=style, side=side))

    m = _FONT_WRAP_RE.match(payload)
    if m:
        return WrapPreceding(target=m.group("target"), segment=Emphasis(kind=_FONT_STYLES[m.group("style")]))

    m = _CAPTION_WRAP_RE.match(payload)
    if m:
        return WrapPreceding(target=m.group("target"), segment=Caption())

    return None


def _classify_layout(payload: str) -> Directive | None:
    m = _INDENT_LINE_RE.match(payload)
    if m:
        block = IndentBlock(level=int(m.group("level")))
        return BlockOpen(family="indent", segment=block, line_scoped=True)

    m = _INDENT_START_RE.match(payload)
    if m:
        return BlockOpen(family="indent", segment=IndentBlock(level=int(m.group("level"))))

    m = _INDENT_WRAP_START_RE.match(payload)
    if m:
        level, wrap = int(m.group("level")), int(m.group("wrap"))
        block = IndentBlock(level=level, wrap_level=wrap if wrap != level else None)
        return BlockOpen(family="indent", segment=block)

    m = _INDENT_HANGING_START_RE.match(payload)
    if m:
        return BlockOpen(family="indent", segment=IndentBlock(level=0, wrap_level=int(m.group("wrap"))))

    if payload == "ここで字下げ終わり":
        return BlockClose(family="indent")

    if payload == "地付き":
        block = IndentBlock(level=0, style=IndentStyle.CENTERED_BOTTOM)
        return BlockOpen(family="bottom", segment=block, line_scoped=True)

    if payload == "ここから地付き":
        return BlockOpen(family="bottom", segment=IndentBlock(level=0, style=IndentStyle.CENTERED_BOTTOM))

    if payload == "ここで地付き終わり":
        return BlockClose(family="bottom")

    m = _RAISE_LINE_RE.match(payload)
    if m:
        block = IndentBlock(level=int(m.group("level")), style=IndentStyle.CENTERED_ALIGN)
        return BlockOpen(family="raise", segment=block, line_scoped=True)

    m = _RAISE_START_RE.match(payload)
    if m:
        block = IndentBlock(level=int(m.group("level")), style=IndentStyle.CENTERED_ALIGN)
        return BlockOpen(family="raise", segment=block)

    if payload == "ここで字上げ終わり":
        return BlockClose(family="raise")

    if payload == "ページの左右中央":
        return BlockOpen(family="center", segment=CenterAlign(), page_scoped=True)

    return None


def _classify_heading(payload: str) -> Directive | None:
    m = _HEADING_START_RE.match(payload)
    if m:
        heading = Heading(
            style=_HEADING_STYLES[m.group("style") or ""],
            level=_HEADING_LEVELS[m.group("level")],
        )
        return BlockOpen(family="heading", segment=heading)

    if _HEADING_END_RE.match(payload):
        return BlockClose(family="heading")

    return None


def _classify_emphasis(payload: str) -> Directive | None:
    m = _FONT_START_RE.match(payload)
    if m:
        kind = _FONT_STYLES[m.group("style")]
        return BlockOpen(family=kind.value, segment=Emphasis(kind=kind))

    m = _FONT_END_RE.match(payload)
    if m:
        return BlockClose(family=_FONT_STYLES[m.group("style")].value)

    m = _EMPHASIS_END_RE.match(payload)
    if m and m.group("style") in _EMPHASIS_STYLES:
        kind, style = _EMPHASIS_STYLES[m.group("style")]
        side = "left" if m.group("left") else "right"
        return BlockClose(family=f"{kind.value}:{style}:{side}")

    m = _EMPHASIS_START_RE.match(payload)
    if m and m.group("style") in _EMPHASIS_STYLES:
        kind, style = _EMPHASIS_STYLES[m.group("style")]
        side = "left" if m.group("left") else "right"
        segment = Emphasis(kind=kind, style=style, side=side)
        return BlockOpen(family=f"{kind.value}:{style}:{side}", segment=segment)

    return None


def _classify_kunten(payload: str) -> Directive | None:
    m = _KAERITEN_RE.match(payload)
    if m:
        has_re = bool(m.group("re"))
        if m.group("ichini"):
            mark = KuntenMark.ONE_TWO
        elif m.group("jouge"):
            mark = KuntenMark.UPPER_LOWER
        elif m.group("kouotsu"):
            mark = KuntenMark.FIRST_SECOND
        else:
            mark = KuntenMark.RE
        return KuntenDirective(mark=mark, value=payload, re=has_re)

    m = _OKURIGANA_RE.match(payload)
    if m:
        return KuntenDirective(mark=KuntenMark.OKURI, value=m.group("kana"))

    return None


def _classify_misc(payload: str) -> Directive | None:
    if payload == "割り注":
        return BlockOpen(family="warichu", segment=Warichu())

    if payload == "割り注終わり":
        return BlockClose(family="warichu")

    if payload == "キャプション":
        return BlockOpen(family="caption", segment=Caption())

    if payload == "キャプション終わり":
        return BlockClose(family="caption")

    m = _IMAGE_RE.match(payload)
    if m:
        return ImageDirective(path=m.group("path"), alt=m.group("alt"))

    return None
