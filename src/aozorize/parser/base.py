"""Core intermediate representation (IR) for parsed ruby-txt documents."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class EmphasisKind(str, Enum):
    DOT = "dot"
    LINE = "line"
    BOLD = "bold"
    ITALIC = "italic"


class HeadingStyle(str, Enum):
    NORMAL = "normal"
    SAME_LINE = "same_line"
    WINDOW = "window"


class HeadingLevel(str, Enum):
    LARGE = "large"
    MEDIUM = "medium"
    SMALL = "small"


class IndentStyle(str, Enum):
    PLAIN = "plain"
    CENTERED_BOTTOM = "centered_bottom"
    CENTERED_ALIGN = "centered_align"


class PageBreakKind(str, Enum):
    NEW_SIGNATURE = "new_signature"
    NEW_PAGE = "new_page"
    NEW_SPREAD = "new_spread"
    NEW_COLUMN = "new_column"


class KuntenMark(str, Enum):
    ONE_TWO = "one_two"
    UPPER_LOWER = "upper_lower"
    FIRST_SECOND = "first_second"
    RE = "re"
    OKURI = "okuri"


class WarningKind(str, Enum):
    UNTERMINATED_BLOCK = "unterminated_block"
    MISMATCHED_CLOSE = "mismatched_close"
    UNRECOGNIZED_DIRECTIVE = "unrecognized_directive"
    UNTERMINATED_BRACKET = "unterminated_bracket"
    UNMATCHED_TARGET = "unmatched_target"


@dataclass(slots=True)
class PlainText:
    text: str


@dataclass(slots=True)
class Ruby:
    base: str
    reading: str


@dataclass(slots=True)
class Emphasis:
    kind: EmphasisKind
    children: list[Segment] = field(default_factory=list)
    style: str | None = None
    side: str = "right"


@dataclass(slots=True)
class Heading:
    style: HeadingStyle
    children: list[Segment] = field(default_factory=list)
    level: HeadingLevel = HeadingLevel.MEDIUM


@dataclass(slots=True)
class IndentBlock:
    level: int
    style: IndentStyle = IndentStyle.PLAIN
    children: list[Segment] = field(default_factory=list)
    wrap_level: int | None = None


@dataclass(slots=True)
class CenterAlign:
    children: list[Segment] = field(default_factory=list)


@dataclass(slots=True)
class Caption:
    children: list[Segment] = field(default_factory=list)


@dataclass(slots=True)
class PageBreak:
    kind: PageBreakKind


@dataclass(slots=True)
class Kunten:
    mark: KuntenMark
    attached_to: int
    value: str = ""
    re: bool = False


@dataclass(slots=True)
class Warichu:
    children: list[Segment] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "".join(text_content(child) for child in self.children)


@dataclass(slots=True)
class ExternalChar:
    resolved: str | None
    raw: str


@dataclass(slots=True)
class Image:
    path: str
    alt: str = ""


@dataclass(slots=True)
class UnknownAnnotation:
    raw: str


Segment = (
    PlainText
    | Ruby
    | Emphasis
    | Heading
    | IndentBlock
    | CenterAlign
    | Caption
    | PageBreak
    | Kunten
    | Warichu
    | ExternalChar
    | Image
    | UnknownAnnotation
)

BlockSegment = Emphasis | Heading | IndentBlock | CenterAlign | Caption | Warichu

_BLOCK_TYPES = (Emphasis, Heading, IndentBlock, CenterAlign, Caption, Warichu)


@dataclass(slots=True)
class ParseWarning:
    kind: WarningKind
    message: str
    offset: int = 0


@dataclass(slots=True)
class ParseResult:
    segments: list[Segment] = field(default_factory=list)
    warnings: list[ParseWarning] = field(default_factory=list)


@dataclass(slots=True)
class Document:
    title: str
    authors: list[str] = field(default_factory=list)
    segments: list[Segment] = field(default_factory=list)
    book_id: str | None = None
    header: list[str] = field(default_factory=list)
    colophon: list[str] = field(default_factory=list)
    warnings: list[ParseWarning] = field(default_factory=list)

    def text(self) -> str:
        """Return the text-bearing content of all segments in reading order."""
        return "".join(text_content(segment) for segment in self.segments)


def text_content(segment: Segment) -> str:
    """Text a segment contributes to the reading order.

    Content-free directives and unrecognised annotations contribute nothing.
    """
    if isinstance(segment, PlainText):
        return segment.text
    if isinstance(segment, Ruby):
        return segment.base
    if isinstance(segment, ExternalChar):
        return segment.resolved if segment.resolved is not None else segment.raw
    if isinstance(segment, _BLOCK_TYPES):
        # Iterative walk so deep nesting never recurses.
        parts: list[str] = []
        pending: list[Segment] = list(reversed(segment.children))
        while pending:
            item = pending.pop()
            if isinstance(item, _BLOCK_TYPES):
                pending.extend(reversed(item.children))
            else:
                parts.append(text_content(item))
        return "".join(parts)
    if isinstance(segment, (PageBreak, Kunten, Image, UnknownAnnotation)):
        return ""
    raise TypeError(f"Unknown segment type: {type(segment).__name__}")


def is_block(segment: Segment) -> bool:
    return isinstance(segment, _BLOCK_TYPES)

