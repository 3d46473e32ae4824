"""Single-pass scanner turning annotated ruby-txt text into a segment tree.

The scanner walks the code-point stream once. Block-scoped constructs
(indentation, headings, emphasis, center alignment, warichu, captions) are
tracked on an explicit stack of open blocks, so nesting depth never turns
into Python call depth. Every grammar irregularity is recovered locally and
reported as a :class:`ParseWarning`; nothing here raises on bad notation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from .base import (
    ExternalChar,
    Image,
    Kunten,
    PageBreak,
    ParseResult,
    ParseWarning,
    PlainText,
    Ruby,
    Segment,
    UnknownAnnotation,
    WarningKind,
    is_block,
    text_content,
)
from .chars import trailing_run_start
from .directives import (
    BlockClose,
    BlockOpen,
    CorrectionNote,
    ImageDirective,
    KuntenDirective,
    LiteralDirective,
    PageBreakDirective,
    UnknownDirective,
    WrapPreceding,
    classify_directive,
)
from .tables import MappingTables

logger = logging.getLogger(__name__)

DIRECTIVE_OPEN = "［＃"
GAIJI_OPEN = "※［＃"
BRACKET_CLOSE = "］"
RUBY_BASE = "｜"
RUBY_OPEN = "《"
RUBY_CLOSE = "》"
ACCENT_OPEN = "〔"
ACCENT_CLOSE = "〕"

_NEWLINES = "\r\n"


class LexState(Enum):
    PLAIN_RUN = "plain_run"
    IN_DIRECTIVE_BRACKET = "in_directive_bracket"
    IN_RUBY_MARK = "in_ruby_mark"
    IN_GAIJI_MARK = "in_gaiji_mark"
    IN_WARICHU = "in_warichu"


@dataclass(slots=True)
class _OpenBlock:
    family: str
    segment: Segment
    raw: str
    offset: int
    line_scoped: bool = False
    page_scoped: bool = False
    # Line-scoped block whose line has ended while a block opened inside it was still open.
    expired: bool = False


class AnnotationParser:
    """Parse one document's text into ordered segments.

    The parser itself is stateless between calls; all per-document state
    lives in a throwaway :class:`_Scanner`, so one instance can be shared
    by concurrent workers.
    """

    def __init__(self, tables: MappingTables) -> None:
        self.tables = tables

    def parse_text(self, text: str) -> ParseResult:
        scanner = _Scanner(text, self.tables)
        scanner.run()
        return ParseResult(segments=scanner.root, warnings=scanner.warnings)


class _Scanner:
    def __init__(self, text: str, tables: MappingTables) -> None:
        self.text = text
        self.tables = tables
        self.pos = 0
        self.state = LexState.PLAIN_RUN
        self.root: list[Segment] = []
        self.stack: list[_OpenBlock] = []
        self.buffer: list[str] = []
        self.warnings: list[ParseWarning] = []
        # Text-bearing characters committed so far; Kunten positions index into this.
        self.emitted = 0
        self.last_char = ""
        # (stack depth, child index) recorded at an explicit ruby base marker.
        self.ruby_anchor: tuple[int, int] | None = None

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def run(self) -> None:
        text = self.text
        while self.pos < len(text):
            ch = text[self.pos]

            if ch == "※" and text.startswith(GAIJI_OPEN, self.pos):
                self._read_gaiji()
            elif ch == "［" and text.startswith(DIRECTIVE_OPEN, self.pos):
                self._read_directive()
            elif ch == RUBY_BASE:
                self._read_ruby_base_marker()
            elif ch == RUBY_OPEN:
                self._read_ruby()
            elif ch == ACCENT_OPEN:
                self._read_accent_decomposition()
            elif ch in _NEWLINES:
                self._read_newline()
            else:
                repeat = self.tables.match_repeat_mark(text, self.pos)
                if repeat is not None:
                    replacement, length = repeat
                    self._push_text(replacement)
                    self.pos += length
                else:
                    self._push_text(self.tables.normalize_char(ch))
                    self.pos += 1

        self._finish()

    def _finish(self) -> None:
        self._flush()
        unterminated: list[_OpenBlock] = []
        while self.stack:
            block = self.stack.pop()
            if not (block.line_scoped or block.page_scoped):
                unterminated.append(block)
        if unterminated:
            opened = ", ".join(block.raw for block in reversed(unterminated))
            self._warn(
                WarningKind.UNTERMINATED_BLOCK,
                f"Closed {len(unterminated)} block(s) left open at end of text: {opened}",
                unterminated[-1].offset,
            )
        _coalesce(self.root)

    # ------------------------------------------------------------------
    # Output helpers
    # ------------------------------------------------------------------

    @property
    def children(self) -> list[Segment]:
        if self.stack:
            return self.stack[-1].segment.children  # type: ignore[union-attr]
        return self.root

    def _plain_state(self) -> LexState:
        if self.stack and self.stack[-1].family == "warichu":
            return LexState.IN_WARICHU
        return LexState.PLAIN_RUN

    def _push_text(self, value: str) -> None:
        self.buffer.append(value)
        self.emitted += len(value)
        if value:
            self.last_char = value[-1]

    def _flush(self) -> None:
        if self.buffer:
            self.children.append(PlainText("".join(self.buffer)))
            self.buffer = []

    def _emit(self, segment: Segment) -> None:
        self._flush()
        self.children.append(segment)
        value = text_content(segment)
        self.emitted += len(value)
        if value:
            self.last_char = value[-1]

    def _drop_expired(self) -> None:
        while self.stack and self.stack[-1].expired:
            self.stack.pop()

    def _warn(self, kind: WarningKind, message: str, offset: int) -> None:
        logger.debug("%s at %d: %s", kind.value, offset, message)
        self.warnings.append(ParseWarning(kind=kind, message=message, offset=offset))

    def _find_bracket_close(self, start: int) -> int | None:
        """Index of the ``］`` closing a bracket whose payload starts at *start*.

        Nested ``［＃`` / ``※［＃`` brackets are skipped; the search stops at
        the end of the line.
        """
        text = self.text
        depth = 0
        i = start
        while i < len(text):
            ch = text[i]
            if ch in _NEWLINES:
                return None
            if ch == "［" and text.startswith(DIRECTIVE_OPEN, i):
                depth += 1
                i += len(DIRECTIVE_OPEN)
                continue
            if ch == BRACKET_CLOSE:
                if depth == 0:
                    return i
                depth -= 1
            i += 1
        return None

    def _find_on_line(self, target: str, start: int) -> int | None:
        text = self.text
        i = start
        while i < len(text):
            ch = text[i]
            if ch == target:
                return i
            if ch in _NEWLINES:
                return None
            i += 1
        return None

    def _resolve_inline(self, payload: str) -> str:
        """Flatten gaiji and repeat notation inside a payload to plain text."""
        out: list[str] = []
        i = 0
        while i < len(payload):
            if payload.startswith(GAIJI_OPEN, i):
                end = _find_close_in(payload, i + len(GAIJI_OPEN))
                if end is not None:
                    resolved = self.tables.resolve_gaiji(payload[i + len(GAIJI_OPEN):end])
                    out.append(resolved if resolved is not None else payload[i:end + 1])
                    i = end + 1
                    continue
            repeat = self.tables.match_repeat_mark(payload, i)
            if repeat is not None:
                out.append(repeat[0])
                i += repeat[1]
                continue
            out.append(self.tables.normalize_char(payload[i]))
            i += 1
        return "".join(out)

    # ------------------------------------------------------------------
    # Lexical states
    # ------------------------------------------------------------------

    def _read_newline(self) -> None:
        text = self.text
        length = 2 if text.startswith("\r\n", self.pos) else 1
        self._flush()
        while self.stack and self.stack[-1].line_scoped:
            self.stack.pop()
        # Line-scoped blocks buried under a multi-line block close as soon as it does.
        for block in self.stack:
            if block.line_scoped:
                block.expired = True
        self._push_text(text[self.pos:self.pos + length])
        self.pos += length
        self.ruby_anchor = None
        self.state = self._plain_state()

    def _read_gaiji(self) -> None:
        self.state = LexState.IN_GAIJI_MARK
        start = self.pos
        payload_start = start + len(GAIJI_OPEN)
        end = self._find_bracket_close(payload_start)
        if end is None:
            self._warn(WarningKind.UNTERMINATED_BRACKET, "External character notation without '］'", start)
            self._push_text("※")
            self.pos += 1
        else:
            raw = self.text[start:end + 1]
            resolved = self.tables.resolve_gaiji(self.text[payload_start:end])
            self._emit(ExternalChar(resolved=resolved, raw=raw))
            self.pos = end + 1
        self.state = self._plain_state()

    def _read_ruby_base_marker(self) -> None:
        if self._find_on_line(RUBY_OPEN, self.pos + 1) is None:
            self._push_text(RUBY_BASE)
        else:
            self._flush()
            self.ruby_anchor = (len(self.stack), len(self.children))
        self.pos += 1

    def _read_ruby(self) -> None:
        self.state = LexState.IN_RUBY_MARK
        start = self.pos
        end = self._find_on_line(RUBY_CLOSE, start + 1)
        if end is None:
            self._push_text(RUBY_OPEN)
            self.pos += 1
            self.state = self._plain_state()
            return

        raw = self.text[start:end + 1]
        reading = self._resolve_inline(self.text[start + 1:end])
        self.pos = end + 1
        self.state = self._plain_state()

        if not reading:
            self._push_text(raw)
            return

        self._flush()
        children = self.children
        anchor, self.ruby_anchor = self.ruby_anchor, None

        if anchor is not None and anchor[0] == len(self.stack) and anchor[1] < len(children):
            base_segments = children[anchor[1]:]
            del children[anchor[1]:]
            base = "".join(text_content(segment) for segment in base_segments)
            children.append(Ruby(base=base, reading=reading))
            return

        last = children[-1] if children else None
        if isinstance(last, PlainText):
            split = trailing_run_start(last.text)
            if split < len(last.text):
                head, base = last.text[:split], last.text[split:]
                children.pop()
                if head:
                    children.append(PlainText(head))
                children.append(Ruby(base=base, reading=reading))
                return
        elif isinstance(last, ExternalChar):
            children.pop()
            children.append(Ruby(base=text_content(last), reading=reading))
            return

        # Nothing to attach the reading to; keep it as written.
        self._push_text(raw)

    def _read_accent_decomposition(self) -> None:
        start = self.pos
        end = self._find_on_line(ACCENT_CLOSE, start + 1)
        inner = self.text[start + 1:end] if end is not None else ""
        if end is None or any(mark in inner for mark in (DIRECTIVE_OPEN, RUBY_OPEN, ACCENT_OPEN, RUBY_BASE)):
            self._push_text(ACCENT_OPEN)
            self.pos += 1
            return

        composed = self.tables.compose_accents(inner)
        if composed == inner:
            self._push_text(ACCENT_OPEN)
            self.pos += 1
            return

        self._push_text(composed)
        self.pos = end + 1

    def _read_directive(self) -> None:
        self.state = LexState.IN_DIRECTIVE_BRACKET
        start = self.pos
        payload_start = start + len(DIRECTIVE_OPEN)
        end = self._find_bracket_close(payload_start)
        if end is None:
            self._warn(WarningKind.UNTERMINATED_BRACKET, "Directive without '］' on the same line", start)
            self._push_text(DIRECTIVE_OPEN)
            self.pos = payload_start
            self.state = self._plain_state()
            return

        raw = self.text[start:end + 1]
        payload = self.text[payload_start:end]
        self.pos = end + 1
        self._flush()
        self._apply_directive(raw, payload, start)
        self.state = self._plain_state()

    # ------------------------------------------------------------------
    # Directive dispatch
    # ------------------------------------------------------------------

    def _apply_directive(self, raw: str, payload: str, offset: int) -> None:
        directive = classify_directive(payload)

        if isinstance(directive, PageBreakDirective):
            while self.stack and (self.stack[-1].page_scoped or self.stack[-1].line_scoped):
                self.stack.pop()
            self._emit(PageBreak(kind=directive.kind))
            return

        if isinstance(directive, BlockOpen):
            self.children.append(directive.segment)
            self.stack.append(
                _OpenBlock(
                    family=directive.family,
                    segment=directive.segment,
                    raw=raw,
                    offset=offset,
                    line_scoped=directive.line_scoped,
                    page_scoped=directive.page_scoped,
                )
            )
            return

        if isinstance(directive, BlockClose):
            # Line-scoped blocks have no explicit close; look past them.
            index = len(self.stack) - 1
            while index >= 0 and self.stack[index].line_scoped:
                index -= 1
            if index >= 0 and self.stack[index].family == directive.family:
                del self.stack[index:]
                self._drop_expired()
                return
            innermost = self.stack[-1].raw if self.stack else "nothing"
            self._warn(WarningKind.MISMATCHED_CLOSE, f"{raw} does not close {innermost}", offset)
            self._emit(UnknownAnnotation(raw=raw))
            return

        if isinstance(directive, WrapPreceding):
            target = self._resolve_inline(directive.target)
            if not _wrap_preceding(self.children, target, directive.segment):
                self._warn(WarningKind.UNMATCHED_TARGET, f"No preceding text matches {raw}", offset)
                self._emit(UnknownAnnotation(raw=raw))
            return

        if isinstance(directive, CorrectionNote):
            if directive.ruby:
                return
            original = self._resolve_inline(directive.original)
            if not _preceding_text(self.children, len(original)).endswith(original):
                self._push_text(original)
            return

        if isinstance(directive, KuntenDirective):
            if self.emitted == 0 or self.last_char in _NEWLINES:
                self._warn(WarningKind.UNMATCHED_TARGET, f"{raw} has no preceding character", offset)
                self._emit(UnknownAnnotation(raw=raw))
                return
            self._emit(
                Kunten(mark=directive.mark, attached_to=self.emitted - 1, value=directive.value, re=directive.re)
            )
            return

        if isinstance(directive, ImageDirective):
            self._emit(Image(path=directive.path, alt=directive.alt))
            return

        if isinstance(directive, LiteralDirective):
            self._push_text(directive.text)
            return

        if isinstance(directive, UnknownDirective):
            self._warn(WarningKind.UNRECOGNIZED_DIRECTIVE, f"Unrecognized directive {raw}", offset)
            self._emit(UnknownAnnotation(raw=raw))
            return

        raise TypeError(f"Unhandled directive: {directive!r}")


# ---------------------------------------------------------------------------
# Tree helpers
# ---------------------------------------------------------------------------

def _find_close_in(payload: str, start: int) -> int | None:
    depth = 0
    i = start
    while i < len(payload):
        if payload.startswith(DIRECTIVE_OPEN, i):
            depth += 1
            i += len(DIRECTIVE_OPEN)
            continue
        if payload[i] == BRACKET_CLOSE:
            if depth == 0:
                return i
            depth -= 1
        i += 1
    return None


def _preceding_text(children: list[Segment], length: int) -> str:
    """At least *length* trailing characters of text in *children*, if available."""
    parts: list[str] = []
    total = 0
    for child in reversed(children):
        if total >= length:
            break
        value = text_content(child)
        parts.append(value)
        total += len(value)
    return "".join(reversed(parts))


def _wrap_preceding(children: list[Segment], target: str, container: Segment) -> bool:
    """Move the trailing segments spelling *target* into *container*.

    A leading PlainText is split when the target starts inside it. Returns
    ``False`` and leaves *children* untouched when the text does not match.
    """
    if not target:
        return False

    collected = 0
    index = len(children)
    while index > 0 and collected < len(target):
        index -= 1
        collected += len(text_content(children[index]))

    if collected < len(target):
        return False

    tail = children[index:]
    joined = "".join(text_content(segment) for segment in tail)
    if not joined.endswith(target):
        return False

    excess = len(joined) - len(target)
    head: PlainText | None = None
    if excess:
        first = tail[0]
        if not isinstance(first, PlainText):
            return False
        head = PlainText(first.text[:excess])
        tail = [PlainText(first.text[excess:]), *tail[1:]]

    container.children.extend(tail)  # type: ignore[union-attr]
    del children[index:]
    if head is not None:
        children.append(head)
    children.append(container)
    return True


def _coalesce(segments: list[Segment]) -> None:
    """Merge adjacent PlainText segments throughout the tree, in place."""
    pending = [segments]
    while pending:
        items = pending.pop()
        merged: list[Segment] = []
        for item in items:
            if isinstance(item, PlainText):
                if not item.text:
                    continue
                if merged and isinstance(merged[-1], PlainText):
                    merged[-1] = PlainText(merged[-1].text + item.text)
                    continue
            elif is_block(item):
                pending.append(item.children)  # type: ignore[union-attr]
            merged.append(item)
        items[:] = merged
