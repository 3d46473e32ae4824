"""Serialise Document IR to JSON."""

from __future__ import annotations

import json
from typing import Any

from aozorize.parser.base import (
    Caption,
    CenterAlign,
    Document,
    Emphasis,
    ExternalChar,
    Heading,
    Image,
    IndentBlock,
    Kunten,
    PageBreak,
    ParseWarning,
    PlainText,
    Ruby,
    Segment,
    UnknownAnnotation,
    Warichu,
)


class JSONRenderer:
    """Render a Document as ``type``-tagged JSON objects."""

    def __init__(self, *, indent: int | None = None) -> None:
        self.indent = indent

    def render(self, document: Document) -> str:
        return json.dumps(document_to_dict(document), ensure_ascii=False, indent=self.indent)


def document_to_dict(document: Document) -> dict[str, Any]:
    return {
        "book_id": document.book_id,
        "title": document.title,
        "authors": list(document.authors),
        "header": list(document.header),
        "segments": [segment_to_dict(segment) for segment in document.segments],
        "colophon": list(document.colophon),
        "warnings": [_warning_to_dict(warning) for warning in document.warnings],
    }


def segment_to_dict(segment: Segment) -> dict[str, Any]:
    # Children are converted with an explicit stack so deep nesting is safe.
    root: dict[str, Any] = {}
    pending: list[tuple[Segment, dict[str, Any]]] = [(segment, root)]
    while pending:
        item, out = pending.pop()
        out.update(_fields(item))
        children = getattr(item, "children", None)
        if children is not None:
            out["children"] = [{} for _ in children]
            pending.extend(zip(children, out["children"]))
    return root


def _fields(segment: Segment) -> dict[str, Any]:
    if isinstance(segment, PlainText):
        return {"type": "text", "text": segment.text}
    if isinstance(segment, Ruby):
        return {"type": "ruby", "base": segment.base, "reading": segment.reading}
    if isinstance(segment, Emphasis):
        return {"type": "emphasis", "kind": segment.kind.value, "style": segment.style, "side": segment.side}
    if isinstance(segment, Heading):
        return {"type": "heading", "style": segment.style.value, "level": segment.level.value}
    if isinstance(segment, IndentBlock):
        return {
            "type": "indent",
            "level": segment.level,
            "style": segment.style.value,
            "wrap_level": segment.wrap_level,
        }
    if isinstance(segment, CenterAlign):
        return {"type": "center"}
    if isinstance(segment, Caption):
        return {"type": "caption"}
    if isinstance(segment, Warichu):
        return {"type": "warichu"}
    if isinstance(segment, PageBreak):
        return {"type": "page_break", "kind": segment.kind.value}
    if isinstance(segment, Kunten):
        return {
            "type": "kunten",
            "mark": segment.mark.value,
            "attached_to": segment.attached_to,
            "value": segment.value,
            "re": segment.re,
        }
    if isinstance(segment, ExternalChar):
        return {"type": "gaiji", "resolved": segment.resolved, "raw": segment.raw}
    if isinstance(segment, Image):
        return {"type": "image", "path": segment.path, "alt": segment.alt}
    if isinstance(segment, UnknownAnnotation):
        return {"type": "unknown", "raw": segment.raw}
    raise TypeError(f"Unknown segment type: {type(segment).__name__}")


def _warning_to_dict(warning: ParseWarning) -> dict[str, Any]:
    return {"kind": warning.kind.value, "message": warning.message, "offset": warning.offset}
