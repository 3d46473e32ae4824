"""Render Document IR into a self-contained vertical-writing HTML preview."""

from __future__ import annotations

import html
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from aozorize.parser.base import (
    Caption,
    CenterAlign,
    Document,
    Emphasis,
    EmphasisKind,
    ExternalChar,
    Heading,
    HeadingLevel,
    HeadingStyle,
    Image,
    IndentBlock,
    IndentStyle,
    Kunten,
    KuntenMark,
    PageBreak,
    PlainText,
    Ruby,
    Segment,
    UnknownAnnotation,
    Warichu,
)

_HEADING_TAGS = {
    HeadingLevel.LARGE: "h2",
    HeadingLevel.MEDIUM: "h3",
    HeadingLevel.SMALL: "h4",
}


class HTMLRenderer:
    """Render parsed IR into the preview template."""

    def __init__(self, template_path: Path | None = None) -> None:
        if template_path is None:
            template_path = Path(__file__).resolve().parent.parent / "template" / "aozora.html"

        loader = FileSystemLoader(str(template_path.parent))
        self._env = Environment(loader=loader, autoescape=True, trim_blocks=True, lstrip_blocks=True)
        self._template_name = template_path.name

    def render(
        self,
        document: Document,
        *,
        title_override: str | None = None,
        dark_mode: bool = False,
        vertical: bool = True,
    ) -> str:
        page_title = title_override or document.title or "Untitled"

        template = self._env.get_template(self._template_name)
        return template.render(
            page_title=page_title,
            authors=document.authors,
            book_id=document.book_id,
            body_html=render_segments(document.segments),
            colophon=document.colophon,
            warnings=[{"kind": w.kind.value, "message": w.message} for w in document.warnings],
            dark_mode=dark_mode,
            vertical=vertical,
        )


def render_segments(segments: list[Segment]) -> str:
    """Render a segment list to an HTML fragment.

    Blocks are expanded with an explicit stack of pending items; a pending
    ``str`` is an already-rendered closing tag.
    """
    parts: list[str] = []
    pending: list[Segment | str] = list(reversed(segments))
    while pending:
        item = pending.pop()
        if isinstance(item, str):
            parts.append(item)
            continue
        opening = _render_open(item)
        if opening is None:
            parts.append(_render_leaf(item))
            continue
        open_tag, close_tag = opening
        parts.append(open_tag)
        pending.append(close_tag)
        pending.extend(reversed(item.children))
    return "".join(parts)


def _render_open(segment: Segment) -> tuple[str, str] | None:
    if isinstance(segment, Emphasis):
        if segment.kind is EmphasisKind.BOLD:
            return '<strong class="aozora-bold">', "</strong>"
        if segment.kind is EmphasisKind.ITALIC:
            return '<em class="aozora-italic">', "</em>"
        classes = f"aozora-{segment.kind.value} aozora-{segment.kind.value}-{segment.style} aozora-side-{segment.side}"
        return f'<span class="{html.escape(classes)}">', "</span>"

    if isinstance(segment, Heading):
        css = f"aozora-heading aozora-heading-{segment.level.value}"
        if segment.style is HeadingStyle.NORMAL:
            tag = _HEADING_TAGS[segment.level]
            return f'<{tag} class="{css}">', f"</{tag}>"
        return f'<span class="{css} aozora-heading-{segment.style.value}">', "</span>"

    if isinstance(segment, IndentBlock):
        return f'<div class="aozora-indent" style="{_indent_style(segment)}">', "</div>"

    if isinstance(segment, CenterAlign):
        return '<div class="aozora-page-center">', "</div>"

    if isinstance(segment, Caption):
        return '<span class="aozora-caption">', "</span>"

    if isinstance(segment, Warichu):
        return '<span class="aozora-warichu">（', "）</span>"

    return None


def _render_leaf(segment: Segment) -> str:
    if isinstance(segment, PlainText):
        return html.escape(segment.text).replace("\n", "<br />\n")

    if isinstance(segment, Ruby):
        return f"<ruby>{html.escape(segment.base)}<rp>（</rp><rt>{html.escape(segment.reading)}</rt><rp>）</rp></ruby>"

    if isinstance(segment, ExternalChar):
        if segment.resolved is None:
            return f'<span class="aozora-gaiji-unresolved">{html.escape(segment.raw)}</span>'
        return f'<span class="aozora-gaiji" title="{html.escape(segment.raw)}">{html.escape(segment.resolved)}</span>'

    if isinstance(segment, PageBreak):
        return f'<hr class="aozora-page-break aozora-{segment.kind.value}" />'

    if isinstance(segment, Kunten):
        if segment.mark is KuntenMark.OKURI:
            return f'<sup class="aozora-okurigana">{html.escape(segment.value)}</sup>'
        return f'<sub class="aozora-kaeriten">{html.escape(segment.value)}</sub>'

    if isinstance(segment, Image):
        alt = html.escape(segment.alt or segment.path)
        return f'<img class="aozora-image" src="{html.escape(segment.path)}" alt="{alt}" loading="lazy" />'

    if isinstance(segment, UnknownAnnotation):
        return f'<span class="aozora-annotation">{html.escape(segment.raw)}</span>'

    raise TypeError(f"Unknown segment type: {type(segment).__name__}")


def _indent_style(block: IndentBlock) -> str:
    if block.style is IndentStyle.CENTERED_BOTTOM:
        return "text-align: end;"
    if block.style is IndentStyle.CENTERED_ALIGN:
        return f"text-align: end; padding-inline-end: {block.level}em;"

    style = f"padding-inline-start: {block.level}em;"
    if block.wrap_level is not None:
        # First line starts at ``level``, continuation lines at ``wrap_level``.
        style = f"padding-inline-start: {block.wrap_level}em; text-indent: {block.level - block.wrap_level}em;"
    return style
