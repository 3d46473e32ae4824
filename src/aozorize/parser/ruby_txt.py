"""Ruby-txt document parser: framing plus annotation parsing into Document IR."""

from __future__ import annotations

import re
from pathlib import Path

from aozorize.decoder import DEFAULT_ENCODING, read_text_resource
from .annotation_parser import AnnotationParser
from .base import Document
from .tables import MappingTables

# "底本：" normally; a few files put other characters before the colon.
_COLOPHON_RE = re.compile(r"^底本[^：:\r\n]{0,8}[：:]")
_SEPARATOR_RE = re.compile(r"^-{2,}\s*$")
_NOTATION_LEGEND = "【テキスト中に現れる記号について】"


class RubyTxtParser:
    """Parse an annotated ruby-txt file into the Document IR."""

    def __init__(self, tables: MappingTables, encoding: str = DEFAULT_ENCODING) -> None:
        self.encoding = encoding
        self._annotations = AnnotationParser(tables)

    def parse(
        self,
        input_path: Path,
        *,
        title: str | None = None,
        authors: list[str] | None = None,
        book_id: str | None = None,
    ) -> Document:
        input_path = Path(input_path)
        text = read_text_resource(input_path, self.encoding)
        document = self.parse_text(text, title=title, authors=authors, book_id=book_id)
        if not document.title:
            document.title = input_path.stem
        return document

    def parse_text(
        self,
        text: str,
        *,
        title: str | None = None,
        authors: list[str] | None = None,
        book_id: str | None = None,
    ) -> Document:
        text = text.lstrip("\ufeff")
        header, body, colophon = split_ruby_txt(text)

        # Without external metadata, the first header lines are title and author.
        if title is None:
            title = header[0] if header else ""
        if authors is None:
            authors = header[1:2]

        result = self._annotations.parse_text(body)
        return Document(
            title=title,
            authors=list(authors),
            segments=result.segments,
            book_id=book_id,
            header=header,
            colophon=colophon,
            warnings=result.warnings,
        )


def split_ruby_txt(text: str) -> tuple[list[str], str, list[str]]:
    """Split ruby-txt into header lines, body text and colophon lines.

    The header runs up to the first blank line. The colophon starts at the
    first ``底本：`` line. Hyphen-only lines separate body blocks, and the
    notation legend block is dropped.
    """
    lines = text.splitlines(keepends=True)

    header: list[str] = []
    index = 0
    while index < len(lines) and lines[index].strip():
        header.append(lines[index].rstrip("\r\n"))
        index += 1

    blocks: list[list[str]] = [[]]
    colophon: list[str] = []
    for position in range(index, len(lines)):
        line = lines[position]
        if _COLOPHON_RE.match(line):
            colophon = [item.rstrip("\r\n") for item in lines[position:]]
            break
        if _SEPARATOR_RE.match(line):
            if blocks[-1]:
                blocks.append([])
            continue
        blocks[-1].append(line)

    kept: list[str] = []
    for block in blocks:
        content = "".join(block).strip("\r\n")
        if not content.strip() or content.startswith(_NOTATION_LEGEND):
            continue
        kept.append(content)

    while colophon and not colophon[-1].strip():
        colophon.pop()

    return header, "\n".join(kept), colophon
