"""Parser package."""

from .annotation_parser import AnnotationParser
from .base import (
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
    ParseResult,
    ParseWarning,
    PlainText,
    Ruby,
    UnknownAnnotation,
    Warichu,
)
from .ruby_txt import RubyTxtParser
from .tables import MappingTables, build_tables

__all__ = [
    "AnnotationParser",
    "Caption",
    "CenterAlign",
    "Document",
    "Emphasis",
    "ExternalChar",
    "Heading",
    "Image",
    "IndentBlock",
    "Kunten",
    "MappingTables",
    "PageBreak",
    "ParseResult",
    "ParseWarning",
    "PlainText",
    "Ruby",
    "RubyTxtParser",
    "UnknownAnnotation",
    "Warichu",
    "build_tables",
]
