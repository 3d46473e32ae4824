"""Parse Aozora Bunko annotated ruby-txt into structured documents."""

__version__ = "0.1.0"
