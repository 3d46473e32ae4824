"""Document serializers."""

from .html_renderer import HTMLRenderer
from .json_renderer import JSONRenderer

__all__ = ["HTMLRenderer", "JSONRenderer"]
