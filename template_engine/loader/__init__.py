"""Template loading and caching."""

from .cache import TemplateCache
from .loader import TemplateFactory, TemplateLoader
from .readers import FileTextReader, TextReader

__all__ = [
    "FileTextReader",
    "TemplateCache",
    "TemplateFactory",
    "TemplateLoader",
    "TextReader",
]
