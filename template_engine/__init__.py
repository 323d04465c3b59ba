"""
Template engine package.

Parsed template documents, writers that render them, and a loader/cache pair
that serves templates by name from a directory. See README.md for usage.
"""

from .__version__ import __version__
from .document import Template
from .errors import (
    MalformedTemplateError,
    TemplateEngineError,
    TemplateNotFoundError,
    TemplateReadError,
)
from .loader import TemplateCache, TemplateLoader
from .utils.cache import KeyedCache
from .writer import TemplateWriter

__all__ = [
    "__version__",
    "KeyedCache",
    "MalformedTemplateError",
    "Template",
    "TemplateCache",
    "TemplateEngineError",
    "TemplateLoader",
    "TemplateNotFoundError",
    "TemplateReadError",
    "TemplateWriter",
]
