"""Parsed template documents and their building blocks."""

from .blocks import TextBlock, TextBlockType
from .template import MAIN_SECTION, Template

__all__ = ["MAIN_SECTION", "Template", "TextBlock", "TextBlockType"]
