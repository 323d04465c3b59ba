"""Text block primitives produced by the template parser."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TextBlockType(Enum):
    """Kinds of blocks a parsed template is made of."""

    TEXT = "text"  # Plain text between placeholders
    FIELD = "field"  # @@NAME@@ placeholder
    SECTION_TAG = "section_tag"  # Opening or closing section comment, with its line whitespace
    SECTION = "section"  # Reference to a child section template
    LITERAL = "literal"  # Verbatim body of a **NAME** section


@dataclass(frozen=True)
class TextBlock:
    """One immutable piece of a template.

    Attributes
    ----------
    type: TextBlockType
        Block kind.
    text: str
        Source text of the block. Empty for `SECTION` blocks, whose text
        lives in the referenced child template.
    reference_name: str
        Field name for `FIELD` blocks, section name for section blocks.
    """

    type: TextBlockType
    text: str = ""
    reference_name: str = ""
