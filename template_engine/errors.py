"""Exception types raised by the template engine.

The loader and cache never invent failures of their own: read errors are
translated once at the filesystem seam, parser errors come from the parser,
and both travel to the caller unchanged.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class TemplateEngineError(Exception):
    """Base class for template engine failures."""


class TemplateNotFoundError(TemplateEngineError, FileNotFoundError):
    """The resolved template path does not exist."""

    def __init__(self, name: str, path: Path) -> None:
        super().__init__(f"Template '{name}' was not found at {path}")
        self.name = name
        self.path = path


class TemplateReadError(TemplateEngineError, OSError):
    """The template exists (or may exist) but could not be read."""

    def __init__(self, name: str, path: Path, reason: str = "") -> None:
        detail = f": {reason}" if reason else ""
        super().__init__(f"Template '{name}' could not be read from {path}{detail}")
        self.name = name
        self.path = path


class MalformedTemplateError(TemplateEngineError, ValueError):
    """The parser rejected the template text."""

    def __init__(self, message: str, section_name: Optional[str] = None) -> None:
        super().__init__(message)
        self.section_name = section_name


class UnknownFieldError(TemplateEngineError, KeyError):
    """A writer was asked to set a field the selected section does not define."""

    def __init__(self, field_name: str, section_name: str) -> None:
        super().__init__(
            f"The field, {field_name}, was not found in section {section_name}."
        )
        self.field_name = field_name
        self.section_name = section_name

    def __str__(self) -> str:
        return str(self.args[0])


class UnknownSectionError(TemplateEngineError, KeyError):
    """A section name could not be resolved in the current template."""

    def __init__(self, section_name: str) -> None:
        super().__init__(
            f"Section, {section_name}, was not found in the current template."
        )
        self.section_name = section_name

    def __str__(self) -> str:
        return str(self.args[0])
