"""Template loader: resolve a name, read its text, parse it, wrap it.

The loader holds no state besides its configuration, so every call goes back
to the filesystem and the parser. :class:`~template_engine.loader.cache.TemplateCache`
builds on it to memoise parsed templates.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Generic, Optional, TypeVar, Union

from ..document import Template
from ..errors import TemplateNotFoundError, TemplateReadError
from .readers import FileTextReader, TextReader

W = TypeVar("W")

TemplateFactory = Callable[[str], Template]

logger = logging.getLogger(__name__)


class TemplateLoader(Generic[W]):
    """Load templates by name from a directory.

    Parameters
    ----------
    template_directory: Union[str, Path]
        Root under which template names are resolved. Must exist.
    template_factory: Callable[[str], Template]
        Parser turning template text into a :class:`Template`.
    writer_factory: Callable[[Template], W]
        Builds a writer around a template.
    text_reader: TextReader, optional
        Filesystem seam; defaults to :class:`FileTextReader`.

    Raises
    ------
    ValueError
        If `template_directory` is blank or is not an existing directory.
    """

    def __init__(
        self,
        template_directory: Union[str, Path],
        template_factory: TemplateFactory,
        writer_factory: Callable[[Template], W],
        text_reader: Optional[TextReader] = None,
    ) -> None:
        if not str(template_directory).strip():
            raise ValueError("Invalid template path.")
        directory = Path(template_directory)
        if not directory.is_dir():
            raise ValueError(
                f"Template path does not exist or is inaccessible: {directory}"
            )
        self._template_directory = directory
        self._template_factory = template_factory
        self._writer_factory = writer_factory
        self._text_reader: TextReader = text_reader or FileTextReader()

    @property
    def template_directory(self) -> Path:
        return self._template_directory

    def get_template_text(self, name: str) -> str:
        """Return the raw text of template `name`.

        Raises
        ------
        TemplateNotFoundError
            If the resolved path does not exist.
        TemplateReadError
            For any other read failure.
        """
        path = self._resolve(name)
        try:
            return self._text_reader.read_text(path)
        except (OSError, UnicodeDecodeError) as exc:
            raise self._read_error(name, path, exc) from exc

    async def get_template_text_async(self, name: str) -> str:
        """Awaitable variant of :meth:`get_template_text`."""
        path = self._resolve(name)
        try:
            return await self._text_reader.read_text_async(path)
        except (OSError, UnicodeDecodeError) as exc:
            raise self._read_error(name, path, exc) from exc

    def get_template(self, name: str) -> Template:
        """Read and parse template `name`; parser errors propagate as-is."""
        return self._template_factory(self.get_template_text(name))

    async def get_template_async(self, name: str) -> Template:
        text = await self.get_template_text_async(name)
        return self._template_factory(text)

    def get_writer(self, name: str, section_name: Optional[str] = None) -> W:
        """Return a new writer for template `name` or one of its sections."""
        return self._make_writer(self.get_template(name), section_name)

    async def get_writer_async(self, name: str, section_name: Optional[str] = None) -> W:
        template = await self.get_template_async(name)
        return self._make_writer(template, section_name)

    def _make_writer(self, template: Template, section_name: Optional[str]) -> W:
        writer = self._writer_factory(template)
        if section_name:
            return writer.get_writer(section_name)  # type: ignore[attr-defined]
        return writer

    def _resolve(self, name: str) -> Path:
        return self._template_directory / name

    @staticmethod
    def _read_error(name: str, path: Path, exc: Exception) -> Exception:
        if isinstance(exc, FileNotFoundError):
            logger.warning(
                "template_loader.not_found", extra={"template": name, "path": str(path)}
            )
            return TemplateNotFoundError(name, path)
        logger.warning(
            "template_loader.read_failed",
            extra={"template": name, "path": str(path), "error": str(exc)},
        )
        return TemplateReadError(name, path, str(exc))
