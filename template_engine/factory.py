"""Template source protocol and settings-driven construction."""

from __future__ import annotations

import logging
from typing import Optional, Protocol, Union

from .config.models import TemplateEngineSettings
from .document import Template
from .loader import TemplateCache, TemplateLoader, TextReader
from .writer import TemplateWriter

logger = logging.getLogger(__name__)


class TemplateSource(Protocol):
    """Name-addressed template retrieval shared by loader and cache."""

    @property
    def template_directory(self):  # type: ignore[no-untyped-def]
        """Root directory template names are resolved against."""
        raise NotImplementedError

    def get_template_text(self, name: str) -> str:
        raise NotImplementedError

    async def get_template_text_async(self, name: str) -> str:
        raise NotImplementedError

    def get_template(self, name: str) -> Template:
        raise NotImplementedError

    async def get_template_async(self, name: str) -> Template:
        raise NotImplementedError

    def get_writer(
        self, name: str, section_name: Optional[str] = None
    ) -> TemplateWriter:
        raise NotImplementedError

    async def get_writer_async(
        self, name: str, section_name: Optional[str] = None
    ) -> TemplateWriter:
        raise NotImplementedError


def create_template_source(
    settings: TemplateEngineSettings, text_reader: Optional[TextReader] = None
) -> Union[TemplateCache[TemplateWriter], TemplateLoader[TemplateWriter]]:
    """Build the loader or cache selected by `settings`.

    Call this once at startup and pass the result to every consumer; the
    cache only pays off when it is shared.
    """
    if settings.use_cache:
        source: TemplateLoader[TemplateWriter] = TemplateCache(
            settings.template_directory,
            Template,
            TemplateWriter,
            text_reader=text_reader,
        )
    else:
        source = TemplateLoader(
            settings.template_directory,
            Template,
            TemplateWriter,
            text_reader=text_reader,
        )
    logger.info(
        "template_source.created",
        extra={
            "template_directory": str(settings.template_directory),
            "use_cache": settings.use_cache,
        },
    )
    return source
