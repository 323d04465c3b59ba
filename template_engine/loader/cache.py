"""Caching template loader.

Parsed templates are stored once per name in a :class:`KeyedCache` and never
handed out directly: every read returns ``master.copy()``, so writers built
by one caller cannot observe or disturb another caller's state. Raw text is
not cached; only parsing is worth memoising.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional, TypeVar, Union

from ..document import Template
from ..utils.cache import KeyedCache
from .loader import TemplateFactory, TemplateLoader
from .readers import TextReader

W = TypeVar("W")

logger = logging.getLogger(__name__)


class TemplateCache(TemplateLoader[W]):
    """:class:`TemplateLoader` that parses each template at most once.

    Parameters
    ----------
    template_directory, template_factory, writer_factory, text_reader
        See :class:`TemplateLoader`.
    cache: KeyedCache, optional
        Backing cache. Mutually exclusive with `cache_factory`.
    cache_factory: Callable[[], KeyedCache], optional
        Called once to build the backing cache.

    Notes
    -----
    A load that fails leaves no entry behind, so the next request for the
    same name tries again.
    """

    def __init__(
        self,
        template_directory: Union[str, Path],
        template_factory: TemplateFactory,
        writer_factory: Callable[[Template], W],
        cache: Optional[KeyedCache[Template]] = None,
        cache_factory: Optional[Callable[[], KeyedCache[Template]]] = None,
        text_reader: Optional[TextReader] = None,
    ) -> None:
        if cache is not None and cache_factory is not None:
            raise ValueError("Pass either cache or cache_factory, not both.")
        super().__init__(template_directory, template_factory, writer_factory, text_reader)
        if cache is None:
            cache = cache_factory() if cache_factory is not None else KeyedCache()
        self._cache: KeyedCache[Template] = cache

    @property
    def cache(self) -> KeyedCache[Template]:
        return self._cache

    def get_template(self, name: str) -> Template:
        """Return a private copy of template `name`, loading it on first use."""
        master = self._cache.get_or_add(name, lambda: self._load(name))
        return master.copy()

    async def get_template_async(self, name: str) -> Template:
        master = await self._cache.get_or_add_async(name, lambda: self._load_async(name))
        return master.copy()

    def is_template_cached(self, name: str) -> bool:
        """Report whether `name` is cached, without loading it."""
        return name in self._cache

    def remove_template(self, name: str) -> None:
        """Forget the cached template for `name`; unknown names are ignored."""
        self._cache.remove(name)
        logger.debug("template_cache.removed", extra={"template": name})

    def clear(self) -> None:
        self._cache.clear()

    def _load(self, name: str) -> Template:
        logger.info("template_cache.miss", extra={"template": name})
        return super().get_template(name)

    async def _load_async(self, name: str) -> Template:
        logger.info("template_cache.miss", extra={"template": name})
        return await super().get_template_async(name)
