"""Text sources the loader reads template files through."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Protocol


class TextReader(Protocol):
    """Read the full text of a file given its path.

    Implementations raise :class:`FileNotFoundError` for missing paths and
    other :class:`OSError` subclasses for any other read failure.
    """

    def read_text(self, path: Path) -> str:
        """Return the decoded content of `path`."""
        raise NotImplementedError

    async def read_text_async(self, path: Path) -> str:
        """Awaitable variant of :meth:`read_text`."""
        raise NotImplementedError


class FileTextReader:  # pylint: disable=too-few-public-methods
    """UTF-8 reader over the local filesystem."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding

    def read_text(self, path: Path) -> str:
        return path.read_text(encoding=self.encoding)

    async def read_text_async(self, path: Path) -> str:
        return await asyncio.to_thread(path.read_text, encoding=self.encoding)
