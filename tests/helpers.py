"""Shared sample templates and test doubles."""

from __future__ import annotations

import asyncio
import threading
from pathlib import Path
from typing import Dict

from template_engine.loader import FileTextReader

TEMPLATE_TEXT: Dict[str, str] = {
    "test_template1.txt": "some template data 1",
    "test_template2.txt": "some template data 2",
    "pages/test_template3.txt": "some template data 3",
    "greeting.tmpl": "Hello",
    "list.html": (
        "<h1>@@TITLE@@</h1>\n"
        "<ul>\n"
        "<!-- @@ITEM@@ -->\n"
        "  <li>@@NAME@@</li>\n"
        "<!-- @@ITEM@@ -->\n"
        "</ul>\n"
    ),
}


class CountingReader(FileTextReader):
    """File reader that counts reads; the async path yields to the loop."""

    def __init__(self, delay: float = 0.0) -> None:
        super().__init__()
        self.delay = delay
        self.calls = 0
        self._lock = threading.Lock()

    def _count(self) -> None:
        with self._lock:
            self.calls += 1

    def read_text(self, path: Path) -> str:
        self._count()
        return super().read_text(path)

    async def read_text_async(self, path: Path) -> str:
        self._count()
        await asyncio.sleep(self.delay)
        return await super().read_text_async(path)
