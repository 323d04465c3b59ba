"""Tests for TemplateCache: copy-on-read, load-once, and failure handling."""

from __future__ import annotations

import asyncio
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from template_engine.document import Template
from template_engine.errors import MalformedTemplateError, TemplateNotFoundError
from template_engine.loader import TemplateCache
from template_engine.utils.cache import KeyedCache
from template_engine.writer import TemplateWriter

from helpers import TEMPLATE_TEXT, CountingReader

NAMES = ["test_template1.txt", "test_template2.txt", "pages/test_template3.txt"]


def _cache(directory: Path, **kwargs) -> TemplateCache[TemplateWriter]:
    return TemplateCache(directory, Template, TemplateWriter, **kwargs)


@pytest.mark.parametrize("name", NAMES)
def test_get_template_returns_copy_of_master(template_dir: Path, name: str):
    keyed = KeyedCache()
    cache = _cache(template_dir, cache=keyed)

    template = cache.get_template(name)

    master = keyed.get(name)
    assert master is not None
    assert str(template) == TEMPLATE_TEXT[name]
    assert template.template_id != master.template_id
    assert template is not master


@pytest.mark.asyncio
@pytest.mark.parametrize("name", NAMES)
async def test_get_template_async_returns_copy_of_master(template_dir: Path, name: str):
    keyed = KeyedCache()
    cache = _cache(template_dir, cache=keyed)

    template = await cache.get_template_async(name)

    assert str(template) == TEMPLATE_TEXT[name]
    assert template.template_id != keyed.get(name).template_id


def test_sequential_reads_load_once(template_dir: Path, counting_reader: CountingReader):
    cache = _cache(template_dir, text_reader=counting_reader)

    first = cache.get_template("greeting.tmpl")
    second = cache.get_template("greeting.tmpl")

    assert counting_reader.calls == 1
    assert str(first) == str(second) == "Hello"
    assert first.template_id != second.template_id
    assert first.template_type_id == second.template_type_id


def test_greeting_scenario(template_dir: Path, counting_reader: CountingReader):
    cache = _cache(template_dir, text_reader=counting_reader)

    assert cache.get_template_text("greeting.tmpl") == "Hello"
    first = cache.get_template("greeting.tmpl")
    second = cache.get_template("greeting.tmpl")

    assert TemplateWriter(first).get_content() == "Hello"
    assert TemplateWriter(second).get_content() == "Hello"
    assert first.template_id != second.template_id
    # One read for the text call, one for the single cache miss
    assert counting_reader.calls == 2


def test_text_is_never_cached(template_dir: Path, counting_reader: CountingReader):
    cache = _cache(template_dir, text_reader=counting_reader)
    cache.get_template_text("greeting.tmpl")
    cache.get_template_text("greeting.tmpl")
    assert counting_reader.calls == 2
    assert not cache.is_template_cached("greeting.tmpl")


@pytest.mark.asyncio
async def test_concurrent_first_requests_load_once(
    template_dir: Path, counting_reader: CountingReader
):
    cache = _cache(template_dir, text_reader=counting_reader)

    templates = await asyncio.gather(
        *(cache.get_template_async("list.html") for _ in range(20))
    )

    assert counting_reader.calls == 1
    assert len({t.template_id for t in templates}) == 20
    assert {str(t) for t in templates} == {TEMPLATE_TEXT["list.html"]}


def test_threaded_first_requests_load_once(template_dir: Path):
    parse_calls = []
    lock = threading.Lock()
    barrier = threading.Barrier(8)

    def slow_parse(text: str) -> Template:
        with lock:
            parse_calls.append(text)
        threading.Event().wait(0.05)
        return Template(text)

    cache = TemplateCache(template_dir, slow_parse, TemplateWriter)

    def worker(_):
        barrier.wait()
        return cache.get_template("greeting.tmpl")

    with ThreadPoolExecutor(max_workers=8) as pool:
        templates = list(pool.map(worker, range(8)))

    assert len(parse_calls) == 1
    assert len({t.template_id for t in templates}) == 8


def test_is_template_cached_does_not_load(
    template_dir: Path, counting_reader: CountingReader
):
    cache = _cache(template_dir, text_reader=counting_reader)

    assert not cache.is_template_cached("greeting.tmpl")
    assert counting_reader.calls == 0

    cache.get_template("greeting.tmpl")
    assert cache.is_template_cached("greeting.tmpl")
    assert counting_reader.calls == 1


def test_is_template_cached_sees_direct_adds(template_dir: Path):
    keyed = KeyedCache()
    cache = _cache(template_dir, cache=keyed)
    for name in NAMES:
        assert not cache.is_template_cached(name)
        keyed.add(name, Template(TEMPLATE_TEXT[name]))
        assert cache.is_template_cached(name)


def test_writers_are_fresh_and_isolated(template_dir: Path):
    cache = _cache(template_dir)

    first = cache.get_writer("list.html")
    second = cache.get_writer("list.html")
    first.set_field("TITLE", "mine")

    assert first.writer_id != second.writer_id
    assert first.template_id != second.template_id
    assert second.get_content() == "<h1></h1>\n<ul>\n</ul>\n"
    assert str(cache.cache.get("list.html")) == TEMPLATE_TEXT["list.html"]


@pytest.mark.asyncio
async def test_get_writer_async_for_section(template_dir: Path):
    cache = _cache(template_dir)
    writer = await cache.get_writer_async("list.html", "ITEM")
    writer.set_field("NAME", "async")
    assert writer.get_content() == "  <li>async</li>\n"
    assert cache.is_template_cached("list.html")


def test_not_found_leaves_no_entry(template_dir: Path):
    cache = _cache(template_dir)

    with pytest.raises(TemplateNotFoundError):
        cache.get_template_text("missing.tmpl")
    with pytest.raises(TemplateNotFoundError):
        cache.get_template("missing.tmpl")

    assert not cache.is_template_cached("missing.tmpl")


@pytest.mark.asyncio
async def test_failed_load_is_retried(template_dir: Path, counting_reader: CountingReader):
    cache = _cache(template_dir, text_reader=counting_reader)

    with pytest.raises(TemplateNotFoundError):
        await cache.get_template_async("later.tmpl")
    assert not cache.is_template_cached("later.tmpl")

    (template_dir / "later.tmpl").write_text("now here", encoding="utf-8")
    template = await cache.get_template_async("later.tmpl")

    assert str(template) == "now here"
    assert counting_reader.calls == 2


def test_malformed_template_is_not_cached(template_dir: Path):
    (template_dir / "broken.html").write_text("<!-- @@OPEN@@ -->\n", encoding="utf-8")
    cache = _cache(template_dir)

    with pytest.raises(MalformedTemplateError):
        cache.get_template("broken.html")
    assert not cache.is_template_cached("broken.html")


def test_remove_template_forces_reload(
    template_dir: Path, counting_reader: CountingReader
):
    cache = _cache(template_dir, text_reader=counting_reader)
    cache.get_template("greeting.tmpl")

    cache.remove_template("greeting.tmpl")
    cache.remove_template("never-loaded.tmpl")
    assert not cache.is_template_cached("greeting.tmpl")

    cache.get_template("greeting.tmpl")
    assert counting_reader.calls == 2


@pytest.mark.asyncio
async def test_remove_template_during_load_keeps_it_uncached(
    template_dir: Path, counting_reader: CountingReader
):
    cache = _cache(template_dir, text_reader=counting_reader)
    load = asyncio.create_task(cache.get_template_async("greeting.tmpl"))
    while counting_reader.calls == 0:
        await asyncio.sleep(0)

    cache.remove_template("greeting.tmpl")

    assert str(await load) == "Hello"
    assert not cache.is_template_cached("greeting.tmpl")


def test_clear(template_dir: Path):
    cache = _cache(template_dir)
    for name in NAMES:
        cache.get_template(name)
    cache.clear()
    assert not any(cache.is_template_cached(name) for name in NAMES)


def test_cache_factory_called_once(template_dir: Path):
    created = []

    def factory() -> KeyedCache:
        created.append(KeyedCache())
        return created[-1]

    cache = _cache(template_dir, cache_factory=factory)
    assert created == [cache.cache]


def test_cache_and_cache_factory_are_exclusive(template_dir: Path):
    with pytest.raises(ValueError, match="either"):
        _cache(template_dir, cache=KeyedCache(), cache_factory=KeyedCache)


def test_template_directory(template_dir: Path):
    assert _cache(template_dir).template_directory == template_dir
