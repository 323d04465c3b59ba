"""Tests for TemplateWriter rendering."""

from __future__ import annotations

import pytest

from template_engine.document import Template
from template_engine.errors import UnknownFieldError, UnknownSectionError
from template_engine.writer import TemplateWriter

LIST_TEMPLATE = (
    "<h1>@@TITLE@@</h1>\n"
    "<ul>\n"
    "<!-- @@ITEM@@ -->\n"
    "  <li>@@NAME@@</li>\n"
    "<!-- @@ITEM@@ -->\n"
    "</ul>\n"
)


def test_plain_text_renders_unchanged():
    assert TemplateWriter(Template("Hello")).get_content() == "Hello"


def test_set_field_and_blank_defaults():
    writer = TemplateWriter(Template("Hi @@FIRST@@ @@LAST@@."))
    writer.set_field("FIRST", "Ada")
    assert writer.get_content() == "Hi Ada ."

    writer.set_fields({"LAST": 1815, "FIRST": None})
    assert writer.get_content() == "Hi  1815."


def test_unknown_field_raises():
    writer = TemplateWriter(Template("@@KNOWN@@"))
    with pytest.raises(UnknownFieldError, match="UNKNOWN"):
        writer.set_field("UNKNOWN", "x")


def test_multi_section_fields_repeat_section():
    writer = TemplateWriter(Template(LIST_TEMPLATE))
    writer.set_field("TITLE", "Fruit")
    writer.set_multi_section_fields("ITEM", [{"NAME": "apple"}, {"NAME": "pear"}])

    assert writer.get_content() == (
        "<h1>Fruit</h1>\n<ul>\n  <li>apple</li>\n  <li>pear</li>\n</ul>\n"
    )


def test_unappended_section_renders_nothing():
    writer = TemplateWriter(Template(LIST_TEMPLATE))
    assert writer.get_content() == "<h1></h1>\n<ul>\n</ul>\n"
    assert not writer.has_data


def test_select_append_and_append_all():
    writer = TemplateWriter(Template(LIST_TEMPLATE))
    writer.select_section("ITEM")
    assert writer.selected_section_name == "ITEM"
    writer.set_field("NAME", "one")
    writer.append_section()
    writer.set_field("NAME", "two")

    content = writer.get_content(append_all=True)

    assert content == "<h1></h1>\n<ul>\n  <li>one</li>\n  <li>two</li>\n</ul>\n"
    assert writer.selected_section_name == "@MAIN"


def test_deselect_discards_pending_values():
    writer = TemplateWriter(Template(LIST_TEMPLATE))
    writer.select_section("ITEM")
    writer.set_field("NAME", "dropped")
    writer.deselect_section()
    assert writer.get_content() == "<h1></h1>\n<ul>\n</ul>\n"


def test_main_section_cannot_be_deselected_or_appended():
    writer = TemplateWriter(Template("x"))
    with pytest.raises(RuntimeError):
        writer.deselect_section()
    with pytest.raises(RuntimeError):
        writer.append_section()


def test_unknown_section_raises():
    writer = TemplateWriter(Template(LIST_TEMPLATE))
    with pytest.raises(UnknownSectionError):
        writer.select_section("MISSING")


def test_contains_section_checks_direct_children():
    writer = TemplateWriter(Template(LIST_TEMPLATE))
    assert writer.contains_section("ITEM")
    assert not writer.contains_section("MISSING")
    assert not writer.get_writer("ITEM").contains_section("ITEM")


def test_get_writer_for_section_is_independent():
    writer = TemplateWriter(Template(LIST_TEMPLATE))
    item = writer.get_writer("ITEM")
    item.set_field("NAME", "solo")

    assert item.section_name == "ITEM"
    assert item.get_content() == "  <li>solo</li>\n"
    assert item.writer_id != writer.writer_id
    assert not writer.has_data


def test_reset_clears_values_and_output():
    writer = TemplateWriter(Template(LIST_TEMPLATE))
    writer.set_field("TITLE", "t")
    writer.set_section_fields("ITEM", {"NAME": "n"})
    assert writer.has_data

    writer.reset()

    assert not writer.has_data
    assert writer.get_content() == "<h1></h1>\n<ul>\n</ul>\n"


def test_literal_section_renders_verbatim_without_tags():
    text = "a\n<!-- **RAW** -->\n@@KEEP@@\n<!-- **RAW** -->\nb"
    assert TemplateWriter(Template(text)).get_content() == "a\n@@KEEP@@\nb"


def test_writers_over_copies_do_not_share_state():
    master = Template("Hello @@NAME@@")
    first = TemplateWriter(master.copy())
    second = TemplateWriter(master.copy())
    first.set_field("NAME", "first")

    assert second.get_content() == "Hello "
    assert first.template_id != second.template_id
