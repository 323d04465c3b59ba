"""Template writers: per-use rendering state over a parsed template.

A writer never modifies its template. Field values and appended section
output live on the writer, which is why caches hand out a fresh writer (over
a fresh template copy) for every request.

Typical use::

    writer = TemplateWriter(template)
    writer.set_field("TITLE", "Orders")
    writer.set_multi_section_fields("ROW", [{"ID": 1}, {"ID": 2}])
    html = writer.get_content()
"""

from __future__ import annotations

import uuid
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .document import Template, TextBlockType
from .errors import UnknownFieldError, UnknownSectionError


class TemplateWriter:
    """Collects field values and section repetitions for one template.

    Child sections get their own writers which share the root writer's
    selection stack, so ``set_field`` always targets the section selected
    last.
    """

    def __init__(
        self, template: Template, _stack: Optional[List["TemplateWriter"]] = None
    ) -> None:
        self._template = template
        self._writer_id = uuid.uuid4()
        self._stack: List[TemplateWriter] = _stack if _stack is not None else [self]
        self._values: Dict[str, str] = {}
        self._children: Dict[str, TemplateWriter] = {
            name: TemplateWriter(template.get_template(name), self._stack)
            for name in template.child_section_names
        }
        self._buffers: Dict[str, List[str]] = {}
        self._clear()

    @property
    def template(self) -> Template:
        return self._template

    @property
    def template_id(self) -> uuid.UUID:
        return self._template.template_id

    @property
    def writer_id(self) -> uuid.UUID:
        return self._writer_id

    @property
    def section_name(self) -> str:
        return self._template.section_name

    @property
    def selected_section_name(self) -> str:
        return self._current.section_name

    @property
    def has_data(self) -> bool:
        if any(self._values.values()) or any(self._buffers.values()):
            return True
        return any(child.has_data for child in self._children.values())

    @property
    def _current(self) -> "TemplateWriter":
        return self._stack[-1]

    def contains_section(self, section_name: str) -> bool:
        return section_name in self._children

    def set_field(self, name: str, value: Any) -> None:
        """Set a field on the selected section; ``None`` renders as blank."""
        current = self._current
        if name not in current._values:
            raise UnknownFieldError(name, current.section_name)
        current._values[name] = "" if value is None else str(value)

    def set_fields(self, values: Mapping[str, Any]) -> None:
        for name, value in values.items():
            self.set_field(name, value)

    def select_section(self, section_name: str) -> None:
        """Make a child of the selected section the target of field setters."""
        current = self._current
        child = current._children.get(section_name)
        if child is None:
            raise UnknownSectionError(section_name)
        self._stack.append(child)

    def deselect_section(self) -> None:
        """Discard pending values of the selected section and step back out."""
        if len(self._stack) == 1:
            raise RuntimeError("Cannot deselect the main section")
        self._current._clear()
        self._stack.pop()

    def append_section(self, deselect: bool = False) -> None:
        """Render the selected section into its parent and reset its values."""
        if len(self._stack) == 1:
            raise RuntimeError("Cannot append the main section")
        current = self._current
        parent = self._stack[-2]
        parent._buffers[current.section_name].append(current._render())
        current._clear()
        if deselect:
            self._stack.pop()

    def append_all(self) -> None:
        """Append and deselect every selected section back to the root."""
        while len(self._stack) > 1:
            self.append_section(deselect=True)

    def set_section_fields(self, section_name: str, values: Mapping[str, Any]) -> None:
        """Fill one repetition of `section_name` and append it."""
        self.select_section(section_name)
        self.set_fields(values)
        self.append_section(deselect=True)

    def set_multi_section_fields(
        self, section_name: str, rows: Iterable[Mapping[str, Any]]
    ) -> None:
        """Append one repetition of `section_name` per row."""
        self.select_section(section_name)
        for row in rows:
            self.set_fields(row)
            self.append_section()
        self.deselect_section()

    def get_writer(self, section_name: str) -> "TemplateWriter":
        """Return an independent writer rooted at a copy of `section_name`."""
        return TemplateWriter(self._template.get_template(section_name))

    def reset(self) -> None:
        """Drop all values and appended output and reselect the root."""
        del self._stack[1:]
        self._clear()

    def get_content(self, append_all: bool = False) -> str:
        if append_all:
            self.append_all()
        return self._render()

    def _clear(self) -> None:
        self._values = {name: "" for name in self._template.field_names}
        self._buffers = {name: [] for name in self._children}
        for child in self._children.values():
            child._clear()

    def _render(self) -> str:
        parts: List[str] = []
        for block in self._template.text_blocks:
            if block.type is TextBlockType.FIELD:
                parts.append(self._values[block.reference_name])
            elif block.type is TextBlockType.SECTION:
                parts.extend(self._buffers[block.reference_name])
            elif block.type is not TextBlockType.SECTION_TAG:
                parts.append(block.text)
        return "".join(parts)
