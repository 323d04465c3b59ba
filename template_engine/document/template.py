"""Parsed template documents.

A template is plain text with two kinds of placeholders:

- fields, written ``@@NAME@@``;
- sections, delimited by a matching pair of ``<!-- @@NAME@@ -->`` comment
  tags. A section written ``<!-- **NAME** -->`` is literal: its body is kept
  verbatim and is not scanned for fields or nested sections.

Parsing produces an immutable tree of :class:`Template` objects, one per
section, each holding a tuple of :class:`TextBlock`. ``str(template)``
reproduces the source text exactly. :meth:`Template.copy` shares the
immutable tree and only mints a new identity, which is what caches hand out.
"""

from __future__ import annotations

import re
import uuid
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

from ..errors import MalformedTemplateError, UnknownSectionError
from .blocks import TextBlock, TextBlockType

MAIN_SECTION = "@MAIN"

_FIELD = re.compile(r"(?<!<!--\s)@@([A-Za-z0-9_]+)@@(?!\s-->)")
_SECTION_TAG = re.compile(
    r"(?P<prefix>[ \t]*)"
    r"<!-- (?P<marker>@@|\*\*)(?P<name>[A-Z0-9_]+)(?P=marker) -->"
    r"(?P<suffix>[ \t]*\r?\n)?"
)
_EOL = re.compile(r"[\r\n]")


class Template:
    """Immutable parsed template.

    Parameters
    ----------
    text: str
        Template source text.

    Raises
    ------
    MalformedTemplateError
        If a section is left open, closed out of order, or declared twice.
    """

    def __init__(self, text: str) -> None:
        blocks, sections, fields = _parse(text)
        self._init(MAIN_SECTION, blocks, sections, fields, len(text), uuid.uuid4())

    @classmethod
    def _build(
        cls,
        section_name: str,
        blocks: Tuple[TextBlock, ...],
        sections: Mapping[str, "Template"],
        field_names: Tuple[str, ...],
        raw_length: int,
        template_type_id: uuid.UUID,
    ) -> "Template":
        template = cls.__new__(cls)
        template._init(
            section_name, blocks, sections, field_names, raw_length, template_type_id
        )
        return template

    def _init(
        self,
        section_name: str,
        blocks: Tuple[TextBlock, ...],
        sections: Mapping[str, "Template"],
        field_names: Tuple[str, ...],
        raw_length: int,
        template_type_id: uuid.UUID,
    ) -> None:
        self._section_name = section_name
        self._blocks = blocks
        self._sections: Dict[str, Template] = dict(sections)
        self._field_names = field_names
        self._raw_length = raw_length
        self._template_type_id = template_type_id
        self._template_id = uuid.uuid4()

    @property
    def section_name(self) -> str:
        return self._section_name

    @property
    def template_id(self) -> uuid.UUID:
        """Identity of this instance; every copy gets a new one."""
        return self._template_id

    @property
    def template_type_id(self) -> uuid.UUID:
        """Identity of the parsed source, shared by all copies."""
        return self._template_type_id

    @property
    def field_names(self) -> List[str]:
        return list(self._field_names)

    @property
    def child_section_names(self) -> List[str]:
        return list(self._sections)

    @property
    def raw_length(self) -> int:
        return self._raw_length

    @property
    def text_blocks(self) -> Iterator[TextBlock]:
        return iter(self._blocks)

    @property
    def is_empty(self) -> bool:
        """True when the template has no literal text of its own."""
        return not any(
            b.text
            for b in self._blocks
            if b.type in (TextBlockType.TEXT, TextBlockType.LITERAL)
        )

    @property
    def is_single_line(self) -> bool:
        """True when the template has no child sections and no line breaks."""
        if self._sections:
            return False
        return not any(
            _EOL.search(b.text)
            for b in self._blocks
            if b.type in (TextBlockType.TEXT, TextBlockType.LITERAL)
        )

    def copy(self) -> "Template":
        """Return a content-equal template with a fresh `template_id`."""
        return Template._build(
            self._section_name,
            self._blocks,
            self._sections,
            self._field_names,
            self._raw_length,
            self._template_type_id,
        )

    def get_template(self, section_name: Optional[str] = None) -> "Template":
        """Return a copy of the named (possibly nested) section.

        Raises
        ------
        UnknownSectionError
            If no section with that name exists below this template.
        """
        if not section_name or section_name == self._section_name:
            return self.copy()
        found = self._find(section_name)
        if found is None:
            raise UnknownSectionError(section_name)
        return found.copy()

    def _find(self, section_name: str) -> Optional["Template"]:
        if section_name in self._sections:
            return self._sections[section_name]
        for child in self._sections.values():
            found = child._find(section_name)
            if found is not None:
                return found
        return None

    def __str__(self) -> str:
        parts: List[str] = []
        for block in self._blocks:
            if block.type is TextBlockType.SECTION:
                parts.append(str(self._sections[block.reference_name]))
            else:
                parts.append(block.text)
        return "".join(parts)

    def __repr__(self) -> str:
        return (
            f"Template(section_name={self._section_name!r}, "
            f"template_id={self._template_id})"
        )


class _Frame:
    """A section that is open while the parser walks the source text."""

    def __init__(self, name: str, literal: bool = False, open_tag: str = "") -> None:
        self.name = name
        self.literal = literal
        self.open_tag = open_tag
        self.blocks: List[TextBlock] = []
        self.sections: Dict[str, Template] = {}
        self.fields: List[str] = []
        self.raw: List[str] = []

    def add_text(self, text: str) -> None:
        if not text:
            return
        self.raw.append(text)
        if self.literal:
            return
        start = 0
        for match in _FIELD.finditer(text):
            if match.start() > start:
                self.blocks.append(TextBlock(TextBlockType.TEXT, text[start : match.start()]))
            field = match.group(1)
            if field not in self.fields:
                self.fields.append(field)
            self.blocks.append(TextBlock(TextBlockType.FIELD, match.group(0), field))
            start = match.end()
        if start < len(text):
            self.blocks.append(TextBlock(TextBlockType.TEXT, text[start:]))

    def add_child(self, child: "_Frame", close_tag: str) -> None:
        self.raw.append(child.open_tag + "".join(child.raw) + close_tag)
        self.blocks.append(TextBlock(TextBlockType.SECTION_TAG, child.open_tag, child.name))
        if child.literal:
            self.blocks.append(
                TextBlock(TextBlockType.LITERAL, "".join(child.raw), child.name)
            )
        else:
            self.sections[child.name] = Template._build(
                child.name,
                tuple(child.blocks),
                child.sections,
                tuple(child.fields),
                sum(len(r) for r in child.raw),
                uuid.uuid4(),
            )
            self.blocks.append(TextBlock(TextBlockType.SECTION, "", child.name))
        self.blocks.append(TextBlock(TextBlockType.SECTION_TAG, close_tag, child.name))


def _parse(
    text: str,
) -> Tuple[Tuple[TextBlock, ...], Dict[str, Template], Tuple[str, ...]]:
    """Split `text` into blocks, child sections and field names."""
    stack = [_Frame(MAIN_SECTION)]
    seen = {MAIN_SECTION}
    position = 0
    for match in _SECTION_TAG.finditer(text):
        name = match.group("name")
        top = stack[-1]
        # Inside a literal section only its own closing tag is significant
        if top.literal and name != top.name:
            continue
        if any(frame.name == name for frame in stack):
            if top.name != name:
                raise MalformedTemplateError(
                    f"Section, {top.name}, is improperly nested.", top.name
                )
            top.add_text(text[position : match.start()])
            stack.pop()
            stack[-1].add_child(top, match.group(0))
        else:
            if name in seen:
                raise MalformedTemplateError(
                    f"Section, {name}, is declared more than once.", name
                )
            seen.add(name)
            stack[-1].add_text(text[position : match.start()])
            stack.append(
                _Frame(name, literal=match.group("marker") == "**", open_tag=match.group(0))
            )
        position = match.end()
    if len(stack) > 1:
        name = stack[-1].name
        raise MalformedTemplateError(
            f"Section, {name}, is missing an opening or closing tag.", name
        )
    main = stack[0]
    main.add_text(text[position:])
    return tuple(main.blocks), main.sections, tuple(main.fields)
