"""Small ordered XML tree with deterministic pretty-printing.

Attribute order is insertion order and ``None`` values are dropped.
Children are elements, text leaves (escaped) or ``RawXml`` fragments,
which are emitted verbatim.
"""

from __future__ import annotations

from typing import Union
from xml.sax.saxutils import escape

_ENTITIES = {'"': "&quot;", "'": "&apos;"}

XML_DECLARATION = '<?xml version="1.0" encoding="utf-8"?>\n'


def escape_xml(text: str) -> str:
    """Escape ``& < > " '`` for attribute values and text content."""
    return escape(text, _ENTITIES)


class RawXml(str):
    """A pre-rendered fragment spliced into the output unchanged."""


Child = Union["XmlElement", RawXml, str]


class XmlElement:
    def __init__(self, name: str, *children: Child):
        self.name = name
        self.attributes: dict[str, str] = {}
        self.children: list[Child] = list(children)

    def attr(self, key: str, value: str | int | bool | None) -> XmlElement:
        if value is None:
            return self
        if isinstance(value, bool):
            value = "true" if value else "false"
        self.attributes[key] = str(value)
        return self

    def add(self, *children: Child) -> XmlElement:
        self.children.extend(children)
        return self

    def add_raw(self, xml: str) -> XmlElement:
        self.children.append(RawXml(xml))
        return self

    def render(self, pretty: bool = True, level: int = 0) -> str:
        indent = "  " * level if pretty else ""
        attrs = "".join(f' {k}="{escape_xml(v)}"' for k, v in self.attributes.items())
        open_tag = f"{indent}<{self.name}{attrs}"

        if not self.children:
            return f"{open_tag} />"

        only = self.children[0]
        if len(self.children) == 1 and isinstance(only, str) and not isinstance(only, RawXml):
            return f"{open_tag}>{escape_xml(only)}</{self.name}>"

        rendered = []
        for child in self.children:
            if isinstance(child, XmlElement):
                rendered.append(child.render(pretty, level + 1))
            elif isinstance(child, RawXml):
                rendered.append(str(child))
            else:
                rendered.append(("  " * (level + 1) if pretty else "") + escape_xml(child))

        if pretty:
            return f"{open_tag}>\n" + "\n".join(rendered) + f"\n{indent}</{self.name}>"
        return f"{open_tag}>" + "".join(rendered) + f"</{self.name}>"

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return f"XmlElement({self.name!r}, attributes={self.attributes!r}, children={len(self.children)})"

    def find(self, name: str) -> XmlElement | None:
        """First direct child element called *name*."""
        for child in self.children:
            if isinstance(child, XmlElement) and child.name == name:
                return child
        return None
