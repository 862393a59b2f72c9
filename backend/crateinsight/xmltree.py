"""Generic XML document model.

The decoder turns raw XML into a small tagged tree: an :class:`Element` holds
its attributes as raw strings and an ordered list of children, each either an
:class:`Element` or a :class:`Text`. Children are always a list, so elements
that may repeat (``TRACK``, ``NODE``) never need a "one or many" check.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Union
from xml.etree import ElementTree as ET

from .errors import StructuralError


@dataclass(frozen=True)
class Text:
    value: str


@dataclass(frozen=True)
class Element:
    tag: str
    attributes: Dict[str, str] = field(default_factory=dict)
    children: List["Node"] = field(default_factory=list)

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.attributes.get(name, default)

    def elements(self) -> Iterator["Element"]:
        for child in self.children:
            if isinstance(child, Element):
                yield child

    def find(self, tag: str) -> Optional["Element"]:
        for child in self.elements():
            if child.tag == tag:
                return child
        return None

    def find_all(self, tag: str) -> List["Element"]:
        return [child for child in self.elements() if child.tag == tag]

    @property
    def text(self) -> str:
        return "".join(child.value for child in self.children if isinstance(child, Text))


Node = Union[Element, Text]


def _shell(el: ET.Element) -> Element:
    children: List[Node] = []
    if el.text and el.text.strip():
        children.append(Text(el.text.strip()))
    return Element(tag=el.tag, attributes=dict(el.attrib), children=children)


def _convert(root: ET.Element) -> Element:
    # explicit stack: playlist folders can nest deeper than the recursion limit
    top = _shell(root)
    stack = [(root, top)]
    while stack:
        el, node = stack.pop()
        for sub in el:
            if not isinstance(sub.tag, str):
                # comments and processing instructions
                continue
            child = _shell(sub)
            node.children.append(child)
            if sub.tail and sub.tail.strip():
                node.children.append(Text(sub.tail.strip()))
            stack.append((sub, child))
    return top


def decode_document(content: Union[str, bytes]) -> Element:
    """Parse raw XML into the generic tree, or raise :class:`StructuralError`."""
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        raise StructuralError(f"Failed to parse XML: {e}") from e
    return _convert(root)
