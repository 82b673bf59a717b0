"""Immutable HTML tree used by the matcher, built from a BeautifulSoup parse.

The matcher only needs a handful of operations (:func:`tag`, :func:`attr`,
:func:`children`, :func:`text`), so the BeautifulSoup tree is copied once
into small frozen node objects. That keeps documents read-only and safe to
share between threads once parsed.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterator, Mapping, Optional, Tuple, Union

from bs4 import BeautifulSoup
from bs4.element import Comment, Declaration, Doctype, NavigableString, ProcessingInstruction, Tag

SKIPPED_STRINGS = (Comment, Declaration, Doctype, ProcessingInstruction)


@dataclass(frozen=True)
class TextNode:
    content: str

    is_element = False


@dataclass(frozen=True)
class ElementNode:
    tag: str
    attributes: Mapping[str, str] = field(default_factory=dict)
    children: Tuple["Node", ...] = ()

    is_element = True

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.attributes.get(name.lower(), default)

    def iter_preorder(self) -> Iterator["Node"]:
        """Yield this node and every descendant in document order."""

        stack: list[Node] = [self]
        while stack:
            node = stack.pop()
            yield node
            if node.is_element:
                stack.extend(reversed(node.children))

    def get_text(self, separator: str = "") -> str:
        return separator.join(node.content for node in self.iter_preorder() if not node.is_element)


Node = Union[ElementNode, TextNode]


# Adapter --------------------------------------------------------------------
def tag(node: ElementNode) -> str:
    return node.tag


def attr(node: ElementNode, name: str) -> Optional[str]:
    return node.get(name)


def children(node: ElementNode) -> Tuple[Node, ...]:
    return node.children


def text(node: TextNode) -> str:
    return node.content


# Conversion -----------------------------------------------------------------
def _attribute_value(value) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return " ".join(value)
    return str(value)


def _freeze_attributes(element: Tag) -> Mapping[str, str]:
    return MappingProxyType(
        {name.lower(): _attribute_value(value) for name, value in element.attrs.items()}
    )


def _convertible_children(element: Tag) -> list:
    return [
        child
        for child in element.children
        if isinstance(child, Tag) or (isinstance(child, NavigableString) and not isinstance(child, SKIPPED_STRINGS))
    ]


def from_soup(soup: BeautifulSoup) -> ElementNode:
    """Convert a parsed soup into an :class:`ElementNode` rooted at ``[document]``.

    Works bottom-up with an explicit stack so very deep documents do not hit
    the interpreter's recursion limit.
    """

    converted: dict[int, Node] = {}
    stack: list[tuple[Tag, bool]] = [(soup, False)]
    while stack:
        element, expanded = stack.pop()
        kids = _convertible_children(element)
        if not expanded:
            stack.append((element, True))
            stack.extend((child, False) for child in reversed(kids) if isinstance(child, Tag))
            continue

        nodes: list[Node] = []
        for child in kids:
            if isinstance(child, Tag):
                nodes.append(converted.pop(id(child)))
            else:
                nodes.append(TextNode(str(child)))
        name = "[document]" if element is soup else element.name.lower()
        converted[id(element)] = ElementNode(
            tag=name,
            attributes=_freeze_attributes(element),
            children=tuple(nodes),
        )
    return converted[id(soup)]  # type: ignore[return-value]
