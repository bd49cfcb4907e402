"""
Small helpers around selectolax so that a parsed document and a single
element can be searched the same way.
"""

import re
from typing import Iterable, List, Optional, Protocol, Set, Union

from selectolax.parser import HTMLParser, Node

_WHITESPACE = re.compile(r"\s+")

# Tags selectolax uses for non-element nodes
_NON_ELEMENT_TAGS = ("-text", "-comment", "_comment", "-doctype", "!doctype")


class Scope(Protocol):
    """Anything that can be searched with a CSS selector."""

    def css(self, query: str) -> List[Node]:
        ...


def parse(markup: str) -> HTMLParser:
    return HTMLParser(markup or "")


def find(scope: Union[Scope, HTMLParser, Node], selector: str) -> List[Node]:
    """All matches of ``selector`` below ``scope``, the scope itself excluded."""
    try:
        matches = scope.css(selector)
    except ValueError:
        # selectolax rejects selectors it cannot compile
        return []
    # selectolax reports a node once per part of a grouped selector it matches
    seen = set()
    own_id = getattr(scope, "mem_id", None)
    if own_id is not None:
        seen.add(own_id)

    unique: List[Node] = []
    for node in matches:
        if node.mem_id in seen:
            continue
        seen.add(node.mem_id)
        unique.append(node)

    if "," in selector and len(unique) > 1:
        unique = _in_document_order(scope, unique)
    return unique


def _in_document_order(scope: Union[Scope, HTMLParser, Node], nodes: List[Node]) -> List[Node]:
    """Grouped selectors are matched part by part; restore tree order."""
    start = scope.root if isinstance(scope, HTMLParser) else scope
    if start is None:
        return nodes
    position = {node.mem_id: index for index, node in enumerate(start.traverse())}
    return sorted(nodes, key=lambda node: position.get(node.mem_id, len(position)))


def first(scope: Union[Scope, HTMLParser, Node], selector: str) -> Optional[Node]:
    matches = find(scope, selector)
    return matches[0] if matches else None


def count(scope: Union[Scope, HTMLParser, Node], selector: str) -> int:
    return len(find(scope, selector))


def raw_text(node: Optional[Node]) -> str:
    """Concatenated text of ``node`` and its descendants, trimmed."""
    if node is None:
        return ""
    return (node.text(deep=True) or "").strip()


def normalize_text(text: Optional[str]) -> str:
    """Collapse runs of whitespace into single spaces and trim."""
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text).strip()


def clean_text(node: Optional[Node]) -> str:
    """Visible text of ``node`` with whitespace normalized."""
    if node is None:
        return ""
    return normalize_text(node.text(deep=True, separator=" "))


def attr(node: Optional[Node], name: str) -> str:
    if node is None:
        return ""
    value = node.attributes.get(name)
    return value.strip() if value else ""


def body_of(tree: HTMLParser) -> Optional[Node]:
    return tree.body


def is_element(node: Optional[Node]) -> bool:
    return node is not None and node.tag not in _NON_ELEMENT_TAGS


def next_element(node: Node) -> Optional[Node]:
    """The next sibling that is an element, skipping text and comments."""
    sibling = node.next
    while sibling is not None and not is_element(sibling):
        sibling = sibling.next
    return sibling


def has_ancestor(node: Node, tags: Iterable[str]) -> bool:
    wanted = set(tags)
    parent = node.parent
    while parent is not None:
        if parent.tag in wanted:
            return True
        parent = parent.parent
    return False


def class_of(node: Node) -> str:
    return node.attributes.get("class") or ""


def strip_noise(tree: HTMLParser, selector: str) -> HTMLParser:
    """Remove every node matching ``selector`` from ``tree`` in place."""
    matches = find(tree, selector)
    matched_ids = {node.mem_id for node in matches}
    # a matched ancestor takes its descendants with it
    outermost = [node for node in matches if not _has_ancestor_in(node, matched_ids)]
    for node in outermost:
        node.decompose()
    return tree


def _has_ancestor_in(node: Node, ids: Set[int]) -> bool:
    parent = node.parent
    while parent is not None:
        if parent.mem_id in ids:
            return True
        parent = parent.parent
    return False
