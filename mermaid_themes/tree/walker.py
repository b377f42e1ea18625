"""Locate Mermaid code blocks in a parsed HTML tree."""
from __future__ import annotations

from typing import Iterator, List, Tuple

from bs4.element import Tag

from mermaid_themes.identity import identify
from mermaid_themes.schemas import Diagram

MERMAID_CLASS = "language-mermaid"


def _class_list(node: Tag) -> List[str]:
    value = node.get("class") or []
    if isinstance(value, str):
        return value.split()
    return list(value)


def walk(tree: Tag) -> Iterator[Tuple[Tag, List[Tag]]]:
    """Yield every element with its ancestor chain, parents before children."""
    stack: List[Tuple[Tag, List[Tag]]] = [(tree, [])]
    while stack:
        node, ancestors = stack.pop()
        yield node, ancestors
        children = [child for child in node.contents if isinstance(child, Tag)]
        chain = ancestors + [node]
        for child in reversed(children):
            stack.append((child, chain))


def is_mermaid_block(node: Tag) -> bool:
    return node.name == "code" and MERMAID_CLASS in _class_list(node)


def discover(tree: Tag) -> List[Diagram]:
    """Collect Mermaid blocks in document order and stamp each with its id.

    Identical sources are kept as separate occurrences sharing one id.
    """
    diagrams: List[Diagram] = []
    for node, ancestors in walk(tree):
        if not is_mermaid_block(node):
            continue
        source = node.get_text()
        identity = identify(source)
        node["id"] = identity
        diagrams.append(Diagram(source=source, identity=identity, node=node, ancestors=ancestors))
    return diagrams
