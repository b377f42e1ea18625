"""Replace Mermaid blocks with themed SVG containers."""
from __future__ import annotations

import logging
from typing import List, Mapping, Optional, Sequence, Tuple

from bs4 import BeautifulSoup
from bs4.element import Tag

from mermaid_themes.tree.fragments import parse_svg

logger = logging.getLogger(__name__)

WRAPPER_CLASS = "mermaid-wrapper"
VISIBLE_STYLE = "display: block;"
HIDDEN_STYLE = "display: none;"


def _new_tag(name: str, attrs: dict) -> Tag:
    return BeautifulSoup("", "html.parser").new_tag(name, attrs=attrs)


def _add_svg_classes(nodes: List, svg_class_names: Optional[Sequence[str]]) -> None:
    if not svg_class_names:
        return
    root = next((n for n in nodes if isinstance(n, Tag)), None)
    if root is None or root.name != "svg":
        return
    existing = root.get("class") or []
    if isinstance(existing, str):
        existing = existing.split()
    root["class"] = list(existing) + list(svg_class_names)


def build_theme_container(
    theme: str,
    svg: str,
    identity: str,
    visible: bool,
    svg_class_names: Optional[Sequence[str]] = None,
) -> Tag:
    container = _new_tag(
        "div",
        {
            "id": f"mermaid-{theme}-{identity}",
            "class": ["mermaid", f"mermaid-{theme}"],
            "style": VISIBLE_STYLE if visible else HIDDEN_STYLE,
        },
    )
    nodes = parse_svg(svg)
    _add_svg_classes(nodes, svg_class_names)
    for node in nodes:
        container.append(node)
    return container


def build_wrapper(
    svgs_by_theme: Mapping[str, str],
    identity: str,
    svg_class_names: Optional[Sequence[str]] = None,
) -> Tag:
    """One container per theme in mapping order; only the first is shown."""
    wrapper = _new_tag("div", {"class": [WRAPPER_CLASS], "id": identity})
    for index, (theme, svg) in enumerate(svgs_by_theme.items()):
        wrapper.append(build_theme_container(theme, svg, identity, index == 0, svg_class_names))
    return wrapper


def resolve_target(node: Tag, ancestors: Sequence[Tag]) -> Tuple[Tag, Optional[Tag]]:
    """Return the element to replace and the parent it is spliced into.

    A ``<pre>`` directly around the code block is replaced along with it.
    """
    parent = ancestors[-1] if ancestors else None
    if parent is not None and parent.name == "pre":
        return parent, ancestors[-2] if len(ancestors) > 1 else None
    return node, parent


def _index_of(parent: Tag, target: Tag) -> int:
    # Tag.__eq__ compares markup, so equal-looking siblings need an identity check.
    for index, child in enumerate(parent.contents):
        if child is target:
            return index
    return -1


def rewrite(
    node: Tag,
    ancestors: Sequence[Tag],
    svgs_by_theme: Mapping[str, str],
    identity: str,
    svg_class_names: Optional[Sequence[str]] = None,
) -> bool:
    """Splice the themed wrapper in place of the block; False on a splice miss."""
    target, splice_parent = resolve_target(node, ancestors)
    index = _index_of(splice_parent, target) if splice_parent is not None else -1
    if index == -1:
        logger.warning("Could not locate %s in its parent; leaving block unrendered", identity)
        return False

    wrapper = build_wrapper(svgs_by_theme, identity, svg_class_names)
    target.extract()
    splice_parent.insert(index, wrapper)
    return True
