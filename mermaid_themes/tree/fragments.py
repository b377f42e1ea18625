"""Turn markup text into nodes that can be spliced into a tree."""
from __future__ import annotations

from typing import List

from bs4 import BeautifulSoup, FeatureNotFound
from bs4.element import PageElement

from mermaid_themes.exceptions import FragmentParseFailure


def _detach(soup: BeautifulSoup) -> List[PageElement]:
    return [child.extract() for child in list(soup.contents)]


def parse_fragment(markup: str, features: str = "html.parser") -> List[PageElement]:
    """Parse an HTML fragment into detached top-level nodes."""
    try:
        soup = BeautifulSoup(markup, features)
    except FeatureNotFound as exc:
        raise FragmentParseFailure(f"No parser available for {features!r}") from exc
    except Exception as exc:
        raise FragmentParseFailure(f"Unable to parse fragment: {exc}") from exc
    return _detach(soup)


def parse_svg(markup: str) -> List[PageElement]:
    """Parse SVG markup with the XML builder so ``viewBox`` keeps its case."""
    nodes = parse_fragment(markup.strip(), features="xml")
    if not nodes:
        raise FragmentParseFailure("Rendered markup contained no nodes")
    return nodes
