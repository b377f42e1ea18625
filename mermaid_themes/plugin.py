"""Build-pipeline entry points: transform a parsed tree or an HTML string."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from bs4 import BeautifulSoup
from bs4.element import Tag

from mermaid_themes.orchestrator import render_all
from mermaid_themes.renderers.cache import CachedRenderer, RenderCache, Renderer
from mermaid_themes.schemas import Diagram, MermaidOptions, TransformReport
from mermaid_themes.tree.rewriter import rewrite
from mermaid_themes.tree.walker import discover
from mermaid_themes.utils.config import settings

logger = logging.getLogger(__name__)

OptionsLike = Union[MermaidOptions, Dict[str, Any], None]


def _coerce_options(options: OptionsLike) -> MermaidOptions:
    if isinstance(options, MermaidOptions):
        opts = options
    else:
        opts = MermaidOptions.model_validate(options or {})
    if opts.max_concurrency is None and settings.max_concurrency is not None:
        opts = opts.model_copy(update={"max_concurrency": settings.max_concurrency})
    return opts


class MermaidThemes:
    """Discover, render and splice every Mermaid block of a tree in one pass."""

    def __init__(
        self,
        options: OptionsLike = None,
        *,
        cache: Optional[RenderCache] = None,
        renderer: Optional[Renderer] = None,
        work_dir: Optional[str] = None,
    ) -> None:
        self.options = _coerce_options(options)
        self.cached_renderer = CachedRenderer(renderer=renderer, cache=cache, work_dir=work_dir)

    async def _apply(self, diagram: Diagram, svgs: Dict[str, str]) -> bool:
        return rewrite(
            diagram.node,
            diagram.ancestors,
            svgs,
            diagram.identity,
            self.options.svg_class_names,
        )

    async def transform(self, tree: Tag) -> TransformReport:
        diagrams = discover(tree)
        if not diagrams:
            return TransformReport()
        logger.info(
            "Rendering %d diagram(s) in theme(s) %s",
            len(diagrams),
            ", ".join(self.options.render_themes),
        )
        report = await render_all(diagrams, self.options, self.cached_renderer, on_rendered=self._apply)
        for miss in report.splice_misses:
            logger.warning("Diagram %s was rendered but not placed in the document", miss.identity)
        return report


def rehype_mermaid_cli(options: OptionsLike = None, **kwargs: Any) -> Callable[[Tag], Awaitable[TransformReport]]:
    """Return the tree transformer a build pipeline calls once per document."""
    return MermaidThemes(options, **kwargs).transform


def render_html(html: str, options: OptionsLike = None, **kwargs: Any) -> str:
    """Parse *html*, render its Mermaid blocks and return the new markup."""
    soup = BeautifulSoup(html, "html.parser")
    asyncio.run(MermaidThemes(options, **kwargs).transform(soup))
    return str(soup)
