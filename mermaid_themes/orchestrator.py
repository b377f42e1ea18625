"""Fan diagram renders out across themes and diagrams."""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from mermaid_themes.exceptions import TransformFailure
from mermaid_themes.renderers.cache import CachedRenderer
from mermaid_themes.schemas import Diagram, DiagramResult, MermaidOptions, PuppeteerConfig, TransformReport

logger = logging.getLogger(__name__)

OnRendered = Callable[[Diagram, Dict[str, str]], Awaitable[bool]]


def make_limiter(max_concurrency: Optional[int]) -> Optional[asyncio.Semaphore]:
    """Semaphore bounding simultaneous renderer processes; None means unbounded."""
    if max_concurrency is None:
        return None
    return asyncio.Semaphore(max_concurrency)


async def render_diagram(
    diagram: Diagram,
    themes: Sequence[str],
    cached_renderer: CachedRenderer,
    puppeteer_config: Optional[PuppeteerConfig] = None,
    limiter: Optional[asyncio.Semaphore] = None,
) -> Dict[str, str]:
    """Render every theme at once; the mapping follows the order of *themes*.

    All themes settle before the first failure, in theme order, is raised.
    """
    outcomes = await asyncio.gather(
        *(
            cached_renderer.render_once(diagram.source, theme, puppeteer_config, limiter)
            for theme in themes
        ),
        return_exceptions=True,
    )
    for outcome in outcomes:
        if isinstance(outcome, BaseException):
            raise outcome
    return dict(zip(themes, outcomes))


async def _render_and_apply(
    diagram: Diagram,
    options: MermaidOptions,
    cached_renderer: CachedRenderer,
    limiter: Optional[asyncio.Semaphore],
    on_rendered: Optional[OnRendered],
) -> DiagramResult:
    result = DiagramResult(identity=diagram.identity)
    try:
        result.svgs = await render_diagram(
            diagram, options.render_themes, cached_renderer, options.puppeteer_config, limiter
        )
        if on_rendered is not None:
            result.spliced = await on_rendered(diagram, result.svgs)
    except Exception as exc:
        logger.error("Diagram %s failed: %s", diagram.identity, exc)
        result.error = exc
    return result


async def render_all(
    diagrams: Sequence[Diagram],
    options: MermaidOptions,
    cached_renderer: CachedRenderer,
    *,
    on_rendered: Optional[OnRendered] = None,
) -> TransformReport:
    """Render all diagrams concurrently and hand each to *on_rendered* when ready.

    Every diagram settles before this returns. Under ``all_or_nothing`` any
    failure raises TransformFailure; diagrams already spliced stay spliced.
    """
    limiter = make_limiter(options.max_concurrency)
    results: List[DiagramResult] = await asyncio.gather(
        *(_render_and_apply(d, options, cached_renderer, limiter, on_rendered) for d in diagrams)
    )
    report = TransformReport(results=list(results))

    failed = report.failed
    if failed and options.failure_policy == "all_or_nothing":
        first = failed[0]
        raise TransformFailure(
            f"{len(failed)} of {len(results)} diagram(s) failed; first: {first.error}",
            report=report,
        ) from first.error
    return report
