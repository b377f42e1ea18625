"""Content-addressed render cache around the Mermaid renderer."""
from __future__ import annotations

import abc
import asyncio
import contextlib
import logging
import uuid
from pathlib import Path
from typing import Awaitable, Callable, Dict, Optional

from mermaid_themes.exceptions import RenderFailure
from mermaid_themes.identity import identify_with_theme
from mermaid_themes.renderers.mermaid_cli import MermaidCLIRenderer, RenderOptions
from mermaid_themes.schemas import PuppeteerConfig
from mermaid_themes.utils.config import settings
from mermaid_themes.utils.file_utils import ensure_dir, read_text_file, write_text_atomic

logger = logging.getLogger(__name__)

Renderer = Callable[[Path, Path, RenderOptions], Awaitable[None]]


class RenderCache(abc.ABC):
    """Key/value store for rendered SVG text, keyed by themed identity."""

    @abc.abstractmethod
    async def get(self, key: str) -> Optional[str]:
        ...

    @abc.abstractmethod
    async def put(self, key: str, svg: str) -> None:
        ...


class MemoryRenderCache(RenderCache):
    def __init__(self) -> None:
        self.entries: Dict[str, str] = {}
        self.hits = 0
        self.misses = 0

    async def get(self, key: str) -> Optional[str]:
        svg = self.entries.get(key)
        if svg is None:
            self.misses += 1
        else:
            self.hits += 1
        return svg

    async def put(self, key: str, svg: str) -> None:
        self.entries[key] = svg


class FileRenderCache(RenderCache):
    """Stores ``<key>.svg`` files; defaults to the system temp directory.

    Nothing is ever evicted.
    """

    def __init__(self, directory: Optional[str | Path] = None) -> None:
        self.directory = Path(directory or settings.cache_dir)

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}.svg"

    async def get(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not await asyncio.to_thread(path.exists):
            return None
        return await asyncio.to_thread(read_text_file, path)

    async def put(self, key: str, svg: str) -> None:
        await asyncio.to_thread(write_text_atomic, self.path_for(key), svg)


class CachedRenderer:
    """Render a (source, theme) pair at most once per cache key.

    Concurrent misses for the same key are not coalesced; each invokes the
    renderer and the last write wins.
    """

    def __init__(
        self,
        renderer: Optional[Renderer] = None,
        cache: Optional[RenderCache] = None,
        work_dir: Optional[str | Path] = None,
    ) -> None:
        self.renderer = renderer or MermaidCLIRenderer()
        self.cache = cache if cache is not None else FileRenderCache()
        self.work_dir = Path(work_dir or settings.cache_dir)
        self.render_calls = 0

    async def render_once(
        self,
        source: str,
        theme: str,
        puppeteer_config: Optional[PuppeteerConfig] = None,
        limiter: Optional[asyncio.Semaphore] = None,
    ) -> str:
        key = identify_with_theme(source, theme)
        cached = await self.cache.get(key)
        if cached is not None:
            logger.debug("Render cache hit for %s", key)
            return cached

        logger.debug("Render cache miss for %s", key)
        work_dir = await asyncio.to_thread(ensure_dir, self.work_dir)
        input_path = work_dir / f"{key}.mmd"
        output_path = work_dir / f"{key}.{uuid.uuid4().hex[:8]}.svg"
        await asyncio.to_thread(input_path.write_text, source, encoding="utf-8")

        options = RenderOptions(
            theme=theme,
            svg_id=key,
            puppeteer_config=puppeteer_config or PuppeteerConfig(),
        )
        async with limiter if limiter is not None else contextlib.nullcontext():
            self.render_calls += 1
            try:
                await self.renderer(input_path, output_path, options)
                svg = await asyncio.to_thread(read_text_file, output_path)
            except FileNotFoundError as exc:
                raise RenderFailure(key, theme, f"no output written to {output_path}") from exc
            except ValueError as exc:
                raise RenderFailure(key, theme, str(exc)) from exc
            finally:
                await asyncio.to_thread(output_path.unlink, missing_ok=True)

        await self.cache.put(key, svg)
        return svg
