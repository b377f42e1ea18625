import asyncio
from pathlib import Path

import pytest

from mermaid_themes.exceptions import RenderFailure
from mermaid_themes.renderers.cache import MemoryRenderCache


class FakeRenderer:
    """Stands in for mmdc: writes a small SVG and records each call."""

    def __init__(self, delay: float = 0.0, delays=None, fail_on=None, write_output: bool = True, fail_themes=()):
        self.calls = []
        self.delay = delay
        self.delays = delays or {}
        self.fail_on = fail_on
        self.fail_themes = set(fail_themes)
        self.write_output = write_output
        self.active = 0
        self.max_active = 0

    async def __call__(self, input_path: Path, output_path: Path, options) -> None:
        source = input_path.read_text(encoding="utf-8")
        self.calls.append((source, options.theme, options.svg_id))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delays.get(options.theme, self.delay))
            if (self.fail_on and self.fail_on in source) or options.theme in self.fail_themes:
                raise RenderFailure(options.svg_id, options.theme, "mmdc exited with status 1")
            if self.write_output:
                output_path.write_text(
                    f'<svg xmlns="http://www.w3.org/2000/svg" id="{options.svg_id}" class="flowchart" '
                    f'viewBox="0 0 10 10"><g><text>{options.theme}</text></g></svg>',
                    encoding="utf-8",
                )
        finally:
            self.active -= 1


@pytest.fixture
def make_renderer():
    return FakeRenderer


@pytest.fixture
def fake_renderer():
    return FakeRenderer()


@pytest.fixture
def memory_cache():
    return MemoryRenderCache()
