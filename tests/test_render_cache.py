import asyncio
import os

import pytest

from mermaid_themes.exceptions import RenderFailure
from mermaid_themes.identity import identify_with_theme
from mermaid_themes.renderers.cache import CachedRenderer, FileRenderCache, RenderCache
from mermaid_themes.renderers.mermaid_cli import MermaidCLIRenderer, RenderOptions
from mermaid_themes.schemas import PuppeteerConfig


def test_cache_hit_skips_renderer(fake_renderer, memory_cache, tmp_path):
    cached = CachedRenderer(renderer=fake_renderer, cache=memory_cache, work_dir=tmp_path)

    first = asyncio.run(cached.render_once("graph TD; A-->B;", "default"))
    second = asyncio.run(cached.render_once("graph TD; A-->B;", "default"))

    assert first == second
    assert len(fake_renderer.calls) == 1
    assert memory_cache.hits == 1
    assert identify_with_theme("graph TD; A-->B;", "default") in memory_cache.entries


def test_each_theme_gets_its_own_entry(fake_renderer, memory_cache, tmp_path):
    cached = CachedRenderer(renderer=fake_renderer, cache=memory_cache, work_dir=tmp_path)
    asyncio.run(cached.render_once("graph TD; A-->B;", "default"))
    asyncio.run(cached.render_once("graph TD; A-->B;", "dark"))
    assert [call[1] for call in fake_renderer.calls] == ["default", "dark"]
    assert len(memory_cache.entries) == 2


def test_renderer_receives_staged_source_and_svg_id(fake_renderer, memory_cache, tmp_path):
    cached = CachedRenderer(renderer=fake_renderer, cache=memory_cache, work_dir=tmp_path)
    asyncio.run(cached.render_once("graph LR; X-->Y;", "forest"))
    source, theme, svg_id = fake_renderer.calls[0]
    key = identify_with_theme("graph LR; X-->Y;", "forest")
    assert source == "graph LR; X-->Y;"
    assert svg_id == key
    assert (tmp_path / f"{key}.mmd").read_text(encoding="utf-8") == source


def test_failed_render_is_not_cached(make_renderer, memory_cache, tmp_path):
    renderer = make_renderer(fail_on="broken")
    cached = CachedRenderer(renderer=renderer, cache=memory_cache, work_dir=tmp_path)
    with pytest.raises(RenderFailure) as excinfo:
        asyncio.run(cached.render_once("broken graph", "dark"))
    assert excinfo.value.theme == "dark"
    assert excinfo.value.identity == identify_with_theme("broken graph", "dark")
    assert memory_cache.entries == {}


def test_missing_output_raises_render_failure(make_renderer, memory_cache, tmp_path):
    renderer = make_renderer(write_output=False)
    cached = CachedRenderer(renderer=renderer, cache=memory_cache, work_dir=tmp_path)
    with pytest.raises(RenderFailure, match="no output"):
        asyncio.run(cached.render_once("graph TD; A-->B;", "default"))
    assert memory_cache.entries == {}


def test_file_cache_survives_new_renderer_instance(fake_renderer, tmp_path):
    cache = FileRenderCache(tmp_path / "cache")
    first = CachedRenderer(renderer=fake_renderer, cache=cache, work_dir=tmp_path)
    svg = asyncio.run(first.render_once("graph TD; A-->B;", "default"))

    key = identify_with_theme("graph TD; A-->B;", "default")
    assert cache.path_for(key).read_text(encoding="utf-8") == svg
    assert cache.path_for(key).name == f"{key}.svg"

    second = CachedRenderer(renderer=fake_renderer, cache=cache, work_dir=tmp_path)
    assert asyncio.run(second.render_once("graph TD; A-->B;", "default")) == svg
    assert len(fake_renderer.calls) == 1


def test_staging_output_is_removed(fake_renderer, memory_cache, tmp_path):
    cached = CachedRenderer(renderer=fake_renderer, cache=memory_cache, work_dir=tmp_path)
    asyncio.run(cached.render_once("graph TD; A-->B;", "default"))
    assert not list(tmp_path.glob("*.svg"))


def test_cli_command_line(tmp_path):
    renderer = MermaidCLIRenderer(executable="mmdc")
    options = RenderOptions(
        theme="dark",
        svg_id="mermaid-abc12345-dark",
        puppeteer_config=PuppeteerConfig(headless=True, args=["--no-sandbox"]),
    )
    cmd = renderer.build_command(tmp_path / "in.mmd", tmp_path / "out.svg", options)

    assert cmd[0] == "mmdc"
    assert cmd[cmd.index("-b") + 1] == "transparent"
    assert cmd[cmd.index("-t") + 1] == "dark"
    assert cmd[cmd.index("-I") + 1] == "mermaid-abc12345-dark"
    config_path = cmd[cmd.index("-p") + 1]
    assert '"--no-sandbox"' in open(config_path, encoding="utf-8").read()


def test_missing_executable_raises_render_failure(tmp_path):
    renderer = MermaidCLIRenderer(executable=str(tmp_path / "no-such-mmdc"))
    input_path = tmp_path / "in.mmd"
    input_path.write_text("graph TD; A-->B;", encoding="utf-8")
    options = RenderOptions(theme="default", svg_id="mermaid-x-default")
    with pytest.raises(RenderFailure, match="cannot launch"):
        asyncio.run(renderer.render(input_path, tmp_path / "out.svg", options))


def _script(tmp_path, name, body):
    path = tmp_path / name
    path.write_text("#!/bin/sh\n" + body + "\n", encoding="utf-8")
    path.chmod(0o755)
    return str(path)


def _render_with(executable, tmp_path, timeout=None):
    renderer = MermaidCLIRenderer(executable=executable, timeout=timeout)
    input_path = tmp_path / "in.mmd"
    input_path.write_text("graph TD; A-->B;", encoding="utf-8")
    options = RenderOptions(theme="default", svg_id="mermaid-x-default")
    return renderer.render(input_path, tmp_path / "out.svg", options)


def test_nonzero_exit_raises_and_logs_stderr(tmp_path, caplog):
    executable = _script(tmp_path, "mmdc-fail", "echo 'Parse error on line 1' >&2\nexit 1")
    with pytest.raises(RenderFailure, match="exited with status 1"):
        asyncio.run(_render_with(executable, tmp_path))
    assert "Parse error on line 1" in caplog.text


def test_timeout_kills_renderer(tmp_path):
    executable = _script(tmp_path, "mmdc-hang", "exec sleep 30")
    with pytest.raises(RenderFailure, match="timed out"):
        asyncio.run(_render_with(executable, tmp_path, timeout=0.05))


def test_success_without_output_file_raises(tmp_path):
    executable = _script(tmp_path, "mmdc-silent", "exit 0")
    with pytest.raises(RenderFailure, match="no output written"):
        asyncio.run(_render_with(executable, tmp_path))


def test_cancelled_render_kills_renderer(tmp_path):
    pid_file = tmp_path / "mmdc.pid"
    executable = _script(tmp_path, "mmdc-slow", f"echo $$ > {pid_file}\nexec sleep 30")

    async def run():
        task = asyncio.ensure_future(_render_with(executable, tmp_path))
        for _ in range(200):
            if pid_file.exists() and pid_file.read_text().strip():
                break
            await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        return int(pid_file.read_text().strip())

    pid = asyncio.run(run())
    with pytest.raises(ProcessLookupError):
        os.kill(pid, 0)


def test_undecodable_output_is_not_cached(memory_cache, tmp_path):
    async def latin1_renderer(input_path, output_path, options):
        output_path.write_bytes("<svg><text>café</text></svg>".encode("latin-1"))

    cached = CachedRenderer(renderer=latin1_renderer, cache=memory_cache, work_dir=tmp_path)
    with pytest.raises(RenderFailure, match="not valid UTF-8"):
        asyncio.run(cached.render_once("graph TD; A-->B;", "default"))
    assert memory_cache.entries == {}


def test_incomplete_cache_cannot_be_created():
    class GetOnly(RenderCache):
        async def get(self, key):
            return None

    with pytest.raises(TypeError):
        GetOnly()
