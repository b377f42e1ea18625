"""Mermaid renderer using the mermaid-cli (``mmdc``) executable."""
from __future__ import annotations

import asyncio
import hashlib
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from mermaid_themes.exceptions import RenderFailure
from mermaid_themes.schemas import PuppeteerConfig
from mermaid_themes.utils.config import settings
from mermaid_themes.utils.file_utils import write_text_atomic

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderOptions:
    theme: str
    svg_id: str
    background_color: str = "transparent"
    puppeteer_config: PuppeteerConfig = field(default_factory=PuppeteerConfig)


def _puppeteer_config_file(config: PuppeteerConfig, directory: Path) -> Path:
    payload = json.dumps(config.model_dump(), sort_keys=True)
    digest = hashlib.md5(payload.encode("utf-8")).hexdigest()[:8]
    path = directory / f"puppeteer-{digest}.json"
    if not path.exists():
        write_text_atomic(path, payload)
    return path


async def _terminate(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
    await proc.wait()


class MermaidCLIRenderer:
    """Invoke ``mmdc`` once per (input, output, options) triple."""

    def __init__(self, executable: Optional[str] = None, timeout: Optional[float] = None) -> None:
        self.executable = executable or settings.mmdc_path
        self.timeout = timeout if timeout is not None else settings.render_timeout

    def build_command(self, input_path: Path, output_path: Path, options: RenderOptions) -> List[str]:
        config_path = _puppeteer_config_file(options.puppeteer_config, input_path.parent)
        return [
            self.executable,
            "-i",
            str(input_path),
            "-o",
            str(output_path),
            "-b",
            options.background_color,
            "-t",
            options.theme,
            "-I",
            options.svg_id,
            "-p",
            str(config_path),
        ]

    async def __call__(self, input_path: Path, output_path: Path, options: RenderOptions) -> None:
        await self.render(input_path, output_path, options)

    async def render(self, input_path: Path, output_path: Path, options: RenderOptions) -> None:
        cmd = self.build_command(input_path, output_path, options)
        logger.info("Rendering %s with %s", options.svg_id, self.executable)
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise RenderFailure(options.svg_id, options.theme, f"cannot launch {self.executable}: {exc}") from exc

        try:
            _, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            await _terminate(proc)
            raise RenderFailure(options.svg_id, options.theme, f"timed out after {self.timeout}s") from exc
        except BaseException:
            # cancelled mid-render; do not leave mmdc running
            await _terminate(proc)
            raise

        if proc.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            logger.warning("mmdc exited with %s for %s: %s", proc.returncode, options.svg_id, message)
            raise RenderFailure(
                options.svg_id,
                options.theme,
                f"{self.executable} exited with status {proc.returncode}: {message}",
            )
        if not output_path.exists():
            raise RenderFailure(options.svg_id, options.theme, f"no output written to {output_path}")
