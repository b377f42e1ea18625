"""CLI interface."""
from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import List, Optional

import typer
from bs4 import BeautifulSoup

from mermaid_themes.exceptions import TransformFailure
from mermaid_themes.plugin import MermaidThemes
from mermaid_themes.schemas import MermaidOptions, PuppeteerConfig
from mermaid_themes.utils.config import settings

app = typer.Typer(add_completion=False)
logger = logging.getLogger("mermaid_themes")


@app.callback()
def main(log_level: str = typer.Option(settings.log_level, "--log-level", help="Python logging level.")):
    """Render Mermaid code blocks in HTML into themed inline SVG."""
    logging.basicConfig(level=log_level.upper(), format="%(levelname)s %(name)s: %(message)s")


@app.command()
def render(
    input_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="HTML file to transform."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write HTML here instead of stdout."),
    theme: List[str] = typer.Option(["default"], "--theme", "-t", help="Theme to render; first is visible."),
    svg_class: List[str] = typer.Option(None, "--svg-class", help="Extra class added to each <svg>.", show_default=False),
    max_concurrency: Optional[int] = typer.Option(None, "--max-concurrency", min=1),
    skip_failed: bool = typer.Option(False, "--skip-failed", help="Leave failing blocks untouched instead of aborting."),
    headless: bool = typer.Option(True, "--headless/--no-headless"),
    browser_arg: List[str] = typer.Option(None, "--browser-arg", help="Extra browser process argument.", show_default=False),
):
    """Transform INPUT_FILE and print the JSON report to stderr."""
    options = MermaidOptions(
        render_themes=theme,
        svg_class_names=svg_class or None,
        puppeteer_config=PuppeteerConfig(headless=headless, args=browser_arg or []),
        max_concurrency=max_concurrency,
        failure_policy="skip_failed" if skip_failed else "all_or_nothing",
    )
    soup = BeautifulSoup(input_file.read_text(encoding="utf-8"), "html.parser")
    try:
        report = asyncio.run(MermaidThemes(options).transform(soup))
    except TransformFailure as exc:
        logger.exception("Transform failed")
        if exc.report is not None:
            typer.echo(json.dumps(exc.report.summary(), indent=2), err=True)
        raise typer.Exit(code=1)

    html = str(soup)
    if output is None:
        typer.echo(html)
    else:
        output.write_text(html, encoding="utf-8")
    typer.echo(json.dumps(report.summary(), indent=2), err=True)


if __name__ == "__main__":
    app()
