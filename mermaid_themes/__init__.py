"""Render Mermaid code blocks in HTML trees into themed inline SVG."""

from mermaid_themes.plugin import MermaidThemes, rehype_mermaid_cli, render_html
from mermaid_themes.schemas import MermaidOptions, PuppeteerConfig, TransformReport

__all__ = [
    "MermaidOptions",
    "MermaidThemes",
    "PuppeteerConfig",
    "TransformReport",
    "rehype_mermaid_cli",
    "render_html",
]
