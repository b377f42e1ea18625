"""Plugin options and the records passed between pipeline stages."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional, Union, get_args

from bs4.element import Tag
from pydantic import AliasChoices, BaseModel, Field, field_validator

Theme = Literal["default", "base", "dark", "forest", "neutral", "null"]
THEMES: tuple[str, ...] = get_args(Theme)

FailurePolicy = Literal["all_or_nothing", "skip_failed"]


class PuppeteerConfig(BaseModel):
    """Browser launch options forwarded verbatim to mermaid-cli."""

    headless: Union[bool, str] = True
    args: List[str] = []

    model_config = {
        "extra": "forbid",
    }


class MermaidOptions(BaseModel):
    # Themes are not checked against THEMES; mmdc rejects unknown ones at render time.
    render_themes: List[str] = Field(default_factory=lambda: ["default"], alias="renderThemes")
    svg_class_names: Optional[List[str]] = Field(default=None, alias="svgClassNames")
    puppeteer_config: Optional[PuppeteerConfig] = Field(
        default=None,
        validation_alias=AliasChoices("puppeteerConfig", "rendererProcessOptions", "puppeteer_config"),
        serialization_alias="puppeteerConfig",
    )
    max_concurrency: Optional[int] = Field(default=None, alias="maxConcurrency", gt=0)
    failure_policy: FailurePolicy = Field(default="all_or_nothing", alias="failurePolicy")

    model_config = {
        "populate_by_name": True,
        "extra": "forbid",
    }

    @field_validator("render_themes")
    @classmethod
    def _unique_themes(cls, value: List[str]) -> List[str]:
        if not value:
            raise ValueError("renderThemes must name at least one theme")
        seen: List[str] = []
        for theme in value:
            if theme not in seen:
                seen.append(theme)
        return seen


@dataclass
class Diagram:
    """A discovered ``code.language-mermaid`` block."""

    source: str
    identity: str
    node: Tag
    ancestors: List[Tag]


@dataclass
class DiagramResult:
    identity: str
    svgs: Dict[str, str] = field(default_factory=dict)
    error: Optional[BaseException] = None
    spliced: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class TransformReport:
    results: List[DiagramResult] = field(default_factory=list)

    @property
    def rendered(self) -> List[DiagramResult]:
        return [r for r in self.results if r.ok and r.spliced]

    @property
    def failed(self) -> List[DiagramResult]:
        return [r for r in self.results if not r.ok]

    @property
    def splice_misses(self) -> List[DiagramResult]:
        return [r for r in self.results if r.ok and not r.spliced]

    def summary(self) -> dict:
        return {
            "diagrams": len(self.results),
            "rendered": [r.identity for r in self.rendered],
            "failed": {r.identity: str(r.error) for r in self.failed},
            "splice_misses": [r.identity for r in self.splice_misses],
        }
