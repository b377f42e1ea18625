"""Exceptions raised while rendering and splicing diagrams."""
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from mermaid_themes.schemas import TransformReport


class MermaidThemesError(Exception):
    """Base class for errors raised by this package."""


class RenderFailure(MermaidThemesError):
    """The external renderer did not produce an artifact for a diagram/theme."""

    def __init__(self, identity: str, theme: str, reason: str) -> None:
        self.identity = identity
        self.theme = theme
        self.reason = reason
        super().__init__(f"Failed to render {identity} (theme {theme!r}): {reason}")


class FragmentParseFailure(MermaidThemesError):
    """Rendered markup could not be parsed back into tree nodes."""


class TransformFailure(MermaidThemesError):
    """At least one diagram failed and the failure policy is all-or-nothing."""

    def __init__(self, message: str, report: Optional["TransformReport"] = None) -> None:
        self.report = report
        super().__init__(message)
