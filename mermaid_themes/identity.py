"""Stable content-based identifiers for Mermaid diagram sources."""
from __future__ import annotations

import hashlib

NAMESPACE = "mermaid"
HASH_LENGTH = 8


def _digest(source: str) -> str:
    return hashlib.md5(source.encode("utf-8")).hexdigest()[:HASH_LENGTH]


def identify(source: str) -> str:
    """Return ``mermaid-<hash>`` for *source*; used as the DOM id of a diagram."""
    return f"{NAMESPACE}-{_digest(source)}"


def identify_with_theme(source: str, theme: str) -> str:
    """Return ``mermaid-<hash>-<theme>``; the render cache key for one theme."""
    return f"{NAMESPACE}-{_digest(source)}-{theme}"
