"""File utilities."""
from __future__ import annotations

import os
import tempfile
from pathlib import Path


def ensure_dir(path: str | Path) -> Path:
    """Ensure directory exists and return Path."""
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def read_text_file(path: str | Path) -> str:
    """Read a file as UTF-8.

    - Raises FileNotFoundError with the path when the file is missing.
    - Raises ValueError when the content is not valid UTF-8.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Missing file: {path}")
    try:
        return p.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ValueError(f"Unable to read text file: {p.name} is not valid UTF-8") from exc


def write_text_atomic(path: str | Path, text: str) -> Path:
    """Write text next to *path* and move it into place in one step."""
    p = Path(path)
    ensure_dir(p.parent)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{p.name}.", dir=p.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(text)
        os.replace(tmp_name, p)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return p
