"""Application configuration."""
from __future__ import annotations

import tempfile
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings loaded from .env and environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="MERMAID_THEMES_",
        extra="ignore",
    )

    mmdc_path: str = Field(
        default="mmdc",
        validation_alias=AliasChoices("MERMAID_THEMES_MMDC_PATH", "MMDC_PATH"),
    )
    cache_dir: str = tempfile.gettempdir()
    render_timeout: Optional[float] = None  # seconds; None waits forever
    max_concurrency: Optional[int] = None
    log_level: str = "INFO"


settings = Settings()
