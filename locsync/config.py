"""
Application configuration.

Loads settings from environment variables (and an optional .env file)
with sensible defaults. CLI options override these per run.
"""

from __future__ import annotations

import os
import sys
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings


APP_NAME = "locsync"
CACHE_FILE_NAME = "translation-cache.json"


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # ==========================================================================
    # Translation provider
    # ==========================================================================

    # gemini | openai | anthropic | ollama
    translation_provider: str = "gemini"

    # Gemini (accepts either GOOGLE_API_KEY or GEMINI_API_KEY)
    google_api_key: str = ""
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash-lite"

    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-3-5-haiku-latest"

    # Local Ollama server
    ollama_url: str = "http://localhost:11434"
    ollama_model: str = "deepseek-r1:latest"
    ollama_timeout: float = 60.0
    ollama_max_retries: int = 3

    # ==========================================================================
    # Batching
    # ==========================================================================

    max_batch_size: int = 100
    max_concurrent_batches: int = 8

    # Mask URLs, placeholders, dates, ... before text reaches the provider
    preserve_formats: bool = False

    # ==========================================================================
    # Cache
    # ==========================================================================

    # Empty means the platform default (see default_cache_file)
    cache_file: str = ""

    # ==========================================================================
    # Helpers
    # ==========================================================================

    @property
    def gemini_key(self) -> str:
        return self.gemini_api_key or self.google_api_key

    @property
    def resolved_cache_file(self) -> Path:
        if self.cache_file:
            return Path(self.cache_file).expanduser().resolve()
        return default_cache_file()

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


def cache_directory() -> Path:
    """Platform-appropriate cache directory for locsync."""
    home = Path.home()
    if sys.platform == "win32":
        base = os.environ.get("APPDATA") or str(home / "AppData" / "Roaming")
        return Path(base) / APP_NAME
    if sys.platform == "darwin":
        return home / "Library" / "Caches" / APP_NAME
    base = os.environ.get("XDG_CACHE_HOME") or str(home / ".cache")
    return Path(base) / APP_NAME


def default_cache_file() -> Path:
    return cache_directory() / CACHE_FILE_NAME


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
