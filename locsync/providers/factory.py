"""
Provider selection.

Turns a provider name plus settings into a ready-to-use translator, or
fails early with instructions when nothing usable is configured.
"""

from __future__ import annotations

import logging

from locsync.config import Settings, get_settings
from locsync.providers.base import ProviderUnavailableError, TranslationProvider
from locsync.providers.client import LLM_PROVIDERS, provider_api_key
from locsync.providers.llm import LLMTranslator
from locsync.providers.ollama import OllamaTranslator
from locsync.providers.preserving import FormatPreservingTranslator


logger = logging.getLogger(__name__)

PROVIDER_TYPES = (*LLM_PROVIDERS, "ollama")


async def create_provider(
    kind: str | None = None,
    settings: Settings | None = None,
    preserve_formats: bool | None = None,
) -> TranslationProvider:
    """
    Create and check a translation provider.

    Args:
        kind: One of PROVIDER_TYPES; defaults to settings.translation_provider
        preserve_formats: Wrap with FormatPreservingTranslator
            (defaults to settings.preserve_formats)

    Raises:
        ProviderUnavailableError: unknown kind, missing key, or Ollama not reachable
    """
    settings = settings or get_settings()
    kind = (kind or settings.translation_provider).lower()
    if preserve_formats is None:
        preserve_formats = settings.preserve_formats

    if kind == "ollama":
        provider: TranslationProvider = OllamaTranslator(settings=settings)
        if not await provider.is_available():
            raise ProviderUnavailableError(
                f"Ollama is not available at {settings.ollama_url} or model "
                f"'{settings.ollama_model}' is not installed.\n"
                f"Run: ollama pull {settings.ollama_model}"
            )
    elif kind in LLM_PROVIDERS:
        if not provider_api_key(kind, settings):
            raise ProviderUnavailableError(
                "No translation provider available. Either:\n"
                f"1. Set the API key for '{kind}' (e.g. GEMINI_API_KEY)\n"
                "2. Use --provider ollama with Ollama running locally"
            )
        provider = LLMTranslator(kind, settings=settings)
    else:
        raise ProviderUnavailableError(
            f"Unknown provider '{kind}'. Choose one of: {', '.join(PROVIDER_TYPES)}"
        )

    if preserve_formats:
        provider = FormatPreservingTranslator(provider)

    logger.info(f"Using translation provider: {provider.name}")
    return provider


async def list_available_providers(settings: Settings | None = None) -> list[str]:
    """Describe every backend that could be used right now."""
    settings = settings or get_settings()
    available: list[str] = []

    for kind in LLM_PROVIDERS:
        if provider_api_key(kind, settings):
            available.append(f"{kind} (API key found)")

    ollama = OllamaTranslator(settings=settings)
    if await ollama.is_available():
        available.append(f"ollama (local, {ollama.model})")

    return available
