"""
LLM client configuration using DSPy.

Supports Gemini (primary), OpenAI, and Anthropic.
"""

from __future__ import annotations

import dspy

from locsync.config import Settings, get_settings
from locsync.providers.base import ProviderUnavailableError


LLM_PROVIDERS = ("gemini", "openai", "anthropic")


def provider_api_key(provider: str, settings: Settings | None = None) -> str:
    """API key configured for an LLM provider ("" if none)."""
    settings = settings or get_settings()
    if provider == "gemini":
        return settings.gemini_key
    if provider == "openai":
        return settings.openai_api_key
    if provider == "anthropic":
        return settings.anthropic_api_key
    raise ValueError(f"Unknown provider: {provider}")


def default_model(provider: str, settings: Settings | None = None) -> str:
    settings = settings or get_settings()
    return {
        "gemini": settings.gemini_model,
        "openai": settings.openai_model,
        "anthropic": settings.anthropic_model,
    }[provider]


def get_lm(
    provider: str = "gemini",
    model: str | None = None,
    settings: Settings | None = None,
) -> dspy.LM:
    """
    Get configured language model.
    
    Args:
        provider: 'gemini', 'openai', or 'anthropic'
        model: Model name. Defaults to the provider's configured model.
    
    Returns:
        DSPy LM instance (routed through litellm with a provider prefix)
    
    Raises:
        ProviderUnavailableError: no API key configured
    """
    settings = settings or get_settings()
    if provider not in LLM_PROVIDERS:
        raise ValueError(f"Unknown provider: {provider}")

    api_key = provider_api_key(provider, settings)
    if not api_key:
        hint = "GEMINI_API_KEY or GOOGLE_API_KEY" if provider == "gemini" else f"{provider.upper()}_API_KEY"
        raise ProviderUnavailableError(f"{hint} not set")

    model = model or default_model(provider, settings)
    return dspy.LM(
        model=f"{provider}/{model}",
        api_key=api_key,
        temperature=0.1,
    )
