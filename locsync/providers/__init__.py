"""
Translation providers.

One capability interface (name, translate, is_available) with a backend
per implementing class:

- LLMTranslator: Gemini / OpenAI / Anthropic through DSPy
- OllamaTranslator: local models over HTTP
- FormatPreservingTranslator: mask/unmask wrapper around any provider
"""

from locsync.providers.base import (
    BaseTranslator,
    ProviderError,
    ProviderUnavailableError,
    TranslationProvider,
    TranslationValidationError,
    validate_translations,
)
from locsync.providers.factory import (
    PROVIDER_TYPES,
    create_provider,
    list_available_providers,
)
from locsync.providers.llm import LLMTranslator
from locsync.providers.ollama import OllamaTranslator, parse_translation_response
from locsync.providers.preserving import FormatPreservingTranslator

__all__ = [
    # Contract
    "BaseTranslator",
    "ProviderError",
    "ProviderUnavailableError",
    "TranslationProvider",
    "TranslationValidationError",
    "validate_translations",
    # Backends
    "FormatPreservingTranslator",
    "LLMTranslator",
    "OllamaTranslator",
    "parse_translation_response",
    # Factory
    "PROVIDER_TYPES",
    "create_provider",
    "list_available_providers",
]
