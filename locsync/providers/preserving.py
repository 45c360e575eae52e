"""
Format-preserving provider wrapper.

Masks protected substrings before the wrapped provider sees the text and
restores them afterwards. Only the provider-visible text is touched; the
cache and scheduler keep working with the original source strings.
"""

from __future__ import annotations

from locsync.i18n.formats import mask, unmask
from locsync.providers.base import (
    BaseTranslator,
    TranslationProvider,
    TranslationValidationError,
    validate_translations,
)


class FormatPreservingTranslator(BaseTranslator):
    """
    Wrap any provider with mask/unmask around each batch.

    A translation that lost one of its markers is rejected, so the batch
    falls back to the source strings instead of caching damaged text.
    """

    def __init__(self, inner: TranslationProvider):
        self.inner = inner

    @property
    def name(self) -> str:
        return f"{self.inner.name} [format-preserving]"

    async def translate(self, strings: list[str], target_lang: str) -> list[str]:
        masked = [mask(text) for text in strings]
        translations = await self.inner.translate([m.processed for m in masked], target_lang)
        validate_translations(strings, translations)

        restored: list[str] = []
        for index, (item, translation) in enumerate(zip(masked, translations)):
            missing = item.missing_markers(translation)
            if missing:
                raise TranslationValidationError(
                    f"Translation at index {index} lost preserved tokens: {', '.join(missing)}"
                )
            restored.append(unmask(translation, item.tokens))
        return restored

    async def is_available(self) -> bool:
        return await self.inner.is_available()

    async def detect_language(self, samples: list[str]) -> str:
        return await self.inner.detect_language(samples)
