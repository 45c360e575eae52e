"""
LLM-backed translator (Gemini, OpenAI, Anthropic) through DSPy.

DSPy calls are synchronous, so each batch runs in the default thread pool
with its own LM bound via ``dspy.context``; batches can then overlap.
"""

from __future__ import annotations

import asyncio
import logging
from functools import partial

import dspy

from locsync.config import Settings, get_settings
from locsync.i18n.languages import get_language_name, normalize_language_code
from locsync.providers.base import BaseTranslator
from locsync.providers.client import default_model, get_lm, provider_api_key
from locsync.providers.signatures import DetectLanguage, TranslateBatch


logger = logging.getLogger(__name__)

PROVIDER_NAMES = {
    "gemini": "Google Gemini",
    "openai": "OpenAI",
    "anthropic": "Anthropic Claude",
}

DEFAULT_CONTEXT = "user interface strings from a JSON localization file"


class LLMTranslator(BaseTranslator):
    """
    Batch translator over a DSPy ``Predict`` module.

    Usage:
        translator = LLMTranslator("gemini")
        texts_de = await translator.translate(["Hello", "Goodbye"], "de")
    """

    def __init__(
        self,
        provider: str = "gemini",
        model: str | None = None,
        settings: Settings | None = None,
        source_language: str = "en",
        context: str = DEFAULT_CONTEXT,
    ):
        self.provider = provider
        self.settings = settings or get_settings()
        self.model = model or default_model(provider, self.settings)
        self.source_language = source_language
        self.context = context

        # Lazy initialized
        self._lm: dspy.LM | None = None
        self._batch_module: dspy.Predict | None = None
        self._detect_module: dspy.Predict | None = None

    @property
    def name(self) -> str:
        return f"{PROVIDER_NAMES.get(self.provider, self.provider)} ({self.model})"

    @property
    def lm(self) -> dspy.LM:
        if self._lm is None:
            self._lm = get_lm(self.provider, self.model, self.settings)
        return self._lm

    @property
    def batch_module(self) -> dspy.Predict:
        if self._batch_module is None:
            self._batch_module = dspy.Predict(TranslateBatch)
        return self._batch_module

    @property
    def detect_module(self) -> dspy.Predict:
        if self._detect_module is None:
            self._detect_module = dspy.Predict(DetectLanguage)
        return self._detect_module

    async def translate(self, strings: list[str], target_lang: str) -> list[str]:
        if not strings:
            return []
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, partial(self._translate_sync, list(strings), target_lang)
        )

    def _translate_sync(self, strings: list[str], target_lang: str) -> list[str]:
        with dspy.context(lm=self.lm):
            result = self.batch_module(
                texts=strings,
                source_language=get_language_name(self.source_language),
                target_language=get_language_name(target_lang),
                context=self.context,
            )

        translations = [
            text if isinstance(text, str) else str(text)
            for text in (result.translated_texts or [])
        ]
        self.validate_response(strings, translations)
        return translations

    async def is_available(self) -> bool:
        try:
            return bool(provider_api_key(self.provider, self.settings))
        except ValueError:
            return False

    async def detect_language(self, samples: list[str]) -> str:
        """Detect the source language; English on any failure."""
        if not samples:
            return "en"

        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, partial(self._detect_sync, samples[:20]))
        except Exception as e:
            logger.warning(f"Language detection failed: {e}")
            return "en"

    def _detect_sync(self, samples: list[str]) -> str:
        with dspy.context(lm=self.lm):
            result = self.detect_module(text="\n".join(samples)[:2000])
        code = normalize_language_code(str(result.language_code))
        return code or "en"
