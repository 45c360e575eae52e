"""
Shared fixtures and fake providers.
"""

import asyncio

import pytest

from locsync.providers.base import BaseTranslator, ProviderError
from locsync.storage.cache import TranslationCache


class FakeTranslator(BaseTranslator):
    """Prefixes every string with the target language; records each call."""

    def __init__(self, fail_on: set[str] | None = None, delay: float = 0.0):
        self.fail_on = fail_on or set()
        self.delay = delay
        self.calls: list[tuple[list[str], str]] = []
        self.active = 0
        self.max_active = 0

    @property
    def name(self) -> str:
        return "Fake"

    async def translate(self, strings: list[str], target_lang: str) -> list[str]:
        self.calls.append((list(strings), target_lang))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delay)
            if self.fail_on.intersection(strings):
                raise ProviderError("provider exploded")
            return [f"[{target_lang}] {text}" for text in strings]
        finally:
            self.active -= 1

    async def is_available(self) -> bool:
        return True


class ShortTranslator(FakeTranslator):
    """Drops the last translation of every batch."""

    async def translate(self, strings: list[str], target_lang: str) -> list[str]:
        translations = await super().translate(strings, target_lang)
        return translations[:-1]


class StaggeredTranslator(FakeTranslator):
    """Later batches finish first; records completion order by first string."""

    def __init__(self, step: float = 0.02, batches: int = 3):
        super().__init__()
        self.step = step
        self.batches = batches
        self.finished: list[str] = []

    async def translate(self, strings: list[str], target_lang: str) -> list[str]:
        self.delay = self.step * max(self.batches - len(self.calls), 0)
        translations = await super().translate(strings, target_lang)
        self.finished.append(strings[0])
        return translations


@pytest.fixture
def fake_translator():
    return FakeTranslator()


@pytest.fixture
def cache_path(tmp_path):
    return tmp_path / "cache" / "translation-cache.json"


@pytest.fixture
def cache(cache_path):
    """Empty cache bound to a temp file."""
    return TranslationCache.load(cache_path)
