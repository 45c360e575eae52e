"""
Translation provider contract.

Every backend implements the same small capability:

    name            human-readable provider name
    translate()     ordered batch in, ordered batch of equal length out
    is_available()  cheap liveness probe, returns False instead of raising

Providers may retry internally. Anything that escapes ``translate`` is
treated by the scheduler as a failure of the whole batch.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from typing import Sequence


logger = logging.getLogger(__name__)

_PROPER_NOUN = re.compile(r"^[A-Z][a-z]*(\s[A-Z][a-z]*)*$")


class TranslationValidationError(ValueError):
    """Provider output does not line up with its input."""
    pass


class ProviderError(RuntimeError):
    """Transport or response-parsing failure in a provider."""
    pass


class ProviderUnavailableError(ProviderError):
    """No working provider could be set up."""
    pass


def validate_translations(strings: Sequence[str], translations: Sequence[str]) -> None:
    """
    Check a provider response before it is trusted.

    Raises:
        TranslationValidationError: count mismatch, a non-string or a blank entry
    """
    if len(translations) != len(strings):
        raise TranslationValidationError(
            f"Translation count mismatch: expected {len(strings)}, got {len(translations)}"
        )

    for index, translation in enumerate(translations):
        if not isinstance(translation, str) or not translation.strip():
            raise TranslationValidationError(
                f"Empty translation at index {index}: input was {strings[index]!r}"
            )


class TranslationProvider(ABC):
    """
    Base class for all translation backends.

    Example:
        class EchoTranslator(TranslationProvider):
            name = "Echo"

            async def translate(self, strings, target_lang):
                return list(strings)

            async def is_available(self):
                return True
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable provider name."""
        pass

    @abstractmethod
    async def translate(self, strings: list[str], target_lang: str) -> list[str]:
        """
        Translate an ordered batch of strings.

        Args:
            strings: Source strings, in order
            target_lang: Target language code (BCP-47-like)

        Returns:
            Translations, same length and order as ``strings``
        """
        pass

    @abstractmethod
    async def is_available(self) -> bool:
        """Whether the backend can be used right now."""
        pass

    async def detect_language(self, samples: list[str]) -> str:
        """
        Guess the source language of some sample strings.

        Backends without detection report English.
        """
        return "en"

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name={self.name!r})>"


class BaseTranslator(TranslationProvider):
    """Provider base with response validation shared by all backends."""

    def validate_response(self, strings: Sequence[str], translations: Sequence[str]) -> None:
        """
        Validate a batch response, warning about suspicious echoes.

        An output identical to a multi-word, non-proper-noun input often means
        the model skipped it; that is logged but not rejected.
        """
        validate_translations(strings, translations)

        for index, (source, translation) in enumerate(zip(strings, translations)):
            if translation != source:
                continue
            if " " not in source or _PROPER_NOUN.match(source):
                continue
            logger.warning(
                f"{self.name}: translation identical to input at index {index}: {source!r}"
            )
