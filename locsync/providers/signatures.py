"""
DSPy signatures for batch translation and language detection.

Signatures define the input/output structure for the LLM calls.
DSPy handles prompting and parsing of the typed list output.
"""

from __future__ import annotations

import dspy


class TranslateBatch(dspy.Signature):
    """
    Translate UI strings from a localization file.

    Return exactly one translation per input string, in the same order.
    Keep placeholders such as {{name}}, {0}, %s, ${var} and
    __PRESERVE_..._N__ markers unchanged.
    """

    texts: list[str] = dspy.InputField(desc="Strings to translate, in order")
    source_language: str = dspy.InputField(desc="Source language name")
    target_language: str = dspy.InputField(desc="Target language name")
    context: str = dspy.InputField(desc="What the strings are used for")

    translated_texts: list[str] = dspy.OutputField(desc="Translations in the same order, same count")


class DetectLanguage(dspy.Signature):
    """Detect the language of sample strings from a localization file."""

    text: str = dspy.InputField(desc="Sample strings, one per line")

    language_code: str = dspy.OutputField(desc="ISO 639-1 language code (e.g., 'en', 'es', 'fr')")
