"""
Language codes and display names.

Target languages are BCP-47-like tags ("es", "pt-BR", "zh-Hant"). Providers
get a human-readable name for prompts; the cache and output paths use the
normalized tag.
"""

from __future__ import annotations


LANGUAGE_NAMES: dict[str, str] = {
    "en": "English",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "it": "Italian",
    "pt": "Portuguese",
    "pt-br": "Portuguese (Brazil)",
    "nl": "Dutch",
    "pl": "Polish",
    "ru": "Russian",
    "uk": "Ukrainian",
    "cs": "Czech",
    "sk": "Slovak",
    "hu": "Hungarian",
    "ro": "Romanian",
    "bg": "Bulgarian",
    "el": "Greek",
    "sv": "Swedish",
    "no": "Norwegian",
    "da": "Danish",
    "fi": "Finnish",
    "tr": "Turkish",
    "zh": "Chinese (Simplified)",
    "zh-hant": "Chinese (Traditional)",
    "zh-tw": "Chinese (Traditional)",
    "ja": "Japanese",
    "ko": "Korean",
    "vi": "Vietnamese",
    "th": "Thai",
    "id": "Indonesian",
    "ms": "Malay",
    "hi": "Hindi",
    "bn": "Bengali",
    "ar": "Arabic",
    "he": "Hebrew",
    "fa": "Persian",
    "ur": "Urdu",
    "sw": "Swahili",
}

# Full names the detection prompt may answer with
_NAME_ALIASES: dict[str, str] = {
    "english": "en",
    "spanish": "es",
    "french": "fr",
    "german": "de",
    "italian": "it",
    "portuguese": "pt",
    "dutch": "nl",
    "polish": "pl",
    "russian": "ru",
    "chinese": "zh",
    "japanese": "ja",
    "korean": "ko",
    "arabic": "ar",
    "hebrew": "he",
    "farsi": "fa",
    "persian": "fa",
    "hindi": "hi",
    "turkish": "tr",
}

RTL_LANGUAGES = frozenset({"ar", "he", "fa", "ur"})


def normalize_language_code(code: str) -> str:
    """
    Normalize a language tag: lowercase, ``_`` replaced by ``-``.

    Full English names ("Spanish") map to their ISO 639-1 code.
    """
    code = code.strip().lower().replace("_", "-")
    return _NAME_ALIASES.get(code, code)


def get_language_name(code: str) -> str:
    """Human-readable name, falling back to the base language, then the tag itself."""
    code = normalize_language_code(code)
    if code in LANGUAGE_NAMES:
        return LANGUAGE_NAMES[code]
    base = code.split("-", 1)[0]
    return LANGUAGE_NAMES.get(base, code)


def is_rtl(code: str) -> bool:
    """Check if language is right-to-left."""
    return normalize_language_code(code).split("-", 1)[0] in RTL_LANGUAGES


def parse_language_list(value: str) -> list[str]:
    """Split a comma-separated ``--lang`` value, dropping blanks and duplicates."""
    languages: list[str] = []
    for part in value.split(","):
        code = part.strip()
        if code and code not in languages:
            languages.append(code)
    return languages
