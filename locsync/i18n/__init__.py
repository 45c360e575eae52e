"""
Internationalization helpers - format preservation and language codes.

Usage:
    from locsync.i18n import mask, unmask

    masked = mask("Open /etc/hosts and visit https://example.com")
    restored = unmask(masked.processed, masked.tokens)
"""

from locsync.i18n.formats import (
    PATTERNS,
    MaskedText,
    PreservedToken,
    mask,
    unmask,
)
from locsync.i18n.languages import (
    LANGUAGE_NAMES,
    RTL_LANGUAGES,
    get_language_name,
    is_rtl,
    normalize_language_code,
    parse_language_list,
)

__all__ = [
    # Format preservation
    "PATTERNS",
    "MaskedText",
    "PreservedToken",
    "mask",
    "unmask",
    # Language utilities
    "LANGUAGE_NAMES",
    "RTL_LANGUAGES",
    "get_language_name",
    "is_rtl",
    "normalize_language_code",
    "parse_language_list",
]
