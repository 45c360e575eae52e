"""
Storage - the persistent translation cache.

The cache file is the only durable state locsync keeps between runs.
"""

from locsync.storage.cache import TranslationCache

__all__ = [
    "TranslationCache",
]
