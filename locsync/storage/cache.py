"""
Content-addressed translation cache.

Layout (also the on-disk JSON format):

    {
        "/abs/path/to/en.json": {          # document identity
            "es": {                         # target language
                "<sha256 of source>": "<translation>",
                ...
            }
        }
    }

The cache is loaded once per run, mutated in memory by the scheduler and
written back in a single atomic step. Partitions the run never touches are
written back exactly as they were read.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Iterable


logger = logging.getLogger(__name__)


class TranslationCache:
    """
    Hash-keyed translation store, partitioned by document and language.

    Usage:
        cache = TranslationCache.load(path)

        cache.lookup(doc_id, "es", hash_string("Hello"))
        cache.merge(doc_id, "es", hash_string("Hello"), "Hola")
        cache.prune(doc_id, "es", live_hashes)

        if cache.dirty:
            cache.save()
    """

    def __init__(self, data: dict[str, Any] | None = None, path: Path | str | None = None):
        self._data: dict[str, Any] = data if data is not None else {}
        self.path = Path(path) if path is not None else None
        self.added = 0
        self.pruned = 0

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    @classmethod
    def load(cls, path: Path | str) -> TranslationCache:
        """
        Read a cache file.

        A missing, unreadable or corrupt file gives an empty cache; it never
        blocks translation.
        """
        path = Path(path)
        if not path.exists():
            return cls(path=path)

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable translation cache {path}: {e}")
            return cls(path=path)

        if not isinstance(data, dict):
            logger.warning(f"Ignoring translation cache {path}: top level is not an object")
            return cls(path=path)

        return cls(data, path=path)

    def save(self, path: Path | str | None = None) -> Path:
        """
        Write the cache atomically (temp file + rename), pretty-printed.

        Raises:
            OSError: destination not writable
        """
        target = Path(path) if path is not None else self.path
        if target is None:
            raise ValueError("No cache file path given")

        target.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(self._data, indent=2, ensure_ascii=False)

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{target.name}.", suffix=".tmp", dir=target.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.write("\n")
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        self.path = target
        self.added = 0
        self.pruned = 0
        logger.info(f"Translation cache saved to {target}")
        return target

    # -------------------------------------------------------------------------
    # Lookup / mutation
    # -------------------------------------------------------------------------

    @property
    def dirty(self) -> bool:
        """Whether anything was added or pruned since load/save."""
        return self.added > 0 or self.pruned > 0

    def lookup(self, document_id: str, lang: str, content_hash: str) -> str | None:
        """Cached translation, or None on a miss."""
        partition = self._partition(document_id, lang)
        if partition is None:
            return None
        value = partition.get(content_hash)
        return value if isinstance(value, str) and value else None

    def lookup_any(
        self,
        document_ids: Iterable[str],
        lang: str,
        content_hash: str,
    ) -> str | None:
        """First hit across several documents (cross-file reuse)."""
        for document_id in document_ids:
            value = self.lookup(document_id, lang, content_hash)
            if value is not None:
                return value
        return None

    def merge(self, document_id: str, lang: str, content_hash: str, translation: str) -> bool:
        """
        Upsert one translation.

        Returns:
            True if the cache changed
        """
        partition = self._partition(document_id, lang, create=True)
        if partition.get(content_hash) == translation:
            return False
        partition[content_hash] = translation
        self.added += 1
        return True

    def prune(self, document_id: str, lang: str, live_hashes: set[str]) -> int:
        """
        Drop every hash of a (document, language) partition not in live_hashes.

        Returns:
            Number of entries removed
        """
        partition = self._partition(document_id, lang)
        if not partition:
            return 0

        stale = [h for h in partition if h not in live_hashes]
        for h in stale:
            del partition[h]

        if stale:
            self.pruned += len(stale)
            logger.info(f"Pruned {len(stale)} stale '{lang}' translations for {document_id}")
        return len(stale)

    def partition(self, document_id: str, lang: str) -> dict[str, str]:
        """Copy of one (document, language) partition."""
        return dict(self._partition(document_id, lang) or {})

    def document_ids(self) -> list[str]:
        return list(self._data)

    def to_dict(self) -> dict[str, Any]:
        return self._data

    def _partition(
        self,
        document_id: str,
        lang: str,
        create: bool = False,
    ) -> dict[str, Any] | None:
        languages = self._data.get(document_id)
        if not isinstance(languages, dict):
            if not create:
                return None
            languages = self._data[document_id] = {}

        partition = languages.get(lang)
        if not isinstance(partition, dict):
            if not create:
                return None
            partition = languages[lang] = {}
        return partition

    def __len__(self) -> int:
        return sum(
            len(partition)
            for languages in self._data.values() if isinstance(languages, dict)
            for partition in languages.values() if isinstance(partition, dict)
        )

    def __repr__(self) -> str:
        return f"<TranslationCache(path={self.path}, entries={len(self)})>"
