"""
Translation sync - deduplication, batching and fan-in for document sets.

One run takes a set of source documents and a target language and does:

1. Collect every distinct translatable string across all documents,
   remembering which documents contain it
2. Reuse cached translations (any owning document's cache partition counts)
3. Split the misses into evenly sized batches (at most max_batch_size each)
4. Send all batches to the provider concurrently and wait for all of them
5. Merge new and reused translations into the cache under every owning document
6. Prune cache entries whose source string no longer exists
7. Rebuild each document, falling back to the source string for anything
   that could not be translated

Batch workers only return values. The cache is touched exclusively by the
run's main flow after the join, so no locking is needed, and an interrupted
run never leaves a half-written cache behind.

Usage:
    sync = TranslationSync(provider, cache=TranslationCache.load(path))
    result = await sync.run([SourceDocument("/abs/en.json", tree)], "es")
    result.documents["/abs/en.json"].tree
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

from pydantic import BaseModel, Field

from locsync.core.paths import FlatMapping, StructuralConflictError, flatten, overlay, unflatten
from locsync.core.utils import hash_string
from locsync.providers.base import TranslationProvider, validate_translations
from locsync.storage.cache import TranslationCache


logger = logging.getLogger(__name__)

MAX_BATCH_SIZE = 100


# =============================================================================
# Models
# =============================================================================


@dataclass
class SourceDocument:
    """A parsed source document and its flat string mapping."""

    document_id: str
    tree: Any
    flat: FlatMapping | None = None

    def __post_init__(self) -> None:
        if self.flat is None:
            self.flat = flatten(self.tree)


@dataclass
class TranslationPlan:
    """What a run will do, computed before any provider call."""

    language: str
    owners: dict[str, list[str]]  # source string -> ids of documents containing it
    hashes: dict[str, str]  # source string -> content hash
    translations: dict[str, str]  # content hash -> translation (cache hits)
    pending: list[str]
    batches: list[list[str]]
    total_strings: int
    naive_calls: int

    @property
    def unique_strings(self) -> int:
        return len(self.owners)

    @property
    def cache_hits(self) -> int:
        return len(self.translations)

    @property
    def target_batch_size(self) -> int:
        return max((len(batch) for batch in self.batches), default=0)


@dataclass
class BatchResult:
    """Outcome of one provider call."""

    index: int
    strings: list[str]
    translations: list[str] | None = None
    error: str | None = None
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None and self.translations is not None


@dataclass
class DocumentResult:
    """Rebuilt document (or the reason it could not be rebuilt)."""

    document_id: str
    tree: Any = None
    flat: FlatMapping = field(default_factory=dict)
    total_strings: int = 0
    translated_strings: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SyncStats(BaseModel):
    """Counters for one run (one target language)."""

    language: str = ""
    total_files: int = 0
    total_strings: int = 0
    unique_strings: int = 0
    deduplication_savings: int = 0
    cache_hits: int = 0
    new_strings: int = 0
    translated_strings: int = 0
    pruned_strings: int = 0
    batch_count: int = 0
    target_batch_size: int = 0
    failed_batches: int = 0
    saved_api_calls: int = 0
    batch_times: list[float] = Field(default_factory=list)
    elapsed: float = 0.0


@dataclass
class SyncResult:
    """Everything a run produced."""

    language: str
    documents: dict[str, DocumentResult]
    stats: SyncStats
    batches: list[BatchResult] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    cache_saved: bool = False
    dry_run: bool = False

    @property
    def ok(self) -> bool:
        return not self.errors


# =============================================================================
# Planning helpers
# =============================================================================


def plan_batches(strings: Sequence[str], max_batch_size: int = MAX_BATCH_SIZE) -> list[list[str]]:
    """
    Split strings into as few batches as allowed, with sizes as even as possible.

    250 strings with a maximum of 100 give batches of 84, 83 and 83 rather
    than 100, 100 and 50.
    """
    if max_batch_size < 1:
        raise ValueError(f"max_batch_size must be positive, got {max_batch_size}")

    total = len(strings)
    if total == 0:
        return []

    count = math.ceil(total / max_batch_size)
    base, extra = divmod(total, count)

    batches: list[list[str]] = []
    start = 0
    for i in range(count):
        size = base + (1 if i < extra else 0)
        batches.append(list(strings[start:start + size]))
        start += size
    return batches


def collect_unique_strings(documents: Iterable[SourceDocument]) -> dict[str, list[str]]:
    """Map each distinct leaf string to the documents containing it, in first-seen order."""
    owners: dict[str, list[str]] = {}
    for document in documents:
        for text in document.flat.values():
            ids = owners.setdefault(text, [])
            if document.document_id not in ids:
                ids.append(document.document_id)
    return owners


# =============================================================================
# Scheduler
# =============================================================================


class TranslationSync:
    """
    Deduplicating, batching translation scheduler.

    The cache is optional: without one every distinct string is sent to the
    provider and nothing is persisted. The provider may be None for dry runs.
    """

    def __init__(
        self,
        provider: TranslationProvider | None,
        cache: TranslationCache | None = None,
        max_batch_size: int = MAX_BATCH_SIZE,
        max_concurrent_batches: int = 8,
        keep_all_leaves: bool = False,
    ):
        if max_batch_size < 1:
            raise ValueError(f"max_batch_size must be positive, got {max_batch_size}")
        self.provider = provider
        self.cache = cache
        self.max_batch_size = max_batch_size
        self.max_concurrent_batches = max(1, max_concurrent_batches)
        self.keep_all_leaves = keep_all_leaves

    # -------------------------------------------------------------------------
    # Planning
    # -------------------------------------------------------------------------

    def plan(self, documents: Sequence[SourceDocument], lang: str) -> TranslationPlan:
        """Work out cache hits, misses and batches without calling the provider."""
        _check_unique_ids(documents)

        owners = collect_unique_strings(documents)
        hashes = {text: hash_string(text) for text in owners}
        translations: dict[str, str] = {}
        pending: list[str] = []

        for text, ids in owners.items():
            cached = None
            if self.cache is not None:
                cached = self.cache.lookup_any(ids, lang, hashes[text])
            if cached is not None:
                translations[hashes[text]] = cached
            else:
                pending.append(text)

        return TranslationPlan(
            language=lang,
            owners=owners,
            hashes=hashes,
            translations=translations,
            pending=pending,
            batches=plan_batches(pending, self.max_batch_size),
            total_strings=sum(len(document.flat) for document in documents),
            naive_calls=self._naive_calls(documents, lang, hashes),
        )

    def _naive_calls(
        self,
        documents: Sequence[SourceDocument],
        lang: str,
        hashes: dict[str, str],
    ) -> int:
        """Provider calls needed if every document were translated on its own."""
        calls = 0
        for document in documents:
            misses = {
                text for text in document.flat.values()
                if self.cache is None
                or self.cache.lookup(document.document_id, lang, hashes[text]) is None
            }
            calls += math.ceil(len(misses) / self.max_batch_size)
        return calls

    # -------------------------------------------------------------------------
    # Run
    # -------------------------------------------------------------------------

    async def run(
        self,
        documents: Sequence[SourceDocument],
        lang: str,
        dry_run: bool = False,
        save: bool = True,
    ) -> SyncResult:
        """
        Translate a document set into one language.

        Args:
            documents: Parsed source documents (unique document ids)
            lang: Target language code
            dry_run: Plan only - no provider calls, no cache changes
            save: Write the cache at the end if it changed

        Returns:
            SyncResult with per-document trees, stats and per-batch errors
        """
        if self.provider is None and not dry_run:
            raise ValueError("A translation provider is required unless dry_run is set")

        started = time.perf_counter()
        plan = self.plan(documents, lang)
        stats = SyncStats(
            language=lang,
            total_files=len(documents),
            total_strings=plan.total_strings,
            unique_strings=plan.unique_strings,
            deduplication_savings=plan.total_strings - plan.unique_strings,
            cache_hits=plan.cache_hits,
            new_strings=len(plan.pending),
            batch_count=len(plan.batches),
            target_batch_size=plan.target_batch_size,
        )
        logger.info(
            f"[{lang}] {stats.total_files} document(s): {stats.total_strings} strings, "
            f"{stats.unique_strings} unique, {stats.cache_hits} cached, "
            f"{stats.new_strings} to translate in {stats.batch_count} batch(es)"
        )

        translations = dict(plan.translations)
        batch_results: list[BatchResult] = []
        errors: list[str] = []

        if not dry_run and plan.batches:
            batch_results = await self._dispatch(plan.batches, lang)

        # Hits found under another document are recorded for every owner too
        if not dry_run and self.cache is not None:
            for source, document_ids in plan.owners.items():
                cached = plan.translations.get(plan.hashes[source])
                if cached is None:
                    continue
                for document_id in document_ids:
                    self.cache.merge(document_id, lang, plan.hashes[source], cached)

        for result in batch_results:
            stats.batch_times.append(result.elapsed)
            if not result.ok:
                stats.failed_batches += 1
                errors.append(
                    f"Batch {result.index + 1}/{len(batch_results)} "
                    f"({len(result.strings)} strings) failed: {result.error}"
                )
                continue
            for source, translation in zip(result.strings, result.translations):
                content_hash = plan.hashes[source]
                translations[content_hash] = translation
                stats.translated_strings += 1
                if self.cache is not None:
                    for document_id in plan.owners[source]:
                        self.cache.merge(document_id, lang, content_hash, translation)

        if not dry_run and self.cache is not None:
            for document in documents:
                live = {plan.hashes[text] for text in document.flat.values()}
                stats.pruned_strings += self.cache.prune(document.document_id, lang, live)

        stats.saved_api_calls = max(0, plan.naive_calls - len(plan.batches))

        results = {
            document.document_id: self._rebuild(document, plan.hashes, translations)
            for document in documents
        }
        errors.extend(
            f"{r.document_id}: {r.error}" for r in results.values() if r.error
        )

        cache_saved = False
        if save and not dry_run:
            cache_saved = self.save_cache()

        stats.elapsed = time.perf_counter() - started
        return SyncResult(
            language=lang,
            documents=results,
            stats=stats,
            batches=batch_results,
            errors=errors,
            cache_saved=cache_saved,
            dry_run=dry_run,
        )

    async def run_languages(
        self,
        documents: Sequence[SourceDocument],
        languages: Sequence[str],
        dry_run: bool = False,
    ) -> list[SyncResult]:
        """Run several target languages over one cache, saving it once at the end."""
        results = [
            await self.run(documents, lang, dry_run=dry_run, save=False)
            for lang in languages
        ]
        if results and not dry_run:
            saved = self.save_cache()
            for result in results:
                result.cache_saved = saved
        return results

    def save_cache(self) -> bool:
        """
        Persist the cache if this run changed it.

        An unwritable destination is logged and reported as False; the run's
        translated documents are still usable.
        """
        if self.cache is None or not self.cache.dirty:
            return False
        try:
            self.cache.save()
        except OSError as e:
            logger.warning(f"Could not write translation cache {self.cache.path}: {e}")
            return False
        return True

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _dispatch(self, batches: list[list[str]], lang: str) -> list[BatchResult]:
        semaphore = asyncio.Semaphore(self.max_concurrent_batches)
        logger.info(
            f"[{lang}] Sending {len(batches)} batch(es) to {self.provider.name} "
            f"(target size ~{max(len(b) for b in batches)})"
        )
        return list(await asyncio.gather(*(
            self._translate_batch(index, batch, lang, semaphore)
            for index, batch in enumerate(batches)
        )))

    async def _translate_batch(
        self,
        index: int,
        batch: list[str],
        lang: str,
        semaphore: asyncio.Semaphore,
    ) -> BatchResult:
        async with semaphore:
            started = time.perf_counter()
            try:
                translations = await self.provider.translate(list(batch), lang)
                validate_translations(batch, translations)
            except Exception as e:
                elapsed = time.perf_counter() - started
                logger.warning(f"[{lang}] Batch {index + 1} ({len(batch)} strings) failed: {e}")
                return BatchResult(
                    index=index,
                    strings=batch,
                    error=f"{type(e).__name__}: {e}",
                    elapsed=elapsed,
                )

        elapsed = time.perf_counter() - started
        logger.info(
            f"[{lang}] Batch {index + 1} ({len(batch)} strings) completed in {elapsed * 1000:.2f}ms"
        )
        return BatchResult(index=index, strings=batch, translations=list(translations), elapsed=elapsed)

    def _rebuild(
        self,
        document: SourceDocument,
        hashes: dict[str, str],
        translations: dict[str, str],
    ) -> DocumentResult:
        flat: FlatMapping = {}
        translated = 0
        for path, source in document.flat.items():
            value = translations.get(hashes[source])
            if value is None:
                flat[path] = source
            else:
                flat[path] = value
                translated += 1

        result = DocumentResult(
            document_id=document.document_id,
            flat=flat,
            total_strings=len(flat),
            translated_strings=translated,
        )
        try:
            result.tree = overlay(document.tree, flat) if self.keep_all_leaves else unflatten(flat)
        except StructuralConflictError as e:
            logger.error(f"Could not rebuild {document.document_id}: {e}")
            result.error = str(e)
        return result


def _check_unique_ids(documents: Sequence[SourceDocument]) -> None:
    seen: set[str] = set()
    for document in documents:
        if document.document_id in seen:
            raise ValueError(f"Duplicate document id: {document.document_id}")
        seen.add(document.document_id)


# =============================================================================
# Reporting
# =============================================================================


def format_stats(stats: SyncStats, cache_enabled: bool = True, provider_name: str = "") -> str:
    """Render run statistics as an indented text block."""
    lines = [f"--- Translation Statistics ({stats.language}) ---"]

    if stats.total_files > 1:
        share = (stats.deduplication_savings / stats.total_strings * 100) if stats.total_strings else 0.0
        lines += [
            "  - Files:",
            f"    - Total processed:        {stats.total_files}",
            f"    - Total strings:          {stats.total_strings}",
            f"    - Unique strings:         {stats.unique_strings}",
            f"    - Deduplication savings:  {stats.deduplication_savings} strings ({share:.1f}%)",
        ]

    if cache_enabled:
        lines += [
            "  - Caching & Sync:",
            f"    - Strings from Cache:     {stats.cache_hits}",
            f"    - New Strings to API:     {stats.new_strings}",
            f"    - Stale Strings Pruned:   {stats.pruned_strings}",
        ]

    label = f" ({provider_name})" if provider_name else ""
    lines += [
        f"  - Translation{label}:",
        f"    - Batches Sent to API:    {stats.batch_count} (target size: ~{stats.target_batch_size})",
        f"    - Strings Translated:     {stats.translated_strings}",
        f"    - Failed Batches:         {stats.failed_batches}",
    ]
    if stats.saved_api_calls > 0:
        lines.append(f"    - API Calls Saved:        {stats.saved_api_calls} (by deduplication)")

    if stats.batch_times:
        fastest = min(stats.batch_times) * 1000
        slowest = max(stats.batch_times) * 1000
        average = sum(stats.batch_times) / len(stats.batch_times) * 1000
        lines += [
            "    - Batch Times:",
            f"      - Fastest:              {fastest:.2f}ms",
            f"      - Slowest:              {slowest:.2f}ms",
            f"      - Average:              {average:.2f}ms",
        ]

    lines.append(f"  - Total Execution Time:     {stats.elapsed * 1000:.2f}ms")
    return "\n".join(lines)
