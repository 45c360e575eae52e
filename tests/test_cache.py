"""
Tests for the content-addressed translation cache.
"""

import json
import logging

import pytest

from locsync.core.utils import hash_string
from locsync.storage.cache import TranslationCache


DOC = "/project/locales/en.json"
OTHER_DOC = "/project/other/en.json"


# =============================================================================
# Load / Save
# =============================================================================


class TestPersistence:
    def test_missing_file_gives_empty_cache(self, tmp_path):
        cache = TranslationCache.load(tmp_path / "nope.json")

        assert len(cache) == 0
        assert not cache.dirty
        assert cache.path == tmp_path / "nope.json"

    def test_corrupt_file_is_treated_as_empty(self, tmp_path, caplog):
        path = tmp_path / "cache.json"
        path.write_text("{not json", encoding="utf-8")

        with caplog.at_level(logging.WARNING):
            cache = TranslationCache.load(path)

        assert len(cache) == 0
        assert "unreadable translation cache" in caplog.text

    def test_non_object_top_level(self, tmp_path):
        path = tmp_path / "cache.json"
        path.write_text("[1, 2, 3]", encoding="utf-8")

        assert len(TranslationCache.load(path)) == 0

    def test_save_and_reload(self, cache_path):
        cache = TranslationCache.load(cache_path)
        cache.merge(DOC, "es", hash_string("Hello"), "Hola")
        cache.merge(DOC, "ja", hash_string("Hello"), "こんにちは")

        cache.save()
        reloaded = TranslationCache.load(cache_path)

        assert reloaded.lookup(DOC, "es", hash_string("Hello")) == "Hola"
        assert reloaded.lookup(DOC, "ja", hash_string("Hello")) == "こんにちは"

    def test_saved_file_is_pretty_and_unescaped(self, cache_path):
        cache = TranslationCache.load(cache_path)
        cache.merge(DOC, "ja", hash_string("Hello"), "こんにちは")
        cache.save()

        text = cache_path.read_text(encoding="utf-8")
        assert "こんにちは" in text
        assert "\n  " in text
        assert json.loads(text) == {DOC: {"ja": {hash_string("Hello"): "こんにちは"}}}

    def test_save_resets_dirty_and_leaves_no_temp_files(self, cache_path):
        cache = TranslationCache.load(cache_path)
        cache.merge(DOC, "es", hash_string("Hello"), "Hola")
        assert cache.dirty

        cache.save()

        assert not cache.dirty
        assert [p.name for p in cache_path.parent.iterdir()] == [cache_path.name]

    def test_untouched_partitions_survive(self, cache_path):
        cache_path.parent.mkdir(parents=True)
        cache_path.write_text(json.dumps({
            OTHER_DOC: {"fr": {"abc": "Bonjour"}},
            "future-format-key": {"anything": {"x": "y"}},
        }), encoding="utf-8")

        cache = TranslationCache.load(cache_path)
        cache.merge(DOC, "es", hash_string("Hello"), "Hola")
        cache.save()

        data = json.loads(cache_path.read_text(encoding="utf-8"))
        assert data[OTHER_DOC] == {"fr": {"abc": "Bonjour"}}
        assert data["future-format-key"] == {"anything": {"x": "y"}}

    def test_save_without_path(self):
        with pytest.raises(ValueError):
            TranslationCache().save()

    def test_unwritable_destination(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory", encoding="utf-8")
        cache = TranslationCache(path=blocker / "cache.json")
        cache.merge(DOC, "es", hash_string("Hello"), "Hola")

        with pytest.raises(OSError):
            cache.save()


# =============================================================================
# Lookup / Merge / Prune
# =============================================================================


class TestOperations:
    def test_lookup_miss(self, cache):
        assert cache.lookup(DOC, "es", hash_string("Hello")) is None

    def test_merge_is_idempotent(self, cache):
        h = hash_string("Hello")

        assert cache.merge(DOC, "es", h, "Hola") is True
        assert cache.merge(DOC, "es", h, "Hola") is False
        assert cache.added == 1
        assert len(cache) == 1

    def test_merge_overwrites_changed_translation(self, cache):
        h = hash_string("Hello")
        cache.merge(DOC, "es", h, "Hola")
        cache.merge(DOC, "es", h, "¡Hola!")

        assert cache.lookup(DOC, "es", h) == "¡Hola!"

    def test_partitions_are_separate(self, cache):
        h = hash_string("Hello")
        cache.merge(DOC, "es", h, "Hola")

        assert cache.lookup(DOC, "fr", h) is None
        assert cache.lookup(OTHER_DOC, "es", h) is None

    def test_lookup_any_crosses_documents(self, cache):
        h = hash_string("Hello")
        cache.merge(OTHER_DOC, "es", h, "Hola")

        assert cache.lookup_any([DOC, OTHER_DOC], "es", h) == "Hola"
        assert cache.lookup_any([DOC], "es", h) is None

    def test_blank_cached_value_is_a_miss(self):
        h = hash_string("Hello")
        cache = TranslationCache({DOC: {"es": {h: ""}}})

        assert cache.lookup(DOC, "es", h) is None

    def test_prune_keeps_live_hashes(self, cache):
        a, b = hash_string("A text"), hash_string("B text")
        cache.merge(DOC, "es", a, "Texto A")
        cache.merge(DOC, "es", b, "Texto B")

        removed = cache.prune(DOC, "es", {a})

        assert removed == 1
        assert cache.partition(DOC, "es") == {a: "Texto A"}
        assert cache.pruned == 1

    def test_prune_other_partitions_untouched(self, cache):
        a = hash_string("A text")
        cache.merge(DOC, "es", a, "Texto A")
        cache.merge(DOC, "fr", a, "Texte A")

        cache.prune(DOC, "es", set())

        assert cache.partition(DOC, "es") == {}
        assert cache.partition(DOC, "fr") == {a: "Texte A"}

    def test_prune_missing_partition(self, cache):
        assert cache.prune(DOC, "es", set()) == 0
        assert not cache.dirty
