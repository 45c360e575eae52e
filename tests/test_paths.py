"""
Tests for the path codec.

Paths are tuples, so keys with dots or index-like names stay one segment.
"""

import pytest

from locsync.core.paths import (
    PathDecodeError,
    StructuralConflictError,
    decode_path,
    encode_path,
    flatten,
    is_translatable,
    overlay,
    unflatten,
)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def string_tree():
    """A tree made only of containers and translatable strings."""
    return {
        "nav": {"home": "Home", "about": "About us"},
        "items": ["First item", "Second item", {"label": "Nested in list"}],
        "matrix": [["Top left", "Top right"], ["Bottom left"]],
        "title": "Welcome",
    }


@pytest.fixture
def mixed_tree():
    """A tree with leaves the flat mapping does not keep."""
    return {
        "title": "Welcome",
        "count": 3,
        "enabled": True,
        "missing": None,
        "ratio": 0.5,
        "code": "42",
        "template": "{{count}}",
        "items": ["One", 2, "Three"],
    }


# =============================================================================
# Translatable predicate
# =============================================================================


class TestIsTranslatable:
    def test_plain_text(self):
        assert is_translatable("Hello")

    def test_needs_a_letter(self):
        assert not is_translatable("42")
        assert not is_translatable("  ")
        assert not is_translatable("")
        assert not is_translatable("--- 3.14 ---")

    def test_whole_string_template_is_skipped(self):
        assert not is_translatable("{{count}}")
        assert not is_translatable("{{ user.name }}")

    def test_template_with_text_is_kept(self):
        assert is_translatable("{{count}} items")
        assert is_translatable("Hello {{name}}")

    def test_two_templates_are_not_one_expression(self):
        assert is_translatable("{{first}} {{last}}")

    def test_non_latin_letters(self):
        assert is_translatable("日本語")
        assert is_translatable("Привет")


# =============================================================================
# Flatten
# =============================================================================


class TestFlatten:
    def test_paths_are_tuples(self, string_tree):
        flat = flatten(string_tree)

        assert flat[("nav", "home")] == "Home"
        assert flat[("items", 0)] == "First item"
        assert flat[("items", 2, "label")] == "Nested in list"
        assert flat[("matrix", 1, 0)] == "Bottom left"

    def test_depth_first_order(self, string_tree):
        assert list(flatten(string_tree)) == [
            ("nav", "home"),
            ("nav", "about"),
            ("items", 0),
            ("items", 1),
            ("items", 2, "label"),
            ("matrix", 0, 0),
            ("matrix", 0, 1),
            ("matrix", 1, 0),
            ("title",),
        ]

    def test_drops_non_translatable_leaves(self, mixed_tree):
        assert flatten(mixed_tree) == {
            ("title",): "Welcome",
            ("items", 0): "One",
            ("items", 2): "Three",
        }

    def test_root_string(self):
        assert flatten("Hello") == {(): "Hello"}

    def test_non_string_keys_become_strings(self):
        assert flatten({1: "One", 2.5: "Half"}) == {("1",): "One", ("2.5",): "Half"}

    def test_rejects_unsupported_values(self):
        with pytest.raises(TypeError):
            flatten({"when": object()})


# =============================================================================
# Unflatten
# =============================================================================


class TestUnflatten:
    def test_round_trip_skeleton(self, string_tree):
        assert unflatten(flatten(string_tree)) == string_tree

    def test_dot_in_key_is_not_split(self):
        tree = {"app.title": "My App", "app": {"subtitle": "Tagline"}}

        flat = flatten(tree)

        assert ("app.title",) in flat
        assert unflatten(flat) == tree

    def test_index_like_key_stays_a_key(self):
        tree = {"[0]": "Zero", "list": ["Item"]}
        assert unflatten(flatten(tree)) == tree

    def test_empty_key(self):
        tree = {"": "Empty key", "a": {"": "Nested empty"}}
        assert unflatten(flatten(tree)) == tree

    def test_container_kind_from_next_segment(self):
        tree = unflatten({("a", 0, "b"): "x"})
        assert tree == {"a": [{"b": "x"}]}

    def test_index_gaps_are_padded(self):
        # ("items", 1) held a number and was dropped
        assert unflatten({("items", 0): "One", ("items", 2): "Three"}) == {
            "items": ["One", None, "Three"]
        }

    def test_skeleton_loses_non_string_leaves(self, mixed_tree):
        rebuilt = unflatten(flatten(mixed_tree))

        assert rebuilt == {"title": "Welcome", "items": ["One", None, "Three"]}
        assert "count" not in rebuilt

    def test_empty_mapping(self):
        assert unflatten({}) == {}

    def test_root_leaf(self):
        assert unflatten({(): "Hello"}) == "Hello"

    def test_list_root(self):
        assert unflatten({(0,): "A", (1,): "B"}) == ["A", "B"]

    def test_conflict_list_vs_mapping(self):
        with pytest.raises(StructuralConflictError):
            unflatten({("a", 0): "x", ("a", "b"): "y"})

    def test_conflict_descends_into_leaf(self):
        with pytest.raises(StructuralConflictError):
            unflatten({("a",): "x", ("a", "b"): "y"})

    def test_conflict_leaf_over_container(self):
        with pytest.raises(StructuralConflictError):
            unflatten({("a", "b"): "y", ("a",): "x"})

    def test_conflict_with_root_leaf(self):
        with pytest.raises(StructuralConflictError):
            unflatten({(): "x", ("a",): "y"})

    def test_invalid_segment(self):
        with pytest.raises(PathDecodeError):
            unflatten({("a", -1): "x"})
        with pytest.raises(PathDecodeError):
            unflatten({("a", 1.5): "x"})


# =============================================================================
# Overlay
# =============================================================================


class TestOverlay:
    def test_keeps_other_leaves(self, mixed_tree):
        flat = {path: text.upper() for path, text in flatten(mixed_tree).items()}

        result = overlay(mixed_tree, flat)

        assert result["title"] == "WELCOME"
        assert result["items"] == ["ONE", 2, "THREE"]
        assert result["count"] == 3
        assert result["enabled"] is True
        assert result["missing"] is None
        assert result["template"] == "{{count}}"

    def test_does_not_mutate_original(self, mixed_tree):
        overlay(mixed_tree, {("title",): "Bienvenido"})
        assert mixed_tree["title"] == "Welcome"

    def test_unknown_path(self):
        with pytest.raises(StructuralConflictError):
            overlay({"a": "x"}, {("b",): "y"})
        with pytest.raises(StructuralConflictError):
            overlay({"a": ["x"]}, {("a", 3): "y"})

    def test_root_string(self):
        assert overlay("Hello", {(): "Hola"}) == "Hola"

    def test_non_string_keys(self):
        tree = {"errors": {404: "Not found", 500: "Server error"}, "count": 3}
        flat = {path: text.upper() for path, text in flatten(tree).items()}

        result = overlay(tree, flat)

        assert result == {"errors": {404: "NOT FOUND", 500: "SERVER ERROR"}, "count": 3}
        assert "404" not in result["errors"]

    def test_string_key_preferred_over_str_form(self):
        tree = {"1": "String key", 1: "Int key"}

        result = overlay(tree, {("1",): "Replaced"})

        assert result == {"1": "Replaced", 1: "Int key"}


# =============================================================================
# Path strings
# =============================================================================


class TestPathStrings:
    @pytest.mark.parametrize("path, text", [
        (("nav", "home"), "nav.home"),
        (("items", 0), "items[0]"),
        (("matrix", 1, 0), "matrix[1][0]"),
        ((0, "label"), "[0].label"),
        (("app.title",), "app\\.title"),
        (("[0]",), "\\[0]"),
        (("a\\b",), "a\\\\b"),
        (("", "x"), "\\0.x"),
        ((), ""),
    ])
    def test_encode_decode(self, path, text):
        assert encode_path(path) == text
        assert decode_path(text) == path

    def test_literal_backslash_zero_key(self):
        path = ("\\0",)
        assert decode_path(encode_path(path)) == path

    @pytest.mark.parametrize("text", [
        "a..b",
        "a.",
        ".a",
        "a[x]",
        "a[01]",
        "a[-1]",
        "a[0",
        "a[0]b",
        "a\\x",
        "a\\",
        "\\0b",
        "a.[0]",
    ])
    def test_malformed(self, text):
        with pytest.raises(PathDecodeError):
            decode_path(text)
