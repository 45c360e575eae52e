"""
Tests for format preservation (mask / unmask).
"""

import pytest

from locsync.i18n.formats import mask, unmask


CONTACT = "Contact support@example.com or visit https://example.com"


class TestMask:
    def test_contact_round_trip(self):
        masked = mask(CONTACT)

        assert "support@example.com" not in masked.processed
        assert "https://example.com" not in masked.processed
        assert unmask(masked.processed, masked.tokens) == CONTACT

    def test_url_is_not_taken_apart_by_email_or_path(self):
        masked = mask(CONTACT)

        by_category = {token.category: token.value for token in masked.tokens}
        assert by_category == {
            "url": "https://example.com",
            "email": "support@example.com",
        }

    def test_spans_point_into_original(self):
        text = "See https://a.example.com then {{name}} and %s at 10px"
        masked = mask(text)

        assert masked.tokens
        for token in masked.tokens:
            assert text[token.start:token.end] == token.value

    def test_placeholder_categories(self):
        masked = mask("Hello {{name}}, you have {0} items and %s left")

        assert [t.category for t in masked.tokens] == ["template", "placeholder", "format"]
        assert masked.processed == (
            "Hello __PRESERVE_TEMPLATE_0__, you have __PRESERVE_PLACEHOLDER_1__ "
            "items and __PRESERVE_FORMAT_2__ left"
        )

    @pytest.mark.parametrize("text, value", [
        ("Released 2024-01-15 today", "2024-01-15"),
        ("Requires v1.2.3 or later", "v1.2.3"),
        ("Background #ff00aa please", "#ff00aa"),
        ("Open /etc/hosts now", "/etc/hosts"),
        ("Price is $19.99 today", "$19.99"),
        ("Use ${name} here", "${name}"),
        ("Route to :userId please", ":userId"),
    ])
    def test_recognizers(self, text, value):
        masked = mask(text)

        assert value in [token.value for token in masked.tokens]
        assert value not in masked.processed
        assert unmask(masked.processed, masked.tokens) == text

    def test_plain_text_untouched(self):
        masked = mask("Nothing special here")

        assert masked.tokens == []
        assert masked.processed == "Nothing special here"

    def test_markers_are_unique(self):
        masked = mask("{{a}} {{b}} {{c}} {0} {1}")
        markers = [token.marker for token in masked.tokens]

        assert len(markers) == len(set(markers)) == 5

    def test_source_containing_marker_prefix(self):
        text = "Literal __PRESERVE_URL_0__ next to https://example.com"
        masked = mask(text)

        assert all(token.marker.startswith("__PRESERVEX_") for token in masked.tokens)
        assert unmask(masked.processed, masked.tokens) == text


class TestUnmask:
    def test_reordered_translation(self):
        masked = mask("Hello {{name}}, see https://example.com")
        # A translation may move markers around
        first, second = (token.marker for token in masked.tokens)
        translated = f"Mira {first} y hola {second}"

        assert unmask(translated, masked.tokens) == (
            f"Mira https://example.com y hola {{{{name}}}}"
        )

    def test_missing_markers(self):
        masked = mask("Visit https://example.com")

        assert masked.missing_markers(masked.processed) == []
        assert masked.missing_markers("Visita el sitio") == [masked.tokens[0].marker]
