"""
Format preservation - shield machine-unsafe substrings from translation.

Before a string goes to a translation provider, URLs, e-mail addresses,
placeholders, format specifiers, units, currency amounts, dates, versions,
colors and file paths are swapped for opaque markers. After translation the
markers are swapped back.

Markers look like ``__PRESERVE_URL_0__``: a category tag plus a running
index, closed by ``__`` so that ``_1__`` can never be confused with ``_10__``.
If the source text already contains the marker prefix, a longer prefix is
chosen for that string.

Usage:
    masked = mask("Visit https://example.com for {{count}} offers")
    # masked.processed == "Visit __PRESERVE_URL_0__ for __PRESERVE_TEMPLATE_1__ offers"

    translated = provider_output_for(masked.processed)
    restored = unmask(translated, masked.tokens)
"""

from __future__ import annotations

import re

from pydantic import BaseModel, Field


# Order matters: most specific first, so "path" never swallows a URL
PATTERNS: list[tuple[str, re.Pattern[str]]] = [
    ("url", re.compile(r"https?://[^\s<>\"{}|\\^\[\]`]+", re.IGNORECASE)),
    ("email", re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")),
    ("template", re.compile(r"\{\{[^}]+\}\}")),
    ("placeholder", re.compile(r"\{[0-9]+\}")),
    ("format", re.compile(r"%(?:\d+\$)?[-+0#]*\d*(?:\.\d+)?[sdifbxXoeEgGc]")),
    ("template", re.compile(r"\$\{[^}]+\}")),
    ("named", re.compile(r"(?<![\w/]):[a-zA-Z_][a-zA-Z0-9_]*")),
    ("unit", re.compile(
        r"\b\d+(?:\.\d+)?\s*(?:%|(?:px|em|rem|pt|vh|vw|ms|s|kg|g|m|km|mi|GB|MB|KB)\b)",
        re.IGNORECASE,
    )),
    ("currency", re.compile(r"[$€£¥₹]\s*\d+(?:,\d{3})*(?:\.\d{2})?")),
    ("currency", re.compile(r"\d+(?:,\d{3})*(?:\.\d{2})?\s*[$€£¥₹]")),
    ("date", re.compile(
        r"\d{4}-\d{2}-\d{2}(?:T\d{2}:\d{2}:\d{2}(?:\.\d{3})?(?:Z|[+-]\d{2}:\d{2})?)?"
    )),
    ("version", re.compile(r"\bv?\d+\.\d+(?:\.\d+)*(?:-[a-zA-Z0-9.-]+)?")),
    ("color", re.compile(r"#[0-9a-fA-F]{3,8}\b")),
    ("path", re.compile(r"(?<![\w/])(?:~|\.{1,2})?(?:/[\w.-]+)+")),
    ("path", re.compile(
        r"\b[A-Z]:\\(?:[^\\/:*?\"<>|\r\n]+\\)*[^\\/:*?\"<>|\s]*",
        re.IGNORECASE,
    )),
]

MARKER_PREFIX = "PRESERVE"


class PreservedToken(BaseModel):
    """One masked substring."""

    marker: str
    value: str
    category: str
    start: int  # span in the original text
    end: int


class MaskedText(BaseModel):
    """Result of masking one string."""

    original: str
    processed: str
    tokens: list[PreservedToken] = Field(default_factory=list)

    def missing_markers(self, text: str) -> list[str]:
        """Markers that a translated text no longer contains."""
        return [token.marker for token in self.tokens if token.marker not in text]


def mask(text: str) -> MaskedText:
    """
    Replace every protected substring with a unique marker.

    Patterns run one after another over the progressively masked text. A
    match that touches an existing marker is left alone.
    """
    prefix = _marker_prefix(text)
    marker_re = re.compile(rf"__{prefix}_[A-Z]+_\d+__")
    tokens: list[PreservedToken] = []
    by_marker: dict[str, PreservedToken] = {}
    processed = text

    for category, pattern in PATTERNS:
        placed = [
            (m.start(), m.end(), len(by_marker[m.group(0)].value))
            for m in marker_re.finditer(processed)
        ]
        pieces: list[str] = []
        last = 0

        for match in pattern.finditer(processed):
            start, end = match.span()
            if start == end:
                continue
            if any(start < m_end and m_start < end for m_start, m_end, _ in placed):
                continue

            marker = f"__{prefix}_{category.upper()}_{len(tokens)}__"
            original_start = _original_offset(start, placed)
            token = PreservedToken(
                marker=marker,
                value=match.group(0),
                category=category,
                start=original_start,
                end=original_start + (end - start),
            )
            tokens.append(token)
            by_marker[marker] = token
            pieces.append(processed[last:start])
            pieces.append(marker)
            last = end

        if pieces:
            pieces.append(processed[last:])
            processed = "".join(pieces)

    return MaskedText(original=text, processed=processed, tokens=tokens)


def unmask(text: str, tokens: list[PreservedToken]) -> str:
    """Swap every marker back for the substring it replaced."""
    restored = text
    for token in tokens:
        restored = restored.replace(token.marker, token.value)
    return restored


def _marker_prefix(text: str) -> str:
    prefix = MARKER_PREFIX
    while f"__{prefix}_" in text:
        prefix += "X"
    return prefix


def _original_offset(position: int, placed: list[tuple[int, int, int]]) -> int:
    """Map an offset in the masked text back to the original text."""
    shift = 0
    for m_start, m_end, original_length in placed:
        if m_end <= position:
            shift += original_length - (m_end - m_start)
    return position + shift
