"""
Key-level helpers for translated documents.

- sort_keys: deterministic, case-insensitive key order for output files
- compare_keys: check that a translated document still has every source key
"""

from __future__ import annotations

from typing import Any, Iterable

from pydantic import BaseModel, Field

from locsync.core.paths import Path, encode_path


METADATA_KEY = "_translator_metadata"


def sort_keys(value: Any) -> Any:
    """
    Recursively sort mapping keys, case-insensitively.

    Arrays keep their element order; mappings inside arrays are sorted too.
    """
    if isinstance(value, dict):
        return {
            key: sort_keys(value[key])
            for key in sorted(value, key=lambda k: (str(k).casefold(), str(k)))
        }
    if isinstance(value, list):
        return [sort_keys(item) for item in value]
    return value


class KeyComparison(BaseModel):
    """Result of comparing the key sets of a source and a translated document."""

    source_keys: set[str] = Field(default_factory=set)
    output_keys: set[str] = Field(default_factory=set)
    missing_keys: set[str] = Field(default_factory=set)
    extra_keys: set[str] = Field(default_factory=set)

    @property
    def is_valid(self) -> bool:
        """Extra keys are tolerated, missing ones are not."""
        return not self.missing_keys


def collect_keys(value: Any, ignore: Iterable[str] = (METADATA_KEY,)) -> set[str]:
    """Dotted paths of every mapping key, intermediate ones included."""
    keys: set[str] = set()
    _collect(value, (), frozenset(ignore), keys)
    return keys


def _collect(value: Any, prefix: Path, ignore: frozenset[str], keys: set[str]) -> None:
    if not isinstance(value, dict):
        return
    for key, item in value.items():
        key = str(key)
        if not prefix and key in ignore:
            continue
        path = (*prefix, key)
        keys.add(encode_path(path))
        _collect(item, path, ignore, keys)


def compare_keys(
    source: Any,
    output: Any,
    ignore: Iterable[str] = (METADATA_KEY,),
) -> KeyComparison:
    """
    Compare the keys of a source document with its translation.

    Top-level keys listed in ``ignore`` (the metadata block by default)
    are left out on both sides.
    """
    source_keys = collect_keys(source, ignore)
    output_keys = collect_keys(output, ignore)
    return KeyComparison(
        source_keys=source_keys,
        output_keys=output_keys,
        missing_keys=source_keys - output_keys,
        extra_keys=output_keys - source_keys,
    )
