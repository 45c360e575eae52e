"""
Core module - tree codec and shared helpers.

This module contains:
- paths: Path codec (flatten, unflatten, overlay, path strings)
- keys: Key sorting and key comparison for translated documents
- utils: Content hashing and time helpers
"""

from locsync.core.paths import (
    FlatMapping,
    Path,
    PathDecodeError,
    Segment,
    StructuralConflictError,
    decode_path,
    encode_path,
    flatten,
    is_translatable,
    overlay,
    unflatten,
)

from locsync.core.keys import (
    METADATA_KEY,
    KeyComparison,
    collect_keys,
    compare_keys,
    sort_keys,
)

from locsync.core.utils import (
    hash_string,
    utc_now,
)

__all__ = [
    # Paths
    "FlatMapping",
    "Path",
    "PathDecodeError",
    "Segment",
    "StructuralConflictError",
    "decode_path",
    "encode_path",
    "flatten",
    "is_translatable",
    "overlay",
    "unflatten",
    # Keys
    "METADATA_KEY",
    "KeyComparison",
    "collect_keys",
    "compare_keys",
    "sort_keys",
    # Utils
    "hash_string",
    "utc_now",
]
