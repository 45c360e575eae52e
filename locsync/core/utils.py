"""
Shared utility functions for locsync.

Hashing and time helpers used across the codebase.
"""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone


def hash_string(text: str) -> str:
    """
    Content hash of a leaf string.
    
    SHA-256 over the exact UTF-8 bytes, so the digest is case- and
    whitespace-sensitive.
    
    Returns:
        64-character lowercase hex digest
    """
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)
