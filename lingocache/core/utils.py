"""
Shared utility functions for lingocache.

This module contains common utilities used across the codebase.
"""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


def sha256_hex(value: str) -> str:
    """
    Hex-encoded SHA-256 digest of a UTF-8 string.
    
    Args:
        value: Text to hash
        
    Returns:
        64-character lowercase hex digest
    """
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def chunked(items: list, size: int) -> list[list]:
    """Split a list into consecutive chunks of at most `size` items."""
    if size < 1:
        raise ValueError(f"Chunk size must be positive, got {size}")
    return [items[i:i + size] for i in range(0, len(items), size)]
