"""
Translation cache store abstraction.

All cached translations go through this interface. This allows swapping
implementations (in-memory → local filesystem → S3, or any other object
store) without changing the orchestrator or invalidator.

Entries are addressed by (target language, cache key) and laid out as
objects named `translations/{target_lang}/{key}.html`.

Failure semantics:
- A missing entry is a miss: `get` returns None, `delete` returns False.
- An unreachable or misconfigured backend raises StoreUnavailable.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import AsyncIterator

from lingocache.core.models import (
    CacheEntry,
    CacheMetadata,
    OBJECT_PREFIX,
    OBJECT_SUFFIX,
)


def split_object_name(name: str) -> tuple[str, str] | None:
    """
    Parse `translations/{lang}/{key}.html` into (lang, key).

    Returns None for names outside that layout.
    """
    parts = name.split("/")
    if len(parts) != 3 or parts[0] != OBJECT_PREFIX:
        return None
    lang, filename = parts[1], parts[2]
    if not lang or not filename.endswith(OBJECT_SUFFIX):
        return None
    key = filename[: -len(OBJECT_SUFFIX)]
    if not key:
        return None
    return lang, key


def list_prefix(target_lang: str | None = None) -> str:
    """Object name prefix for one language, or for all of them."""
    if target_lang:
        return f"{OBJECT_PREFIX}/{target_lang}/"
    return f"{OBJECT_PREFIX}/"


class TranslationStore(ABC):
    """
    Key-value store for translated payloads.

    AWS Implementation: S3
    Local Implementation: Filesystem or in-memory dict
    """

    @abstractmethod
    async def get(self, target_lang: str, key: str) -> CacheEntry | None:
        """Get a cached entry, or None on a miss."""
        pass

    @abstractmethod
    async def put(
        self,
        target_lang: str,
        key: str,
        payload: str,
        metadata: CacheMetadata | None = None,
    ) -> None:
        """Store a payload. Overwrites any existing entry under the key."""
        pass

    @abstractmethod
    async def delete(self, target_lang: str, key: str) -> bool:
        """Delete an entry. Returns True if something was deleted."""
        pass

    @abstractmethod
    async def list_keys(
        self, target_lang: str | None = None
    ) -> AsyncIterator[tuple[str, str]]:
        """
        Yield (target_lang, key) pairs under one language or all languages.
        """
        pass

    async def get_metadata(self, target_lang: str, key: str) -> CacheMetadata | None:
        """Metadata of an entry without its payload, or None on a miss."""
        entry = await self.get(target_lang, key)
        if entry is None:
            return None
        return CacheMetadata(**entry.model_dump(include=set(CacheMetadata.model_fields)))

    async def entry_size(self, target_lang: str, key: str) -> int:
        """Payload size in bytes, 0 if the entry is gone."""
        entry = await self.get(target_lang, key)
        return entry.size if entry is not None else 0

    async def healthcheck(self) -> bool:
        """
        Check the backend is reachable and writable.

        Writes, reads back and deletes a throwaway entry. Raises
        StoreUnavailable when the backend cannot be used.
        """
        check_lang, check_key = "_health", "healthcheck"
        await self.put(check_lang, check_key, "ok")
        try:
            entry = await self.get(check_lang, check_key)
        finally:
            await self.delete(check_lang, check_key)
        return entry is not None and entry.payload == "ok"

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"
