"""
Cache statistics: entry counts and sizes per language.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from lingocache.storage.base import TranslationStore


class LanguageStats(BaseModel):
    count: int = 0
    size: int = 0


class CacheStats(BaseModel):
    total_entries: int = 0
    total_bytes: int = 0
    languages: dict[str, LanguageStats] = Field(default_factory=dict)


async def collect_cache_stats(
    store: TranslationStore,
    target_lang: str | None = None,
) -> CacheStats:
    """
    Walk the store and total up entries and bytes.

    Raises:
        StoreUnavailable: If the backend cannot be listed
    """
    stats = CacheStats()
    async for lang, key in store.list_keys(target_lang):
        size = await store.entry_size(lang, key)
        per_lang = stats.languages.setdefault(lang, LanguageStats())
        per_lang.count += 1
        per_lang.size += size
        stats.total_entries += 1
        stats.total_bytes += size
    return stats
