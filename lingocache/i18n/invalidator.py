"""
Cache invalidation.

Page keys already fold in a hash of the source content, so an edit never
serves a stale translation. Invalidation removes the entries the old
content left behind, and supports operator-driven bulk purges.
"""

from __future__ import annotations

import logging

from lingocache.core.errors import StoreUnavailable
from lingocache.core.models import ContentChange, LanguageConfig
from lingocache.i18n.keys import CacheKeyDeriver, normalize_url
from lingocache.storage.base import TranslationStore

logger = logging.getLogger(__name__)


class CacheInvalidator:
    """
    Deletes cached translations.

    Usage:
        invalidator = CacheInvalidator(store, config)

        # A page was edited
        await invalidator.invalidate("https://example.com/about/", languages=["fr"])

        # Operator actions
        await invalidator.purge_language("de")
        await invalidator.purge_all()
    """

    def __init__(
        self,
        store: TranslationStore,
        config: LanguageConfig,
        deriver: CacheKeyDeriver | None = None,
    ):
        self.store = store
        self.config = config
        self.deriver = deriver or CacheKeyDeriver(config)

    def _languages(self, languages: list[str] | None) -> list[str]:
        if languages is None:
            return list(self.config.active_languages)
        return [lang.strip().lower() for lang in languages if lang and lang.strip()]

    async def invalidate(
        self,
        url: str,
        languages: list[str] | None = None,
        content: str | None = None,
    ) -> int:
        """
        Delete cached translations of a page.

        With `content` (the source the entries were cached from) the exact
        keys are deleted directly. Without it, each language is scanned
        for entries whose metadata names this URL.

        Args:
            url: Page URL
            languages: Languages to clear (defaults to every active language)
            content: Source content whose translations should be dropped

        Returns:
            Number of entries deleted

        Raises:
            StoreUnavailable: If the backend cannot be reached
        """
        languages = self._languages(languages)
        deleted = 0

        if content is not None:
            for lang, key in self.deriver.page_keys(url, content, languages).items():
                if await self.store.delete(lang, key):
                    deleted += 1
        else:
            target_url = normalize_url(url)
            for lang in languages:
                deleted += await self._delete_matching_url(lang, target_url)

        logger.info(f"Invalidated {deleted} cached translation(s) of {url}")
        return deleted

    async def _delete_matching_url(self, lang: str, target_url: str) -> int:
        deleted = 0
        async for entry_lang, key in self.store.list_keys(lang):
            metadata = await self.store.get_metadata(entry_lang, key)
            if metadata is None or metadata.url != target_url:
                continue
            if await self.store.delete(entry_lang, key):
                deleted += 1
        return deleted

    async def purge_language(self, lang: str) -> int:
        """
        Delete every entry cached for one language.

        Returns:
            Number of entries deleted
        """
        lang = lang.strip().lower()
        deleted = 0
        async for entry_lang, key in self.store.list_keys(lang):
            if await self.store.delete(entry_lang, key):
                deleted += 1
        logger.info(f"Purged {deleted} cached translation(s) for '{lang}'")
        return deleted

    async def purge_all(self) -> int:
        """
        Delete every cached translation in every language.

        Returns:
            Number of entries deleted
        """
        deleted = 0
        async for lang, key in self.store.list_keys():
            if await self.store.delete(lang, key):
                deleted += 1
        logger.info(f"Purged {deleted} cached translation(s)")
        return deleted

    async def on_content_changed(self, event: ContentChange) -> int:
        """
        Subscriber for content edits.

        Deletes translations of the previous content. Store outages are
        logged and reported as zero deletions; the new content gets fresh
        keys regardless.
        """
        try:
            return await self.invalidate(
                event.url,
                languages=event.languages,
                content=event.previous_content,
            )
        except StoreUnavailable as e:
            logger.warning(f"Could not invalidate {event.url}: {e}")
            return 0
