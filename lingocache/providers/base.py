"""
Translation provider abstraction.

A provider wraps one external machine-translation service. Providers hold
no local state beyond their client; every failure surfaces as
ProviderError and nothing is ever partially translated.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from lingocache.core.errors import BatchTranslationError, ProviderError
from lingocache.core.utils import chunked


class TranslationProvider(ABC):
    """
    Base class for translation services.

    Subclasses implement `translate_chunk` (one upstream call for at most
    `max_batch_size` texts) and `detect_language`. Batching, chunking and
    result validation are shared.
    """

    provider_id: str = "base"
    max_batch_size: int = 100

    @property
    def key_namespace(self) -> str | None:
        """
        Extra cache key component for providers whose output depends on
        configuration beyond the language pair (e.g. a glossary). None
        leaves keys unchanged.
        """
        return None

    @abstractmethod
    async def translate_chunk(
        self, texts: list[str], source_lang: str, target_lang: str
    ) -> list[str]:
        """
        Translate up to `max_batch_size` texts in a single upstream call.

        Raises:
            ProviderError: On any auth, quota, network or response failure
        """
        pass

    @abstractmethod
    async def detect_language(self, text: str) -> str:
        """
        Detect the language of text.

        Raises:
            ProviderError: When no language can be established with confidence
        """
        pass

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        """Translate a single text."""
        results = await self.translate_chunk([text], source_lang, target_lang)
        if len(results) != 1:
            raise ProviderError(
                f"{self.provider_id} returned {len(results)} translations for 1 text"
            )
        return results[0]

    async def translate_batch(
        self, texts: list[str], source_lang: str, target_lang: str
    ) -> list[str]:
        """
        Translate many texts, chunked at `max_batch_size` per upstream call.

        Results keep input order. If any chunk fails the whole call fails
        with BatchTranslationError naming the chunk, so the caller can
        retry that chunk alone.
        """
        if not texts:
            return []

        results: list[str] = []
        for index, chunk in enumerate(chunked(list(texts), self.max_batch_size)):
            try:
                translated = await self.translate_chunk(chunk, source_lang, target_lang)
            except ProviderError as e:
                raise BatchTranslationError(
                    f"Chunk {index} failed: {e}", chunk_index=index
                ) from e

            if len(translated) != len(chunk):
                raise BatchTranslationError(
                    f"Chunk {index}: expected {len(chunk)} translations, got {len(translated)}",
                    chunk_index=index,
                )
            results.extend(translated)

        return results

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self.provider_id})>"
