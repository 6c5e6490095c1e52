"""
Shared fixtures and fakes.
"""

from __future__ import annotations

import asyncio

import pytest

from lingocache.core.errors import ProviderError, StoreUnavailable
from lingocache.core.models import LanguageConfig
from lingocache.integrations.audit import InMemoryAuditSink
from lingocache.providers.base import TranslationProvider
from lingocache.storage.local import InMemoryTranslationStore


# =============================================================================
# Fakes
# =============================================================================


class FakeProvider(TranslationProvider):
    """Prefixes texts with the target language and records every call."""

    provider_id = "fake"

    def __init__(self, max_batch_size: int = 100, fail: bool = False, delay: float = 0.0):
        self.max_batch_size = max_batch_size
        self.fail = fail
        self.delay = delay
        self.calls: list[tuple[list[str], str, str]] = []
        self.detected = "fr"

    async def translate_chunk(self, texts, source_lang, target_lang):
        self.calls.append((list(texts), source_lang, target_lang))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise ProviderError("quota exceeded")
        return [f"[{target_lang}] {t}" for t in texts]

    async def detect_language(self, text):
        if self.fail:
            raise ProviderError("no detection")
        return self.detected


class UnavailableStore(InMemoryTranslationStore):
    """A store whose backend is down for reads, writes or both."""

    def __init__(self, reads: bool = True, writes: bool = True):
        super().__init__()
        self.fail_reads = reads
        self.fail_writes = writes
        self.put_attempts = 0

    async def get(self, target_lang, key):
        if self.fail_reads:
            raise StoreUnavailable("bucket unreachable")
        return await super().get(target_lang, key)

    async def put(self, target_lang, key, payload, metadata=None):
        self.put_attempts += 1
        if self.fail_writes:
            raise StoreUnavailable("bucket unreachable")
        await super().put(target_lang, key, payload, metadata)

    async def delete(self, target_lang, key):
        if self.fail_writes:
            raise StoreUnavailable("bucket unreachable")
        return await super().delete(target_lang, key)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def config():
    """Four active languages, English default."""
    return LanguageConfig.from_string("en,fr,es,de", "en")


@pytest.fixture
def store():
    return InMemoryTranslationStore()


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def audit():
    return InMemoryAuditSink()
