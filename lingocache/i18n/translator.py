"""
Translation orchestrator.

Composes the resolver, key deriver, cache store and provider into a single
request cycle:

    Init → ResolveLanguage → CheckEquality → DeriveKey → CacheLookup
        → CacheHit: return cached payload
        → CacheMiss: CallProvider
            → Success: store (best-effort) and return translation
            → Failure: return original text

Every public method returns renderable text. Store outages are treated as
cache misses, provider failures and timeouts degrade to the original
content, and failed translations are never cached.
"""

from __future__ import annotations

import asyncio
import logging
import math
from enum import Enum
from typing import TYPE_CHECKING, Awaitable, Callable, Sequence, TypeVar

from pydantic import BaseModel

from lingocache.core.errors import ProviderError, StoreUnavailable
from lingocache.core.models import (
    CacheEntry,
    CacheMetadata,
    LanguageConfig,
    ResolutionContext,
    TranslationRecord,
    TranslationRequest,
)
from lingocache.i18n.keys import CacheKeyDeriver, is_excluded_path, normalize_url
from lingocache.i18n.languages import normalize_language_code
from lingocache.i18n.resolver import LanguageResolver
from lingocache.integrations.audit import AuditSink, emit
from lingocache.providers.base import TranslationProvider
from lingocache.storage.base import TranslationStore

if TYPE_CHECKING:
    from lingocache.config import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Outcome(str, Enum):
    """Terminal state of one orchestration cycle."""

    UNCHANGED = "unchanged"      # Empty input or source == target
    CACHE_HIT = "cache_hit"      # Served from the store
    TRANSLATED = "translated"    # Fresh translation from the provider
    DEGRADED = "degraded"        # Provider failed, original returned
    EXCLUDED = "excluded"        # Page path is never translated


class OrchestrationResult(BaseModel):
    """What happened during a cycle, for callers that need more than text."""

    text: str
    source_lang: str
    target_lang: str
    outcome: Outcome
    key: str | None = None
    cache_available: bool = True
    cache_written: bool = False
    error: str | None = None

    @property
    def cache_hit(self) -> bool:
        return self.outcome == Outcome.CACHE_HIT


class TranslationOrchestrator:
    """
    Main translation service.

    Usage:
        orchestrator = TranslationOrchestrator(store, provider, config)

        # Ad hoc string (keyed by text hash)
        fr_title = await orchestrator.translate("Hello", "en", "fr")

        # Page content (keyed by URL + content hash), language from request
        html = await orchestrator.translate_page(url, content, context)

        # Many strings, one provider call for all misses
        de_labels = await orchestrator.translate_batch(["Home", "Back"], "en", "de")
    """

    def __init__(
        self,
        store: TranslationStore,
        provider: TranslationProvider,
        config: LanguageConfig,
        resolver: LanguageResolver | None = None,
        deriver: CacheKeyDeriver | None = None,
        audit: AuditSink | None = None,
        cache_ttl: int = 3600,
        provider_timeout: float = 10.0,
        max_concurrency: int = 8,
        excluded_paths: Sequence[str] = (),
    ):
        self.store = store
        self.provider = provider
        self.config = config
        self.resolver = resolver or LanguageResolver(config)
        self.deriver = deriver or CacheKeyDeriver(config, provider.key_namespace)
        self.audit = audit
        self.cache_ttl = cache_ttl
        self.provider_timeout = provider_timeout
        self._provider_slots = asyncio.Semaphore(max_concurrency)
        self.excluded_paths = tuple(excluded_paths)

    # =========================================================================
    # Language handling
    # =========================================================================

    def resolve(self, context: ResolutionContext) -> str:
        """Resolve the target language for a request."""
        return self.resolver.resolve(context)

    def _target(self, target: str | ResolutionContext) -> str:
        if isinstance(target, ResolutionContext):
            return self.resolve(target)
        code = normalize_language_code(target)
        if self.config.is_active(code):
            return code
        logger.debug(f"Target '{target}' is not active, using default language")
        return self.config.default_language

    def _source(self, source_lang: str | None) -> str:
        if not source_lang:
            return self.config.default_language
        return normalize_language_code(source_lang)

    # =========================================================================
    # Single text
    # =========================================================================

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        """Translate an ad hoc string. Returns the original on any failure."""
        result = await self.translate_with_result(text, source_lang, target_lang)
        return result.text

    async def translate_with_result(
        self, text: str, source_lang: str, target_lang: str
    ) -> OrchestrationResult:
        source = self._source(source_lang)
        target = self._target(target_lang)
        request = TranslationRequest(source_text=text, source_lang=source, target_lang=target)
        return await self._run(
            request,
            derive_key=lambda: self.deriver.text_key(text, source, target),
        )

    # =========================================================================
    # Page content
    # =========================================================================

    async def translate_page(
        self,
        url: str,
        content: str,
        target: str | ResolutionContext,
        source_lang: str | None = None,
    ) -> str:
        """
        Translate rendered page content.

        Pages under an excluded path prefix are returned untouched, before
        any language resolution, cache or provider work.

        Args:
            url: Stable page URL
            content: Current source content (HTML)
            target: Target language code, or a ResolutionContext to resolve it from
            source_lang: Content language (defaults to the default language)
        """
        result = await self.translate_page_with_result(url, content, target, source_lang)
        return result.text

    async def translate_page_with_result(
        self,
        url: str,
        content: str,
        target: str | ResolutionContext,
        source_lang: str | None = None,
    ) -> OrchestrationResult:
        source = self._source(source_lang)
        if is_excluded_path(url, self.excluded_paths):
            logger.debug(f"Not translating excluded path {url}")
            return OrchestrationResult(
                text=content, source_lang=source, target_lang=source, outcome=Outcome.EXCLUDED
            )

        target_lang = self._target(target)
        request = TranslationRequest(
            source_text=content, source_lang=source, target_lang=target_lang
        )
        return await self._run(
            request,
            derive_key=lambda: self.deriver.page_key(url, target_lang, content),
            url=normalize_url(url),
        )

    # =========================================================================
    # The cycle
    # =========================================================================

    async def _run(
        self,
        request: TranslationRequest,
        derive_key: Callable[[], str],
        url: str | None = None,
    ) -> OrchestrationResult:
        text = request.source_text
        source, target = request.source_lang, request.target_lang

        if request.is_noop:
            return OrchestrationResult(
                text=text, source_lang=source, target_lang=target, outcome=Outcome.UNCHANGED
            )

        key = derive_key()

        entry, cache_available = await self._lookup(target, key)
        if entry is not None:
            logger.debug(f"Cache hit {target}/{key[:12]}")
            await self._record(request, url, cache_hit=True)
            return OrchestrationResult(
                text=entry.payload,
                source_lang=source,
                target_lang=target,
                outcome=Outcome.CACHE_HIT,
                key=key,
            )

        logger.info(f"Cache miss {target}/{key[:12]}, translating {len(text)} chars {source}->{target}")
        try:
            translated = await self._call_provider(
                lambda: self.provider.translate(text, source, target)
            )
            if not translated or not translated.strip():
                raise ProviderError("Provider returned an empty translation")
        except (ProviderError, asyncio.TimeoutError) as e:
            logger.warning(f"Translation {source}->{target} failed, serving original: {e!r}")
            await self._record(request, url, cache_hit=False, degraded=True)
            return OrchestrationResult(
                text=text,
                source_lang=source,
                target_lang=target,
                outcome=Outcome.DEGRADED,
                key=key,
                cache_available=cache_available,
                error=str(e) or e.__class__.__name__,
            )

        written = False
        if cache_available:
            written = await self._store(target, key, translated, source, url)

        await self._record(request, url, cache_hit=False)
        return OrchestrationResult(
            text=translated,
            source_lang=source,
            target_lang=target,
            outcome=Outcome.TRANSLATED,
            key=key,
            cache_available=cache_available,
            cache_written=written,
        )

    async def _lookup(self, target: str, key: str) -> tuple[CacheEntry | None, bool]:
        """Return (entry, store_available). An unavailable store reads as a miss."""
        try:
            return await self.store.get(target, key), True
        except StoreUnavailable as e:
            logger.warning(f"Cache store unavailable, continuing without cache: {e}")
            return None, False

    async def _store(
        self,
        target: str,
        key: str,
        payload: str,
        source: str,
        url: str | None,
    ) -> bool:
        """Best-effort cache write. Failures are logged, never raised."""
        metadata = CacheMetadata(ttl_seconds=self.cache_ttl, source_lang=source, url=url)
        try:
            await self.store.put(target, key, payload, metadata)
            return True
        except StoreUnavailable as e:
            logger.warning(f"Cache write {target}/{key[:12]} failed: {e}")
            return False

    async def _call_provider(
        self, call: Callable[[], Awaitable[T]], timeout: float | None = None
    ) -> T:
        """
        Run a provider call on a bounded slot.

        The timeout covers waiting for a slot as well as the call itself.
        """
        return await asyncio.wait_for(self._guarded(call), timeout or self.provider_timeout)

    async def _guarded(self, call: Callable[[], Awaitable[T]]) -> T:
        async with self._provider_slots:
            return await call()

    async def _record(
        self,
        request: TranslationRequest,
        url: str | None,
        cache_hit: bool,
        degraded: bool = False,
    ) -> None:
        await emit(
            self.audit,
            TranslationRecord(
                source_lang=request.source_lang,
                target_lang=request.target_lang,
                char_count=len(request.source_text),
                url=url,
                cache_hit=cache_hit,
                degraded=degraded,
            ),
        )

    # =========================================================================
    # Batch
    # =========================================================================

    async def translate_batch(
        self,
        texts: list[str],
        source_lang: str,
        target_lang: str,
    ) -> list[str]:
        """
        Translate many ad hoc strings.

        Each text is looked up in the cache individually; all misses go to
        the provider in one batched call. If that call fails, every miss is
        returned untranslated.
        """
        if not texts:
            return []

        source = self._source(source_lang)
        target = self._target(target_lang)
        if source == target:
            return list(texts)

        results: list[str] = list(texts)
        pending: dict[str, list[int]] = {}
        cache_available = True

        for i, text in enumerate(texts):
            if not text or not text.strip():
                continue
            key = self.deriver.text_key(text, source, target)
            entry, available = await self._lookup(target, key)
            cache_available = cache_available and available
            if entry is not None:
                results[i] = entry.payload
                await self._record(
                    TranslationRequest(source_text=text, source_lang=source, target_lang=target),
                    None,
                    cache_hit=True,
                )
            else:
                pending.setdefault(text, []).append(i)

        if not pending:
            return results

        misses = list(pending)
        chunks = math.ceil(len(misses) / max(self.provider.max_batch_size, 1))
        try:
            translations = await self._call_provider(
                lambda: self.provider.translate_batch(misses, source, target),
                timeout=self.provider_timeout * chunks,
            )
        except (ProviderError, asyncio.TimeoutError) as e:
            logger.warning(
                f"Batch translation of {len(misses)} texts {source}->{target} failed, "
                f"serving originals: {e!r}"
            )
            for text in misses:
                await self._record(
                    TranslationRequest(source_text=text, source_lang=source, target_lang=target),
                    None,
                    cache_hit=False,
                    degraded=True,
                )
            return results

        for text, translated in zip(misses, translations):
            if not translated or not translated.strip():
                continue
            for i in pending[text]:
                results[i] = translated
            if cache_available:
                key = self.deriver.text_key(text, source, target)
                await self._store(target, key, translated, source, None)
            await self._record(
                TranslationRequest(source_text=text, source_lang=source, target_lang=target),
                None,
                cache_hit=False,
            )

        return results

    # =========================================================================
    # Detection
    # =========================================================================

    async def detect_language(self, text: str) -> str:
        """
        Detect the language of text.

        Falls back to the default language when the text is empty or the
        provider cannot establish a language.
        """
        if not text or not text.strip():
            return self.config.default_language

        try:
            code = await self._call_provider(lambda: self.provider.detect_language(text))
        except (ProviderError, asyncio.TimeoutError) as e:
            logger.info(f"Language detection failed, assuming default: {e!r}")
            return self.config.default_language

        return normalize_language_code(code)


# =============================================================================
# Factory
# =============================================================================


def create_orchestrator(
    settings: Settings,
    store: TranslationStore | None = None,
    provider: TranslationProvider | None = None,
    audit: AuditSink | None = None,
) -> TranslationOrchestrator:
    """
    Wire an orchestrator from settings.

    Raises:
        ConfigurationMissing: When the selected backends lack credentials
    """
    from lingocache.config_loader import load_language_settings
    from lingocache.providers import create_provider
    from lingocache.storage import create_store

    config, country_languages = load_language_settings(settings)
    provider = provider or create_provider(settings)
    return TranslationOrchestrator(
        store=store or create_store(settings),
        provider=provider,
        config=config,
        resolver=LanguageResolver(config, country_languages),
        deriver=CacheKeyDeriver(config, provider.key_namespace),
        audit=audit,
        cache_ttl=settings.cache_ttl,
        provider_timeout=settings.provider_timeout,
        max_concurrency=settings.max_concurrency,
        excluded_paths=settings.excluded_path_prefixes(),
    )
