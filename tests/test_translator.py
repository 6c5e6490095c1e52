"""
Tests for the translation orchestrator.

Every call returns renderable text: cache outages read as misses,
provider failures serve the original, and failures are never cached.
"""

import asyncio
import time

import pytest

from lingocache.config import Settings
from lingocache.core.models import ResolutionContext
from lingocache.i18n.keys import CacheKeyDeriver
from lingocache.i18n.translator import Outcome, TranslationOrchestrator, create_orchestrator
from lingocache.storage.local import LocalTranslationStore

from conftest import FakeProvider, UnavailableStore


@pytest.fixture
def orchestrator(store, provider, config, audit):
    return TranslationOrchestrator(store, provider, config, audit=audit)


# =============================================================================
# No-op cycles
# =============================================================================


class TestUnchanged:
    @pytest.mark.asyncio
    async def test_same_language_makes_no_calls(self, orchestrator, store, provider, audit):
        result = await orchestrator.translate_with_result("Hello", "en", "en")

        assert result.text == "Hello"
        assert result.outcome == Outcome.UNCHANGED
        assert provider.calls == []
        assert len(store) == 0
        assert audit.records == []

    @pytest.mark.asyncio
    async def test_blank_text(self, orchestrator, provider):
        assert await orchestrator.translate("   ", "en", "fr") == "   "
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_inactive_target_uses_default(self, orchestrator, provider):
        assert await orchestrator.translate("Hello", "en", "ja") == "Hello"
        assert provider.calls == []


# =============================================================================
# Cache hit / miss
# =============================================================================


class TestCaching:
    @pytest.mark.asyncio
    async def test_miss_then_hit(self, orchestrator, provider):
        first = await orchestrator.translate_with_result("Hello", "en", "fr")
        second = await orchestrator.translate_with_result("Hello", "en", "fr")

        assert first.outcome == Outcome.TRANSLATED
        assert first.cache_written
        assert second.cache_hit
        assert first.text == second.text == "[fr] Hello"
        assert len(provider.calls) == 1

    @pytest.mark.asyncio
    async def test_stored_under_text_key(self, orchestrator, store, config):
        await orchestrator.translate("Hello", "en", "fr")

        key = CacheKeyDeriver(config).text_key("Hello", "en", "fr")
        entry = await store.get("fr", key)
        assert entry is not None
        assert entry.payload == "[fr] Hello"
        assert entry.source_lang == "en"
        assert entry.ttl_seconds == 3600

    @pytest.mark.asyncio
    async def test_preexisting_entry_served_without_provider(self, orchestrator, store, provider, config):
        key = CacheKeyDeriver(config).text_key("Hello", "en", "fr")
        await store.put("fr", key, "Bonjour")

        assert await orchestrator.translate("Hello", "en", "fr") == "Bonjour"
        assert provider.calls == []


class TestPages:
    @pytest.mark.asyncio
    async def test_language_resolved_from_context(self, orchestrator):
        context = ResolutionContext(cookie="de", query="fr")
        html = await orchestrator.translate_page("https://example.com/", "<p>Hi</p>", context)
        assert html == "[de] <p>Hi</p>"

    @pytest.mark.asyncio
    async def test_content_edit_misses_cache(self, orchestrator, provider):
        url = "https://example.com/about/"
        await orchestrator.translate_page(url, "<p>v1</p>", "fr")
        await orchestrator.translate_page(url, "<p>v1</p>", "fr")
        await orchestrator.translate_page(url, "<p>v2</p>", "fr")

        assert len(provider.calls) == 2

    @pytest.mark.asyncio
    async def test_entry_records_normalized_url(self, orchestrator, store):
        result = await orchestrator.translate_page_with_result(
            "https://Example.com/about/?lang=fr", "<p>Hi</p>", "fr"
        )
        entry = await store.get("fr", result.key)
        assert entry.url == "https://example.com/about/"


# =============================================================================
# Degradation
# =============================================================================


class TestDegradation:
    @pytest.mark.asyncio
    async def test_provider_failure_returns_original(self, store, config):
        orchestrator = TranslationOrchestrator(store, FakeProvider(fail=True), config)

        result = await orchestrator.translate_with_result("Hello", "en", "fr")

        assert result.text == "Hello"
        assert result.outcome == Outcome.DEGRADED
        assert "quota" in result.error
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_provider_timeout_returns_original(self, store, config):
        provider = FakeProvider(delay=1.0)
        orchestrator = TranslationOrchestrator(store, provider, config, provider_timeout=0.05)

        result = await orchestrator.translate_with_result("Hello", "en", "fr")

        assert result.outcome == Outcome.DEGRADED
        assert result.text == "Hello"
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_store_down_reads_as_miss(self, provider, config):
        store = UnavailableStore()
        orchestrator = TranslationOrchestrator(store, provider, config)

        result = await orchestrator.translate_with_result("Hello", "en", "fr")

        assert result.text == "[fr] Hello"
        assert not result.cache_available
        assert store.put_attempts == 0

    @pytest.mark.asyncio
    async def test_write_failure_still_returns_translation(self, provider, config):
        store = UnavailableStore(reads=False, writes=True)
        orchestrator = TranslationOrchestrator(store, provider, config)

        result = await orchestrator.translate_with_result("Hello", "en", "fr")

        assert result.text == "[fr] Hello"
        assert result.cache_available
        assert not result.cache_written
        assert store.put_attempts == 1

    @pytest.mark.asyncio
    async def test_empty_translation_not_cached(self, store, config):
        class BlankProvider(FakeProvider):
            async def translate_chunk(self, texts, source_lang, target_lang):
                return ["" for _ in texts]

        orchestrator = TranslationOrchestrator(store, BlankProvider(), config)
        assert await orchestrator.translate("Hello", "en", "fr") == "Hello"
        assert len(store) == 0


# =============================================================================
# Batch
# =============================================================================


class TestBatch:
    @pytest.mark.asyncio
    async def test_misses_go_in_one_batch(self, orchestrator, provider, config, store):
        key = CacheKeyDeriver(config).text_key("Home", "en", "de")
        await store.put("de", key, "Startseite")

        results = await orchestrator.translate_batch(["Home", "Back", "", "Back"], "en", "de")

        assert results == ["Startseite", "[de] Back", "", "[de] Back"]
        assert provider.calls == [(["Back"], "en", "de")]

    @pytest.mark.asyncio
    async def test_failure_returns_originals(self, store, config):
        orchestrator = TranslationOrchestrator(store, FakeProvider(fail=True), config)
        texts = ["Home", "Back"]
        assert await orchestrator.translate_batch(texts, "en", "fr") == texts
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_batch_results_are_cached(self, orchestrator, provider):
        await orchestrator.translate_batch(["Home", "Back"], "en", "fr")
        await orchestrator.translate_batch(["Home", "Back"], "en", "fr")
        assert len(provider.calls) == 1

    @pytest.mark.asyncio
    async def test_same_language(self, orchestrator, provider):
        assert await orchestrator.translate_batch(["Home"], "en", "en") == ["Home"]
        assert provider.calls == []


# =============================================================================
# Detection and audit
# =============================================================================


class TestDetection:
    @pytest.mark.asyncio
    async def test_detects(self, orchestrator):
        assert await orchestrator.detect_language("Bonjour tout le monde") == "fr"

    @pytest.mark.asyncio
    async def test_failure_falls_back_to_default(self, store, config):
        orchestrator = TranslationOrchestrator(store, FakeProvider(fail=True), config)
        assert await orchestrator.detect_language("???") == "en"

    @pytest.mark.asyncio
    async def test_blank_text(self, orchestrator):
        assert await orchestrator.detect_language("") == "en"


class TestAudit:
    @pytest.mark.asyncio
    async def test_records_miss_and_hit(self, orchestrator, audit):
        await orchestrator.translate_page("https://example.com/", "<p>Hi</p>", "fr")
        await orchestrator.translate_page("https://example.com/", "<p>Hi</p>", "fr")

        assert [r.cache_hit for r in audit.records] == [False, True]
        assert audit.records[0].char_count == len("<p>Hi</p>")
        assert audit.translated_urls("fr") == {"https://example.com/"}
        assert audit.cache_hit_rate == 0.5

    @pytest.mark.asyncio
    async def test_failing_sink_does_not_break_translation(self, store, provider, config):
        class BrokenSink:
            async def record(self, entry):
                raise RuntimeError("sink down")

        orchestrator = TranslationOrchestrator(store, provider, config, audit=BrokenSink())
        assert await orchestrator.translate("Hello", "en", "fr") == "[fr] Hello"

    @pytest.mark.asyncio
    async def test_degraded_cycle_is_recorded(self, store, config, audit):
        orchestrator = TranslationOrchestrator(store, FakeProvider(fail=True), config, audit=audit)

        await orchestrator.translate_page("https://example.com/", "<p>Hi</p>", "fr")

        assert len(audit.records) == 1
        assert audit.records[0].degraded
        assert not audit.records[0].cache_hit
        assert audit.translated_urls("fr") == set()

    @pytest.mark.asyncio
    async def test_failed_batch_records_each_miss(self, store, config, audit):
        orchestrator = TranslationOrchestrator(store, FakeProvider(fail=True), config, audit=audit)

        await orchestrator.translate_batch(["Home", "Back"], "en", "fr")

        assert [r.degraded for r in audit.records] == [True, True]


# =============================================================================
# Provider slots
# =============================================================================


class TestProviderSlots:
    @pytest.mark.asyncio
    async def test_timeout_covers_waiting_for_a_slot(self, store, config):
        provider = FakeProvider(delay=5.0)
        orchestrator = TranslationOrchestrator(
            store, provider, config, provider_timeout=0.2, max_concurrency=1
        )

        started = time.monotonic()
        results = await asyncio.gather(
            *(orchestrator.translate(f"Hello {i}", "en", "fr") for i in range(5))
        )

        assert time.monotonic() - started < 1.0
        assert results == [f"Hello {i}" for i in range(5)]

    @pytest.mark.asyncio
    async def test_slot_is_released_after_timeout(self, store, config):
        provider = FakeProvider(delay=5.0)
        orchestrator = TranslationOrchestrator(
            store, provider, config, provider_timeout=0.1, max_concurrency=1
        )
        assert await orchestrator.translate("Hello", "en", "fr") == "Hello"

        provider.delay = 0.0
        assert await orchestrator.translate("Hello", "en", "fr") == "[fr] Hello"


# =============================================================================
# Corrupt cache objects
# =============================================================================


class TestCorruptCache:
    @pytest.mark.asyncio
    async def test_undecodable_entry_is_retranslated(self, tmp_path, provider, config):
        store = LocalTranslationStore(str(tmp_path))
        key = CacheKeyDeriver(config).text_key("Hello", "en", "fr")
        path = tmp_path / "translations" / "fr" / f"{key}.html"
        path.parent.mkdir(parents=True)
        path.write_bytes(b"Bonj\xc3")

        orchestrator = TranslationOrchestrator(store, provider, config)

        assert await orchestrator.translate("Hello", "en", "fr") == "[fr] Hello"
        assert path.read_text(encoding="utf-8") == "[fr] Hello"


# =============================================================================
# Excluded paths
# =============================================================================


class TestExcludedPaths:
    @pytest.fixture
    def excluding(self, store, provider, config, audit):
        return TranslationOrchestrator(
            store, provider, config, audit=audit,
            excluded_paths=["/wp-admin", "/wp-json"],
        )

    @pytest.mark.asyncio
    async def test_excluded_page_is_untouched(self, excluding, store, provider, audit):
        result = await excluding.translate_page_with_result(
            "https://example.com/wp-admin/edit.php", "<p>Admin</p>", ResolutionContext(cookie="fr")
        )

        assert result.text == "<p>Admin</p>"
        assert result.outcome == Outcome.EXCLUDED
        assert provider.calls == []
        assert len(store) == 0
        assert audit.records == []

    @pytest.mark.asyncio
    async def test_prefix_match_only(self, excluding, provider):
        html = await excluding.translate_page("https://example.com/blog/wp-json", "<p>Hi</p>", "fr")
        assert html == "[fr] <p>Hi</p>"
        assert len(provider.calls) == 1

    @pytest.mark.asyncio
    async def test_nothing_excluded_by_default(self, orchestrator):
        html = await orchestrator.translate_page("https://example.com/wp-admin/", "<p>Hi</p>", "fr")
        assert html == "[fr] <p>Hi</p>"


# =============================================================================
# Key namespaces
# =============================================================================


class GlossaryProvider(FakeProvider):
    @property
    def key_namespace(self):
        return "glossary=brand-terms"


class TestKeyNamespace:
    @pytest.mark.asyncio
    async def test_provider_namespace_separates_entries(self, store, config):
        plain = TranslationOrchestrator(store, FakeProvider(), config)
        glossary_provider = GlossaryProvider()
        with_glossary = TranslationOrchestrator(store, glossary_provider, config)

        await plain.translate("Hello", "en", "fr")
        result = await with_glossary.translate_with_result("Hello", "en", "fr")

        assert result.outcome == Outcome.TRANSLATED
        assert len(glossary_provider.calls) == 1
        assert len(store) == 2

    @pytest.mark.asyncio
    async def test_default_deriver_uses_provider_namespace(self, store, config):
        orchestrator = TranslationOrchestrator(store, GlossaryProvider(), config)
        assert orchestrator.deriver.namespace == "glossary=brand-terms"


# =============================================================================
# Factory
# =============================================================================


class TestCreateOrchestrator:
    def test_wires_excluded_paths_and_glossary_namespace(self):
        settings = Settings(
            cache_backend="memory",
            translation_provider="google",
            google_api_key="k",
            google_glossary_id="brand-terms",
            google_project_id="acme-site",
            excluded_paths="/wp-admin,/private",
        )

        orchestrator = create_orchestrator(settings)

        assert orchestrator.excluded_paths == ("/wp-admin", "/private")
        assert orchestrator.deriver.namespace == "glossary=brand-terms"
