"""
Tests for translation providers.
"""

import json

import httpx
import pytest

from lingocache.config import Settings
from lingocache.core.errors import BatchTranslationError, ConfigurationMissing, ProviderError
from lingocache.providers import create_provider
from lingocache.i18n.translator import TranslationOrchestrator
from lingocache.providers.google import GoogleTranslateProvider

from conftest import FakeProvider


# =============================================================================
# Batching
# =============================================================================


class TestBatching:
    @pytest.mark.asyncio
    async def test_chunks_keep_order(self):
        provider = FakeProvider(max_batch_size=2)
        texts = ["a", "b", "c", "d", "e"]

        results = await provider.translate_batch(texts, "en", "fr")

        assert results == [f"[fr] {t}" for t in texts]
        assert [len(call[0]) for call in provider.calls] == [2, 2, 1]

    @pytest.mark.asyncio
    async def test_failed_chunk_is_named(self):
        class FailsSecondChunk(FakeProvider):
            async def translate_chunk(self, texts, source_lang, target_lang):
                if len(self.calls) == 1:
                    self.calls.append((texts, source_lang, target_lang))
                    raise ProviderError("quota exceeded")
                return await super().translate_chunk(texts, source_lang, target_lang)

        provider = FailsSecondChunk(max_batch_size=2)
        with pytest.raises(BatchTranslationError) as exc:
            await provider.translate_batch(["a", "b", "c"], "en", "fr")
        assert exc.value.chunk_index == 1

    @pytest.mark.asyncio
    async def test_count_mismatch(self):
        class DropsOne(FakeProvider):
            async def translate_chunk(self, texts, source_lang, target_lang):
                return texts[:-1]

        with pytest.raises(BatchTranslationError):
            await DropsOne().translate_batch(["a", "b"], "en", "fr")

    @pytest.mark.asyncio
    async def test_empty_batch(self):
        provider = FakeProvider()
        assert await provider.translate_batch([], "en", "fr") == []
        assert provider.calls == []


# =============================================================================
# Google Cloud Translation
# =============================================================================


def google(handler):
    return GoogleTranslateProvider(api_key="test-key", transport=httpx.MockTransport(handler))


class TestGoogleProvider:
    def test_requires_api_key(self):
        with pytest.raises(ConfigurationMissing):
            GoogleTranslateProvider(api_key="")

    @pytest.mark.asyncio
    async def test_translate_sends_html_format(self):
        seen = {}

        def handler(request):
            seen["key"] = request.url.params["key"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "data": {"translations": [{"translatedText": "<p>Bonjour</p>"}]}
            })

        result = await google(handler).translate("<p>Hello</p>", "en", "fr")

        assert result == "<p>Bonjour</p>"
        assert seen["key"] == "test-key"
        assert seen["body"] == {
            "q": ["<p>Hello</p>"],
            "source": "en",
            "target": "fr",
            "format": "html",
        }

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(403, json={"error": {"message": "forbidden"}})

        with pytest.raises(ProviderError):
            await google(handler).translate("Hello", "en", "fr")
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_server_error_retried_once(self):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                return httpx.Response(503)
            return httpx.Response(200, json={
                "data": {"translations": [{"translatedText": "Hallo"}]}
            })

        assert await google(handler).translate("Hello", "en", "de") == "Hallo"
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_persistent_throttling_fails(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(429)

        with pytest.raises(ProviderError):
            await google(handler).translate("Hello", "en", "de")
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_malformed_response(self):
        def handler(request):
            return httpx.Response(200, json={"data": {}})

        with pytest.raises(ProviderError):
            await google(handler).translate("Hello", "en", "fr")

    @pytest.mark.asyncio
    async def test_detect_picks_most_confident(self):
        def handler(request):
            assert request.url.path.endswith("/detect")
            return httpx.Response(200, json={"data": {"detections": [[
                {"language": "iw", "confidence": 0.9},
                {"language": "en", "confidence": 0.1},
            ]]}})

        assert await google(handler).detect_language("שלום") == "he"

    @pytest.mark.asyncio
    async def test_detect_low_confidence(self):
        def handler(request):
            return httpx.Response(200, json={"data": {"detections": [[
                {"language": "fr", "confidence": 0.2},
            ]]}})

        with pytest.raises(ProviderError):
            await google(handler).detect_language("ok")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("confidence", ["high", None, [0.9]])
    async def test_detect_malformed_confidence(self, confidence):
        def handler(request):
            return httpx.Response(200, json={"data": {"detections": [[
                {"language": "fr", "confidence": confidence},
            ]]}})

        with pytest.raises(ProviderError):
            await google(handler).detect_language("Bonjour")

    @pytest.mark.asyncio
    async def test_malformed_detection_falls_back_to_default(self, store, config):
        def handler(request):
            return httpx.Response(200, json={"data": {"detections": [[
                {"language": "fr", "confidence": "high"},
            ]]}})

        orchestrator = TranslationOrchestrator(store, google(handler), config)
        assert await orchestrator.detect_language("Bonjour") == "en"

    @pytest.mark.asyncio
    async def test_supported_languages(self):
        def handler(request):
            assert request.url.params["target"] == "en"
            return httpx.Response(200, json={"data": {"languages": [
                {"language": "fr", "name": "French"},
                {"language": "de", "name": "German"},
            ]}})

        assert await google(handler).supported_languages() == {"fr": "French", "de": "German"}


# =============================================================================
# Google glossaries
# =============================================================================


def glossary_google(handler):
    return GoogleTranslateProvider(
        api_key="test-key",
        glossary_id="brand-terms",
        project_id="acme-site",
        location="us-central1",
        transport=httpx.MockTransport(handler),
    )


class TestGoogleGlossary:
    def test_glossary_requires_project(self):
        with pytest.raises(ConfigurationMissing) as exc:
            GoogleTranslateProvider(api_key="k", glossary_id="brand-terms")
        assert exc.value.missing == ["google_project_id"]

    def test_key_namespace(self):
        assert glossary_google(None).key_namespace == "glossary=brand-terms"
        assert GoogleTranslateProvider(api_key="k").key_namespace is None

    @pytest.mark.asyncio
    async def test_translate_uses_v3_glossary_request(self):
        seen = {}

        def handler(request):
            seen["url"] = f"{request.url.scheme}://{request.url.host}{request.url.path}"
            seen["key"] = request.url.params["key"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "translations": [{"translatedText": "<p>Bonjour Widget</p>"}],
                "glossaryTranslations": [{"translatedText": "<p>Bonjour WidgetPro</p>"}],
            })

        result = await glossary_google(handler).translate("<p>Hello WidgetPro</p>", "en", "fr")

        assert result == "<p>Bonjour WidgetPro</p>"
        assert seen["url"] == (
            "https://translation.googleapis.com/v3/projects/acme-site"
            "/locations/us-central1:translateText"
        )
        assert seen["key"] == "test-key"
        assert seen["body"] == {
            "contents": ["<p>Hello WidgetPro</p>"],
            "sourceLanguageCode": "en",
            "targetLanguageCode": "fr",
            "mimeType": "text/html",
            "glossaryConfig": {
                "glossary": "projects/acme-site/locations/us-central1/glossaries/brand-terms",
            },
        }

    @pytest.mark.asyncio
    async def test_falls_back_to_plain_translations(self):
        def handler(request):
            return httpx.Response(200, json={"translations": [{"translatedText": "Bonjour"}]})

        assert await glossary_google(handler).translate("Hello", "en", "fr") == "Bonjour"

    @pytest.mark.asyncio
    async def test_malformed_glossary_response(self):
        def handler(request):
            return httpx.Response(200, json={"glossaryTranslations": "nope"})

        with pytest.raises(ProviderError):
            await glossary_google(handler).translate("Hello", "en", "fr")

    @pytest.mark.asyncio
    async def test_detection_stays_on_v2(self):
        def handler(request):
            assert request.url.path == "/language/translate/v2/detect"
            return httpx.Response(200, json={"data": {"detections": [[
                {"language": "fr", "confidence": 0.9},
            ]]}})

        assert await glossary_google(handler).detect_language("Bonjour") == "fr"


# =============================================================================
# Factory
# =============================================================================


class TestCreateProvider:
    def test_google_batch_size_capped(self):
        settings = Settings(translation_provider="google", google_api_key="k", provider_batch_size=25)
        provider = create_provider(settings)
        assert isinstance(provider, GoogleTranslateProvider)
        assert provider.max_batch_size == 25

    def test_glossary_settings_flow_through(self):
        settings = Settings(
            translation_provider="google",
            google_api_key="k",
            google_glossary_id="brand-terms",
            google_project_id="acme-site",
            google_location="europe-west1",
        )
        provider = create_provider(settings)
        assert provider.glossary_name == (
            "projects/acme-site/locations/europe-west1/glossaries/brand-terms"
        )

    def test_missing_key(self):
        with pytest.raises(ConfigurationMissing):
            create_provider(Settings(translation_provider="google", google_api_key=""))

    def test_unknown(self):
        with pytest.raises(ValueError):
            create_provider(Settings(translation_provider="babelfish"))
