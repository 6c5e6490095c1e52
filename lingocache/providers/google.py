"""
Google Cloud Translation provider.

Plain translation and detection use the v2 REST API. With a glossary
configured, translation goes through the v3 `translateText` endpoint so
the glossary terms are applied. Content is always sent as HTML so markup
survives translation.

Transient failures (network errors, 429, 5xx) are retried once; anything
else fails immediately with ProviderError.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from lingocache.core.errors import ConfigurationMissing, ProviderError
from lingocache.i18n.languages import normalize_language_code
from lingocache.providers.base import TranslationProvider

logger = logging.getLogger(__name__)


class TransientProviderError(ProviderError):
    """A failure worth one retry: network trouble, throttling, 5xx."""
    pass


class GoogleTranslateProvider(TranslationProvider):
    """
    Google Cloud Translation via its REST API with an API key.

    Usage:
        provider = GoogleTranslateProvider(api_key="...")
        text_fr = await provider.translate("<p>Hello</p>", "en", "fr")
    """

    provider_id = "google"
    max_batch_size = 100

    BASE_URL = "https://translation.googleapis.com/language/translate/v2"
    V3_URL = "https://translation.googleapis.com/v3"

    def __init__(
        self,
        api_key: str,
        timeout: float = 10.0,
        min_detect_confidence: float = 0.5,
        glossary_id: str | None = None,
        project_id: str | None = None,
        location: str = "us-central1",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not api_key:
            raise ConfigurationMissing(["google_api_key"])
        if glossary_id and not project_id:
            raise ConfigurationMissing(["google_project_id"])
        self.glossary_id = glossary_id or None
        self.project_id = project_id or None
        self.location = location
        self.api_key = api_key
        self.timeout = timeout
        self.min_detect_confidence = min_detect_confidence
        self._transport = transport

    @property
    def key_namespace(self) -> str | None:
        if self.glossary_id:
            return f"glossary={self.glossary_id}"
        return None

    @property
    def glossary_name(self) -> str | None:
        """Full resource name of the configured glossary."""
        if not self.glossary_id:
            return None
        return (
            f"projects/{self.project_id}/locations/{self.location}"
            f"/glossaries/{self.glossary_id}"
        )

    @retry(
        retry=retry_if_exception_type(TransientProviderError),
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=0.5, max=2),
        reraise=True,
    )
    async def _request(
        self,
        method: str,
        url: str,
        query: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Call the API and return the decoded JSON body."""
        params = {"key": self.api_key, **(query or {})}
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.request(method, url, params=params, **kwargs)
        except httpx.HTTPError as e:
            raise TransientProviderError(f"Google Translate request failed: {e}") from e

        if response.status_code == 429 or response.status_code >= 500:
            raise TransientProviderError(
                f"Google Translate unavailable: HTTP {response.status_code}"
            )
        if response.status_code != 200:
            logger.error(f"Google Translate error: {response.text}")
            raise ProviderError(f"Google Translate rejected request: HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            raise ProviderError(f"Malformed Google Translate response: {e}") from e
        if not isinstance(body, dict):
            raise ProviderError("Malformed Google Translate response: not an object")
        return body

    async def _v2(
        self,
        method: str,
        path: str,
        query: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """v2 call, unwrapped to the `data` object."""
        body = await self._request(method, f"{self.BASE_URL}{path}", query, **kwargs)
        try:
            return body["data"]
        except KeyError as e:
            raise ProviderError(f"Malformed Google Translate response: {e}") from e

    async def translate_chunk(
        self, texts: list[str], source_lang: str, target_lang: str
    ) -> list[str]:
        if self.glossary_id:
            return await self._translate_with_glossary(texts, source_lang, target_lang)

        data = await self._v2(
            "POST",
            "",
            json={
                "q": texts,
                "source": source_lang,
                "target": target_lang,
                "format": "html",
            },
        )
        try:
            return [t["translatedText"] for t in data["translations"]]
        except (KeyError, TypeError) as e:
            raise ProviderError(f"Malformed Google Translate response: {e}") from e

    async def _translate_with_glossary(
        self, texts: list[str], source_lang: str, target_lang: str
    ) -> list[str]:
        parent = f"projects/{self.project_id}/locations/{self.location}"
        body = await self._request(
            "POST",
            f"{self.V3_URL}/{parent}:translateText",
            json={
                "contents": texts,
                "sourceLanguageCode": source_lang,
                "targetLanguageCode": target_lang,
                "mimeType": "text/html",
                "glossaryConfig": {"glossary": self.glossary_name},
            },
        )
        # Prefer the glossary-applied variant
        translations = body.get("glossaryTranslations") or body.get("translations")
        try:
            return [t["translatedText"] for t in translations]
        except (KeyError, TypeError) as e:
            raise ProviderError(f"Malformed glossary translation response: {e}") from e

    async def detect_language(self, text: str) -> str:
        data = await self._v2("POST", "/detect", json={"q": text[:1000]})
        try:
            candidates = [
                (float(d.get("confidence", 0)), d)
                for group in data["detections"]
                for d in group
            ]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ProviderError(f"Malformed detection response: {e}") from e

        if not candidates:
            raise ProviderError("No language detected")

        confidence, best = max(candidates, key=lambda c: c[0])
        if confidence < self.min_detect_confidence:
            raise ProviderError(
                f"Detection confidence too low ({confidence:.2f} for '{best.get('language')}')"
            )
        language = best.get("language")
        if not language:
            raise ProviderError("Detection result has no language code")
        return normalize_language_code(language)

    async def supported_languages(self, display_language: str = "en") -> dict[str, str]:
        """Map of language code → display name supported by the API."""
        data = await self._v2("GET", "/languages", query={"target": display_language})
        return {
            lang["language"]: lang.get("name", lang["language"])
            for lang in data.get("languages", [])
            if "language" in lang
        }
