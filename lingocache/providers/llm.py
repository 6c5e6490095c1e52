"""
LLM-powered translation provider using DSPy.

Supports any model DSPy/LiteLLM can reach (Gemini, OpenAI, Anthropic).
DSPy predictors are synchronous, so each call runs in a worker thread.
"""

from __future__ import annotations

import asyncio
from typing import Any

import dspy

from lingocache.core.errors import ConfigurationMissing, ProviderError
from lingocache.i18n.languages import get_language_name, normalize_language_code
from lingocache.providers.base import TranslationProvider


# =============================================================================
# DSPy Signatures for Translation
# =============================================================================


class TranslateBatch(dspy.Signature):
    """Translate web page fragments, preserving HTML markup, meaning and tone."""

    texts: list[str] = dspy.InputField(desc="HTML or plain-text fragments to translate")
    source_language: str = dspy.InputField(desc="Source language name")
    target_language: str = dspy.InputField(desc="Target language name")

    translated_texts: list[str] = dspy.OutputField(desc="Translated fragments in the same order")


class DetectLanguage(dspy.Signature):
    """Detect the language of text."""

    text: str = dspy.InputField(desc="Text to analyze")

    language_code: str = dspy.OutputField(desc="ISO 639-1 language code (e.g., 'en', 'es', 'fr')")
    confidence: float = dspy.OutputField(desc="Confidence score 0-1")


# =============================================================================
# Provider
# =============================================================================


class LLMTranslationProvider(TranslationProvider):
    """
    Translation through a language model.

    Usage:
        provider = LLMTranslationProvider(provider="gemini", model="gemini-2.0-flash", api_key="...")
        texts_de = await provider.translate_batch(["Hello", "Goodbye"], "en", "de")
    """

    provider_id = "llm"
    max_batch_size = 20

    def __init__(
        self,
        provider: str = "gemini",
        model: str = "gemini-2.0-flash",
        api_key: str = "",
        min_detect_confidence: float = 0.5,
        lm: Any = None,
    ):
        if lm is None and not api_key:
            raise ConfigurationMissing(["llm_api_key"])
        self.provider = provider
        self.model = model
        self._api_key = api_key
        self.min_detect_confidence = min_detect_confidence
        self._lm = lm

        # DSPy modules (lazy initialized)
        self._batch_module: dspy.Predict | None = None
        self._detect_module: dspy.Predict | None = None

    @property
    def lm(self) -> Any:
        """Lazy-load the language model."""
        if self._lm is None:
            self._lm = dspy.LM(model=f"{self.provider}/{self.model}", api_key=self._api_key)
        return self._lm

    @property
    def batch_module(self) -> dspy.Predict:
        if self._batch_module is None:
            self._batch_module = dspy.Predict(TranslateBatch)
        return self._batch_module

    @property
    def detect_module(self) -> dspy.Predict:
        if self._detect_module is None:
            self._detect_module = dspy.Predict(DetectLanguage)
        return self._detect_module

    async def _predict(self, module: dspy.Predict, **kwargs: Any) -> Any:
        def run():
            with dspy.context(lm=self.lm):
                return module(**kwargs)

        try:
            return await asyncio.to_thread(run)
        except ProviderError:
            raise
        except Exception as e:
            # DSPy/LiteLLM raise a wide range of exception types
            raise ProviderError(f"LLM call failed: {e}") from e

    async def translate_chunk(
        self, texts: list[str], source_lang: str, target_lang: str
    ) -> list[str]:
        result = await self._predict(
            self.batch_module,
            texts=texts,
            source_language=get_language_name(source_lang),
            target_language=get_language_name(target_lang),
        )
        translations = list(result.translated_texts or [])
        if len(translations) != len(texts):
            raise ProviderError(
                f"LLM returned {len(translations)} translations for {len(texts)} texts"
            )
        return [t.strip() for t in translations]

    async def detect_language(self, text: str) -> str:
        result = await self._predict(self.detect_module, text=text[:500])
        try:
            confidence = float(result.confidence)
        except (TypeError, ValueError):
            confidence = 0.0
        if confidence < self.min_detect_confidence or not result.language_code:
            raise ProviderError(f"Detection confidence too low ({confidence:.2f})")
        return normalize_language_code(result.language_code)
