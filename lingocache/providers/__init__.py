"""
Translation providers.

- GoogleTranslateProvider → Google Cloud Translation REST API
- LLMTranslationProvider → any DSPy-supported language model
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from lingocache.providers.base import TranslationProvider

if TYPE_CHECKING:
    from lingocache.config import Settings


def create_provider(settings: Settings) -> TranslationProvider:
    """Create the provider selected by `settings.translation_provider`."""
    name = settings.translation_provider

    if name == "google":
        from lingocache.providers.google import GoogleTranslateProvider

        provider = GoogleTranslateProvider(
            api_key=settings.google_api_key,
            timeout=settings.provider_timeout,
            glossary_id=settings.google_glossary_id or None,
            project_id=settings.google_project_id or None,
            location=settings.google_location,
        )
    elif name == "llm":
        from lingocache.providers.llm import LLMTranslationProvider

        provider = LLMTranslationProvider(
            provider=settings.llm_provider,
            model=settings.llm_model,
            api_key=settings.llm_api_key,
        )
    else:
        raise ValueError(f"Unknown translation provider: {name}")

    provider.max_batch_size = min(provider.max_batch_size, settings.provider_batch_size)
    return provider


__all__ = [
    "TranslationProvider",
    "create_provider",
]
