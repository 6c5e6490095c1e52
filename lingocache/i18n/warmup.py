"""
Cache warming for page translations.

Pre-translates pages into the page cache so visitors never hit a cold
cache after a deploy or a bulk content import.

Usage:
    pages = load_pages("pages.yaml")
    stats = await warm_page_cache(orchestrator, pages, languages=["fr", "de"])

    # CLI
    python -m lingocache.main translate-all fr pages.yaml
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, ValidationError

from lingocache.i18n.translator import Outcome, TranslationOrchestrator

logger = logging.getLogger(__name__)


class Page(BaseModel):
    """A page to pre-translate."""

    url: str
    content: str
    source_lang: str | None = None


class WarmupStats(BaseModel):
    languages: int = 0
    pages: int = 0
    translated: int = 0
    cached: int = 0
    skipped: int = 0
    errors: int = 0


# =============================================================================
# Content Loaders
# =============================================================================


def load_pages(path: str | Path) -> list[Page]:
    """
    Load pages from a YAML file.

    Accepts either a list of pages or a mapping with a `pages` key:

        pages:
          - url: https://example.com/about/
            content: "<p>About us</p>"
    """
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if isinstance(data, dict):
        data = data.get("pages", [])
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a list of pages")

    pages: list[Page] = []
    for i, item in enumerate(data):
        try:
            pages.append(Page.model_validate(item))
        except ValidationError as e:
            logger.warning(f"{path}: skipping page #{i}: {e}")
    return pages


# =============================================================================
# Cache Warming
# =============================================================================


async def warm_page_cache(
    orchestrator: TranslationOrchestrator,
    pages: list[Page],
    languages: list[str] | None = None,
    concurrency: int = 4,
) -> WarmupStats:
    """
    Pre-translate pages into the page cache.

    Args:
        orchestrator: Orchestrator whose store should be warmed
        pages: Pages to translate
        languages: Target languages (defaults to every non-default active language)
        concurrency: Pages translated at once per language

    Returns:
        Counts of fresh translations, cache hits, skips and failures
    """
    if languages is None:
        languages = orchestrator.config.translatable_languages

    stats = WarmupStats(languages=len(languages), pages=len(pages))
    slots = asyncio.Semaphore(concurrency)

    async def warm_one(page: Page, lang: str) -> Outcome:
        async with slots:
            result = await orchestrator.translate_page_with_result(
                page.url, page.content, lang, page.source_lang
            )
            return result.outcome

    for lang in languages:
        logger.info(f"Warming {len(pages)} page(s) for '{lang}'")
        outcomes = await asyncio.gather(*(warm_one(page, lang) for page in pages))
        for outcome in outcomes:
            if outcome == Outcome.TRANSLATED:
                stats.translated += 1
            elif outcome == Outcome.CACHE_HIT:
                stats.cached += 1
            elif outcome == Outcome.DEGRADED:
                stats.errors += 1
            else:
                stats.skipped += 1

    logger.info(
        f"Warm-up complete: {stats.translated} translated, {stats.cached} cached, "
        f"{stats.skipped} skipped, {stats.errors} failed"
    )
    return stats
