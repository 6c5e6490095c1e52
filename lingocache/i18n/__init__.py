"""
Language resolution and cached translation.

Design:
1. Resolve one target language per request from cookie, query, edge
   header, subdomain, geolocation, browser and default, in that order
2. Key the cache by text hash (strings) or URL + content hash (pages)
3. Serve from cache, else translate and store
4. Degrade to the original text on any transient failure

Usage:
    from lingocache.i18n import TranslationOrchestrator, ResolutionContext

    orchestrator = TranslationOrchestrator(store, provider, config)
    html = await orchestrator.translate_page(url, content, ResolutionContext(cookie="fr"))
"""

from lingocache.core.models import ResolutionContext
from lingocache.i18n.translator import (
    TranslationOrchestrator,
    OrchestrationResult,
    Outcome,
    create_orchestrator,
)
from lingocache.i18n.resolver import (
    LanguageResolver,
    Resolution,
    parse_accept_language,
    resolve_language,
)
from lingocache.i18n.keys import (
    CacheKeyDeriver,
    content_hash,
    normalize_url,
)
from lingocache.i18n.invalidator import CacheInvalidator
from lingocache.i18n.stats import CacheStats, collect_cache_stats
from lingocache.i18n.warmup import Page, load_pages, warm_page_cache
from lingocache.i18n.languages import (
    COUNTRY_LANGUAGES,
    get_language_name,
    get_native_name,
    is_rtl,
)

__all__ = [
    # Orchestration
    "TranslationOrchestrator",
    "OrchestrationResult",
    "Outcome",
    "create_orchestrator",
    # Resolution
    "ResolutionContext",
    "LanguageResolver",
    "Resolution",
    "parse_accept_language",
    "resolve_language",
    # Keys
    "CacheKeyDeriver",
    "content_hash",
    "normalize_url",
    # Invalidation and maintenance
    "CacheInvalidator",
    "CacheStats",
    "collect_cache_stats",
    "Page",
    "load_pages",
    "warm_page_cache",
    # Language utilities
    "COUNTRY_LANGUAGES",
    "get_language_name",
    "get_native_name",
    "is_rtl",
]
