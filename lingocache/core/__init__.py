"""
Core types shared by every lingocache component.
"""

from lingocache.core.errors import (
    LingoCacheError,
    StoreUnavailable,
    ProviderError,
    BatchTranslationError,
    InvalidLanguage,
    ConfigurationMissing,
)
from lingocache.core.models import (
    LanguageConfig,
    ResolutionContext,
    CacheMetadata,
    CacheEntry,
    TranslationRequest,
    TranslationRecord,
    ContentChange,
)

__all__ = [
    # Errors
    "LingoCacheError",
    "StoreUnavailable",
    "ProviderError",
    "BatchTranslationError",
    "InvalidLanguage",
    "ConfigurationMissing",
    # Models
    "LanguageConfig",
    "ResolutionContext",
    "CacheMetadata",
    "CacheEntry",
    "TranslationRequest",
    "TranslationRecord",
    "ContentChange",
]
