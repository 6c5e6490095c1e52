"""
Error taxonomy for lingocache.

Transient failures (store, provider) are absorbed by the orchestrator and
degrade to serving original content. Configuration problems are persistent
and are surfaced distinctly so an operator can act on them.
"""

from __future__ import annotations


class LingoCacheError(Exception):
    """Base class for all lingocache errors."""
    pass


class StoreUnavailable(LingoCacheError):
    """
    The translation cache backend cannot be reached or is misconfigured.
    
    Never raised for a plain cache miss; callers treat this as
    "proceed without cache".
    """
    pass


class ProviderError(LingoCacheError):
    """Translation or detection API failure (auth, quota, network, bad response)."""
    pass


class BatchTranslationError(ProviderError):
    """A chunk of a batch translation failed; no partial results are returned."""
    
    def __init__(self, message: str, chunk_index: int):
        super().__init__(message)
        self.chunk_index = chunk_index


class InvalidLanguage(LingoCacheError):
    """A language code is not in the active language set."""
    
    def __init__(self, code: str):
        super().__init__(f"Language '{code}' is not active")
        self.code = code


class ConfigurationMissing(LingoCacheError):
    """Required credentials, bucket or project settings are absent."""
    
    def __init__(self, missing: list[str]):
        super().__init__(f"Missing configuration: {', '.join(missing)}")
        self.missing = list(missing)
