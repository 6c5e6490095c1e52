"""
Core data models for lingocache.

These models represent the values that flow between the resolver, the
key deriver, the cache store and the orchestrator. None of them carry
behaviour beyond validation and small derived properties.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Mapping

from pydantic import BaseModel, Field, field_validator

from lingocache.core.errors import InvalidLanguage
from lingocache.core.utils import utc_now


# Cookie, query parameter and trusted header names, compatible with
# existing deployments of the edge worker.
COOKIE_NAME = "mct_lang"
QUERY_PARAM = "lang"
EDGE_HEADER = "x-mct-target-lang"

OBJECT_PREFIX = "translations"
OBJECT_SUFFIX = ".html"
DEFAULT_CONTENT_TYPE = "text/html; charset=utf-8"


def object_name(target_lang: str, key: str) -> str:
    """Storage object name for a cache entry: translations/{lang}/{key}.html"""
    return f"{OBJECT_PREFIX}/{target_lang}/{key}{OBJECT_SUFFIX}"


def _clean_code(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    value = value.strip().lower()
    return value or None


# =============================================================================
# Active Language Set
# =============================================================================


class LanguageConfig(BaseModel):
    """
    The active language set and its designated default.

    Passed explicitly into the resolver, key deriver and orchestrator.
    Malformed entries are dropped rather than rejected, so a broken
    configuration still resolves every request to the default language.
    """

    model_config = {"frozen": True}

    active_languages: tuple[str, ...] = ("en",)
    default_language: str = "en"

    @field_validator("active_languages", mode="before")
    @classmethod
    def _normalize_active(cls, value: Any) -> tuple[str, ...]:
        if value is None:
            return ()
        if isinstance(value, str):
            value = value.split(",")
        if not isinstance(value, Iterable):
            return ()

        codes: list[str] = []
        for item in value:
            code = _clean_code(item)
            if code and code not in codes:
                codes.append(code)
        return tuple(codes)

    @field_validator("default_language", mode="before")
    @classmethod
    def _normalize_default(cls, value: Any) -> str:
        return _clean_code(value) or "en"

    @classmethod
    def from_string(cls, active: str, default: str = "en") -> LanguageConfig:
        """Build from a comma-separated list like "en,fr,es,de"."""
        return cls(active_languages=active, default_language=default)

    def is_active(self, code: str | None) -> bool:
        """Check membership in the active set."""
        code = _clean_code(code)
        return code is not None and code in self.active_languages

    def require_active(self, code: str | None) -> str:
        """Return the normalized code, or raise InvalidLanguage."""
        cleaned = _clean_code(code)
        if cleaned is None or cleaned not in self.active_languages:
            raise InvalidLanguage(str(code))
        return cleaned

    @property
    def translatable_languages(self) -> list[str]:
        """Active languages other than the default (source) language."""
        return [c for c in self.active_languages if c != self.default_language]


# =============================================================================
# Resolution Context
# =============================================================================


class ResolutionContext(BaseModel):
    """
    Per-request language signals.

    Built fresh for every request and never persisted. The edge header is
    only honoured when `trusted_edge` is set by the caller that knows the
    request came through the edge layer.
    """

    cookie: str | None = None
    query: str | None = None
    edge_header: str | None = None
    trusted_edge: bool = False
    host: str | None = None
    country: str | None = None
    accept_language: str | None = None

    @classmethod
    def from_request(
        cls,
        headers: Mapping[str, str] | None = None,
        query_params: Mapping[str, str] | None = None,
        cookies: Mapping[str, str] | None = None,
        country: str | None = None,
        trusted_edge: bool = False,
    ) -> ResolutionContext:
        """
        Collect signals from raw request parts.

        Header lookup is case-insensitive.
        """
        lowered = {k.lower(): v for k, v in (headers or {}).items()}
        query_params = query_params or {}
        cookies = cookies or {}

        return cls(
            cookie=cookies.get(COOKIE_NAME),
            query=query_params.get(QUERY_PARAM),
            edge_header=lowered.get(EDGE_HEADER),
            trusted_edge=trusted_edge,
            host=lowered.get("host"),
            country=country,
            accept_language=lowered.get("accept-language"),
        )

    @property
    def subdomain(self) -> str | None:
        """First host label, when the host has at least three labels."""
        if not self.host:
            return None
        hostname = self.host.strip().lower().split(":", 1)[0]
        parts = hostname.split(".")
        if len(parts) < 3:
            return None
        return parts[0] or None


# =============================================================================
# Cache Entries
# =============================================================================


class CacheMetadata(BaseModel):
    """Metadata stored alongside a cached translation."""

    content_type: str = DEFAULT_CONTENT_TYPE
    created_at: datetime = Field(default_factory=utc_now)
    ttl_seconds: int = 3600
    source_lang: str | None = None
    url: str | None = None


class CacheEntry(BaseModel):
    """A translated payload as held by a TranslationStore."""

    key: str
    target_lang: str
    payload: str
    content_type: str = DEFAULT_CONTENT_TYPE
    created_at: datetime = Field(default_factory=utc_now)
    ttl_seconds: int = 3600
    source_lang: str | None = None
    url: str | None = None

    @classmethod
    def build(
        cls,
        target_lang: str,
        key: str,
        payload: str,
        metadata: CacheMetadata | None = None,
    ) -> CacheEntry:
        metadata = metadata or CacheMetadata()
        return cls(
            key=key,
            target_lang=target_lang,
            payload=payload,
            **metadata.model_dump(),
        )

    @property
    def object_name(self) -> str:
        return object_name(self.target_lang, self.key)

    @property
    def size(self) -> int:
        """Payload size in bytes (UTF-8)."""
        return len(self.payload.encode("utf-8"))


# =============================================================================
# Requests, Audit Records and Content Events
# =============================================================================


class TranslationRequest(BaseModel):
    """A single piece of source text bound for a target language."""

    source_text: str
    source_lang: str
    target_lang: str

    @property
    def is_noop(self) -> bool:
        """True when the text should be returned unchanged without any I/O."""
        if not self.source_text or not self.source_text.strip():
            return True
        return self.source_lang == self.target_lang


class TranslationRecord(BaseModel):
    """Audit tuple emitted after each orchestration cycle."""

    source_lang: str
    target_lang: str
    char_count: int
    url: str | None = None
    cache_hit: bool = False
    degraded: bool = False      # Provider failed, original served
    created_at: datetime = Field(default_factory=utc_now)


class ContentChange(BaseModel):
    """
    Emitted by the content source whenever a page is edited.

    `previous_content` lets the invalidator delete the exact key the old
    content was cached under.
    """

    url: str
    previous_content: str | None = None
    new_content: str | None = None
    languages: list[str] | None = None
