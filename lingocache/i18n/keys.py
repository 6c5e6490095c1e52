"""
Cache key derivation.

Two schemes, one per use case:

- Text keys, for ad hoc string translation:
      sha256("{source}:{target}:{text}")
- Page keys, for rendered page content:
      sha256("{normalized_url}|{target}|{sha256(content)}")

Page keys fold in a hash of the current source content, so editing a page
produces a new key instead of serving the stale translation. The two
schemes are not interchangeable: the same text cached through one will not
be found through the other.

A provider whose output depends on more than the language pair (a
glossary, for instance) supplies a namespace that is folded into both
schemes, so switching it never serves translations made under another.
"""

from __future__ import annotations

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from lingocache.core.models import LanguageConfig, QUERY_PARAM
from lingocache.core.utils import sha256_hex


SEPARATOR = "|"

# Query parameters that select a language rather than content
LANGUAGE_PARAMS = frozenset({QUERY_PARAM, "set_lang"})


def normalize_url(url: str) -> str:
    """
    Canonical form of a page URL for keying.

    Lowercases scheme and host, drops the fragment and language-selecting
    query parameters, and sorts what remains.

    >>> normalize_url("HTTPS://Example.com/about/?lang=fr&b=2&a=1#top")
    'https://example.com/about/?a=1&b=2'
    """
    parts = urlsplit(url.strip())
    query = sorted(
        (k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True)
        if k not in LANGUAGE_PARAMS
    )
    return urlunsplit((
        parts.scheme.lower(),
        parts.netloc.lower(),
        parts.path or "/",
        urlencode(query),
        "",
    ))


def is_excluded_path(url: str, prefixes: list[str] | tuple[str, ...]) -> bool:
    """
    Whether a URL or request path starts with any excluded prefix.

    >>> is_excluded_path("https://example.com/wp-admin/edit.php", ["/wp-admin"])
    True
    """
    path = urlsplit(url.strip()).path or "/"
    return any(prefix and path.startswith(prefix) for prefix in prefixes)


def content_hash(content: str) -> str:
    """Hex digest of page source content."""
    return sha256_hex(content)


class CacheKeyDeriver:
    """
    Pure, deterministic cache key derivation.

    Language codes are normalized through the injected LanguageConfig's
    rules (trimmed, lowercased) so "FR" and "fr" share a key.
    """

    def __init__(self, config: LanguageConfig | None = None, namespace: str | None = None):
        self.config = config or LanguageConfig()
        self.namespace = namespace or None

    @staticmethod
    def _lang(code: str) -> str:
        return code.strip().lower()

    def derive_key(
        self,
        identity: str,
        target_lang: str,
        content_hash: str | None = None,
        source_lang: str | None = None,
    ) -> str:
        """
        Generic key over (identity, target, [content hash], [source]).

        Args:
            identity: Raw source text or a stable URL
            target_lang: Target language code
            content_hash: Hash of current source content (page keys)
            source_lang: Source language code (text keys)
        """
        parts = [identity, self._lang(target_lang)]
        if content_hash is not None:
            parts.append(content_hash)
        if source_lang is not None:
            parts.append(self._lang(source_lang))
        if self.namespace:
            parts.append(self.namespace)
        return sha256_hex(SEPARATOR.join(parts))

    def text_key(self, text: str, source_lang: str, target_lang: str) -> str:
        """Key for an ad hoc string translation."""
        identity = f"{self._lang(source_lang)}:{self._lang(target_lang)}:{text}"
        if self.namespace:
            identity = f"{self.namespace}:{identity}"
        return sha256_hex(identity)

    def page_key(self, url: str, target_lang: str, content: str) -> str:
        """Key for a page translation, versioned by the page's content."""
        return self.derive_key(
            normalize_url(url),
            target_lang,
            content_hash=content_hash(content),
        )

    def page_keys(
        self,
        url: str,
        content: str,
        languages: list[str] | None = None,
    ) -> dict[str, str]:
        """Page keys for each language (defaults to every active language)."""
        if languages is None:
            languages = list(self.config.active_languages)
        return {self._lang(lang): self.page_key(url, lang, content) for lang in languages}
