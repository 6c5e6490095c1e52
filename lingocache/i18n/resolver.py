"""
Language resolution.

Picks exactly one target language per request from competing signals.
Strategies are evaluated in a fixed order and the first one that yields
an active language wins:

    cookie → query → edge_header → subdomain → geolocation → browser → default

A strategy that finds nothing, or finds a language outside the active
set, yields None and resolution moves on to the next one. The default
strategy always answers, so resolution never fails.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Mapping, NamedTuple

from lingocache.core.errors import InvalidLanguage
from lingocache.core.models import LanguageConfig, ResolutionContext
from lingocache.i18n.languages import (
    COUNTRY_LANGUAGES,
    base_code,
    language_for_country,
)

logger = logging.getLogger(__name__)


class ResolutionStrategy(NamedTuple):
    """A named step in the resolution pipeline."""

    name: str
    resolve: Callable[[ResolutionContext], str | None]


class Resolution(NamedTuple):
    """The chosen language and the strategy that chose it."""

    language: str
    strategy: str


# =============================================================================
# Accept-Language parsing
# =============================================================================


def parse_accept_language(header: str | None) -> list[str]:
    """
    Parse an Accept-Language header into tags ordered by preference.

    Tags with q=0, wildcards and malformed entries are dropped. Equal
    q-values keep their header order.

    >>> parse_accept_language("es-ES,es;q=0.9,en;q=0.5")
    ['es-es', 'es', 'en']
    """
    if not header:
        return []

    weighted: list[tuple[float, int, str]] = []
    for position, part in enumerate(header.split(",")):
        pieces = [p.strip() for p in part.split(";")]
        tag = pieces[0].lower()
        if not tag or tag == "*":
            continue

        quality = 1.0
        for param in pieces[1:]:
            name, _, value = param.partition("=")
            if name.strip().lower() != "q":
                continue
            try:
                quality = float(value)
            except ValueError:
                quality = -1.0

        if quality <= 0 or quality > 1:
            continue
        weighted.append((-quality, position, tag))

    return [tag for _, _, tag in sorted(weighted)]


# =============================================================================
# Resolver
# =============================================================================


class LanguageResolver:
    """
    Resolves the target language for a request.

    Usage:
        resolver = LanguageResolver(LanguageConfig.from_string("en,fr,de"))
        lang = resolver.resolve(ResolutionContext(cookie="fr", query="de"))
        # -> "fr"
    """

    def __init__(
        self,
        config: LanguageConfig,
        country_languages: Mapping[str, str] | None = None,
    ):
        self.config = config
        self.country_languages = (
            COUNTRY_LANGUAGES if country_languages is None else dict(country_languages)
        )
        self.strategies: list[ResolutionStrategy] = [
            ResolutionStrategy("cookie", self._from_cookie),
            ResolutionStrategy("query", self._from_query),
            ResolutionStrategy("edge_header", self._from_edge_header),
            ResolutionStrategy("subdomain", self._from_subdomain),
            ResolutionStrategy("geolocation", self._from_geolocation),
            ResolutionStrategy("browser", self._from_browser),
            ResolutionStrategy("default", self._from_default),
        ]

    @property
    def strategy_names(self) -> list[str]:
        return [s.name for s in self.strategies]

    def resolve(self, context: ResolutionContext) -> str:
        """Return the target language code. Never raises, never returns None."""
        return self.resolve_with_source(context).language

    def resolve_with_source(self, context: ResolutionContext) -> Resolution:
        """Like resolve(), but also report which strategy answered."""
        for strategy in self.strategies:
            try:
                language = strategy.resolve(context)
            except InvalidLanguage as e:
                logger.debug(f"Strategy '{strategy.name}' rejected {e.code!r}")
                continue
            if language:
                return Resolution(language, strategy.name)
        return Resolution(self.config.default_language, "default")

    # =========================================================================
    # Strategies
    # =========================================================================

    def _active(self, code: str | None) -> str | None:
        if not code:
            return None
        return self.config.require_active(code)

    def _from_cookie(self, context: ResolutionContext) -> str | None:
        return self._active(context.cookie)

    def _from_query(self, context: ResolutionContext) -> str | None:
        return self._active(context.query)

    def _from_edge_header(self, context: ResolutionContext) -> str | None:
        if not context.trusted_edge:
            return None
        return self._active(context.edge_header)

    def _from_subdomain(self, context: ResolutionContext) -> str | None:
        return self._active(context.subdomain)

    def _from_geolocation(self, context: ResolutionContext) -> str | None:
        if not context.country or not self.country_languages:
            return None
        language = language_for_country(
            context.country, self.config.default_language, self.country_languages
        )
        return self._active(language)

    def _from_browser(self, context: ResolutionContext) -> str | None:
        for tag in parse_accept_language(context.accept_language):
            code = base_code(tag)
            if code and self.config.is_active(code):
                return code
        return None

    def _from_default(self, context: ResolutionContext) -> str | None:
        return self.config.default_language


def resolve_language(
    context: ResolutionContext,
    active_languages: Iterable[str],
    default_language: str,
) -> str:
    """Resolve with an ad hoc language set (convenience function)."""
    config = LanguageConfig(
        active_languages=active_languages,
        default_language=default_language,
    )
    return LanguageResolver(config).resolve(context)
