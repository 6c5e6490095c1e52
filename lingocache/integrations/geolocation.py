"""
IP → country lookup via ipinfo.io.

Used to fill ResolutionContext.country when IP-based language redirects
are enabled. Lookups are best-effort: any failure yields None and the
resolver moves on to the browser's Accept-Language.
"""

from __future__ import annotations

import ipaddress
import logging
import time
from collections import OrderedDict
from typing import TYPE_CHECKING, Mapping

import httpx

from lingocache.core.errors import ConfigurationMissing

if TYPE_CHECKING:
    from lingocache.config import Settings

logger = logging.getLogger(__name__)


def client_ip(headers: Mapping[str, str], remote_addr: str | None = None) -> str | None:
    """
    Best guess at the visitor's IP.

    Prefers the edge's CF-Connecting-IP, then the first X-Forwarded-For hop,
    then the socket's remote address.
    """
    lowered = {k.lower(): v for k, v in headers.items()}
    candidates = [
        lowered.get("cf-connecting-ip"),
        (lowered.get("x-forwarded-for") or "").split(",")[0],
        remote_addr,
    ]
    for candidate in candidates:
        if candidate and candidate.strip():
            return candidate.strip()
    return None


def is_public_ip(ip: str | None) -> bool:
    """False for missing, malformed, loopback and private addresses."""
    if not ip:
        return False
    try:
        address = ipaddress.ip_address(ip)
    except ValueError:
        return False
    return address.is_global


class IpInfoGeolocator:
    """
    Country lookup through the ipinfo.io API.

    Successful lookups (including "no country") are memoized in-process
    for `cache_seconds`, keeping at most `max_entries` IPs (least recently
    used are evicted first).
    """

    BASE_URL = "https://ipinfo.io"

    def __init__(
        self,
        token: str,
        timeout: float = 5.0,
        cache_seconds: int = 86400,
        max_entries: int = 10000,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not token:
            raise ConfigurationMissing(["ipinfo_token"])
        self.token = token
        self.timeout = timeout
        self.cache_seconds = cache_seconds
        self._transport = transport
        self.max_entries = max_entries
        self._cache: OrderedDict[str, tuple[str | None, float]] = OrderedDict()

    async def country_for_ip(self, ip: str | None) -> str | None:
        """ISO-3166 alpha-2 country for an IP, or None."""
        if not is_public_ip(ip):
            return None

        cached = self._cache.get(ip)
        if cached is not None:
            if cached[1] > time.monotonic():
                self._cache.move_to_end(ip)
                return cached[0]
            del self._cache[ip]

        try:
            country = await self._lookup(ip)
        except httpx.HTTPError as e:
            logger.warning(f"IP lookup failed for {ip}: {e}")
            return None

        self._remember(ip, country)
        return country

    def _remember(self, ip: str, country: str | None) -> None:
        now = time.monotonic()
        self._cache[ip] = (country, now + self.cache_seconds)
        self._cache.move_to_end(ip)

        expired = [key for key, (_, expires) in self._cache.items() if expires <= now]
        for key in expired:
            del self._cache[key]
        while len(self._cache) > self.max_entries:
            self._cache.popitem(last=False)

    async def _lookup(self, ip: str) -> str | None:
        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self._transport
        ) as client:
            response = await client.get(
                f"{self.BASE_URL}/{ip}",
                params={"token": self.token},
                headers={"User-Agent": "lingocache"},
            )
        response.raise_for_status()

        try:
            data = response.json()
        except ValueError:
            return None
        country = data.get("country") if isinstance(data, dict) else None
        return country.upper() if isinstance(country, str) and country else None


def create_geolocator(settings: Settings) -> IpInfoGeolocator | None:
    """
    Geolocator for IP-based language selection, or None when disabled.

    Raises:
        ConfigurationMissing: If enabled without an ipinfo token
    """
    if not settings.enable_ip_redirect:
        return None
    return IpInfoGeolocator(settings.ipinfo_token)
