"""
Local store implementations for development and tests.

These are in-memory or filesystem-based implementations
that work without any external services.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import AsyncIterator

from pydantic import ValidationError

from lingocache.core.errors import StoreUnavailable
from lingocache.core.models import CacheEntry, CacheMetadata, object_name
from lingocache.core.utils import utc_now
from lingocache.storage.base import TranslationStore, list_prefix, split_object_name

logger = logging.getLogger(__name__)


# =============================================================================
# In-Memory Store
# =============================================================================


class InMemoryTranslationStore(TranslationStore):
    """
    In-memory store for development and tests.

    Honours the TTL hint by expiring entries lazily on read.
    """

    def __init__(self, honor_ttl: bool = True):
        self._entries: dict[tuple[str, str], CacheEntry] = {}
        self.honor_ttl = honor_ttl

    def _expired(self, entry: CacheEntry) -> bool:
        if not self.honor_ttl or entry.ttl_seconds <= 0:
            return False
        age = (utc_now() - entry.created_at).total_seconds()
        return age > entry.ttl_seconds

    async def get(self, target_lang: str, key: str) -> CacheEntry | None:
        entry = self._entries.get((target_lang, key))
        if entry is None:
            return None
        if self._expired(entry):
            del self._entries[(target_lang, key)]
            return None
        return entry

    async def put(
        self,
        target_lang: str,
        key: str,
        payload: str,
        metadata: CacheMetadata | None = None,
    ) -> None:
        self._entries[(target_lang, key)] = CacheEntry.build(target_lang, key, payload, metadata)

    async def delete(self, target_lang: str, key: str) -> bool:
        if (target_lang, key) in self._entries:
            del self._entries[(target_lang, key)]
            return True
        return False

    async def list_keys(
        self, target_lang: str | None = None
    ) -> AsyncIterator[tuple[str, str]]:
        # Snapshot so callers may delete while iterating
        for lang, key in list(self._entries):
            if target_lang is None or lang == target_lang:
                yield lang, key

    def __len__(self) -> int:
        return len(self._entries)


# =============================================================================
# Local Filesystem Store
# =============================================================================


class LocalTranslationStore(TranslationStore):
    """
    Store translations on the local filesystem.

    Payloads live at `{base_path}/translations/{lang}/{key}.html` with a
    `{key}.html.meta.json` sidecar holding the metadata.
    """

    def __init__(self, base_path: str = "./data/cache"):
        self.base_path = Path(base_path)
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreUnavailable(f"Cannot create cache directory {base_path}: {e}") from e

    def _payload_path(self, target_lang: str, key: str) -> Path:
        return self.base_path / object_name(target_lang, key)

    @staticmethod
    def _meta_path(payload_path: Path) -> Path:
        return payload_path.with_name(payload_path.name + ".meta.json")

    async def get(self, target_lang: str, key: str) -> CacheEntry | None:
        path = self._payload_path(target_lang, key)
        try:
            payload = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as e:
            logger.warning(f"Dropping corrupt cache object {path}: {e}")
            await self.delete(target_lang, key)
            return None
        except OSError as e:
            raise StoreUnavailable(f"Cannot read {path}: {e}") from e

        return CacheEntry.build(target_lang, key, payload, self._read_metadata(path))

    def _read_metadata(self, path: Path) -> CacheMetadata:
        meta_path = self._meta_path(path)
        try:
            return CacheMetadata.model_validate_json(meta_path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return CacheMetadata()
        except (OSError, UnicodeDecodeError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable metadata {meta_path}: {e}")
            return CacheMetadata()

    async def get_metadata(self, target_lang: str, key: str) -> CacheMetadata | None:
        """Read only the sidecar; the payload file is checked for existence."""
        path = self._payload_path(target_lang, key)
        if not path.is_file():
            return None
        return self._read_metadata(path)

    async def put(
        self,
        target_lang: str,
        key: str,
        payload: str,
        metadata: CacheMetadata | None = None,
    ) -> None:
        metadata = metadata or CacheMetadata()
        path = self._payload_path(target_lang, key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(payload, encoding="utf-8")
            self._meta_path(path).write_text(metadata.model_dump_json(), encoding="utf-8")
        except OSError as e:
            raise StoreUnavailable(f"Cannot write {path}: {e}") from e

    async def delete(self, target_lang: str, key: str) -> bool:
        path = self._payload_path(target_lang, key)
        try:
            if not path.exists():
                return False
            path.unlink()
            self._meta_path(path).unlink(missing_ok=True)
            return True
        except OSError as e:
            raise StoreUnavailable(f"Cannot delete {path}: {e}") from e

    async def list_keys(
        self, target_lang: str | None = None
    ) -> AsyncIterator[tuple[str, str]]:
        search_path = self.base_path / list_prefix(target_lang)
        if not search_path.exists():
            return
        for path in sorted(search_path.rglob("*.html")):
            if not path.is_file():
                continue
            parsed = split_object_name(path.relative_to(self.base_path).as_posix())
            if parsed is not None:
                yield parsed
