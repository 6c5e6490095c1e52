"""
S3-backed translation store.

Objects are written as `translations/{lang}/{key}.html` with the cache
metadata carried in S3 user metadata, so the bucket stays compatible with
edge workers that serve the objects directly.

boto3 is synchronous; every call runs in a worker thread so the event
loop is never blocked on network I/O.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, AsyncIterator
from urllib.parse import quote, unquote

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from lingocache.core.errors import ConfigurationMissing, StoreUnavailable
from lingocache.core.models import CacheEntry, CacheMetadata, object_name
from lingocache.storage.base import TranslationStore, list_prefix, split_object_name

logger = logging.getLogger(__name__)


_MISSING_CODES = {"NoSuchKey", "404", "NotFound"}


class S3TranslationStore(TranslationStore):
    """
    Store translations in an S3 bucket (or any S3-compatible service).

    TTL is a hint: it is written as Cache-Control and as metadata, and
    expiry itself is left to the bucket's lifecycle rules.
    """

    def __init__(
        self,
        bucket: str,
        region: str = "us-east-1",
        aws_access_key_id: str | None = None,
        aws_secret_access_key: str | None = None,
        endpoint_url: str | None = None,
        client: Any = None,
    ):
        if not bucket:
            raise ConfigurationMissing(["aws_s3_bucket"])
        self.bucket = bucket
        self.region = region
        self._access_key = aws_access_key_id or None
        self._secret_key = aws_secret_access_key or None
        self._endpoint_url = endpoint_url or None
        self._client = client

    @property
    def client(self) -> Any:
        """Lazy-load the boto3 S3 client."""
        if self._client is None:
            self._client = boto3.client(
                "s3",
                region_name=self.region,
                aws_access_key_id=self._access_key,
                aws_secret_access_key=self._secret_key,
                endpoint_url=self._endpoint_url,
            )
        return self._client

    async def _call(self, method: str, **kwargs: Any) -> Any:
        try:
            return await asyncio.to_thread(getattr(self.client, method), **kwargs)
        except BotoCoreError as e:
            raise StoreUnavailable(f"S3 {method} failed: {e}") from e

    # =========================================================================
    # Metadata encoding
    # =========================================================================

    @staticmethod
    def _encode_metadata(target_lang: str, metadata: CacheMetadata) -> dict[str, str]:
        # S3 user metadata must be ASCII
        encoded = {
            "lang": target_lang,
            "cached_at": metadata.created_at.isoformat(),
            "ttl": str(metadata.ttl_seconds),
        }
        if metadata.source_lang:
            encoded["source_lang"] = metadata.source_lang
        if metadata.url:
            encoded["url"] = quote(metadata.url, safe="")
        return encoded

    @staticmethod
    def _decode_metadata(response: dict[str, Any]) -> CacheMetadata:
        raw = response.get("Metadata") or {}
        kwargs: dict[str, Any] = {}
        if response.get("ContentType"):
            kwargs["content_type"] = response["ContentType"]
        if raw.get("cached_at"):
            try:
                kwargs["created_at"] = datetime.fromisoformat(raw["cached_at"])
            except ValueError:
                pass
        if raw.get("ttl", "").isdigit():
            kwargs["ttl_seconds"] = int(raw["ttl"])
        if raw.get("source_lang"):
            kwargs["source_lang"] = raw["source_lang"]
        if raw.get("url"):
            kwargs["url"] = unquote(raw["url"])
        return CacheMetadata(**kwargs)

    # =========================================================================
    # TranslationStore
    # =========================================================================

    async def get(self, target_lang: str, key: str) -> CacheEntry | None:
        name = object_name(target_lang, key)
        try:
            response = await self._call("get_object", Bucket=self.bucket, Key=name)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _MISSING_CODES:
                return None
            raise StoreUnavailable(f"S3 get {name} failed: {e}") from e

        try:
            payload = await asyncio.to_thread(response["Body"].read)
        except BotoCoreError as e:
            raise StoreUnavailable(f"S3 read {name} failed: {e}") from e

        try:
            text = payload.decode("utf-8")
        except UnicodeDecodeError as e:
            logger.warning(f"Dropping corrupt cache object s3://{self.bucket}/{name}: {e}")
            await self.delete(target_lang, key)
            return None

        return CacheEntry.build(target_lang, key, text, self._decode_metadata(response))

    async def get_metadata(self, target_lang: str, key: str) -> CacheMetadata | None:
        """Metadata from a HEAD request, without downloading the payload."""
        name = object_name(target_lang, key)
        try:
            response = await self._call("head_object", Bucket=self.bucket, Key=name)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _MISSING_CODES:
                return None
            raise StoreUnavailable(f"S3 head {name} failed: {e}") from e
        return self._decode_metadata(response)

    async def put(
        self,
        target_lang: str,
        key: str,
        payload: str,
        metadata: CacheMetadata | None = None,
    ) -> None:
        metadata = metadata or CacheMetadata()
        name = object_name(target_lang, key)
        try:
            await self._call(
                "put_object",
                Bucket=self.bucket,
                Key=name,
                Body=payload.encode("utf-8"),
                ContentType=metadata.content_type,
                CacheControl=f"public, max-age={metadata.ttl_seconds}",
                Metadata=self._encode_metadata(target_lang, metadata),
            )
        except ClientError as e:
            raise StoreUnavailable(f"S3 put {name} failed: {e}") from e
        logger.debug(f"Stored s3://{self.bucket}/{name}")

    async def delete(self, target_lang: str, key: str) -> bool:
        name = object_name(target_lang, key)
        try:
            await self._call("head_object", Bucket=self.bucket, Key=name)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _MISSING_CODES:
                return False
            raise StoreUnavailable(f"S3 head {name} failed: {e}") from e

        try:
            await self._call("delete_object", Bucket=self.bucket, Key=name)
        except ClientError as e:
            raise StoreUnavailable(f"S3 delete {name} failed: {e}") from e
        return True

    def _list_names(self, prefix: str) -> list[str]:
        names: list[str] = []
        paginator = self.client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
            for obj in page.get("Contents", []):
                names.append(obj["Key"])
        return names

    async def list_keys(
        self, target_lang: str | None = None
    ) -> AsyncIterator[tuple[str, str]]:
        prefix = list_prefix(target_lang)
        try:
            names = await asyncio.to_thread(self._list_names, prefix)
        except (BotoCoreError, ClientError) as e:
            raise StoreUnavailable(f"S3 list {prefix} failed: {e}") from e

        for name in names:
            parsed = split_object_name(name)
            if parsed is not None:
                yield parsed

    async def entry_size(self, target_lang: str, key: str) -> int:
        """Object size from a HEAD request, without downloading the payload."""
        name = object_name(target_lang, key)
        try:
            response = await self._call("head_object", Bucket=self.bucket, Key=name)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _MISSING_CODES:
                return 0
            raise StoreUnavailable(f"S3 head {name} failed: {e}") from e
        return int(response.get("ContentLength", 0))

    def __repr__(self) -> str:
        return f"<S3TranslationStore(bucket={self.bucket})>"
