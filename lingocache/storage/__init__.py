"""
Translation cache stores.

Integration points:
- InMemoryTranslationStore → tests, single-process development
- LocalTranslationStore → filesystem
- S3TranslationStore → S3 or any S3-compatible object store
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from lingocache.core.errors import ConfigurationMissing
from lingocache.storage.base import TranslationStore, split_object_name
from lingocache.storage.local import InMemoryTranslationStore, LocalTranslationStore

if TYPE_CHECKING:
    from lingocache.config import Settings


def create_store(settings: Settings) -> TranslationStore:
    """Create the TranslationStore selected by `settings.cache_backend`."""
    backend = settings.cache_backend

    if backend == "memory":
        return InMemoryTranslationStore()

    if backend == "local":
        return LocalTranslationStore(settings.local_cache_dir)

    if backend == "s3":
        # boto3 is only imported when S3 is selected
        from lingocache.storage.s3 import S3TranslationStore

        if not settings.aws_s3_bucket:
            raise ConfigurationMissing(["aws_s3_bucket"])
        return S3TranslationStore(
            bucket=settings.aws_s3_bucket,
            region=settings.aws_region,
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            endpoint_url=settings.aws_s3_endpoint_url,
        )

    raise ValueError(f"Unknown cache backend: {backend}")


__all__ = [
    "TranslationStore",
    "InMemoryTranslationStore",
    "LocalTranslationStore",
    "split_object_name",
    "create_store",
]
