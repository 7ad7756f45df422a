"""MinIO-backed storage for project media, addressed by served media URL."""

from __future__ import annotations

import logging
from datetime import timedelta
from functools import lru_cache
from io import BytesIO

from minio import Minio
from minio.error import S3Error

from core import settings
from services.portfolios.media_types import media_object_key

logger = logging.getLogger(__name__)

PRESIGNED_GET_SECONDS = 120
_MISSING_OBJECT_CODES = frozenset({"NoSuchKey", "NoSuchObject", "ResourceNotFound"})
_EXISTING_BUCKET_CODES = frozenset({"BucketAlreadyOwnedByYou", "BucketAlreadyExists"})


class InvalidMediaKeyError(ValueError):
    """Raised when a URL does not map onto a media object key."""


@lru_cache
def get_minio_client() -> Minio:
    """Return a cached MinIO client configured from settings."""
    return Minio(
        settings.minio_endpoint,
        access_key=settings.minio_access_key,
        secret_key=settings.minio_secret_key,
        secure=settings.minio_secure,
    )


def ensure_bucket(client: Minio | None = None) -> None:
    """Create the media bucket unless it already exists. Runs once at startup."""
    client = client or get_minio_client()
    bucket_name = settings.minio_bucket

    if client.bucket_exists(bucket_name):
        return

    try:
        client.make_bucket(bucket_name)
    except S3Error as exc:
        # Another instance created it between the check and the call.
        if exc.code not in _EXISTING_BUCKET_CODES:
            raise
        return
    logger.info("Created media bucket", extra={"bucket": bucket_name})


def media_key_prefix() -> str:
    return f"{settings.media_url_prefix.strip('/')}/"


def media_storage_key(media_url: str) -> str:
    """Bucket key for ``/<prefix>/<portfolio>/<project>/<filename>``.

    Anything outside the media prefix, or with empty or dot segments, is
    refused so a stored URL can never address another part of the bucket.
    """
    key = media_object_key(media_url.strip())
    prefix = media_key_prefix()
    if not key.startswith(prefix):
        raise InvalidMediaKeyError(f"Not a media URL: {media_url!r}")
    segments = key[len(prefix):].split("/")
    if len(segments) != 3 or any(segment in {"", ".", ".."} for segment in segments):
        raise InvalidMediaKeyError(f"Malformed media URL: {media_url!r}")
    return key


def store_media_bytes(
    media_url: str,
    data: bytes,
    *,
    content_type: str = "application/octet-stream",
    client: Minio | None = None,
) -> str:
    """Upload the bytes behind ``media_url``; return the object key written."""
    object_key = media_storage_key(media_url)
    client = client or get_minio_client()
    client.put_object(
        settings.minio_bucket,
        object_key,
        data=BytesIO(data),
        length=len(data),
        content_type=content_type,
    )
    return object_key


def delete_media_bytes(media_url: str, client: Minio | None = None) -> None:
    """Remove the object behind ``media_url``; an already missing object is fine."""
    object_key = media_storage_key(media_url)
    client = client or get_minio_client()
    try:
        client.remove_object(settings.minio_bucket, object_key)
    except S3Error as exc:
        if exc.code not in _MISSING_OBJECT_CODES:
            raise
        logger.debug("Media object already absent", extra={"object_key": object_key})


def presign_media_url(
    media_url: str,
    *,
    expires_seconds: int = PRESIGNED_GET_SECONDS,
    client: Minio | None = None,
) -> str:
    """Return a short-lived pre-signed GET URL for the object behind ``media_url``."""
    if expires_seconds <= 0:
        raise ValueError("expires_seconds must be positive")
    object_key = media_storage_key(media_url)
    client = client or get_minio_client()
    return client.presigned_get_object(
        settings.minio_bucket,
        object_key,
        expires=timedelta(seconds=expires_seconds),
    )
