"""Business logic services."""

from .storage import (
    InvalidMediaKeyError,
    delete_media_bytes,
    ensure_bucket,
    get_minio_client,
    media_storage_key,
    presign_media_url,
    store_media_bytes,
)
from .uploads import UploadTooLargeError, read_upload_file

__all__ = [
    "get_minio_client",
    "ensure_bucket",
    "media_storage_key",
    "store_media_bytes",
    "delete_media_bytes",
    "presign_media_url",
    "InvalidMediaKeyError",
    "read_upload_file",
    "UploadTooLargeError",
]
