"""Bounded reads of multipart uploads."""

from __future__ import annotations

from fastapi import UploadFile

READ_CHUNK_SIZE = 1024 * 1024


class UploadTooLargeError(ValueError):
    """Raised when an upload exceeds the configured byte limit."""

    def __init__(self, max_bytes: int) -> None:
        super().__init__(f"File exceeds maximum size of {max_bytes} bytes")
        self.max_bytes = max_bytes


async def read_upload_file(upload: UploadFile, max_bytes: int) -> bytes:
    """Read an upload into memory, refusing anything larger than ``max_bytes``."""
    if max_bytes <= 0:
        raise ValueError("max_bytes must be positive")

    buffer = bytearray()
    while True:
        chunk = await upload.read(READ_CHUNK_SIZE)
        if not chunk:
            break
        buffer.extend(chunk)
        if len(buffer) > max_bytes:
            raise UploadTooLargeError(max_bytes)
    if not buffer:
        raise ValueError("Uploaded file is empty")
    return bytes(buffer)
