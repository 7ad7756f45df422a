"""Media type allow-lists and server-assigned media URLs."""

from __future__ import annotations

import re
from pathlib import PurePosixPath

from models import MediaType

from .errors import InputValidationError, InvalidMediaTypeError

ALLOWED_EXTENSIONS: dict[str, frozenset[str]] = {
    MediaType.IMAGE.value: frozenset({".jpg", ".jpeg", ".png", ".gif", ".webp"}),
    MediaType.VIDEO.value: frozenset({".mp4", ".webm", ".mov"}),
    MediaType.DOCUMENT.value: frozenset({".pdf", ".doc", ".docx", ".txt"}),
}
MAX_FILENAME_LENGTH = 255
# The name becomes the last path segment of a served URL, so it may not
# carry a query, a fragment or percent-escapes.
URL_UNSAFE_FILENAME = re.compile(r"[?#%\x00-\x1f\x7f]")


def sanitize_filename(filename: str) -> str:
    """Drop any directory components a client may have sent with the name."""
    name = PurePosixPath(filename.replace("\\", "/").strip()).name
    if not name or name in {".", ".."}:
        raise InputValidationError("File name must not be empty")
    if URL_UNSAFE_FILENAME.search(name):
        raise InputValidationError(
            "File name must not contain '?', '#', '%' or control characters"
        )
    if len(name) > MAX_FILENAME_LENGTH:
        raise InputValidationError(
            f"File name must be at most {MAX_FILENAME_LENGTH} characters"
        )
    return name


def validate_media_type(media_type: str | None, filename: str) -> str:
    """Check the declared type against the file extension; return the safe name."""
    if not media_type:
        raise InvalidMediaTypeError("Media type is required")
    allowed = ALLOWED_EXTENSIONS.get(media_type)
    if allowed is None:
        raise InvalidMediaTypeError(f"Unknown media type: {media_type}")

    name = sanitize_filename(filename)
    extension = PurePosixPath(name).suffix.lower()
    if extension not in allowed:
        raise InvalidMediaTypeError(
            f"Files with extension '{extension or name}' are not allowed for {media_type}"
        )
    return name


def build_media_url(
    prefix: str,
    portfolio_id: str,
    project_id: str,
    filename: str,
) -> str:
    return f"/{prefix.strip('/')}/{portfolio_id}/{project_id}/{filename}"


def media_object_key(url: str) -> str:
    """Object-storage key for a media URL (the URL path without its leading slash)."""
    return url.lstrip("/")
