"""Core configuration and security helpers."""

from .config import Settings, settings
from .security import (
    InvalidTokenError,
    create_access_token,
    decode_token,
    hash_password,
    needs_rehash,
    verify_password,
)

__all__ = [
    "Settings",
    "settings",
    "InvalidTokenError",
    "create_access_token",
    "decode_token",
    "hash_password",
    "needs_rehash",
    "verify_password",
]
