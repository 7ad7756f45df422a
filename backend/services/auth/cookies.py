"""HTTP cookie helpers for auth token transport."""

from __future__ import annotations

from datetime import timedelta
from typing import Literal

from fastapi import Response

from core import settings

ACCESS_COOKIE = "access_token"
COOKIE_PATH = "/"
COOKIE_SAMESITE: Literal["lax", "strict", "none"] = "lax"
COOKIE_SECURE = (
    settings.app_env.strip().lower() not in {"local", "test"}
    and not settings.allow_insecure_http_cookies
)


def _access_token_ttl() -> timedelta:
    return timedelta(minutes=settings.access_token_expire_minutes)


def set_access_cookie(response: Response, access_token: str) -> None:
    response.set_cookie(
        key=ACCESS_COOKIE,
        value=access_token,
        httponly=True,
        secure=COOKIE_SECURE,
        samesite=COOKIE_SAMESITE,
        max_age=int(_access_token_ttl().total_seconds()),
        path=COOKIE_PATH,
    )


def clear_access_cookie(response: Response) -> None:
    response.delete_cookie(
        key=ACCESS_COOKIE,
        path=COOKIE_PATH,
        secure=COOKIE_SECURE,
        samesite=COOKIE_SAMESITE,
    )
