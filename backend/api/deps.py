"""Shared FastAPI dependencies."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any, cast

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from core import InvalidTokenError, decode_token, settings
from db.session import AsyncSessionMaker
from models import User
from services.auth import ACCESS_COOKIE
from services.portfolios import PortfolioService

bearer_scheme = HTTPBearer(auto_error=False)


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_db() -> AsyncIterator[AsyncSession]:
    async with AsyncSessionMaker() as session:
        yield session


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the requester from a bearer token or the access cookie."""
    token = credentials.credentials if credentials is not None else request.cookies.get(ACCESS_COOKIE)
    if not token:
        raise _credentials_exception()

    try:
        payload = decode_token(token)
    except InvalidTokenError as exc:
        raise _credentials_exception() from exc

    result = await session.execute(select(User).where(_eq(User.id, payload["sub"])))
    user = result.scalar_one_or_none()
    if user is None:
        raise _credentials_exception()
    return user


def get_portfolio_service(session: AsyncSession = Depends(get_db)) -> PortfolioService:
    return PortfolioService(session, media_url_prefix=settings.media_url_prefix)
