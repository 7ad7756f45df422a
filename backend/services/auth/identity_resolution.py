"""Identity normalization and login-user resolution helpers."""

from __future__ import annotations

from typing import Any, cast

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from core import verify_password
from models import User


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def normalize_email(value: str) -> str:
    return value.strip().lower()


async def registration_conflict_exists(
    session: AsyncSession,
    *,
    username: str,
    normalized_email: str,
) -> bool:
    lowered_email_column = cast(Any, func.lower(cast(Any, User.email)))
    existing = await session.execute(
        select(User)
        .where(
            or_(
                _eq(User.username, username),
                _eq(lowered_email_column, normalized_email),
            )
        )
        .limit(1)
    )
    return existing.scalar_one_or_none() is not None


async def resolve_login_user(
    session: AsyncSession,
    *,
    identifier: str,
    password: str,
) -> User | None:
    """Return the user matching a username or email and password, if any."""
    if "@" in identifier:
        lowered_email_column = cast(Any, func.lower(cast(Any, User.email)))
        condition = _eq(lowered_email_column, normalize_email(identifier))
    else:
        condition = _eq(User.username, identifier.strip())

    result = await session.execute(select(User).where(condition).limit(1))
    user = result.scalar_one_or_none()
    if user is None or not verify_password(password, user.password_hash):
        return None
    return user
