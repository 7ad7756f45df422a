"""Authentication endpoints."""

from __future__ import annotations

import re
from typing import Any, NoReturn

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user, get_db
from core import create_access_token, hash_password, needs_rehash
from db.errors import is_unique_violation
from models import User
from services.auth import (
    clear_access_cookie,
    normalize_email,
    registration_conflict_exists,
    resolve_login_user,
    set_access_cookie,
)

router = APIRouter(prefix="/auth", tags=["auth"])

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_.]+$")


class RegisterRequest(BaseModel):
    username: str = Field(min_length=3, max_length=30)
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    name: str | None = Field(default=None, max_length=80)

    @field_validator("username")
    @classmethod
    def _validate_username(cls, value: str) -> str:
        normalized = value.strip()
        if not USERNAME_PATTERN.fullmatch(normalized):
            raise ValueError("Username may only contain letters, digits, '_' and '.'")
        return normalized


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    email: EmailStr
    name: str | None = None


class LoginRequest(BaseModel):
    # One field accepts either the username or the email address.
    username: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=8, max_length=128)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


def _raise_registration_conflict(exc: Exception | None = None) -> NoReturn:
    error = HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail="User with that username or email already exists",
    )
    if exc is not None:
        raise error from exc
    raise error


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=UserResponse)
async def register(
    payload: RegisterRequest,
    session: AsyncSession = Depends(get_db),
) -> UserResponse:
    normalized_email = normalize_email(str(payload.email))
    if await registration_conflict_exists(
        session,
        username=payload.username,
        normalized_email=normalized_email,
    ):
        _raise_registration_conflict()

    user = User(
        username=payload.username,
        email=normalized_email,
        password_hash=hash_password(payload.password),
        name=payload.name,
    )
    session.add(user)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        if is_unique_violation(exc):
            _raise_registration_conflict(exc)
        raise
    await session.refresh(user)
    return UserResponse.model_validate(user)


@router.post("/login", response_model=TokenResponse)
async def login(
    payload: LoginRequest,
    response: Response,
    session: AsyncSession = Depends(get_db),
) -> TokenResponse:
    user = await resolve_login_user(
        session,
        identifier=payload.username.strip(),
        password=payload.password,
    )
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )

    if needs_rehash(user.password_hash):
        user.password_hash = hash_password(payload.password)
        await session.commit()

    access_token = create_access_token(user.id)
    set_access_cookie(response, access_token)
    return TokenResponse(access_token=access_token)


@router.post("/logout", status_code=status.HTTP_200_OK)
async def logout(response: Response) -> dict[str, Any]:
    clear_access_cookie(response)
    return {"detail": "Logged out"}


@router.get("/me", response_model=UserResponse)
async def read_current_user(current_user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(current_user)
