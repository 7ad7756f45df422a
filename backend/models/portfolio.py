"""Portfolio aggregate root model."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text, text
from sqlmodel import Field, SQLModel

from .timestamps import utcnow

MAX_SUBDOMAIN_LENGTH = 63


class PortfolioType(str, Enum):
    ABOUT = "about"
    CV = "cv"
    PORTFOLIO = "portfolio"


class Portfolio(SQLModel, table=True):
    """A published site bound to one owner and one globally unique subdomain."""

    __tablename__ = "portfolios"

    id: str = Field(default_factory=lambda: str(uuid4()), sa_column=Column(String(36), primary_key=True))
    owner_id: str = Field(
        sa_column=Column(
            String(36),
            ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    title: str = Field(sa_column=Column(String(200), nullable=False))
    description: str = Field(sa_column=Column(Text, nullable=False))
    theme: str = Field(sa_column=Column(String(100), nullable=False))
    layout: str = Field(sa_column=Column(String(100), nullable=False))
    type: str = Field(
        default=PortfolioType.PORTFOLIO.value,
        sa_column=Column(
            String(16),
            nullable=False,
            server_default=text(f"'{PortfolioType.PORTFOLIO.value}'"),
        ),
    )
    subdomain: str = Field(
        sa_column=Column(
            String(MAX_SUBDOMAIN_LENGTH),
            nullable=False,
            unique=True,
            index=True,
        )
    )
    custom_domain: str | None = Field(
        default=None, sa_column=Column(String(255), nullable=True)
    )
    is_published: bool = Field(
        default=False,
        sa_column=Column(
            Boolean,
            nullable=False,
            server_default=text("false"),
        ),
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
