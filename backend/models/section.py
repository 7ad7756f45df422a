"""Free-form portfolio section model."""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlmodel import Field, SQLModel

from .timestamps import utcnow


class Section(SQLModel, table=True):
    """Section rendered on a portfolio page; ``type`` is only a rendering hint."""

    __tablename__ = "portfolio_sections"
    __table_args__ = (
        Index("ix_portfolio_sections_portfolio_created", "portfolio_id", "created_at"),
    )

    id: str = Field(default_factory=lambda: str(uuid4()), sa_column=Column(String(36), primary_key=True))
    portfolio_id: str = Field(
        sa_column=Column(
            String(36),
            ForeignKey("portfolios.id", ondelete="CASCADE"),
            nullable=False,
        )
    )
    title: str = Field(sa_column=Column(String(200), nullable=False))
    type: str = Field(sa_column=Column(String(50), nullable=False))
    content: str = Field(sa_column=Column(Text, nullable=False))
    order: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, server_default=text("0")),
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
