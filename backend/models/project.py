"""Portfolio project and project media models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from uuid import uuid4

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlmodel import Field, SQLModel

from .timestamps import utcnow


class MediaType(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
    DOCUMENT = "document"


class Project(SQLModel, table=True):
    """Project entry owned by exactly one portfolio."""

    __tablename__ = "portfolio_projects"
    __table_args__ = (
        Index("ix_portfolio_projects_portfolio_created", "portfolio_id", "created_at"),
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
    description: str = Field(sa_column=Column(Text, nullable=False))
    content: str = Field(sa_column=Column(Text, nullable=False))
    tags: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )
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


class Media(SQLModel, table=True):
    """Uploaded file reference attached to a project; immutable once created."""

    __tablename__ = "project_media"
    __table_args__ = (
        Index("ix_project_media_project_created", "project_id", "created_at"),
        Index("ix_project_media_portfolio_id", "portfolio_id"),
        Index("ix_project_media_url", "url"),
    )

    id: str = Field(default_factory=lambda: str(uuid4()), sa_column=Column(String(36), primary_key=True))
    portfolio_id: str = Field(
        sa_column=Column(
            String(36),
            ForeignKey("portfolios.id", ondelete="CASCADE"),
            nullable=False,
        )
    )
    project_id: str = Field(
        sa_column=Column(
            String(36),
            ForeignKey("portfolio_projects.id", ondelete="CASCADE"),
            nullable=False,
        )
    )
    type: str = Field(sa_column=Column(String(16), nullable=False))
    url: str = Field(sa_column=Column(String(512), nullable=False))
    caption: str = Field(
        default="",
        sa_column=Column(Text, nullable=False, server_default=text("''")),
    )
    order: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, server_default=text("0")),
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
