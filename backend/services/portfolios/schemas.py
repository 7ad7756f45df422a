"""Input shapes and read views for the portfolio aggregate."""

from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from models import Media, Portfolio, Project, Section
from models.timestamps import ensure_aware

PortfolioTypeValue = Literal["about", "cv", "portfolio"]
MediaTypeValue = Literal["image", "video", "document"]

MAX_TITLE_LENGTH = 200
MAX_TAGS = 50
MAX_TAG_LENGTH = 50


def _dedupe_tags(tags: list[str]) -> list[str]:
    seen: dict[str, None] = {}
    for tag in tags:
        normalized = tag.strip()
        if normalized:
            seen.setdefault(normalized, None)
    return list(seen)


class _PartialUpdate(BaseModel):
    """Base for update inputs: a field counts as present when it was sent."""

    model_config = ConfigDict(extra="forbid")

    non_nullable_fields: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="after")
    def _reject_explicit_nulls(self) -> "_PartialUpdate":
        for name in self.model_fields_set & self.non_nullable_fields:
            if getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def present_fields(self) -> dict[str, Any]:
        return self.model_dump(include=self.model_fields_set)


class PortfolioCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(min_length=1, max_length=MAX_TITLE_LENGTH)
    description: str = Field(min_length=1)
    theme: str = Field(min_length=1, max_length=100)
    layout: str = Field(min_length=1, max_length=100)
    subdomain: str = Field(min_length=3, max_length=63)
    type: PortfolioTypeValue = "portfolio"


class PortfolioUpdate(_PartialUpdate):
    non_nullable_fields: ClassVar[frozenset[str]] = frozenset(
        {"title", "description", "theme", "layout", "subdomain", "is_published", "type"}
    )

    title: str | None = Field(default=None, max_length=MAX_TITLE_LENGTH)
    description: str | None = None
    theme: str | None = Field(default=None, max_length=100)
    layout: str | None = Field(default=None, max_length=100)
    subdomain: str | None = Field(default=None, min_length=3, max_length=63)
    custom_domain: str | None = Field(default=None, max_length=255)
    is_published: bool | None = None
    type: PortfolioTypeValue | None = None


class ProjectCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(min_length=1, max_length=MAX_TITLE_LENGTH)
    description: str = Field(min_length=1)
    content: str = Field(min_length=1)
    tags: list[str] = Field(default_factory=list, max_length=MAX_TAGS)
    order: int = 0

    @field_validator("tags")
    @classmethod
    def _normalize_tags(cls, value: list[str]) -> list[str]:
        if any(len(tag) > MAX_TAG_LENGTH for tag in value):
            raise ValueError(f"Tags must be at most {MAX_TAG_LENGTH} characters")
        return _dedupe_tags(value)


class ProjectUpdate(_PartialUpdate):
    non_nullable_fields: ClassVar[frozenset[str]] = frozenset(
        {"title", "description", "content", "tags", "order"}
    )

    title: str | None = Field(default=None, max_length=MAX_TITLE_LENGTH)
    description: str | None = None
    content: str | None = None
    tags: list[str] | None = Field(default=None, max_length=MAX_TAGS)
    order: int | None = None

    @field_validator("tags")
    @classmethod
    def _normalize_tags(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        if any(len(tag) > MAX_TAG_LENGTH for tag in value):
            raise ValueError(f"Tags must be at most {MAX_TAG_LENGTH} characters")
        return _dedupe_tags(value)


class SectionCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(min_length=1, max_length=MAX_TITLE_LENGTH)
    type: str = Field(min_length=1, max_length=50)
    content: str = Field(min_length=1)
    order: int = 0


class SectionUpdate(_PartialUpdate):
    non_nullable_fields: ClassVar[frozenset[str]] = frozenset(
        {"title", "type", "content", "order"}
    )

    title: str | None = Field(default=None, max_length=MAX_TITLE_LENGTH)
    type: str | None = Field(default=None, max_length=50)
    content: str | None = None
    order: int | None = None


class MediaCreate(BaseModel):
    # ``type`` stays a plain string so unknown values surface as an invalid
    # media type rather than a generic validation failure.
    type: str | None = None
    caption: str = ""
    order: int = 0


class MediaView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    type: str
    url: str
    caption: str
    order: int
    created_at: datetime

    @classmethod
    def from_media(cls, media: Media) -> "MediaView":
        return cls(
            id=media.id,
            type=media.type,
            url=media.url,
            caption=media.caption,
            order=media.order,
            created_at=ensure_aware(media.created_at),
        )


class ProjectView(BaseModel):
    id: str
    title: str
    description: str
    content: str
    tags: list[str]
    order: int
    media: list[MediaView]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_project(cls, project: Project, media: list[Media]) -> "ProjectView":
        return cls(
            id=project.id,
            title=project.title,
            description=project.description,
            content=project.content,
            tags=list(project.tags or []),
            order=project.order,
            media=[MediaView.from_media(item) for item in media],
            created_at=ensure_aware(project.created_at),
            updated_at=ensure_aware(project.updated_at),
        )

    def find_media(self, media_id: str) -> MediaView | None:
        return next((item for item in self.media if item.id == media_id), None)


class SectionView(BaseModel):
    id: str
    title: str
    type: str
    content: str
    order: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_section(cls, section: Section) -> "SectionView":
        return cls(
            id=section.id,
            title=section.title,
            type=section.type,
            content=section.content,
            order=section.order,
            created_at=ensure_aware(section.created_at),
            updated_at=ensure_aware(section.updated_at),
        )


class PortfolioView(BaseModel):
    """The whole aggregate: a portfolio with its projects, media and sections."""

    id: str
    owner_id: str
    title: str
    description: str
    theme: str
    layout: str
    type: str
    subdomain: str
    custom_domain: str | None = None
    is_published: bool
    projects: list[ProjectView]
    sections: list[SectionView]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_rows(
        cls,
        portfolio: Portfolio,
        *,
        projects: list[Project],
        sections: list[Section],
        media: list[Media],
    ) -> "PortfolioView":
        media_by_project: dict[str, list[Media]] = {}
        for item in media:
            media_by_project.setdefault(item.project_id, []).append(item)
        return cls(
            id=portfolio.id,
            owner_id=portfolio.owner_id,
            title=portfolio.title,
            description=portfolio.description,
            theme=portfolio.theme,
            layout=portfolio.layout,
            type=portfolio.type,
            subdomain=portfolio.subdomain,
            custom_domain=portfolio.custom_domain,
            is_published=portfolio.is_published,
            projects=[
                ProjectView.from_project(project, media_by_project.get(project.id, []))
                for project in projects
            ],
            sections=[SectionView.from_section(section) for section in sections],
            created_at=ensure_aware(portfolio.created_at),
            updated_at=ensure_aware(portfolio.updated_at),
        )

    def find_project(self, project_id: str) -> ProjectView | None:
        return next((project for project in self.projects if project.id == project_id), None)

    def find_section(self, section_id: str) -> SectionView | None:
        return next((section for section in self.sections if section.id == section_id), None)
