"""Portfolio business logic.

Every mutation follows the same order: validate the input, parse ids, load a
snapshot of the aggregate (not found), check ownership (unauthorized), check
subdomain uniqueness where relevant, then issue exactly one targeted store
call. A store call that affects nothing is reported as the matching not-found
error even when the snapshot still showed the target.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, TypeVar
from uuid import UUID

from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from core import settings
from models import Media, Portfolio, Project, Section

from .errors import (
    InputValidationError,
    MediaNotFoundError,
    PortfolioNotFoundError,
    ProjectNotFoundError,
    SectionNotFoundError,
    SubdomainTakenError,
)
from .media_types import build_media_url, sanitize_filename, validate_media_type
from .ownership import require_owner
from .schemas import (
    MediaCreate,
    MediaView,
    PortfolioCreate,
    PortfolioUpdate,
    PortfolioView,
    ProjectCreate,
    ProjectUpdate,
    ProjectView,
    SectionCreate,
    SectionUpdate,
    SectionView,
)
from .store import PortfolioStore
from .subdomains import is_subdomain_taken, normalize_subdomain

logger = logging.getLogger(__name__)

InputT = TypeVar("InputT", bound=BaseModel)


def _describe_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ()))
        message = item.get("msg", "invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts) or "Invalid input"


def coerce_input(model: type[InputT], data: InputT | Mapping[str, Any]) -> InputT:
    """Return ``data`` as ``model``, raising InputValidationError when malformed."""
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise InputValidationError(_describe_validation_error(exc)) from exc


def parse_id(value: str, *, label: str) -> str:
    """Parse an opaque id into its canonical stored form."""
    try:
        return str(UUID(str(value)))
    except ValueError as exc:
        raise InputValidationError(f"Invalid {label} ID") from exc


class PortfolioService:
    """Orchestrates ownership, uniqueness and targeted store operations."""

    def __init__(
        self,
        session: AsyncSession,
        *,
        store: PortfolioStore | None = None,
        media_url_prefix: str | None = None,
    ) -> None:
        self.store = store or PortfolioStore(session)
        self.media_url_prefix = media_url_prefix or settings.media_url_prefix

    async def _load_owned(self, portfolio_id: str, requester_id: str) -> PortfolioView:
        snapshot = await self.store.load_aggregate(portfolio_id)
        if snapshot is None:
            raise PortfolioNotFoundError()
        require_owner(snapshot.owner_id, requester_id)
        return snapshot

    async def _reload(self, portfolio_id: str) -> PortfolioView:
        view = await self.store.load_aggregate(portfolio_id)
        if view is None:
            raise PortfolioNotFoundError()
        return view

    def _lost_race(self, action: str, **context: str) -> None:
        logger.warning(
            "Targeted portfolio update matched nothing after snapshot check",
            extra={"action": action, **context},
        )

    # Portfolio

    async def create_portfolio(
        self,
        owner_id: str,
        data: PortfolioCreate | Mapping[str, Any],
    ) -> PortfolioView:
        payload = coerce_input(PortfolioCreate, data)
        subdomain = normalize_subdomain(payload.subdomain)

        if await is_subdomain_taken(self.store, subdomain):
            raise SubdomainTakenError()

        portfolio = Portfolio(
            owner_id=owner_id,
            title=payload.title,
            description=payload.description,
            theme=payload.theme,
            layout=payload.layout,
            type=payload.type,
            subdomain=subdomain,
            is_published=False,
        )
        view = PortfolioView.from_rows(portfolio, projects=[], sections=[], media=[])
        await self.store.insert_portfolio(portfolio)
        logger.info(
            "Created portfolio",
            extra={"portfolio_id": view.id, "owner_id": owner_id, "subdomain": subdomain},
        )
        return view

    async def get_portfolio(self, portfolio_id: str) -> PortfolioView:
        return await self._reload(parse_id(portfolio_id, label="portfolio"))

    async def get_portfolio_by_subdomain(self, subdomain: str) -> PortfolioView:
        view = await self.store.load_aggregate_by_subdomain(subdomain.strip().lower())
        if view is None:
            raise PortfolioNotFoundError()
        return view

    async def list_owner_portfolios(self, owner_id: str) -> list[PortfolioView]:
        return await self.store.list_aggregates_by_owner(owner_id)

    async def update_portfolio(
        self,
        portfolio_id: str,
        requester_id: str,
        data: PortfolioUpdate | Mapping[str, Any],
    ) -> PortfolioView:
        payload = coerce_input(PortfolioUpdate, data)
        values = payload.present_fields()
        if "subdomain" in values:
            values["subdomain"] = normalize_subdomain(values["subdomain"])
        portfolio_id = parse_id(portfolio_id, label="portfolio")

        snapshot = await self._load_owned(portfolio_id, requester_id)
        new_subdomain = values.get("subdomain")
        if new_subdomain is not None and new_subdomain != snapshot.subdomain:
            if await is_subdomain_taken(
                self.store,
                new_subdomain,
                excluding_portfolio_id=snapshot.id,
            ):
                raise SubdomainTakenError()

        if await self.store.update_portfolio_fields(portfolio_id, values) == 0:
            self._lost_race("update_portfolio", portfolio_id=portfolio_id)
            raise PortfolioNotFoundError()
        return await self._reload(portfolio_id)

    async def delete_portfolio(self, portfolio_id: str, requester_id: str) -> PortfolioView:
        """Delete the aggregate and return the snapshot that was removed."""
        portfolio_id = parse_id(portfolio_id, label="portfolio")
        snapshot = await self._load_owned(portfolio_id, requester_id)

        if await self.store.delete_portfolio(portfolio_id) == 0:
            self._lost_race("delete_portfolio", portfolio_id=portfolio_id)
            raise PortfolioNotFoundError()
        logger.info(
            "Deleted portfolio",
            extra={"portfolio_id": portfolio_id, "owner_id": requester_id},
        )
        return snapshot

    # Projects

    async def add_project(
        self,
        portfolio_id: str,
        requester_id: str,
        data: ProjectCreate | Mapping[str, Any],
    ) -> ProjectView:
        payload = coerce_input(ProjectCreate, data)
        portfolio_id = parse_id(portfolio_id, label="portfolio")
        await self._load_owned(portfolio_id, requester_id)

        project = Project(portfolio_id=portfolio_id, **payload.model_dump())
        project_id = project.id
        if await self.store.append_project(portfolio_id, project) == 0:
            self._lost_race("add_project", portfolio_id=portfolio_id)
            raise PortfolioNotFoundError()

        added = (await self._reload(portfolio_id)).find_project(project_id)
        if added is None:
            raise ProjectNotFoundError()
        return added

    async def update_project(
        self,
        portfolio_id: str,
        project_id: str,
        requester_id: str,
        data: ProjectUpdate | Mapping[str, Any],
    ) -> ProjectView:
        payload = coerce_input(ProjectUpdate, data)
        portfolio_id = parse_id(portfolio_id, label="portfolio")
        project_id = parse_id(project_id, label="project")

        snapshot = await self._load_owned(portfolio_id, requester_id)
        if snapshot.find_project(project_id) is None:
            raise ProjectNotFoundError()

        affected = await self.store.update_project_fields(
            portfolio_id,
            project_id,
            payload.present_fields(),
        )
        if affected == 0:
            self._lost_race("update_project", portfolio_id=portfolio_id, project_id=project_id)
            raise ProjectNotFoundError()

        updated = (await self._reload(portfolio_id)).find_project(project_id)
        if updated is None:
            raise ProjectNotFoundError()
        return updated

    async def delete_project(
        self,
        portfolio_id: str,
        project_id: str,
        requester_id: str,
    ) -> ProjectView:
        """Remove a project with its media; return the removed project as last seen."""
        portfolio_id = parse_id(portfolio_id, label="portfolio")
        project_id = parse_id(project_id, label="project")

        snapshot = await self._load_owned(portfolio_id, requester_id)
        project = snapshot.find_project(project_id)
        if project is None:
            raise ProjectNotFoundError()

        if await self.store.remove_project(portfolio_id, project_id) == 0:
            self._lost_race("delete_project", portfolio_id=portfolio_id, project_id=project_id)
            raise ProjectNotFoundError()
        return project

    # Sections

    async def add_section(
        self,
        portfolio_id: str,
        requester_id: str,
        data: SectionCreate | Mapping[str, Any],
    ) -> SectionView:
        payload = coerce_input(SectionCreate, data)
        portfolio_id = parse_id(portfolio_id, label="portfolio")
        await self._load_owned(portfolio_id, requester_id)

        section = Section(portfolio_id=portfolio_id, **payload.model_dump())
        section_id = section.id
        if await self.store.append_section(portfolio_id, section) == 0:
            self._lost_race("add_section", portfolio_id=portfolio_id)
            raise PortfolioNotFoundError()

        added = (await self._reload(portfolio_id)).find_section(section_id)
        if added is None:
            raise SectionNotFoundError()
        return added

    async def update_section(
        self,
        portfolio_id: str,
        section_id: str,
        requester_id: str,
        data: SectionUpdate | Mapping[str, Any],
    ) -> SectionView:
        payload = coerce_input(SectionUpdate, data)
        portfolio_id = parse_id(portfolio_id, label="portfolio")
        section_id = parse_id(section_id, label="section")

        snapshot = await self._load_owned(portfolio_id, requester_id)
        if snapshot.find_section(section_id) is None:
            raise SectionNotFoundError()

        affected = await self.store.update_section_fields(
            portfolio_id,
            section_id,
            payload.present_fields(),
        )
        if affected == 0:
            self._lost_race("update_section", portfolio_id=portfolio_id, section_id=section_id)
            raise SectionNotFoundError()

        updated = (await self._reload(portfolio_id)).find_section(section_id)
        if updated is None:
            raise SectionNotFoundError()
        return updated

    async def delete_section(
        self,
        portfolio_id: str,
        section_id: str,
        requester_id: str,
    ) -> SectionView:
        portfolio_id = parse_id(portfolio_id, label="portfolio")
        section_id = parse_id(section_id, label="section")

        snapshot = await self._load_owned(portfolio_id, requester_id)
        section = snapshot.find_section(section_id)
        if section is None:
            raise SectionNotFoundError()

        if await self.store.remove_section(portfolio_id, section_id) == 0:
            self._lost_race("delete_section", portfolio_id=portfolio_id, section_id=section_id)
            raise SectionNotFoundError()
        return section

    # Media

    async def add_media(
        self,
        portfolio_id: str,
        project_id: str,
        requester_id: str,
        data: MediaCreate | Mapping[str, Any],
        filename: str,
    ) -> MediaView:
        """Attach a media record whose URL is derived from the ids and file name.

        Only the URL is persisted; the caller stores the file bytes under it.
        """
        payload = coerce_input(MediaCreate, data)
        filename = sanitize_filename(filename)
        portfolio_id = parse_id(portfolio_id, label="portfolio")
        project_id = parse_id(project_id, label="project")

        snapshot = await self._load_owned(portfolio_id, requester_id)
        if snapshot.find_project(project_id) is None:
            raise ProjectNotFoundError()
        filename = validate_media_type(payload.type, filename)

        media = Media(
            portfolio_id=portfolio_id,
            project_id=project_id,
            type=payload.type,
            url=build_media_url(self.media_url_prefix, portfolio_id, project_id, filename),
            caption=payload.caption,
            order=payload.order,
        )
        media_id = media.id
        if await self.store.append_media(media) == 0:
            self._lost_race("add_media", portfolio_id=portfolio_id, project_id=project_id)
            raise ProjectNotFoundError()

        project = (await self._reload(portfolio_id)).find_project(project_id)
        if project is None:
            raise ProjectNotFoundError()
        added = project.find_media(media_id)
        if added is None:
            raise MediaNotFoundError()
        return added

    async def delete_media(
        self,
        portfolio_id: str,
        project_id: str,
        media_id: str,
        requester_id: str,
    ) -> MediaView:
        portfolio_id = parse_id(portfolio_id, label="portfolio")
        project_id = parse_id(project_id, label="project")
        media_id = parse_id(media_id, label="media")

        snapshot = await self._load_owned(portfolio_id, requester_id)
        project = snapshot.find_project(project_id)
        if project is None:
            raise ProjectNotFoundError()
        media = project.find_media(media_id)
        if media is None:
            raise MediaNotFoundError()

        if await self.store.remove_media(portfolio_id, project_id, media_id) == 0:
            self._lost_race(
                "delete_media",
                portfolio_id=portfolio_id,
                project_id=project_id,
                media_id=media_id,
            )
            raise MediaNotFoundError()
        return media

    async def get_media_by_url(self, url: str) -> MediaView:
        media = await self.store.find_media_by_url(url)
        if media is None:
            raise MediaNotFoundError()
        return MediaView.from_media(media)

    async def is_media_url_in_use(self, url: str) -> bool:
        return await self.store.find_media_by_url(url) is not None
