"""Persistence of the portfolio aggregate.

The aggregate is stored as one parent row plus child rows per project, section
and media entry. Every mutation addresses the rows it changes by parent id and
child id, so concurrent writers touching different children of the same
portfolio never overwrite each other. Mutations report how many records they
affected; zero means the target no longer matched at write time.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, TypeVar, cast

from sqlalchemy import DateTime, case, delete, literal, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement, Executable

from db.errors import is_unique_violation
from models import Media, Portfolio, Project, Section
from models.timestamps import utcnow

from .errors import StoreFailureError, SubdomainTakenError
from .schemas import PortfolioView

logger = logging.getLogger(__name__)

ChildT = TypeVar("ChildT", Project, Section, Media)


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def _in(column: Any, values: Sequence[str]) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column.in_(values))


def _asc(column: Any) -> Any:
    return cast(Any, column).asc()


def _rowcount(result: Any) -> int:
    return int(cast(Any, result).rowcount or 0)


def _monotonic(column: Any, now: datetime) -> Any:
    """SQL expression that never moves a timestamp backwards."""
    bound_now = literal(now, DateTime(timezone=True))
    return case((column > bound_now, column), else_=bound_now)


class PortfolioStore:
    """Targeted reads and writes over the portfolio tables."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @asynccontextmanager
    async def _transaction(self, action: str) -> AsyncIterator[None]:
        try:
            yield
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            if is_unique_violation(exc, column="subdomain"):
                raise SubdomainTakenError() from exc
            logger.error("Portfolio store integrity failure", extra={"action": action}, exc_info=exc)
            raise StoreFailureError() from exc
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.error("Portfolio store failure", extra={"action": action}, exc_info=exc)
            raise StoreFailureError() from exc

    async def _scalars(self, statement: Any) -> list[Any]:
        try:
            result = await self.session.execute(
                statement.execution_options(populate_existing=True)
            )
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.error("Portfolio store read failure", exc_info=exc)
            raise StoreFailureError() from exc
        return list(result.scalars().all())

    async def _execute(self, statement: Executable) -> int:
        result = await self.session.execute(
            statement.execution_options(synchronize_session=False)
        )
        return _rowcount(result)

    async def _touch_portfolio(self, portfolio_id: str, now: datetime) -> int:
        return await self._execute(
            update(Portfolio)
            .where(_eq(Portfolio.id, portfolio_id))
            .values(updated_at=_monotonic(Portfolio.updated_at, now))
        )

    async def _children(self, model: type[ChildT], portfolio_ids: Sequence[str]) -> list[ChildT]:
        if not portfolio_ids:
            return []
        return await self._scalars(
            select(model)
            .where(_in(model.portfolio_id, portfolio_ids))
            .order_by(_asc(model.created_at), _asc(model.id))
        )

    async def _assemble(self, portfolios: Sequence[Portfolio]) -> list[PortfolioView]:
        portfolio_ids = [portfolio.id for portfolio in portfolios]
        projects = await self._children(Project, portfolio_ids)
        sections = await self._children(Section, portfolio_ids)
        media = await self._children(Media, portfolio_ids)

        views: list[PortfolioView] = []
        for portfolio in portfolios:
            views.append(
                PortfolioView.from_rows(
                    portfolio,
                    projects=[item for item in projects if item.portfolio_id == portfolio.id],
                    sections=[item for item in sections if item.portfolio_id == portfolio.id],
                    media=[item for item in media if item.portfolio_id == portfolio.id],
                )
            )
        return views

    async def _load_one(self, condition: ColumnElement[bool]) -> PortfolioView | None:
        portfolios = await self._scalars(select(Portfolio).where(condition).limit(1))
        if not portfolios:
            return None
        views = await self._assemble(portfolios)
        return views[0]

    # Reads

    async def load_aggregate(self, portfolio_id: str) -> PortfolioView | None:
        return await self._load_one(_eq(Portfolio.id, portfolio_id))

    async def load_aggregate_by_subdomain(self, subdomain: str) -> PortfolioView | None:
        return await self._load_one(_eq(Portfolio.subdomain, subdomain))

    async def list_aggregates_by_owner(self, owner_id: str) -> list[PortfolioView]:
        portfolios = await self._scalars(
            select(Portfolio)
            .where(_eq(Portfolio.owner_id, owner_id))
            .order_by(_asc(Portfolio.created_at), _asc(Portfolio.id))
        )
        return await self._assemble(portfolios)

    async def find_portfolio_id_by_subdomain(self, subdomain: str) -> str | None:
        ids = await self._scalars(
            select(cast(ColumnElement[str], Portfolio.id))
            .where(_eq(Portfolio.subdomain, subdomain))
            .limit(1)
        )
        return ids[0] if ids else None

    async def find_media_by_url(self, url: str) -> Media | None:
        media = await self._scalars(
            select(Media)
            .where(_eq(Media.url, url))
            .order_by(_asc(Media.created_at), _asc(Media.id))
            .limit(1)
        )
        return media[0] if media else None

    # Portfolio writes

    async def insert_portfolio(self, portfolio: Portfolio) -> None:
        async with self._transaction("insert_portfolio"):
            self.session.add(portfolio)

    async def update_portfolio_fields(self, portfolio_id: str, values: dict[str, Any]) -> int:
        now = utcnow()
        async with self._transaction("update_portfolio"):
            affected = await self._execute(
                update(Portfolio)
                .where(_eq(Portfolio.id, portfolio_id))
                .values(**values, updated_at=_monotonic(Portfolio.updated_at, now))
            )
            if affected == 0:
                return 0
        return affected

    async def delete_portfolio(self, portfolio_id: str) -> int:
        async with self._transaction("delete_portfolio"):
            affected = await self._execute(
                delete(Portfolio).where(_eq(Portfolio.id, portfolio_id))
            )
            if affected == 0:
                return 0
            await self._execute(delete(Media).where(_eq(Media.portfolio_id, portfolio_id)))
            await self._execute(delete(Section).where(_eq(Section.portfolio_id, portfolio_id)))
            await self._execute(delete(Project).where(_eq(Project.portfolio_id, portfolio_id)))
        return affected

    # Project writes

    async def append_project(self, portfolio_id: str, project: Project) -> int:
        async with self._transaction("append_project"):
            if await self._touch_portfolio(portfolio_id, project.created_at) == 0:
                return 0
            self.session.add(project)
        return 1

    async def update_project_fields(
        self,
        portfolio_id: str,
        project_id: str,
        values: dict[str, Any],
    ) -> int:
        now = utcnow()
        async with self._transaction("update_project"):
            affected = await self._execute(
                update(Project)
                .where(
                    _eq(Project.portfolio_id, portfolio_id),
                    _eq(Project.id, project_id),
                )
                .values(**values, updated_at=_monotonic(Project.updated_at, now))
            )
            if affected == 0:
                return 0
            await self._touch_portfolio(portfolio_id, now)
        return affected

    async def remove_project(self, portfolio_id: str, project_id: str) -> int:
        now = utcnow()
        async with self._transaction("remove_project"):
            affected = await self._execute(
                delete(Project).where(
                    _eq(Project.portfolio_id, portfolio_id),
                    _eq(Project.id, project_id),
                )
            )
            if affected == 0:
                return 0
            await self._execute(
                delete(Media).where(
                    _eq(Media.portfolio_id, portfolio_id),
                    _eq(Media.project_id, project_id),
                )
            )
            await self._touch_portfolio(portfolio_id, now)
        return affected

    # Section writes

    async def append_section(self, portfolio_id: str, section: Section) -> int:
        async with self._transaction("append_section"):
            if await self._touch_portfolio(portfolio_id, section.created_at) == 0:
                return 0
            self.session.add(section)
        return 1

    async def update_section_fields(
        self,
        portfolio_id: str,
        section_id: str,
        values: dict[str, Any],
    ) -> int:
        now = utcnow()
        async with self._transaction("update_section"):
            affected = await self._execute(
                update(Section)
                .where(
                    _eq(Section.portfolio_id, portfolio_id),
                    _eq(Section.id, section_id),
                )
                .values(**values, updated_at=_monotonic(Section.updated_at, now))
            )
            if affected == 0:
                return 0
            await self._touch_portfolio(portfolio_id, now)
        return affected

    async def remove_section(self, portfolio_id: str, section_id: str) -> int:
        now = utcnow()
        async with self._transaction("remove_section"):
            affected = await self._execute(
                delete(Section).where(
                    _eq(Section.portfolio_id, portfolio_id),
                    _eq(Section.id, section_id),
                )
            )
            if affected == 0:
                return 0
            await self._touch_portfolio(portfolio_id, now)
        return affected

    # Media writes

    async def append_media(self, media: Media) -> int:
        now = media.created_at
        async with self._transaction("append_media"):
            # The project update doubles as the existence check for the parent.
            affected = await self._execute(
                update(Project)
                .where(
                    _eq(Project.portfolio_id, media.portfolio_id),
                    _eq(Project.id, media.project_id),
                )
                .values(updated_at=_monotonic(Project.updated_at, now))
            )
            if affected == 0:
                return 0
            self.session.add(media)
            await self._touch_portfolio(media.portfolio_id, now)
        return affected

    async def remove_media(self, portfolio_id: str, project_id: str, media_id: str) -> int:
        now = utcnow()
        async with self._transaction("remove_media"):
            affected = await self._execute(
                delete(Media).where(
                    _eq(Media.portfolio_id, portfolio_id),
                    _eq(Media.project_id, project_id),
                    _eq(Media.id, media_id),
                )
            )
            if affected == 0:
                return 0
            await self._execute(
                update(Project)
                .where(
                    _eq(Project.portfolio_id, portfolio_id),
                    _eq(Project.id, project_id),
                )
                .values(updated_at=_monotonic(Project.updated_at, now))
            )
            await self._touch_portfolio(portfolio_id, now)
        return affected
