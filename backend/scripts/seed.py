"""Database seed script for local development.

Usage:
    python scripts/seed.py

Creates demo accounts with one portfolio each. Accounts that already exist are
left untouched, so the script can be re-run safely.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, cast

from sqlalchemy import select
from sqlalchemy.sql import ColumnElement

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

from core.security import hash_password  # noqa: E402
from db.session import AsyncSessionMaker  # noqa: E402
from models import User  # noqa: E402
from services.portfolios import PortfolioService, SubdomainTakenError  # noqa: E402

logger = logging.getLogger("seed")

DEMO_PASSWORD = "password123"


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


@dataclass(frozen=True)
class SeedProject:
    title: str
    description: str
    content: str
    tags: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SeedPortfolio:
    username: str
    email: str
    name: str
    subdomain: str
    title: str
    description: str
    theme: str = "light"
    layout: str = "grid"
    about: str = ""
    projects: Sequence[SeedProject] = ()


SEED_PORTFOLIOS: Sequence[SeedPortfolio] = [
    SeedPortfolio(
        username="demo_alice",
        email="alice@example.com",
        name="Alice Demo",
        subdomain="alice",
        title="Alice Builds Bridges",
        description="Structural engineering portfolio",
        about="Engineer focused on long-span pedestrian bridges.",
        projects=(
            SeedProject(
                title="Bridge Design",
                description="A 120 m cable-stayed footbridge",
                content="Concept, analysis and detailing of the main span.",
                tags=["bridges", "steel"],
            ),
            SeedProject(
                title="Tower Retrofit",
                description="Seismic retrofit of a 1970s office tower",
                content="Base isolation study and construction staging.",
                tags=["retrofit"],
            ),
        ),
    ),
    SeedPortfolio(
        username="demo_bruno",
        email="bruno@example.com",
        name="Bruno Demo",
        subdomain="bruno",
        title="Bruno Shoots Film",
        description="Photography and short documentaries",
        theme="dark",
        layout="masonry",
        about="Documentary photographer based in Lisbon.",
        projects=(
            SeedProject(
                title="Harbour Mornings",
                description="Series shot at dawn over one winter",
                content="Medium format, available light only.",
                tags=["photography"],
            ),
        ),
    ),
]


async def _get_or_create_user(session, seed: SeedPortfolio) -> tuple[User, bool]:
    result = await session.execute(select(User).where(_eq(User.username, seed.username)))
    user = result.scalar_one_or_none()
    if user is not None:
        return user, False

    user = User(
        username=seed.username,
        email=seed.email,
        password_hash=hash_password(DEMO_PASSWORD),
        name=seed.name,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user, True


async def seed() -> None:
    async with AsyncSessionMaker() as session:
        service = PortfolioService(session)
        for seed_portfolio in SEED_PORTFOLIOS:
            user, created = await _get_or_create_user(session, seed_portfolio)
            if not created:
                logger.info("Skipping existing user %s", seed_portfolio.username)
                continue

            try:
                portfolio = await service.create_portfolio(
                    user.id,
                    {
                        "title": seed_portfolio.title,
                        "description": seed_portfolio.description,
                        "theme": seed_portfolio.theme,
                        "layout": seed_portfolio.layout,
                        "subdomain": seed_portfolio.subdomain,
                    },
                )
            except SubdomainTakenError:
                logger.warning("Subdomain %s already taken", seed_portfolio.subdomain)
                continue

            if seed_portfolio.about:
                await service.add_section(
                    portfolio.id,
                    user.id,
                    {"title": "About", "type": "text", "content": seed_portfolio.about},
                )
            for order, project in enumerate(seed_portfolio.projects):
                await service.add_project(
                    portfolio.id,
                    user.id,
                    {
                        "title": project.title,
                        "description": project.description,
                        "content": project.content,
                        "tags": list(project.tags),
                        "order": order,
                    },
                )
            await service.update_portfolio(portfolio.id, user.id, {"is_published": True})
            logger.info(
                "Seeded portfolio %s for %s",
                seed_portfolio.subdomain,
                seed_portfolio.username,
            )


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    asyncio.run(seed())


if __name__ == "__main__":
    main()
