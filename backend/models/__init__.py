"""SQLModel models package."""

from .portfolio import MAX_SUBDOMAIN_LENGTH, Portfolio, PortfolioType
from .project import Media, MediaType, Project
from .section import Section
from .user import User

__all__ = [
    "User",
    "Portfolio",
    "PortfolioType",
    "MAX_SUBDOMAIN_LENGTH",
    "Project",
    "Section",
    "Media",
    "MediaType",
]
