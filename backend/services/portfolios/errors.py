"""Domain errors raised by the portfolio service and store."""

from __future__ import annotations


class PortfolioError(Exception):
    """Base class for every portfolio domain error."""

    default_message = "Portfolio operation failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class NotFoundError(PortfolioError):
    default_message = "Resource not found"


class PortfolioNotFoundError(NotFoundError):
    default_message = "Portfolio not found"


class ProjectNotFoundError(NotFoundError):
    default_message = "Project not found"


class SectionNotFoundError(NotFoundError):
    default_message = "Section not found"


class MediaNotFoundError(NotFoundError):
    default_message = "Media not found"


class UnauthorizedError(PortfolioError):
    default_message = "You do not own this portfolio"


class SubdomainTakenError(PortfolioError):
    default_message = "Subdomain already taken"


class InvalidMediaTypeError(PortfolioError):
    default_message = "Invalid media type"


class InputValidationError(PortfolioError):
    default_message = "Invalid input"


class StoreFailureError(PortfolioError):
    default_message = "Portfolio store failure"


__all__ = [
    "PortfolioError",
    "NotFoundError",
    "PortfolioNotFoundError",
    "ProjectNotFoundError",
    "SectionNotFoundError",
    "MediaNotFoundError",
    "UnauthorizedError",
    "SubdomainTakenError",
    "InvalidMediaTypeError",
    "InputValidationError",
    "StoreFailureError",
]
