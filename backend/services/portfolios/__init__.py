"""Portfolio aggregate: ownership, subdomain uniqueness, store and service."""

from .errors import (
    InputValidationError,
    InvalidMediaTypeError,
    MediaNotFoundError,
    NotFoundError,
    PortfolioError,
    PortfolioNotFoundError,
    ProjectNotFoundError,
    SectionNotFoundError,
    StoreFailureError,
    SubdomainTakenError,
    UnauthorizedError,
)
from .media_types import (
    ALLOWED_EXTENSIONS,
    build_media_url,
    media_object_key,
    sanitize_filename,
    validate_media_type,
)
from .ownership import authorize, require_owner
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
from .service import PortfolioService, coerce_input, parse_id
from .store import PortfolioStore
from .subdomains import is_subdomain_taken, normalize_subdomain

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
    "ALLOWED_EXTENSIONS",
    "build_media_url",
    "media_object_key",
    "sanitize_filename",
    "validate_media_type",
    "authorize",
    "require_owner",
    "MediaCreate",
    "MediaView",
    "PortfolioCreate",
    "PortfolioUpdate",
    "PortfolioView",
    "ProjectCreate",
    "ProjectUpdate",
    "ProjectView",
    "SectionCreate",
    "SectionUpdate",
    "SectionView",
    "PortfolioService",
    "PortfolioStore",
    "coerce_input",
    "parse_id",
    "is_subdomain_taken",
    "normalize_subdomain",
]
