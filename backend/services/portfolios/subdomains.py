"""Subdomain normalization and the uniqueness pre-check."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from models import MAX_SUBDOMAIN_LENGTH

from .errors import InputValidationError

if TYPE_CHECKING:
    from .store import PortfolioStore

MIN_SUBDOMAIN_LENGTH = 3
SUBDOMAIN_PATTERN = re.compile(r"^[a-z0-9]+$")


def normalize_subdomain(value: str) -> str:
    normalized = value.strip().lower()
    if len(normalized) < MIN_SUBDOMAIN_LENGTH:
        raise InputValidationError(
            f"Subdomain must be at least {MIN_SUBDOMAIN_LENGTH} characters"
        )
    if len(normalized) > MAX_SUBDOMAIN_LENGTH:
        raise InputValidationError(
            f"Subdomain must be at most {MAX_SUBDOMAIN_LENGTH} characters"
        )
    if not SUBDOMAIN_PATTERN.fullmatch(normalized):
        raise InputValidationError("Subdomain may only contain letters and digits")
    return normalized


async def is_subdomain_taken(
    store: PortfolioStore,
    subdomain: str,
    *,
    excluding_portfolio_id: str | None = None,
) -> bool:
    """Return True when another portfolio already uses ``subdomain``.

    This is an advisory check for a clean error message; the unique index on
    ``portfolios.subdomain`` remains the authority at write time.
    """
    holder_id = await store.find_portfolio_id_by_subdomain(subdomain)
    if holder_id is None:
        return False
    return holder_id != excluding_portfolio_id
