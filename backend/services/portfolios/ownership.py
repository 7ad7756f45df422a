"""Ownership checks shared by every portfolio mutation."""

from __future__ import annotations

from .errors import UnauthorizedError


def authorize(resource_owner_id: str, requester_id: str) -> bool:
    """Return True when the requester owns the resource."""
    return resource_owner_id == requester_id


def require_owner(resource_owner_id: str, requester_id: str) -> None:
    """Raise UnauthorizedError unless the requester owns the resource.

    Callers must establish that the resource exists first; a missing resource is
    reported as not found regardless of who asks.
    """
    if not authorize(resource_owner_id, requester_id):
        raise UnauthorizedError()
