"""Database error helpers."""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError


def is_unique_violation(error: IntegrityError, *, column: str | None = None) -> bool:
    """Return True when the IntegrityError indicates a unique-constraint conflict.

    When ``column`` is given, the conflict must also mention that column (or a
    constraint/index named after it), so callers can tell which key collided.
    """
    original = getattr(error, "orig", None)
    sqlstate = getattr(original, "sqlstate", None) or getattr(original, "pgcode", None)
    message = str(original or error).lower()
    is_unique = sqlstate == "23505" or "duplicate key" in message or "unique constraint" in message
    if not is_unique:
        return False
    if column is None:
        return True
    return column.lower() in message


__all__ = ["is_unique_violation"]
