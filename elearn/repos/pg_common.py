"""Helpers shared by the PostgreSQL repositories."""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from elearn.core.errors import DomainError, DuplicateError, ValidationError
from elearn.db.engine import Base

logger = logging.getLogger(__name__)

_UNIQUE_VIOLATION = "23505"
_FOREIGN_KEY_VIOLATION = "23503"


def _sqlstate(exc: IntegrityError) -> str | None:
    orig = exc.orig
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def translate_integrity_error(exc: IntegrityError, duplicate_message: str) -> DomainError:
    code = _sqlstate(exc)
    if code == _UNIQUE_VIOLATION:
        return DuplicateError(duplicate_message)
    logger.warning("Integrity error sqlstate=%s: %s", code, exc.orig)
    if code == _FOREIGN_KEY_VIOLATION:
        return ValidationError("referenced record does not exist")
    return ValidationError("record violates a data constraint")


async def insert_row(session: AsyncSession, row: Base, *, duplicate_message: str) -> None:
    """INSERT one row inside its own SAVEPOINT.

    A constraint violation only rolls back that savepoint, so the caller's
    transaction stays usable (e.g. to read the row that won the race).
    """
    try:
        async with session.begin_nested():
            session.add(row)
    except IntegrityError as exc:
        raise translate_integrity_error(exc, duplicate_message) from None
