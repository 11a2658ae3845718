"""Error mapping shared by the PostgreSQL repositories."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from recon.domain.error import ConstraintViolationError, FetchFailureError

STORE = "application database"


def constraint_name(error: IntegrityError) -> str:
    """Name of the violated constraint as reported by asyncpg."""
    for candidate in (error.orig, getattr(error.orig, "__cause__", None)):
        name = getattr(candidate, "constraint_name", None)
        if name:
            return name
    return "unknown"


def to_domain_error(error: Exception) -> Exception:
    """Map a driver exception to the domain error it stands for."""
    if isinstance(error, IntegrityError):
        return ConstraintViolationError(constraint_name(error), str(error.orig))
    if isinstance(error, (asyncio.TimeoutError, TimeoutError)):
        return FetchFailureError(STORE, "statement timed out")
    return FetchFailureError(STORE, str(error))


class PostgresRepository:
    """Base for repositories bound to one request-scoped session."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    @asynccontextmanager
    async def reading(self) -> AsyncIterator[None]:
        """Map driver failures during reads to FetchFailureError."""
        try:
            yield
        except (DBAPIError, OSError, asyncio.TimeoutError) as e:
            raise to_domain_error(e) from e

    @asynccontextmanager
    async def savepoint(self) -> AsyncIterator[None]:
        """Run writes inside a SAVEPOINT.

        A failure rolls back only this block, so earlier writes of the
        surrounding transaction survive it.
        """
        try:
            async with self.session.begin_nested():
                yield
        except (DBAPIError, OSError, asyncio.TimeoutError) as e:
            raise to_domain_error(e) from e
