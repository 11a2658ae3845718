"""Async engine and session factory for the CRM PostgreSQL database."""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from recon.config import Settings


def create_engine(settings: Settings) -> AsyncEngine:
    """Build the asyncpg engine.

    The connect and statement timeouts bound every CRM call so an
    unreachable database surfaces as a fetch failure instead of a hang.
    """
    db = settings.database
    return create_async_engine(
        settings.database_url,
        echo=settings.debug,
        pool_pre_ping=True,
        pool_size=db.pool_size,
        max_overflow=db.max_overflow,
        connect_args={"timeout": db.connect_timeout, "command_timeout": db.command_timeout},
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """One session per request scope; the repair steps flush explicitly."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
