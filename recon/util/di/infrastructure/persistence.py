"""Persistence infrastructure providers."""

from collections.abc import AsyncIterator

from dishka import Scope, provide
import logfire
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from recon.config import Settings
from recon.domain.repository import (
    UserProfileRepository,
    UserRepository,
    UserSettingsRepository,
)
from recon.persistence.database import create_engine, create_session_factory
from recon.persistence.repository import (
    PostgresUserProfileRepository,
    PostgresUserRepository,
    PostgresUserSettingsRepository,
)
from recon.util.di.base import ProviderBase
from recon.util.observability import instrument_sqlalchemy


class PersistenceProvider(ProviderBase):
    """Persistence component base."""

    __mock_component__ = "persistence"


class ProdPersistenceProvider(PersistenceProvider):
    """Production persistence provider using PostgreSQL."""

    __is_mock__ = False

    scope = Scope.APP

    @provide(scope=Scope.APP)
    async def get_engine(self, settings: Settings) -> AsyncIterator[AsyncEngine]:
        """Provide database engine, disposed when the container closes."""
        engine = create_engine(settings)
        instrument_sqlalchemy(engine)
        yield engine
        await engine.dispose()

    @provide(scope=Scope.APP)
    def get_session_factory(
        self, engine: AsyncEngine
    ) -> async_sessionmaker[AsyncSession]:
        """One factory per container."""
        return create_session_factory(engine)

    @provide(scope=Scope.REQUEST)
    async def get_session(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> AsyncIterator[AsyncSession]:
        """Provide database session for request scope.

        The session is committed when the request scope closes without an
        exception and rolled back otherwise. Repair steps run in SAVEPOINTs
        inside this transaction.
        """
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
                logfire.info("Session committed")
            except Exception as e:
                logfire.warn("Session rollback", error=str(e))
                await session.rollback()
                raise

    @provide(scope=Scope.REQUEST)
    def get_user_repository(self, session: AsyncSession) -> UserRepository:
        """Tenant-scoped users table access."""
        return PostgresUserRepository(session)

    @provide(scope=Scope.REQUEST)
    def get_user_settings_repository(
        self, session: AsyncSession
    ) -> UserSettingsRepository:
        """Provide UserSettings repository."""
        return PostgresUserSettingsRepository(session)

    @provide(scope=Scope.REQUEST)
    def get_user_profile_repository(
        self, session: AsyncSession
    ) -> UserProfileRepository:
        """Provide UserProfile repository."""
        return PostgresUserProfileRepository(session)
