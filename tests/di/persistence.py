"""Mock persistence providers for testing."""

from dishka import Scope, provide

from recon.domain.repository import (
    UserProfileRepository,
    UserRepository,
    UserSettingsRepository,
)
from recon.persistence.repository.inmemory import (
    InMemoryDatabase,
    InMemoryUserProfileRepository,
    InMemoryUserRepository,
    InMemoryUserSettingsRepository,
)
from recon.util.di.infrastructure.persistence import PersistenceProvider


class MockPersistenceProvider(PersistenceProvider):
    """Mock persistence provider using in-memory repositories.

    The in-memory database is APP-scoped: every request scope of one
    container sees the same rows, and each test builds its own container.
    """

    __is_mock__ = True

    @provide(scope=Scope.APP)
    def get_database(self) -> InMemoryDatabase:
        """Provide the shared in-memory database."""
        return InMemoryDatabase()

    @provide(scope=Scope.REQUEST)
    def get_user_repository(self, database: InMemoryDatabase) -> UserRepository:
        """Provide in-memory user repository."""
        return InMemoryUserRepository(database)

    @provide(scope=Scope.REQUEST)
    def get_user_settings_repository(
        self, database: InMemoryDatabase
    ) -> UserSettingsRepository:
        """Provide in-memory user settings repository."""
        return InMemoryUserSettingsRepository(database)

    @provide(scope=Scope.REQUEST)
    def get_user_profile_repository(
        self, database: InMemoryDatabase
    ) -> UserProfileRepository:
        """Provide in-memory user profile repository."""
        return InMemoryUserProfileRepository(database)
