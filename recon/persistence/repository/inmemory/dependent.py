"""In-memory user dependent repositories for testing."""

from datetime import datetime, timezone
from typing import Generic

from recon.domain.error import ConstraintViolationError
from recon.domain.model import UserProfile, UserSettings
from recon.domain.repository.dependent import (
    RecordT,
    UserDependentRepository,
    UserProfileRepository,
    UserSettingsRepository,
)
from recon.domain.value import TenantId, UserId

from .database import InMemoryDatabase


class InMemoryUserDependentRepository(UserDependentRepository[RecordT], Generic[RecordT]):
    """Rows of one dependent table kept in the shared in-memory database."""

    def __init__(self, database: InMemoryDatabase) -> None:
        self.db = database

    @property
    def rows(self) -> dict[str, RecordT]:
        return getattr(self.db, self.table_name)

    def _check_unique(self, record: RecordT) -> None:
        pass

    async def save(self, record: RecordT) -> RecordT:
        """Insert or update a record."""
        self.db.check_available()
        self.db.check_user_exists(record.user_id, self.table_name)
        self._check_unique(record)
        self.rows[record.id] = record
        return record

    async def find_all_by_user_id(
        self, tenant_id: TenantId, user_id: UserId
    ) -> list[RecordT]:
        """Find records referencing a user."""
        self.db.check_available()
        return [
            r
            for r in self.rows.values()
            if r.tenant_id == tenant_id and r.user_id == user_id
        ]

    async def count_by_user_id(self, tenant_id: TenantId, user_id: UserId) -> int:
        """Count records referencing a user."""
        return len(await self.find_all_by_user_id(tenant_id, user_id))

    async def repoint(
        self, tenant_id: TenantId, old_user_id: UserId, new_user_id: UserId
    ) -> int:
        """Re-point records from one user id to another."""
        moving = await self.find_all_by_user_id(tenant_id, old_user_id)
        if not moving:
            return 0
        self.db.check_user_exists(new_user_id, self.table_name)
        now = datetime.now(timezone.utc)
        for record in moving:
            moved = record.model_copy(update={"user_id": new_user_id, "updated_at": now})
            self._check_unique(moved)
            self.rows[record.id] = moved
        return len(moving)


class InMemoryUserSettingsRepository(
    InMemoryUserDependentRepository[UserSettings], UserSettingsRepository
):
    """In-memory implementation of UserSettingsRepository for testing."""

    pass


class InMemoryUserProfileRepository(
    InMemoryUserDependentRepository[UserProfile], UserProfileRepository
):
    """In-memory implementation of UserProfileRepository for testing."""

    def _check_unique(self, record: UserProfile) -> None:
        for other in self.rows.values():
            if other.id != record.id and other.user_id == record.user_id:
                raise ConstraintViolationError(
                    "uq_user_profiles_user_id",
                    f"user {record.user_id} already has a profile",
                )
