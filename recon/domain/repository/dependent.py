"""Repository interfaces for rows that reference users by foreign key."""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from recon.domain.model.dependent import UserProfile, UserSettings
from recon.domain.value import TenantId, UserId

RecordT = TypeVar("RecordT", UserSettings, UserProfile)


class UserDependentRepository(ABC, Generic[RecordT]):
    """Rows keyed to ``users.id``.

    The foreign key restricts deletes, so these rows must be re-pointed
    before the user row they reference can go.
    """

    #: Table name, used in audit output
    table_name: str = ""

    @abstractmethod
    async def save(self, record: RecordT) -> RecordT:
        """Insert or update a record.

        Raises:
            ConstraintViolationError: If the referenced user does not exist
        """
        pass

    @abstractmethod
    async def find_all_by_user_id(
        self, tenant_id: TenantId, user_id: UserId
    ) -> list[RecordT]:
        """Find every record of the tenant that references the user."""
        pass

    @abstractmethod
    async def count_by_user_id(self, tenant_id: TenantId, user_id: UserId) -> int:
        """Count records of the tenant that reference the user."""
        pass

    @abstractmethod
    async def repoint(
        self, tenant_id: TenantId, old_user_id: UserId, new_user_id: UserId
    ) -> int:
        """Re-point records from one user id to another.

        Returns:
            Number of records moved

        Raises:
            ConstraintViolationError: If the new user does not exist
        """
        pass


class UserSettingsRepository(UserDependentRepository[UserSettings]):
    """Repository for ``user_settings``."""

    table_name = "user_settings"


class UserProfileRepository(UserDependentRepository[UserProfile]):
    """Repository for ``user_profiles``."""

    table_name = "user_profiles"
