"""User repository interface."""

from abc import ABC, abstractmethod
from typing import Optional

from recon.domain.model.user import ApplicationUser
from recon.domain.value import Email, TenantId, UserId, UserRole


class UserRepository(ABC):
    """Repository for application user rows.

    Every method takes the tenant explicitly and must never read or write
    a row belonging to another tenant.

    Implementations raise FetchFailureError when the store cannot answer
    and ConstraintViolationError when a write breaks a constraint.
    """

    @abstractmethod
    async def find_by_id(
        self, tenant_id: TenantId, user_id: UserId
    ) -> Optional[ApplicationUser]:
        """Find a user by ID within a tenant.

        Args:
            tenant_id: Tenant scope
            user_id: The user's identifier

        Returns:
            The user if found, None otherwise
        """
        pass

    @abstractmethod
    async def find_all_by_email(
        self, tenant_id: TenantId, email: Email
    ) -> list[ApplicationUser]:
        """Find every user in the tenant whose email matches case-insensitively.

        More than one result means the tenant holds duplicates.

        Args:
            tenant_id: Tenant scope
            email: Normalized email

        Returns:
            Matching users ordered by created_at (may be empty)
        """
        pass

    @abstractmethod
    async def find_all_by_email_affixes(
        self, tenant_id: TenantId, prefix: str, suffix: str
    ) -> list[ApplicationUser]:
        """Find users whose lowercased email starts with prefix and ends with suffix.

        Used to locate rows parked under a placeholder email.

        Args:
            tenant_id: Tenant scope
            prefix: Literal email prefix (no wildcards)
            suffix: Literal email suffix (no wildcards)

        Returns:
            Matching users ordered by created_at (may be empty)
        """
        pass

    @abstractmethod
    async def list_by_tenant(self, tenant_id: TenantId) -> list[ApplicationUser]:
        """List every user of a tenant ordered by created_at."""
        pass

    @abstractmethod
    async def count_by_tenant(self, tenant_id: TenantId) -> int:
        """Count users of a tenant."""
        pass

    @abstractmethod
    async def insert(self, user: ApplicationUser) -> ApplicationUser:
        """Insert a user row exactly as given.

        Raises:
            ConstraintViolationError: If the id or (tenant, email) is taken
        """
        pass

    @abstractmethod
    async def insert_with_role_assignment(
        self, user: ApplicationUser
    ) -> ApplicationUser:
        """Insert a user, deciding role and activation atomically.

        The user becomes an active super_user only if the tenant has no
        users and the tenant bootstrap claim is won in the same
        transaction; otherwise it is stored as an inactive regular user.
        The role and is_active on the given user are ignored.

        Returns:
            The stored user with its assigned role

        Raises:
            ConstraintViolationError: If the id or (tenant, email) is taken
        """
        pass

    @abstractmethod
    async def update_email(
        self, tenant_id: TenantId, user_id: UserId, email: str
    ) -> ApplicationUser:
        """Change a user's email.

        The value is stored verbatim so placeholder addresses survive.

        Raises:
            NotFoundError: If the user does not exist in the tenant
            ConstraintViolationError: If the email is taken in the tenant
        """
        pass

    @abstractmethod
    async def update_access(
        self, tenant_id: TenantId, user_id: UserId, role: UserRole, is_active: bool
    ) -> ApplicationUser:
        """Change a user's role and activation state.

        Raises:
            NotFoundError: If the user does not exist in the tenant
        """
        pass

    @abstractmethod
    async def delete(self, tenant_id: TenantId, user_id: UserId) -> None:
        """Delete a user row.

        Raises:
            ConstraintViolationError: If dependent rows still reference it
        """
        pass

    @abstractmethod
    async def find_bootstrap_user_id(self, tenant_id: TenantId) -> Optional[UserId]:
        """Return the user holding the tenant bootstrap claim, if any."""
        pass

    @abstractmethod
    async def repoint_bootstrap(
        self, tenant_id: TenantId, old_user_id: UserId, new_user_id: UserId
    ) -> int:
        """Move the tenant bootstrap claim from one user id to another.

        Returns:
            Number of claims moved (0 or 1)
        """
        pass
