"""In-memory user repository for testing."""

from datetime import datetime, timezone
from typing import Optional

from recon.domain.error import ConstraintViolationError, NotFoundError
from recon.domain.model.user import ApplicationUser
from recon.domain.repository.user import UserRepository
from recon.domain.value import Email, TenantId, UserId, UserRole

from .database import InMemoryDatabase


class InMemoryUserRepository(UserRepository):
    """In-memory implementation of UserRepository for testing.

    Raises the same domain errors the PostgreSQL repository maps its
    constraint violations to.
    """

    def __init__(self, database: InMemoryDatabase) -> None:
        self.db = database

    def _tenant_users(self, tenant_id: TenantId) -> list[ApplicationUser]:
        self.db.check_available()
        users = [u for u in self.db.users.values() if u.tenant_id == tenant_id]
        return sorted(users, key=lambda u: (u.created_at, u.id))

    def _check_unique(self, user: ApplicationUser) -> None:
        for other in self.db.users.values():
            if other.id == user.id:
                continue
            if other.tenant_id == user.tenant_id and other.email == user.email:
                raise ConstraintViolationError(
                    "uq_users_tenant_email",
                    f"{user.email} already exists in tenant {user.tenant_id}",
                )

    async def find_by_id(
        self, tenant_id: TenantId, user_id: UserId
    ) -> Optional[ApplicationUser]:
        """Find a user by ID."""
        self.db.check_available()
        user = self.db.users.get(user_id)
        return user if user and user.tenant_id == tenant_id else None

    async def find_all_by_email(
        self, tenant_id: TenantId, email: Email
    ) -> list[ApplicationUser]:
        """Find users by email (emails are stored normalized)."""
        return [u for u in self._tenant_users(tenant_id) if u.email == email]

    async def find_all_by_email_affixes(
        self, tenant_id: TenantId, prefix: str, suffix: str
    ) -> list[ApplicationUser]:
        """Find users whose email starts with prefix and ends with suffix."""
        return [
            u
            for u in self._tenant_users(tenant_id)
            if u.email.root.startswith(prefix) and u.email.root.endswith(suffix)
        ]

    async def list_by_tenant(self, tenant_id: TenantId) -> list[ApplicationUser]:
        """List users of a tenant."""
        return self._tenant_users(tenant_id)

    async def count_by_tenant(self, tenant_id: TenantId) -> int:
        """Count users of a tenant."""
        return len(self._tenant_users(tenant_id))

    async def insert(self, user: ApplicationUser) -> ApplicationUser:
        """Insert a user row."""
        self.db.check_available()
        if user.id in self.db.users:
            raise ConstraintViolationError("users_pkey", f"id {user.id} is taken")
        self._check_unique(user)
        self.db.users[user.id] = user
        return user

    async def insert_with_role_assignment(
        self, user: ApplicationUser
    ) -> ApplicationUser:
        """Insert a user; the first of its tenant becomes an active super_user."""
        first = (
            not self._tenant_users(user.tenant_id)
            and self.db.bootstrap_user_id(user.tenant_id) is None
        )
        if first:
            saved = await self.insert(
                user.model_copy(update={"role": UserRole.SUPER_USER, "is_active": True})
            )
            self.db.claim_bootstrap(user.tenant_id, saved.id)
            return saved
        return await self.insert(
            user.model_copy(update={"role": UserRole.REGULAR, "is_active": False})
        )

    async def update_email(
        self, tenant_id: TenantId, user_id: UserId, email: str
    ) -> ApplicationUser:
        """Change a user's email."""
        user = await self._get(tenant_id, user_id)
        updated = user.model_copy(
            update={"email": Email(email), "updated_at": datetime.now(timezone.utc)}
        )
        self._check_unique(updated)
        self.db.users[user_id] = updated
        return updated

    async def update_access(
        self, tenant_id: TenantId, user_id: UserId, role: UserRole, is_active: bool
    ) -> ApplicationUser:
        """Change a user's role and activation."""
        user = await self._get(tenant_id, user_id)
        updated = user.model_copy(
            update={
                "role": role,
                "is_active": is_active,
                "updated_at": datetime.now(timezone.utc),
            }
        )
        self.db.users[user_id] = updated
        return updated

    async def delete(self, tenant_id: TenantId, user_id: UserId) -> None:
        """Delete a user row unless something still references it."""
        self.db.check_available()
        user = self.db.users.get(user_id)
        if user is None or user.tenant_id != tenant_id:
            return
        referencing = self.db.referencing_tables(user_id)
        if referencing:
            raise ConstraintViolationError(
                f"{referencing[0]}_user_id_fkey",
                f"user {user_id} is still referenced from {', '.join(referencing)}",
            )
        del self.db.users[user_id]

    async def find_bootstrap_user_id(self, tenant_id: TenantId) -> Optional[UserId]:
        """Return the holder of the tenant bootstrap claim."""
        self.db.check_available()
        return self.db.bootstrap_user_id(tenant_id)

    async def repoint_bootstrap(
        self, tenant_id: TenantId, old_user_id: UserId, new_user_id: UserId
    ) -> int:
        """Move the tenant bootstrap claim."""
        self.db.check_available()
        claim = self.db.tenant_bootstraps.get(tenant_id.root)
        if claim is None or claim[0] != old_user_id:
            return 0
        self.db.check_user_exists(new_user_id, "tenant_bootstraps")
        self.db.tenant_bootstraps[tenant_id.root] = (new_user_id, claim[1])
        return 1

    async def _get(self, tenant_id: TenantId, user_id: UserId) -> ApplicationUser:
        user = await self.find_by_id(tenant_id, user_id)
        if user is None:
            raise NotFoundError("User", f"{user_id} in tenant {tenant_id}")
        return user
