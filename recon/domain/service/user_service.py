"""User domain service."""

from typing import Any, Optional

import logfire

from recon.domain.error import AmbiguousStateError, NotFoundError
from recon.domain.model.user import ApplicationUser
from recon.domain.repository import (
    UserDependentRepository,
    UserProfileRepository,
    UserRepository,
    UserSettingsRepository,
)
from recon.domain.service.placeholder import is_placeholder_for, placeholder_affixes
from recon.domain.value import Email, TenantId, UserId, UserRole

from .base import Service


class UserService(Service):
    """Domain service for tenant-scoped application users."""

    def __init__(
        self,
        user_repository: UserRepository,
        settings_repository: UserSettingsRepository,
        profile_repository: UserProfileRepository,
    ) -> None:
        """Initialize user service.

        Args:
            user_repository: User repository
            settings_repository: user_settings repository
            profile_repository: user_profiles repository
        """
        self.user_repository = user_repository
        self.settings_repository = settings_repository
        self.profile_repository = profile_repository

    @property
    def dependent_repositories(self) -> list[UserDependentRepository]:
        return [self.settings_repository, self.profile_repository]

    async def find_all_by_email(
        self, tenant_id: TenantId, email: Email
    ) -> list[ApplicationUser]:
        """Find every user row of the tenant for an email.

        Args:
            tenant_id: Tenant scope
            email: Normalized email

        Returns:
            Matching users (more than one means duplicates)
        """
        with logfire.span(
            "user_service.find_all_by_email",
            tenant_id=tenant_id.root,
            email=email.root,
        ):
            users = await self.user_repository.find_all_by_email(tenant_id, email)
            logfire.info(
                "User rows read",
                tenant_id=tenant_id.root,
                email=email.root,
                count=len(users),
                user_ids=[u.id for u in users],
            )
            return users

    async def find_placeholders(
        self, tenant_id: TenantId, email: Email, tag: str
    ) -> list[ApplicationUser]:
        """Find rows parked under a placeholder of email by an id rewrite."""
        with logfire.span(
            "user_service.find_placeholders",
            tenant_id=tenant_id.root,
            email=email.root,
        ):
            prefix, suffix = placeholder_affixes(email, tag)
            candidates = await self.user_repository.find_all_by_email_affixes(
                tenant_id, prefix, suffix
            )
            parked = [u for u in candidates if is_placeholder_for(u.email.root, email, tag)]
            if parked:
                logfire.warn(
                    "Placeholder rows found",
                    tenant_id=tenant_id.root,
                    email=email.root,
                    user_ids=[u.id for u in parked],
                )
            return parked

    async def get_by_email(self, tenant_id: TenantId, email: Email) -> ApplicationUser:
        """Get the single user row of the tenant for an email.

        Raises:
            NotFoundError: If there is none
            AmbiguousStateError: If there are duplicates
        """
        users = await self.find_all_by_email(tenant_id, email)
        if not users:
            raise NotFoundError("User", f"{email} in tenant {tenant_id}")
        if len(users) > 1:
            raise AmbiguousStateError(
                f"{len(users)} user rows share {email} in tenant {tenant_id}", users
            )
        return users[0]

    async def list_users(self, tenant_id: TenantId) -> list[ApplicationUser]:
        """List every user of a tenant."""
        with logfire.span("user_service.list_users", tenant_id=tenant_id.root):
            users = await self.user_repository.list_by_tenant(tenant_id)
            logfire.info("Tenant users listed", tenant_id=tenant_id.root, count=len(users))
            return users

    async def register(
        self,
        tenant_id: TenantId,
        user_id: UserId,
        email: Email,
        name: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> ApplicationUser:
        """Create a user row, applying the first-user role rule.

        The first user of a tenant becomes an active super_user; everyone
        after that is an inactive regular user pending approval. The
        decision and the insert happen in one atomic repository call.

        Args:
            tenant_id: Tenant scope
            user_id: Id for the new row (the auth identity's id)
            email: Normalized email
            name: Display name
            metadata: Extra metadata stored on the row

        Returns:
            The stored user
        """
        with logfire.span(
            "user_service.register",
            tenant_id=tenant_id.root,
            user_id=user_id,
            email=email.root,
        ):
            candidate = ApplicationUser(
                id=user_id,
                tenant_id=tenant_id,
                email=email,
                name=name,
                metadata=metadata or {},
            )
            saved = await self.user_repository.insert_with_role_assignment(candidate)
            logfire.info(
                "User registered",
                tenant_id=tenant_id.root,
                user_id=saved.id,
                role=saved.role.value,
                is_active=saved.is_active,
            )
            return saved

    async def approve(
        self, tenant_id: TenantId, email: Email, promote: bool = False
    ) -> ApplicationUser:
        """Activate a user, optionally promoting them to super_user.

        Args:
            tenant_id: Tenant scope
            email: Normalized email
            promote: Whether to grant super_user

        Returns:
            The updated user
        """
        user = await self.get_by_email(tenant_id, email)
        role = UserRole.SUPER_USER if promote else user.role
        with logfire.span(
            "user_service.approve",
            tenant_id=tenant_id.root,
            user_id=user.id,
            role=role.value,
        ):
            updated = await self.user_repository.update_access(
                tenant_id, user.id, role, True
            )
            logfire.info(
                "User approved",
                tenant_id=tenant_id.root,
                user_id=updated.id,
                role=updated.role.value,
            )
            return updated

    async def count_dependents(
        self, tenant_id: TenantId, user_id: UserId
    ) -> dict[str, int]:
        """Count rows in each dependent table that reference a user."""
        return {
            repo.table_name: await repo.count_by_user_id(tenant_id, user_id)
            for repo in self.dependent_repositories
        }

    async def find_by_id(
        self, tenant_id: TenantId, user_id: UserId
    ) -> Optional[ApplicationUser]:
        """Find a user row by id within the tenant."""
        with logfire.span(
            "user_service.find_by_id", tenant_id=tenant_id.root, user_id=user_id
        ):
            return await self.user_repository.find_by_id(tenant_id, user_id)

    async def change_email(
        self, tenant_id: TenantId, user_id: UserId, email: str
    ) -> ApplicationUser:
        """Store a new email on a user row verbatim."""
        with logfire.span(
            "user_service.change_email", tenant_id=tenant_id.root, user_id=user_id
        ):
            updated = await self.user_repository.update_email(tenant_id, user_id, email)
            logfire.info(
                "User email changed",
                tenant_id=tenant_id.root,
                user_id=user_id,
                email=email,
            )
            return updated

    async def insert_replacement(
        self, source: ApplicationUser, new_user_id: UserId, email: Email
    ) -> ApplicationUser:
        """Insert a copy of source under a new id and the given email.

        Role, activation, credential material and timestamps are carried
        over unchanged; no first-user rule is applied.
        """
        with logfire.span(
            "user_service.insert_replacement",
            tenant_id=source.tenant_id.root,
            old_user_id=source.id,
            new_user_id=new_user_id,
        ):
            replacement = source.model_copy(
                update={"id": new_user_id, "email": email}
            )
            saved = await self.user_repository.insert(replacement)
            logfire.info(
                "Replacement user inserted",
                tenant_id=saved.tenant_id.root,
                user_id=saved.id,
                role=saved.role.value,
            )
            return saved

    async def repoint_references(
        self, tenant_id: TenantId, old_user_id: UserId, new_user_id: UserId
    ) -> dict[str, int]:
        """Move every foreign key reference from one user id to another.

        Each table moves in its own SAVEPOINT. If a later table fails, the
        tables already moved stay committed with the aborted repair, and
        the next run resumes from the inserted row and repoints the rest.

        Returns:
            Rows moved per table, including the tenant bootstrap claim
        """
        with logfire.span(
            "user_service.repoint_references",
            tenant_id=tenant_id.root,
            old_user_id=old_user_id,
            new_user_id=new_user_id,
        ):
            moved: dict[str, int] = {}
            for repo in self.dependent_repositories:
                moved[repo.table_name] = await repo.repoint(
                    tenant_id, old_user_id, new_user_id
                )
            moved["tenant_bootstraps"] = await self.user_repository.repoint_bootstrap(
                tenant_id, old_user_id, new_user_id
            )
            logfire.info("References repointed", tenant_id=tenant_id.root, **moved)
            return moved

    async def delete(self, tenant_id: TenantId, user_id: UserId) -> None:
        """Delete a user row."""
        with logfire.span(
            "user_service.delete", tenant_id=tenant_id.root, user_id=user_id
        ):
            await self.user_repository.delete(tenant_id, user_id)
            logfire.info("User deleted", tenant_id=tenant_id.root, user_id=user_id)
