"""Audit tenant use case."""

from collections import defaultdict

import logfire
from pydantic import BaseModel

from recon.application.usecase.base import BaseUseCase
from recon.application.usecase.common import IdentityItem, UserItem, parse_tenant
from recon.domain.model import ApplicationUser, AuthIdentity
from recon.domain.service import AuthIdentityService, UserService


class MismatchItem(BaseModel):
    """User row whose id differs from its auth identity's id."""

    user: UserItem
    identity: IdentityItem


class DuplicateItem(BaseModel):
    """Email held by more than one user row of the tenant."""

    email: str
    users: list[UserItem]


class AuditTenantRequest(BaseModel):
    """Audit tenant request."""

    tenant_id: str


class AuditTenantResponse(BaseModel):
    """Audit tenant response."""

    tenant_id: str
    total_users: int
    consistent: int
    id_mismatches: list[MismatchItem]
    app_only: list[UserItem]
    auth_only: list[IdentityItem]
    duplicates: list[DuplicateItem]
    interrupted: list[UserItem]  # Rows parked under a placeholder email
    pending_approval: list[UserItem]

    @property
    def healthy(self) -> bool:
        return not (
            self.id_mismatches
            or self.app_only
            or self.auth_only
            or self.duplicates
            or self.interrupted
        )


class AuditTenantUseCase(BaseUseCase):
    """Use case cross-referencing every user of a tenant with the auth provider.

    Read only. Identities are attributed to the tenant by the users they
    share an email with, or by the tenant recorded in their metadata.
    """

    def __init__(
        self,
        user_service: UserService,
        auth_identity_service: AuthIdentityService,
        placeholder_tag: str,
    ) -> None:
        """Initialize audit tenant use case.

        Args:
            user_service: User domain service
            auth_identity_service: Auth identity domain service
            placeholder_tag: Tag used in placeholder emails
        """
        self.user_service = user_service
        self.auth_identity_service = auth_identity_service
        self.placeholder_tag = placeholder_tag

    async def execute(self, request: AuditTenantRequest) -> AuditTenantResponse:
        """Execute tenant audit.

        Args:
            request: Tenant to audit

        Returns:
            Findings grouped by kind of divergence

        Raises:
            ValidationError: If the tenant is malformed
            FetchFailureError: If either store cannot be read
        """
        tenant_id = parse_tenant(request.tenant_id)

        with logfire.span("audit_tenant", tenant_id=tenant_id.root):
            users = await self.user_service.list_users(tenant_id)
            identities = await self.auth_identity_service.list_all()

            marker = f"+{self.placeholder_tag}-"
            parked = [u for u in users if marker in u.email.local_part]
            parked_ids = {u.id for u in parked}
            by_email: dict[str, list[ApplicationUser]] = defaultdict(list)
            for user in users:
                if user.id not in parked_ids:
                    by_email[user.email.root].append(user)
            identity_by_email: dict[str, AuthIdentity] = {
                i.email.root: i for i in identities
            }

            consistent = 0
            mismatches: list[MismatchItem] = []
            app_only: list[UserItem] = []
            duplicates: list[DuplicateItem] = []
            for email, rows in by_email.items():
                if len(rows) > 1:
                    duplicates.append(
                        DuplicateItem(
                            email=email, users=[UserItem.from_user(u) for u in rows]
                        )
                    )
                    continue
                user = rows[0]
                identity = identity_by_email.get(email)
                if identity is None:
                    app_only.append(UserItem.from_user(user))
                elif identity.external_id == user.id:
                    consistent += 1
                else:
                    mismatches.append(
                        MismatchItem(
                            user=UserItem.from_user(user),
                            identity=IdentityItem.from_identity(identity),
                        )
                    )

            auth_only = [
                IdentityItem.from_identity(i)
                for i in identities
                if i.tenant_hint == tenant_id.root and i.email.root not in by_email
            ]

            response = AuditTenantResponse(
                tenant_id=tenant_id.root,
                total_users=len(users),
                consistent=consistent,
                id_mismatches=mismatches,
                app_only=app_only,
                auth_only=auth_only,
                duplicates=duplicates,
                interrupted=[UserItem.from_user(u) for u in parked],
                pending_approval=[
                    UserItem.from_user(u) for u in users if u.is_pending_approval
                ],
            )
            logfire.info(
                "Tenant audited",
                tenant_id=tenant_id.root,
                total_users=response.total_users,
                consistent=consistent,
                id_mismatches=len(mismatches),
                app_only=len(app_only),
                auth_only=len(auth_only),
                duplicates=len(duplicates),
                interrupted=len(parked),
            )
            return response
