"""Set password use case."""

import logfire
from pydantic import BaseModel

from recon.application.usecase.common import (
    check_password,
    parse_email,
    parse_tenant,
)
from recon.domain.error import NotFoundError
from recon.domain.service import AuthIdentityService, UserService


class SetPasswordRequest(BaseModel):
    """Set password request."""

    tenant_id: str
    email: str
    password: str


class SetPasswordResponse(BaseModel):
    """Set password response."""

    tenant_id: str
    email: str
    external_id: str
    ids_match: bool  # False means the pair still needs reconciling


class SetPasswordUseCase:
    """Use case for an admin password reset of a tenant user's auth identity."""

    def __init__(
        self,
        user_service: UserService,
        auth_identity_service: AuthIdentityService,
    ) -> None:
        """Initialize set password use case.

        Args:
            user_service: User domain service
            auth_identity_service: Auth identity domain service
        """
        self.user_service = user_service
        self.auth_identity_service = auth_identity_service

    async def execute(self, request: SetPasswordRequest) -> SetPasswordResponse:
        """Execute password update.

        The user must exist in the tenant, so the operator cannot reset a
        login that belongs to another tenant.

        Raises:
            ValidationError: If input is malformed or the password too short
            NotFoundError: If the user or its auth identity does not exist
            AmbiguousStateError: If the tenant has duplicates for the email
        """
        tenant_id = parse_tenant(request.tenant_id)
        email = parse_email(request.email)
        password = check_password(request.password)

        user = await self.user_service.get_by_email(tenant_id, email)
        identity = await self.auth_identity_service.find_by_email(email)
        if identity is None:
            raise NotFoundError("Auth identity", str(email))

        await self.auth_identity_service.update_password(identity.external_id, password)

        ids_match = identity.external_id == user.id
        if not ids_match:
            logfire.warn(
                "Password set on an identity whose id differs from the user row",
                tenant_id=tenant_id.root,
                user_id=user.id,
                external_id=identity.external_id,
            )
        return SetPasswordResponse(
            tenant_id=tenant_id.root,
            email=email.root,
            external_id=identity.external_id,
            ids_match=ids_match,
        )
