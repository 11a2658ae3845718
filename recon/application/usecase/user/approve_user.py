"""Approve user use case."""

from pydantic import BaseModel

from recon.application.usecase.common import UserItem, parse_email, parse_tenant
from recon.domain.service import UserService


class ApproveUserRequest(BaseModel):
    """Approve user request."""

    tenant_id: str
    email: str
    promote: bool = False  # Also grant super_user


class ApproveUserResponse(BaseModel):
    """Approve user response."""

    tenant_id: str
    user: UserItem
    was_active: bool
    previous_role: str


class ApproveUserUseCase:
    """Use case for activating a user pending approval.

    Registrations after a tenant's first user are stored as inactive
    regular users; a super user (or the operator) approves them here.
    """

    def __init__(self, user_service: UserService) -> None:
        """Initialize approve user use case.

        Args:
            user_service: User domain service
        """
        self.user_service = user_service

    async def execute(self, request: ApproveUserRequest) -> ApproveUserResponse:
        """Execute approval flow.

        Args:
            request: Tenant, email and whether to promote

        Returns:
            The user after approval and its previous state

        Raises:
            NotFoundError: If the tenant has no user with the email
            AmbiguousStateError: If the tenant has duplicates for the email
        """
        tenant_id = parse_tenant(request.tenant_id)
        email = parse_email(request.email)

        before = await self.user_service.get_by_email(tenant_id, email)
        after = await self.user_service.approve(tenant_id, email, promote=request.promote)

        return ApproveUserResponse(
            tenant_id=tenant_id.root,
            user=UserItem.from_user(after),
            was_active=before.is_active,
            previous_role=before.role.value,
        )
