"""List users use case."""

from pydantic import BaseModel

from recon.application.usecase.common import UserItem, parse_tenant
from recon.domain.service import UserService


class UserListItem(UserItem):
    """User row with the number of rows referencing it per table."""

    dependents: dict[str, int]
    pending_approval: bool


class ListUsersRequest(BaseModel):
    """List users request."""

    tenant_id: str


class ListUsersResponse(BaseModel):
    """List users response."""

    tenant_id: str
    users: list[UserListItem]
    total: int


class ListUsersUseCase:
    """Use case for listing every user of a tenant."""

    def __init__(self, user_service: UserService) -> None:
        """Initialize list users use case.

        Args:
            user_service: User domain service
        """
        self.user_service = user_service

    async def execute(self, request: ListUsersRequest) -> ListUsersResponse:
        """Execute list users flow.

        Args:
            request: Tenant to list

        Returns:
            Users ordered by creation, with dependent row counts
        """
        tenant_id = parse_tenant(request.tenant_id)
        users = await self.user_service.list_users(tenant_id)

        items = []
        for user in users:
            dependents = await self.user_service.count_dependents(tenant_id, user.id)
            items.append(
                UserListItem(
                    **UserItem.from_user(user).model_dump(),
                    dependents=dependents,
                    pending_approval=user.is_pending_approval,
                )
            )

        return ListUsersResponse(tenant_id=tenant_id.root, users=items, total=len(items))
