"""Diagnose user use case."""

from pydantic import BaseModel

from recon.application.usecase.base import BaseUseCase
from recon.application.usecase.common import (
    IdentityItem,
    UserItem,
    parse_email,
    parse_tenant,
)
from recon.domain.model import Diagnosis
from recon.domain.service import ReconciliationService
from recon.domain.value import Classification


class DiagnoseUserRequest(BaseModel):
    """Diagnose user request."""

    tenant_id: str
    email: str


class DiagnoseUserResponse(BaseModel):
    """Diagnose user response."""

    tenant_id: str
    email: str
    classification: Classification
    reason: str
    identity: IdentityItem | None = None
    user: UserItem | None = None
    placeholder: UserItem | None = None
    duplicates: list[UserItem] = []

    @classmethod
    def from_diagnosis(cls, diagnosis: Diagnosis) -> "DiagnoseUserResponse":
        return cls(
            tenant_id=diagnosis.tenant_id.root,
            email=diagnosis.email.root,
            classification=diagnosis.classification,
            reason=diagnosis.reason,
            identity=(
                IdentityItem.from_identity(diagnosis.auth_identity)
                if diagnosis.auth_identity
                else None
            ),
            user=UserItem.from_user(diagnosis.app_user) if diagnosis.app_user else None,
            placeholder=(
                UserItem.from_user(diagnosis.placeholder)
                if diagnosis.placeholder
                else None
            ),
            duplicates=[UserItem.from_user(u) for u in diagnosis.duplicates],
        )


class DiagnoseUserUseCase(BaseUseCase):
    """Dry run: fetch and classify one (tenant, email) pair without writing."""

    def __init__(self, reconciliation_service: ReconciliationService) -> None:
        """Initialize diagnose user use case.

        Args:
            reconciliation_service: Reconciliation domain service
        """
        self.reconciliation_service = reconciliation_service

    async def execute(self, request: DiagnoseUserRequest) -> DiagnoseUserResponse:
        """Execute diagnose flow.

        Args:
            request: Tenant and email to inspect

        Returns:
            Classification with the records it was derived from

        Raises:
            ValidationError: If tenant or email is malformed
            FetchFailureError: If either store cannot be read
        """
        tenant_id = parse_tenant(request.tenant_id)
        email = parse_email(request.email)
        diagnosis = await self.reconciliation_service.diagnose(tenant_id, email)
        return DiagnoseUserResponse.from_diagnosis(diagnosis)
