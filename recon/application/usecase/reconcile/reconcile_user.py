"""Reconcile user use case."""

import logfire
from pydantic import BaseModel

from recon.application.usecase.base import BaseUseCase
from recon.application.usecase.common import (
    IdentityItem,
    UserItem,
    check_password,
    parse_email,
    parse_tenant,
)
from recon.domain.model import RepairStatus, StepKind
from recon.domain.service import ReconciliationService, RepairService
from recon.domain.value import Classification


class StepItem(BaseModel):
    """Audited step in the response."""

    kind: StepKind
    action: str
    detail: str


class ReconcileUserRequest(BaseModel):
    """Reconcile user request."""

    tenant_id: str
    email: str
    password: str | None = None  # For identities that must be created
    provision: bool = False  # Allow creating both records from scratch


class ReconcileUserResponse(BaseModel):
    """Reconcile user response."""

    tenant_id: str
    email: str
    classification: Classification
    reason: str
    status: RepairStatus
    action: str
    steps: list[StepItem]
    user: UserItem | None = None
    identity: IdentityItem | None = None
    issued_password: str | None = None
    verified_classification: Classification


class ReconcileUserUseCase(BaseUseCase):
    """Use case running the full reconciliation procedure for one pair.

    Fetches both sides, classifies them, applies the matching repair and
    fetches again to confirm the pair is consistent afterwards.
    """

    def __init__(
        self,
        reconciliation_service: ReconciliationService,
        repair_service: RepairService,
    ) -> None:
        """Initialize reconcile user use case.

        Args:
            reconciliation_service: Fetches and classifies a pair
            repair_service: Applies the repair for a diagnosis
        """
        self.reconciliation_service = reconciliation_service
        self.repair_service = repair_service

    async def execute(self, request: ReconcileUserRequest) -> ReconcileUserResponse:
        """Execute reconciliation flow.

        Steps:
        1. Fetch and classify
        2. Dispatch to the repair for the classification
        3. Fetch and classify again (verification)

        Args:
            request: Tenant, email and repair options

        Returns:
            Repair report plus the classification observed afterwards

        Raises:
            ValidationError: If input is malformed
            FetchFailureError: If a store cannot be read or written
            AmbiguousStateError: If duplicate user rows exist
            NotFoundError: If nothing exists and provisioning was not requested
            RepairAbortedError: If an id rewrite stopped before its delete
        """
        tenant_id = parse_tenant(request.tenant_id)
        email = parse_email(request.email)
        password = check_password(request.password) if request.password else None

        with logfire.span(
            "reconcile_user", tenant_id=tenant_id.root, email=email.root
        ):
            diagnosis = await self.reconciliation_service.diagnose(tenant_id, email)
            report = await self.repair_service.repair(
                diagnosis, password=password, provision=request.provision
            )

            if report.status == RepairStatus.REPAIRED:
                verification = await self.reconciliation_service.diagnose(
                    tenant_id, email
                )
                verified = verification.classification
                if verified != Classification.CONSISTENT:
                    logfire.warn(
                        "Pair still diverges after repair",
                        tenant_id=tenant_id.root,
                        email=email.root,
                        classification=verified.value,
                        reason=verification.reason,
                    )
            else:
                verified = diagnosis.classification

        return ReconcileUserResponse(
            tenant_id=tenant_id.root,
            email=email.root,
            classification=diagnosis.classification,
            reason=diagnosis.reason,
            status=report.status,
            action=report.action,
            steps=[
                StepItem(kind=s.kind, action=s.action, detail=s.detail)
                for s in report.steps
            ],
            user=UserItem.from_user(report.user) if report.user else None,
            identity=(
                IdentityItem.from_identity(report.identity) if report.identity else None
            ),
            issued_password=report.issued_password,
            verified_classification=verified,
        )
