"""State fetch for the reconciliation procedure."""

import logfire

from recon.domain.model.diagnosis import Diagnosis, Snapshot
from recon.domain.service.auth_identity_service import AuthIdentityService
from recon.domain.service.classifier import classify
from recon.domain.service.user_service import UserService
from recon.domain.value import Email, TenantId

from .base import Service


class ReconciliationService(Service):
    """Reads both sides of a (tenant, email) pair and classifies them."""

    def __init__(
        self,
        user_service: UserService,
        auth_identity_service: AuthIdentityService,
        placeholder_tag: str,
    ) -> None:
        """Initialize reconciliation service.

        Args:
            user_service: User domain service
            auth_identity_service: Auth identity domain service
            placeholder_tag: Tag used in placeholder emails
        """
        self.user_service = user_service
        self.auth_identity_service = auth_identity_service
        self.placeholder_tag = placeholder_tag

    async def fetch_snapshot(self, tenant_id: TenantId, email: Email) -> Snapshot:
        """Fetch the auth identity and tenant user rows for an email.

        Store failures propagate as FetchFailureError; absence is an empty
        field in the snapshot.
        """
        with logfire.span(
            "reconciliation_service.fetch_snapshot",
            tenant_id=tenant_id.root,
            email=email.root,
        ):
            identity = await self.auth_identity_service.find_by_email(email)
            users = await self.user_service.find_all_by_email(tenant_id, email)
            placeholders = await self.user_service.find_placeholders(
                tenant_id, email, self.placeholder_tag
            )
            return Snapshot(
                tenant_id=tenant_id,
                email=email,
                auth_identity=identity,
                app_users=users,
                placeholders=placeholders,
            )

    async def diagnose(self, tenant_id: TenantId, email: Email) -> Diagnosis:
        """Fetch and classify a (tenant, email) pair."""
        snapshot = await self.fetch_snapshot(tenant_id, email)
        diagnosis = classify(snapshot)
        logfire.info(
            "Pair classified",
            tenant_id=tenant_id.root,
            email=email.root,
            classification=diagnosis.classification.value,
            reason=diagnosis.reason,
        )
        return diagnosis
