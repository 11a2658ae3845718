"""Application layer DI providers."""

from dishka import Scope, provide

from recon.application.usecase.reconcile import (
    AuditTenantUseCase,
    DiagnoseUserUseCase,
    ReconcileUserUseCase,
)
from recon.application.usecase.user import (
    ApproveUserUseCase,
    ListUsersUseCase,
    SetPasswordUseCase,
)
from recon.config import ReconciliationSettings
from recon.domain.service import (
    AuthIdentityService,
    ReconciliationService,
    RepairService,
    UserService,
)
from recon.util.di.base import ProviderBase


class ProdApplicationProvider(ProviderBase):
    """Production application use cases provider - concrete, no mocks needed."""

    # Reconciliation use cases
    @provide(scope=Scope.REQUEST)
    def get_diagnose_user_use_case(
        self, reconciliation_service: ReconciliationService
    ) -> DiagnoseUserUseCase:
        """Provide diagnose user use case."""
        return DiagnoseUserUseCase(reconciliation_service=reconciliation_service)

    @provide(scope=Scope.REQUEST)
    def get_reconcile_user_use_case(
        self,
        reconciliation_service: ReconciliationService,
        repair_service: RepairService,
    ) -> ReconcileUserUseCase:
        """Provide reconcile user use case."""
        return ReconcileUserUseCase(
            reconciliation_service=reconciliation_service,
            repair_service=repair_service,
        )

    @provide(scope=Scope.REQUEST)
    def get_audit_tenant_use_case(
        self,
        user_service: UserService,
        auth_identity_service: AuthIdentityService,
        reconciliation_settings: ReconciliationSettings,
    ) -> AuditTenantUseCase:
        """Provide audit tenant use case."""
        return AuditTenantUseCase(
            user_service=user_service,
            auth_identity_service=auth_identity_service,
            placeholder_tag=reconciliation_settings.placeholder_tag,
        )

    # User use cases
    @provide(scope=Scope.REQUEST)
    def get_list_users_use_case(self, user_service: UserService) -> ListUsersUseCase:
        """Provide list users use case."""
        return ListUsersUseCase(user_service=user_service)

    @provide(scope=Scope.REQUEST)
    def get_approve_user_use_case(
        self, user_service: UserService
    ) -> ApproveUserUseCase:
        """Provide approve user use case."""
        return ApproveUserUseCase(user_service=user_service)

    @provide(scope=Scope.REQUEST)
    def get_set_password_use_case(
        self,
        user_service: UserService,
        auth_identity_service: AuthIdentityService,
    ) -> SetPasswordUseCase:
        """Provide set password use case."""
        return SetPasswordUseCase(
            user_service=user_service,
            auth_identity_service=auth_identity_service,
        )
