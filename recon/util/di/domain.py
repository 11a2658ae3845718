"""Domain layer DI providers."""

from dishka import Scope, provide

from recon.config import ReconciliationSettings, Settings
from recon.domain.repository import (
    UserProfileRepository,
    UserRepository,
    UserSettingsRepository,
)
from recon.domain.service import (
    AuthAdminClient,
    AuthIdentityService,
    ReconciliationService,
    RepairService,
    UserService,
)
from recon.util.di.base import ProviderBase


class ProdDomainProvider(ProviderBase):
    """Production domain services provider - concrete, no mocks needed.

    Domain services are REQUEST-scoped to align with repository/session lifecycle.
    Each command run gets fresh service instances with their own transaction.
    """

    scope = Scope.REQUEST

    @provide
    def get_user_service(
        self,
        user_repository: UserRepository,
        settings_repository: UserSettingsRepository,
        profile_repository: UserProfileRepository,
    ) -> UserService:
        """Provide user domain service."""
        return UserService(
            user_repository=user_repository,
            settings_repository=settings_repository,
            profile_repository=profile_repository,
        )

    @provide
    def get_auth_identity_service(
        self, auth_client: AuthAdminClient, settings: Settings
    ) -> AuthIdentityService:
        """Provide auth identity domain service."""
        return AuthIdentityService(
            auth_client=auth_client, page_size=settings.auth_provider.page_size
        )

    @provide
    def get_reconciliation_service(
        self,
        user_service: UserService,
        auth_identity_service: AuthIdentityService,
        reconciliation_settings: ReconciliationSettings,
    ) -> ReconciliationService:
        """Provide reconciliation domain service."""
        return ReconciliationService(
            user_service=user_service,
            auth_identity_service=auth_identity_service,
            placeholder_tag=reconciliation_settings.placeholder_tag,
        )

    @provide
    def get_repair_service(
        self,
        user_service: UserService,
        auth_identity_service: AuthIdentityService,
        reconciliation_settings: ReconciliationSettings,
    ) -> RepairService:
        """Provide repair domain service."""
        return RepairService(
            user_service=user_service,
            auth_identity_service=auth_identity_service,
            placeholder_tag=reconciliation_settings.placeholder_tag,
            generated_password_length=reconciliation_settings.generated_password_length,
        )
