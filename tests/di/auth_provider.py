"""Mock auth provider providers for testing."""

from dishka import Scope, provide

from recon.adapter.gotrue import InMemoryGoTrueAdminClient
from recon.domain.service import AuthAdminClient
from recon.util.di.infrastructure.auth_provider import AuthProviderProvider


class MockAuthProviderProvider(AuthProviderProvider):
    """Mock auth provider backed by an in-memory identity store."""

    __is_mock__ = True

    @provide(scope=Scope.APP)
    def get_in_memory_client(self) -> InMemoryGoTrueAdminClient:
        """Provide the in-memory admin client (tests seed identities through it)."""
        return InMemoryGoTrueAdminClient()

    @provide(scope=Scope.APP)
    def get_auth_admin_client(
        self, client: InMemoryGoTrueAdminClient
    ) -> AuthAdminClient:
        """Expose the in-memory client under the domain interface."""
        return client
