"""Auth provider infrastructure providers."""

from dishka import Scope, provide

from recon.adapter.gotrue import RealGoTrueAdminClient
from recon.config import Settings
from recon.domain.service import AuthAdminClient
from recon.util.di.base import ProviderBase
from recon.util.error import ConfigurationError
from recon.util.observability import instrument_httpx

PLACEHOLDER_KEY = "CHANGE_ME_IN_PRODUCTION"


class AuthProviderProvider(ProviderBase):
    """Auth provider component base."""

    __mock_component__ = "auth_provider"


class ProdAuthProviderProvider(AuthProviderProvider):
    """Production auth provider talking to the GoTrue admin API."""

    __is_mock__ = False

    @provide(scope=Scope.APP)
    def get_auth_admin_client(self, settings: Settings) -> AuthAdminClient:
        """Provide GoTrue admin client.

        Returns:
            Admin client authenticated with the service-role key

        Raises:
            ConfigurationError: If the URL or service-role key is not configured
        """
        auth = settings.auth_provider
        if not auth.url:
            raise ConfigurationError("AUTH_PROVIDER__URL must be configured")
        if not auth.service_role_key or auth.service_role_key == PLACEHOLDER_KEY:
            raise ConfigurationError(
                "AUTH_PROVIDER__SERVICE_ROLE_KEY must be configured"
            )

        instrument_httpx()
        return RealGoTrueAdminClient(
            base_url=auth.url,
            service_role_key=auth.service_role_key,
            timeout=auth.timeout_seconds,
        )
