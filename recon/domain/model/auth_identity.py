"""Auth identity entity.

Owned by the external authentication provider. The application only
changes it through the provider's admin operations.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import Field

from recon.domain.model.common import DomainModel
from recon.domain.value import Email, ExternalId


class AuthIdentity(DomainModel):
    """Login credential record held by the auth provider."""

    external_id: ExternalId
    email: Email
    confirmed: bool = False
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None

    @property
    def tenant_hint(self) -> Optional[str]:
        """Tenant recorded in the identity metadata at registration, if any."""
        value = self.metadata.get("tenant_id")
        return str(value) if value else None


class IdentityPage(DomainModel):
    """One page of the provider listing.

    ``has_more`` follows the raw page size, so users the listing cannot
    represent (phone-only, anonymous) do not end the paging early.
    """

    identities: list[AuthIdentity] = Field(default_factory=list)
    has_more: bool = False
