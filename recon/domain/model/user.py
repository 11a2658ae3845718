"""Application user record.

The application's own row for a person, scoped to one tenant. Its id is
meant to equal the external id of the person's auth identity.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import Field

from recon.domain.model.common import DomainModel
from recon.domain.value import Email, TenantId, UserId, UserRole


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ApplicationUser(DomainModel):
    """User row in the ``users`` table."""

    id: UserId
    tenant_id: TenantId
    email: Email
    name: Optional[str] = None
    role: UserRole = UserRole.REGULAR
    is_active: bool = False
    credential_material: Optional[str] = None  # Opaque, copied verbatim on repair
    metadata: dict[str, Any] = Field(default_factory=dict)
    last_login: Optional[datetime] = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @property
    def is_pending_approval(self) -> bool:
        return self.role == UserRole.REGULAR and not self.is_active
