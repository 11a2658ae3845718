"""Domain value objects."""

from recon.domain.value.identifiers import ExternalId, ProfileId, SettingsId, UserId
from recon.domain.value.types import Classification, Email, TenantId, UserRole

__all__ = [
    # Identifiers
    "UserId",
    "ExternalId",
    "SettingsId",
    "ProfileId",
    # Types
    "Classification",
    "Email",
    "TenantId",
    "UserRole",
]
