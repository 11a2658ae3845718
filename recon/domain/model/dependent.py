"""Records that reference a user row by foreign key."""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import Field

from recon.domain.model.common import DomainModel
from recon.domain.value import ProfileId, SettingsId, TenantId, UserId


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserSettings(DomainModel):
    """Row in ``user_settings``."""

    id: SettingsId
    user_id: UserId
    tenant_id: TenantId
    theme: str = "auto"
    preferences: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class UserProfile(DomainModel):
    """Row in ``user_profiles`` (one per user)."""

    id: ProfileId
    user_id: UserId
    tenant_id: TenantId
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    encrypted_api_key: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
