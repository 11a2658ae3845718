"""Test configuration and factory helpers."""

from typing import Any, Optional

from recon.domain.model import ApplicationUser, AuthIdentity, UserProfile, UserSettings
from recon.domain.value import (
    Email,
    ExternalId,
    ProfileId,
    SettingsId,
    TenantId,
    UserId,
    UserRole,
)


def make_user(
    user_id: str,
    tenant: str = "acme",
    email: str = "a@acme.com",
    role: UserRole = UserRole.REGULAR,
    is_active: bool = False,
    **extra: Any,
) -> ApplicationUser:
    """Build an application user row."""
    return ApplicationUser(
        id=UserId(user_id),
        tenant_id=TenantId(tenant),
        email=Email(email),
        role=role,
        is_active=is_active,
        **extra,
    )


def make_identity(
    external_id: str,
    email: str = "a@acme.com",
    tenant: Optional[str] = None,
    name: Optional[str] = None,
    confirmed: bool = True,
) -> AuthIdentity:
    """Build an auth identity, optionally tagged with a tenant and name."""
    metadata: dict[str, Any] = {}
    if tenant:
        metadata["tenant_id"] = tenant
    if name:
        metadata["name"] = name
    return AuthIdentity(
        external_id=ExternalId(external_id),
        email=Email(email),
        confirmed=confirmed,
        metadata=metadata,
    )


def make_settings(settings_id: str, user_id: str, tenant: str = "acme") -> UserSettings:
    """Build a user_settings row."""
    return UserSettings(
        id=SettingsId(settings_id),
        user_id=UserId(user_id),
        tenant_id=TenantId(tenant),
        theme="dark",
    )


def make_profile(profile_id: str, user_id: str, tenant: str = "acme") -> UserProfile:
    """Build a user_profiles row."""
    return UserProfile(
        id=ProfileId(profile_id),
        user_id=UserId(user_id),
        tenant_id=TenantId(tenant),
        display_name="Test User",
        encrypted_api_key="enc:abc123",
    )
