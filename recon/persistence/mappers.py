"""Mappers for converting between database rows and domain models.

Since we're using Pydantic domain models (immutable), we use manual mapping
instead of SQLAlchemy's classical imperative mapping.
"""

from typing import Any, Dict

from recon.domain.model import ApplicationUser, UserProfile, UserSettings
from recon.domain.value import (
    Email,
    ProfileId,
    SettingsId,
    TenantId,
    UserId,
    UserRole,
)


def row_to_user(row: Dict[str, Any]) -> ApplicationUser:
    """Convert database row to ApplicationUser domain model.

    Args:
        row: Database row as dict

    Returns:
        ApplicationUser domain model
    """
    return ApplicationUser(
        id=UserId(row["id"]),
        tenant_id=TenantId(row["tenant_id"]),
        email=Email(row["email"]),
        name=row.get("name"),
        role=UserRole(row["role"]),
        is_active=row["is_active"],
        credential_material=row.get("credential_material"),
        metadata=row.get("user_metadata") or {},
        last_login=row.get("last_login"),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def user_to_dict(user: ApplicationUser) -> Dict[str, Any]:
    """Convert ApplicationUser domain model to database dict.

    Args:
        user: ApplicationUser domain model

    Returns:
        Dict suitable for database insertion/update
    """
    return {
        "id": user.id,
        "tenant_id": user.tenant_id.root,
        "email": user.email.root,
        "name": user.name,
        "role": user.role.value,
        "is_active": user.is_active,
        "credential_material": user.credential_material,
        "user_metadata": user.metadata,
        "last_login": user.last_login,
        "created_at": user.created_at,
        "updated_at": user.updated_at,
    }


def row_to_user_settings(row: Dict[str, Any]) -> UserSettings:
    """Convert database row to UserSettings domain model."""
    return UserSettings(
        id=SettingsId(row["id"]),
        user_id=UserId(row["user_id"]),
        tenant_id=TenantId(row["tenant_id"]),
        theme=row["theme"],
        preferences=row.get("preferences") or {},
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def user_settings_to_dict(settings: UserSettings) -> Dict[str, Any]:
    """Convert UserSettings domain model to database dict."""
    data = settings.model_dump()
    data["tenant_id"] = settings.tenant_id.root
    return data


def row_to_user_profile(row: Dict[str, Any]) -> UserProfile:
    """Convert database row to UserProfile domain model."""
    return UserProfile(
        id=ProfileId(row["id"]),
        user_id=UserId(row["user_id"]),
        tenant_id=TenantId(row["tenant_id"]),
        display_name=row.get("display_name"),
        avatar_url=row.get("avatar_url"),
        encrypted_api_key=row.get("encrypted_api_key"),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def user_profile_to_dict(profile: UserProfile) -> Dict[str, Any]:
    """Convert UserProfile domain model to database dict."""
    data = profile.model_dump()
    data["tenant_id"] = profile.tenant_id.root
    return data
