"""Domain value objects for identity reconciliation."""

import re
from enum import Enum

from pydantic import field_validator

from recon.domain.value.common import RootValueObject

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+$")
_TENANT_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{1,100}$")


class UserRole(str, Enum):
    """Application role of a user within a tenant."""

    REGULAR = "regular"
    SUPER_USER = "super_user"


class Classification(str, Enum):
    """Divergence between an auth identity and the application user rows."""

    CONSISTENT = "consistent"
    ID_MISMATCH = "id_mismatch"
    AUTH_ONLY = "auth_only"
    APP_ONLY = "app_only"
    ABSENT = "absent"
    DUPLICATE_APP = "duplicate_app"


class TenantId(RootValueObject[str]):
    """Tenant tag partitioning users into isolated spaces.

    Examples: 'acme', 'phaeton_ai', 'medex'
    """

    @field_validator("root")
    @classmethod
    def validate_tenant(cls, v: str) -> str:
        """Validate tenant tag is non-empty and URL/SQL friendly."""
        v = v.strip()
        if not _TENANT_PATTERN.match(v):
            raise ValueError(
                "Tenant must be 1-100 characters of letters, digits, '_', '.' or '-'"
            )
        return v


class Email(RootValueObject[str]):
    """Email address, trimmed and lowercase-normalized.

    Comparisons between the auth provider and the application store are
    case-insensitive, so the normalized form is the only one kept.
    """

    @field_validator("root")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Trim, lowercase and check the address has one '@'."""
        v = v.strip().lower()
        if not _EMAIL_PATTERN.match(v):
            raise ValueError(f"Invalid email address: {v!r}")
        if len(v) > 255:
            raise ValueError("Email must be at most 255 characters")
        return v

    @property
    def local_part(self) -> str:
        return self.root.split("@", 1)[0]

    @property
    def domain(self) -> str:
        return self.root.split("@", 1)[1]
