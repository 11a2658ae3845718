"""Input parsing and response items shared by the use cases."""

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from recon.domain.error import ValidationError
from recon.domain.model import ApplicationUser, AuthIdentity
from recon.domain.value import Email, TenantId

MIN_PASSWORD_LENGTH = 8


def parse_tenant(value: str) -> TenantId:
    """Parse an operator-supplied tenant tag.

    Raises:
        ValidationError: If the tag is empty or contains invalid characters
    """
    try:
        return TenantId(value)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid tenant {value!r}: {_first_message(e)}") from e


def parse_email(value: str) -> Email:
    """Parse and normalize an operator-supplied email.

    Raises:
        ValidationError: If the address is empty or malformed
    """
    try:
        return Email(value)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid email {value!r}: {_first_message(e)}") from e


def check_password(password: str) -> str:
    """Reject passwords the auth provider would refuse."""
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )
    return password


def _first_message(error: PydanticValidationError) -> str:
    return error.errors()[0]["msg"]


class UserItem(BaseModel):
    """Application user row in a response."""

    user_id: str
    email: str
    name: str | None
    role: str
    is_active: bool

    @classmethod
    def from_user(cls, user: ApplicationUser) -> "UserItem":
        return cls(
            user_id=user.id,
            email=user.email.root,
            name=user.name,
            role=user.role.value,
            is_active=user.is_active,
        )


class IdentityItem(BaseModel):
    """Auth identity in a response."""

    external_id: str
    email: str
    confirmed: bool
    tenant_hint: str | None

    @classmethod
    def from_identity(cls, identity: AuthIdentity) -> "IdentityItem":
        return cls(
            external_id=identity.external_id,
            email=identity.email.root,
            confirmed=identity.confirmed,
            tenant_hint=identity.tenant_hint,
        )
