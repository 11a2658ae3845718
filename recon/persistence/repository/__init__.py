"""PostgreSQL repository implementations."""

from recon.persistence.repository.dependent import (
    PostgresUserProfileRepository,
    PostgresUserSettingsRepository,
)
from recon.persistence.repository.user import PostgresUserRepository

__all__ = [
    "PostgresUserRepository",
    "PostgresUserSettingsRepository",
    "PostgresUserProfileRepository",
]
