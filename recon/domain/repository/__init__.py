"""Repository interfaces.

Defined in the domain layer (dependency inversion); implementations live
in the persistence layer.
"""

from recon.domain.repository.dependent import (
    UserDependentRepository,
    UserProfileRepository,
    UserSettingsRepository,
)
from recon.domain.repository.user import UserRepository

__all__ = [
    "UserRepository",
    "UserDependentRepository",
    "UserSettingsRepository",
    "UserProfileRepository",
]
