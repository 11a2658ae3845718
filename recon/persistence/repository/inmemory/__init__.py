"""In-memory repository implementations for testing."""

from .database import InMemoryDatabase
from .dependent import InMemoryUserProfileRepository, InMemoryUserSettingsRepository
from .user import InMemoryUserRepository

__all__ = [
    "InMemoryDatabase",
    "InMemoryUserProfileRepository",
    "InMemoryUserRepository",
    "InMemoryUserSettingsRepository",
]
