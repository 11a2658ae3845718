"""GoTrue admin API adapter."""

from .auth_admin import (
    GoTrueAdminClient,
    InMemoryGoTrueAdminClient,
    RealGoTrueAdminClient,
)

__all__ = ["GoTrueAdminClient", "InMemoryGoTrueAdminClient", "RealGoTrueAdminClient"]
