"""Shared state behind the in-memory repositories.

One instance plays the role of the database for a test: every in-memory
repository of a request points at the same tables, so foreign keys and
uniqueness constraints can be checked across them the way Postgres would.
"""

from datetime import datetime, timezone
from typing import Optional

from recon.domain.error import ConstraintViolationError, FetchFailureError
from recon.domain.model import ApplicationUser, UserProfile, UserSettings
from recon.domain.value import TenantId, UserId


class InMemoryDatabase:
    """Tables of the user store held in dicts."""

    def __init__(self) -> None:
        self.users: dict[UserId, ApplicationUser] = {}
        self.user_settings: dict[str, UserSettings] = {}
        self.user_profiles: dict[str, UserProfile] = {}
        # tenant_id -> (user_id, claimed_at)
        self.tenant_bootstraps: dict[str, tuple[UserId, datetime]] = {}
        self.unavailable = False

    def check_available(self) -> None:
        """Fail like an unreachable database when ``unavailable`` is set."""
        if self.unavailable:
            raise FetchFailureError("application database", "connection refused")

    def check_user_exists(self, user_id: UserId, table: str) -> None:
        """Enforce a foreign key from table to users.id."""
        if user_id not in self.users:
            raise ConstraintViolationError(
                f"{table}_user_id_fkey", f"user {user_id} does not exist"
            )

    def referencing_tables(self, user_id: UserId) -> list[str]:
        """Tables that still hold a row pointing at user_id."""
        tables = []
        if any(s.user_id == user_id for s in self.user_settings.values()):
            tables.append("user_settings")
        if any(p.user_id == user_id for p in self.user_profiles.values()):
            tables.append("user_profiles")
        if any(owner == user_id for owner, _ in self.tenant_bootstraps.values()):
            tables.append("tenant_bootstraps")
        return tables

    def claim_bootstrap(self, tenant_id: TenantId, user_id: UserId) -> None:
        if tenant_id.root in self.tenant_bootstraps:
            raise ConstraintViolationError(
                "tenant_bootstraps_pkey", f"tenant {tenant_id} already claimed"
            )
        self.tenant_bootstraps[tenant_id.root] = (user_id, datetime.now(timezone.utc))

    def bootstrap_user_id(self, tenant_id: TenantId) -> Optional[UserId]:
        claim = self.tenant_bootstraps.get(tenant_id.root)
        return claim[0] if claim else None
