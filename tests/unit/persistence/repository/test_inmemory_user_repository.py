"""Tests for the in-memory user store constraints."""

import pytest

from recon.domain.error import ConstraintViolationError, FetchFailureError
from recon.domain.repository import (
    UserProfileRepository,
    UserRepository,
    UserSettingsRepository,
)
from recon.domain.value import Email, TenantId, UserId
from recon.persistence.repository.inmemory import InMemoryDatabase
from tests.conftest import make_profile, make_settings, make_user
from tests.harness import create_env_fixture

# Unit test fixture
unit_env = create_env_fixture()

ACME = TenantId("acme")


class TestInMemoryUserRepository:
    """Tests for InMemoryUserRepository."""

    @pytest.mark.asyncio
    async def test_insert_rejects_duplicate_email_in_tenant(self, unit_env):
        """Test the (tenant, email) uniqueness constraint."""
        # Arrange
        users = await unit_env.get(UserRepository)
        await users.insert(make_user("U-1"))

        # Act / Assert
        with pytest.raises(ConstraintViolationError) as exc_info:
            await users.insert(make_user("U-2", email="A@ACME.com"))
        assert exc_info.value.constraint == "uq_users_tenant_email"

    @pytest.mark.asyncio
    async def test_same_email_allowed_across_tenants(self, unit_env):
        """Test tenants do not share the uniqueness constraint."""
        users = await unit_env.get(UserRepository)

        await users.insert(make_user("U-1"))
        await users.insert(make_user("U-2", tenant="beta"))

        assert await users.count_by_tenant(TenantId("beta")) == 1

    @pytest.mark.asyncio
    async def test_delete_restricted_while_referenced(self, unit_env):
        """Test a referenced user row cannot be deleted."""
        # Arrange
        users = await unit_env.get(UserRepository)
        settings = await unit_env.get(UserSettingsRepository)
        await users.insert(make_user("U-1"))
        await settings.save(make_settings("s1", "U-1"))

        # Act / Assert
        with pytest.raises(ConstraintViolationError) as exc_info:
            await users.delete(ACME, UserId("U-1"))
        assert exc_info.value.constraint == "user_settings_user_id_fkey"

    @pytest.mark.asyncio
    async def test_repoint_requires_target_user(self, unit_env):
        """Test references cannot be moved to a missing user."""
        # Arrange
        users = await unit_env.get(UserRepository)
        settings = await unit_env.get(UserSettingsRepository)
        await users.insert(make_user("U-1"))
        await settings.save(make_settings("s1", "U-1"))

        # Act / Assert
        with pytest.raises(ConstraintViolationError):
            await settings.repoint(ACME, UserId("U-1"), UserId("MISSING"))

    @pytest.mark.asyncio
    async def test_profile_is_unique_per_user(self, unit_env):
        """Test a user holds at most one profile."""
        # Arrange
        users = await unit_env.get(UserRepository)
        profiles = await unit_env.get(UserProfileRepository)
        await users.insert(make_user("U-1"))
        await users.insert(make_user("U-2", email="b@acme.com"))
        await profiles.save(make_profile("p1", "U-1"))
        await profiles.save(make_profile("p2", "U-2"))

        # Act / Assert
        with pytest.raises(ConstraintViolationError):
            await profiles.repoint(ACME, UserId("U-2"), UserId("U-1"))

    @pytest.mark.asyncio
    async def test_find_by_id_is_tenant_scoped(self, unit_env):
        """Test rows of another tenant are not returned by id."""
        users = await unit_env.get(UserRepository)
        await users.insert(make_user("U-1", tenant="beta"))

        assert await users.find_by_id(ACME, UserId("U-1")) is None

    @pytest.mark.asyncio
    async def test_unavailable_database_fails_reads(self, unit_env):
        """Test an outage is a fetch failure, not an empty result."""
        # Arrange
        users = await unit_env.get(UserRepository)
        db = await unit_env.get(InMemoryDatabase)
        db.unavailable = True

        # Act / Assert
        with pytest.raises(FetchFailureError):
            await users.find_all_by_email(ACME, Email("a@acme.com"))
