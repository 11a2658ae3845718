"""Tests for the repair service."""

import pytest

from recon.adapter.gotrue import InMemoryGoTrueAdminClient
from recon.domain.error import (
    AmbiguousStateError,
    ConstraintViolationError,
    FetchFailureError,
    NotFoundError,
    RepairAbortedError,
    ValidationError,
)
from recon.domain.model import RepairStatus, StepKind
from recon.domain.repository import UserRepository, UserSettingsRepository
from recon.domain.service import ReconciliationService, RepairService
from recon.domain.value import Classification, Email, TenantId, UserRole
from recon.persistence.repository.inmemory import InMemoryDatabase
from tests.conftest import make_identity, make_profile, make_settings, make_user
from tests.harness import create_env_fixture

# Unit test fixture
unit_env = create_env_fixture()

ACME = TenantId("acme")
EMAIL = Email("a@acme.com")


async def reconcile(env, tenant=ACME, email=EMAIL, **options):
    """Diagnose and repair one pair, returning the report and the state after."""
    reconciliation = await env.get(ReconciliationService)
    repair = await env.get(RepairService)
    diagnosis = await reconciliation.diagnose(tenant, email)
    report = await repair.repair(diagnosis, **options)
    after = await reconciliation.diagnose(tenant, email)
    return report, after


class TestRewriteId:
    """Tests for the id rewrite of an ID_MISMATCH pair."""

    @pytest.mark.asyncio
    async def test_rewrite_moves_row_and_dependents_to_auth_id(self, unit_env):
        """Test the row and its settings end up under the auth identity's id."""
        # Arrange
        auth = await unit_env.get(InMemoryGoTrueAdminClient)
        users = await unit_env.get(UserRepository)
        settings = await unit_env.get(UserSettingsRepository)
        db = await unit_env.get(InMemoryDatabase)

        auth.add(make_identity("AUTH-1", "a@acme.com"))
        await users.insert(
            make_user(
                "OLD-5",
                role=UserRole.SUPER_USER,
                is_active=True,
                credential_material="hash$1",
            )
        )
        await settings.save(make_settings("s1", "OLD-5"))

        # Act
        report, after = await reconcile(unit_env)

        # Assert
        assert report.status == RepairStatus.REPAIRED
        assert report.action == "rewrite_id"
        assert after.classification == Classification.CONSISTENT
        assert "OLD-5" not in db.users
        moved = db.users["AUTH-1"]
        assert moved.email == EMAIL
        assert moved.role == UserRole.SUPER_USER
        assert moved.is_active is True
        assert moved.credential_material == "hash$1"
        assert db.user_settings["s1"].user_id == "AUTH-1"
        assert [s.action for s in report.steps if s.kind == StepKind.WRITE][0] == "park"
        assert report.steps[-1].action == "delete"

    @pytest.mark.asyncio
    async def test_rewrite_moves_profile_and_bootstrap_claim(self, unit_env):
        """Test the profile and the tenant bootstrap claim follow the row."""
        # Arrange
        auth = await unit_env.get(InMemoryGoTrueAdminClient)
        users = await unit_env.get(UserRepository)
        db = await unit_env.get(InMemoryDatabase)

        auth.add(make_identity("AUTH-1", "a@acme.com"))
        await users.insert_with_role_assignment(make_user("OLD-5"))
        db.user_profiles["p1"] = make_profile("p1", "OLD-5")

        # Act
        report, after = await reconcile(unit_env)

        # Assert
        assert after.classification == Classification.CONSISTENT
        assert db.user_profiles["p1"].user_id == "AUTH-1"
        assert db.bootstrap_user_id(ACME) == "AUTH-1"
        assert db.users["AUTH-1"].role == UserRole.SUPER_USER

    @pytest.mark.asyncio
    async def test_second_run_is_a_no_op(self, unit_env):
        """Test reconciling a repaired pair writes nothing."""
        # Arrange
        auth = await unit_env.get(InMemoryGoTrueAdminClient)
        users = await unit_env.get(UserRepository)
        db = await unit_env.get(InMemoryDatabase)

        auth.add(make_identity("AUTH-1", "a@acme.com"))
        await users.insert(make_user("OLD-5"))
        await reconcile(unit_env)
        state_before = dict(db.users)

        # Act
        report, _ = await reconcile(unit_env)

        # Assert
        assert report.status == RepairStatus.HEALTHY
        assert report.action == "none"
        assert all(step.kind != StepKind.WRITE for step in report.steps)
        assert db.users == state_before

    @pytest.mark.asyncio
    async def test_resume_after_park(self, unit_env):
        """Test a run interrupted after parking the old row finishes the rewrite."""
        # Arrange
        auth = await unit_env.get(InMemoryGoTrueAdminClient)
        users = await unit_env.get(UserRepository)
        settings = await unit_env.get(UserSettingsRepository)
        db = await unit_env.get(InMemoryDatabase)

        auth.add(make_identity("AUTH-1", "a@acme.com"))
        await users.insert(make_user("OLD-5", email="a+reconcile-old-5@acme.com"))
        await settings.save(make_settings("s1", "OLD-5"))

        # Act
        report, after = await reconcile(unit_env)

        # Assert
        assert report.steps[0].kind == StepKind.SKIP
        assert report.steps[0].action == "park"
        assert after.classification == Classification.CONSISTENT
        assert set(db.users) == {"AUTH-1"}
        assert db.users["AUTH-1"].email == EMAIL
        assert db.user_settings["s1"].user_id == "AUTH-1"

    @pytest.mark.asyncio
    async def test_resume_after_insert(self, unit_env):
        """Test a run interrupted after inserting the new row finishes the rewrite."""
        # Arrange
        auth = await unit_env.get(InMemoryGoTrueAdminClient)
        users = await unit_env.get(UserRepository)
        settings = await unit_env.get(UserSettingsRepository)
        db = await unit_env.get(InMemoryDatabase)

        auth.add(make_identity("AUTH-1", "a@acme.com"))
        await users.insert(make_user("OLD-5", email="a+reconcile-old-5@acme.com"))
        await users.insert(make_user("AUTH-1"))
        await settings.save(make_settings("s1", "OLD-5"))

        # Act
        report, after = await reconcile(unit_env)

        # Assert
        skipped = [s.action for s in report.steps if s.kind == StepKind.SKIP]
        assert skipped == ["park", "insert"]
        assert after.classification == Classification.CONSISTENT
        assert set(db.users) == {"AUTH-1"}
        assert db.user_settings["s1"].user_id == "AUTH-1"

    @pytest.mark.asyncio
    async def test_resume_after_partial_repoint(self, unit_env):
        """Test a run that moved settings but not the profile finishes the move."""
        # Arrange
        auth = await unit_env.get(InMemoryGoTrueAdminClient)
        users = await unit_env.get(UserRepository)
        db = await unit_env.get(InMemoryDatabase)

        auth.add(make_identity("AUTH-1", "a@acme.com"))
        await users.insert(make_user("OLD-5", email="a+reconcile-old-5@acme.com"))
        await users.insert(make_user("AUTH-1"))
        db.user_settings["s1"] = make_settings("s1", "AUTH-1")
        db.user_profiles["p1"] = make_profile("p1", "OLD-5")

        # Act
        report, after = await reconcile(unit_env)

        # Assert
        assert report.status == RepairStatus.REPAIRED
        assert after.classification == Classification.CONSISTENT
        assert set(db.users) == {"AUTH-1"}
        assert db.user_settings["s1"].user_id == "AUTH-1"
        assert db.user_profiles["p1"].user_id == "AUTH-1"
        assert db.user_settings["s1"].user_id == "AUTH-1"

    @pytest.mark.asyncio
    async def test_abort_when_auth_id_belongs_to_another_row(self, unit_env):
        """Test the rewrite stops at insert when the auth id is taken by another email."""
        # Arrange
        auth = await unit_env.get(InMemoryGoTrueAdminClient)
        users = await unit_env.get(UserRepository)
        settings = await unit_env.get(UserSettingsRepository)
        db = await unit_env.get(InMemoryDatabase)

        auth.add(make_identity("AUTH-1", "a@acme.com"))
        await users.insert(make_user("OLD-5"))
        await users.insert(make_user("AUTH-1", email="z@acme.com"))
        await settings.save(make_settings("s1", "OLD-5"))

        # Act / Assert
        with pytest.raises(RepairAbortedError) as exc_info:
            await reconcile(unit_env)

        assert exc_info.value.step == "insert"
        assert exc_info.value.completed_steps == ["park"]
        assert isinstance(exc_info.value.cause, ConstraintViolationError)
        assert "OLD-5" in db.users
        assert db.users["AUTH-1"].email == Email("z@acme.com")
        assert db.user_settings["s1"].user_id == "OLD-5"

    @pytest.mark.asyncio
    async def test_abort_when_auth_id_is_used_in_another_tenant(self, unit_env):
        """Test a primary key clash across tenants aborts at insert."""
        # Arrange
        auth = await unit_env.get(InMemoryGoTrueAdminClient)
        users = await unit_env.get(UserRepository)
        db = await unit_env.get(InMemoryDatabase)

        auth.add(make_identity("AUTH-1", "a@acme.com"))
        await users.insert(make_user("OLD-5"))
        await users.insert(make_user("AUTH-1", tenant="beta", email="a@acme.com"))

        # Act / Assert
        with pytest.raises(RepairAbortedError) as exc_info:
            await reconcile(unit_env)

        assert exc_info.value.step == "insert"
        assert exc_info.value.cause.constraint == "users_pkey"
        assert db.users["OLD-5"].tenant_id == ACME
        assert db.users["AUTH-1"].tenant_id == TenantId("beta")

    @pytest.mark.asyncio
    async def test_abort_at_delete_keeps_old_row(self, unit_env):
        """Test a reference left outside the tenant blocks the delete."""
        # Arrange
        auth = await unit_env.get(InMemoryGoTrueAdminClient)
        users = await unit_env.get(UserRepository)
        db = await unit_env.get(InMemoryDatabase)

        auth.add(make_identity("AUTH-1", "a@acme.com"))
        await users.insert(make_user("OLD-5"))
        db.user_settings["s9"] = make_settings("s9", "OLD-5", tenant="other")

        # Act / Assert
        with pytest.raises(RepairAbortedError) as exc_info:
            await reconcile(unit_env)

        assert exc_info.value.step == "delete"
        assert exc_info.value.completed_steps == ["park", "insert", "repoint"]
        assert "OLD-5" in db.users
        assert db.users["AUTH-1"].email == EMAIL

    @pytest.mark.asyncio
    async def test_abort_when_park_fails(self, unit_env):
        """Test an unreachable database during park aborts before any write."""
        # Arrange
        auth = await unit_env.get(InMemoryGoTrueAdminClient)
        users = await unit_env.get(UserRepository)
        reconciliation = await unit_env.get(ReconciliationService)
        repair = await unit_env.get(RepairService)
        db = await unit_env.get(InMemoryDatabase)

        auth.add(make_identity("AUTH-1", "a@acme.com"))
        await users.insert(make_user("OLD-5"))
        diagnosis = await reconciliation.diagnose(ACME, EMAIL)
        db.unavailable = True

        # Act / Assert
        with pytest.raises(RepairAbortedError) as exc_info:
            await repair.repair(diagnosis)

        assert exc_info.value.step == "park"
        assert exc_info.value.completed_steps == []
        assert isinstance(exc_info.value.cause, FetchFailureError)
        assert db.users["OLD-5"].email == EMAIL

    @pytest.mark.asyncio
    async def test_rewrite_leaves_other_tenants_alone(self, unit_env):
        """Test a row with the same email in another tenant is untouched."""
        # Arrange
        auth = await unit_env.get(InMemoryGoTrueAdminClient)
        users = await unit_env.get(UserRepository)
        db = await unit_env.get(InMemoryDatabase)

        auth.add(make_identity("AUTH-1", "a@acme.com"))
        await users.insert(make_user("OLD-5"))
        beta_user = await users.insert(make_user("BETA-1", tenant="beta"))

        # Act
        await reconcile(unit_env)

        # Assert
        assert db.users["BETA-1"] == beta_user


class TestCreateUser:
    """Tests for the AUTH_ONLY repair."""

    @pytest.mark.asyncio
    async def test_first_user_of_empty_tenant_is_active_super_user(self, unit_env):
        """Test the first registration in a tenant becomes its active super user."""
        # Arrange
        auth = await unit_env.get(InMemoryGoTrueAdminClient)
        db = await unit_env.get(InMemoryDatabase)
        auth.add(make_identity("AUTH-9", "b@beta.com", tenant="beta", name="Bea"))

        # Act
        report, after = await reconcile(
            unit_env, tenant=TenantId("beta"), email=Email("b@beta.com")
        )

        # Assert
        assert report.action == "create_user"
        assert after.classification == Classification.CONSISTENT
        user = db.users["AUTH-9"]
        assert user.role == UserRole.SUPER_USER
        assert user.is_active is True
        assert user.name == "Bea"
        assert db.bootstrap_user_id(TenantId("beta")) == "AUTH-9"

    @pytest.mark.asyncio
    async def test_later_users_are_pending_approval(self, unit_env):
        """Test registrations after the first are inactive regular users."""
        # Arrange
        auth = await unit_env.get(InMemoryGoTrueAdminClient)
        db = await unit_env.get(InMemoryDatabase)
        for n in range(3):
            auth.add(make_identity(f"AUTH-{n}", f"u{n}@beta.com"))

        # Act
        for n in range(3):
            await reconcile(unit_env, tenant=TenantId("beta"), email=Email(f"u{n}@beta.com"))

        # Assert
        roles = [(db.users[f"AUTH-{n}"].role, db.users[f"AUTH-{n}"].is_active) for n in range(3)]
        assert roles == [
            (UserRole.SUPER_USER, True),
            (UserRole.REGULAR, False),
            (UserRole.REGULAR, False),
        ]

    @pytest.mark.asyncio
    async def test_tenants_bootstrap_independently(self, unit_env):
        """Test each tenant gets its own first user."""
        # Arrange
        auth = await unit_env.get(InMemoryGoTrueAdminClient)
        users = await unit_env.get(UserRepository)
        db = await unit_env.get(InMemoryDatabase)
        await users.insert_with_role_assignment(make_user("ACME-1", email="x@acme.com"))
        auth.add(make_identity("AUTH-9", "b@beta.com"))

        # Act
        await reconcile(unit_env, tenant=TenantId("beta"), email=Email("b@beta.com"))

        # Assert
        assert db.users["AUTH-9"].role == UserRole.SUPER_USER


class TestCreateIdentity:
    """Tests for the APP_ONLY repair."""

    @pytest.mark.asyncio
    async def test_generated_password_is_issued_once(self, unit_env):
        """Test an identity is created under the row's id with a generated password."""
        # Arrange
        auth = await unit_env.get(InMemoryGoTrueAdminClient)
        users = await unit_env.get(UserRepository)
        db = await unit_env.get(InMemoryDatabase)
        row = await users.insert(make_user("OLD-7", email="c@acme.com", name="Cy"))

        # Act
        report, after = await reconcile(unit_env, email=Email("c@acme.com"))

        # Assert
        assert report.action == "create_identity"
        assert report.issued_password is not None
        assert len(report.issued_password) == 20
        assert auth.passwords["OLD-7"] == report.issued_password
        identity = auth.identities["OLD-7"]
        assert identity.confirmed is True
        assert identity.tenant_hint == "acme"
        assert identity.metadata["name"] == "Cy"
        assert db.users["OLD-7"] == row
        assert after.classification == Classification.CONSISTENT

    @pytest.mark.asyncio
    async def test_supplied_password_is_not_echoed(self, unit_env):
        """Test an operator password is used and not reported back."""
        # Arrange
        auth = await unit_env.get(InMemoryGoTrueAdminClient)
        users = await unit_env.get(UserRepository)
        await users.insert(make_user("OLD-7", email="c@acme.com"))

        # Act
        report, _ = await reconcile(
            unit_env, email=Email("c@acme.com"), password="correct-horse"
        )

        # Assert
        assert report.issued_password is None
        assert auth.passwords["OLD-7"] == "correct-horse"

    @pytest.mark.asyncio
    async def test_provider_outage_fails_without_writes(self, unit_env):
        """Test a provider failure during create surfaces as a fetch failure."""
        # Arrange
        auth = await unit_env.get(InMemoryGoTrueAdminClient)
        users = await unit_env.get(UserRepository)
        reconciliation = await unit_env.get(ReconciliationService)
        repair = await unit_env.get(RepairService)
        await users.insert(make_user("OLD-7", email="c@acme.com"))
        diagnosis = await reconciliation.diagnose(ACME, Email("c@acme.com"))
        auth.unavailable = True

        # Act / Assert
        with pytest.raises(FetchFailureError):
            await repair.repair(diagnosis)
        assert auth.identities == {}


class TestProvision:
    """Tests for the ABSENT repair."""

    @pytest.mark.asyncio
    async def test_absent_without_provision_is_not_found(self, unit_env):
        """Test nothing is created unless provisioning is requested."""
        # Arrange
        auth = await unit_env.get(InMemoryGoTrueAdminClient)
        db = await unit_env.get(InMemoryDatabase)

        # Act / Assert
        with pytest.raises(NotFoundError):
            await reconcile(unit_env, email=Email("new@acme.com"))
        assert auth.identities == {}
        assert db.users == {}

    @pytest.mark.asyncio
    async def test_provision_requires_password(self, unit_env):
        """Test provisioning without a password is rejected."""
        with pytest.raises(ValidationError):
            await reconcile(unit_env, email=Email("new@acme.com"), provision=True)

    @pytest.mark.asyncio
    async def test_provision_creates_both_records(self, unit_env):
        """Test provisioning creates an identity and a matching row."""
        # Arrange
        auth = await unit_env.get(InMemoryGoTrueAdminClient)
        db = await unit_env.get(InMemoryDatabase)

        # Act
        report, after = await reconcile(
            unit_env,
            email=Email("new@acme.com"),
            password="correct-horse",
            provision=True,
        )

        # Assert
        assert report.action == "provision"
        assert after.classification == Classification.CONSISTENT
        external_id = report.identity.external_id
        assert external_id in auth.identities
        assert db.users[external_id].role == UserRole.SUPER_USER

    @pytest.mark.asyncio
    async def test_failed_insert_removes_created_identity(self, unit_env):
        """Test the identity is deleted again when the row cannot be stored."""
        # Arrange
        auth = await unit_env.get(InMemoryGoTrueAdminClient)
        reconciliation = await unit_env.get(ReconciliationService)
        repair = await unit_env.get(RepairService)
        db = await unit_env.get(InMemoryDatabase)
        diagnosis = await reconciliation.diagnose(ACME, Email("new@acme.com"))
        db.unavailable = True

        # Act / Assert
        with pytest.raises(FetchFailureError):
            await repair.repair(diagnosis, password="correct-horse", provision=True)
        assert auth.identities == {}


class TestDuplicates:
    """Tests for the DUPLICATE_APP outcome."""

    @pytest.mark.asyncio
    async def test_duplicates_are_reported_not_repaired(self, unit_env):
        """Test duplicate rows raise with every record and change nothing."""
        # Arrange
        auth = await unit_env.get(InMemoryGoTrueAdminClient)
        db = await unit_env.get(InMemoryDatabase)
        auth.add(make_identity("AUTH-1", "a@acme.com"))
        db.users["U-1"] = make_user("U-1")
        db.users["U-2"] = make_user("U-2", email="A@Acme.com")
        state_before = dict(db.users)

        # Act / Assert
        with pytest.raises(AmbiguousStateError) as exc_info:
            await reconcile(unit_env)

        assert {u.id for u in exc_info.value.records} == {"U-1", "U-2"}
        assert db.users == state_before
