"""Tests for the divergence classifier."""

from recon.domain.model import Snapshot
from recon.domain.service import classify
from recon.domain.value import Classification, Email, TenantId
from tests.conftest import make_identity, make_user

TENANT = TenantId("acme")
EMAIL = Email("a@acme.com")


def snapshot(identity=None, users=(), placeholders=()) -> Snapshot:
    return Snapshot(
        tenant_id=TENANT,
        email=EMAIL,
        auth_identity=identity,
        app_users=list(users),
        placeholders=list(placeholders),
    )


class TestClassify:
    """Tests for classify()."""

    def test_matching_ids_are_consistent(self):
        """Test identity and row with the same id are consistent."""
        # Arrange
        identity = make_identity("AUTH-1")
        user = make_user("AUTH-1")

        # Act
        diagnosis = classify(snapshot(identity, [user]))

        # Assert
        assert diagnosis.classification == Classification.CONSISTENT
        assert diagnosis.app_user == user
        assert diagnosis.is_resume is False

    def test_differing_ids_are_id_mismatch(self):
        """Test a row under another id than the identity is an id mismatch."""
        # Arrange
        identity = make_identity("AUTH-1")
        user = make_user("OLD-5")

        # Act
        diagnosis = classify(snapshot(identity, [user]))

        # Assert
        assert diagnosis.classification == Classification.ID_MISMATCH
        assert diagnosis.repair_source == user
        assert "OLD-5" in diagnosis.reason
        assert "AUTH-1" in diagnosis.reason

    def test_identity_without_row_is_auth_only(self):
        """Test an identity with no row in the tenant is auth only."""
        # Act
        diagnosis = classify(snapshot(make_identity("AUTH-9")))

        # Assert
        assert diagnosis.classification == Classification.AUTH_ONLY
        assert diagnosis.app_user is None

    def test_row_without_identity_is_app_only(self):
        """Test a row with no identity is app only."""
        # Arrange
        user = make_user("OLD-7")

        # Act
        diagnosis = classify(snapshot(users=[user]))

        # Assert
        assert diagnosis.classification == Classification.APP_ONLY
        assert diagnosis.app_user == user

    def test_nothing_present_is_absent(self):
        """Test an email known to neither store is absent."""
        diagnosis = classify(snapshot())

        assert diagnosis.classification == Classification.ABSENT

    def test_two_rows_are_duplicate_app(self):
        """Test two rows sharing the email are duplicates, with or without identity."""
        # Arrange
        rows = [make_user("U-1"), make_user("U-2")]

        # Act
        with_identity = classify(snapshot(make_identity("U-1"), rows))
        without_identity = classify(snapshot(users=rows))

        # Assert
        for diagnosis in (with_identity, without_identity):
            assert diagnosis.classification == Classification.DUPLICATE_APP
            assert [u.id for u in diagnosis.duplicates] == ["U-1", "U-2"]

    def test_placeholder_only_is_resumed_id_mismatch(self):
        """Test an identity whose row is parked resumes the id rewrite."""
        # Arrange
        parked = make_user("OLD-5", email="a+reconcile-old-5@acme.com")

        # Act
        diagnosis = classify(snapshot(make_identity("AUTH-1"), placeholders=[parked]))

        # Assert
        assert diagnosis.classification == Classification.ID_MISMATCH
        assert diagnosis.is_resume is True
        assert diagnosis.repair_source == parked

    def test_new_row_and_placeholder_is_resumed_id_mismatch(self):
        """Test a rewrite interrupted after the insert is resumed."""
        # Arrange
        parked = make_user("OLD-5", email="a+reconcile-old-5@acme.com")
        replacement = make_user("AUTH-1")

        # Act
        diagnosis = classify(
            snapshot(make_identity("AUTH-1"), [replacement], [parked])
        )

        # Assert
        assert diagnosis.classification == Classification.ID_MISMATCH
        assert diagnosis.is_resume is True
        assert diagnosis.app_user == replacement
        assert diagnosis.repair_source == parked

    def test_mismatched_row_and_placeholder_is_duplicate_app(self):
        """Test two candidate rows for a rewrite need an operator decision."""
        # Arrange
        parked = make_user("OLD-5", email="a+reconcile-old-5@acme.com")
        other = make_user("OLD-6")

        # Act
        diagnosis = classify(snapshot(make_identity("AUTH-1"), [other], [parked]))

        # Assert
        assert diagnosis.classification == Classification.DUPLICATE_APP
        assert {u.id for u in diagnosis.duplicates} == {"OLD-5", "OLD-6"}

    def test_two_placeholders_are_duplicate_app(self):
        """Test two parked rows for one email are duplicates."""
        parked = [
            make_user("OLD-5", email="a+reconcile-old-5@acme.com"),
            make_user("OLD-6", email="a+reconcile-old-6@acme.com"),
        ]

        diagnosis = classify(snapshot(make_identity("AUTH-1"), placeholders=parked))

        assert diagnosis.classification == Classification.DUPLICATE_APP

    def test_classification_is_deterministic(self):
        """Test the same snapshot always yields the same diagnosis."""
        state = snapshot(make_identity("AUTH-1"), [make_user("OLD-5")])

        assert classify(state) == classify(state)
