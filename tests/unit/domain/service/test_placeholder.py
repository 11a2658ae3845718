"""Tests for placeholder email helpers."""

from recon.domain.service.placeholder import (
    is_placeholder_for,
    make_placeholder,
    placeholder_affixes,
)
from recon.domain.value import Email, UserId

EMAIL = Email("Alice.Smith@Acme.com")


class TestPlaceholder:
    """Tests for placeholder emails."""

    def test_make_placeholder_encodes_email_and_old_id(self):
        """Test the placeholder keeps local part and domain around tag and id."""
        placeholder = make_placeholder(EMAIL, UserId("OLD-5"), "reconcile")

        assert placeholder == "alice.smith+reconcile-old-5@acme.com"

    def test_placeholder_is_valid_email(self):
        """Test the placeholder parses as an email."""
        placeholder = make_placeholder(EMAIL, UserId("9f1c"), "reconcile")

        assert Email(placeholder).domain == "acme.com"

    def test_is_placeholder_for_recognizes_own_placeholder(self):
        """Test a generated placeholder is recognized, case-insensitively."""
        placeholder = make_placeholder(EMAIL, UserId("OLD-5"), "reconcile")

        assert is_placeholder_for(placeholder, EMAIL, "reconcile") is True
        assert is_placeholder_for(placeholder.upper(), EMAIL, "reconcile") is True

    def test_is_placeholder_for_rejects_other_addresses(self):
        """Test the original email, other tags and other domains are not placeholders."""
        assert is_placeholder_for(EMAIL.root, EMAIL, "reconcile") is False
        assert (
            is_placeholder_for("alice.smith+other-old-5@acme.com", EMAIL, "reconcile")
            is False
        )
        assert (
            is_placeholder_for("alice.smith+reconcile-old-5@beta.com", EMAIL, "reconcile")
            is False
        )
        assert is_placeholder_for("alice.smith+reconcile-@acme.com", EMAIL, "reconcile") is False

    def test_placeholder_affixes(self):
        """Test the prefix and suffix used for the store query."""
        assert placeholder_affixes(EMAIL, "reconcile") == (
            "alice.smith+reconcile-",
            "@acme.com",
        )
