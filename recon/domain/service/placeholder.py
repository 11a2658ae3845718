"""Placeholder emails used while a user row's id is rewritten.

The old row is parked under ``<local>+<tag>-<old_id>@<domain>`` so the
original address is free for the row created under the correct id. The
address stays a syntactically valid email and encodes the original one,
which lets an interrupted rewrite be found and resumed.
"""

from recon.domain.value import Email, UserId


def placeholder_affixes(email: Email, tag: str) -> tuple[str, str]:
    """Return the literal (prefix, suffix) shared by every placeholder of email."""
    return f"{email.local_part}+{tag}-", f"@{email.domain}"


def make_placeholder(email: Email, old_user_id: UserId, tag: str) -> str:
    """Build the placeholder address for a row being replaced."""
    prefix, suffix = placeholder_affixes(email, tag)
    return f"{prefix}{str(old_user_id).lower()}{suffix}"


def is_placeholder_for(candidate: str, email: Email, tag: str) -> bool:
    """Check whether candidate is a placeholder parked for email."""
    prefix, suffix = placeholder_affixes(email, tag)
    candidate = candidate.lower()
    return (
        candidate.startswith(prefix)
        and candidate.endswith(suffix)
        and len(candidate) > len(prefix) + len(suffix)
    )
