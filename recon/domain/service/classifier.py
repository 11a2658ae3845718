"""Divergence classifier.

Pure function over a Snapshot: no I/O, no logging, no clock. Every
combination of presence on the two sides maps to exactly one
Classification.
"""

from recon.domain.model.diagnosis import Diagnosis, Snapshot
from recon.domain.value import Classification


def classify(snapshot: Snapshot) -> Diagnosis:
    """Classify the divergence between auth identity and application rows.

    Rules, first match wins:

    1. More than one app row, or more than one placeholder row:
       DUPLICATE_APP.
    2. Auth and app row present:
       - ids equal, no placeholder: CONSISTENT
       - ids equal, placeholder left over: ID_MISMATCH (resume)
       - ids differ, no placeholder: ID_MISMATCH
       - ids differ, placeholder present: DUPLICATE_APP (two candidates)
    3. Auth present, no app row: ID_MISMATCH (resume) with a placeholder,
       AUTH_ONLY without.
    4. App row present, no auth: APP_ONLY.
    5. Nothing present: ABSENT.

    Args:
        snapshot: Records fetched for one (tenant, email) pair

    Returns:
        Diagnosis carrying the classification and the records to act on
    """
    identity = snapshot.auth_identity
    users = snapshot.app_users
    placeholders = snapshot.placeholders
    base = {
        "tenant_id": snapshot.tenant_id,
        "email": snapshot.email,
        "auth_identity": identity,
    }

    if len(users) > 1:
        return Diagnosis(
            classification=Classification.DUPLICATE_APP,
            duplicates=[*users, *placeholders],
            reason=f"{len(users)} user rows share this email in the tenant",
            **base,
        )
    if len(placeholders) > 1:
        return Diagnosis(
            classification=Classification.DUPLICATE_APP,
            app_user=users[0] if users else None,
            duplicates=[*users, *placeholders],
            reason=f"{len(placeholders)} rows are parked under placeholder emails",
            **base,
        )

    user = users[0] if users else None
    placeholder = placeholders[0] if placeholders else None

    if identity is not None and user is not None:
        if user.id == identity.external_id:
            if placeholder is None:
                return Diagnosis(
                    classification=Classification.CONSISTENT,
                    app_user=user,
                    reason="user id matches auth id",
                    **base,
                )
            return Diagnosis(
                classification=Classification.ID_MISMATCH,
                app_user=user,
                placeholder=placeholder,
                reason=(
                    f"interrupted id rewrite: row {placeholder.id} still parked "
                    "under a placeholder email"
                ),
                **base,
            )
        if placeholder is not None:
            return Diagnosis(
                classification=Classification.DUPLICATE_APP,
                app_user=user,
                duplicates=[user, placeholder],
                reason=(
                    f"user id {user.id} differs from auth id {identity.external_id} "
                    f"and row {placeholder.id} is parked under a placeholder email"
                ),
                **base,
            )
        return Diagnosis(
            classification=Classification.ID_MISMATCH,
            app_user=user,
            reason=f"user id {user.id} differs from auth id {identity.external_id}",
            **base,
        )

    if identity is not None:
        if placeholder is not None:
            return Diagnosis(
                classification=Classification.ID_MISMATCH,
                placeholder=placeholder,
                reason=(
                    f"interrupted id rewrite: only row {placeholder.id} under a "
                    "placeholder email remains"
                ),
                **base,
            )
        return Diagnosis(
            classification=Classification.AUTH_ONLY,
            reason="auth identity has no user row in the tenant",
            **base,
        )

    if user is not None:
        return Diagnosis(
            classification=Classification.APP_ONLY,
            app_user=user,
            placeholder=placeholder,
            reason="user row has no auth identity",
            **base,
        )

    return Diagnosis(
        classification=Classification.ABSENT,
        placeholder=placeholder,
        reason="no auth identity and no user row",
        **base,
    )
