"""Repair dispatcher for the reconciliation procedure.

Each classification maps to exactly one repair. All I/O of the procedure
happens here; the classifier stays pure.
"""

import secrets
from typing import Optional

import logfire

from recon.domain.error import (
    AmbiguousStateError,
    ConstraintViolationError,
    FetchFailureError,
    NotFoundError,
    RepairAbortedError,
    ValidationError,
)
from recon.domain.model.diagnosis import (
    Diagnosis,
    RepairReport,
    RepairStatus,
    RepairStep,
    StepKind,
)
from recon.domain.service.auth_identity_service import AuthIdentityService
from recon.domain.service.placeholder import is_placeholder_for, make_placeholder
from recon.domain.service.user_service import UserService
from recon.domain.value import Classification, ExternalId, UserId

from .base import Service


class _AuditTrail:
    """Collects the steps of one repair and mirrors them to the log."""

    def __init__(self, diagnosis: Diagnosis) -> None:
        self.steps: list[RepairStep] = []
        self._attributes = {
            "tenant_id": diagnosis.tenant_id.root,
            "email": diagnosis.email.root,
            "classification": diagnosis.classification.value,
        }

    def record(self, kind: StepKind, action: str, detail: str) -> None:
        self.steps.append(RepairStep(kind=kind, action=action, detail=detail))
        logfire.info(
            "Repair step",
            kind=kind.value,
            action=action,
            detail=detail,
            **self._attributes,
        )


class RepairService(Service):
    """Applies the repair that matches a diagnosis."""

    def __init__(
        self,
        user_service: UserService,
        auth_identity_service: AuthIdentityService,
        placeholder_tag: str,
        generated_password_length: int = 20,
    ) -> None:
        """Initialize repair service.

        Args:
            user_service: User domain service
            auth_identity_service: Auth identity domain service
            placeholder_tag: Tag used in placeholder emails
            generated_password_length: Length of generated passwords
        """
        self.user_service = user_service
        self.auth_identity_service = auth_identity_service
        self.placeholder_tag = placeholder_tag
        self.generated_password_length = generated_password_length

    async def repair(
        self,
        diagnosis: Diagnosis,
        password: Optional[str] = None,
        provision: bool = False,
    ) -> RepairReport:
        """Dispatch a diagnosis to its repair.

        Args:
            diagnosis: Output of the classifier
            password: Operator-supplied password for identities that must
                be created (AppOnly, provisioning an Absent pair)
            provision: Whether an Absent pair may be created from scratch

        Returns:
            Report of what was read and written

        Raises:
            AmbiguousStateError: For DUPLICATE_APP
            NotFoundError: For ABSENT without provisioning
            RepairAbortedError: If an id rewrite stops before its delete
        """
        with logfire.span(
            "repair_service.repair",
            tenant_id=diagnosis.tenant_id.root,
            email=diagnosis.email.root,
            classification=diagnosis.classification.value,
        ):
            match diagnosis.classification:
                case Classification.CONSISTENT:
                    return self._healthy(diagnosis)
                case Classification.ID_MISMATCH:
                    return await self._rewrite_id(diagnosis)
                case Classification.AUTH_ONLY:
                    return await self._create_user(diagnosis)
                case Classification.APP_ONLY:
                    return await self._create_identity(diagnosis, password)
                case Classification.ABSENT:
                    return await self._provision(diagnosis, password, provision)
                case Classification.DUPLICATE_APP:
                    logfire.warn(
                        "Duplicate user rows need an operator decision",
                        tenant_id=diagnosis.tenant_id.root,
                        email=diagnosis.email.root,
                        user_ids=[u.id for u in diagnosis.duplicates],
                    )
                    raise AmbiguousStateError(diagnosis.reason, diagnosis.duplicates)
            raise ValueError(f"Unhandled classification: {diagnosis.classification}")

    def _healthy(self, diagnosis: Diagnosis) -> RepairReport:
        trail = _AuditTrail(diagnosis)
        trail.record(StepKind.SKIP, "none", diagnosis.reason)
        return RepairReport(
            classification=diagnosis.classification,
            status=RepairStatus.HEALTHY,
            action="none",
            steps=trail.steps,
            user=diagnosis.app_user,
            identity=diagnosis.auth_identity,
        )

    async def _rewrite_id(self, diagnosis: Diagnosis) -> RepairReport:
        """Move a user row to the auth identity's id.

        Steps run in a fixed order and each is skipped when a previous,
        interrupted run already did it:

        1. park: rename the old row's email to a placeholder
        2. insert: create the row under the auth id with the real email
        3. repoint: move user_settings, user_profiles and the bootstrap claim
        4. delete: remove the old row

        Any store failure before the delete aborts the run and leaves
        the old row in place under its placeholder email.
        """
        identity = diagnosis.auth_identity
        source = diagnosis.repair_source
        if identity is None or source is None:
            raise ValueError("Id rewrite needs both an auth identity and a user row")

        tenant_id = diagnosis.tenant_id
        email = diagnosis.email
        target_id = UserId(identity.external_id)
        trail = _AuditTrail(diagnosis)
        completed: list[str] = []
        step = "park"

        try:
            if is_placeholder_for(source.email.root, email, self.placeholder_tag):
                trail.record(
                    StepKind.SKIP, "park", f"row {source.id} already at {source.email}"
                )
            else:
                placeholder = make_placeholder(email, source.id, self.placeholder_tag)
                source = await self.user_service.change_email(
                    tenant_id, source.id, placeholder
                )
                trail.record(
                    StepKind.WRITE, "park", f"users.{source.id} email -> {placeholder}"
                )
            completed.append(step)

            step = "insert"
            existing = await self.user_service.find_by_id(tenant_id, target_id)
            trail.record(
                StepKind.READ,
                "insert",
                f"users.{target_id} {'exists' if existing else 'missing'}",
            )
            if existing is None:
                replacement = await self.user_service.insert_replacement(
                    source, target_id, email
                )
                trail.record(
                    StepKind.WRITE,
                    "insert",
                    f"users.{replacement.id} inserted for {email} "
                    f"(role={replacement.role.value}, active={replacement.is_active})",
                )
            elif existing.email == email:
                replacement = existing
                trail.record(
                    StepKind.SKIP, "insert", f"users.{target_id} already holds {email}"
                )
            else:
                raise ConstraintViolationError(
                    "users_pkey",
                    f"id {target_id} already belongs to {existing.email}",
                )
            completed.append(step)

            step = "repoint"
            moved = await self.user_service.repoint_references(
                tenant_id, source.id, target_id
            )
            for table, count in moved.items():
                trail.record(
                    StepKind.WRITE,
                    "repoint",
                    f"{table}: {count} row(s) {source.id} -> {target_id}",
                )
            completed.append(step)

            step = "delete"
            await self.user_service.delete(tenant_id, source.id)
            trail.record(StepKind.WRITE, "delete", f"users.{source.id} deleted")
            completed.append(step)
        except (ConstraintViolationError, FetchFailureError, NotFoundError) as e:
            logfire.error(
                "Id rewrite aborted before deleting the old row",
                tenant_id=tenant_id.root,
                email=email.root,
                step=step,
                completed=completed,
                error=str(e),
            )
            raise RepairAbortedError(step, completed, e) from e

        return RepairReport(
            classification=diagnosis.classification,
            status=RepairStatus.REPAIRED,
            action="rewrite_id",
            steps=trail.steps,
            user=replacement,
            identity=identity,
        )

    async def _create_user(self, diagnosis: Diagnosis) -> RepairReport:
        """Create the missing user row for an auth identity."""
        identity = diagnosis.auth_identity
        if identity is None:
            raise ValueError("AuthOnly repair needs an auth identity")
        trail = _AuditTrail(diagnosis)
        user = await self.user_service.register(
            diagnosis.tenant_id,
            UserId(identity.external_id),
            diagnosis.email,
            name=identity.metadata.get("name"),
        )
        trail.record(
            StepKind.WRITE,
            "create_user",
            f"users.{user.id} inserted (role={user.role.value}, active={user.is_active})",
        )
        return RepairReport(
            classification=diagnosis.classification,
            status=RepairStatus.REPAIRED,
            action="create_user",
            steps=trail.steps,
            user=user,
            identity=identity,
        )

    async def _create_identity(
        self, diagnosis: Diagnosis, password: Optional[str]
    ) -> RepairReport:
        """Create the missing auth identity for a user row.

        The user row is left untouched; the identity is requested under
        the row's id so the two line up.
        """
        user = diagnosis.app_user
        if user is None:
            raise ValueError("AppOnly repair needs a user row")
        trail = _AuditTrail(diagnosis)
        issued = None
        if password is None:
            issued = password = self._generate_password()
        identity = await self.auth_identity_service.create(
            diagnosis.email,
            password,
            diagnosis.tenant_id,
            name=user.name,
            external_id=ExternalId(user.id),
        )
        trail.record(
            StepKind.WRITE,
            "create_identity",
            f"auth identity {identity.external_id} created for {identity.email}",
        )
        if identity.external_id != user.id:
            trail.record(
                StepKind.SKIP,
                "create_identity",
                f"provider assigned id {identity.external_id} instead of {user.id}; "
                "run reconcile again to move the user row",
            )
        return RepairReport(
            classification=diagnosis.classification,
            status=RepairStatus.REPAIRED,
            action="create_identity",
            steps=trail.steps,
            user=user,
            identity=identity,
            issued_password=issued,
        )

    async def _provision(
        self, diagnosis: Diagnosis, password: Optional[str], provision: bool
    ) -> RepairReport:
        """Create both records for an email that exists nowhere.

        Only done on explicit operator request with a password. If the user
        row cannot be inserted, the identity created for it is removed.
        """
        if not provision:
            raise NotFoundError(
                "Auth identity and user", f"{diagnosis.email} in tenant {diagnosis.tenant_id}"
            )
        if not password:
            raise ValidationError("Provisioning a new user requires a password")

        trail = _AuditTrail(diagnosis)
        identity = await self.auth_identity_service.create(
            diagnosis.email, password, diagnosis.tenant_id
        )
        trail.record(
            StepKind.WRITE,
            "create_identity",
            f"auth identity {identity.external_id} created for {identity.email}",
        )
        try:
            user = await self.user_service.register(
                diagnosis.tenant_id, UserId(identity.external_id), diagnosis.email
            )
        except (ConstraintViolationError, FetchFailureError):
            await self.auth_identity_service.delete(identity.external_id)
            trail.record(
                StepKind.WRITE,
                "rollback",
                f"auth identity {identity.external_id} deleted after failed insert",
            )
            raise
        trail.record(
            StepKind.WRITE,
            "create_user",
            f"users.{user.id} inserted (role={user.role.value}, active={user.is_active})",
        )
        return RepairReport(
            classification=diagnosis.classification,
            status=RepairStatus.REPAIRED,
            action="provision",
            steps=trail.steps,
            user=user,
            identity=identity,
        )

    def _generate_password(self) -> str:
        return secrets.token_urlsafe(self.generated_password_length)[
            : self.generated_password_length
        ]
