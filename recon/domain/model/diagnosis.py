"""Reconciliation snapshot, diagnosis and repair report."""

from enum import Enum
from typing import Optional

from pydantic import Field

from recon.domain.model.auth_identity import AuthIdentity
from recon.domain.model.common import DomainModel
from recon.domain.model.user import ApplicationUser
from recon.domain.value import Classification, Email, TenantId


class Snapshot(DomainModel):
    """What the stores returned for one (tenant, email) pair.

    ``auth_identity`` is None when the provider has no identity for the
    email. ``app_users`` holds every row in the tenant whose email matches
    case-insensitively; ``placeholders`` holds rows parked under a
    placeholder email by an interrupted id rewrite.
    """

    tenant_id: TenantId
    email: Email
    auth_identity: Optional[AuthIdentity] = None
    app_users: list[ApplicationUser] = Field(default_factory=list)
    placeholders: list[ApplicationUser] = Field(default_factory=list)


class Diagnosis(DomainModel):
    """Classification of a snapshot plus the records the repair acts on."""

    classification: Classification
    tenant_id: TenantId
    email: Email
    auth_identity: Optional[AuthIdentity] = None
    app_user: Optional[ApplicationUser] = None
    placeholder: Optional[ApplicationUser] = None
    duplicates: list[ApplicationUser] = Field(default_factory=list)
    reason: str = ""

    @property
    def is_resume(self) -> bool:
        """True when an earlier id rewrite left a placeholder row behind."""
        return (
            self.classification == Classification.ID_MISMATCH
            and self.placeholder is not None
        )

    @property
    def repair_source(self) -> Optional[ApplicationUser]:
        """Row whose id is being replaced during an id rewrite."""
        return self.placeholder or self.app_user


class RepairStatus(str, Enum):
    """Outcome of a repair attempt."""

    HEALTHY = "healthy"
    REPAIRED = "repaired"


class StepKind(str, Enum):
    READ = "read"
    WRITE = "write"
    SKIP = "skip"


class RepairStep(DomainModel):
    """One audited read or write performed during a run."""

    kind: StepKind
    action: str
    detail: str


class RepairReport(DomainModel):
    """Result of dispatching a diagnosis to its repair."""

    classification: Classification
    status: RepairStatus
    action: str
    steps: list[RepairStep] = Field(default_factory=list)
    user: Optional[ApplicationUser] = None
    identity: Optional[AuthIdentity] = None
    issued_password: Optional[str] = None  # Only set when one was generated
