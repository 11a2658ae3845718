"""Domain model entities."""

from recon.domain.model.auth_identity import AuthIdentity, IdentityPage
from recon.domain.model.dependent import UserProfile, UserSettings
from recon.domain.model.diagnosis import (
    Diagnosis,
    RepairReport,
    RepairStatus,
    RepairStep,
    Snapshot,
    StepKind,
)
from recon.domain.model.user import ApplicationUser

__all__ = [
    "ApplicationUser",
    "AuthIdentity",
    "IdentityPage",
    "UserSettings",
    "UserProfile",
    "Snapshot",
    "Diagnosis",
    "RepairReport",
    "RepairStatus",
    "RepairStep",
    "StepKind",
]
