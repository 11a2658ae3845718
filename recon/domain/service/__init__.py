"""Domain services."""

from .auth_identity_service import AuthAdminClient, AuthIdentityService
from .base import Service
from .classifier import classify
from .reconciliation_service import ReconciliationService
from .repair_service import RepairService
from .user_service import UserService

__all__ = [
    "AuthAdminClient",
    "AuthIdentityService",
    "ReconciliationService",
    "RepairService",
    "Service",
    "UserService",
    "classify",
]
