"""Reconciliation use cases."""

from .audit_tenant import AuditTenantRequest, AuditTenantResponse, AuditTenantUseCase
from .diagnose import DiagnoseUserRequest, DiagnoseUserResponse, DiagnoseUserUseCase
from .reconcile_user import (
    ReconcileUserRequest,
    ReconcileUserResponse,
    ReconcileUserUseCase,
)

__all__ = [
    "AuditTenantRequest",
    "AuditTenantResponse",
    "AuditTenantUseCase",
    "DiagnoseUserRequest",
    "DiagnoseUserResponse",
    "DiagnoseUserUseCase",
    "ReconcileUserRequest",
    "ReconcileUserResponse",
    "ReconcileUserUseCase",
]
