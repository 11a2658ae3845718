"""Human readable rendering of use case responses and errors."""

from typing import Any

from recon.adapter.error import ProviderError
from recon.application.usecase.common import IdentityItem, UserItem
from recon.application.usecase.reconcile import (
    AuditTenantResponse,
    DiagnoseUserResponse,
    ReconcileUserResponse,
)
from recon.application.usecase.user import (
    ApproveUserResponse,
    ListUsersResponse,
    SetPasswordResponse,
)
from recon.domain.error import (
    AmbiguousStateError,
    RepairAbortedError,
)
from recon.domain.model import ApplicationUser, AuthIdentity
from recon.domain.value import Classification


def _user(item: UserItem) -> str:
    state = "active" if item.is_active else "inactive"
    name = f" ({item.name})" if item.name else ""
    return f"{item.user_id}  {item.email}{name}  {item.role}/{state}"


def _identity(item: IdentityItem) -> str:
    confirmed = "confirmed" if item.confirmed else "unconfirmed"
    tenant = f"  tenant={item.tenant_hint}" if item.tenant_hint else ""
    return f"{item.external_id}  {item.email}  {confirmed}{tenant}"


def _record(record: Any) -> str:
    if isinstance(record, ApplicationUser):
        return _user(UserItem.from_user(record))
    if isinstance(record, AuthIdentity):
        return _identity(IdentityItem.from_identity(record))
    return str(record)


def render_diagnosis(response: DiagnoseUserResponse) -> str:
    lines = [
        f"tenant:         {response.tenant_id}",
        f"email:          {response.email}",
        f"classification: {response.classification.value}",
        f"reason:         {response.reason}",
        f"auth identity:  {_identity(response.identity) if response.identity else '-'}",
        f"user row:       {_user(response.user) if response.user else '-'}",
    ]
    if response.placeholder:
        lines.append(f"parked row:     {_user(response.placeholder)}")
    for duplicate in response.duplicates:
        lines.append(f"duplicate:      {_user(duplicate)}")
    return "\n".join(lines)


def render_reconcile(response: ReconcileUserResponse) -> str:
    lines = [
        f"tenant:         {response.tenant_id}",
        f"email:          {response.email}",
        f"classification: {response.classification.value}",
        f"reason:         {response.reason}",
        f"status:         {response.status.value} ({response.action})",
        "steps:",
    ]
    lines.extend(
        f"  [{step.kind.value:>5}] {step.action}: {step.detail}" for step in response.steps
    )
    if response.user:
        lines.append(f"user row:       {_user(response.user)}")
    if response.identity:
        lines.append(f"auth identity:  {_identity(response.identity)}")
    if response.issued_password:
        lines.append(f"password:       {response.issued_password}  (shown once)")
    verified = response.verified_classification
    if verified == Classification.CONSISTENT:
        lines.append("verified:       consistent")
    else:
        lines.append(f"verified:       {verified.value} (run reconcile again)")
    return "\n".join(lines)


def render_audit(response: AuditTenantResponse) -> str:
    lines = [
        f"tenant:      {response.tenant_id}",
        f"users:       {response.total_users}",
        f"consistent:  {response.consistent}",
    ]

    def section(title: str, entries: list[str]) -> None:
        lines.append(f"{title}: {len(entries)}")
        lines.extend(f"  {entry}" for entry in entries)

    section(
        "id mismatches",
        [f"{_user(m.user)}  <- auth {m.identity.external_id}" for m in response.id_mismatches],
    )
    section("user rows without identity", [_user(u) for u in response.app_only])
    section("identities without user row", [_identity(i) for i in response.auth_only])
    section(
        "duplicate emails",
        [
            f"{d.email}: {', '.join(u.user_id for u in d.users)}"
            for d in response.duplicates
        ],
    )
    section("interrupted repairs", [_user(u) for u in response.interrupted])
    section("pending approval", [_user(u) for u in response.pending_approval])
    lines.append("healthy" if response.healthy else "divergences found")
    return "\n".join(lines)


def render_user_list(response: ListUsersResponse) -> str:
    lines = [f"tenant: {response.tenant_id}  users: {response.total}"]
    for user in response.users:
        counts = " ".join(f"{table}={count}" for table, count in user.dependents.items())
        pending = "  pending approval" if user.pending_approval else ""
        lines.append(f"  {_user(user)}  {counts}{pending}")
    return "\n".join(lines)


def render_approval(response: ApproveUserResponse) -> str:
    state = "active" if response.was_active else "inactive"
    return (
        f"approved: {_user(response.user)}\n"
        f"previous: {response.previous_role}/{state}"
    )


def render_password(response: SetPasswordResponse) -> str:
    lines = [f"password updated for {response.email} (auth id {response.external_id})"]
    if not response.ids_match:
        lines.append("warning: user row id differs from auth id; run reconcile")
    return "\n".join(lines)


def render_error(error: Exception) -> str:
    """Describe a failed command for the operator."""
    lines = [f"error: {error}"]
    if isinstance(error, AmbiguousStateError):
        lines.append("manual decision required; records involved:")
        lines.extend(f"  {_record(record)}" for record in error.records)
    elif isinstance(error, RepairAbortedError):
        completed = ", ".join(error.completed_steps) or "none"
        lines.append(f"completed steps: {completed}")
        lines.append("the old user row was not deleted; rerun reconcile to resume")
    elif isinstance(error, ProviderError):
        lines.append("the auth provider answered with something unexpected")
    return "\n".join(lines)
