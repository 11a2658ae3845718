"""Operator command line for tenant identity reconciliation.

Usage::

    recon diagnose --tenant acme --email a@acme.com
    recon reconcile --tenant acme --email a@acme.com [--password P] [--provision]
    recon audit --tenant acme
    recon list-users --tenant acme
    recon approve --tenant acme --email b@acme.com [--promote]
    recon set-password --tenant acme --email a@acme.com --password P
"""

import argparse
import asyncio
import sys
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, TextIO

import logfire
from dishka import AsyncContainer
from pydantic import BaseModel

from recon.adapter.error import ProviderError
from recon.application.usecase.reconcile import (
    AuditTenantRequest,
    AuditTenantUseCase,
    DiagnoseUserRequest,
    DiagnoseUserUseCase,
    ReconcileUserRequest,
    ReconcileUserUseCase,
)
from recon.application.usecase.user import (
    ApproveUserRequest,
    ApproveUserUseCase,
    ListUsersRequest,
    ListUsersUseCase,
    SetPasswordRequest,
    SetPasswordUseCase,
)
from recon.config import Settings
from recon.domain.error import (
    AmbiguousStateError,
    ConstraintViolationError,
    DomainError,
    FetchFailureError,
    NotFoundError,
    RepairAbortedError,
    ValidationError,
)
from recon.domain.value import Classification
from recon.interface.cli import report
from recon.util.di.container import create_container
from recon.util.error import ConfigurationError
from recon.util.logging import setup_logging
from recon.util.observability import configure_logfire

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2  # argparse exits with 2 on its own
EXIT_AMBIGUOUS = 3
EXIT_NOT_FOUND = 4
EXIT_FETCH_FAILURE = 5
EXIT_CONSTRAINT = 6
EXIT_VALIDATION = 7
EXIT_UNVERIFIED = 8  # repair ran but the re-fetch still diverges


@dataclass(frozen=True)
class Command:
    """Binds a subcommand to its use case, request and renderer."""

    use_case: type
    build_request: Callable[[argparse.Namespace], BaseModel]
    render: Callable[[Any], str]
    exit_code: Callable[[Any], int] = lambda response: EXIT_OK


def _reconcile_exit_code(response: Any) -> int:
    if response.verified_classification != Classification.CONSISTENT:
        return EXIT_UNVERIFIED
    return EXIT_OK


COMMANDS: dict[str, Command] = {
    "diagnose": Command(
        DiagnoseUserUseCase,
        lambda a: DiagnoseUserRequest(tenant_id=a.tenant, email=a.email),
        report.render_diagnosis,
    ),
    "reconcile": Command(
        ReconcileUserUseCase,
        lambda a: ReconcileUserRequest(
            tenant_id=a.tenant,
            email=a.email,
            password=a.password,
            provision=a.provision,
        ),
        report.render_reconcile,
        _reconcile_exit_code,
    ),
    "audit": Command(
        AuditTenantUseCase,
        lambda a: AuditTenantRequest(tenant_id=a.tenant),
        report.render_audit,
    ),
    "list-users": Command(
        ListUsersUseCase,
        lambda a: ListUsersRequest(tenant_id=a.tenant),
        report.render_user_list,
    ),
    "approve": Command(
        ApproveUserUseCase,
        lambda a: ApproveUserRequest(
            tenant_id=a.tenant, email=a.email, promote=a.promote
        ),
        report.render_approval,
    ),
    "set-password": Command(
        SetPasswordUseCase,
        lambda a: SetPasswordRequest(
            tenant_id=a.tenant, email=a.email, password=a.password
        ),
        report.render_password,
    ),
}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="recon",
        description="Reconcile auth identities with tenant user rows",
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Show every span and event"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    def add(name: str, help_text: str, with_email: bool = True) -> argparse.ArgumentParser:
        sub = commands.add_parser(name, help=help_text)
        sub.add_argument("--tenant", required=True, help="Tenant identifier")
        if with_email:
            sub.add_argument("--email", required=True, help="User email")
        return sub

    add("diagnose", "Classify one user without writing anything")

    reconcile = add("reconcile", "Classify one user and repair the divergence")
    reconcile.add_argument(
        "--password", help="Password for an auth identity that has to be created"
    )
    reconcile.add_argument(
        "--provision",
        action="store_true",
        help="Create both records when neither exists (needs --password)",
    )

    add("audit", "Cross-reference every user of a tenant", with_email=False)
    add("list-users", "List users of a tenant", with_email=False)

    approve = add("approve", "Activate a user pending approval")
    approve.add_argument(
        "--promote", action="store_true", help="Also grant super_user"
    )

    set_password = add("set-password", "Set the auth password of a tenant user")
    set_password.add_argument("--password", required=True, help="New password")
    return parser


def exit_code_for(error: Exception) -> int:
    """Exit code reported for a failed command."""
    if isinstance(error, (RepairAbortedError, ConstraintViolationError)):
        return EXIT_CONSTRAINT
    if isinstance(error, AmbiguousStateError):
        return EXIT_AMBIGUOUS
    if isinstance(error, NotFoundError):
        return EXIT_NOT_FOUND
    if isinstance(error, (FetchFailureError, ProviderError)):
        return EXIT_FETCH_FAILURE
    if isinstance(error, ValidationError):
        return EXIT_VALIDATION
    return EXIT_ERROR


async def execute(container: AsyncContainer, use_case_type: type, request: BaseModel) -> Any:
    """Run one use case in its own request scope (one database transaction).

    An aborted repair is re-raised only after the scope has closed, so the
    steps it completed are committed and the next run can resume them.
    Every other failure rolls the transaction back.
    """
    aborted: Optional[RepairAbortedError] = None
    async with container() as request_container:
        use_case = await request_container.get(use_case_type)
        try:
            response = await use_case.execute(request)
        except RepairAbortedError as e:
            aborted = e
    if aborted is not None:
        raise aborted
    return response


async def run(
    args: argparse.Namespace, container: AsyncContainer, out: TextIO = sys.stdout
) -> int:
    """Run a parsed command against a container and print the outcome.

    Returns:
        Process exit code
    """
    command = COMMANDS[args.command]
    with logfire.span("recon.cli", command=args.command):
        try:
            response = await execute(
                container, command.use_case, command.build_request(args)
            )
        except (DomainError, ProviderError, ConfigurationError) as e:
            code = exit_code_for(e)
            logfire.warn(
                "Command failed",
                command=args.command,
                error=str(e),
                error_type=type(e).__name__,
                exit_code=code,
            )
            print(report.render_error(e), file=out)
            return code
    print(command.render(response), file=out)
    code = command.exit_code(response)
    if code != EXIT_OK:
        logfire.warn(
            "Command finished unverified",
            command=args.command,
            exit_code=code,
        )
    return code


async def _main(args: argparse.Namespace) -> int:
    container = create_container()
    try:
        return await run(args, container)
    finally:
        await container.close()


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    settings = Settings()
    setup_logging(settings, verbose=args.verbose)
    configure_logfire(settings, verbose=args.verbose)

    try:
        return asyncio.run(_main(args))
    except Exception as e:
        logfire.error(
            "Command crashed",
            command=args.command,
            error=str(e),
            error_type=type(e).__name__,
            _exc_info=sys.exc_info(),
        )
        print(f"recon {args.command} failed: {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
