"""Observability configuration using Logfire.

Every service call runs in a span and every read or write of the
reconciliation procedure is a structured event, so a run can be audited
after the fact::

    import logfire

    with logfire.span("user_service.register", tenant_id=tenant.root):
        logfire.info("User registered", user_id=user.id, role=user.role.value)
"""

import sys

import logfire
from sqlalchemy.ext.asyncio import AsyncEngine

from recon.config import ObservabilitySettings, Settings


def _sends_to_cloud(observability: ObservabilitySettings) -> bool:
    """Explicit OBSERVABILITY__SEND_TO_LOGFIRE wins, else send iff a token is set."""
    if observability.send_to_logfire is not None:
        return observability.send_to_logfire
    return bool(observability.logfire_token)


def configure_logfire(settings: Settings, verbose: bool = False) -> None:
    """Configure Logfire for a CLI run.

    The console stream goes to stderr so stdout carries only the report.
    Without ``verbose`` the console shows warnings and errors only; spans
    and info events still reach Logfire cloud when a token is configured.

    Args:
        settings: Application settings
        verbose: Operator asked for every span and event on the console
    """
    observability = settings.observability
    send_to_logfire = _sends_to_cloud(observability)

    logfire.configure(
        service_name="recon",
        service_version="0.1.0",
        environment=settings.environment,
        send_to_logfire=send_to_logfire,
        token=observability.logfire_token or None,
        console=logfire.ConsoleOptions(
            colors="auto",
            span_style="show-parents",
            include_timestamps=True,
            verbose=verbose or settings.debug,
            min_log_level="debug" if verbose else "warn",
            output=sys.stderr,
        ),
    )

    logfire.info(
        "Observability configured",
        environment=settings.environment,
        send_to_logfire=send_to_logfire,
        verbose=verbose,
    )


def instrument_sqlalchemy(engine: AsyncEngine) -> None:
    """Trace every SQL statement, including the SAVEPOINTs around repair steps."""
    logfire.instrument_sqlalchemy(
        engine=engine.sync_engine,
        enable_commenter=True,  # Add SQL comments with span context
    )
    logfire.info("SQLAlchemy instrumented")


def instrument_httpx() -> None:
    """Trace every call to the auth provider admin API."""
    logfire.instrument_httpx()
    logfire.info("httpx instrumented")
