"""Standard library logging for the command line tool."""

import logging
import sys

from recon.config import Settings

# Chatty dependencies capped at WARNING regardless of the run's level.
_QUIET_LOGGERS = ("httpx", "httpcore", "asyncpg")


def _level_for(settings: Settings, verbose: bool) -> int:
    if verbose or settings.debug:
        return logging.DEBUG
    if settings.environment == "production":
        return logging.WARNING
    return logging.INFO


def setup_logging(settings: Settings, verbose: bool = False) -> None:
    """Route log records to stderr so stdout carries only the report.

    Args:
        settings: Application settings
        verbose: Operator passed ``--verbose``
    """
    level = _level_for(settings, verbose)

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
        force=True,
    )

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("recon").setLevel(level)

    logging.getLogger(__name__).debug(
        "Logging ready: environment=%s level=%s",
        settings.environment,
        logging.getLevelName(level),
    )
