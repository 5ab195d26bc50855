"""Structured logging configuration.

Repository events are logged through structlog as JSON lines on stderr,
so they never mix with command output written to stdout.
"""

from __future__ import annotations

import sys
from typing import Any

import structlog

from datarepo.core.exceptions import ConfigurationError


DEFAULT_LOG_LEVEL = "WARNING"

_LEVELS = {
    "DEBUG": 10,
    "INFO": 20,
    "WARNING": 30,
    "ERROR": 40,
    "CRITICAL": 50,
}


def parse_log_level(level: str) -> int:
    """Translate a level name into its numeric value.

    Raises:
        ConfigurationError: If level is not a known level name.
    """
    try:
        return _LEVELS[level.upper()]
    except KeyError:
        raise ConfigurationError(
            f"Invalid log level '{level}': expected one of {', '.join(_LEVELS)}"
        ) from None


def _stderr_logger(*args: Any) -> structlog.PrintLogger:
    """Create a logger writing to whatever sys.stderr is at call time."""
    return structlog.PrintLogger(file=sys.stderr)


def configure_logging(level: str = DEFAULT_LOG_LEVEL) -> None:
    """Configure structlog for the whole process.

    Args:
        level: Minimum level name to emit (DEBUG, INFO, WARNING, ...).

    Raises:
        ConfigurationError: If level is not a known level name.
    """
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(parse_log_level(level)),
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> Any:
    """Return a module logger instance.

    Configures logging with the default level on first use if the
    application has not configured it yet.

    Args:
        name: Logger name, usually __name__.

    Returns:
        A structlog logger accepting structured keyword fields.
    """
    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(name)
