"""structlog setup shared by the CLI and tests."""

import logging
import sys

import structlog


def configure_logging(log_level: str) -> None:
    """Configure structlog to emit events at or above log_level on stderr."""
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )
