"""Structured logging configuration.

This module initializes structlog with a stable JSON event format.
Events are rendered by structlog and emitted through stdlib loggers
on stderr, so command output on stdout stays machine-readable.
"""

from __future__ import annotations

import logging
from typing import Any

import structlog

_CONFIGURED = False


def get_logger(name: str) -> Any:
    """Return a module logger instance.

    Args:
        name: Logger name, usually __name__.

    Returns:
        A structlog logger with structured output.
    """
    _configure_once()
    standard_logger = logging.getLogger(name)
    if not standard_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(message)s"))
        standard_logger.addHandler(handler)
        standard_logger.setLevel(logging.INFO)
    return structlog.get_logger(name)


def _configure_once() -> None:
    """Apply the shared structlog processor chain on first use."""
    global _CONFIGURED
    if _CONFIGURED:
        return
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    _CONFIGURED = True
