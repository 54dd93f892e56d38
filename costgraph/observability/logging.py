"""Structured logging configuration using structlog.

Every store request is logged with the operation that issued it, so the
service binds ``operation`` (and the target/flags) once per call with
:func:`query_logger` instead of repeating them on each event.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog


def setup_logging(level: str = "info") -> None:
    """Configure structlog for JSON output to stderr."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
            structlog.processors.JSONRenderer(sort_keys=True),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(component: str) -> structlog.stdlib.BoundLogger:
    """Get a logger bound with a component name."""
    return structlog.get_logger(component=component)  # type: ignore[return-value]


def query_logger(
    log: structlog.stdlib.BoundLogger,
    operation: str,
    **context: Any,
) -> structlog.stdlib.BoundLogger:
    """Bind the operation name and its arguments (target, flags) to *log*."""
    return log.bind(operation=operation, **context)
