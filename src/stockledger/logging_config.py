"""Logging configuration for the stock ledger.

Library modules only call ``structlog.get_logger(__name__)``; the
entry point decides once how events are rendered.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog


def setup_stdlib_logging(level: str) -> None:
    """Route stdlib logging (SQLAlchemy, structlog output) to stderr."""
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = []

    # stdout belongs to the CLI's own output.
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    root_logger.addHandler(console_handler)

    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)


def setup_structlog(json_logs: bool) -> None:
    """Configure structlog for structured logging."""
    processors: list[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_logs:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def configure_logging(level: str = "INFO", json_logs: bool = False) -> None:
    """Configure all logging for the application."""
    level = level.upper()
    setup_stdlib_logging(level)
    setup_structlog(json_logs)


def bind_order(order_id: str) -> None:
    """Tag every subsequent log event in this context with the order id."""
    structlog.contextvars.bind_contextvars(order_id=order_id)
