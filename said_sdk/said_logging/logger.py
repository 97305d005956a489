"""
Structured logging: timestamp, level, event_type, logger name.

structlog with ISO timestamps and consistent keys. Every SDK module uses
get_logger() and logs an event name plus keyword context (wallet, address,
signature, ...). Output goes to stderr so CLI output on stdout stays clean.

Uses only Python stdlib logging and structlog; no said_sdk imports to avoid circular imports.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog

# Default log level from env
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL_VALUE = getattr(logging, LOG_LEVEL, logging.INFO)

# Human-readable for local CLI use; LOG_FORMAT=json for aggregation
LOG_FORMAT = os.getenv("LOG_FORMAT", "console").strip().lower()


def _normalize_event(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Rename structlog 'event' to event_type for JSON output."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    return event_dict


def configure_structlog(level: int | None = None, fmt: str | None = None) -> None:
    """Configure structlog: timestamp, level, renderer chosen by LOG_FORMAT."""
    fmt = (fmt or LOG_FORMAT).strip().lower()
    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if fmt == "json":
        shared_processors.append(_normalize_event)
        shared_processors.append(structlog.processors.JSONRenderer())
    else:
        shared_processors.append(
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
        )
    structlog.configure(
        processors=shared_processors,
        wrapper_class=structlog.make_filtering_bound_logger(level if level is not None else LOG_LEVEL_VALUE),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


# One-time configuration on first import
if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Return a structured logger for the given module name.

        logger = get_logger(__name__)
        logger.info("identity_lookup", wallet=addr, found=True)
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_wallet(wallet: str) -> structlog.BoundLogger:
    """Return a logger with wallet bound to all subsequent log calls."""
    return get_logger("said_sdk").bind(wallet=wallet)
