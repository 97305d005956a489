"""
Structured logging for the SAID SDK.

Use get_logger() in every module; log an event name and keyword context.
"""

from said_sdk.said_logging.logger import bind_wallet, configure_structlog, get_logger

__all__ = ["bind_wallet", "configure_structlog", "get_logger"]
