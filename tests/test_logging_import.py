"""
Test that said_logging can be imported without circular import and logger works.
"""

from __future__ import annotations


def test_logging_import():
    """Import get_logger from said_logging and use the logger."""
    from said_sdk.said_logging import get_logger

    logger = get_logger("test")
    assert logger is not None
    assert hasattr(logger, "info")
    assert hasattr(logger, "debug")
    assert hasattr(logger, "warning")
    assert hasattr(logger, "error")
    # Smoke test: call info (should not raise)
    logger.info("test_message", key="value")


def test_bind_wallet_logger():
    """bind_wallet returns a logger usable with extra context."""
    from said_sdk.said_logging import bind_wallet

    logger = bind_wallet("9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka")
    logger.info("test_wallet_message", found=True)


def test_normalize_event_renames_event():
    """JSON mode renames structlog's event key to event_type."""
    from said_sdk.said_logging.logger import _normalize_event

    out = _normalize_event(None, "info", {"event": "said_tx_sent", "signature": "abc"})
    assert out == {"event_type": "said_tx_sent", "signature": "abc"}


def test_json_format_event_and_timestamp(monkeypatch):
    """JSON output carries event_type and an ISO 8601 UTC timestamp."""
    import io
    import json
    import sys

    import structlog

    from said_sdk.said_logging import configure_structlog

    buf = io.StringIO()
    monkeypatch.setattr(sys, "stderr", buf)
    try:
        configure_structlog(fmt="json")
        structlog.get_logger("said_sdk.test").info("said_test_event", wallet="W")
    finally:
        monkeypatch.undo()
        configure_structlog()
    payload = json.loads(buf.getvalue().strip().splitlines()[-1])
    assert payload["event_type"] == "said_test_event"
    assert payload["wallet"] == "W"
    assert payload["level"] == "info"
    assert "T" in payload["timestamp"]
    assert payload["timestamp"].endswith(("Z", "+00:00"))
