"""Tests for logging configuration."""

import json

import pytest

from stocklens.core.logging import (
    add_request_id,
    configure_logging,
    get_logger,
    report_context,
    request_id_ctx,
)


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    configure_logging()


def _last_event(captured: str) -> dict:
    return json.loads(captured.strip().splitlines()[-1])


def test_get_logger_returns_bound_logger():
    """get_logger should return a structlog logger."""
    configure_logging()
    logger = get_logger("test")

    assert hasattr(logger, "info")
    assert hasattr(logger, "error")


def test_request_id_context_variable():
    """request_id_ctx should store and retrieve values."""
    assert request_id_ctx.get() is None

    token = request_id_ctx.set("test-id-123")
    assert request_id_ctx.get() == "test-id-123"

    request_id_ctx.reset(token)
    assert request_id_ctx.get() is None


def test_add_request_id_binds_current_request():
    token = request_id_ctx.set("req-42")
    try:
        event = add_request_id(None, "info", {"event": "x"})
    finally:
        request_id_ctx.reset(token)

    assert event["request_id"] == "req-42"


def test_add_request_id_without_request():
    event = add_request_id(None, "info", {"event": "x"})

    assert "request_id" not in event


def test_events_are_written_to_stderr(capsys):
    """Report output owns stdout; log events must not land there."""
    configure_logging(log_level="INFO", log_format="json")

    get_logger("test").info("analytics.test_event", rows=3)

    captured = capsys.readouterr()
    assert captured.out == ""
    event = _last_event(captured.err)
    assert event["event"] == "analytics.test_event"
    assert event["rows"] == 3
    assert event["level"] == "info"


def test_report_context_binds_report_name(capsys):
    configure_logging(log_level="INFO", log_format="json")
    logger = get_logger("test")

    with report_context("low_inventory", snapshot_rows=12):
        logger.warning("analytics.group_skipped")
    logger.info("analytics.outside")

    lines = capsys.readouterr().err.strip().splitlines()
    inside, outside = json.loads(lines[-2]), json.loads(lines[-1])
    assert inside["report"] == "low_inventory"
    assert inside["snapshot_rows"] == 12
    assert "report" not in outside


def test_level_filters_debug_events(capsys):
    configure_logging(log_level="INFO", log_format="json")

    get_logger("test").debug("analytics.noise")

    assert capsys.readouterr().err == ""


def test_level_override_is_case_insensitive(capsys):
    configure_logging(log_level="debug", log_format="json")

    get_logger("test").debug("analytics.detail")

    assert _last_event(capsys.readouterr().err)["event"] == "analytics.detail"


def test_unknown_level_rejected():
    with pytest.raises(ValueError, match="Unknown log level"):
        configure_logging(log_level="LOUD")


def test_console_format_accepted():
    configure_logging(log_level="DEBUG", log_format="console")
