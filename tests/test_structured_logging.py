"""Tests for structured logging helpers and the email API JSON-lines log."""

import json
import logging

import pytest

from autocrm.core.structured_logging import (
    EMAIL_API_LOGGER,
    build_log_context,
    configure_email_api_log,
    mask_email,
)


def test_build_log_context_includes_only_provided_fields():
    context = build_log_context(
        message_id="m1",
        customer_id="c1",
        route="/api/email",
        method="POST",
    )

    assert context == {
        "message_id": "m1",
        "customer_id": "c1",
        "route": "/api/email",
        "method": "POST",
    }


def test_build_log_context_masks_sender():
    context = build_log_context(sender="Foo.Bar@Example.com", ticket_id="")

    assert context == {"sender": "Fo***@example.com"}


@pytest.mark.parametrize(
    "value, masked",
    [("foo@bar.com", "fo***@bar.com"), ("nodomain", "no***"), ("", ""), (None, "")],
)
def test_mask_email(value, masked):
    assert mask_email(value) == masked


@pytest.fixture
def email_api_handler(tmp_path):
    path = tmp_path / "logs" / "email-api.log"
    handler = configure_email_api_log(str(path))
    yield path, handler
    logging.getLogger(EMAIL_API_LOGGER).removeHandler(handler)
    handler.close()


def test_email_api_log_writes_json_lines(email_api_handler):
    path, handler = email_api_handler
    email_logger = logging.getLogger(EMAIL_API_LOGGER)

    email_logger.info("Found existing ticket", extra={"data": {"ticket_id": "t1"}})
    email_logger.error("Error processing email")
    handler.flush()

    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    first, second = (json.loads(line) for line in lines)
    assert first["level"] == "INFO"
    assert first["message"] == "Found existing ticket"
    assert json.loads(first["data"]) == {"ticket_id": "t1"}
    assert "timestamp" in first
    assert second["level"] == "ERROR"
    assert "data" not in second


def test_configure_email_api_log_is_idempotent(email_api_handler):
    path, handler = email_api_handler

    assert configure_email_api_log(str(path)) is handler
    file_handlers = [
        h for h in logging.getLogger(EMAIL_API_LOGGER).handlers if isinstance(h, logging.FileHandler)
    ]
    assert len(file_handlers) == 1


def test_configure_email_api_log_disabled_for_empty_path():
    assert configure_email_api_log("") is None
