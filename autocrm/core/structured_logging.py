"""Structured logging helpers (PII-safe) and the email API JSON-lines log."""

import json
import logging
import os
from datetime import datetime, timezone
from typing import Any

EMAIL_API_LOGGER = "autocrm.email_api"


def mask_email(email: str | None) -> str:
    """Mask the local part of an address, keeping the domain."""
    if not email:
        return ""
    local, sep, domain = email.strip().partition("@")
    prefix = local[:2] if local else ""
    if not sep:
        return f"{prefix}***"
    return f"{prefix}***@{domain.lower()}"


def build_log_context(
    *,
    message_id: str | None = None,
    sender: str | None = None,
    customer_id: str | None = None,
    ticket_id: str | None = None,
    categorization_id: str | None = None,
    route: str | None = None,
    method: str | None = None,
) -> dict[str, Any]:
    """Return a PII-safe log context dict."""
    context: dict[str, Any] = {}
    if message_id:
        context["message_id"] = message_id
    if sender:
        context["sender"] = mask_email(sender)
    if customer_id:
        context["customer_id"] = str(customer_id)
    if ticket_id:
        context["ticket_id"] = str(ticket_id)
    if categorization_id:
        context["categorization_id"] = str(categorization_id)
    if route:
        context["route"] = route
    if method:
        context["method"] = method
    return context


class JsonLinesFormatter(logging.Formatter):
    """One JSON object per record: timestamp, level, message, data."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
        }
        data = getattr(record, "data", None)
        if data is not None:
            entry["data"] = json.dumps(data, default=str)
        if record.exc_info:
            entry["error"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def configure_email_api_log(path: str) -> logging.Handler | None:
    """Attach an append-only JSON-lines file handler to the email API logger.

    Idempotent per path. Returns the handler, or None when disabled.
    """
    if not path:
        return None
    email_logger = logging.getLogger(EMAIL_API_LOGGER)
    target = os.path.abspath(path)
    for handler in email_logger.handlers:
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == target:
            return handler

    directory = os.path.dirname(target)
    if directory:
        os.makedirs(directory, exist_ok=True)
    handler = logging.FileHandler(target, mode="a", encoding="utf-8")
    handler.setFormatter(JsonLinesFormatter())
    email_logger.addHandler(handler)
    email_logger.setLevel(logging.INFO)
    return handler
