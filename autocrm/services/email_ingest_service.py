"""Inbound email to ticket pipeline.

fetch raw message -> parse -> resolve customer -> resolve ticket -> append
activity. Each stage commits on its own and nothing is compensated on a later
failure. A redelivered message lands on the same (now existing) ticket but
appends a second EMAIL_RECEIVED activity.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Protocol
from uuid import UUID

from sqlalchemy.orm import Session

from autocrm.core.structured_logging import EMAIL_API_LOGGER, build_log_context
from autocrm.db.enums import SYSTEM_AGENT_ID, ActivityType
from autocrm.db.models import Ticket, TicketActivity
from autocrm.services import customer_service, ticket_service
from autocrm.services.email_parser import ParsedEmail, parse_email
from autocrm.utils.normalization import normalize_email, normalize_subject

email_api_log = logging.getLogger(EMAIL_API_LOGGER)

NO_CONTENT_PLACEHOLDER = "(No content)"


class EmailFetcher(Protocol):
    def fetch(self, key: str) -> str: ...


@dataclass(frozen=True)
class IngestResult:
    """Ids touched by one ingestion run."""

    customer_id: UUID
    ticket_id: UUID
    activity_id: UUID
    customer_created: bool
    ticket_created: bool


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def format_email_activity(
    *,
    source: str,
    subject: str | None,
    parsed: ParsedEmail,
    received_at: datetime,
) -> str:
    """Render the EMAIL_RECEIVED activity body."""
    sent_at = parsed.date or received_at
    body = (parsed.body or "").strip() or NO_CONTENT_PLACEHOLDER
    return (
        "**Incoming Email**\n\n"
        f"From: {source}\n"
        f"Subject: {subject or ''}\n"
        f"Date: {sent_at.strftime('%Y-%m-%d %H:%M:%S %Z').strip()}\n\n"
        "---\n\n"
        f"{body}"
    )


def append_email_activity(db: Session, ticket: Ticket, content: str) -> TicketActivity:
    """Append one EMAIL_RECEIVED activity and bump the ticket's last-email time."""
    now = _now_utc()
    activity = TicketActivity(
        ticket_id=ticket.id,
        agent_id=SYSTEM_AGENT_ID,
        type=ActivityType.EMAIL_RECEIVED,
        content=content,
        created_at=now,
    )
    db.add(activity)
    db.flush()

    ticket.last_email_received_at = now
    ticket.updated_at = now
    db.commit()
    return activity


def ingest_email(
    db: Session,
    fetcher: EmailFetcher,
    *,
    message_id: str,
    source: str,
    subject: str | None = None,
    timestamp: str | None = None,
) -> IngestResult:
    """
    Attach an inbound email to the sender's active support ticket.

    Any failure aborts the remaining stages and propagates; stages already
    committed stay committed.
    """
    context = build_log_context(message_id=message_id, sender=source)
    email_api_log.info("Received email processing request", extra={"data": {**context, "timestamp": timestamp}})

    try:
        raw = fetcher.fetch(message_id)
        email_api_log.info("Retrieved raw email content", extra={"data": {**context, "content_length": len(raw)}})

        parsed = parse_email(raw)
        email_api_log.info(
            "Parsed email",
            extra={"data": {**context, "has_text": bool(parsed.text), "has_html": bool(parsed.html)}},
        )

        sender = normalize_email(source) or parsed.from_email
        customer, customer_created = customer_service.resolve_customer(db, sender)
        db.commit()
        context = build_log_context(message_id=message_id, sender=source, customer_id=customer.id)
        email_api_log.info(
            "Created new customer" if customer_created else "Found existing customer",
            extra={"data": context},
        )

        title = normalize_subject(subject) or parsed.subject
        ticket, ticket_created = ticket_service.resolve_ticket(
            db,
            customer,
            subject=title,
            description=parsed.body,
            thread_id=message_id,
        )
        db.commit()
        context = build_log_context(message_id=message_id, customer_id=customer.id, ticket_id=ticket.id)
        email_api_log.info(
            "Created new ticket" if ticket_created else "Found existing ticket",
            extra={"data": context},
        )

        content = format_email_activity(
            source=sender or source,
            subject=title,
            parsed=parsed,
            received_at=_now_utc(),
        )
        activity = append_email_activity(db, ticket, content)
        email_api_log.info(
            "Email processing completed successfully",
            extra={"data": {**context, "activity_id": str(activity.id)}},
        )
    except Exception as exc:
        db.rollback()
        email_api_log.error(
            "Error processing email",
            extra={"data": {**context, "error_name": type(exc).__name__, "error_message": str(exc)}},
        )
        raise

    return IngestResult(
        customer_id=customer.id,
        ticket_id=ticket.id,
        activity_id=activity.id,
        customer_created=customer_created,
        ticket_created=ticket_created,
    )
