"""Tests for the inbound email to ticket pipeline."""

from datetime import datetime, timezone

import pytest

from autocrm.db.enums import SYSTEM_AGENT_ID, ActivityType, TicketCategory, TicketPriority, TicketStatus
from autocrm.db.models import Customer, Ticket, TicketActivity
from autocrm.services import email_ingest_service, ticket_service
from autocrm.services.email_parser import parse_email
from autocrm.services.errors import EmailFetchError, TicketResolutionError


def _ingest(db, fetcher, message_id="m1", source=" Foo@Bar.com ", subject="Help"):
    return email_ingest_service.ingest_email(
        db,
        fetcher,
        message_id=message_id,
        source=source,
        subject=subject,
    )


def test_ingest_end_to_end_creates_customer_ticket_and_activity(db, fetcher, raw_email):
    fetcher.put("m1", raw_email(subject="Help", body="I need help"))

    result = _ingest(db, fetcher)

    customer = db.get(Customer, result.customer_id)
    ticket = db.get(Ticket, result.ticket_id)
    activities = db.query(TicketActivity).filter(TicketActivity.ticket_id == ticket.id).all()

    assert customer.email == "foo@bar.com"
    assert customer.name == "foo"
    assert ticket.title == "Help"
    assert ticket.status == TicketStatus.OPEN
    assert ticket.priority == TicketPriority.MEDIUM
    assert ticket.category == TicketCategory.SUPPORT
    assert ticket.email_thread_id == "m1"
    assert len(activities) == 1
    assert activities[0].id == result.activity_id
    assert activities[0].type == ActivityType.EMAIL_RECEIVED
    assert activities[0].agent_id == SYSTEM_AGENT_ID
    assert activities[0].content.startswith("**Incoming Email**")
    assert "I need help" in activities[0].content
    assert result.customer_created is True
    assert result.ticket_created is True


def test_second_email_lands_on_same_ticket_and_bumps_recency(db, fetcher, raw_email):
    fetcher.put("m1", raw_email(subject="Help", body="first"))
    fetcher.put("m2", raw_email(subject="Re: Help", body="second"))
    first = _ingest(db, fetcher, message_id="m1")

    t2 = datetime.now(timezone.utc)
    second = _ingest(db, fetcher, message_id="m2", subject="Re: Help")

    ticket = db.get(Ticket, first.ticket_id)
    assert second.ticket_id == first.ticket_id
    assert second.customer_created is False
    assert second.ticket_created is False
    assert ticket.last_email_received_at >= t2
    assert db.query(TicketActivity).filter(TicketActivity.ticket_id == ticket.id).count() == 2


def test_retry_of_same_message_duplicates_activity(db, fetcher, raw_email):
    fetcher.put("m1", raw_email())

    first = _ingest(db, fetcher)
    second = _ingest(db, fetcher)

    assert first.ticket_id == second.ticket_id
    assert first.activity_id != second.activity_id
    assert db.query(Ticket).count() == 1
    assert db.query(TicketActivity).count() == 2


def test_subject_falls_back_to_parsed_subject(db, fetcher, raw_email):
    fetcher.put("m1", raw_email(subject="From headers"))

    result = _ingest(db, fetcher, subject=None)

    assert db.get(Ticket, result.ticket_id).title == "From headers"


def test_missing_subject_everywhere_uses_default_title(db, fetcher, raw_email):
    fetcher.put("m1", raw_email(subject=None))

    result = _ingest(db, fetcher, subject=None)

    assert db.get(Ticket, result.ticket_id).title == ticket_service.DEFAULT_TICKET_TITLE


def test_fetch_failure_writes_nothing(db, fetcher):
    with pytest.raises(EmailFetchError):
        _ingest(db, fetcher, message_id="missing")

    assert db.query(Customer).count() == 0
    assert db.query(Ticket).count() == 0


def test_ticket_failure_keeps_committed_customer(db, fetcher, raw_email, monkeypatch):
    fetcher.put("m1", raw_email())

    def _fail(*args, **kwargs):
        raise TicketResolutionError("Ticket creation returned no data")

    monkeypatch.setattr(ticket_service, "resolve_ticket", _fail)

    with pytest.raises(TicketResolutionError):
        _ingest(db, fetcher)

    assert db.query(Customer).count() == 1
    assert db.query(Ticket).count() == 0
    assert db.query(TicketActivity).count() == 0


def test_format_email_activity_uses_placeholder_for_empty_body(raw_email):
    parsed = parse_email(raw_email(body="   "))

    content = email_ingest_service.format_email_activity(
        source="foo@bar.com",
        subject="Help",
        parsed=parsed,
        received_at=datetime(2026, 5, 6, tzinfo=timezone.utc),
    )

    assert content.startswith("**Incoming Email**\n\nFrom: foo@bar.com\nSubject: Help\nDate: 2026-01-02 03:04:05")
    assert content.endswith("---\n\n(No content)")


def test_format_email_activity_uses_received_time_without_date_header():
    parsed = parse_email("From: a@b.com\r\n\r\nbody\r\n")

    content = email_ingest_service.format_email_activity(
        source="a@b.com",
        subject=None,
        parsed=parsed,
        received_at=datetime(2026, 5, 6, 7, 8, 9, tzinfo=timezone.utc),
    )

    assert "Date: 2026-05-06 07:08:09 UTC" in content
    assert content.endswith("body")
