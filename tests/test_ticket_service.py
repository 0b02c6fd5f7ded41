"""Tests for ticket resolution, filters and lifecycle updates."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from autocrm.db.enums import (
    ActivityType,
    TicketCategory,
    TicketPriority,
    TicketStatus,
)
from autocrm.db.models import Agent, Customer, Ticket, TicketActivity
from autocrm.services import ticket_service
from autocrm.services.ticket_service import DEFAULT_TICKET_TITLE, TicketFilter


def _customer(db, email="foo@bar.com") -> Customer:
    customer = Customer(name="foo", email=email)
    db.add(customer)
    db.commit()
    return customer


def _ticket(db, customer, **overrides) -> Ticket:
    values = {
        "title": "t",
        "status": TicketStatus.OPEN,
        "priority": TicketPriority.MEDIUM,
        "category": TicketCategory.SUPPORT,
        "customer_id": customer.id,
    }
    values.update(overrides)
    ticket = Ticket(**values)
    db.add(ticket)
    db.commit()
    return ticket


def test_resolve_ticket_creates_open_support_ticket(db):
    customer = _customer(db)

    before = datetime.now(timezone.utc)
    ticket, created = ticket_service.resolve_ticket(
        db, customer, subject="Help", description="I need help", thread_id="m1"
    )
    db.commit()

    assert created is True
    assert ticket.title == "Help"
    assert ticket.description == "I need help"
    assert ticket.status == TicketStatus.OPEN
    assert ticket.priority == TicketPriority.MEDIUM
    assert ticket.category == TicketCategory.SUPPORT
    assert ticket.email_thread_id == "m1"
    assert ticket.last_email_received_at >= before


def test_resolve_ticket_defaults_title_without_subject(db):
    customer = _customer(db)

    ticket, _ = ticket_service.resolve_ticket(db, customer, subject=None, description=None, thread_id=None)

    assert ticket.title == DEFAULT_TICKET_TITLE


def test_resolve_ticket_prefers_most_recently_emailed_open_ticket(db):
    customer = _customer(db)
    now = datetime.now(timezone.utc)
    stale = _ticket(db, customer, title="stale", last_email_received_at=now - timedelta(days=2))
    recent = _ticket(db, customer, title="recent", last_email_received_at=now - timedelta(hours=1))
    # Never emailed; recency falls back to created_at
    _ticket(
        db,
        customer,
        title="old-activity",
        created_at=now - timedelta(days=5),
        last_email_received_at=None,
    )

    ticket, created = ticket_service.resolve_ticket(
        db, customer, subject="Other subject", description="x", thread_id="m2"
    )

    assert created is False
    assert ticket.id == recent.id
    assert ticket.id != stale.id


def test_resolve_ticket_ignores_closed_and_non_support_tickets(db):
    customer = _customer(db)
    _ticket(db, customer, status=TicketStatus.CLOSED)
    _ticket(db, customer, category=TicketCategory.BILLING)

    ticket, created = ticket_service.resolve_ticket(
        db, customer, subject="New", description="x", thread_id="m3"
    )
    db.commit()

    assert created is True
    assert db.query(Ticket).count() == 3


def test_resolve_ticket_continues_blocked_and_in_progress_tickets(db):
    customer = _customer(db)
    blocked = _ticket(db, customer, status=TicketStatus.BLOCKED)

    ticket, created = ticket_service.resolve_ticket(
        db, customer, subject="New", description="x", thread_id="m4"
    )

    assert created is False
    assert ticket.id == blocked.id


def test_ticket_filter_clauses_in_fixed_order(db):
    customer = _customer(db)
    ticket_filter = TicketFilter(
        customer_id=customer.id,
        category=TicketCategory.SUPPORT,
        exclude_status=TicketStatus.CLOSED,
    )

    clauses = [str(c) for c in ticket_filter.clauses()]

    assert len(clauses) == 3
    assert "customer_id" in clauses[0]
    assert "category" in clauses[1]
    assert "status" in clauses[2]


def test_list_tickets_filters_by_status(db):
    customer = _customer(db)
    _ticket(db, customer, title="open")
    _ticket(db, customer, title="closed", status=TicketStatus.CLOSED)

    tickets = ticket_service.list_tickets(db, TicketFilter(status=TicketStatus.CLOSED))

    assert [t.title for t in tickets] == ["closed"]


def test_update_ticket_logs_one_activity_per_change(db):
    customer = _customer(db)
    ticket = _ticket(db, customer)
    agent = Agent(name="Ada", email="ada@autocrm.test")
    db.add(agent)
    db.commit()

    ticket_service.update_ticket(
        db,
        ticket,
        actor_id=str(agent.id),
        changes={
            "status": TicketStatus.IN_PROGRESS,
            "priority": TicketPriority.HIGH,
            "assigned_agent_id": agent.id,
        },
    )

    activities = db.query(TicketActivity).filter(TicketActivity.ticket_id == ticket.id).all()
    types = sorted(a.type.value for a in activities)
    assert types == sorted(
        [
            ActivityType.STATUS_CHANGE.value,
            ActivityType.PRIORITY_CHANGE.value,
            ActivityType.ASSIGNMENT_CHANGE.value,
        ]
    )
    status_change = next(a for a in activities if a.type == ActivityType.STATUS_CHANGE)
    assert status_change.old_value == "OPEN"
    assert status_change.new_value == "IN_PROGRESS"
    assert ticket.assigned_agent_id == agent.id


def test_update_ticket_unknown_agent_raises(db):
    customer = _customer(db)
    ticket = _ticket(db, customer)

    with pytest.raises(LookupError):
        ticket_service.update_ticket(
            db, ticket, actor_id="x", changes={"assigned_agent_id": uuid.uuid4()}
        )


def test_add_comment_strips_content(db):
    customer = _customer(db)
    ticket = _ticket(db, customer)

    comment = ticket_service.add_comment(db, ticket, author_id="a1", content="  hello  ")

    assert comment.content == "hello"
    assert comment.ticket_id == ticket.id
