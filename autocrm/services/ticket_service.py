"""Ticket lookup, creation and lifecycle updates."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from autocrm.db.enums import ActivityType, TicketCategory, TicketPriority, TicketStatus
from autocrm.db.models import Agent, Comment, Customer, Ticket, TicketActivity
from autocrm.services.errors import TicketResolutionError

logger = logging.getLogger(__name__)

DEFAULT_TICKET_TITLE = "Email from customer"


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TicketFilter:
    """Ticket query predicates, applied in declaration order."""

    customer_id: UUID | None = None
    category: TicketCategory | None = None
    status: TicketStatus | None = None
    exclude_status: TicketStatus | None = None
    assigned_agent_id: UUID | None = None

    def clauses(self) -> list:
        out = []
        if self.customer_id is not None:
            out.append(Ticket.customer_id == self.customer_id)
        if self.category is not None:
            out.append(Ticket.category == self.category)
        if self.status is not None:
            out.append(Ticket.status == self.status)
        if self.exclude_status is not None:
            out.append(Ticket.status != self.exclude_status)
        if self.assigned_agent_id is not None:
            out.append(Ticket.assigned_agent_id == self.assigned_agent_id)
        return out


def _recency_key():
    return func.coalesce(Ticket.last_email_received_at, Ticket.created_at)


def list_tickets(db: Session, ticket_filter: TicketFilter, *, limit: int | None = 50) -> list[Ticket]:
    """Tickets matching the filter, most recently active first."""
    query = (
        db.query(Ticket)
        .filter(*ticket_filter.clauses())
        .order_by(_recency_key().desc(), Ticket.created_at.desc())
    )
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def open_support_filter(customer_id: UUID) -> TicketFilter:
    """Tickets an inbound email can continue: SUPPORT and not CLOSED."""
    return TicketFilter(
        customer_id=customer_id,
        category=TicketCategory.SUPPORT,
        exclude_status=TicketStatus.CLOSED,
    )


def resolve_ticket(
    db: Session,
    customer: Customer,
    *,
    subject: str | None,
    description: str | None,
    thread_id: str | None,
) -> tuple[Ticket, bool]:
    """
    Pick the ticket an inbound email belongs to, creating one if needed.

    The most recently emailed (falling back to created) open SUPPORT ticket
    of the customer continues the thread. Subject and thread id are not
    consulted; the thread id is only recorded on new tickets.

    Returns:
        (ticket, created)
    """
    candidates = list_tickets(db, open_support_filter(customer.id), limit=1)
    if candidates:
        return candidates[0], False

    now = _now_utc()
    ticket = Ticket(
        customer_id=customer.id,
        title=subject or DEFAULT_TICKET_TITLE,
        description=description,
        status=TicketStatus.OPEN,
        priority=TicketPriority.MEDIUM,
        category=TicketCategory.SUPPORT,
        email_thread_id=thread_id,
        last_email_received_at=now,
        created_at=now,
        updated_at=now,
    )
    db.add(ticket)
    db.flush()
    if ticket.id is None:
        raise TicketResolutionError("Ticket creation returned no data")
    logger.info("Created ticket %s for customer %s", ticket.id, customer.id)
    return ticket, True


def get_ticket(db: Session, ticket_id: UUID) -> Ticket | None:
    return (
        db.query(Ticket)
        .options(
            selectinload(Ticket.customer),
            selectinload(Ticket.activities),
            selectinload(Ticket.comments),
        )
        .filter(Ticket.id == ticket_id)
        .first()
    )


def _record_change(
    db: Session,
    ticket: Ticket,
    *,
    actor_id: str,
    activity_type: ActivityType,
    old_value: str | None,
    new_value: str | None,
    content: str,
) -> None:
    db.add(
        TicketActivity(
            ticket_id=ticket.id,
            agent_id=actor_id,
            type=activity_type,
            content=content,
            old_value=old_value,
            new_value=new_value,
        )
    )


def update_ticket(
    db: Session,
    ticket: Ticket,
    *,
    actor_id: str,
    changes: dict,
) -> Ticket:
    """
    Apply status/priority/assignment changes and log one activity per change.

    `changes` holds only the fields the caller set; an explicit None for
    assigned_agent_id unassigns.

    Raises:
        LookupError: assigned agent does not exist
    """
    if "status" in changes and changes["status"] is not None and changes["status"] != ticket.status:
        old = ticket.status
        ticket.status = changes["status"]
        _record_change(
            db,
            ticket,
            actor_id=actor_id,
            activity_type=ActivityType.STATUS_CHANGE,
            old_value=old.value,
            new_value=ticket.status.value,
            content=f"Status changed from {old.value} to {ticket.status.value}",
        )

    if "priority" in changes and changes["priority"] is not None and changes["priority"] != ticket.priority:
        old = ticket.priority
        ticket.priority = changes["priority"]
        _record_change(
            db,
            ticket,
            actor_id=actor_id,
            activity_type=ActivityType.PRIORITY_CHANGE,
            old_value=old.value,
            new_value=ticket.priority.value,
            content=f"Priority changed from {old.value} to {ticket.priority.value}",
        )

    if "assigned_agent_id" in changes and changes["assigned_agent_id"] != ticket.assigned_agent_id:
        new_agent_id = changes["assigned_agent_id"]
        if new_agent_id is not None and db.get(Agent, new_agent_id) is None:
            raise LookupError("Agent not found")
        old_agent_id = ticket.assigned_agent_id
        ticket.assigned_agent_id = new_agent_id
        _record_change(
            db,
            ticket,
            actor_id=actor_id,
            activity_type=ActivityType.ASSIGNMENT_CHANGE,
            old_value=str(old_agent_id) if old_agent_id else None,
            new_value=str(new_agent_id) if new_agent_id else None,
            content="Ticket unassigned" if new_agent_id is None else f"Ticket assigned to {new_agent_id}",
        )

    ticket.updated_at = _now_utc()
    db.commit()
    db.refresh(ticket)
    return ticket


def add_comment(db: Session, ticket: Ticket, *, author_id: str, content: str) -> Comment:
    comment = Comment(ticket_id=ticket.id, author_id=author_id, content=content.strip())
    db.add(comment)
    ticket.updated_at = _now_utc()
    db.commit()
    db.refresh(comment)
    return comment
