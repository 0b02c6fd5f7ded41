"""Ticket list/detail/update/comment APIs."""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from autocrm.core.auth import AuthResult
from autocrm.core.deps import get_db, require_agent_token
from autocrm.db.enums import TicketCategory, TicketStatus
from autocrm.schemas.crm import CommentCreate, CommentRead, TicketDetail, TicketRead, TicketUpdate
from autocrm.services import agent_service, ticket_service
from autocrm.services.ticket_service import TicketFilter

router = APIRouter(
    prefix="/api/tickets",
    tags=["Tickets"],
    dependencies=[Depends(require_agent_token)],
)


def _actor_id(db: Session, auth: AuthResult) -> str:
    """Agent id for activity attribution, falling back to the token principal."""
    agent = agent_service.get_agent_by_email(db, auth.principal or "")
    return str(agent.id) if agent else (auth.principal or "")


@router.get("", response_model=list[TicketRead])
def list_tickets(
    customer_id: UUID | None = None,
    category: TicketCategory | None = None,
    status: TicketStatus | None = None,
    assigned_agent_id: UUID | None = None,
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
    db: Session = Depends(get_db),
) -> list[TicketRead]:
    """List tickets, most recently emailed first."""
    ticket_filter = TicketFilter(
        customer_id=customer_id,
        category=category,
        status=status,
        assigned_agent_id=assigned_agent_id,
    )
    tickets = ticket_service.list_tickets(db, ticket_filter, limit=limit)
    return [TicketRead.model_validate(t) for t in tickets]


@router.get("/{ticket_id}", response_model=TicketDetail)
def get_ticket_detail(
    ticket_id: UUID,
    db: Session = Depends(get_db),
) -> TicketDetail:
    """Return ticket with customer, activity timeline and comments."""
    ticket = ticket_service.get_ticket(db, ticket_id)
    if not ticket:
        raise HTTPException(status_code=404, detail="Ticket not found")
    return TicketDetail.model_validate(ticket)


@router.patch("/{ticket_id}", response_model=TicketRead)
def patch_ticket(
    ticket_id: UUID,
    data: TicketUpdate,
    db: Session = Depends(get_db),
    auth: AuthResult = Depends(require_agent_token),
) -> TicketRead:
    """Update status, priority or assignment; each change is logged as an activity."""
    ticket = ticket_service.get_ticket(db, ticket_id)
    if not ticket:
        raise HTTPException(status_code=404, detail="Ticket not found")
    try:
        ticket = ticket_service.update_ticket(
            db,
            ticket,
            actor_id=_actor_id(db, auth),
            changes=data.model_dump(exclude_unset=True),
        )
    except LookupError as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(exc))
    return TicketRead.model_validate(ticket)


@router.post("/{ticket_id}/comments", response_model=CommentRead, status_code=201)
def add_comment(
    ticket_id: UUID,
    data: CommentCreate,
    db: Session = Depends(get_db),
    auth: AuthResult = Depends(require_agent_token),
) -> CommentRead:
    ticket = ticket_service.get_ticket(db, ticket_id)
    if not ticket:
        raise HTTPException(status_code=404, detail="Ticket not found")
    comment = ticket_service.add_comment(db, ticket, author_id=_actor_id(db, auth), content=data.content)
    return CommentRead.model_validate(comment)
