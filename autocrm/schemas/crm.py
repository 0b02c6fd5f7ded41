"""Pydantic schemas for customers, tickets and agents."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field

from autocrm.db.enums import ActivityType, AgentStatus, TicketCategory, TicketPriority, TicketStatus
from autocrm.schemas.common import CamelModel


class CustomerCreate(CamelModel):
    email: str = Field(min_length=3, max_length=320)
    name: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    company: str | None = Field(default=None, max_length=255)


class CustomerRead(CamelModel):
    id: UUID
    name: str
    email: str
    phone: str | None = None
    company: str | None = None
    created_at: datetime


class TicketRead(CamelModel):
    id: UUID
    title: str
    description: str | None = None
    status: TicketStatus
    priority: TicketPriority
    category: TicketCategory
    customer_id: UUID
    assigned_agent_id: UUID | None = None
    email_thread_id: str | None = None
    last_email_received_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class CustomerDetail(CustomerRead):
    tickets: list[TicketRead] = Field(default_factory=list)


class ActivityRead(CamelModel):
    id: UUID
    agent_id: str
    type: ActivityType
    content: str
    old_value: str | None = None
    new_value: str | None = None
    created_at: datetime


class CommentRead(CamelModel):
    id: UUID
    author_id: str
    content: str
    created_at: datetime


class TicketDetail(TicketRead):
    customer: CustomerRead
    activities: list[ActivityRead] = Field(default_factory=list)
    comments: list[CommentRead] = Field(default_factory=list)


class TicketUpdate(CamelModel):
    """Partial update; an explicit null assignedAgentId unassigns."""

    status: TicketStatus | None = None
    priority: TicketPriority | None = None
    assigned_agent_id: UUID | None = None


class CommentCreate(CamelModel):
    content: str = Field(min_length=1)


class AgentRead(CamelModel):
    id: UUID
    name: str
    email: str
    status: AgentStatus
    max_concurrent_tickets: int
    assigned_categories: list[TicketCategory] = Field(default_factory=list)
    supervisor_id: UUID | None = None
    created_at: datetime


class AgentUpdate(CamelModel):
    """Partial update; an explicit null supervisorId clears the supervisor."""

    status: AgentStatus | None = None
    max_concurrent_tickets: int | None = Field(default=None, ge=1, le=100)
    assigned_categories: list[TicketCategory] | None = None
    supervisor_id: UUID | None = None


class AgentEnsureResponse(CamelModel):
    agent: AgentRead
    created: bool
