"""CRM, ticketing and email categorization ORM models."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from autocrm.db.base import Base
from autocrm.db.enums import (
    ActivityType,
    AgentStatus,
    EmailLanguage,
    TicketCategory,
    TicketPriority,
    TicketStatus,
)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _enum_type(enum_cls, *, name: str) -> Enum:
    """Bind Python str-enums to their value strings."""
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        length=32,
        values_callable=lambda members: [member.value for member in members],
    )


class Customer(Base):
    """Customer; email is the natural dedup key (normalized, not unique)."""

    __tablename__ = "customers"
    __table_args__ = (Index("idx_customers_email", "email"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    company: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=_now_utc, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(default=_now_utc, onupdate=_now_utc, nullable=False)

    tickets: Mapped[list["Ticket"]] = relationship(back_populates="customer")


class Agent(Base):
    """Support agent; may supervise other agents."""

    __tablename__ = "agents"
    __table_args__ = (Index("idx_agents_email", "email"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    status: Mapped[AgentStatus] = mapped_column(
        _enum_type(AgentStatus, name="agent_status"), default=AgentStatus.AVAILABLE, nullable=False
    )
    max_concurrent_tickets: Mapped[int] = mapped_column(Integer, default=5, nullable=False)
    assigned_categories: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    supervisor_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("agents.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(default=_now_utc, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(default=_now_utc, onupdate=_now_utc, nullable=False)

    supervisor: Mapped["Agent | None"] = relationship(remote_side="Agent.id", back_populates="agents")
    agents: Mapped[list["Agent"]] = relationship(back_populates="supervisor")
    assigned_tickets: Mapped[list["Ticket"]] = relationship(back_populates="assigned_agent")


class Ticket(Base):
    """Customer support ticket."""

    __tablename__ = "tickets"
    __table_args__ = (
        Index("idx_tickets_customer_category_status", "customer_id", "category", "status"),
        Index("idx_tickets_assigned_agent", "assigned_agent_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[TicketStatus] = mapped_column(
        _enum_type(TicketStatus, name="ticket_status"), default=TicketStatus.OPEN, nullable=False
    )
    priority: Mapped[TicketPriority] = mapped_column(
        _enum_type(TicketPriority, name="ticket_priority"), default=TicketPriority.MEDIUM, nullable=False
    )
    category: Mapped[TicketCategory] = mapped_column(
        _enum_type(TicketCategory, name="ticket_category"), default=TicketCategory.SUPPORT, nullable=False
    )
    customer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False
    )
    assigned_agent_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("agents.id", ondelete="SET NULL"), nullable=True
    )
    # Written on creation only; ticket lookup does not use it
    email_thread_id: Mapped[str | None] = mapped_column(String(512), nullable=True)
    last_email_received_at: Mapped[datetime | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=_now_utc, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(default=_now_utc, onupdate=_now_utc, nullable=False)

    customer: Mapped["Customer"] = relationship(back_populates="tickets")
    assigned_agent: Mapped["Agent | None"] = relationship(back_populates="assigned_tickets")
    activities: Mapped[list["TicketActivity"]] = relationship(
        back_populates="ticket", order_by="TicketActivity.created_at"
    )
    comments: Mapped[list["Comment"]] = relationship(
        back_populates="ticket", order_by="Comment.created_at"
    )


class TicketActivity(Base):
    """Immutable ticket log entry."""

    __tablename__ = "ticket_activities"
    __table_args__ = (Index("idx_ticket_activities_ticket_created", "ticket_id", "created_at"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    ticket_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False
    )
    # Agent UUID as string, or SYSTEM_AGENT_ID for pipeline-written entries
    agent_id: Mapped[str] = mapped_column(String(64), nullable=False)
    type: Mapped[ActivityType] = mapped_column(
        _enum_type(ActivityType, name="activity_type"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    old_value: Mapped[str | None] = mapped_column(String(255), nullable=True)
    new_value: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=_now_utc, nullable=False)

    ticket: Mapped["Ticket"] = relationship(back_populates="activities")


class Comment(Base):
    """Free-text comment on a ticket."""

    __tablename__ = "comments"
    __table_args__ = (Index("idx_comments_ticket_created", "ticket_id", "created_at"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    ticket_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False
    )
    author_id: Mapped[str] = mapped_column(String(64), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=_now_utc, nullable=False)

    ticket: Mapped["Ticket"] = relationship(back_populates="comments")


class IncomingEmail(Base):
    """Raw captured fields of one inbound message (categorization target)."""

    __tablename__ = "incoming_emails"
    __table_args__ = (Index("idx_incoming_emails_from", "from_address"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    from_address: Mapped[str] = mapped_column(String(320), nullable=False)
    to_address: Mapped[str | None] = mapped_column(String(320), nullable=True)
    subject: Mapped[str] = mapped_column(Text, nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    customer_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True
    )
    received_at: Mapped[datetime] = mapped_column(default=_now_utc, nullable=False)

    categorizations: Mapped[list["EmailCategorization"]] = relationship(back_populates="incoming_email")


class EmailCategorization(Base):
    """Model-predicted category/language for an email, with human feedback."""

    __tablename__ = "email_categorizations"
    __table_args__ = (
        Index("idx_email_categorizations_email", "incoming_email_id"),
        Index("idx_email_categorizations_feedback", "feedback_sent_to_llm"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    incoming_email_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("incoming_emails.id", ondelete="CASCADE"), nullable=False
    )
    category: Mapped[TicketCategory] = mapped_column(
        _enum_type(TicketCategory, name="ticket_category"), nullable=False
    )
    language: Mapped[EmailLanguage] = mapped_column(
        _enum_type(EmailLanguage, name="email_language"), nullable=False
    )
    confidence: Mapped[float] = mapped_column(Float, nullable=False)

    # Human review (None = not reviewed yet)
    is_category_correct: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    is_language_correct: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    corrected_category: Mapped[TicketCategory | None] = mapped_column(
        _enum_type(TicketCategory, name="ticket_category"), nullable=True
    )
    corrected_language: Mapped[EmailLanguage | None] = mapped_column(
        _enum_type(EmailLanguage, name="email_language"), nullable=True
    )

    # Feedback loop bookkeeping; suggestions are advisory only
    feedback_sent_to_llm: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    feedback_sent_at: Mapped[datetime | None] = mapped_column(nullable=True)
    llm_suggestion: Mapped[str | None] = mapped_column(Text, nullable=True)
    llm_suggestion_category: Mapped[TicketCategory | None] = mapped_column(
        _enum_type(TicketCategory, name="ticket_category"), nullable=True
    )
    llm_suggestion_language: Mapped[EmailLanguage | None] = mapped_column(
        _enum_type(EmailLanguage, name="email_language"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(default=_now_utc, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(default=_now_utc, onupdate=_now_utc, nullable=False)

    incoming_email: Mapped["IncomingEmail"] = relationship(back_populates="categorizations")
