"""Pydantic schemas for email ingestion, categorization and feedback APIs."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field

from autocrm.db.enums import EmailLanguage, TicketCategory
from autocrm.schemas.common import CamelModel
from autocrm.schemas.crm import CustomerRead


class EmailIngestRequest(CamelModel):
    """Notification from the upstream email-receiving service."""

    message_id: str = Field(min_length=1, description="Object key of the raw message in the mail bucket")
    timestamp: str | None = None
    source: str = Field(min_length=1, description="Sender address")
    subject: str | None = None


class EmailIngestResponse(CamelModel):
    success: bool = True
    customer_id: UUID
    ticket_id: UUID
    activity_id: UUID


class CategorizeRequest(CamelModel):
    subject: str = Field(min_length=1)
    content: str = Field(min_length=1)
    from_address: str = Field(min_length=1)
    to_address: str | None = None


class IncomingEmailRead(CamelModel):
    id: UUID
    from_address: str
    to_address: str | None = None
    subject: str
    body: str
    customer_id: UUID | None = None
    received_at: datetime


class CategorizationRead(CamelModel):
    id: UUID
    incoming_email_id: UUID
    category: TicketCategory
    language: EmailLanguage
    confidence: float
    is_category_correct: bool | None = None
    is_language_correct: bool | None = None
    corrected_category: TicketCategory | None = None
    corrected_language: EmailLanguage | None = None
    feedback_sent_to_llm: bool = Field(default=False, alias="feedbackSentToLLM")
    feedback_sent_at: datetime | None = None
    llm_suggestion: str | None = None
    llm_suggestion_category: TicketCategory | None = None
    llm_suggestion_language: EmailLanguage | None = None
    created_at: datetime
    updated_at: datetime


class CategorizeData(CamelModel):
    customer: CustomerRead
    email: IncomingEmailRead
    categorization: CategorizationRead


class CategorizeResponse(CamelModel):
    success: bool = True
    data: CategorizeData


class FeedbackRequest(CamelModel):
    categorization_id: UUID
    is_category_correct: bool
    is_language_correct: bool
    correct_category: TicketCategory | None = None
    correct_language: EmailLanguage | None = None


class FeedbackResponse(CamelModel):
    success: bool = True
    data: CategorizationRead


class SuggestionRead(CamelModel):
    """Advisory view of a categorization and the model's corrective suggestion."""

    id: UUID
    original_category: TicketCategory
    original_language: EmailLanguage
    confidence: float
    is_category_correct: bool | None = None
    is_language_correct: bool | None = None
    corrected_category: TicketCategory | None = None
    corrected_language: EmailLanguage | None = None
    suggested_category: TicketCategory | None = None
    suggested_language: EmailLanguage | None = None
    analysis: str | None = None
    explanation: str | None = None
    email: IncomingEmailRead | None = None
    created_at: datetime
    feedback_sent_at: datetime | None = None


class SuggestionListResponse(CamelModel):
    success: bool = True
    data: list[SuggestionRead]


class PromptRequest(CamelModel):
    prompt: str = Field(min_length=1)


class PromptResponse(CamelModel):
    success: bool = True
    data: str
    complete: bool = True


class FeedbackRunRead(CamelModel):
    processed: int
    succeeded: int
    failed: int
    skipped: int
