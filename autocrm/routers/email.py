"""Email ingestion, categorization, feedback and suggestion APIs."""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from autocrm.core.deps import get_ai_provider, get_db, get_email_fetcher, require_email_ingest_auth
from autocrm.core.rate_limit import email_ingest_limit, limiter
from autocrm.core.structured_logging import EMAIL_API_LOGGER, build_log_context
from autocrm.db.enums import EmailLanguage, TicketCategory
from autocrm.schemas.crm import CustomerRead
from autocrm.schemas.email import (
    CategorizationRead,
    CategorizeData,
    CategorizeRequest,
    CategorizeResponse,
    EmailIngestRequest,
    EmailIngestResponse,
    FeedbackRequest,
    FeedbackResponse,
    IncomingEmailRead,
    SuggestionListResponse,
)
from autocrm.services import categorization_service, email_ingest_service
from autocrm.services.ai_provider import AIProvider
from autocrm.services.categorization_service import SuggestionFilter
from autocrm.services.errors import CategorizationNotFound
from autocrm.services.storage_client import S3EmailFetcher

logger = logging.getLogger(__name__)
email_api_log = logging.getLogger(EMAIL_API_LOGGER)

router = APIRouter(prefix="/api", tags=["Email"])


def _error(status_code: int, error: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error, **extra})


@router.post(
    "/email",
    response_model=EmailIngestResponse,
    dependencies=[Depends(require_email_ingest_auth)],
)
@limiter.limit(email_ingest_limit)
def ingest_email(
    request: Request,
    data: EmailIngestRequest,
    db: Session = Depends(get_db),
    fetcher: S3EmailFetcher = Depends(get_email_fetcher),
):
    """
    Turn a stored inbound email into a ticket activity.

    Called by the upstream email-receiving service after it writes the raw
    message to the mail bucket under `messageId`.
    """
    email_api_log.info(
        "Email API request",
        extra={"data": build_log_context(message_id=data.message_id, route="/api/email", method="POST")},
    )
    try:
        result = email_ingest_service.ingest_email(
            db,
            fetcher,
            message_id=data.message_id,
            source=data.source,
            subject=data.subject,
            timestamp=data.timestamp,
        )
    except Exception as exc:
        logger.exception("Failed to process email %s", data.message_id)
        return _error(
            500,
            "Failed to process email",
            details=str(exc),
            name=type(exc).__name__,
        )

    return EmailIngestResponse(
        success=True,
        customer_id=result.customer_id,
        ticket_id=result.ticket_id,
        activity_id=result.activity_id,
    )


@router.post("/email-categorize", response_model=CategorizeResponse)
async def categorize_email(
    data: CategorizeRequest,
    db: Session = Depends(get_db),
    provider: AIProvider | None = Depends(get_ai_provider),
):
    """Categorize an email by category and language and store the result."""
    if provider is None:
        return _error(500, "AI API key not configured")

    try:
        record = await categorization_service.categorize_and_store(
            db,
            provider,
            subject=data.subject,
            content=data.content,
            from_address=data.from_address,
            to_address=data.to_address,
        )
    except Exception as exc:
        logger.exception("Email categorization failed")
        db.rollback()
        return _error(500, str(exc) or "An unexpected error occurred.", name=type(exc).__name__)

    return CategorizeResponse(
        success=True,
        data=CategorizeData(
            customer=CustomerRead.model_validate(record.customer),
            email=IncomingEmailRead.model_validate(record.email),
            categorization=CategorizationRead.model_validate(record.categorization),
        ),
    )


@router.post("/email-feedback", response_model=FeedbackResponse)
def submit_feedback(
    data: FeedbackRequest,
    db: Session = Depends(get_db),
):
    """Record human review of a categorization and queue it for the feedback loop."""
    try:
        categorization = categorization_service.record_feedback(
            db,
            data.categorization_id,
            is_category_correct=data.is_category_correct,
            is_language_correct=data.is_language_correct,
            correct_category=data.correct_category,
            correct_language=data.correct_language,
        )
    except CategorizationNotFound:
        return _error(404, "Categorization not found")
    except Exception as exc:
        logger.exception("Failed to record feedback for %s", data.categorization_id)
        db.rollback()
        return _error(500, str(exc) or "An unexpected error occurred.", name=type(exc).__name__)

    return FeedbackResponse(success=True, data=CategorizationRead.model_validate(categorization))


@router.get("/email-suggestions", response_model=SuggestionListResponse)
def list_suggestions(
    categorization_id: Annotated[UUID | None, Query(alias="categorizationId")] = None,
    has_llm_suggestion: Annotated[bool, Query(alias="hasLLMSuggestion")] = False,
    category: TicketCategory | None = None,
    language: EmailLanguage | None = None,
    limit: Annotated[int, Query(ge=1, le=50)] = categorization_service.DEFAULT_SUGGESTION_LIMIT,
    db: Session = Depends(get_db),
):
    """List categorizations with their (advisory) model suggestions."""
    suggestion_filter = SuggestionFilter(
        categorization_id=categorization_id,
        has_llm_suggestion=has_llm_suggestion,
        category=category,
        language=language,
    )
    try:
        suggestions = categorization_service.list_suggestions(db, suggestion_filter, limit=limit)
    except Exception as exc:
        logger.exception("Failed to list suggestions")
        return _error(500, str(exc) or "An unexpected error occurred.", name=type(exc).__name__)

    return SuggestionListResponse(success=True, data=suggestions)
