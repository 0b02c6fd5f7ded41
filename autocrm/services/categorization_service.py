"""Email categorization with the AI provider, human feedback and suggestion views."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.orm import Session, selectinload

from autocrm.db.enums import CATEGORY_DESCRIPTIONS, LANGUAGE_NAMES, EmailLanguage, TicketCategory
from autocrm.db.models import Customer, EmailCategorization, IncomingEmail
from autocrm.schemas.email import IncomingEmailRead, SuggestionRead
from autocrm.services import customer_service
from autocrm.services.ai_prompt_registry import get_prompt
from autocrm.services.ai_prompt_schemas import EmailCategorizationOutput, StoredSuggestion
from autocrm.services.ai_provider import AIProvider, ChatMessage
from autocrm.services.ai_response_validation import (
    AIResponseError,
    load_model,
    parse_json_object,
    validate_model,
)
from autocrm.services.errors import CategorizationError, CategorizationNotFound

logger = logging.getLogger(__name__)

CATEGORIZE_TEMPERATURE = 0.1
CATEGORIZE_MAX_TOKENS = 500
DEFAULT_SUGGESTION_LIMIT = 10


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# Categorize
# ============================================================================


def build_categorization_prompt(subject: str, content: str) -> str:
    prompt = get_prompt("email_categorize")
    return prompt.render_user(
        subject=subject,
        content=content,
        categories="\n".join(f"- {c.value}: {desc}" for c, desc in CATEGORY_DESCRIPTIONS.items()),
        languages="\n".join(f"- {lang.value}: {name}" for lang, name in LANGUAGE_NAMES.items()),
        category_choices="|".join(c.value for c in TicketCategory),
        language_choices="|".join(lang.value for lang in EmailLanguage),
    )


async def categorize_email(provider: AIProvider, subject: str, content: str) -> EmailCategorizationOutput:
    """
    Ask the model for category, language and confidence.

    Raises:
        CategorizationError: response is not valid JSON or violates the schema
        httpx.HTTPError: provider call failed or timed out
    """
    prompt = get_prompt("email_categorize")
    response = await provider.chat(
        [
            ChatMessage(role="system", content=prompt.system),
            ChatMessage(role="user", content=build_categorization_prompt(subject, content)),
        ],
        temperature=CATEGORIZE_TEMPERATURE,
        max_tokens=CATEGORIZE_MAX_TOKENS,
    )
    try:
        return load_model(EmailCategorizationOutput, response.content)
    except AIResponseError as exc:
        raise CategorizationError(str(exc)) from exc


@dataclass(frozen=True)
class CategorizationRecord:
    customer: Customer
    email: IncomingEmail
    categorization: EmailCategorization


async def categorize_and_store(
    db: Session,
    provider: AIProvider,
    *,
    subject: str,
    content: str,
    from_address: str,
    to_address: str | None = None,
) -> CategorizationRecord:
    """
    Categorize an email and persist the email and its categorization.

    The model call and validation run before any write, so a rejected
    response leaves the store untouched. Repeated calls create new records.
    """
    result = await categorize_email(provider, subject, content)

    customer, _ = customer_service.resolve_customer(db, from_address)
    email = IncomingEmail(
        from_address=from_address.strip(),
        to_address=to_address,
        subject=subject,
        body=content,
        customer_id=customer.id,
        received_at=_now_utc(),
    )
    db.add(email)
    db.flush()

    categorization = EmailCategorization(
        incoming_email_id=email.id,
        category=result.category,
        language=result.language,
        confidence=result.confidence,
        feedback_sent_to_llm=False,
    )
    db.add(categorization)
    db.commit()
    db.refresh(customer)
    db.refresh(email)
    db.refresh(categorization)

    logger.info(
        "Categorized email %s as %s/%s (confidence %.2f)",
        email.id,
        result.category.value,
        result.language.value,
        result.confidence,
    )
    return CategorizationRecord(customer=customer, email=email, categorization=categorization)


# ============================================================================
# Feedback
# ============================================================================


def record_feedback(
    db: Session,
    categorization_id: UUID,
    *,
    is_category_correct: bool,
    is_language_correct: bool,
    correct_category: TicketCategory | None = None,
    correct_language: EmailLanguage | None = None,
) -> EmailCategorization:
    """
    Store human review of a categorization and queue it for the feedback loop.

    Corrections sit beside the prediction; the original category and language
    are kept for the critique prompt. Corrections are ignored for a dimension
    marked correct.
    """
    categorization = db.get(EmailCategorization, categorization_id)
    if categorization is None:
        raise CategorizationNotFound("Categorization not found")

    categorization.is_category_correct = is_category_correct
    categorization.is_language_correct = is_language_correct
    categorization.corrected_category = None if is_category_correct else correct_category
    categorization.corrected_language = None if is_language_correct else correct_language
    categorization.feedback_sent_to_llm = False
    categorization.updated_at = _now_utc()
    db.commit()
    db.refresh(categorization)
    return categorization


# ============================================================================
# Suggestions
# ============================================================================


@dataclass(frozen=True)
class SuggestionFilter:
    """Suggestion query predicates, applied in declaration order."""

    categorization_id: UUID | None = None
    has_llm_suggestion: bool = False
    category: TicketCategory | None = None
    language: EmailLanguage | None = None

    def clauses(self) -> list:
        out = []
        if self.categorization_id is not None:
            out.append(EmailCategorization.id == self.categorization_id)
        if self.has_llm_suggestion:
            out.append(EmailCategorization.llm_suggestion.is_not(None))
        if self.category is not None:
            out.append(EmailCategorization.category == self.category)
        if self.language is not None:
            out.append(EmailCategorization.language == self.language)
        return out


def _parse_stored_suggestion(raw: str | None, categorization_id: UUID) -> StoredSuggestion | None:
    if not raw:
        return None
    suggestion = validate_model(StoredSuggestion, parse_json_object(raw))
    if suggestion is None:
        logger.warning("Unreadable stored suggestion on categorization %s", categorization_id)
    return suggestion


def to_suggestion_view(categorization: EmailCategorization) -> SuggestionRead:
    stored = _parse_stored_suggestion(categorization.llm_suggestion, categorization.id)
    email = categorization.incoming_email
    return SuggestionRead(
        id=categorization.id,
        original_category=categorization.category,
        original_language=categorization.language,
        confidence=categorization.confidence,
        is_category_correct=categorization.is_category_correct,
        is_language_correct=categorization.is_language_correct,
        corrected_category=categorization.corrected_category,
        corrected_language=categorization.corrected_language,
        suggested_category=categorization.llm_suggestion_category,
        suggested_language=categorization.llm_suggestion_language,
        analysis=stored.analysis if stored else None,
        explanation=stored.explanation if stored else None,
        email=IncomingEmailRead.model_validate(email) if email is not None else None,
        created_at=categorization.created_at,
        feedback_sent_at=categorization.feedback_sent_at,
    )


def list_suggestions(
    db: Session,
    suggestion_filter: SuggestionFilter,
    *,
    limit: int = DEFAULT_SUGGESTION_LIMIT,
) -> list[SuggestionRead]:
    """Categorizations matching the filter with their suggestions, newest first."""
    rows = (
        db.query(EmailCategorization)
        .options(selectinload(EmailCategorization.incoming_email))
        .filter(*suggestion_filter.clauses())
        .order_by(EmailCategorization.created_at.desc())
        .limit(limit)
        .all()
    )
    return [to_suggestion_view(row) for row in rows]
