"""Feedback loop: ask the model to critique categorizations humans marked wrong.

Suggestions are stored for review only. Nothing here changes a
categorization's predicted category or language.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import or_
from sqlalchemy.orm import Session

from autocrm.core.config import settings
from autocrm.db.enums import EmailLanguage, TicketCategory
from autocrm.db.models import EmailCategorization, IncomingEmail
from autocrm.services.ai_prompt_registry import get_prompt
from autocrm.services.ai_prompt_schemas import CategorizationSuggestionOutput
from autocrm.services.ai_provider import AIProvider, ChatMessage
from autocrm.services.ai_response_validation import load_model

logger = logging.getLogger(__name__)

FEEDBACK_TEMPERATURE = 0.1
MAX_FEEDBACK_BATCH_SIZE = 50


@dataclass
class FeedbackRunResult:
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def select_pending_feedback(db: Session, *, limit: int) -> list[EmailCategorization]:
    """Reviewed-as-wrong categorizations whose feedback has not been sent yet."""
    return (
        db.query(EmailCategorization)
        .filter(
            EmailCategorization.feedback_sent_to_llm.is_(False),
            or_(
                EmailCategorization.is_category_correct.is_(False),
                EmailCategorization.is_language_correct.is_(False),
            ),
        )
        .order_by(EmailCategorization.created_at.asc())
        .limit(limit)
        .all()
    )


def build_feedback_prompt(categorization: EmailCategorization, email: IncomingEmail) -> str:
    corrections = []
    if categorization.corrected_category is not None:
        corrections.append(f"- Correct category per reviewer: {categorization.corrected_category.value}")
    if categorization.corrected_language is not None:
        corrections.append(f"- Correct language per reviewer: {categorization.corrected_language.value}")
    corrections_block = ("\nReviewer Corrections:\n" + "\n".join(corrections) + "\n") if corrections else ""

    return get_prompt("categorization_feedback").render_user(
        subject=email.subject,
        body=email.body,
        category=categorization.category.value,
        is_category_correct=str(categorization.is_category_correct).lower(),
        language=categorization.language.value,
        is_language_correct=str(categorization.is_language_correct).lower(),
        confidence=categorization.confidence,
        corrections=corrections_block,
        category_choices="|".join(c.value for c in TicketCategory),
        language_choices="|".join(lang.value for lang in EmailLanguage),
    )


async def _process_one(db: Session, provider: AIProvider, categorization: EmailCategorization) -> bool:
    """Returns False when the categorization was skipped."""
    email = db.get(IncomingEmail, categorization.incoming_email_id)
    if email is None:
        return False

    prompt = get_prompt("categorization_feedback")
    response = await provider.chat(
        [
            ChatMessage(role="system", content=prompt.system),
            ChatMessage(role="user", content=build_feedback_prompt(categorization, email)),
        ],
        temperature=FEEDBACK_TEMPERATURE,
    )
    suggestion = load_model(CategorizationSuggestionOutput, response.content)

    now = _now_utc()
    categorization.llm_suggestion = json.dumps(
        {"analysis": suggestion.analysis, "explanation": suggestion.explanation}
    )
    categorization.llm_suggestion_category = suggestion.suggested_category
    categorization.llm_suggestion_language = suggestion.suggested_language
    categorization.feedback_sent_to_llm = True
    categorization.feedback_sent_at = now
    categorization.updated_at = now
    db.commit()
    return True


async def process_pending_feedback(
    db: Session,
    provider: AIProvider,
    *,
    limit: int | None = None,
) -> FeedbackRunResult:
    """
    Run one feedback pass over at most `limit` pending categorizations.

    The batch size is clamped to 1..MAX_FEEDBACK_BATCH_SIZE.

    Items whose email is gone are skipped and stay pending. A failing item is
    rolled back and logged; the pass continues with the next one.
    """
    batch_size = min(max(limit or settings.FEEDBACK_BATCH_SIZE, 1), MAX_FEEDBACK_BATCH_SIZE)
    pending = select_pending_feedback(db, limit=batch_size)
    result = FeedbackRunResult(processed=len(pending))
    if not pending:
        logger.info("No new feedback to process")
        return result

    # Ids captured up front; rollback expires the loaded instances
    for categorization_id in [c.id for c in pending]:
        categorization = db.get(EmailCategorization, categorization_id)
        if categorization is None:
            result.skipped += 1
            continue
        try:
            if await _process_one(db, provider, categorization):
                result.succeeded += 1
            else:
                result.skipped += 1
        except Exception:
            logger.exception("Error processing feedback for categorization %s", categorization_id)
            db.rollback()
            result.failed += 1

    logger.info(
        "Feedback pass finished: processed=%d succeeded=%d failed=%d skipped=%d",
        result.processed,
        result.succeeded,
        result.failed,
        result.skipped,
    )
    return result
