"""
Internal endpoints for scheduled/cron operations.

Protected by X-Internal-Secret header.
Call from external cron (Render/Railway/GH Actions).
"""

import logging

from fastapi import APIRouter, Depends, Header, HTTPException
from sqlalchemy.orm import Session

from autocrm.core.config import settings
from autocrm.core.deps import get_ai_provider, get_db
from autocrm.core.security import verify_secret
from autocrm.schemas.email import FeedbackRunRead
from autocrm.services import feedback_service
from autocrm.services.ai_provider import AIProvider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/internal/scheduled", tags=["internal"])


def verify_internal_secret(x_internal_secret: str | None = Header(default=None)):
    """Verify the internal secret header."""
    expected = settings.INTERNAL_SECRET
    if not expected:
        raise HTTPException(status_code=501, detail="INTERNAL_SECRET not configured")
    if not verify_secret(x_internal_secret, expected):
        raise HTTPException(status_code=403, detail="Invalid internal secret")


@router.post(
    "/email-feedback",
    response_model=FeedbackRunRead,
    dependencies=[Depends(verify_internal_secret)],
)
async def run_email_feedback(
    db: Session = Depends(get_db),
    provider: AIProvider | None = Depends(get_ai_provider),
) -> FeedbackRunRead:
    """
    Send pending categorization feedback to the model.

    Intended to run on a schedule. Stores advisory suggestions only.
    """
    if provider is None:
        raise HTTPException(status_code=500, detail="AI API key not configured")

    result = await feedback_service.process_pending_feedback(db, provider)
    return FeedbackRunRead(
        processed=result.processed,
        succeeded=result.succeeded,
        failed=result.failed,
        skipped=result.skipped,
    )
