"""Rate limiting configuration for the AutoCRM API."""

import os

from slowapi import Limiter
from slowapi.util import get_remote_address

from autocrm.core.config import settings

IS_TESTING = os.getenv("TESTING", "").lower() in ("1", "true", "yes")

# In-memory storage by default; point RATE_LIMIT_STORAGE_URI at Redis for multi-worker deployments
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    enabled=settings.RATE_LIMIT_ENABLED and not IS_TESTING,
)


def email_ingest_limit() -> str:
    """Per-minute limit for the email ingestion webhook."""
    return f"{max(settings.RATE_LIMIT_EMAIL_INGEST, 1)}/minute"
