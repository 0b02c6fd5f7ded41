"""FastAPI dependencies for authentication, storage, AI provider and database access."""

from typing import Generator

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from autocrm.core.auth import (
    ApiKeyAuthenticator,
    AuthenticatorChain,
    AuthResult,
    TokenAuthenticator,
)
from autocrm.core.config import settings
from autocrm.db.session import SessionLocal
from autocrm.services.ai_provider import AIProvider, get_provider
from autocrm.services.errors import AIProviderNotConfigured
from autocrm.services.storage_client import S3EmailFetcher


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields a database session and ensures it's closed after the request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_email_fetcher() -> S3EmailFetcher:
    """Raw-message fetcher for the configured mail bucket."""
    return S3EmailFetcher(settings.EMAIL_BUCKET)


def get_ai_provider() -> AIProvider | None:
    """
    AI provider for the configured vendor.

    Returns None when no API key is configured; callers decide how to fail.
    """
    api_key = settings.ai_api_key
    if not api_key:
        return None
    return get_provider(
        settings.AI_PROVIDER,
        api_key,
        model=settings.AI_MODEL or None,
        timeout=settings.AI_TIMEOUT_SECONDS,
    )


def require_ai_provider() -> AIProvider:
    """
    AI provider for non-request callers (CLI, scripts).

    Raises:
        AIProviderNotConfigured: no API key for the selected vendor
    """
    provider = get_ai_provider()
    if provider is None:
        raise AIProviderNotConfigured(f"No API key configured for AI provider '{settings.AI_PROVIDER}'")
    return provider


def get_ingest_authenticator() -> AuthenticatorChain:
    """Bearer token first, then the email-processing service key."""
    return AuthenticatorChain(
        [
            TokenAuthenticator(),
            ApiKeyAuthenticator(settings.EMAIL_PROCESSING_API_KEY),
        ]
    )


def require_email_ingest_auth(
    request: Request,
    authenticator: AuthenticatorChain = Depends(get_ingest_authenticator),
) -> AuthResult:
    """
    Gate for the email ingestion webhook.

    Raises:
        HTTPException 401: no authenticator accepted the request
    """
    result = authenticator.authenticate(request.headers)
    if not result.authenticated:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return result


def require_agent_token(request: Request) -> AuthResult:
    """
    Bearer-token gate for agent-facing endpoints.

    Raises:
        HTTPException 401: missing, invalid or expired token
    """
    result = TokenAuthenticator().authenticate(request.headers)
    if not result.authenticated:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return result
