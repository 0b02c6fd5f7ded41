"""
Test configuration and fixtures.

Provides:
- Fresh in-memory SQLite database per test
- Fake mail-bucket fetcher and fake AI provider
- Bearer token minting for agent-facing endpoints
- HTTPX AsyncClient with dependency overrides
"""
import os
from email.message import EmailMessage
from email.utils import format_datetime
from datetime import datetime, timezone
from typing import AsyncGenerator, Callable, Generator

# Settings are read at import time
os.environ["TESTING"] = "1"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["EMAIL_API_LOG_PATH"] = ""
os.environ["EMAIL_PROCESSING_API_KEY"] = "test-ingest-key"
os.environ["INTERNAL_SECRET"] = "test-internal-secret"
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["AI_PROVIDER"] = "openai"
os.environ["OPENAI_API_KEY"] = "sk-test"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from autocrm.core.deps import get_ai_provider, get_db, get_email_fetcher
from autocrm.core.security import create_access_token
from autocrm.db.base import Base
from autocrm.db import models  # noqa: F401
from autocrm.main import app
from autocrm.services.ai_provider import AIProvider, ChatMessage, ChatResponse
from autocrm.services.errors import EmailFetchError


# =============================================================================
# Fakes
# =============================================================================

class FakeEmailFetcher:
    """In-memory stand-in for the mail bucket."""

    def __init__(self):
        self.objects: dict[str, str] = {}
        self.calls: list[str] = []

    def put(self, key: str, raw: str) -> None:
        self.objects[key] = raw

    def fetch(self, key: str) -> str:
        self.calls.append(key)
        raw = self.objects.get(key)
        if not raw:
            raise EmailFetchError("No email content found")
        return raw


class FakeAIProvider(AIProvider):
    """Returns queued responses in order; an Exception entry is raised instead."""

    def __init__(self, responses: list | None = None):
        self.responses: list = list(responses or [])
        self.calls: list[dict] = []

    def queue(self, *responses) -> None:
        self.responses.extend(responses)

    async def chat(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 2000,
    ) -> ChatResponse:
        self.calls.append(
            {"messages": messages, "model": model, "temperature": temperature, "max_tokens": max_tokens}
        )
        if not self.responses:
            raise AssertionError("FakeAIProvider has no queued response")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return ChatResponse(content=response, model=model or "fake-model")


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Session on a private in-memory database.

    StaticPool keeps one connection so sync routes running in the threadpool
    see the same database as the test.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


# =============================================================================
# Dependency Fakes
# =============================================================================

@pytest.fixture(scope="function")
def fetcher() -> FakeEmailFetcher:
    return FakeEmailFetcher()


@pytest.fixture(scope="function")
def provider() -> FakeAIProvider:
    return FakeAIProvider()


@pytest.fixture(scope="function")
def raw_email() -> Callable[..., str]:
    """Factory for raw RFC 5322 messages."""

    def _build(
        *,
        subject: str | None = "Help",
        body: str = "I need help",
        sender: str = "Foo <foo@bar.com>",
        to: str = "support@autocrm.test",
        date: datetime | None = None,
        html: str | None = None,
    ) -> str:
        message = EmailMessage()
        message["From"] = sender
        message["To"] = to
        if subject is not None:
            message["Subject"] = subject
        message["Date"] = format_datetime(date or datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc))
        message.set_content(body)
        if html is not None:
            message.add_alternative(html, subtype="html")
        return message.as_string()

    return _build


# =============================================================================
# Auth Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def agent_token() -> str:
    return create_access_token("agent@autocrm.test", name="Ada Agent")


@pytest.fixture(scope="function")
def auth_headers(agent_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {agent_token}"}


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture(scope="function")
async def client(
    db: Session,
    fetcher: FakeEmailFetcher,
    provider: FakeAIProvider,
) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient with the database, mail bucket and AI provider overridden."""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_email_fetcher] = lambda: fetcher
    app.dependency_overrides[get_ai_provider] = lambda: provider

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
