"""Chat-completion clients for the categorizer and feedback loop.

OpenAI and Google Gemini behind one `chat()` call. Every request uses a
fixed timeout and fails on the first error; callers decide what a failure
means for their flow.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "gemini": "gemini-2.0-flash",
}


@dataclass
class ChatMessage:
    """A single message in a conversation."""

    role: str  # 'system', 'user', 'assistant'
    content: str


@dataclass
class ChatResponse:
    """Completion text and the model that produced it."""

    content: str
    model: str


class AIProvider(ABC):
    """Abstract base class for AI providers."""

    name: str = ""

    def __init__(
        self,
        api_key: str,
        default_model: str | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.default_model = default_model or DEFAULT_MODELS.get(self.name, "")
        self.timeout = timeout
        self.transport = transport

    @abstractmethod
    async def chat(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 2000,
    ) -> ChatResponse:
        """Send a chat completion request."""

    async def _post_json(self, url: str, body: dict[str, Any], **kwargs: Any) -> dict:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(url, json=body, **kwargs)
        if response.is_error:
            logger.warning("%s returned HTTP %s", self.name, response.status_code)
        response.raise_for_status()
        return response.json()


class OpenAIProvider(AIProvider):
    """OpenAI chat completions."""

    name = "openai"
    base_url = "https://api.openai.com/v1"

    async def chat(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 2000,
    ) -> ChatResponse:
        model = model or self.default_model
        data = await self._post_json(
            f"{self.base_url}/chat/completions",
            {
                "model": model,
                "messages": [{"role": m.role, "content": m.content} for m in messages],
                "temperature": temperature,
                "max_tokens": max_tokens,
            },
            headers={"Authorization": f"Bearer {self.api_key}"},
        )
        return ChatResponse(content=data["choices"][0]["message"]["content"], model=model)


class GeminiProvider(AIProvider):
    """Google Gemini generateContent."""

    name = "gemini"
    base_url = "https://generativelanguage.googleapis.com/v1beta"

    async def chat(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 2000,
    ) -> ChatResponse:
        model = model or self.default_model

        # Gemini has 'user' and 'model' roles; system text goes in systemInstruction
        system_parts = [{"text": m.content} for m in messages if m.role == "system"]
        contents = [
            {"role": "model" if m.role == "assistant" else "user", "parts": [{"text": m.content}]}
            for m in messages
            if m.role != "system"
        ]
        body: dict[str, Any] = {
            "contents": contents,
            "generationConfig": {"temperature": temperature, "maxOutputTokens": max_tokens},
        }
        if system_parts:
            body["systemInstruction"] = {"parts": system_parts}

        data = await self._post_json(
            f"{self.base_url}/models/{model}:generateContent",
            body,
            params={"key": self.api_key},
        )
        return ChatResponse(content=data["candidates"][0]["content"]["parts"][0]["text"], model=model)


PROVIDERS: dict[str, type[AIProvider]] = {
    OpenAIProvider.name: OpenAIProvider,
    GeminiProvider.name: GeminiProvider,
}


def get_provider(
    provider_name: str,
    api_key: str,
    model: str | None = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> AIProvider:
    """Build the client for `provider_name` ("openai" or "gemini")."""
    provider_cls = PROVIDERS.get(provider_name)
    if provider_cls is None:
        raise ValueError(f"Unknown provider: {provider_name}")
    return provider_cls(api_key, default_model=model, timeout=timeout)
