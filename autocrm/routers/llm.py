"""Free-form prompt endpoint."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from autocrm.core.deps import get_ai_provider
from autocrm.schemas.email import PromptRequest, PromptResponse
from autocrm.services.ai_prompt_registry import get_prompt
from autocrm.services.ai_provider import AIProvider, ChatMessage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["LLM"])

PROMPT_TEMPERATURE = 0.7


@router.post("/langchain", response_model=PromptResponse)
async def run_prompt(
    data: PromptRequest,
    provider: AIProvider | None = Depends(get_ai_provider),
):
    """Send a prompt to the model and return the whole completion."""
    if provider is None:
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "AI API key not configured"},
        )

    try:
        response = await provider.chat(
            [
                ChatMessage(role="system", content=get_prompt("free_form").system),
                ChatMessage(role="user", content=data.prompt),
            ],
            temperature=PROMPT_TEMPERATURE,
        )
    except Exception as exc:
        logger.exception("Prompt request failed")
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": str(exc) or "An unexpected error occurred."},
        )

    return PromptResponse(success=True, data=response.content, complete=True)
