"""Pydantic schemas for AI responses."""

from pydantic import BaseModel, ConfigDict, Field

from autocrm.db.enums import EmailLanguage, TicketCategory


class EmailCategorizationOutput(BaseModel):
    model_config = ConfigDict(extra="ignore")

    category: TicketCategory
    language: EmailLanguage
    confidence: float = Field(ge=0.0, le=1.0, strict=True)


class CategorizationSuggestionOutput(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    analysis: str = Field(strict=True)
    suggested_category: TicketCategory = Field(alias="suggestedCategory")
    suggested_language: EmailLanguage = Field(alias="suggestedLanguage")
    explanation: str = Field(strict=True)


class StoredSuggestion(BaseModel):
    """Shape of EmailCategorization.llm_suggestion."""

    model_config = ConfigDict(extra="ignore")

    analysis: str | None = None
    explanation: str | None = None
