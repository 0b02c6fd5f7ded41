import pytest

from autocrm.db.enums import EmailLanguage, TicketCategory
from autocrm.services.ai_prompt_schemas import (
    CategorizationSuggestionOutput,
    EmailCategorizationOutput,
)
from autocrm.services.ai_response_validation import (
    AIResponseError,
    load_model,
    parse_json_object,
    validate_model,
)


def test_parse_json_object_handles_code_fence():
    payload = parse_json_object('```json\n{"category":"BILLING","language":"EN"}\n```')
    assert payload == {"category": "BILLING", "language": "EN"}


def test_parse_json_object_extracts_embedded_object():
    payload = parse_json_object('Sure! {"category": "SALES"} Hope that helps.')
    assert payload == {"category": "SALES"}


def test_parse_json_object_rejects_arrays_and_prose():
    assert parse_json_object("[1, 2]") is None
    assert parse_json_object("no json here") is None


def test_validate_model_returns_none_on_schema_mismatch():
    assert validate_model(EmailCategorizationOutput, {"category": "SPAM", "language": "EN", "confidence": 1}) is None


def test_load_model_returns_instance():
    result = load_model(
        EmailCategorizationOutput,
        '{"category": "ACCOUNT", "language": "JA", "confidence": 0.4, "extra": true}',
    )
    assert result.category == TicketCategory.ACCOUNT
    assert result.language == EmailLanguage.JA
    assert result.confidence == pytest.approx(0.4)


def test_load_model_accepts_camel_case_suggestion_keys():
    result = load_model(
        CategorizationSuggestionOutput,
        '{"analysis": "a", "suggestedCategory": "OTHER", "suggestedLanguage": "FR", "explanation": "e"}',
    )
    assert result.suggested_category == TicketCategory.OTHER
    assert result.suggested_language == EmailLanguage.FR


def test_load_model_names_failing_fields():
    with pytest.raises(AIResponseError, match="confidence"):
        load_model(EmailCategorizationOutput, '{"category": "ACCOUNT", "language": "EN", "confidence": -1}')


def test_load_model_rejects_non_object():
    with pytest.raises(AIResponseError, match="not a JSON object"):
        load_model(EmailCategorizationOutput, "ACCOUNT")


@pytest.mark.parametrize("confidence", ['"0.9"', "true", "null"])
def test_load_model_rejects_non_numeric_confidence(confidence):
    with pytest.raises(AIResponseError, match="confidence"):
        load_model(
            EmailCategorizationOutput,
            '{"category": "SUPPORT", "language": "EN", "confidence": %s}' % confidence,
        )


def test_load_model_accepts_integer_confidence():
    result = load_model(EmailCategorizationOutput, '{"category": "SUPPORT", "language": "EN", "confidence": 1}')
    assert result.confidence == 1.0


def test_load_model_rejects_non_string_suggestion_text():
    with pytest.raises(AIResponseError, match="analysis"):
        load_model(
            CategorizationSuggestionOutput,
            '{"analysis": 42, "suggestedCategory": "OTHER", "suggestedLanguage": "FR", "explanation": "e"}',
        )
