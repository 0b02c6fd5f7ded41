"""Central registry for AI system prompts and templates."""

from dataclasses import dataclass


@dataclass(frozen=True)
class PromptTemplate:
    key: str
    version: str
    system: str
    user: str | None = None

    def render_user(self, **kwargs) -> str:
        if not self.user:
            raise ValueError(f"Prompt '{self.key}' has no user template")
        return self.user.format(**kwargs)


PROMPTS: dict[str, PromptTemplate] = {
    "email_categorize": PromptTemplate(
        key="email_categorize",
        version="v1",
        system="""You categorize inbound customer support emails for a CRM.
Return ONLY valid JSON. Do not wrap the JSON in markdown.""",
        user="""Analyze the following email and categorize it based on its content and subject. Also determine the primary language of the email.

Subject: {subject}
Content: {content}

Categories:
{categories}

Languages:
{languages}

Provide your response as a JSON object in the following format:
{{
  "category": "{category_choices}",
  "language": "{language_choices}",
  "confidence": 0.0
}}

Include a confidence score between 0 and 1 indicating how certain you are of the categorization.""",
    ),
    "categorization_feedback": PromptTemplate(
        key="categorization_feedback",
        version="v1",
        system="""You review email categorizations that a human marked as wrong.
Return ONLY valid JSON. Do not wrap the JSON in markdown.""",
        user="""Here is feedback on a previous email categorization:

Email Subject: {subject}
Email Content: {body}

Previous Categorization:
- Category: {category} (Correct: {is_category_correct})
- Language: {language} (Correct: {is_language_correct})
- Confidence: {confidence}
{corrections}
Please provide your analysis and suggestions in the following JSON format:
{{
  "analysis": "Your detailed analysis of what went wrong",
  "suggestedCategory": "{category_choices}",
  "suggestedLanguage": "{language_choices}",
  "explanation": "Explanation of why these suggestions are more appropriate"
}}""",
    ),
    "free_form": PromptTemplate(
        key="free_form",
        version="v1",
        system="You are a helpful assistant for a customer support team.",
    ),
}


def get_prompt(key: str) -> PromptTemplate:
    """Return a prompt by key."""
    if key not in PROMPTS:
        raise KeyError(f"Unknown prompt key: {key}")
    return PROMPTS[key]
