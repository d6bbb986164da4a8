"""Extract organization profile facts from a chat message."""

from typing import Any

from grant_agent.core.config import get_settings
from grant_agent.core.llm import create_message, parse_llm_json_object, response_text
from grant_agent.core.logging import get_logger

logger = get_logger(__name__)

# Stored field -> label shown to the model as current content
_CONTEXT_LABELS = {
    "leadership": "Current Leadership",
    "location": "Current Location",
    "mission_statement": "Current Mission",
    "unique_qualifications": "Current Qualifications",
    "program_details": "Current Programs",
    "focus_areas": "Current Focus Areas",
    "target_population": "Current Target Population",
}

EXTRACTION_PROMPT = """Analyze this user message and extract organization profile information for intelligent updating. Focus on: {context_fields}. Return ONLY a JSON object with the extracted information, or null if no profile information is present.

User message: "{message}"{existing_context}

INSTRUCTIONS:
- For leadership: extract person names and their roles, e.g. "Jane Doe (Executive Director)". It will be merged with the existing leadership.
- For narrative fields (mission, qualifications, location, programs): extract only the new content to add.
- Only include fields that are explicitly mentioned or clearly implied in the message.

Fields:
- leadership: Person name and role(s)
- website: Organization website URL
- mission_statement: New mission content
- unique_qualifications: New qualifications or strengths
- focus_areas: Array of focus areas, programs or activities
- target_population: Communities or populations served
- location: City, island, state, country or geographic reach
- program_details: Program descriptions, activities, ceremonies, initiatives
- team_size: Number only (e.g. 3, not "3 people")
- year_founded: Year as a string
- budget_range: Budget range or financial information
- legal_structure: "501(c)(3)", "LLC", "Corporation", etc.
- legal_name: Official legal name of the organization

Return only JSON or null:"""


def build_existing_context(profile: dict[str, Any] | None) -> str:
    """Render the current narrative values the model should merge against."""
    if not profile:
        return ""

    lines = []
    for field, label in _CONTEXT_LABELS.items():
        value = profile.get(field)
        if isinstance(value, list):
            value = ", ".join(str(v) for v in value)
        if value:
            lines.append(f"- {label}: {value}")

    if not lines:
        return ""
    return "\n\nCURRENT PROFILE CONTENT (for context and intelligent merging):\n" + "\n".join(lines)


async def _call_extraction_llm(prompt: str) -> str:
    settings = get_settings()
    response = await create_message(
        model=settings.EXTRACTION_MODEL,
        max_tokens=settings.EXTRACTION_MAX_TOKENS,
        messages=[{"role": "user", "content": prompt}],
    )
    return response_text(response)


async def extract_profile_updates(
    message: str,
    contexts: list[str] | None = None,
    profile: dict[str, Any] | None = None,
) -> dict[str, Any] | None:
    """
    Extract raw profile field values from a user message.

    Args:
        message: Latest user message
        contexts: Profile fields detected in the message
        profile: Current stored profile, shown to the model for merging

    Returns:
        Raw field -> value mapping, or None when the message carries no
        profile data or the call fails
    """
    prompt = EXTRACTION_PROMPT.format(
        context_fields=", ".join(contexts) if contexts else "any profile information",
        message=message,
        existing_context=build_existing_context(profile),
    )

    try:
        raw = await _call_extraction_llm(prompt)
    except Exception as e:
        logger.warning(f"Profile extraction call failed: {e}")
        return None

    extracted = parse_llm_json_object(raw)
    if extracted is None:
        logger.debug("No structured profile data in extraction output")
        return None

    logger.info(f"Extracted profile fields: {sorted(extracted)}")
    return extracted
