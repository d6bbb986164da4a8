"""Conversational reply for the grant-writing assistant."""

from typing import Any

from grant_agent.core.config import get_settings
from grant_agent.core.llm import create_message, response_text
from grant_agent.core.logging import get_logger

logger = get_logger(__name__)

APOLOGY_REPLY = (
    "I'm sorry, I ran into a problem generating a response. Please try again in a moment."
)

SYSTEM_PROMPT = """You are a Grant Writing Agent - an AI co-founder that helps organizations discover, apply for, and win grants. You are conversational, helpful, and proactive.

## Your Core Capabilities:
1. **Organization Learning**: Learn the organization's mission, focus areas, location and unique qualifications from documents and conversation
2. **Grant Discovery**: When users ask to "find grants", search the web for relevant opportunities and save them to their database
3. **Grant Management**: When users say "show my grants", display saved grants with status tracking
4. **Status Updates**: Update grant status when users say "mark <grant> as applied" (or interested, awarded, rejected)
5. **Application Assistance**: Help draft grant applications question by question

## Communication Style:
- Use markdown formatting for readability
- Use emojis sparingly
- Keep explanations simple and avoid jargon
- Always end with a clear next step or question"""

PROFILE_SAVED_NOTE = """

IMPORTANT: The user just provided profile information that has been saved to their profile. Acknowledge this update in your response."""


def build_system_prompt(profile: dict[str, Any] | None, profile_updated: bool = False) -> str:
    """System prompt enriched with the session profile."""
    prompt = SYSTEM_PROMPT
    if profile:
        focus_areas = profile.get("focus_areas") or []
        if isinstance(focus_areas, list):
            focus_areas = ", ".join(focus_areas)
        prompt += f"""

CURRENT ORGANIZATION CONTEXT:
You are working with {profile.get('profile_name') or 'this organization'}.
- Location: {profile.get('location') or 'Not specified'}
- Focus Areas: {focus_areas or 'Not specified'}
- Mission: {profile.get('mission_statement') or 'Not specified'}
- Team Size: {profile.get('team_size') or 'Not specified'}
- Leadership: {profile.get('leadership') or 'Not specified'}
- Website: {profile.get('website') or 'Not specified'}

Reference this context naturally. Do not repeat basic info unless asked."""
    if profile_updated:
        prompt += PROFILE_SAVED_NOTE
    return prompt


async def _call_chat_llm(system: str, messages: list[dict[str, str]]) -> str:
    settings = get_settings()
    response = await create_message(
        model=settings.CHAT_MODEL,
        max_tokens=settings.CHAT_MAX_TOKENS,
        system=system,
        messages=messages,
    )
    return response_text(response)


async def generate_chat_reply(
    messages: list[dict[str, str]],
    profile: dict[str, Any] | None = None,
    profile_updated: bool = False,
) -> str:
    """Reply to the conversation; any failure yields APOLOGY_REPLY."""
    system = build_system_prompt(profile, profile_updated)
    try:
        reply = await _call_chat_llm(system, messages)
    except Exception as e:
        logger.warning(f"Chat reply call failed: {e}")
        return APOLOGY_REPLY
    return reply or APOLOGY_REPLY
