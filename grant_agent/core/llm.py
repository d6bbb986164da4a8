"""LLM client utilities for Anthropic calls and JSON output handling."""

import json
import re
from typing import Any

from anthropic import AsyncAnthropic

from grant_agent.core.config import get_settings
from grant_agent.core.logging import get_logger

logger = get_logger(__name__)


def get_anthropic_client() -> AsyncAnthropic:
    """
    Get an async Anthropic client configured from settings.

    Raises:
        ValidationError: If ANTHROPIC_API_KEY (or another required setting) is missing
    """
    settings = get_settings()
    return AsyncAnthropic(api_key=settings.ANTHROPIC_API_KEY)


def response_text(response: Any) -> str:
    """Join the text blocks of a Messages API response, ignoring tool blocks."""
    parts = [
        block.text
        for block in getattr(response, "content", None) or []
        if getattr(block, "type", None) == "text" and getattr(block, "text", None)
    ]
    return "".join(parts).strip()


def _strip_llm_fences(raw_output: str) -> str:
    """Strip markdown code fences from LLM output.

    Handles: ```json ... ```, ``` ... ```, leading/trailing whitespace.
    """
    cleaned = raw_output.strip()

    fence_match = re.search(r"```(?:json)?\s*\n?(.*?)```", cleaned, re.DOTALL)
    if fence_match:
        return fence_match.group(1).strip()

    # Unterminated fence (truncated output): strip what is there
    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def parse_llm_json_dict(raw_output: str) -> dict:
    """
    Parse LLM output as JSON, returning a raw dict.

    Raises:
        json.JSONDecodeError: If JSON parsing fails after cleanup
    """
    cleaned = _strip_llm_fences(raw_output)
    return json.loads(cleaned)


def parse_llm_json_object(raw_output: str) -> dict[str, Any] | None:
    """
    Parse an LLM JSON object, recovering from a completion cut off mid-object.

    Long completions can be truncated before the closing bracket. When the
    first parse fails, the text is cut at the last ``}`` and parsed once more.

    Returns:
        The parsed object, or None when the output is ``null``, not an
        object, or unrecoverable
    """
    cleaned = _strip_llm_fences(raw_output or "")

    if cleaned == "null" or not cleaned.startswith("{"):
        return None

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.warning(f"JSON parsing failed, attempting truncation recovery: {e}")
        truncated = cleaned[: cleaned.rfind("}") + 1]
        if not truncated.endswith("}"):
            return None
        try:
            parsed = json.loads(truncated)
        except json.JSONDecodeError as retry_error:
            logger.warning(f"Truncated JSON parsing also failed: {retry_error}")
            return None

    return parsed if isinstance(parsed, dict) else None


async def create_message(**kwargs: Any) -> Any:
    """
    Call ``messages.create`` once.

    API errors are raised unchanged; each caller has its own fallback.
    """
    return await get_anthropic_client().messages.create(**kwargs)
