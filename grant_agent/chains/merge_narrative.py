"""Synthesize an existing profile narrative with newly stated content."""

from grant_agent.core.config import get_settings
from grant_agent.core.llm import create_message, response_text

MERGE_PROMPT = """You are helping merge organization profile information. Combine the existing content with the new information into one cohesive text.

FIELD: {field}
EXISTING CONTENT: "{existing}"
NEW INFORMATION: "{new}"

INSTRUCTIONS:
- If the new information expands the existing content, integrate it seamlessly
- If it conflicts, prefer the new information but keep valuable existing details
- If it duplicates existing content, avoid redundancy
- Keep the tone and format of the existing content
- Return ONLY the merged content, no explanation

MERGED CONTENT:"""


async def _call_merge_llm(prompt: str) -> str:
    settings = get_settings()
    response = await create_message(
        model=settings.MERGE_MODEL,
        max_tokens=settings.MERGE_MAX_TOKENS,
        messages=[{"role": "user", "content": prompt}],
    )
    return response_text(response)


async def synthesize_narrative(field: str, existing: str, new: str) -> str:
    """
    Ask the model for a merged narrative.

    Errors propagate; ProfileMergeEngine falls back to concatenation.
    """
    prompt = MERGE_PROMPT.format(field=field, existing=existing, new=new)
    return await _call_merge_llm(prompt)
