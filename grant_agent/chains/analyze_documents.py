"""Analyze uploaded organization documents."""

import asyncio
from typing import Any

from grant_agent.core.config import get_settings
from grant_agent.core.llm import create_message, parse_llm_json_object, response_text
from grant_agent.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_USER_MESSAGE = "Please analyze these documents to learn about my organization."

ANALYSIS_PROMPT = """You are analyzing documents to learn about an organization for grant writing purposes. Extract and understand:

1. **Organization Name & Legal Structure** (501c3, LLC, etc.)
2. **Mission Statement** - What they do and why
3. **Focus Areas** - Primary activities, programs, services
4. **Geographic Location** - Where they operate
5. **Target Population** - Who they serve
6. **Unique Qualifications** - Special expertise, partnerships, track record
7. **Past Grant Experience** - Previous funders, successful projects
8. **Current Needs** - What they might seek funding for
9. **Budget Size/Scope** - Scale of operations
10. **Key People** - Leadership, board members

Respond in this format:

# Organization Profile Analysis

## Overview
## Key Details
## Focus Areas
## Unique Strengths
## Grant Readiness
## Questions for Clarification
## Recommended Next Steps

Be conversational and friendly. If information is missing, ask specific clarifying questions."""

PROFILE_EXTRACTION_PROMPT = """Based on the same documents, extract structured data to create an organization profile.

Return ONLY this JSON object, with no markdown and no explanation:

{
  "profile_name": "Organization Name",
  "legal_name": "Full legal name (if different from profile name)",
  "legal_structure": "501(c)(3)" | "Fiscally-Sponsored" | "LLC" | "Corporation" | "Other",
  "location": "City, State/Province, Country",
  "mission_statement": "Complete mission statement",
  "focus_areas": ["focus area 1", "focus area 2"],
  "target_population": "Who they serve",
  "unique_qualifications": "Key strengths, expertise, partnerships",
  "leadership": "Name (Role), Name (Role)",
  "budget_range": "Under $50K" | "$50K-$250K" | "$250K-$1M" | "Over $1M",
  "website": "https://website.com (if mentioned)"
}

Use "" for text fields and [] for arrays when information is not found."""


def combine_documents(documents: list[tuple[str, str]]) -> str:
    """Join (filename, text) pairs under ``=== filename ===`` headers."""
    return "".join(f"\n\n=== {filename} ===\n{text}" for filename, text in documents)


async def _call_document_llm(prompt: str, max_tokens: int | None = None) -> str:
    settings = get_settings()
    response = await create_message(
        model=settings.DOCUMENT_MODEL,
        max_tokens=max_tokens or settings.DOCUMENT_MAX_TOKENS,
        messages=[{"role": "user", "content": prompt}],
    )
    return response_text(response)


async def analyze_documents(
    documents: list[tuple[str, str]],
    user_message: str | None = None,
    failed_files: list[str] | None = None,
) -> tuple[str, dict[str, Any] | None]:
    """
    Produce a conversational analysis and a structured profile.

    The two calls run concurrently. A failed structured extraction yields
    None for the profile; a failed analysis call propagates.

    Returns:
        Tuple of (analysis markdown, structured profile or None)
    """
    combined = combine_documents(documents)
    note = ""
    if failed_files:
        note = (
            "\nNote: text could not be extracted from these files: "
            f"{', '.join(failed_files)}. Please mention this to the user.\n"
        )

    analysis_prompt = (
        f'The user said: "{user_message or DEFAULT_USER_MESSAGE}"\n\n'
        f"Here are the documents they uploaded:\n{combined}\n{note}\n{ANALYSIS_PROMPT}"
    )
    profile_prompt = f"Here are the documents:\n{combined}\n\n{PROFILE_EXTRACTION_PROMPT}"

    analysis, profile_raw = await asyncio.gather(
        _call_document_llm(analysis_prompt),
        _call_document_llm(profile_prompt, max_tokens=1500),
        return_exceptions=True,
    )
    if isinstance(analysis, BaseException):
        raise analysis

    if isinstance(profile_raw, BaseException):
        logger.warning(f"Structured profile extraction failed: {profile_raw}")
        return analysis, None

    profile = parse_llm_json_object(profile_raw)
    if profile is None:
        logger.warning("Structured profile extraction returned no usable JSON")
    return analysis, profile
