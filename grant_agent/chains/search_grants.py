"""
Web grant search.

Builds the keyword search matrix from the organization profile and runs one
model call with the server-side web search tool. The model is instructed to
answer with the numbered list format understood by the grant parser.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any

from grant_agent.core.config import get_settings
from grant_agent.core.grant_parser import DEFAULT_RELEVANCE_KEYWORDS
from grant_agent.core.llm import create_message
from grant_agent.core.logging import get_logger

logger = get_logger(__name__)

FOUNDATION_TYPES = (
    "private foundation",
    "family foundation",
    "philanthropist",
    "corporate giving",
    "community foundation",
    "charitable trust",
)

MATRIX_KEYWORDS = 6
MATRIX_FOUNDATION_TYPES = 3

SEARCH_PROMPT = """**You MUST use web search to find grant opportunities. Do NOT use training data for grant information.**

**ORGANIZATION CONTEXT:**
{organization_context}

**TODAY'S DATE:** {today}

**SEARCH QUERIES TO EXECUTE:**
{queries}

**REQUIREMENTS:**
1. Use web search for ALL grant information
2. Focus on private, family and corporate foundations
3. Only include grants accepting applications with deadlines after {today}
4. Extract real application URLs

After the searches, analyze the results and list each real grant as a numbered entry in EXACTLY this structure:

1. **[GRANT NAME FROM WEBSITE]** - $[AMOUNT FROM SITE]
   • **Funder:** [Foundation name]
   • **Deadline:** [Exact deadline from website]
   • **Requirements:** [Key eligibility requirements]
   • **Relevance:** [Why this matches the organization's mission]
   • **Application URL:** [Direct link to apply]
   • **Source URL:** [Where you found this information]
   • **Website Quote:** "[Exact text proving this grant exists]"

Mark grants with a deadline in the next two weeks with 🚨.
Maximum 10 grants, quality over quantity.{user_request}"""


@dataclass
class SearchResult:
    """Text and citations returned by the web search call."""

    text: str
    citations: list[dict[str, Any]] = field(default_factory=list)
    usage: dict[str, Any] | None = None


def build_organization_context(profile: dict[str, Any] | None) -> str:
    """Render the profile fields the search prompt is grounded on."""
    if not profile:
        return "Organization Profile: Not available"

    focus_areas = profile.get("focus_areas") or []
    if isinstance(focus_areas, str):
        focus_areas = [focus_areas]

    def value(key: str) -> str:
        return profile.get(key) or "Not specified"

    return "\n".join(
        [
            "Organization Profile:",
            f"- Name: {value('profile_name')}",
            f"- Mission: {value('mission_statement')}",
            f"- Focus Areas: {', '.join(focus_areas) or 'Not specified'}",
            f"- Location: {value('location')}",
            f"- Target Population: {value('target_population')}",
            f"- Unique Qualifications: {value('unique_qualifications')}",
        ]
    )


def profile_keywords(profile: dict[str, Any] | None) -> list[str]:
    """Search keywords from the profile, falling back to the default relevance keywords."""
    keywords: list[str] = []
    if profile:
        focus_areas = profile.get("focus_areas") or []
        if isinstance(focus_areas, str):
            focus_areas = focus_areas.split(",")
        keywords.extend(area.strip() for area in focus_areas if area and area.strip())
        population = profile.get("target_population") or ""
        keywords.extend(p.strip() for p in population.split(",") if p.strip())

    keywords = list(dict.fromkeys(keywords))
    return keywords or list(DEFAULT_RELEVANCE_KEYWORDS)


def build_search_matrix(profile: dict[str, Any] | None, year: int | None = None) -> list[str]:
    """
    Cross keywords with foundation types, then add geographic and peer queries.
    """
    year = year or date.today().year
    keywords = profile_keywords(profile)
    queries = [
        f'"{keyword}" "{foundation}" grants {year}'
        for keyword in keywords[:MATRIX_KEYWORDS]
        for foundation in FOUNDATION_TYPES[:MATRIX_FOUNDATION_TYPES]
    ]

    location = (profile or {}).get("location")
    if location:
        place = location.split(",")[0].strip()
        queries.append(f'"{place}" "private foundation" grants {year}')
        queries.append(f'"{place}" "family foundation" "{keywords[0]}" funding {year}')

    name = (profile or {}).get("profile_name")
    if name:
        queries.append(f'organizations similar to "{name}" grant funding received')
    queries.append(f'"{keywords[0]}" grant recipients {year - 1} {year}')

    return queries


def build_search_prompt(
    profile: dict[str, Any] | None,
    queries: list[str],
    today: date | None = None,
    search_query: str | None = None,
) -> str:
    today = today or date.today()
    user_request = f"\n\nUser request: {search_query}" if search_query else ""
    return SEARCH_PROMPT.format(
        organization_context=build_organization_context(profile),
        today=today.strftime("%B %d, %Y"),
        queries="\n".join(f"- {q}" for q in queries),
        user_request=user_request,
    )


def collect_search_output(response: Any) -> SearchResult:
    """Concatenate every text block and gather citations from a web search response."""
    texts = []
    citations = []
    for block in getattr(response, "content", None) or []:
        block_type = getattr(block, "type", None)
        if block_type == "text":
            texts.append(block.text or "")
            for citation in getattr(block, "citations", None) or []:
                citations.append(
                    {
                        "url": getattr(citation, "url", None),
                        "title": getattr(citation, "title", None),
                        "cited_text": getattr(citation, "cited_text", None),
                    }
                )
        elif block_type == "server_tool_use":
            query = (getattr(block, "input", None) or {}).get("query")
            logger.debug(f"Web search query: {query}")

    usage = getattr(response, "usage", None)
    return SearchResult(
        text="".join(texts).strip(),
        citations=citations,
        usage=usage.model_dump() if hasattr(usage, "model_dump") else None,
    )


async def _call_web_search_llm(prompt: str) -> Any:
    settings = get_settings()
    return await create_message(
        model=settings.SEARCH_MODEL,
        max_tokens=settings.SEARCH_MAX_TOKENS,
        messages=[{"role": "user", "content": prompt}],
        tools=[
            {
                "type": "web_search_20250305",
                "name": "web_search",
                "max_uses": settings.GRANT_SEARCH_MAX_USES,
            }
        ],
    )


async def search_grants_web(
    profile: dict[str, Any] | None,
    queries: list[str],
    today: date | None = None,
    search_query: str | None = None,
) -> SearchResult:
    """
    Run the web search call.

    Raises:
        anthropic.APIError: If the call fails
    """
    prompt = build_search_prompt(profile, queries, today=today, search_query=search_query)
    logger.info(f"Running grant web search with {len(queries)} matrix queries")
    response = await _call_web_search_llm(prompt)
    result = collect_search_output(response)
    logger.info(
        f"Grant web search returned {len(result.text)} chars, {len(result.citations)} citations"
    )
    return result
