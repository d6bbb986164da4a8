"""Keyword routing for chat messages."""

import re

from grant_agent.core.schemas_grants import GrantStatus

# Profile field -> trigger keywords (substring match on the lowercased message)
PROFILE_CONTEXT_KEYWORDS: dict[str, tuple[str, ...]] = {
    "leadership": ("leadership", "director", "executive", "ceo", "founder", "board", "chair"),
    "website": ("website", "site", "url", "web", "https", "http"),
    "mission_statement": ("mission", "purpose", "goal", "objective", "vision"),
    "team_size": ("team size", "staff", "people", "members", "employees"),
    "focus_areas": ("focus", "programs", "areas", "activities", "services"),
    "target_population": ("serve", "community", "population", "audience", "participants"),
    "unique_qualifications": ("unique", "qualifications", "strengths", "expertise", "experience"),
    "location": (
        "located",
        "location",
        "based",
        "operate",
        "island",
        "city",
        "state",
        "country",
        "geographic",
    ),
    "program_details": (
        "program",
        "initiative",
        "project",
        "ceremony",
        "ceremonies",
        "activities",
        "offerings",
    ),
    "year_founded": ("founded", "established", "since"),
    "budget_range": ("budget", "revenue"),
    "legal_structure": ("501(c)", "nonprofit", "non-profit", "llc", "legal structure"),
    "legal_name": ("legal name", "incorporated as", "registered as"),
}

GRANT_SEARCH_PHRASES = (
    "find grants",
    "find new grants",
    "search grants",
    "search for grants",
    "grant search",
    "find me grants",
    "look for grants",
)

SHOW_GRANTS_PHRASES = (
    "show my grants",
    "show grants",
    "list grants",
    "list my grants",
    "view grants",
    "my grant database",
)

STATUS_WORDS: dict[str, GrantStatus] = {
    "interested": "Interested",
    "applied": "Applied",
    "awarded": "Awarded",
    "rejected": "Rejected",
}

STATUS_UPDATE_PATTERN = re.compile(
    r"\b(?:mark|update|set|move)\s+(?:the\s+)?(.+?)\s+(?:as|to)\s+"
    r"(interested|applied|awarded|rejected)\b",
    re.IGNORECASE,
)


def detect_profile_update_context(message: str) -> list[str]:
    """Profile fields whose trigger keywords appear in the message."""
    text = (message or "").lower()
    return [
        field
        for field, keywords in PROFILE_CONTEXT_KEYWORDS.items()
        if any(keyword in text for keyword in keywords)
    ]


def is_grant_search_request(message: str) -> bool:
    text = (message or "").lower()
    return any(phrase in text for phrase in GRANT_SEARCH_PHRASES)


def is_show_grants_request(message: str) -> bool:
    text = (message or "").lower()
    return any(phrase in text for phrase in SHOW_GRANTS_PHRASES)


def is_status_update_request(message: str) -> bool:
    text = (message or "").lower()
    return "mark" in text and any(word in text for word in STATUS_WORDS)


def parse_status_update_request(message: str) -> tuple[str | None, GrantStatus | None]:
    """
    Extract (grant name, status) from "mark <grant> as <status>".

    Returns (None, status) when a status word is present but no grant name
    can be isolated, and (None, None) when the message is not a status update.
    """
    match = STATUS_UPDATE_PATTERN.search(message or "")
    if match:
        name = match.group(1).strip().strip("\"'").strip()
        status = STATUS_WORDS[match.group(2).lower()]
        return (name or None), status

    text = (message or "").lower()
    for word, status in STATUS_WORDS.items():
        if word in text:
            return None, status
    return None, None
