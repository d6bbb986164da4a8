"""
Grant text parser.

Turns the numbered grant list produced by the web-search model into
``Grant`` records. The expected shape of one entry is::

    1. **Grant Name** - $25K-$100K
       • **Funder:** Some Foundation
       • **Deadline:** March 15, 2027
       • **Requirements:** ...
       • **Relevance:** ...
       • **Application URL:** https://...
       • **Source URL:** https://...
       • **Website Quote:** "..."

Model output is frequently partial or garbled, so a bad entry never aborts
the batch: it is recorded as a failed outcome and parsing continues.
"""

import re
from datetime import date
from typing import Iterable, Literal

from dateutil import parser as dateutil_parser

from grant_agent.core.logging import get_logger
from grant_agent.core.schemas_grants import Grant, GrantParseOutcome, GrantParseReport

logger = get_logger(__name__)

ENTRY_MARKER = re.compile(r"\d+\.\s*\*\*")
HEADER_PATTERN = re.compile(r"^(.+?)\*\*\s*[-–—]\s*(.+)$")
BULLET_PREFIX = re.compile(r"^[-*•]\s*")
LABEL_PATTERNS = (
    re.compile(r"^\*\*([^*:]+):\*\*\s*(.*)$"),
    re.compile(r"^\*\*([^*:]+)\*\*:\s*(.*)$"),
)

# Field label (lowercase) -> Grant attribute
FIELD_LABELS = {
    "funder": "funder",
    "deadline": "deadline",
    "relevance": "description",
    "application notes": "requirements",
    "requirements": "requirements",
    "url": "application_url",
    "application url": "application_url",
    "source url": "source_url",
    "website quote": "notes",
}

URGENCY_MARKERS = ("🚨", "urgent")

DEFAULT_RELEVANCE_KEYWORDS: tuple[str, ...] = (
    "indigenous",
    "native",
    "traditional knowledge",
    "cultural preservation",
    "community healing",
    "spiritual practices",
    "land stewardship",
    "ceremony",
)

UNAVAILABLE_VALUES = {"not available", "n/a", "none", "unknown", ""}


def parse_grants_from_response(
    response_text: str,
    today: date | None = None,
    keywords: Iterable[str] = DEFAULT_RELEVANCE_KEYWORDS,
) -> list[Grant]:
    """Parse the search output and return only the grants that parsed."""
    return parse_grants_report(response_text, today=today, keywords=keywords).grants


def parse_grants_report(
    response_text: str,
    today: date | None = None,
    keywords: Iterable[str] = DEFAULT_RELEVANCE_KEYWORDS,
) -> GrantParseReport:
    """
    Parse every numbered entry of the search output.

    Args:
        response_text: Free text containing a numbered grant list
        today: Reference date for the past-deadline penalty (default: today)
        keywords: Domain keywords that raise the relevance score

    Returns:
        GrantParseReport with one outcome per numbered entry, in list order
    """
    today = today or date.today()
    keywords = tuple(keywords)
    report = GrantParseReport()

    if not response_text:
        return report

    # Text before the first marker is preamble, not an entry
    sections = ENTRY_MARKER.split(response_text)[1:]

    for rank, section in enumerate(sections, start=1):
        try:
            grant = parse_grant_section(section, rank, today=today, keywords=keywords)
        except Exception as e:
            logger.warning(f"Failed to parse grant section {rank}: {e}")
            report.outcomes.append(GrantParseOutcome(rank=rank, reason=f"parse error: {e}"))
            continue

        if grant is None:
            logger.debug(f"Grant section {rank} has no 'Name** - Amount' header, skipping")
            report.outcomes.append(
                GrantParseOutcome(rank=rank, reason="missing 'Name** - Amount' header")
            )
        else:
            report.outcomes.append(GrantParseOutcome(rank=rank, grant=grant))

    logger.info(
        f"Parsed {report.succeeded}/{len(report.outcomes)} grant entries",
        extra={"failed": report.failed},
    )
    return report


def parse_grant_section(
    section: str,
    rank: int,
    today: date,
    keywords: tuple[str, ...] = DEFAULT_RELEVANCE_KEYWORDS,
) -> Grant | None:
    """Parse one entry (text after the ``N. **`` marker). None if the header is malformed."""
    lines = [line.strip() for line in section.split("\n")]
    lines = [line for line in lines if line]
    if not lines:
        return None

    header = HEADER_PATTERN.match(lines[0])
    if not header:
        return None

    grant_name = header.group(1).strip()
    amount = header.group(2).strip()
    if not grant_name or not amount:
        return None

    fields: dict[str, str | None] = {}
    for line in lines[1:]:
        label, value = _split_label(line)
        if label is None:
            continue
        attribute = FIELD_LABELS.get(label)
        if attribute is None:
            continue
        fields[attribute] = _clean_field_value(attribute, value)

    grant = Grant(
        grant_name=grant_name,
        amount=amount,
        priority_rank=rank,
        status="Discovered",
        **{k: v for k, v in fields.items() if v},
    )
    grant.relevance_score = calculate_relevance_score(grant, section, today=today, keywords=keywords)
    return grant


def _split_label(line: str) -> tuple[str | None, str]:
    """Return (lowercase label, value) for a ``**Label:** value`` line."""
    clean_line = BULLET_PREFIX.sub("", line).strip()
    for pattern in LABEL_PATTERNS:
        match = pattern.match(clean_line)
        if match:
            return match.group(1).strip().lower(), match.group(2).strip()
    return None, clean_line


def _clean_field_value(attribute: str, value: str) -> str | None:
    value = value.strip()
    if attribute == "deadline":
        return parse_deadline_to_iso(value)
    if attribute in ("application_url", "source_url"):
        if value.lower() in UNAVAILABLE_VALUES or not value.startswith("http"):
            return None
        return value
    if attribute == "notes":
        quote = value.strip().strip('"“”').strip()
        return f'Website Quote: "{quote}"' if quote else None
    return value or None


def parse_deadline_to_iso(deadline_text: str) -> str | None:
    """
    Normalize deadline text to ``YYYY-MM-DD``.

    "Ongoing"/rolling deadlines and anything unparseable yield None.

    Examples:
        >>> parse_deadline_to_iso("Due March 15, 2027 (letter of inquiry)")
        '2027-03-15'
        >>> parse_deadline_to_iso("Ongoing")
    """
    if not deadline_text or "ongoing" in deadline_text.lower():
        return None

    cleaned = re.sub(r"^(due\s+|deadline:\s*)", "", deadline_text, flags=re.IGNORECASE)
    cleaned = re.sub(r"\s*\(.*\)$", "", cleaned).strip()
    if not cleaned:
        return None

    try:
        return dateutil_parser.parse(cleaned).date().isoformat()
    except (ValueError, OverflowError, TypeError):
        logger.debug(f"Unparseable deadline: {deadline_text!r}")
        return None


def calculate_relevance_score(
    grant: Grant,
    section_text: str,
    today: date,
    keywords: Iterable[str] = DEFAULT_RELEVANCE_KEYWORDS,
) -> int:
    """
    Heuristic 0-100 ranking signal for a parsed grant.

    Base 50; +30 for an urgency marker; +10 per domain keyword present;
    +15 for "million" amounts, otherwise +10 / +5 when the leading figure of
    a "k"/"000" amount is at least 100 / 50; -50 for a past deadline.
    """
    score = 50
    lower_section = section_text.lower()

    if any(marker in lower_section for marker in URGENCY_MARKERS):
        score += 30

    for keyword in keywords:
        if keyword.lower() in lower_section:
            score += 10

    amount_text = (grant.amount or "").lower()
    if "million" in amount_text:
        score += 15
    elif "k" in amount_text or "000" in amount_text:
        numbers = re.findall(r"\d+", amount_text)
        if numbers:
            leading = int(numbers[0])
            if leading >= 100:
                score += 10
            if leading >= 50:
                score += 5

    deadline = _to_date(grant.deadline)
    if deadline is not None and deadline < today:
        score -= 50

    return max(0, min(100, score))


def grant_urgency(grant: Grant, today: date | None = None) -> Literal["urgent", "soon", "normal"]:
    """Urgency tag from days until the deadline: <=14 urgent, <=30 soon."""
    deadline = _to_date(grant.deadline)
    if deadline is None:
        return "normal"

    days_until = (deadline - (today or date.today())).days
    if days_until <= 14:
        return "urgent"
    if days_until <= 30:
        return "soon"
    return "normal"


URGENCY_ICONS = {"urgent": "🚨 URGENT", "soon": "⏰ SOON", "normal": "📅"}


def format_grant_for_display(grant: Grant, today: date | None = None) -> str:
    """Render a grant as a markdown block for chat output."""
    icon = URGENCY_ICONS[grant_urgency(grant, today)]
    lines = [f"{icon} **{grant.grant_name}** - {grant.amount}"]

    if grant.funder:
        lines.append(f"   • **Funder:** {grant.funder}")
    if grant.deadline:
        lines.append(f"   • **Deadline:** {grant.deadline}")
    if grant.description:
        lines.append(f"   • **Relevance:** {grant.description}")
    if grant.requirements:
        lines.append(f"   • **Requirements:** {grant.requirements}")
    if grant.application_url:
        lines.append(f"   • **Apply:** {grant.application_url}")

    return "\n".join(lines) + "\n"


def _to_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None
