"""
Grant discovery cycle.

search -> parse -> dedupe -> corroborate -> validate -> sort -> save

Each stage degrades instead of failing: a failed search returns an empty
report, a failed page fetch leaves a grant unverified, a failed save is
reported per grant.
"""

import asyncio
from datetime import date
from typing import Any

import httpx

from grant_agent.chains.search_grants import build_search_matrix, search_grants_web
from grant_agent.core.config import get_settings
from grant_agent.core.firecrawl_service import fetch_page_or_none
from grant_agent.core.grant_parser import format_grant_for_display, parse_grants_report
from grant_agent.core.grant_validator import validate_web_search_grant
from grant_agent.core.logging import get_logger
from grant_agent.core.schemas_grants import DiscoveryReport, Grant
from grant_agent.db import grants as grants_db
from grant_agent.db import profiles as profiles_db

logger = get_logger(__name__)


def dedupe_by_name(grants: list[Grant]) -> tuple[list[Grant], int]:
    """Drop repeated grant names (case-insensitive), keeping the first occurrence."""
    seen: set[str] = set()
    unique = []
    for grant in grants:
        key = grant.grant_name.strip().lower()
        if key in seen:
            continue
        seen.add(key)
        unique.append(grant)
    return unique, len(grants) - len(unique)


def sort_by_deadline(grants: list[Grant]) -> list[Grant]:
    """Earliest deadline first, undated grants last."""
    return sorted(grants, key=lambda g: (g.deadline is None, g.deadline or ""))


async def corroborate_grant(
    grant: Grant, semaphore: asyncio.Semaphore, client: httpx.AsyncClient | None = None
) -> Grant:
    """
    Fetch the grant's source or application page and check that it names the
    grant or the funder.
    """
    for url in (grant.source_url, grant.application_url):
        if not url:
            continue
        async with semaphore:
            page = await fetch_page_or_none(url, client)
        if page and page.mentions(grant.grant_name, grant.funder):
            return grant.model_copy(update={"verification_status": "Source Page Confirmed"})
    return grant.model_copy(update={"verification_status": "Unverified"})


async def corroborate_grants(grants: list[Grant]) -> list[Grant]:
    """Corroborate all grants concurrently under the content-fetch limit."""
    if not grants:
        return []
    settings = get_settings()
    if not settings.FIRECRAWL_API_KEY:
        logger.info("FIRECRAWL_API_KEY not set, grants left unverified")
        return grants

    semaphore = asyncio.Semaphore(max(1, settings.CONTENT_FETCH_CONCURRENCY))
    async with httpx.AsyncClient(timeout=settings.FIRECRAWL_TIMEOUT) as client:
        return list(await asyncio.gather(*(corroborate_grant(g, semaphore, client) for g in grants)))


def build_summary(report: DiscoveryReport, today: date | None = None) -> str:
    """Markdown summary of a discovery cycle."""
    lines = [
        "**WEB SEARCH GRANT DISCOVERY COMPLETE**",
        "",
        f"Executed {len(report.search_queries)} strategic web searches",
        f"Found {report.total_found} potential grants",
        f"✅ {report.total_validated} grants passed validation",
        f"❌ {len(report.rejected)} grants failed validation",
    ]
    if report.duplicates_in_batch:
        lines.append(f"Removed {report.duplicates_in_batch} repeated entries")

    if report.validated:
        lines += ["", "**VALIDATED GRANT OPPORTUNITIES:**", ""]
        lines += [format_grant_for_display(g, today) for g in report.validated]

    saved = sum(1 for s in report.saved if s.result == "saved")
    duplicates = sum(1 for s in report.saved if s.result == "duplicate")
    lines += ["---", ""]
    if report.saved:
        lines.append(
            f"**DATABASE UPDATE**: Saved {saved} validated grants to your database "
            f"({duplicates} duplicates found)"
        )
    else:
        lines.append("**DATABASE UPDATE**: No grants to save")
    return "\n".join(lines)


async def run_grant_discovery(
    search_query: str | None = None,
    profile: dict[str, Any] | None = None,
    today: date | None = None,
) -> DiscoveryReport:
    """
    Run one discovery cycle for the active profile.

    Args:
        search_query: Optional user phrasing passed to the search prompt
        profile: Profile to search for (defaults to the active profile)
        today: Reference date for parsing and validation

    Returns:
        DiscoveryReport; never raises for upstream failures
    """
    today = today or date.today()

    if profile is None:
        try:
            profile = await profiles_db.get_active_profile()
        except Exception as e:
            logger.warning(f"Could not load active profile for discovery: {e}")

    queries = build_search_matrix(profile, year=today.year)
    report = DiscoveryReport(search_queries=queries)

    try:
        search = await search_grants_web(profile, queries, today=today, search_query=search_query)
    except Exception as e:
        logger.warning(f"Grant web search failed: {e}")
        report.summary = (
            "I encountered an error while searching for grants. Please try again "
            "or let me know if you'd like help in a different way."
        )
        return report

    parsed = parse_grants_report(search.text, today=today)
    report.total_found = parsed.succeeded
    if parsed.failed:
        logger.info(f"{parsed.failed} grant entries could not be parsed")

    unique, report.duplicates_in_batch = dedupe_by_name(parsed.grants)
    corroborated = await corroborate_grants(unique)

    validated = []
    for grant in corroborated:
        verdict = validate_web_search_grant(grant, today=today)
        if verdict.is_valid:
            validated.append(grant.model_copy(update={"validation_score": verdict.score}))
        else:
            report.rejected[grant.grant_name] = verdict.reason or "Failed validation"
            logger.debug(f"Rejected {grant.grant_name}: {verdict.reason}")

    report.validated = sort_by_deadline(validated)
    if report.validated:
        try:
            report.saved = await grants_db.save_grants(report.validated)
        except Exception as e:
            logger.warning(f"Saving discovered grants failed: {e}")

    report.summary = build_summary(report, today)
    logger.info(
        f"Discovery: found={report.total_found} validated={report.total_validated} "
        f"rejected={len(report.rejected)} saved={sum(1 for s in report.saved if s.result == 'saved')}"
    )
    return report
