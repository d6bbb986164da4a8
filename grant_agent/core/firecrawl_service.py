"""Grant page fetching through Firecrawl, used to corroborate search results."""

from dataclasses import dataclass

import httpx

from grant_agent.core.config import get_settings
from grant_agent.core.logging import get_logger

logger = get_logger(__name__)

FIRECRAWL_SCRAPE_URL = "https://api.firecrawl.dev/v1/scrape"


class FirecrawlNotConfigured(RuntimeError):
    """FIRECRAWL_API_KEY is not set."""


@dataclass
class GrantPage:
    """Main content of a fetched grant page."""

    url: str
    markdown: str = ""
    title: str | None = None

    def mentions(self, grant_name: str, funder: str | None = None) -> bool:
        """True when the page names the grant or the funder (case-insensitive)."""
        page = self.markdown.lower()
        if not page:
            return False
        candidates = (c.strip().lower() for c in (grant_name, funder or ""))
        return any(c and c in page for c in candidates)


async def fetch_page(url: str, client: httpx.AsyncClient | None = None) -> GrantPage:
    """
    Fetch one page's main content as markdown.

    Args:
        url: Page to fetch
        client: Shared client for a batch of fetches; a short-lived one is
            opened when omitted

    Raises:
        FirecrawlNotConfigured: If FIRECRAWL_API_KEY is not set
        httpx.HTTPError: If the request fails or Firecrawl returns an error status
    """
    settings = get_settings()
    if not settings.FIRECRAWL_API_KEY:
        raise FirecrawlNotConfigured("FIRECRAWL_API_KEY not configured")

    if client is None:
        async with httpx.AsyncClient(timeout=settings.FIRECRAWL_TIMEOUT) as own_client:
            return await fetch_page(url, own_client)

    logger.debug(f"Fetching grant page: {url}")
    response = await client.post(
        FIRECRAWL_SCRAPE_URL,
        headers={"Authorization": f"Bearer {settings.FIRECRAWL_API_KEY}"},
        json={"url": url, "formats": ["markdown"], "onlyMainContent": True},
    )
    response.raise_for_status()

    data = response.json().get("data") or {}
    metadata = data.get("metadata") or {}
    return GrantPage(url=url, markdown=data.get("markdown") or "", title=metadata.get("title"))


async def fetch_page_or_none(url: str, client: httpx.AsyncClient | None = None) -> GrantPage | None:
    """Fetch a page; a missing key, HTTP failure or unreadable body gives None."""
    try:
        return await fetch_page(url, client)
    except FirecrawlNotConfigured as e:
        logger.debug(str(e))
    except httpx.HTTPStatusError as e:
        logger.warning(f"Firecrawl returned {e.response.status_code} for {url}")
    except httpx.HTTPError as e:
        logger.warning(f"Firecrawl request failed for {url}: {type(e).__name__}")
    except ValueError as e:
        logger.warning(f"Unreadable Firecrawl response for {url}: {e}")
    return None
