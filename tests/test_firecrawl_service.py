"""Tests for the Firecrawl page fetcher."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from grant_agent.core.firecrawl_service import (
    FirecrawlNotConfigured,
    GrantPage,
    fetch_page,
    fetch_page_or_none,
)


def _settings(api_key="fc-test-key"):
    return MagicMock(FIRECRAWL_API_KEY=api_key, FIRECRAWL_TIMEOUT=30)


def _response(payload=None, error=None):
    response = MagicMock()
    response.raise_for_status = MagicMock(side_effect=error)
    response.json.return_value = payload or {}
    return response


def _mock_async_client(MockClient, response=None, side_effect=None):
    client_instance = AsyncMock()
    if side_effect is not None:
        client_instance.post = AsyncMock(side_effect=side_effect)
    else:
        client_instance.post = AsyncMock(return_value=response)
    MockClient.return_value.__aenter__ = AsyncMock(return_value=client_instance)
    MockClient.return_value.__aexit__ = AsyncMock(return_value=None)
    return client_instance


class TestFetchPage:
    @pytest.mark.asyncio
    async def test_returns_grant_page(self):
        response = _response({"data": {"markdown": "# Heritage Grants", "metadata": {"title": "Heritage"}}})

        with (
            patch("grant_agent.core.firecrawl_service.get_settings", return_value=_settings()),
            patch("httpx.AsyncClient") as MockClient,
        ):
            client = _mock_async_client(MockClient, response=response)
            page = await fetch_page("https://heritage.org/grants")

        assert page == GrantPage(url="https://heritage.org/grants", markdown="# Heritage Grants", title="Heritage")
        call = client.post.call_args
        assert call.args[0] == "https://api.firecrawl.dev/v1/scrape"
        assert call.kwargs["json"]["url"] == "https://heritage.org/grants"
        assert call.kwargs["headers"]["Authorization"] == "Bearer fc-test-key"
        MockClient.assert_called_once_with(timeout=30)

    @pytest.mark.asyncio
    async def test_uses_given_client(self):
        client = AsyncMock()
        client.post = AsyncMock(return_value=_response({"data": {"markdown": "Fund page"}}))

        with (
            patch("grant_agent.core.firecrawl_service.get_settings", return_value=_settings()),
            patch("httpx.AsyncClient") as MockClient,
        ):
            page = await fetch_page("https://heritage.org", client)

        assert page.markdown == "Fund page"
        assert page.title is None
        MockClient.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_data_gives_empty_page(self):
        client = AsyncMock()
        client.post = AsyncMock(return_value=_response({"success": False}))

        with patch("grant_agent.core.firecrawl_service.get_settings", return_value=_settings()):
            page = await fetch_page("https://heritage.org", client)

        assert page == GrantPage(url="https://heritage.org")

    @pytest.mark.asyncio
    async def test_requires_api_key(self):
        with patch("grant_agent.core.firecrawl_service.get_settings", return_value=_settings(None)):
            with pytest.raises(FirecrawlNotConfigured, match="FIRECRAWL_API_KEY"):
                await fetch_page("https://heritage.org")


class TestFetchPageOrNone:
    @pytest.mark.asyncio
    async def test_none_without_key(self):
        with patch("grant_agent.core.firecrawl_service.get_settings", return_value=_settings(None)):
            assert await fetch_page_or_none("https://heritage.org") is None

    @pytest.mark.asyncio
    async def test_none_on_timeout(self):
        with (
            patch("grant_agent.core.firecrawl_service.get_settings", return_value=_settings()),
            patch("httpx.AsyncClient") as MockClient,
        ):
            _mock_async_client(MockClient, side_effect=httpx.ReadTimeout("slow"))
            assert await fetch_page_or_none("https://heritage.org") is None

    @pytest.mark.asyncio
    async def test_none_on_http_error(self):
        request = httpx.Request("POST", "https://api.firecrawl.dev/v1/scrape")
        error = httpx.HTTPStatusError("boom", request=request, response=httpx.Response(502, request=request))

        with (
            patch("grant_agent.core.firecrawl_service.get_settings", return_value=_settings()),
            patch("httpx.AsyncClient") as MockClient,
        ):
            _mock_async_client(MockClient, response=_response(error=error))
            assert await fetch_page_or_none("https://heritage.org") is None

    @pytest.mark.asyncio
    async def test_none_on_unreadable_body(self):
        response = _response()
        response.json.side_effect = ValueError("Expecting value")
        client = AsyncMock()
        client.post = AsyncMock(return_value=response)

        with patch("grant_agent.core.firecrawl_service.get_settings", return_value=_settings()):
            assert await fetch_page_or_none("https://heritage.org", client) is None


class TestGrantPageMentions:
    def test_grant_name_match(self):
        page = GrantPage(url="u", markdown="Apply to the CULTURAL PRESERVATION FUND today")
        assert page.mentions("Cultural Preservation Fund")

    def test_funder_match(self):
        assert GrantPage(url="u", markdown="About Heritage Foundation").mentions("Other Grant", "Heritage Foundation")

    def test_no_match(self):
        assert not GrantPage(url="u", markdown="Unrelated page").mentions("Cultural Preservation Fund", "Heritage")
        assert not GrantPage(url="u").mentions("Cultural Preservation Fund")

    def test_blank_funder_ignored(self):
        assert not GrantPage(url="u", markdown="some text").mentions("Missing Grant", "  ")
