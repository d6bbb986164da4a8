"""Tests for routing and answering a chat turn."""

from unittest.mock import AsyncMock, patch

import pytest
from postgrest.exceptions import APIError

from grant_agent.core.schemas_grants import DiscoveryReport
from grant_agent.services.chat_service import (
    NO_GRANTS_REPLY,
    STATUS_HELP,
    handle_chat_turn,
    render_grant_list,
    update_status_from_message,
)

PROFILE = {"id": "p1", "profile_name": "Kaulana", "website": "https://old.org"}


def _user(text):
    return [{"role": "user", "content": text}]


class TestRenderGrantList:
    @pytest.mark.asyncio
    async def test_lists_grants_with_status(self):
        rows = [
            {
                "id": "g1",
                "grant_name": "Healing Grant",
                "amount": "$5K",
                "funder": "Wellness Trust",
                "status": "Applied",
                "priority_rank": 1,
                "created_at": "2026-10-01T00:00:00Z",
            }
        ]

        with patch("grant_agent.db.grants.list_grants", new_callable=AsyncMock, return_value=rows):
            text = await render_grant_list()

        assert "Here are your saved grants (1 total)" in text
        assert "**Healing Grant** - $5K" in text
        assert "**Status:** Applied" in text

    @pytest.mark.asyncio
    async def test_empty_store(self):
        with patch("grant_agent.db.grants.list_grants", new_callable=AsyncMock, return_value=[]):
            assert await render_grant_list() == NO_GRANTS_REPLY


class TestUpdateStatusFromMessage:
    @pytest.mark.asyncio
    async def test_exact_name(self):
        with (
            patch(
                "grant_agent.db.grants.find_grant_by_name",
                new_callable=AsyncMock,
                return_value={"id": "g1", "grant_name": "Healing Grant"},
            ),
            patch("grant_agent.db.grants.update_grant_status", new_callable=AsyncMock) as mock_update,
        ):
            reply = await update_status_from_message("Mark Healing Grant as applied")

        assert reply == "✅ Updated **Healing Grant** to **Applied**."
        mock_update.assert_awaited_once_with("g1", "Applied")

    @pytest.mark.asyncio
    async def test_single_partial_match(self):
        with (
            patch("grant_agent.db.grants.find_grant_by_name", new_callable=AsyncMock, return_value=None),
            patch(
                "grant_agent.db.grants.search_grants_by_name",
                new_callable=AsyncMock,
                return_value=[{"id": "g2", "grant_name": "Community Healing Grant"}],
            ),
            patch("grant_agent.db.grants.update_grant_status", new_callable=AsyncMock) as mock_update,
        ):
            reply = await update_status_from_message("mark healing as interested")

        assert "Community Healing Grant" in reply
        mock_update.assert_awaited_once_with("g2", "Interested")

    @pytest.mark.asyncio
    async def test_ambiguous_match_not_updated(self):
        with (
            patch("grant_agent.db.grants.find_grant_by_name", new_callable=AsyncMock, return_value=None),
            patch(
                "grant_agent.db.grants.search_grants_by_name",
                new_callable=AsyncMock,
                return_value=[{"id": "a", "grant_name": "A Fund"}, {"id": "b", "grant_name": "B Fund"}],
            ),
            patch("grant_agent.db.grants.update_grant_status", new_callable=AsyncMock) as mock_update,
        ):
            reply = await update_status_from_message("mark fund as awarded")

        assert reply.startswith("I couldn't find a saved grant called **fund**")
        mock_update.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_name(self):
        assert await update_status_from_message("mark it rejected") == STATUS_HELP


class TestHandleChatTurn:
    @pytest.mark.asyncio
    async def test_grant_search(self):
        report = DiscoveryReport(summary="**WEB SEARCH GRANT DISCOVERY COMPLETE**")

        with patch(
            "grant_agent.services.chat_service.run_grant_discovery",
            new_callable=AsyncMock,
            return_value=report,
        ) as mock_run:
            response = await handle_chat_turn(_user("Please find grants for us"))

        assert response.intent == "grant_search"
        assert response.content == report.summary
        mock_run.assert_awaited_once_with(search_query="Please find grants for us")

    @pytest.mark.asyncio
    async def test_show_grants_store_failure(self):
        with patch(
            "grant_agent.db.grants.list_grants",
            new_callable=AsyncMock,
            side_effect=RuntimeError("db down"),
        ):
            response = await handle_chat_turn(_user("show my grants"))

        assert response.intent == "show_grants"
        assert "trouble accessing your grant database" in response.content

    @pytest.mark.asyncio
    async def test_status_update_failure(self):
        with patch(
            "grant_agent.db.grants.find_grant_by_name",
            new_callable=AsyncMock,
            side_effect=RuntimeError("db down"),
        ):
            response = await handle_chat_turn(_user("Mark Healing Grant as applied"))

        assert response.intent == "status_update"
        assert "trouble processing that status update" in response.content

    @pytest.mark.asyncio
    async def test_profile_update_turn(self):
        with (
            patch("grant_agent.db.profiles.get_active_profile", new_callable=AsyncMock, return_value=PROFILE),
            patch(
                "grant_agent.services.chat_service.extract_profile_updates",
                new_callable=AsyncMock,
                return_value={"website": "https://new.org"},
            ),
            patch("grant_agent.db.profiles.update_profile_fields", new_callable=AsyncMock) as mock_write,
            patch(
                "grant_agent.services.chat_service.generate_chat_reply",
                new_callable=AsyncMock,
                return_value="Got it!",
            ) as mock_reply,
        ):
            response = await handle_chat_turn(_user("Our new website is https://new.org"))

        assert response.intent == "profile_update"
        assert response.profile_updated is True
        assert response.active_profile["website"] == "https://new.org"
        assert response.content.startswith("Got it!\n\n✅ **Profile Updated!**")
        mock_write.assert_awaited_once_with("p1", {"website": "https://new.org"})
        assert mock_reply.call_args.args[2] is True

    @pytest.mark.asyncio
    async def test_profile_write_error_degrades_to_conversation(self):
        with (
            patch("grant_agent.db.profiles.get_active_profile", new_callable=AsyncMock, return_value=PROFILE),
            patch(
                "grant_agent.services.chat_service.extract_profile_updates",
                new_callable=AsyncMock,
                return_value={"website": "https://new.org"},
            ),
            patch(
                "grant_agent.db.profiles.update_profile_fields",
                new_callable=AsyncMock,
                side_effect=APIError({"message": "permission denied for table"}),
            ),
            patch(
                "grant_agent.services.chat_service.generate_chat_reply",
                new_callable=AsyncMock,
                return_value="Thanks for sharing.",
            ) as mock_reply,
        ):
            response = await handle_chat_turn(_user("Our new website is https://new.org"))

        assert response.intent == "conversation"
        assert response.profile_updated is False
        assert response.content == "Thanks for sharing."
        assert response.active_profile["website"] == "https://old.org"
        assert mock_reply.call_args.args[2] is False

    @pytest.mark.asyncio
    async def test_plain_conversation(self):
        with (
            patch("grant_agent.db.profiles.get_active_profile", new_callable=AsyncMock, return_value=None),
            patch(
                "grant_agent.services.chat_service.extract_profile_updates", new_callable=AsyncMock
            ) as mock_extract,
            patch(
                "grant_agent.services.chat_service.generate_chat_reply",
                new_callable=AsyncMock,
                return_value="Aloha!",
            ),
        ):
            response = await handle_chat_turn(_user("Hello there"))

        assert response.intent == "conversation"
        assert response.content == "Aloha!"
        assert response.profile_updated is False
        mock_extract.assert_not_called()
