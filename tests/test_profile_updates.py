"""Tests for applying extracted facts to the active profile."""

from unittest.mock import AsyncMock, patch

import pytest
from postgrest.exceptions import APIError

from grant_agent.core.profile_merge import ProfileMergeEngine
from grant_agent.core.schemas_profile import ProfileMergeResult, ProfileUpdateOutcome
from grant_agent.db.supabase_client import StoreError
from grant_agent.services.profile_updates import (
    apply_profile_updates,
    apply_to_session_profile,
    summarize_updates,
)

PROFILE = {
    "id": "p1",
    "profile_name": "Kaulana",
    "website": "https://old.org",
    "leadership": "Jane Doe (Director)",
    "focus_areas": ["healing"],
}


class TestApplyProfileUpdates:
    @pytest.mark.asyncio
    async def test_writes_merged_values(self):
        with patch(
            "grant_agent.db.profiles.update_profile_fields",
            new_callable=AsyncMock,
            return_value=PROFILE,
        ) as mock_update:
            outcome = await apply_profile_updates(
                {"website": "https://new.org", "leadership": "Jane Doe (Chair)"},
                PROFILE,
                engine=ProfileMergeEngine(),
            )

        assert outcome.success is True
        assert outcome.profile_id == "p1"
        mock_update.assert_awaited_once_with(
            "p1",
            {"website": "https://new.org", "leadership": "Jane Doe (Director, Chair)"},
        )

    @pytest.mark.asyncio
    async def test_no_active_profile(self):
        with patch(
            "grant_agent.db.profiles.get_active_profile",
            new_callable=AsyncMock,
            return_value=None,
        ):
            outcome = await apply_profile_updates({"website": "https://x.org"})

        assert outcome.success is False
        assert outcome.error == "No active profile found"

    @pytest.mark.asyncio
    async def test_write_failure(self):
        with patch(
            "grant_agent.db.profiles.update_profile_fields",
            new_callable=AsyncMock,
            side_effect=StoreError("Failed to update profile p1"),
        ):
            outcome = await apply_profile_updates(
                {"website": "https://new.org"}, PROFILE, engine=ProfileMergeEngine()
            )

        assert outcome.success is False
        assert "Failed to update" in outcome.error

    @pytest.mark.asyncio
    async def test_unwrapped_write_error_is_a_failed_outcome(self):
        with patch(
            "grant_agent.db.profiles.update_profile_fields",
            new_callable=AsyncMock,
            side_effect=APIError({"message": "permission denied for table"}),
        ):
            outcome = await apply_profile_updates(
                {"website": "https://new.org"}, PROFILE, engine=ProfileMergeEngine()
            )

        assert outcome.success is False
        assert outcome.profile_id == "p1"
        assert "permission denied" in outcome.error

    @pytest.mark.asyncio
    async def test_nothing_to_write(self):
        with patch(
            "grant_agent.db.profiles.update_profile_fields", new_callable=AsyncMock
        ) as mock_update:
            outcome = await apply_profile_updates({"website": ""}, PROFILE, engine=ProfileMergeEngine())

        assert outcome.success is True
        mock_update.assert_not_called()


class TestSessionProfile:
    def test_merged_values_applied(self):
        outcome = ProfileUpdateOutcome(
            success=True,
            merge=ProfileMergeResult(
                updates={"website": "https://new.org", "location": "Hilo"},
                merged_narratives={"location": "Hilo"},
            ),
        )

        updated = apply_to_session_profile(PROFILE, outcome)

        assert updated["website"] == "https://new.org"
        assert updated["location"] == "Hilo"
        assert PROFILE["website"] == "https://old.org"

    def test_failed_outcome_leaves_session(self):
        outcome = ProfileUpdateOutcome(success=False, error="boom")
        assert apply_to_session_profile(PROFILE, outcome) is PROFILE


class TestSummarizeUpdates:
    def test_lists_fields_and_warnings(self):
        outcome = ProfileUpdateOutcome(
            success=True,
            merge=ProfileMergeResult(
                updates={"focus_areas": ["healing", "art"], "mission_statement": "m" * 150},
                warnings=["mission_statement field is approaching capacity (1900/2000 characters)"],
            ),
        )

        summary = summarize_updates(outcome)

        assert "✅ **Profile Updated!**" in summary
        assert "- Focus Areas: healing, art" in summary
        assert "- Mission: " + "m" * 100 + "..." in summary
        assert "⚠️ mission_statement field is approaching capacity" in summary

    def test_empty_when_nothing_saved(self):
        assert summarize_updates(ProfileUpdateOutcome(success=True, merge=ProfileMergeResult())) == ""
