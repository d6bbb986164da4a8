"""Tests for chat message routing keywords."""

from grant_agent.core.intent import (
    detect_profile_update_context,
    is_grant_search_request,
    is_show_grants_request,
    is_status_update_request,
    parse_status_update_request,
)


class TestProfileContext:
    def test_detects_fields(self):
        contexts = detect_profile_update_context(
            "Our executive director is Jane Doe and our website is kaulana.org"
        )

        assert "leadership" in contexts
        assert "website" in contexts

    def test_case_insensitive(self):
        assert "mission_statement" in detect_profile_update_context("Our MISSION is to heal")

    def test_no_keywords(self):
        assert detect_profile_update_context("Hello there!") == []
        assert detect_profile_update_context("") == []


class TestGrantRequests:
    def test_search_phrases(self):
        assert is_grant_search_request("Can you find grants for us?")
        assert is_grant_search_request("Search for grants please")
        assert not is_grant_search_request("What is a grant?")

    def test_show_phrases(self):
        assert is_show_grants_request("Show my grants")
        assert is_show_grants_request("please list grants")
        assert not is_show_grants_request("find grants")


class TestStatusUpdates:
    def test_requires_mark_and_status_word(self):
        assert is_status_update_request("Mark Healing Grant as applied")
        assert not is_status_update_request("We applied yesterday")
        assert not is_status_update_request("mark my calendar")

    def test_parse_name_and_status(self):
        assert parse_status_update_request("Mark Cultural Preservation Fund as applied") == (
            "Cultural Preservation Fund",
            "Applied",
        )

    def test_parse_strips_article_and_quotes(self):
        assert parse_status_update_request("please mark the 'Healing Grant' as awarded") == (
            "Healing Grant",
            "Awarded",
        )

    def test_parse_status_without_name(self):
        assert parse_status_update_request("mark it rejected") == (None, "Rejected")

    def test_not_a_status_update(self):
        assert parse_status_update_request("hello") == (None, None)
