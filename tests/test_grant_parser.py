"""Tests for the grant text parser."""

from datetime import date

from grant_agent.core.grant_parser import (
    calculate_relevance_score,
    format_grant_for_display,
    grant_urgency,
    parse_deadline_to_iso,
    parse_grants_from_response,
    parse_grants_report,
)
from grant_agent.core.schemas_grants import Grant

TODAY = date(2026, 10, 17)

SEARCH_OUTPUT = """Here are the grants I found after searching:

1. **Cultural Preservation Fund** - $50K-$150K
   • **Funder:** Heritage Foundation
   • **Deadline:** March 15, 2027
   • **Requirements:** 501(c)(3) status
   • **Relevance:** Supports Indigenous cultural preservation
   • **Application URL:** https://heritage.org/apply
   • **Source URL:** https://heritage.org/grants
   • **Website Quote:** "Applications open for cultural preservation projects"

2. **Community Healing Grant** – $25,000
   • **Funder**: Wellness Trust
   • **Deadline:** Ongoing
   • **Application URL:** Not available
"""


class TestParseGrantsFromResponse:
    def test_parses_numbered_entries(self):
        grants = parse_grants_from_response(SEARCH_OUTPUT, today=TODAY)

        assert [g.grant_name for g in grants] == [
            "Cultural Preservation Fund",
            "Community Healing Grant",
        ]
        first = grants[0]
        assert first.amount == "$50K-$150K"
        assert first.funder == "Heritage Foundation"
        assert first.deadline == "2027-03-15"
        assert first.requirements == "501(c)(3) status"
        assert first.description == "Supports Indigenous cultural preservation"
        assert first.application_url == "https://heritage.org/apply"
        assert first.source_url == "https://heritage.org/grants"
        assert first.notes == 'Website Quote: "Applications open for cultural preservation projects"'
        assert first.status == "Discovered"
        assert first.priority_rank == 1

    def test_alternate_label_and_dash_forms(self):
        second = parse_grants_from_response(SEARCH_OUTPUT, today=TODAY)[1]

        assert second.funder == "Wellness Trust"
        assert second.amount == "$25,000"
        assert second.deadline is None
        assert second.application_url is None
        assert second.priority_rank == 2

    def test_relevance_scores(self):
        first, second = parse_grants_from_response(SEARCH_OUTPUT, today=TODAY)

        # base 50 + indigenous + cultural preservation + leading 50 "k" amount
        assert first.relevance_score == 75
        # base 50 + community healing, "$25,000" below the size thresholds
        assert second.relevance_score == 60

    def test_empty_and_unstructured_text(self):
        assert parse_grants_from_response("", today=TODAY) == []
        assert parse_grants_from_response("No grants found today.", today=TODAY) == []

    def test_malformed_entry_does_not_abort_batch(self):
        text = SEARCH_OUTPUT + "\n3. **Broken entry without a header\n   • **Funder:** Nobody\n"

        report = parse_grants_report(text, today=TODAY)

        assert len(report.outcomes) == 3
        assert report.succeeded == 2
        assert report.failed == 1
        assert report.outcomes[2].rank == 3
        assert report.outcomes[2].grant is None
        assert report.outcomes[2].reason

    def test_ranks_follow_entry_order_after_failures(self):
        text = (
            "1. **no header here\n"
            "2. **Second Grant Program** - $10K\n   • **Funder:** Second Fund\n"
        )

        grants = parse_grants_from_response(text, today=TODAY)

        assert len(grants) == 1
        assert grants[0].priority_rank == 2

    def test_custom_keywords(self):
        text = "1. **Reef Restoration Grant** - $5K\n   • **Relevance:** coral reef work\n"

        default = parse_grants_from_response(text, today=TODAY)[0]
        custom = parse_grants_from_response(text, today=TODAY, keywords=["coral", "reef"])[0]

        assert default.relevance_score == 50
        assert custom.relevance_score == 70


class TestParseDeadline:
    def test_natural_date(self):
        assert parse_deadline_to_iso("March 15, 2027") == "2027-03-15"

    def test_due_prefix_and_parenthetical(self):
        assert parse_deadline_to_iso("Due March 15, 2027 (letter of inquiry)") == "2027-03-15"

    def test_iso_date(self):
        assert parse_deadline_to_iso("2027-01-31") == "2027-01-31"

    def test_ongoing_is_none(self):
        assert parse_deadline_to_iso("Ongoing / rolling") is None

    def test_unparseable_is_none(self):
        assert parse_deadline_to_iso("sometime next spring-ish") is None
        assert parse_deadline_to_iso("") is None


class TestRelevanceScore:
    def _score(self, section: str, amount: str = "", deadline: str | None = None) -> int:
        grant = Grant(grant_name="Test Grant", amount=amount, deadline=deadline)
        return calculate_relevance_score(grant, section, today=TODAY)

    def test_base_score(self):
        assert self._score("plain text") == 50

    def test_urgency_marker(self):
        assert self._score("🚨 closing soon") == 80
        assert self._score("URGENT: closing soon") == 80

    def test_million_amount(self):
        assert self._score("x", amount="$1 million") == 65

    def test_large_k_amount_gets_both_bonuses(self):
        assert self._score("x", amount="$100K-$250K") == 65

    def test_past_deadline_penalty(self):
        assert self._score("x", deadline="2020-01-05") == 0

    def test_clamped_to_100(self):
        section = (
            "🚨 indigenous native traditional knowledge cultural preservation "
            "community healing spiritual practices land stewardship ceremony"
        )
        assert self._score(section, amount="$2 million") == 100

    def test_past_deadline_never_scores_above_undated(self):
        for section in ("x", "🚨 indigenous", "native ceremony"):
            for amount in ("", "$75K", "$3 million"):
                past = self._score(section, amount=amount, deadline="2025-01-01")
                undated = self._score(section, amount=amount)
                assert past <= undated


class TestDisplay:
    def test_urgency_buckets(self):
        assert grant_urgency(Grant(grant_name="A", deadline="2026-10-25"), TODAY) == "urgent"
        assert grant_urgency(Grant(grant_name="A", deadline="2026-11-10"), TODAY) == "soon"
        assert grant_urgency(Grant(grant_name="A", deadline="2027-06-01"), TODAY) == "normal"
        assert grant_urgency(Grant(grant_name="A"), TODAY) == "normal"

    def test_format_grant_for_display(self):
        grant = Grant(
            grant_name="Cultural Preservation Fund",
            funder="Heritage Foundation",
            amount="$50K",
            deadline="2026-10-20",
            application_url="https://heritage.org/apply",
        )

        text = format_grant_for_display(grant, TODAY)

        assert text.startswith("🚨 URGENT **Cultural Preservation Fund** - $50K")
        assert "**Funder:** Heritage Foundation" in text
        assert "**Apply:** https://heritage.org/apply" in text
