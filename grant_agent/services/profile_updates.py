"""Apply facts extracted from a chat message to the active profile."""

import logging
from typing import Any

from grant_agent.chains.merge_narrative import synthesize_narrative
from grant_agent.core.logging import get_logger, log_with_context
from grant_agent.core.profile_merge import ProfileMergeEngine
from grant_agent.core.schemas_profile import ProfileUpdateOutcome
from grant_agent.db import profiles as profiles_db

logger = get_logger(__name__)

# Field -> label used in the "profile updated" summary
FIELD_LABELS = {
    "leadership": "Leadership",
    "website": "Website",
    "location": "Location",
    "mission_statement": "Mission",
    "unique_qualifications": "Qualifications",
    "program_details": "Programs",
    "focus_areas": "Focus Areas",
    "target_population": "Target Population",
    "team_size": "Team Size",
    "year_founded": "Year Founded",
    "budget_range": "Budget Range",
    "legal_structure": "Legal Structure",
    "legal_name": "Legal Name",
}

_LONG_FIELDS = {"mission_statement", "unique_qualifications", "program_details"}
_SUMMARY_PREVIEW = 100


def get_merge_engine() -> ProfileMergeEngine:
    return ProfileMergeEngine(synthesize=synthesize_narrative)


async def apply_profile_updates(
    extracted: dict[str, Any],
    profile: dict[str, Any] | None = None,
    engine: ProfileMergeEngine | None = None,
) -> ProfileUpdateOutcome:
    """
    Merge extracted facts into the active profile and persist them.

    Args:
        extracted: Raw extraction output
        profile: Active profile if already loaded
        engine: Merge engine (defaults to one with model synthesis)

    Returns:
        ProfileUpdateOutcome; success is False when there is no active
        profile or the write fails
    """
    try:
        profile = profile or await profiles_db.get_active_profile()
    except Exception as e:
        logger.warning(f"Failed to load active profile: {e}")
        return ProfileUpdateOutcome(success=False, extracted=extracted, error=str(e))

    if not profile:
        return ProfileUpdateOutcome(success=False, extracted=extracted, error="No active profile found")

    engine = engine or get_merge_engine()
    merge = await engine.merge(extracted, profile)
    profile_id = profile.get("id")

    if not merge.has_updates:
        return ProfileUpdateOutcome(success=True, profile_id=profile_id, extracted=extracted, merge=merge)

    try:
        await profiles_db.update_profile_fields(profile_id, merge.updates)
    except Exception as e:
        logger.warning(f"Profile write failed: {e}")
        return ProfileUpdateOutcome(
            success=False, profile_id=profile_id, extracted=extracted, merge=merge, error=str(e)
        )

    log_with_context(
        logger,
        logging.INFO,
        "Profile updated",
        profile_id=profile_id,
        fields=",".join(sorted(merge.updates)),
        warnings=len(merge.warnings),
    )
    return ProfileUpdateOutcome(success=True, profile_id=profile_id, extracted=extracted, merge=merge)


def apply_to_session_profile(session_profile: dict[str, Any] | None, outcome: ProfileUpdateOutcome) -> dict[str, Any] | None:
    """
    Copy committed values into the caller's session profile.

    Tier 3 fields take their merged value; other fields take the value that
    was written.
    """
    if session_profile is None or not outcome.success or outcome.merge is None:
        return session_profile

    updated = dict(session_profile)
    updated.update(outcome.merge.updates)
    updated.update(outcome.merge.merged_narratives)
    return updated


def summarize_updates(outcome: ProfileUpdateOutcome) -> str:
    """Markdown list of the saved fields, empty when nothing was saved."""
    if not outcome.success or outcome.merge is None or not outcome.merge.updates:
        return ""

    lines = []
    for field, label in FIELD_LABELS.items():
        value = outcome.merge.updates.get(field)
        if value in (None, "", []):
            continue
        if isinstance(value, list):
            value = ", ".join(value)
        text = str(value)
        if field in _LONG_FIELDS and len(text) > _SUMMARY_PREVIEW:
            text = text[:_SUMMARY_PREVIEW] + "..."
        lines.append(f"- {label}: {text}")

    summary = "\n\n✅ **Profile Updated!** I've saved the following to your profile:\n" + "\n".join(lines)
    if outcome.merge.warnings:
        summary += "\n\n⚠️ " + "\n⚠️ ".join(outcome.merge.warnings)
    return summary
