"""
Profile field merge engine.

Reconciles facts extracted from one message with the stored profile. Raw
extraction output is validated into typed updates at the boundary
(normalize_extracted_updates); ProfileMergeEngine then applies each field's
tier policy:

- Tier 1: replace.
- Tier 2: focus areas are set-unioned, target population is comma-appended.
- Tier 3: leadership goes through the leadership merger, other narratives
  through the injected synthesizer with a concatenation fallback. The result
  is checked against the field's character limit.

Tier 3 fields merge concurrently and independently: a failed synthesis for
one field falls back for that field only.
"""

import asyncio
import re
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping

from pydantic import ValidationError

from grant_agent.core.field_tiers import (
    DEFAULT_FIELD_POLICIES,
    LEGACY_FIELD_ALIASES,
    FieldPolicy,
    MergeStrategy,
)
from grant_agent.core.leadership import merge_leadership, parse_leadership_mention, truncate_leadership
from grant_agent.core.logging import get_logger
from grant_agent.core.schemas_profile import (
    ListUpdate,
    NarrativeUpdate,
    NormalizedUpdates,
    ProfileMergeResult,
    ReplaceUpdate,
    StagedSuggestion,
)

logger = get_logger(__name__)

# (field, existing, new) -> synthesized text
NarrativeSynthesizer = Callable[[str, str, str], Awaitable[str]]

CAPACITY_WARNING_RATIO = 0.9
TRUNCATION_MARGIN = 50
TRUNCATION_MARKER = "..."
CONFLICT_SHARED_WORDS = 3
CONFLICT_MIN_WORD_LENGTH = 3


# =======================
# Boundary normalization
# =======================


def normalize_extracted_updates(
    raw: Mapping[str, Any] | None,
    policies: Mapping[str, FieldPolicy] = DEFAULT_FIELD_POLICIES,
) -> NormalizedUpdates:
    """
    Validate raw extraction output into typed per-tier updates.

    Falsy values are skipped (an empty value never clears a field). Legacy
    keys feed their modern field only when the modern key carries no value.
    Keys outside the tier table are ignored.
    """
    result = NormalizedUpdates()
    if not raw:
        return result

    values = {k: v for k, v in raw.items() if k in policies}
    for legacy, modern in LEGACY_FIELD_ALIASES.items():
        if raw.get(legacy) and not raw.get(modern) and modern in policies:
            values[modern] = raw[legacy]

    for name, value in values.items():
        if not value:
            continue
        try:
            update = _coerce(name, value, policies[name])
        except (ValidationError, ValueError, TypeError) as e:
            result.skipped[name] = f"invalid value: {e}"
            continue
        if update is None:
            result.skipped[name] = "no usable value"
            continue
        result.updates[name] = update

    if result.skipped:
        logger.info(f"Skipped extracted fields: {sorted(result.skipped)}")
    return result


def _coerce(name: str, value: Any, policy: FieldPolicy):
    if policy.strategy is MergeStrategy.REPLACE:
        if name == "team_size":
            number = _first_int(value)
            return ReplaceUpdate(value=number) if number is not None else None
        text = ", ".join(map(str, value)) if isinstance(value, list) else str(value)
        text = text.strip()
        return ReplaceUpdate(value=text) if text else None

    if policy.strategy in (MergeStrategy.SET_UNION, MergeStrategy.COMMA_APPEND):
        if isinstance(value, str):
            items = value.split(",") if policy.strategy is MergeStrategy.SET_UNION else [value]
        elif isinstance(value, list):
            items = [str(item) for item in value]
        else:
            items = [str(value)]
        items = [item.strip() for item in items if item and item.strip()]
        return ListUpdate(items=items) if items else None

    text = _as_narrative(name, value).strip()
    return NarrativeUpdate(text=text) if text else None


def _first_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    match = re.search(r"\d+", str(value))
    return int(match.group()) if match else None


def _as_narrative(name: str, value: Any) -> str:
    if isinstance(value, list):
        if name == "program_details":
            return "\n".join(f"• {item}" for item in value)
        return ", ".join(str(item) for item in value)
    if isinstance(value, dict):
        blocks = []
        for key, item in value.items():
            if isinstance(item, dict):
                nested = "\n".join(f"  {k}: {v}" for k, v in item.items())
                blocks.append(f"{key}:\n{nested}")
            else:
                blocks.append(f"{key}: {item}")
        return "\n\n".join(blocks)
    return str(value)


# =======================
# Merge helpers
# =======================


def merge_focus_areas(existing: Any, new_items: list[str]) -> list[str]:
    """Union of stored and new focus areas without duplicates."""
    if isinstance(existing, list):
        current = [str(item) for item in existing]
    elif isinstance(existing, str) and existing.strip():
        current = [item.strip() for item in existing.split(",") if item.strip()]
    else:
        current = []
    return list(dict.fromkeys([*current, *new_items]))


def append_target_population(existing: Any, new_items: list[str]) -> str:
    """Append new populations to the stored text with a comma separator."""
    addition = ", ".join(new_items)
    existing = existing.strip() if isinstance(existing, str) else ""
    return f"{existing}, {addition}" if existing else addition


def fallback_merge(existing: str, new: str) -> str:
    """Deterministic narrative merge used when synthesis is unavailable."""
    separator = " " if existing.endswith(".") else ". "
    return f"{existing}{separator}{new}"


@dataclass
class ContentCheck:
    """Limit and overlap verdict for a merged tier 3 value."""

    within_limit: bool
    warning: str | None = None
    suggestion: str | None = None
    potential_conflict: bool = False


def detect_overlap(existing: str, new: str) -> bool:
    """True when more than three words longer than three chars appear in both texts."""
    if not existing or not new:
        return False
    existing_words = {w for w in existing.lower().split() if len(w) > CONFLICT_MIN_WORD_LENGTH}
    new_words = {w for w in new.lower().split() if len(w) > CONFLICT_MIN_WORD_LENGTH}
    return len(existing_words & new_words) > CONFLICT_SHARED_WORDS


def check_content_and_limits(
    field_name: str,
    existing: str,
    new: str,
    merged: str,
    limit: int | None,
) -> ContentCheck:
    """
    Check a merged value against its character limit.

    Over the limit, a suggestion truncated to ``limit - 50`` characters plus
    an ellipsis is staged. At 90% of the limit or more a warning is raised.
    """
    conflict = detect_overlap(existing, new)
    if limit is None:
        return ContentCheck(within_limit=True, potential_conflict=conflict)

    length = len(merged)
    if length <= limit:
        warning = None
        if length >= limit * CAPACITY_WARNING_RATIO:
            warning = f"{field_name} field is approaching capacity ({length}/{limit} characters)"
        return ContentCheck(within_limit=True, warning=warning, potential_conflict=conflict)

    return ContentCheck(
        within_limit=False,
        warning=f"{field_name} field exceeds limit ({length}/{limit} characters)",
        suggestion=merged[: limit - TRUNCATION_MARGIN] + TRUNCATION_MARKER,
        potential_conflict=conflict,
    )


@dataclass
class _NarrativeOutcome:
    field: str
    committed: str
    warnings: list[str] = field(default_factory=list)
    staged: StagedSuggestion | None = None
    conflict: bool = False


# =======================
# Engine
# =======================


class ProfileMergeEngine:
    """
    Applies tier policies to extracted profile facts.

    Args:
        policies: Field tier table (defaults to DEFAULT_FIELD_POLICIES)
        synthesize: Async narrative synthesizer for non-leadership tier 3
            fields. None means always use the concatenation fallback.
        auto_accept_truncation: Commit the truncated suggestion when a merge
            exceeds its limit. When False the field is left unchanged and
            only the staged suggestion is reported.
    """

    def __init__(
        self,
        policies: Mapping[str, FieldPolicy] = DEFAULT_FIELD_POLICIES,
        synthesize: NarrativeSynthesizer | None = None,
        auto_accept_truncation: bool = True,
    ):
        self.policies = policies
        self.synthesize = synthesize
        self.auto_accept_truncation = auto_accept_truncation

    async def merge(
        self,
        extracted: Mapping[str, Any] | None,
        profile: Mapping[str, Any] | None,
    ) -> ProfileMergeResult:
        """
        Merge extracted facts into the stored profile.

        Args:
            extracted: Raw field -> value mapping from extraction
            profile: Current stored profile (None when there is none yet)

        Returns:
            ProfileMergeResult with the values to write and tier 3 merged values
        """
        normalized = normalize_extracted_updates(extracted, self.policies)
        current = profile or {}
        result = ProfileMergeResult(skipped=dict(normalized.skipped))
        narrative_jobs = []

        for name, update in normalized.updates.items():
            policy = self.policies[name]
            if isinstance(update, ReplaceUpdate):
                result.updates[name] = update.value
            elif isinstance(update, ListUpdate):
                if policy.strategy is MergeStrategy.SET_UNION:
                    result.updates[name] = merge_focus_areas(current.get(name), update.items)
                else:
                    result.updates[name] = append_target_population(current.get(name), update.items)
            elif isinstance(update, NarrativeUpdate):
                existing = current.get(name) or ""
                narrative_jobs.append(
                    self._merge_narrative(name, str(existing), update.text, policy)
                )

        for outcome in await asyncio.gather(*narrative_jobs):
            result.warnings.extend(outcome.warnings)
            if outcome.conflict:
                result.conflicts.append(outcome.field)
            if outcome.staged is not None:
                result.staged.append(outcome.staged)
            if outcome.committed:
                result.updates[outcome.field] = outcome.committed
                result.merged_narratives[outcome.field] = outcome.committed

        return result

    async def _merge_narrative(
        self, name: str, existing: str, new: str, policy: FieldPolicy
    ) -> _NarrativeOutcome:
        if policy.strategy is MergeStrategy.LEADERSHIP:
            merged = existing
            for entry in parse_leadership_mention(new):
                merged = merge_leadership(merged, entry.name, entry.roles)
        else:
            merged = await self.merge_narrative_text(name, existing, new)

        check = check_content_and_limits(name, existing, new, merged, policy.char_limit)
        outcome = _NarrativeOutcome(field=name, committed=merged, conflict=check.potential_conflict)

        if not check.within_limit:
            if policy.strategy is MergeStrategy.LEADERSHIP:
                # Whole entries only
                check.suggestion = truncate_leadership(merged, policy.char_limit - TRUNCATION_MARGIN)
            outcome.staged = StagedSuggestion(
                field=name,
                current=existing,
                proposed=check.suggestion or "",
                reason=check.warning or "Content exceeds character limit",
            )
            outcome.committed = check.suggestion if self.auto_accept_truncation else ""
            outcome.warnings.append(f"{name}: {outcome.staged.reason}")
            logger.warning(f"Staged truncated value for {name}: {check.warning}")
        elif check.warning:
            outcome.warnings.append(check.warning)

        if check.potential_conflict:
            outcome.warnings.append(
                f"{name}: New content may overlap with existing information"
                " - please verify the merged content is accurate"
            )
        return outcome

    async def merge_narrative_text(self, name: str, existing: str, new: str) -> str:
        """
        Synthesize existing and new narrative text, never failing.

        Empty existing text returns the new text. A synthesizer error, or a
        result shorter than the shorter input, falls back to concatenation.
        """
        if not existing.strip():
            return new
        if self.synthesize is None:
            return fallback_merge(existing, new)

        try:
            merged = (await self.synthesize(name, existing, new)).strip()
        except Exception as e:
            logger.warning(f"Narrative synthesis failed for {name}, using fallback merge: {e}")
            return fallback_merge(existing, new)

        if len(merged) < min(len(existing), len(new)):
            logger.warning(f"Narrative synthesis for {name} produced a short result, using fallback")
            return fallback_merge(existing, new)
        return merged
