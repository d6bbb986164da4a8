"""
Profile field tier table.

Every mergeable organization-profile field belongs to exactly one tier:

1. replace       - new value replaces the old one
2. list merge    - focus areas are set-unioned, target population is appended
3. narrative     - leadership is merged person-by-person, other narratives are
                   synthesized, all under a per-field character limit

The table is read-only; pass a different mapping to ProfileMergeEngine to
change policy.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping


class MergeStrategy(str, Enum):
    """How a field's new value is combined with the stored one."""

    REPLACE = "replace"
    SET_UNION = "set_union"
    COMMA_APPEND = "comma_append"
    LEADERSHIP = "leadership"
    NARRATIVE = "narrative"


@dataclass(frozen=True)
class FieldPolicy:
    """Tier, merge strategy and size limit for one profile field."""

    tier: int
    strategy: MergeStrategy
    char_limit: int | None = None


LEADERSHIP_CHAR_LIMIT = 1000
NARRATIVE_CHAR_LIMIT = 2000

DEFAULT_FIELD_POLICIES: Mapping[str, FieldPolicy] = MappingProxyType(
    {
        # Tier 1
        "website": FieldPolicy(1, MergeStrategy.REPLACE),
        "year_founded": FieldPolicy(1, MergeStrategy.REPLACE),
        "team_size": FieldPolicy(1, MergeStrategy.REPLACE),
        "budget_range": FieldPolicy(1, MergeStrategy.REPLACE),
        "legal_structure": FieldPolicy(1, MergeStrategy.REPLACE),
        "legal_name": FieldPolicy(1, MergeStrategy.REPLACE),
        # Tier 2
        "focus_areas": FieldPolicy(2, MergeStrategy.SET_UNION),
        "target_population": FieldPolicy(2, MergeStrategy.COMMA_APPEND),
        # Tier 3
        "leadership": FieldPolicy(3, MergeStrategy.LEADERSHIP, LEADERSHIP_CHAR_LIMIT),
        "mission_statement": FieldPolicy(3, MergeStrategy.NARRATIVE, NARRATIVE_CHAR_LIMIT),
        "unique_qualifications": FieldPolicy(3, MergeStrategy.NARRATIVE, NARRATIVE_CHAR_LIMIT),
        "location": FieldPolicy(3, MergeStrategy.NARRATIVE, NARRATIVE_CHAR_LIMIT),
        "program_details": FieldPolicy(3, MergeStrategy.NARRATIVE, NARRATIVE_CHAR_LIMIT),
    }
)

# Deprecated extraction keys -> modern field (one-way)
LEGACY_FIELD_ALIASES: Mapping[str, str] = MappingProxyType(
    {
        "communities": "target_population",
        "main_programs": "focus_areas",
        "geographic_scope": "location",
    }
)


def fields_in_tier(tier: int, policies: Mapping[str, FieldPolicy] = DEFAULT_FIELD_POLICIES) -> list[str]:
    """Field names assigned to a tier, in table order."""
    return [name for name, policy in policies.items() if policy.tier == tier]
