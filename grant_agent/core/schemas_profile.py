"""Pydantic schemas for organization profiles and profile merging."""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field

# =======================
# Typed field updates (one variant per tier)
# =======================


class ReplaceUpdate(BaseModel):
    """Tier 1 value: replaces the stored value."""

    kind: Literal["replace"] = "replace"
    value: str | int


class ListUpdate(BaseModel):
    """Tier 2 value: items merged into the stored list or string."""

    kind: Literal["list"] = "list"
    items: list[str] = Field(..., min_length=1)


class NarrativeUpdate(BaseModel):
    """Tier 3 value: free text merged into the stored narrative."""

    kind: Literal["narrative"] = "narrative"
    text: str = Field(..., min_length=1)


FieldUpdate = Annotated[
    Union[ReplaceUpdate, ListUpdate, NarrativeUpdate], Field(discriminator="kind")
]


class NormalizedUpdates(BaseModel):
    """Extraction output after boundary validation."""

    updates: dict[str, FieldUpdate] = Field(default_factory=dict)
    skipped: dict[str, str] = Field(default_factory=dict, description="field -> reason")


# =======================
# Merge results
# =======================


class StagedSuggestion(BaseModel):
    """A merged value that exceeded its field limit, truncated for review."""

    field: str
    current: str
    proposed: str
    reason: str


class ProfileMergeResult(BaseModel):
    """Values to persist plus everything the caller should surface."""

    updates: dict[str, Any] = Field(default_factory=dict, description="field -> value to write")
    merged_narratives: dict[str, str] = Field(
        default_factory=dict, description="Tier 3 field -> merged value (for session state)"
    )
    staged: list[StagedSuggestion] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    conflicts: list[str] = Field(default_factory=list, description="Fields with overlapping content")
    skipped: dict[str, str] = Field(default_factory=dict)

    @property
    def has_updates(self) -> bool:
        return bool(self.updates)


class ProfileUpdateOutcome(BaseModel):
    """Result of applying one message's extracted facts to the active profile."""

    success: bool
    profile_id: str | None = None
    extracted: dict[str, Any] = Field(default_factory=dict)
    merge: ProfileMergeResult | None = None
    error: str | None = None


# =======================
# Stored profile
# =======================


class OrganizationProfile(BaseModel):
    """Organization profile as stored in the workspace."""

    id: str | None = None
    profile_name: str = ""
    legal_name: str | None = None
    legal_structure: str | None = None
    location: str | None = None
    mission_statement: str | None = None
    focus_areas: list[str] = Field(default_factory=list)
    target_population: str | None = None
    unique_qualifications: str | None = None
    leadership: str | None = None
    budget_range: str | None = None
    website: str | None = None
    team_size: int | None = None
    program_details: str | None = None
    year_founded: str | None = None
    is_active: bool = False
    documents_analyzed: list[str] = Field(default_factory=list)
