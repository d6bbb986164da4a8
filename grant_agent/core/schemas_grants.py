"""Pydantic schemas for discovered grants and the discovery cycle."""

from typing import Literal

from pydantic import BaseModel, Field

GrantStatus = Literal["Discovered", "Interested", "Applied", "Awarded", "Rejected"]
GRANT_STATUSES: tuple[str, ...] = ("Discovered", "Interested", "Applied", "Awarded", "Rejected")

VerificationStatus = Literal["Source Page Confirmed", "Unverified"]


class Grant(BaseModel):
    """A grant opportunity parsed from search output."""

    grant_name: str = Field(..., min_length=1, description="Grant name (non-empty)")
    funder: str | None = Field(default=None, description="Funding organization")
    amount: str = Field(default="", description="Free-text amount, e.g. '$25K-$100K'")
    deadline: str | None = Field(default=None, description="ISO-8601 deadline (YYYY-MM-DD)")
    description: str | None = Field(default=None, description="Why the grant is relevant")
    requirements: str | None = Field(default=None, description="Eligibility / application notes")
    application_url: str | None = Field(default=None, description="Direct application link")
    source_url: str | None = Field(default=None, description="Where the grant was found")
    notes: str | None = Field(default=None, description="Supporting notes and website quotes")
    relevance_score: int = Field(default=50, ge=0, le=100, description="Derived ranking signal")
    priority_rank: int = Field(default=1, ge=1, description="1-based position in source list")
    status: GrantStatus = Field(default="Discovered", description="Lifecycle status")

    # Discovery metadata (not part of the parsed text)
    validation_score: int | None = Field(default=None, description="Score from the validator")
    verification_status: VerificationStatus = Field(
        default="Unverified", description="Whether a fetched source page mentioned the grant"
    )


class GrantParseOutcome(BaseModel):
    """Result of parsing one numbered entry of the search output."""

    rank: int
    grant: Grant | None = None
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.grant is not None


class GrantParseReport(BaseModel):
    """Per-entry results for a whole search response."""

    outcomes: list[GrantParseOutcome] = Field(default_factory=list)

    @property
    def grants(self) -> list[Grant]:
        return [o.grant for o in self.outcomes if o.grant is not None]

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.ok)

    @property
    def failed(self) -> int:
        return len(self.outcomes) - self.succeeded


class ValidationDetails(BaseModel):
    """Individual checks behind a validation score."""

    has_grant_name: bool = False
    has_funder: bool = False
    has_source_url: bool = False
    has_deadline: bool = False
    deadline_is_future: bool = False
    deadline_is_invalid: bool = False
    has_amount: bool = False
    has_website_quote: bool = False


class GrantValidation(BaseModel):
    """Validator verdict for one grant."""

    is_valid: bool
    score: int
    reason: str | None = None
    details: ValidationDetails


class SavedGrant(BaseModel):
    """Outcome of writing one grant to the store."""

    grant_name: str
    id: str | None = None
    result: Literal["saved", "duplicate", "failed"]


class DiscoveryReport(BaseModel):
    """Summary of one grant discovery cycle."""

    search_queries: list[str] = Field(default_factory=list)
    total_found: int = 0
    duplicates_in_batch: int = 0
    validated: list[Grant] = Field(default_factory=list)
    rejected: dict[str, str] = Field(default_factory=dict, description="grant name -> reason")
    saved: list[SavedGrant] = Field(default_factory=list)
    summary: str = ""

    @property
    def total_validated(self) -> int:
        return len(self.validated)


# =======================
# API request/response models
# =======================


class GrantSearchRequest(BaseModel):
    """Request body for an explicit grant search."""

    search_query: str | None = Field(default=None, description="Optional user phrasing")


class GrantStatusUpdate(BaseModel):
    """Request body for a grant status transition."""

    status: GrantStatus


class StoredGrant(Grant):
    """Grant as read back from the store."""

    id: str
