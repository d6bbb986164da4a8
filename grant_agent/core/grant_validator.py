"""
Plausibility gate for grants found through web search.

The search model has no guaranteed grounding, so every candidate is scored
here before it is written to the store. The score is independent of the
parser's relevance score.
"""

from datetime import date

from grant_agent.core.schemas_grants import Grant, GrantValidation, ValidationDetails

MIN_VALID_SCORE = 50
QUOTE_MARKERS = ("QUOTE:", "Website Quote:")


def validate_web_search_grant(grant: Grant, today: date | None = None) -> GrantValidation:
    """
    Score a grant for plausibility and decide whether it may be persisted.

    Scoring:
        +20 grant name longer than 5 chars, +20 funder longer than 3 chars,
        +15 http source URL, +15 deadline present (+10 more if in the future,
        -20 if not, -10 if it does not parse), +10 currency symbol in amount,
        +10 website quote in notes.

    A grant is valid when the score is at least 50 and both name and funder
    checks pass.
    """
    today = today or date.today()
    details = ValidationDetails()
    score = 0

    if grant.grant_name and len(grant.grant_name.strip()) > 5:
        details.has_grant_name = True
        score += 20

    if grant.funder and len(grant.funder.strip()) > 3:
        details.has_funder = True
        score += 20

    if grant.source_url and grant.source_url.startswith("http"):
        details.has_source_url = True
        score += 15

    if grant.deadline:
        details.has_deadline = True
        score += 15
        try:
            deadline = date.fromisoformat(grant.deadline)
        except ValueError:
            details.deadline_is_invalid = True
            score -= 10
        else:
            if deadline > today:
                details.deadline_is_future = True
                score += 10
            else:
                score -= 20

    if grant.amount and "$" in grant.amount:
        details.has_amount = True
        score += 10

    if grant.notes and any(marker in grant.notes for marker in QUOTE_MARKERS):
        details.has_website_quote = True
        score += 10

    is_valid = score >= MIN_VALID_SCORE and details.has_grant_name and details.has_funder
    if is_valid:
        return GrantValidation(is_valid=True, score=score, details=details)

    return GrantValidation(
        is_valid=False,
        score=score,
        reason=_rejection_reason(details, score),
        details=details,
    )


def _rejection_reason(details: ValidationDetails, score: int) -> str:
    problems = []
    if not details.has_grant_name:
        problems.append("Missing grant name.")
    if not details.has_funder:
        problems.append("Missing funder.")
    if not details.has_deadline:
        problems.append("Missing deadline.")
    elif details.deadline_is_invalid:
        problems.append("Invalid deadline.")
    elif not details.deadline_is_future:
        problems.append("Past deadline.")
    if score < MIN_VALID_SCORE:
        problems.append(f"Low validation score ({score}/100).")

    return "Failed validation: " + " ".join(problems)
