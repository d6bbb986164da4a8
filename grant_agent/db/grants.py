"""Database operations for discovered grants."""

import logging
from typing import Any

from grant_agent.core.config import get_settings
from grant_agent.core.logging import get_logger, log_with_context
from grant_agent.core.schemas_grants import Grant, GrantStatus, SavedGrant
from grant_agent.db.supabase_client import StoreError, StoreNotFoundError, execute
from grant_agent.db.supabase_client import get_supabase as get_client

logger = get_logger(__name__)


def _table():
    return get_client().table(get_settings().GRANTS_TABLE)


def _escape_like(value: str) -> str:
    """Escape LIKE wildcards so a name matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


async def create_grant(grant: Grant) -> dict[str, Any]:
    """
    Insert a grant.

    Raises:
        StoreError: If the insert returns no row
    """
    result = execute(_table().insert(grant.model_dump(mode="json")), f"Create grant {grant.grant_name}")
    if not result.data:
        raise StoreError(f"Failed to create grant {grant.grant_name}")
    return result.data[0]


async def find_grant_by_name(name: str) -> dict[str, Any] | None:
    """Find a grant by case-insensitive name match."""
    result = execute(
        _table().select("*").ilike("grant_name", _escape_like(name)).limit(1),
        f"Find grant {name}",
    )
    if result.data:
        return result.data[0]
    return None


async def search_grants_by_name(fragment: str) -> list[dict[str, Any]]:
    """Grants whose name contains the fragment (case-insensitive)."""
    result = execute(
        _table().select("*").ilike("grant_name", f"%{_escape_like(fragment)}%"),
        f"Search grants {fragment}",
    )
    return result.data or []


async def list_grants(status: GrantStatus | None = None, limit: int | None = None) -> list[dict[str, Any]]:
    """List grants ordered by priority rank, then deadline."""
    query = _table().select("*")
    if status:
        query = query.eq("status", status)
    query = query.order("priority_rank")
    if limit:
        query = query.limit(limit)
    result = execute(query, "List grants")
    rows = result.data or []
    # Deadline tie-break, undated last
    return sorted(
        rows,
        key=lambda r: (r.get("priority_rank") or 0, r.get("deadline") is None, r.get("deadline") or ""),
    )


async def update_grant_status(grant_id: str, status: GrantStatus) -> dict[str, Any]:
    """
    Move a grant to a new status.

    Raises:
        StoreNotFoundError: If the grant does not exist
        StoreError: If the update fails
    """
    result = execute(_table().update({"status": status}).eq("id", grant_id), f"Update grant {grant_id}")
    if not result.data:
        raise StoreNotFoundError(f"Grant {grant_id} not found")
    log_with_context(logger, logging.INFO, f"Grant status -> {status}", grant_id=grant_id)
    return result.data[0]


async def save_grants(grants: list[Grant]) -> list[SavedGrant]:
    """
    Save grants, skipping names already in the store.

    A failed lookup or insert is reported as ``failed`` for that grant only.
    """
    saved: list[SavedGrant] = []
    for grant in grants:
        try:
            existing = await find_grant_by_name(grant.grant_name)
            if existing:
                saved.append(
                    SavedGrant(grant_name=grant.grant_name, id=existing.get("id"), result="duplicate")
                )
                continue
            row = await create_grant(grant)
        except Exception as e:
            logger.warning(f"Failed to save grant {grant.grant_name}: {e}")
            saved.append(SavedGrant(grant_name=grant.grant_name, result="failed"))
            continue
        saved.append(SavedGrant(grant_name=grant.grant_name, id=row.get("id"), result="saved"))

    saved_count = sum(1 for s in saved if s.result == "saved")
    duplicate_count = sum(1 for s in saved if s.result == "duplicate")
    logger.info(f"Processed {len(grants)} grants: {saved_count} saved, {duplicate_count} duplicates")
    return saved
