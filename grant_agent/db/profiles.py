"""Database operations for organization profiles."""

from typing import Any

from grant_agent.core.config import get_settings
from grant_agent.core.logging import get_logger
from grant_agent.core.schemas_profile import OrganizationProfile
from grant_agent.db.supabase_client import StoreError, StoreNotFoundError, execute
from grant_agent.db.supabase_client import get_supabase as get_client

logger = get_logger(__name__)

# Columns callers may write
PROFILE_COLUMNS = set(OrganizationProfile.model_fields) - {"id"}


def _table():
    return get_client().table(get_settings().PROFILES_TABLE)


def _to_row(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if k in PROFILE_COLUMNS}


async def get_active_profile() -> dict[str, Any] | None:
    """Get the active profile, or None when no profile is active."""
    result = execute(_table().select("*").eq("is_active", True).limit(1), "Load active profile")
    if result.data:
        return result.data[0]
    return None


async def get_profile(profile_id: str) -> dict[str, Any] | None:
    """Get a profile by id."""
    result = execute(_table().select("*").eq("id", profile_id), f"Load profile {profile_id}")
    if result.data:
        return result.data[0]
    return None


async def list_profiles() -> list[dict[str, Any]]:
    """List all profiles, newest first."""
    result = execute(_table().select("*").order("created_at", desc=True), "List profiles")
    return result.data or []


async def _deactivate_all(except_id: str | None = None) -> None:
    query = _table().update({"is_active": False}).eq("is_active", True)
    if except_id:
        query = query.neq("id", except_id)
    execute(query, "Deactivate profiles")


async def create_profile(data: dict[str, Any], activate: bool = True) -> dict[str, Any]:
    """
    Create a profile.

    Args:
        data: Profile field values (unknown keys are dropped)
        activate: Make it the active profile, deactivating the others

    Raises:
        StoreError: If the insert returns no row
    """
    row = _to_row(data)
    row["is_active"] = activate
    if activate:
        await _deactivate_all()

    result = execute(_table().insert(row), "Create profile")
    if not result.data:
        raise StoreError("Failed to create profile")

    profile = result.data[0]
    logger.info(f"Created profile {profile.get('id')} ({row.get('profile_name', '')})")
    return profile


async def update_profile_fields(profile_id: str, updates: dict[str, Any]) -> dict[str, Any]:
    """
    Write field values to a profile.

    Raises:
        StoreNotFoundError: If the profile does not exist
        StoreError: If the update fails
    """
    row = _to_row(updates)
    if not row:
        profile = await get_profile(profile_id)
        if profile is None:
            raise StoreNotFoundError(f"Profile {profile_id} not found")
        return profile

    result = execute(_table().update(row).eq("id", profile_id), f"Update profile {profile_id}")
    if not result.data:
        raise StoreNotFoundError(f"Profile {profile_id} not found")
    return result.data[0]


async def set_active_profile(profile_id: str) -> dict[str, Any]:
    """
    Make one profile active and deactivate the rest.

    Raises:
        StoreNotFoundError: If the profile does not exist
        StoreError: If the update fails
    """
    result = execute(_table().update({"is_active": True}).eq("id", profile_id), f"Activate profile {profile_id}")
    if not result.data:
        raise StoreNotFoundError(f"Profile {profile_id} not found")
    await _deactivate_all(except_id=profile_id)
    return result.data[0]
