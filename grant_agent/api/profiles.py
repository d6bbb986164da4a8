"""API endpoints for organization profiles."""

from fastapi import APIRouter, Depends, HTTPException

from grant_agent.api.dependencies import require_settings
from grant_agent.core.logging import get_logger
from grant_agent.db import profiles as profiles_db
from grant_agent.db.supabase_client import StoreError, StoreNotFoundError

logger = get_logger(__name__)

router = APIRouter(dependencies=[Depends(require_settings)])


@router.get("/active")
async def get_active_profile() -> dict:
    """Get the active profile."""
    try:
        profile = await profiles_db.get_active_profile()
    except StoreError as e:
        logger.error(f"Failed to load active profile: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to load active profile: {e}") from e
    if profile is None:
        raise HTTPException(status_code=404, detail="No active profile")
    return {"profile": profile}


@router.get("")
async def list_profiles() -> dict:
    """List all profiles."""
    try:
        profiles = await profiles_db.list_profiles()
    except StoreError as e:
        logger.error(f"Failed to list profiles: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to list profiles: {e}") from e
    return {"profiles": profiles, "total": len(profiles)}


@router.post("/{profile_id}/activate")
async def activate_profile(profile_id: str) -> dict:
    """Make a profile the active one."""
    try:
        profile = await profiles_db.set_active_profile(profile_id)
    except StoreNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except StoreError as e:
        logger.error(f"Failed to activate profile: {e}", extra={"profile_id": profile_id})
        raise HTTPException(status_code=500, detail=f"Failed to activate profile: {e}") from e
    return {"profile": profile}
