"""API endpoints for grant discovery and tracking."""

from fastapi import APIRouter, Depends, HTTPException, Query

from grant_agent.api.dependencies import require_settings
from grant_agent.core.logging import get_logger
from grant_agent.core.schemas_grants import (
    DiscoveryReport,
    GrantSearchRequest,
    GrantStatus,
    GrantStatusUpdate,
)
from grant_agent.db import grants as grants_db
from grant_agent.db.supabase_client import StoreError, StoreNotFoundError
from grant_agent.services.grant_discovery import run_grant_discovery

logger = get_logger(__name__)

router = APIRouter(dependencies=[Depends(require_settings)])


@router.post("/search", response_model=DiscoveryReport)
async def search_grants(request: GrantSearchRequest) -> DiscoveryReport:
    """Run a grant discovery cycle for the active profile."""
    return await run_grant_discovery(search_query=request.search_query)


@router.get("")
async def list_grants(
    status: GrantStatus | None = Query(default=None),
    limit: int | None = Query(default=None, ge=1, le=200),
) -> dict:
    """List saved grants."""
    try:
        grants = await grants_db.list_grants(status=status, limit=limit)
    except StoreError as e:
        logger.error(f"Failed to list grants: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to list grants: {e}") from e
    return {"grants": grants, "total": len(grants)}


@router.patch("/{grant_id}/status")
async def update_grant_status(grant_id: str, request: GrantStatusUpdate) -> dict:
    """Move a grant to a new status."""
    try:
        grant = await grants_db.update_grant_status(grant_id, request.status)
    except StoreNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except StoreError as e:
        logger.error(f"Failed to update grant status: {e}", extra={"grant_id": grant_id})
        raise HTTPException(status_code=500, detail=f"Failed to update grant status: {e}") from e
    return {"grant": grant}
