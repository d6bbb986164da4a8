"""Shared route dependencies."""

from fastapi import HTTPException
from pydantic import ValidationError

from grant_agent.core.config import Settings, get_settings
from grant_agent.core.logging import get_logger

logger = get_logger(__name__)


def require_settings() -> Settings:
    """
    Load settings, failing the request when credentials are missing.

    Raises:
        HTTPException: 500 when a required setting is absent
    """
    try:
        return get_settings()
    except ValidationError as e:
        logger.error(f"Service credentials not configured: {e.error_count()} missing settings")
        raise HTTPException(status_code=500, detail="service credentials not configured") from e
