"""Supabase client and query execution."""

from functools import lru_cache
from typing import Any

import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client

from grant_agent.core.config import get_settings


class StoreError(RuntimeError):
    """A store operation failed or did not return the expected rows."""


class StoreNotFoundError(StoreError):
    """No row matched the given id."""


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """
    Get the process-wide Supabase client, authenticated with the service role key.

    Raises:
        StoreError: If the client cannot be created
    """
    settings = get_settings()
    try:
        return create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
    except Exception as e:
        raise StoreError(f"Failed to initialize Supabase client: {e}") from e


def execute(query: Any, action: str) -> Any:
    """
    Run a query builder.

    PostgREST errors and transport failures are raised as StoreError so
    callers handle one exception type for every store failure.
    """
    try:
        return query.execute()
    except (APIError, httpx.HTTPError) as e:
        raise StoreError(f"{action} failed: {e}") from e
