"""Pytest configuration and fixtures."""

import os
from unittest.mock import MagicMock

import pytest

from grant_agent.core.config import get_settings


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """Set up test environment variables."""
    os.environ["ANTHROPIC_API_KEY"] = "test-anthropic-key"
    os.environ["SUPABASE_URL"] = "https://test.supabase.co"
    os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "test-key"
    os.environ["GRANT_AGENT_ENV"] = "test"
    os.environ.pop("FIRECRAWL_API_KEY", None)
    get_settings.cache_clear()


@pytest.fixture
def mock_supabase():
    """Supabase mock whose query builder methods all return the same chain."""
    sb = MagicMock()
    chain = MagicMock()
    chain.execute.return_value = MagicMock(data=[])
    for method in ("select", "insert", "update", "eq", "neq", "ilike", "order", "limit"):
        getattr(chain, method).return_value = chain
    sb.table.return_value = chain
    return sb
