"""Configuration management for the Grant Writing Agent."""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file (only if accessible)
try:
    load_dotenv()
except (PermissionError, OSError):
    # In sandboxed environments, .env might not be accessible
    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Anthropic configuration (required)
    ANTHROPIC_API_KEY: str = Field(..., description="Anthropic API key")

    # Supabase configuration (required)
    SUPABASE_URL: str = Field(..., description="Supabase project URL")
    SUPABASE_SERVICE_ROLE_KEY: str = Field(..., description="Supabase service role key")

    # Firecrawl configuration (optional, grant corroboration only)
    FIRECRAWL_API_KEY: str | None = Field(default=None, description="Firecrawl API key")
    FIRECRAWL_TIMEOUT: int = Field(default=30, description="Firecrawl request timeout in seconds")
    CONTENT_FETCH_CONCURRENCY: int = Field(
        default=4, description="Max concurrent page fetches during grant discovery"
    )

    # Environment
    GRANT_AGENT_ENV: str = Field(default="dev", description="Environment: dev, test, prod")

    # Store tables
    PROFILES_TABLE: str = Field(default="organization_profiles", description="Profiles table")
    GRANTS_TABLE: str = Field(default="grants", description="Grants table")

    # Conversation
    CHAT_MODEL: str = Field(default="claude-sonnet-4-6", description="Model for chat replies")
    CHAT_MAX_TOKENS: int = Field(default=2000, description="Max tokens for chat replies")

    # Profile extraction and narrative merge
    EXTRACTION_MODEL: str = Field(
        default="claude-sonnet-4-6", description="Model for profile field extraction"
    )
    EXTRACTION_MAX_TOKENS: int = Field(default=4000, description="Max tokens for extraction")
    MERGE_MODEL: str = Field(default="claude-sonnet-4-6", description="Model for narrative merge")
    MERGE_MAX_TOKENS: int = Field(default=1000, description="Max tokens for narrative merge")

    # Grant discovery
    SEARCH_MODEL: str = Field(default="claude-sonnet-4-6", description="Model for web grant search")
    SEARCH_MAX_TOKENS: int = Field(default=6000, description="Max tokens for grant search")
    GRANT_SEARCH_MAX_USES: int = Field(default=18, description="Web search tool budget per search")
    MAX_GRANTS_LISTED: int = Field(default=20, description="Grants shown by 'show my grants'")

    # Document analysis
    DOCUMENT_MODEL: str = Field(default="claude-sonnet-4-6", description="Model for documents")
    DOCUMENT_MAX_TOKENS: int = Field(default=3000, description="Max tokens for document analysis")
    MAX_DOCUMENT_CHARS: int = Field(default=15_000, description="Max chars kept per document")
    MAX_UPLOAD_BYTES: int = Field(default=2_000_000, description="Max file upload size in bytes")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance

    Raises:
        ValidationError: If required environment variables are missing
    """
    return Settings()
