# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# This module loads configuration from environment variables using pydantic-settings.
# It provides a single Settings class with all configuration values.
#
# Usage:
#   from app.config import settings
#   print(settings.OPENAI_MODEL)
#
# Environment variables are loaded from:
# 1. System environment variables
# 2. .env file in project root (if exists)
#
# The Settings class validates all values at startup. A missing model API key
# is a fatal configuration error, never masked by demo data.
# =============================================================================

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings are accessed via the global `settings` instance, or via
    `Depends(get_settings)` in routes whose behavior depends on mode flags.
    """

    # -------------------------------------------------------------------------
    # LLM Provider Configuration
    # -------------------------------------------------------------------------
    # Any OpenAI-compatible chat-completions endpoint works. For Groq set
    # OPENAI_BASE_URL=https://api.groq.com/openai/v1

    OPENAI_API_KEY: str = Field(
        ...,  # ... means required (no default)
        min_length=1,
        description="API key for the model provider"
    )

    OPENAI_BASE_URL: str | None = Field(
        default=None,
        description="Override the provider base URL (OpenAI-compatible APIs)"
    )

    OPENAI_MODEL: str = Field(
        default="gpt-4o-mini",
        description="Model used for document analysis (must support JSON mode)"
    )

    # -------------------------------------------------------------------------
    # Document Analysis Settings
    # -------------------------------------------------------------------------

    ANALYSIS_TEMPERATURE: float = Field(
        default=0.1,
        ge=0.0,
        le=2.0,
        description="Temperature for task extraction (low = consistent JSON)"
    )

    ANALYSIS_MAX_TOKENS: int = Field(
        default=4096,
        ge=256,
        description="Output token ceiling for the analysis call"
    )

    ANALYSIS_MAX_CHARS: int = Field(
        default=30_000,
        ge=1,
        description="Extracted text is truncated to this many characters"
    )

    # -------------------------------------------------------------------------
    # Assistant (Chat) Settings
    # -------------------------------------------------------------------------

    CHAT_MODEL: str | None = Field(
        default=None,
        description="Model for the conversational assistant (defaults to OPENAI_MODEL)"
    )

    CHAT_TEMPERATURE: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Temperature for the assistant"
    )

    CHAT_MAX_TOKENS: int = Field(
        default=1024,
        ge=1,
        description="Output token ceiling for assistant replies"
    )

    # -------------------------------------------------------------------------
    # Pipeline Mode Flags
    # -------------------------------------------------------------------------

    DEMO_MODE: bool = Field(
        default=False,
        description="Return the canned demo bundle instead of calling the model"
    )

    PERSIST_RESULTS: bool = Field(
        default=False,
        description="Store uploads, documents and tasks in Supabase"
    )

    # -------------------------------------------------------------------------
    # Supabase Configuration
    # -------------------------------------------------------------------------
    # Only required when PERSIST_RESULTS is enabled

    SUPABASE_URL: str | None = Field(
        default=None,
        description="Supabase project URL (e.g., https://xxx.supabase.co)"
    )

    SUPABASE_ANON_KEY: str | None = Field(
        default=None,
        description="Supabase anon/public API key"
    )

    SUPABASE_SERVICE_KEY: str | None = Field(
        default=None,
        description="Supabase service_role key (bypasses RLS)"
    )

    SUPABASE_JWT_SECRET: str | None = Field(
        default=None,
        description="Legacy HS256 JWT secret for verifying Supabase tokens"
    )

    STORAGE_BUCKET: str = Field(
        default="documents",
        description="Supabase Storage bucket for original uploads"
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Current environment"
    )

    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode (verbose logging, auto-reload)"
    )

    API_HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the API server to"
    )

    API_PORT: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port for the API server"
    )

    # CORS origins (comma-separated string that gets parsed)
    CORS_ORIGINS: str = Field(
        default="http://localhost:3000",
        description="Allowed CORS origins (comma-separated)"
    )

    # -------------------------------------------------------------------------
    # File Upload Settings
    # -------------------------------------------------------------------------

    MAX_UPLOAD_SIZE_MB: int = Field(
        default=20,
        ge=1,
        le=500,
        description="Maximum file upload size in MB"
    )

    # -------------------------------------------------------------------------
    # Pydantic Settings Configuration
    # -------------------------------------------------------------------------

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
    )

    # -------------------------------------------------------------------------
    # Cross-field Validation
    # -------------------------------------------------------------------------

    @model_validator(mode="after")
    def _check_modes(self) -> "Settings":
        """Reject mode combinations that cannot work."""
        if self.DEMO_MODE and self.PERSIST_RESULTS:
            raise ValueError(
                "DEMO_MODE and PERSIST_RESULTS cannot both be enabled; "
                "demo data must never be written to the database"
            )
        if self.PERSIST_RESULTS:
            missing = [
                name for name in ("SUPABASE_URL", "SUPABASE_SERVICE_KEY", "SUPABASE_JWT_SECRET")
                if not getattr(self, name)
            ]
            if missing:
                raise ValueError(
                    f"PERSIST_RESULTS requires {', '.join(missing)} to be set"
                )
        return self

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def cors_origins_list(self) -> list[str]:
        """
        Parse CORS_ORIGINS string into a list.

        Example: "http://localhost:3000, https://myapp.com" -> ["http://localhost:3000", "https://myapp.com"]
        """
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def max_upload_size_bytes(self) -> int:
        """Convert MB to bytes for file size validation."""
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024

    @property
    def chat_model(self) -> str:
        """Model used by the assistant."""
        return self.CHAT_MODEL or self.OPENAI_MODEL

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached Settings instance.

    Using lru_cache ensures we only parse .env and validate once,
    not on every access.

    Returns:
        Settings: The application settings instance
    """
    return Settings()


# Global settings instance for easy importing
# Usage: from app.config import settings
settings = get_settings()
