# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# This module loads configuration from environment variables using pydantic-settings.
# It provides a single Settings class with all configuration values.
#
# Usage:
#   from app.config import settings
#   print(settings.SUPABASE_URL)
#
# Environment variables are loaded from:
# 1. System environment variables
# 2. .env file in project root (if exists)
# =============================================================================

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings are accessed via the global `settings` instance.
    """

    # -------------------------------------------------------------------------
    # Supabase Configuration
    # -------------------------------------------------------------------------
    # These are required - app won't start without them

    SUPABASE_URL: str = Field(
        ...,
        description="Supabase project URL (e.g., https://xxx.supabase.co)"
    )

    SUPABASE_ANON_KEY: str = Field(
        ...,
        description="Supabase anon/public API key"
    )

    SUPABASE_SERVICE_KEY: str = Field(
        ...,
        description="Supabase service_role key (bypasses RLS)"
    )

    SUPABASE_JWT_SECRET: str = Field(
        default="",
        description="Legacy HS256 JWT secret used to verify Supabase access tokens"
    )

    QUESTION_IMAGE_BUCKET: str = Field(
        default="question-images",
        description="Storage bucket holding question images"
    )

    # -------------------------------------------------------------------------
    # Redis Configuration (for Celery)
    # -------------------------------------------------------------------------

    REDIS_URL: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL for Celery broker"
    )

    # -------------------------------------------------------------------------
    # OpenAI / LLM Configuration
    # -------------------------------------------------------------------------
    # Required for the question reviewer

    OPENAI_API_KEY: str = Field(
        ...,
        description="OpenAI API key for the question reviewer"
    )

    OPENAI_MODEL: str = Field(
        default="gpt-4o",
        description="Model used to generate hints, solutions and explanations"
    )

    # -------------------------------------------------------------------------
    # Question Review Settings
    # -------------------------------------------------------------------------

    REVIEW_MAX_RETRIES: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Retries for a failed LLM call (total attempts = retries + 1)"
    )

    REVIEW_RETRY_DELAY_SECONDS: float = Field(
        default=1.0,
        ge=0.0,
        description="Initial backoff delay, doubled after each failed attempt"
    )

    REVIEW_TEMPERATURE: float = Field(
        default=0.3,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for generated review content"
    )

    REVIEW_BATCH_DELAY_SECONDS: float = Field(
        default=1.0,
        ge=0.0,
        description="Pause between questions in a batch review"
    )

    REVIEW_BATCH_MAX_SIZE: int = Field(
        default=50,
        ge=1,
        le=500,
        description="Maximum number of questions accepted by one batch review"
    )

    REMINDER_HOUR_UTC: int = Field(
        default=17,
        ge=0,
        le=23,
        description="Hour (UTC) at which beat fires the daily practice reminders"
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

    APP_URL: str = Field(
        default="http://localhost:3000",
        description="Public URL of the web app (used in password reset links)"
    )

    # -------------------------------------------------------------------------
    # Security
    # -------------------------------------------------------------------------

    CRON_SECRET: str = Field(
        default="",
        description="Bearer secret expected by the cron endpoints (empty disables them)"
    )

    # CORS origins (comma-separated string that gets parsed)
    CORS_ORIGINS: str = Field(
        default="http://localhost:3000",
        description="Allowed CORS origins (comma-separated)"
    )

    # -------------------------------------------------------------------------
    # Upload / Import Settings
    # -------------------------------------------------------------------------

    MAX_IMAGE_SIZE_MB: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Maximum question image size in MB"
    )

    ALLOWED_IMAGE_TYPES: str = Field(
        default="image/jpeg,image/jpg,image/png,image/gif,image/webp",
        description="Allowed image MIME types (comma-separated)"
    )

    MAX_IMPORT_SIZE_MB: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum CSV import payload size in MB"
    )

    IMPORT_BATCH_SIZE: int = Field(
        default=50,
        ge=1,
        le=1000,
        description="Rows inserted per database call during CSV import"
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
    def allowed_image_types_list(self) -> list[str]:
        """Parse ALLOWED_IMAGE_TYPES into a list of lowercase MIME types."""
        return [t.strip().lower() for t in self.ALLOWED_IMAGE_TYPES.split(",") if t.strip()]

    @property
    def max_image_size_bytes(self) -> int:
        return self.MAX_IMAGE_SIZE_MB * 1024 * 1024

    @property
    def max_import_size_bytes(self) -> int:
        return self.MAX_IMPORT_SIZE_MB * 1024 * 1024

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

    Returns:
        Settings: The application settings instance
    """
    return Settings()


# Global settings instance for easy importing
# Usage: from app.config import settings
settings = get_settings()
