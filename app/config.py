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
#
# The Settings class validates all values at startup, catching configuration
# errors early rather than at runtime.
# =============================================================================

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses pydantic-settings to:
    - Automatically load from .env file
    - Validate types and constraints
    - Provide sensible defaults for development

    All settings are accessed via the global `settings` instance.
    """

    # -------------------------------------------------------------------------
    # Supabase Configuration
    # -------------------------------------------------------------------------
    # Database (documents table), Storage (images) and Auth (identity provider)

    SUPABASE_URL: str = Field(
        ...,  # ... means required (no default)
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
        description="Legacy HS256 secret used to verify Supabase Auth tokens"
    )

    DOCUMENTS_TABLE: str = Field(
        default="documents",
        description="Table holding path-addressed user/business/product documents"
    )

    # -------------------------------------------------------------------------
    # Blob Storage
    # -------------------------------------------------------------------------

    STORAGE_BUCKET: str = Field(
        default="product-images",
        description="Supabase Storage bucket for uploaded and generated images"
    )

    SIGNED_URL_EXPIRES_IN: int = Field(
        default=60 * 60 * 24 * 365,
        ge=60,
        description="Lifetime of signed image URLs, in seconds"
    )

    # -------------------------------------------------------------------------
    # OpenAI / Image Generation
    # -------------------------------------------------------------------------

    OPENAI_API_KEY: str = Field(
        ...,
        description="OpenAI API key for advertisement image generation"
    )

    OPENAI_ORG_ID: str | None = Field(
        default=None,
        description="OpenAI organization (required for verified-org image models)"
    )

    IMAGE_MODEL: str = Field(
        default="gpt-image-1",
        description="Image model used for the edit call"
    )

    IMAGE_SIZE: str = Field(
        default="1024x1024",
        description="Size of generated advertisement images"
    )

    IMAGE_GENERATION_TIMEOUT_SECONDS: float = Field(
        default=120.0,
        gt=0,
        le=900,
        description="Hard limit for one generation call; exceeding it marks the product failed"
    )

    IMAGE_DOWNLOAD_TIMEOUT_SECONDS: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for fetching the product's source image"
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
        default=3000,
        ge=1,
        le=65535,
        description="Port for the API server"
    )

    # CORS origins (comma-separated string that gets parsed)
    CORS_ORIGINS: str = Field(
        default="http://localhost:8081",
        description="Allowed CORS origins (comma-separated)"
    )

    # -------------------------------------------------------------------------
    # Image Upload Settings
    # -------------------------------------------------------------------------

    MAX_UPLOAD_SIZE_MB: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum image upload size in MB"
    )

    ALLOWED_IMAGE_TYPES: str = Field(
        default="image/png,image/jpeg,image/webp",
        description="Allowed image content types (comma-separated)"
    )

    # -------------------------------------------------------------------------
    # Pydantic Settings Configuration
    # -------------------------------------------------------------------------

    model_config = SettingsConfigDict(
        # Load from .env file in project root
        env_file=".env",
        env_file_encoding="utf-8",
        # Don't fail if .env doesn't exist (useful for production where
        # env vars are set directly)
        env_ignore_empty=True,
        # Case-sensitive environment variable names
        case_sensitive=True,
    )

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def cors_origins_list(self) -> list[str]:
        """
        Parse CORS_ORIGINS string into a list.

        Example: "http://localhost:8081, https://myapp.com" -> ["http://localhost:8081", "https://myapp.com"]
        """
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def allowed_image_types_list(self) -> list[str]:
        """Parse ALLOWED_IMAGE_TYPES string into a list."""
        return [kind.strip().lower() for kind in self.ALLOWED_IMAGE_TYPES.split(",") if kind.strip()]

    @property
    def max_upload_size_bytes(self) -> int:
        """Convert MB to bytes for file size validation."""
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024

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
