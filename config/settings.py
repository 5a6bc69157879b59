"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings.

    All values loaded from .env file or environment variables.
    Validation happens automatically on startup.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # SUPABASE
    # ===================
    supabase_url: str = Field(
        default="",
        description="Supabase project URL"
    )
    supabase_key: str = Field(
        default="",
        description="Supabase anon/public key"
    )
    supabase_service_key: Optional[str] = Field(
        None,
        description="Supabase service role key (for admin operations)"
    )

    # ===================
    # IMPORT DEFAULTS
    # ===================
    import_credentials_id: Optional[str] = Field(
        None,
        description="Shopify credential row used when a job does not name one"
    )
    import_locale: str = Field(
        default="en_US",
        description="Locale the imported locale-specific values are written under"
    )
    import_channel: str = Field(
        default="default",
        description="Channel the imported channel-specific values are written under"
    )
    import_currency: str = Field(
        default="USD",
        description="Currency code price attributes are keyed by"
    )
    connector_mapping_id: int = Field(
        default=3,
        ge=1,
        description="Connector settings row holding the Shopify attribute mapping"
    )
    batch_size: int = Field(
        default=10,
        ge=1,
        le=250,
        description="Source rows per import batch (also the GraphQL page size)"
    )

    # ===================
    # MEDIA
    # ===================
    image_tmp_dir: str = Field(
        default="/tmp/tmpstorage",
        description="Scratch directory for downloaded Shopify images"
    )
    media_bucket: str = Field(
        default="product-media",
        description="Supabase Storage bucket receiving product images"
    )

    # ===================
    # SHOPIFY HTTP
    # ===================
    shopify_api_version: str = Field(
        default="2024-01",
        description="Admin API version used when the credential has none"
    )
    http_timeout_seconds: float = Field(
        default=30.0,
        ge=1,
        le=300,
        description="Per-request timeout for Shopify and image requests"
    )
    http_max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per request before giving up"
    )
    http_backoff_seconds: float = Field(
        default=1.0,
        ge=0,
        le=30,
        description="Fixed wait between attempts"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API host"
    )
    api_port: int = Field(
        default=8000,
        ge=1000,
        le=65535,
        description="API port"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def supabase_configured(self) -> bool:
        """Check if Supabase credentials are present."""
        return bool(self.supabase_url and self.supabase_key)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If env vars are invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
