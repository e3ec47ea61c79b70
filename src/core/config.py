"""Application configuration management using Pydantic Settings."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CATALOG_DIR = Path(__file__).resolve().parent.parent / "data"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Shop policy values such as shipping and points accrual live here too.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="storefront-backend", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/staging/production)")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, description="Server port")
    max_request_body_size: int = Field(default=1_048_576, description="Maximum request body size in bytes")

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed CORS origins",
    )

    # Session
    session_cookie_name: str = Field(default="storefront_session", description="Session cookie name")
    session_cookie_max_age: int = Field(default=2592000, description="Session cookie max age in seconds (30 days)")
    session_cookie_secure: bool = Field(default=True, description="Use secure cookies (HTTPS only)")
    session_expiry_days: int = Field(default=30, description="Days until session expires")

    # Key-value store
    store_backend: Literal["memory", "supabase"] = Field(
        default="memory",
        description="Backing store for carts, orders, users and the stock ledger",
    )
    supabase_url: str = Field(default="", description="Supabase project URL")
    supabase_secret_key: str = Field(default="", description="Supabase secret key for backend operations")
    supabase_kv_table: str = Field(default="kv_store", description="Table holding key/value/version rows")

    # Catalog
    catalog_data_dir: Path = Field(default=DEFAULT_CATALOG_DIR, description="Directory with catalog JSON files")

    # Shop policy
    free_shipping_threshold: int = Field(default=5000, ge=0, description="Subtotal at which shipping becomes free")
    shipping_fee: int = Field(default=500, ge=0, description="Flat shipping fee below the threshold")
    points_accrual_percent: int = Field(default=1, ge=0, le=100, description="Points earned per 100 currency units")
    signup_bonus_points: int = Field(default=500, ge=0, description="Points granted on registration")
    activity_log_limit: int = Field(default=1000, ge=1, description="Activity log entries kept")
    stock_cas_attempts: int = Field(default=5, ge=1, description="Attempts for a contended stock ledger write")

    # Admin
    admin_token: str = Field(default="", description="Token required in X-Admin-Token for admin endpoints")

    @model_validator(mode="after")
    def check_store_backend(self) -> "Settings":
        """Require Supabase credentials when the Supabase store is selected."""
        if self.store_backend == "supabase" and not (self.supabase_url and self.supabase_secret_key):
            raise ValueError("SUPABASE_URL and SUPABASE_SECRET_KEY are required when STORE_BACKEND=supabase")
        return self

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins string into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton.

    Returns:
        Settings: Application settings instance.

    Note:
        Settings are cached using lru_cache for performance.
        Call get_settings.cache_clear() to reload settings.
    """
    return Settings()
