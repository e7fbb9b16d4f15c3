# ==============================================================================
# Application Configuration
# ==============================================================================
"""
Configuration management using pydantic-settings.

All configuration is loaded from environment variables, with support for
.env files via python-dotenv.
"""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file before any settings are instantiated
load_dotenv()


class PostgresSettings(BaseSettings):
    """PostgreSQL connection settings for the hosted blog backend."""

    model_config = SettingsConfigDict(env_prefix="PG_")

    host: str = Field(default="localhost", description="PostgreSQL host")
    port: int = Field(default=5432, description="PostgreSQL port")
    user: str = Field(default="postgres", description="PostgreSQL username")
    password: str = Field(default="postgres", description="PostgreSQL password")
    database: str = Field(default="blog", description="Database name")
    schema_name: str = Field(default="blogengage", description="Schema name")
    sslmode: str = Field(default="prefer", description="SSL mode")

    @property
    def connection_string(self) -> str:
        """Build PostgreSQL connection string."""
        return (
            f"postgresql://{self.user}:{self.password}@"
            f"{self.host}:{self.port}/{self.database}?sslmode={self.sslmode}"
        )


class ValkeySettings(BaseSettings):
    """Valkey (Redis-compatible) connection settings for visitor storage."""

    model_config = SettingsConfigDict(env_prefix="VALKEY_")

    host: str = Field(default="localhost", description="Valkey host")
    port: int = Field(default=6379, description="Valkey port")
    password: str | None = Field(default=None, description="Valkey password")
    db: int = Field(default=0, description="Valkey database number")
    ssl: bool = Field(default=False, description="Use SSL/TLS connection")

    @property
    def url(self) -> str:
        """Build Valkey connection URL."""
        scheme = "rediss" if self.ssl else "redis"
        if self.password:
            return f"{scheme}://:{self.password}@{self.host}:{self.port}/{self.db}"
        return f"{scheme}://{self.host}:{self.port}/{self.db}"


class TrackingSettings(BaseSettings):
    """Visitor session tracking settings."""

    model_config = SettingsConfigDict(env_prefix="TRACKING_")

    session_timeout_minutes: int = Field(
        default=30,
        description="Visitor session inactivity timeout in minutes",
    )
    session_key: str = Field(
        default="nf_visitor_session",
        description="Durable storage key holding the visitor session blob",
    )
    visitor_cookie_key: str = Field(
        default="nf_visitor_id",
        description="Durable storage key holding the long-lived visitor id",
    )
    visitor_cookie_days: int = Field(
        default=365,
        description="Lifetime of the long-lived visitor id in days",
    )
    session_store_ttl_hours: int = Field(
        default=24,
        description="TTL for session-scoped storage namespaces in hours",
    )


class PromotionSettings(BaseSettings):
    """Promotion popup targeting and timing settings."""

    model_config = SettingsConfigDict(env_prefix="PROMOTION_")

    default_delay_seconds: int = Field(
        default=10, description="Reveal delay when a promotion does not set one"
    )
    min_delay_seconds: int = Field(default=1, description="Lower bound for reveal delay")
    max_delay_seconds: int = Field(default=30, description="Upper bound for reveal delay")
    scroll_threshold_px: int = Field(
        default=200, description="Scroll offset that reveals the popup immediately"
    )
    fetch_timeout_seconds: float = Field(
        default=5.0, description="Timeout for loading promotions from the remote store"
    )
    tracking_timeout_seconds: float = Field(
        default=2.0, description="Timeout for analytics tracking calls"
    )


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        extra="ignore",
    )

    # Nested settings
    postgres: PostgresSettings = Field(default_factory=PostgresSettings)
    valkey: ValkeySettings = Field(default_factory=ValkeySettings)
    tracking: TrackingSettings = Field(default_factory=TrackingSettings)
    promotion: PromotionSettings = Field(default_factory=PromotionSettings)

    # General settings
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once and cached for subsequent calls.
    """
    return Settings()
