"""Centralized application configuration using Pydantic settings."""
from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven configuration shared across services."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    database_url: str = Field(
        default="sqlite:///./hallbooking.db",
        description="SQLAlchemy database URL. Defaults to local SQLite for development.",
    )
    run_db_migrations: bool = Field(
        default=False,
        description="Whether this service should create/update database tables on startup.",
    )
    jwt_secret: str = Field(default="super-secret", description="JWT signing secret")
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    access_token_expire_minutes: int = Field(default=60, description="Token lifetime in minutes")
    cors_origins: List[str] = Field(default_factory=lambda: ["*"], description="Allowed CORS origins")
    default_rate_limit: str = Field(default="30/minute", description="Global rate limiting rule")
    rate_limiting_enabled: bool = Field(default=True, description="Toggle to disable SlowAPI limits (useful in tests)")

    max_booking_days: int = Field(default=7, ge=1, description="Longest day-wise booking allowed, in days (inclusive)")
    allow_past_bookings: bool = Field(
        default=False,
        description="Accept bookings whose first date lies before today (imports, back-office corrections).",
    )
    allowed_email_domain: Optional[str] = Field(
        default=None,
        description="When set, booking contact e-mails must belong to this domain (e.g. 'example.edu').",
    )
    phone_pattern: Optional[str] = Field(
        default=r"^[6-9]\d{9}$",
        description="Regex a booking contact phone must match when one is given; None disables the check.",
    )
    calendar_cache_ttl: int = Field(default=60, description="TTL (s) for cached month calendar summaries")
    hall_cache_ttl: int = Field(default=60, description="TTL (s) for the cached hall listing")

    notifications_enabled: bool = Field(default=False, description="Publish booking events to RabbitMQ")
    rabbitmq_host: str = Field(default="rabbitmq", description="RabbitMQ broker host")
    bookings_queue: str = Field(default="bookings", description="Durable queue receiving booking events")

    users_service_port: int = 8001
    halls_service_port: int = 8002
    bookings_service_port: int = 8003


@lru_cache
def get_settings() -> Settings:
    """Return a cached instance of the Settings object."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the cached Settings instance (useful for tests)."""

    get_settings.cache_clear()
