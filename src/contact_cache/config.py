"""Application configuration."""

import os

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from contact_cache.domain.cache import TtlRule

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class InvalidTtlError(ValueError):
    """Raised when a TTL setting is missing, unknown or not positive."""


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    admin_token: str
    contacts_api_base_url: str
    contacts_api_token: str | None = None
    contacts_api_timeout_seconds: float = Field(default=15, gt=0)
    cache_default_ttl_seconds: float = Field(default=3600, gt=0)
    cache_max_entries: int = Field(default=1000, gt=0)
    cache_enterprise_ttl_seconds: float = Field(default=3600, gt=0)
    cache_department_ttl_seconds: float = Field(default=1800, gt=0)
    cache_cleanup_interval_seconds: float = Field(default=600, gt=0)
    cache_memory_check_interval_seconds: float = Field(default=300, gt=0)
    cache_memory_threshold_mb: float = Field(default=500, gt=0)
    cache_warming_guard_seconds: float = Field(default=30, gt=0)
    cache_wait_poll_interval_seconds: float = Field(default=0.1, gt=0)
    cache_wait_max_attempts: int = Field(default=30, gt=0)
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    def ttl_rules(self) -> tuple[TtlRule, ...]:
        """Build the TTL rule table, most specific pattern first."""
        return (
            TtlRule("department", "department:", self.cache_department_ttl_seconds),
            TtlRule("enterprise", "enterprise:", self.cache_enterprise_ttl_seconds),
        )


def validate_ttl_settings(
    raw: dict[str, object], known_names: set[str]
) -> dict[str, float]:
    """Validate TTL overrides keyed by rule name."""
    validated: dict[str, float] = {}
    for name, value in raw.items():
        if name not in known_names:
            raise InvalidTtlError(f"Unknown TTL setting: {name}")
        if isinstance(value, bool) or not isinstance(value, int | float):
            raise InvalidTtlError(
                f"Invalid TTL value for {name}: must be a positive number"
            )
        if value <= 0:
            raise InvalidTtlError(
                f"Invalid TTL value for {name}: must be a positive number"
            )
        validated[name] = float(value)
    return validated
