"""Admin operations for cache monitoring and tuning."""

from dataclasses import dataclass

from contact_cache.config import validate_ttl_settings
from contact_cache.services.cache import TTLCache


@dataclass
class CacheAdminService:
    """Service for cache dashboards and configuration."""

    cache: TTLCache

    def stats(self) -> dict[str, object]:
        """Return a formatted stats snapshot."""
        return self.cache.get_stats().to_dict()

    def analytics(self) -> dict[str, object]:
        """Return formatted access analytics."""
        return self.cache.get_analytics().to_dict()

    def clear(self) -> int:
        """Clear the cache and return the number of removed entries."""
        return self.cache.clear()

    def get_config(self) -> dict[str, object]:
        """Return the current TTL table and size limits."""
        return {
            "ttlSettings": self.cache.ttl_settings(),
            "maxCacheSize": self.cache.max_entries,
            "defaultTTL": self.cache.default_ttl_seconds,
        }

    def update_config(self, ttl_settings: dict[str, object]) -> dict[str, float]:
        """Validate and apply TTL overrides, returning the merged table."""
        known = {*self.cache.ttl_settings(), "default"}
        overrides = validate_ttl_settings(ttl_settings, known)
        self.cache.update_ttl_rules(overrides)
        return self.cache.ttl_settings()
