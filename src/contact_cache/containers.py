"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from contact_cache.adapters.contacts_client import HttpxContactsClient
from contact_cache.config import Settings
from contact_cache.services.admin import CacheAdminService
from contact_cache.services.cache import TTLCache
from contact_cache.services.contacts import ContactsService
from contact_cache.services.loader import CachedLoader
from contact_cache.services.maintenance import CacheMaintenance


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    cache: TTLCache
    contacts_service: ContactsService
    admin_service: CacheAdminService
    maintenance: CacheMaintenance
    close_resources: Callable[[], Awaitable[None]]


def build_cache(settings: Settings) -> TTLCache:
    """Create a cache configured from settings."""
    return TTLCache(
        max_entries=settings.cache_max_entries,
        default_ttl_seconds=settings.cache_default_ttl_seconds,
        ttl_rules=settings.ttl_rules(),
        warming_guard_seconds=settings.cache_warming_guard_seconds,
        memory_threshold_mb=settings.cache_memory_threshold_mb,
    )


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    cache = build_cache(resolved_settings)
    contacts_client = HttpxContactsClient.create(
        base_url=resolved_settings.contacts_api_base_url,
        api_token=resolved_settings.contacts_api_token,
        timeout_seconds=resolved_settings.contacts_api_timeout_seconds,
    )
    loader = CachedLoader(
        cache=cache,
        poll_interval_seconds=resolved_settings.cache_wait_poll_interval_seconds,
        max_wait_attempts=resolved_settings.cache_wait_max_attempts,
    )
    contacts_service = ContactsService(
        client=contacts_client, cache=cache, loader=loader
    )
    maintenance = CacheMaintenance(
        cache=cache,
        cleanup_interval_seconds=resolved_settings.cache_cleanup_interval_seconds,
        memory_check_interval_seconds=(
            resolved_settings.cache_memory_check_interval_seconds
        ),
    )

    async def close_resources() -> None:
        await contacts_client.close()

    return AppContainer(
        settings=resolved_settings,
        cache=cache,
        contacts_service=contacts_service,
        admin_service=CacheAdminService(cache),
        maintenance=maintenance,
        close_resources=close_resources,
    )
