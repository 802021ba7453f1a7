"""Cached enterprise and department contact aggregates."""

import logging
import time
from dataclasses import dataclass

from contact_cache.adapters.contacts_client import ContactsClient
from contact_cache.domain.contacts import CachedResult, WarmingOutcome
from contact_cache.services.cache import TTLCache
from contact_cache.services.loader import CachedLoader

_logger = logging.getLogger(__name__)


def contacts_key(enterprise_id: str, department_id: str | None = None) -> str:
    """Build the cache key for an enterprise or one of its departments."""
    if department_id:
        return f"enterprise:{enterprise_id}:department:{department_id}:contacts"
    return f"enterprise:{enterprise_id}:contacts"


def details_key(  # noqa: PLR0913
    enterprise_id: str,
    department_id: str | None,
    sort_by: str,
    sort_order: str,
    limit: int | None,
    offset: int,
) -> str:
    """Build the cache key for a sorted, paginated details query."""
    base = contacts_key(enterprise_id, department_id)
    page_size = "all" if limit is None else limit
    return f"{base}:details:{sort_by}:{sort_order}:{page_size}:{offset}"


@dataclass
class ContactsService:
    """Serve contact aggregates through the cache and keep it consistent."""

    client: ContactsClient
    cache: TTLCache
    loader: CachedLoader

    async def enterprise_summary(self, enterprise_id: str) -> CachedResult:
        """Return the enterprise contacts summary."""
        return await self.loader.get_or_compute(
            contacts_key(enterprise_id),
            lambda: self.client.enterprise_summary(enterprise_id),
        )

    async def department_summary(
        self, enterprise_id: str, department_id: str
    ) -> CachedResult:
        """Return the department contacts summary."""
        return await self.loader.get_or_compute(
            contacts_key(enterprise_id, department_id),
            lambda: self.client.department_summary(enterprise_id, department_id),
        )

    async def contact_details(  # noqa: PLR0913
        self,
        enterprise_id: str,
        department_id: str | None = None,
        sort_by: str = "name",
        sort_order: str = "asc",
        limit: int | None = None,
        offset: int = 0,
    ) -> CachedResult:
        """Return detailed contacts for one sort and page."""
        key = details_key(
            enterprise_id, department_id, sort_by, sort_order, limit, offset
        )
        params: dict[str, object] = {
            "sortBy": sort_by,
            "sortOrder": sort_order,
            "limit": limit,
            "offset": offset,
        }
        return await self.loader.get_or_compute(
            key,
            lambda: self.client.contact_details(enterprise_id, department_id, params),
        )

    def invalidate_enterprise(self, enterprise_id: str) -> None:
        """Drop every cached aggregate of an enterprise."""
        if not enterprise_id:
            return
        self.cache.invalidate(contacts_key(enterprise_id))
        self.cache.invalidate_by_pattern(f"{contacts_key(enterprise_id)}:details:")
        self.cache.invalidate_by_pattern(f"enterprise:{enterprise_id}:department:")

    def invalidate_department(self, enterprise_id: str, department_id: str) -> None:
        """Drop a department's aggregates and the enterprise-wide ones."""
        if not enterprise_id or not department_id:
            return
        department = contacts_key(enterprise_id, department_id)
        enterprise = contacts_key(enterprise_id)
        self.cache.invalidate(department)
        self.cache.invalidate_by_pattern(f"{department}:details:")
        self.cache.invalidate(enterprise)
        self.cache.invalidate_by_pattern(f"{enterprise}:details:")

    def invalidate_enterprises(self, enterprise_ids: list[str]) -> int:
        """Invalidate several enterprises and return how many were processed."""
        count = 0
        for enterprise_id in enterprise_ids:
            if enterprise_id:
                self.invalidate_enterprise(enterprise_id)
                count += 1
        _logger.info("Batch invalidated caches for %s enterprises", count)
        return count

    def invalidate_all_departments(self) -> int:
        """Drop department aggregates across all enterprises."""
        return self.cache.invalidate_by_pattern("department:")

    async def warm_enterprises(self, enterprise_ids: list[str]) -> list[WarmingOutcome]:
        """Precompute summaries for enterprises that are not cached yet."""
        outcomes = []
        for enterprise_id in enterprise_ids:
            _logger.info("Warming cache for enterprise %s...", enterprise_id)
            started = time.perf_counter()
            try:
                result = await self.enterprise_summary(enterprise_id)
            except Exception as exc:
                _logger.warning(
                    "Cache warming failed for enterprise %s: %s", enterprise_id, exc
                )
                outcomes.append(WarmingOutcome(enterprise_id, "error", error=str(exc)))
                continue
            if result.stale:
                outcomes.append(
                    WarmingOutcome(enterprise_id, "error", error=result.error)
                )
            elif result.cached:
                outcomes.append(WarmingOutcome(enterprise_id, "already_cached"))
            else:
                duration_ms = int((time.perf_counter() - started) * 1000)
                outcomes.append(WarmingOutcome(enterprise_id, "warmed", duration_ms))
        return outcomes
