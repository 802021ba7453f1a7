"""Stampede-protected loading of expensive aggregates through the cache."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from contact_cache.domain.contacts import CachedResult
from contact_cache.services.cache import TTLCache

_logger = logging.getLogger(__name__)


@dataclass
class CachedLoader:
    """Serve cached values and coordinate a single computation per key.

    A miss on a key that another flow is already computing polls the cache
    for a bounded number of attempts before computing independently. A failed
    computation falls back to a previously stored value, when one exists.
    """

    cache: TTLCache
    poll_interval_seconds: float = 0.1
    max_wait_attempts: int = 30
    serve_stale: bool = True

    async def get_or_compute(
        self,
        key: str,
        compute: Callable[[], Awaitable[object]],
        ttl_seconds: float | None = None,
    ) -> CachedResult:
        """Return the cached value for key or compute and store it."""
        previous = self.cache.peek(key)
        cached = self.cache.get(key)
        # Presence, not the value, decides a hit so None results stay cached.
        if key in self.cache:
            _logger.info("Cache HIT for %s", key)
            return CachedResult(data=cached, cached=True)

        if self.cache.is_warming(key):
            warmed = await self._wait_for_warming(key)
            if warmed is not None:
                return warmed

        _logger.info("Cache MISS for %s, calculating...", key)
        try:
            with self.cache.warming(key):
                value = await compute()
                self.cache.set(key, value, ttl_seconds)
        except Exception as exc:
            _logger.exception("Calculation error for %s", key)
            current = self.cache.peek(key)
            if current is not None and not current.is_expired(self.cache.clock()):
                _logger.info("Serving value stored concurrently for %s", key)
                return CachedResult(data=current.value, cached=True)
            if not self.serve_stale or previous is None:
                raise
            _logger.warning(
                "Returning stale cached data for %s due to calculation error", key
            )
            age = self.cache.clock() - previous.created_at
            return CachedResult(
                data=previous.value,
                cached=True,
                stale=True,
                cache_age_ms=int(age.total_seconds() * 1000),
                error=f"Calculation failed, returned cached data: {exc}",
            )
        return CachedResult(data=value, cached=False)

    async def _wait_for_warming(self, key: str) -> CachedResult | None:
        """Poll while another flow computes the key."""
        _logger.info("Cache WARMING for %s, waiting...", key)
        attempts = 0
        while attempts < self.max_wait_attempts and self.cache.is_warming(key):
            await asyncio.sleep(self.poll_interval_seconds)
            attempts += 1
            warmed = self.cache.get(key)
            if key in self.cache:
                wait_ms = round(attempts * self.poll_interval_seconds * 1000)
                _logger.info("Cache warmed after %sms wait for %s", wait_ms, key)
                return CachedResult(
                    data=warmed, cached=True, warmed=True, wait_ms=wait_ms
                )

        if self.cache.is_warming(key):
            _logger.info(
                "Cache warming timeout for %s, proceeding with own calculation", key
            )
        return None
