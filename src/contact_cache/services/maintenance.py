"""Background sweeps for the cache."""

import asyncio
import contextlib
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from contact_cache.services.cache import TTLCache

_logger = logging.getLogger(__name__)


@dataclass
class CacheMaintenance:
    """Owns the periodic cleanup and memory-check tasks of a cache."""

    cache: TTLCache
    cleanup_interval_seconds: float = 600
    memory_check_interval_seconds: float = 300
    _tasks: list[asyncio.Task[None]] = field(default_factory=list, init=False)

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def start(self) -> None:
        """Start the interval tasks on the running event loop."""
        if self.running:
            return
        self._tasks = [
            asyncio.create_task(
                self._every(self.cleanup_interval_seconds, self.cache.cleanup),
                name="cache-cleanup",
            ),
            asyncio.create_task(
                self._every(
                    self.memory_check_interval_seconds, self.cache.check_memory_usage
                ),
                name="cache-memory-check",
            ),
        ]

    async def stop(self) -> None:
        """Cancel the interval tasks and wait for them to finish."""
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _every(self, interval: float, action: Callable[[], int]) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                action()
            except Exception:
                _logger.exception("Cache maintenance task failed")
