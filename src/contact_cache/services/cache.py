"""In-process TTL cache with warming flags and bounded size."""

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from typing import Protocol

from contact_cache.domain.cache import (
    AccessedEntry,
    CacheAnalytics,
    CacheEntry,
    CacheStats,
    TtlDistribution,
    TtlRule,
    WarmingFlag,
)
from contact_cache.services.memory import MemoryProbe, PsutilMemoryProbe

_logger = logging.getLogger(__name__)

_EXPIRING_SOON = timedelta(minutes=5)
_EXPIRING_WITHIN_HOUR = timedelta(hours=1)
_EVICTION_FRACTION = 0.1
_MEMORY_EVICTION_FRACTION = 0.5
_MOST_ACCESSED_LIMIT = 5

DEFAULT_TTL_RULES = (
    TtlRule("department", "department:", 30 * 60),
    TtlRule("enterprise", "enterprise:", 60 * 60),
)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class Cache(Protocol):
    """Cache interface used by request handlers."""

    def get(self, key: str) -> object | None:
        """Return a cached value if present and not expired."""

    def set(self, key: str, value: object, ttl_seconds: float | None = None) -> None:
        """Store a value, resolving its TTL from the rule table."""

    def invalidate(self, key: str) -> None:
        """Remove a single key."""

    def invalidate_by_pattern(self, pattern: str) -> int:
        """Remove every key containing the pattern."""

    def set_warming_flag(self, key: str) -> None:
        """Mark a key as being computed."""

    def is_warming(self, key: str) -> bool:
        """Return True if a fresh warming flag exists for the key."""

    def clear_warming_flag(self, key: str) -> None:
        """Drop the warming flag for a key."""


@dataclass
class TTLCache(Cache):
    """Bounded in-memory cache with per-key-type expiry.

    All operations are synchronous and never suspend, so flows interleaving on
    one event loop never observe a partially applied update. Sharing an
    instance across threads requires external locking.
    """

    max_entries: int = 1000
    default_ttl_seconds: float = 3600
    ttl_rules: tuple[TtlRule, ...] = DEFAULT_TTL_RULES
    warming_guard_seconds: float = 30
    memory_threshold_mb: float = 500
    memory_probe: MemoryProbe = field(default_factory=PsutilMemoryProbe)
    clock: Callable[[], datetime] = _utcnow
    hit_count: int = field(default=0, init=False)
    miss_count: int = field(default=0, init=False)
    last_cleanup: datetime | None = field(default=None, init=False)
    _entries: dict[str, CacheEntry] = field(default_factory=dict, init=False)
    _warming: dict[str, WarmingFlag] = field(default_factory=dict, init=False)
    _started_at: datetime = field(init=False)

    def __post_init__(self) -> None:
        self._started_at = self.clock()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def get(self, key: str) -> object | None:
        """Return a cached value if it hasn't expired."""
        entry = self._entries.get(key)
        if entry is None:
            self.miss_count += 1
            return None
        now = self.clock()
        if entry.is_expired(now):
            self._entries.pop(key, None)
            self.miss_count += 1
            return None
        self.hit_count += 1
        entry.access_count += 1
        entry.last_accessed = now
        return entry.value

    def peek(self, key: str) -> CacheEntry | None:
        """Return the raw entry, expired or not, without bookkeeping."""
        return self._entries.get(key)

    def set(self, key: str, value: object, ttl_seconds: float | None = None) -> None:
        """Store a value, evicting the oldest entries when full."""
        if key not in self._entries and len(self._entries) >= self.max_entries:
            self.evict_oldest_entries(
                max(1, int(self.max_entries * _EVICTION_FRACTION))
            )
        ttl = self.resolve_ttl(key, ttl_seconds)
        now = self.clock()
        self._entries[key] = CacheEntry(
            key=key,
            value=value,
            created_at=now,
            expires_at=now + timedelta(seconds=ttl),
            access_count=0,
            last_accessed=now,
        )

    def resolve_ttl(self, key: str, ttl_seconds: float | None = None) -> float:
        """Pick the TTL for a key: first matching rule, else override or default."""
        for rule in self.ttl_rules:
            if rule.matches(key):
                return rule.ttl_seconds
        if ttl_seconds is not None:
            return ttl_seconds
        return self.default_ttl_seconds

    def update_ttl_rules(self, overrides: dict[str, float]) -> None:
        """Replace TTLs by rule name; the name "default" sets the fallback."""
        if "default" in overrides:
            self.default_ttl_seconds = overrides["default"]
        self.ttl_rules = tuple(
            replace(rule, ttl_seconds=overrides[rule.name])
            if rule.name in overrides
            else rule
            for rule in self.ttl_rules
        )
        _logger.info("Cache TTL settings updated: %s", self.ttl_settings())

    def ttl_settings(self) -> dict[str, float]:
        """Return TTLs keyed by rule name."""
        return {rule.name: rule.ttl_seconds for rule in self.ttl_rules}

    def invalidate(self, key: str) -> None:
        """Remove a key if present."""
        self._entries.pop(key, None)
        _logger.info("Cache invalidated: %s", key)

    def invalidate_by_pattern(self, pattern: str) -> int:
        """Remove every key containing the pattern and return the count."""
        matching = [key for key in self._entries if pattern in key]
        for key in matching:
            del self._entries[key]
        _logger.info(
            'Cache invalidated by pattern "%s": %s entries', pattern, len(matching)
        )
        return len(matching)

    def clear(self) -> int:
        """Drop all entries, warming flags and counters."""
        removed = len(self._entries)
        self._entries.clear()
        self._warming.clear()
        self.hit_count = 0
        self.miss_count = 0
        _logger.info("Cleared %s cache entries", removed)
        return removed

    def set_warming_flag(self, key: str) -> None:
        """Mark a key as being computed."""
        self._warming[key] = WarmingFlag(key=key, started_at=self.clock())

    def is_warming(self, key: str) -> bool:
        """Return True if a warming flag newer than the guard window exists."""
        flag = self._warming.get(key)
        if flag is None:
            return False
        if self._is_flag_stale(flag, self.clock()):
            self._warming.pop(key, None)
            return False
        return True

    def clear_warming_flag(self, key: str) -> None:
        """Drop the warming flag for a key."""
        self._warming.pop(key, None)

    @contextmanager
    def warming(self, key: str) -> Iterator[None]:
        """Hold the warming flag for the duration of a computation."""
        self.set_warming_flag(key)
        try:
            yield
        finally:
            self.clear_warming_flag(key)

    def cleanup(self) -> int:
        """Remove expired entries and stale warming flags."""
        now = self.clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        stale_flags = [
            key for key, flag in self._warming.items() if self._is_flag_stale(flag, now)
        ]
        for key in stale_flags:
            del self._warming[key]
        self.last_cleanup = now
        if expired:
            _logger.info(
                "Cache cleanup: removed %s expired entries at %s",
                len(expired),
                now.isoformat(),
            )
        return len(expired)

    def evict_oldest_entries(self, count: int) -> int:
        """Remove up to count entries, oldest insertion first."""
        if count <= 0:
            return 0
        oldest = sorted(self._entries.values(), key=lambda entry: entry.created_at)
        victims = [entry.key for entry in oldest[:count]]
        for key in victims:
            del self._entries[key]
        _logger.info("Evicted %s oldest cache entries to manage memory", len(victims))
        return len(victims)

    def check_memory_usage(self) -> int:
        """Evict half of the cache when process memory exceeds the threshold."""
        usage = self.memory_probe.snapshot()
        if usage.rss_mb <= self.memory_threshold_mb:
            return 0
        _logger.warning(
            "High memory usage detected (%.2fMB), cleaning cache", usage.rss_mb
        )
        return self.evict_oldest_entries(
            int(len(self._entries) * _MEMORY_EVICTION_FRACTION)
        )

    def get_stats(self) -> CacheStats:
        """Return a snapshot of counts, hit rate and memory figures."""
        now = self.clock()
        entries = list(self._entries.values())
        avg_age = (
            sum((now - entry.created_at).total_seconds() for entry in entries)
            / len(entries)
            if entries
            else 0.0
        )
        expiring_soon = sum(
            1 for entry in entries if entry.expires_at - now < _EXPIRING_SOON
        )
        efficiency = (
            self.hit_count / (self.hit_count + self.miss_count) * 100
            if self.hit_count
            else 0.0
        )
        return CacheStats(
            total_entries=len(entries),
            warming_flags=len(self._warming),
            max_entries=self.max_entries,
            hit_count=self.hit_count,
            miss_count=self.miss_count,
            hit_rate=self._hit_rate(),
            cache_efficiency=round(efficiency, 1),
            avg_entry_age_seconds=avg_age,
            entries_expiring_soon=expiring_soon,
            memory=self.memory_probe.snapshot(),
            last_cleanup=self.last_cleanup,
            uptime_seconds=(now - self._started_at).total_seconds(),
            timestamp=now,
        )

    def get_analytics(self) -> CacheAnalytics:
        """Return access patterns and the TTL distribution."""
        now = self.clock()
        entries = list(self._entries.values())
        most_accessed = sorted(entries, key=lambda entry: -entry.access_count)
        remaining = [entry.expires_at - now for entry in entries]
        return CacheAnalytics(
            total_entries=len(entries),
            hit_rate=self._hit_rate(),
            most_accessed=[
                AccessedEntry(
                    key=entry.key,
                    access_count=entry.access_count,
                    age_minutes=(now - entry.created_at).total_seconds() / 60,
                )
                for entry in most_accessed[:_MOST_ACCESSED_LIMIT]
            ],
            ttl_distribution=TtlDistribution(
                expiring_soon=sum(1 for left in remaining if left < _EXPIRING_SOON),
                expiring_within_hour=sum(
                    1
                    for left in remaining
                    if _EXPIRING_SOON <= left < _EXPIRING_WITHIN_HOUR
                ),
                expiring_later=sum(
                    1 for left in remaining if left >= _EXPIRING_WITHIN_HOUR
                ),
            ),
            avg_access_count=(
                sum(entry.access_count for entry in entries) / len(entries)
                if entries
                else 0.0
            ),
            timestamp=now,
            lookups=self.hit_count + self.miss_count,
        )

    def _hit_rate(self) -> float:
        lookups = self.hit_count + self.miss_count
        if not lookups:
            return 0.0
        return round(self.hit_count / lookups * 100, 2)

    def _is_flag_stale(self, flag: WarmingFlag, now: datetime) -> bool:
        return now - flag.started_at > timedelta(seconds=self.warming_guard_seconds)
