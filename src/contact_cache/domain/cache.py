"""Domain models for the in-process cache."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class CacheEntry:
    """A cached value with expiry and access bookkeeping."""

    key: str
    value: object
    created_at: datetime
    expires_at: datetime
    access_count: int = 0
    last_accessed: datetime | None = None

    def is_expired(self, now: datetime) -> bool:
        """Return True once the entry is logically absent."""
        return now >= self.expires_at


@dataclass(frozen=True)
class WarmingFlag:
    """Marker for a key whose value is being computed."""

    key: str
    started_at: datetime


@dataclass(frozen=True)
class TtlRule:
    """Key-substring rule selecting a TTL."""

    name: str
    pattern: str
    ttl_seconds: float

    def matches(self, key: str) -> bool:
        """Return True if the rule applies to the key."""
        return self.pattern in key


@dataclass(frozen=True)
class MemoryUsage:
    """Process memory figures in megabytes."""

    rss_mb: float
    vms_mb: float
    percent: float = 0.0

    def to_dict(self) -> dict[str, str]:
        return {
            "rss": f"{self.rss_mb:.2f}MB",
            "vms": f"{self.vms_mb:.2f}MB",
            "percent": f"{self.percent:.2f}%",
        }


@dataclass(frozen=True)
class CacheStats:
    """Read-only snapshot of cache health."""

    total_entries: int
    warming_flags: int
    max_entries: int
    hit_count: int
    miss_count: int
    hit_rate: float
    cache_efficiency: float
    avg_entry_age_seconds: float
    entries_expiring_soon: int
    memory: MemoryUsage
    last_cleanup: datetime | None
    uptime_seconds: float
    timestamp: datetime

    def to_dict(self) -> dict[str, object]:
        """Serialize with the human-readable formatting used by monitoring."""
        lookups = self.hit_count + self.miss_count
        return {
            "totalEntries": self.total_entries,
            "warmingFlags": self.warming_flags,
            "maxCacheSize": self.max_entries,
            "hitCount": self.hit_count,
            "missCount": self.miss_count,
            "hitRate": f"{self.hit_rate:.2f}%" if lookups else "0%",
            "avgCacheAge": f"{self.avg_entry_age_seconds:.2f}s",
            "entriesExpiringSoon": self.entries_expiring_soon,
            "cacheEfficiency": (
                f"{self.cache_efficiency:.1f}%" if self.hit_count else "0%"
            ),
            "memoryUsage": self.memory.to_dict(),
            "lastCleanup": (
                self.last_cleanup.isoformat() if self.last_cleanup else "Never"
            ),
            "uptime": round(self.uptime_seconds, 3),
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class AccessedEntry:
    """Summary of a frequently read entry."""

    key: str
    access_count: int
    age_minutes: float


@dataclass(frozen=True)
class TtlDistribution:
    """Entry counts bucketed by remaining lifetime."""

    expiring_soon: int
    expiring_within_hour: int
    expiring_later: int


@dataclass(frozen=True)
class CacheAnalytics:
    """Access-pattern analytics for the cache."""

    total_entries: int
    hit_rate: float
    most_accessed: list[AccessedEntry]
    ttl_distribution: TtlDistribution
    avg_access_count: float
    timestamp: datetime
    lookups: int = field(default=0)

    def to_dict(self) -> dict[str, object]:
        return {
            "totalEntries": self.total_entries,
            "hitRate": f"{self.hit_rate:.2f}%" if self.lookups else "0%",
            "mostAccessedEntries": [
                {
                    "key": entry.key,
                    "accessCount": entry.access_count,
                    "age": f"{entry.age_minutes:.1f} minutes",
                }
                for entry in self.most_accessed
            ],
            "ttlDistribution": {
                "expiringSoon": self.ttl_distribution.expiring_soon,
                "expiring1Hour": self.ttl_distribution.expiring_within_hour,
                "expiringLater": self.ttl_distribution.expiring_later,
            },
            "avgAccessCount": round(self.avg_access_count, 2),
            "timestamp": self.timestamp.isoformat(),
        }
