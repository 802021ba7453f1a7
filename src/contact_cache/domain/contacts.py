"""Domain models for cached contact aggregates."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CachedResult:
    """A payload annotated with how the cache produced it."""

    data: object
    cached: bool
    stale: bool = False
    warmed: bool = False
    wait_ms: int | None = None
    cache_age_ms: int | None = None
    error: str | None = None

    def annotations(self) -> dict[str, object]:
        """Return response markers describing cache behavior."""
        markers: dict[str, object] = {"cached": self.cached}
        if self.stale:
            markers["stale"] = True
            markers["cacheAge"] = self.cache_age_ms
        if self.warmed:
            markers["warmed"] = True
            markers["waitTime"] = self.wait_ms
        if self.error:
            markers["error"] = self.error
        return markers


@dataclass(frozen=True)
class WarmingOutcome:
    """Result of pre-warming a single enterprise."""

    enterprise_id: str
    status: str
    duration_ms: int = 0
    error: str | None = None

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "enterpriseId": self.enterprise_id,
            "status": self.status,
        }
        if self.error is None:
            payload["duration"] = self.duration_ms
        else:
            payload["error"] = self.error
        return payload
