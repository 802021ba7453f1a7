"""Tests for stampede-protected loading."""

import asyncio

import pytest

from contact_cache.services.cache import TTLCache
from contact_cache.services.loader import CachedLoader
from tests.conftest import FakeClock


def test_hit_skips_computation(cache: TTLCache, loader: CachedLoader) -> None:
    cache.set("t1:hit", {"v": 1})
    calls = 0

    async def compute() -> object:
        nonlocal calls
        calls += 1
        return {"v": 2}

    result = asyncio.run(loader.get_or_compute("t1:hit", compute))

    assert result.data == {"v": 1}
    assert result.cached is True
    assert calls == 0


def test_miss_computes_stores_and_releases_flag(
    cache: TTLCache, loader: CachedLoader
) -> None:
    async def compute() -> object:
        assert cache.is_warming("t1:miss")
        return 42

    result = asyncio.run(loader.get_or_compute("t1:miss", compute))

    assert result.data == 42
    assert result.cached is False
    assert cache.get("t1:miss") == 42
    assert cache.is_warming("t1:miss") is False


def test_concurrent_callers_compute_once(cache: TTLCache, loader: CachedLoader) -> None:
    calls = 0

    async def compute() -> object:
        nonlocal calls
        calls += 1
        await asyncio.sleep(0.05)
        return 42

    async def run() -> list:
        return await asyncio.gather(
            *(loader.get_or_compute("t1:bar", compute) for _ in range(5))
        )

    results = asyncio.run(run())

    assert calls == 1
    assert [result.data for result in results] == [42] * 5
    assert sum(1 for result in results if not result.cached) == 1
    waiters = [result for result in results if result.warmed]
    assert len(waiters) == 4
    assert all(result.wait_ms and result.wait_ms > 0 for result in waiters)


def test_waiter_computes_after_wait_bound(cache: TTLCache) -> None:
    loader = CachedLoader(cache=cache, poll_interval_seconds=0.001, max_wait_attempts=3)
    cache.set_warming_flag("t1:stuck")

    async def compute() -> object:
        return "own"

    result = asyncio.run(loader.get_or_compute("t1:stuck", compute))

    assert result.data == "own"
    assert result.cached is False
    assert cache.is_warming("t1:stuck") is False


def test_stale_warming_flag_does_not_block(
    cache: TTLCache, loader: CachedLoader, clock: FakeClock
) -> None:
    cache.set_warming_flag("t1:crashed")
    clock.advance(31)

    async def compute() -> object:
        return "fresh"

    result = asyncio.run(loader.get_or_compute("t1:crashed", compute))

    assert result.data == "fresh"
    assert result.warmed is False


def test_failure_propagates_and_releases_flag(
    cache: TTLCache, loader: CachedLoader
) -> None:
    async def compute() -> object:
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError, match="boom"):
        asyncio.run(loader.get_or_compute("t1:fail", compute))

    assert cache.is_warming("t1:fail") is False


def test_failure_serves_expired_value_as_stale(
    cache: TTLCache, loader: CachedLoader, clock: FakeClock
) -> None:
    cache.set("t1:stale", "old", ttl_seconds=10)
    clock.advance(20)

    async def compute() -> object:
        raise RuntimeError("upstream down")

    result = asyncio.run(loader.get_or_compute("t1:stale", compute))

    assert result.data == "old"
    assert result.stale is True
    assert result.cached is True
    assert result.cache_age_ms == 20_000
    assert result.error is not None
    assert "upstream down" in result.error
    assert result.annotations()["stale"] is True


def test_stale_fallback_can_be_disabled(cache: TTLCache, clock: FakeClock) -> None:
    loader = CachedLoader(cache=cache, serve_stale=False)
    cache.set("t1:stale", "old", ttl_seconds=10)
    clock.advance(20)

    async def compute() -> object:
        raise RuntimeError("upstream down")

    with pytest.raises(RuntimeError):
        asyncio.run(loader.get_or_compute("t1:stale", compute))


def test_none_result_is_cached(cache: TTLCache, loader: CachedLoader) -> None:
    calls = 0

    async def compute() -> object:
        nonlocal calls
        calls += 1

    first = asyncio.run(loader.get_or_compute("t1:none", compute))
    second = asyncio.run(loader.get_or_compute("t1:none", compute))

    assert calls == 1
    assert first.cached is False
    assert second.data is None
    assert second.cached is True


def test_failure_prefers_value_stored_during_computation(
    cache: TTLCache, loader: CachedLoader, clock: FakeClock
) -> None:
    cache.set("t1:race", "old", ttl_seconds=10)
    clock.advance(20)

    async def compute() -> object:
        cache.set("t1:race", "fresh", ttl_seconds=10)
        raise RuntimeError("late failure")

    result = asyncio.run(loader.get_or_compute("t1:race", compute))

    assert result.data == "fresh"
    assert result.stale is False
    assert result.cached is True
