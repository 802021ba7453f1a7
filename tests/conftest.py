"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import pytest

from contact_cache.adapters.contacts_client import ContactsClient
from contact_cache.config import Settings
from contact_cache.containers import AppContainer
from contact_cache.domain.cache import MemoryUsage
from contact_cache.services.admin import CacheAdminService
from contact_cache.services.cache import TTLCache
from contact_cache.services.contacts import ContactsService
from contact_cache.services.loader import CachedLoader
from contact_cache.services.maintenance import CacheMaintenance
from contact_cache.services.memory import MemoryProbe


@dataclass
class FakeClock:
    """Manually advanced clock."""

    now: datetime = field(
        default_factory=lambda: datetime(2024, 1, 1, 12, 0, tzinfo=UTC)
    )

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@dataclass
class FakeMemoryProbe(MemoryProbe):
    """Memory probe returning a configurable resident size."""

    rss_mb: float = 100.0

    def snapshot(self) -> MemoryUsage:
        return MemoryUsage(rss_mb=self.rss_mb, vms_mb=self.rss_mb * 2, percent=1.5)


@dataclass
class FakeContactsClient(ContactsClient):
    """Contacts client that counts calls and can be made slow or failing."""

    delay_seconds: float = 0.0
    fail: bool = False
    summary_calls: int = 0
    department_calls: int = 0
    details_calls: list[tuple[str, str | None, dict[str, object]]] = field(
        default_factory=list
    )

    async def enterprise_summary(self, enterprise_id: str) -> dict[str, object]:
        self.summary_calls += 1
        await self._maybe_wait_or_fail()
        return {"enterpriseId": enterprise_id, "totalContacts": 42}

    async def department_summary(
        self, enterprise_id: str, department_id: str
    ) -> dict[str, object]:
        self.department_calls += 1
        await self._maybe_wait_or_fail()
        return {
            "enterpriseId": enterprise_id,
            "departmentId": department_id,
            "totalContacts": 7,
        }

    async def contact_details(
        self,
        enterprise_id: str,
        department_id: str | None,
        params: dict[str, object],
    ) -> dict[str, object]:
        self.details_calls.append((enterprise_id, department_id, params))
        await self._maybe_wait_or_fail()
        return {"contacts": [{"name": "Ada"}], "pagination": params}

    async def _maybe_wait_or_fail(self) -> None:
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if self.fail:
            raise RuntimeError("upstream unavailable")


@pytest.fixture
def settings() -> Settings:
    return Settings(
        admin_token="admin-token",
        contacts_api_base_url="https://contacts.test",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_probe() -> FakeMemoryProbe:
    return FakeMemoryProbe()


@pytest.fixture
def cache(clock: FakeClock, memory_probe: FakeMemoryProbe) -> TTLCache:
    return TTLCache(memory_probe=memory_probe, clock=clock)


@pytest.fixture
def contacts_client() -> FakeContactsClient:
    return FakeContactsClient()


@pytest.fixture
def loader(cache: TTLCache) -> CachedLoader:
    return CachedLoader(cache=cache, poll_interval_seconds=0.01, max_wait_attempts=30)


@pytest.fixture
def contacts_service(
    contacts_client: FakeContactsClient, cache: TTLCache, loader: CachedLoader
) -> ContactsService:
    return ContactsService(client=contacts_client, cache=cache, loader=loader)


@pytest.fixture
def container(
    settings: Settings,
    cache: TTLCache,
    contacts_service: ContactsService,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        cache=cache,
        contacts_service=contacts_service,
        admin_service=CacheAdminService(cache),
        maintenance=CacheMaintenance(cache),
        close_resources=close_resources,
    )
