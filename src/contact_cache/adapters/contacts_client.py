"""Client for the upstream contacts aggregation backend."""

from dataclasses import dataclass
from typing import Protocol

import httpx


class ContactsClient(Protocol):
    """Interface for computing contact aggregates."""

    async def enterprise_summary(self, enterprise_id: str) -> dict[str, object]:
        """Compute the contacts summary for an enterprise."""

    async def department_summary(
        self, enterprise_id: str, department_id: str
    ) -> dict[str, object]:
        """Compute the contacts summary for a department."""

    async def contact_details(
        self,
        enterprise_id: str,
        department_id: str | None,
        params: dict[str, object],
    ) -> dict[str, object]:
        """Fetch detailed, sorted and paginated contacts."""


@dataclass
class HttpxContactsClient(ContactsClient):
    """HTTPX-backed contacts client."""

    base_url: str
    http_client: httpx.AsyncClient
    api_token: str | None = None
    timeout_seconds: float = 15

    @classmethod
    def create(
        cls, base_url: str, api_token: str | None = None, timeout_seconds: float = 15
    ) -> "HttpxContactsClient":
        """Create a contacts client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            api_token=api_token,
            timeout_seconds=timeout_seconds,
        )

    async def enterprise_summary(self, enterprise_id: str) -> dict[str, object]:
        """Fetch the enterprise contacts summary."""
        return await self._get(f"/enterprises/{enterprise_id}/contacts/summary")

    async def department_summary(
        self, enterprise_id: str, department_id: str
    ) -> dict[str, object]:
        """Fetch the department contacts summary."""
        return await self._get(
            f"/enterprises/{enterprise_id}/departments/{department_id}"
            "/contacts/summary"
        )

    async def contact_details(
        self,
        enterprise_id: str,
        department_id: str | None,
        params: dict[str, object],
    ) -> dict[str, object]:
        """Fetch detailed contacts for an enterprise or one of its departments."""
        path = f"/enterprises/{enterprise_id}"
        if department_id:
            path += f"/departments/{department_id}"
        query = {key: value for key, value in params.items() if value is not None}
        return await self._get(f"{path}/contacts/details", params=query)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    async def _get(
        self, path: str, params: dict[str, object] | None = None
    ) -> dict[str, object]:
        headers = {}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        response = await self.http_client.get(
            f"{self.base_url}{path}",
            params=params,
            headers=headers,
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        return response.json()
