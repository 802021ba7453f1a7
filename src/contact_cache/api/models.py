"""Pydantic models for admin request payloads."""

from typing import Any

from pydantic import BaseModel, Field


class EnterpriseIdsRequest(BaseModel):
    """A batch of enterprise ids."""

    enterprise_ids: list[str] = Field(alias="enterpriseIds")


class CacheConfigUpdate(BaseModel):
    """TTL overrides keyed by rule name, in seconds."""

    ttl_settings: dict[str, Any] | None = Field(default=None, alias="ttlSettings")
