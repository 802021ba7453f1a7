"""Admin API endpoints for cache monitoring, with simple token auth."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from contact_cache.api.models import CacheConfigUpdate, EnterpriseIdsRequest
from contact_cache.config import InvalidTtlError

if TYPE_CHECKING:
    from contact_cache.containers import AppContainer

router = APIRouter(prefix="/admin/cache", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


def _timestamp() -> str:
    return datetime.now(tz=UTC).isoformat()


@router.get("/stats", dependencies=[Depends(require_admin)])
async def cache_stats(request: Request) -> dict[str, object]:
    """Return cache statistics for monitoring."""
    container: AppContainer = request.app.state.container
    return {
        "success": True,
        "cache": container.admin_service.stats(),
        "timestamp": _timestamp(),
    }


@router.delete("", dependencies=[Depends(require_admin)])
async def clear_cache(request: Request) -> dict[str, object]:
    """Drop every cached entry."""
    container: AppContainer = request.app.state.container
    removed = container.admin_service.clear()
    return {
        "success": True,
        "message": f"Cleared {removed} cache entries",
        "timestamp": _timestamp(),
    }


@router.post("/invalidate-departments", dependencies=[Depends(require_admin)])
async def invalidate_departments(request: Request) -> dict[str, object]:
    """Drop department aggregates across all enterprises."""
    container: AppContainer = request.app.state.container
    count = container.contacts_service.invalidate_all_departments()
    return {
        "success": True,
        "message": f"Invalidated {count} department cache entries",
        "timestamp": _timestamp(),
    }


@router.post("/invalidate-enterprises", dependencies=[Depends(require_admin)])
async def invalidate_enterprises(
    payload: EnterpriseIdsRequest, request: Request
) -> dict[str, object]:
    """Drop all aggregates for a batch of enterprises."""
    container: AppContainer = request.app.state.container
    count = container.contacts_service.invalidate_enterprises(payload.enterprise_ids)
    return {
        "success": True,
        "message": f"Invalidated caches for {count} enterprises",
        "timestamp": _timestamp(),
    }


@router.post("/warm", dependencies=[Depends(require_admin)])
async def warm_cache(
    payload: EnterpriseIdsRequest, request: Request
) -> dict[str, object]:
    """Precompute summaries for a batch of enterprises."""
    container: AppContainer = request.app.state.container
    outcomes = await container.contacts_service.warm_enterprises(
        payload.enterprise_ids
    )
    return {
        "success": True,
        "message": (
            f"Cache warming completed for {len(payload.enterprise_ids)} enterprises"
        ),
        "results": [outcome.to_dict() for outcome in outcomes],
        "timestamp": _timestamp(),
    }


@router.get("/config", dependencies=[Depends(require_admin)])
async def cache_config(request: Request) -> dict[str, object]:
    """Return the current cache configuration."""
    container: AppContainer = request.app.state.container
    return {
        "success": True,
        "configuration": container.admin_service.get_config(),
        "timestamp": _timestamp(),
    }


@router.put("/config", dependencies=[Depends(require_admin)])
async def update_cache_config(
    payload: CacheConfigUpdate, request: Request
) -> dict[str, object]:
    """Update TTL settings."""
    container: AppContainer = request.app.state.container
    current = container.admin_service.get_config()["ttlSettings"]
    if payload.ttl_settings:
        try:
            current = container.admin_service.update_config(payload.ttl_settings)
        except InvalidTtlError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
            ) from exc
    return {
        "success": True,
        "message": "Cache configuration updated successfully",
        "currentSettings": current,
        "timestamp": _timestamp(),
    }


@router.get("/analytics", dependencies=[Depends(require_admin)])
async def cache_analytics(request: Request) -> dict[str, object]:
    """Return cache access analytics."""
    container: AppContainer = request.app.state.container
    return {
        "success": True,
        "analytics": container.admin_service.analytics(),
        "timestamp": _timestamp(),
    }
