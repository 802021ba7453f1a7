"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from contact_cache.api.admin import router as admin_router
from contact_cache.app_logging import configure_logging
from contact_cache.containers import AppContainer
from contact_cache.domain.contacts import CachedResult


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.container.maintenance.start()
        try:
            yield
        finally:
            await app.state.container.maintenance.stop()
            await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/enterprises/{enterprise_id}/contacts/summary", response_model=None)
    async def enterprise_summary(
        enterprise_id: str, request: Request
    ) -> dict[str, object] | JSONResponse:
        """Return the cached contacts summary of an enterprise."""
        state_container: AppContainer = request.app.state.container
        try:
            result = await state_container.contacts_service.enterprise_summary(
                enterprise_id
            )
        except Exception as exc:
            logger.exception("Error getting enterprise contacts summary")
            return _error_response(
                "Error retrieving enterprise contacts summary", exc, enterprise_id
            )
        return _result_response(result)

    @app.get(
        "/enterprises/{enterprise_id}/departments/{department_id}/contacts/summary",
        response_model=None,
    )
    async def department_summary(
        enterprise_id: str, department_id: str, request: Request
    ) -> dict[str, object] | JSONResponse:
        """Return the cached contacts summary of a department."""
        state_container: AppContainer = request.app.state.container
        try:
            result = await state_container.contacts_service.department_summary(
                enterprise_id, department_id
            )
        except Exception as exc:
            logger.exception("Error getting department contacts summary")
            return _error_response(
                "Error retrieving department contacts summary", exc, enterprise_id
            )
        return _result_response(result)

    @app.get("/enterprises/{enterprise_id}/contacts/details", response_model=None)
    async def enterprise_details(  # noqa: PLR0913
        enterprise_id: str,
        request: Request,
        sort_by: str = "name",
        sort_order: str = "asc",
        limit: int | None = None,
        offset: int = 0,
    ) -> dict[str, object] | JSONResponse:
        """Return detailed enterprise contacts for one sort and page."""
        state_container: AppContainer = request.app.state.container
        try:
            result = await state_container.contacts_service.contact_details(
                enterprise_id,
                sort_by=sort_by,
                sort_order=sort_order,
                limit=limit,
                offset=offset,
            )
        except Exception as exc:
            logger.exception("Error getting enterprise contact details")
            return _error_response(
                "Error retrieving enterprise contact details", exc, enterprise_id
            )
        return _result_response(result)

    @app.get(
        "/enterprises/{enterprise_id}/departments/{department_id}/contacts/details",
        response_model=None,
    )
    async def department_details(  # noqa: PLR0913
        enterprise_id: str,
        department_id: str,
        request: Request,
        sort_by: str = "name",
        sort_order: str = "asc",
        limit: int | None = None,
        offset: int = 0,
    ) -> dict[str, object] | JSONResponse:
        """Return detailed department contacts for one sort and page."""
        state_container: AppContainer = request.app.state.container
        try:
            result = await state_container.contacts_service.contact_details(
                enterprise_id,
                department_id,
                sort_by=sort_by,
                sort_order=sort_order,
                limit=limit,
                offset=offset,
            )
        except Exception as exc:
            logger.exception("Error getting department contact details")
            return _error_response(
                "Error retrieving department contact details", exc, enterprise_id
            )
        return _result_response(result)

    @app.post("/enterprises/{enterprise_id}/contacts/invalidate")
    async def invalidate_enterprise(
        enterprise_id: str, request: Request
    ) -> dict[str, object]:
        """Drop cached aggregates after an enterprise's contacts change."""
        state_container: AppContainer = request.app.state.container
        state_container.contacts_service.invalidate_enterprise(enterprise_id)
        return {"success": True, "timestamp": _timestamp()}

    @app.post(
        "/enterprises/{enterprise_id}/departments/{department_id}/contacts/invalidate"
    )
    async def invalidate_department(
        enterprise_id: str, department_id: str, request: Request
    ) -> dict[str, object]:
        """Drop cached aggregates after a department's contacts change."""
        state_container: AppContainer = request.app.state.container
        state_container.contacts_service.invalidate_department(
            enterprise_id, department_id
        )
        return {"success": True, "timestamp": _timestamp()}

    return app


def _timestamp() -> str:
    return datetime.now(tz=UTC).isoformat()


def _result_response(result: CachedResult) -> dict[str, object]:
    return {
        "success": True,
        "data": result.data,
        **result.annotations(),
        "timestamp": _timestamp(),
    }


def _error_response(message: str, exc: Exception, enterprise_id: str) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "message": message,
            "error": str(exc),
            "enterpriseId": enterprise_id,
            "timestamp": _timestamp(),
            "fallback": {
                "available": False,
                "message": "No cached data available for fallback",
            },
        },
    )
