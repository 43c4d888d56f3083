"""Health check endpoints for monitoring and observability.

This module provides health endpoints:
- GET /health - Basic health check
- GET /health/live - Liveness check (always returns 200 if running)
- GET /health/ready - Readiness check (pings the record store)
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from tgclips.core.constants import APP_VERSION, START_TIME
from tgclips.core.exceptions import ClipsError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


async def check_record_store_health(request: Request) -> dict[str, Any]:
    """Check the record store answers a trivial query.

    Returns:
        Health status dictionary
    """
    result: dict[str, Any] = {
        "status": "unhealthy",
        "latency_ms": 0,
        "available": False,
    }

    store = getattr(request.app.state, "record_store", None)
    if store is None:
        result["error"] = "No record store client"
        return result

    start = time.perf_counter()
    try:
        await store.ping()
    except ClipsError as e:
        result["error"] = e.message
        logger.warning("Record store health check failed: %s", e.message)
        return result

    result["status"] = "healthy"
    result["latency_ms"] = round((time.perf_counter() - start) * 1000, 2)
    result["available"] = True
    return result


def check_moderation_health(request: Request) -> dict[str, Any]:
    """Report whether moderation is configured; it is never called."""
    settings = request.app.state.settings
    if not settings.moderation_enabled:
        return {"status": "disabled", "available": False}
    configured = getattr(request.app.state, "moderator", None) is not None
    return {"status": "healthy" if configured else "unhealthy", "available": configured}


@router.get(
    "/health",
    response_model=dict[str, Any],
    summary="Basic health check",
    description="Quick health check for load balancers. Returns 200 if API is responding.",
    operation_id="health_check",
)
async def health_check() -> JSONResponse:
    """Basic health check endpoint; does not check dependencies."""
    now = datetime.now(timezone.utc)
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={
            "status": "healthy",
            "version": APP_VERSION,
            "uptime_seconds": round((now - START_TIME).total_seconds(), 1),
            "timestamp": now.isoformat(),
        },
    )


@router.get(
    "/health/live",
    response_model=dict[str, Any],
    summary="Liveness check",
    description="Returns 200 if the process is running.",
    operation_id="liveness_check",
)
async def liveness_check() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={
            "status": "alive",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


@router.get(
    "/health/ready",
    response_model=dict[str, Any],
    summary="Readiness check",
    description="Checks the record store is reachable before accepting traffic.",
    operation_id="readiness_check",
    responses={
        200: {"description": "Service is ready"},
        503: {"description": "Service is not ready"},
    },
)
async def readiness_check(request: Request) -> JSONResponse:
    """Readiness check endpoint.

    The record store is required; moderation is reported but never makes the
    service unready.

    Returns:
        JSONResponse with readiness status
    """
    components = {
        "api": {"status": "healthy"},
        "record_store": await check_record_store_health(request),
        "moderation": check_moderation_health(request),
    }

    if components["record_store"]["status"] == "healthy":
        overall_status = "ready"
        status_code = status.HTTP_200_OK
    else:
        overall_status = "not_ready"
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return JSONResponse(
        status_code=status_code,
        content={
            "status": overall_status,
            "version": APP_VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "components": components,
        },
    )
