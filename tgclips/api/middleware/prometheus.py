"""Prometheus metrics middleware and instrumentation.

This module provides:
- API request metrics
- Upload and moderation outcome counters
- Record/object store operation metrics
- /metrics endpoint for Prometheus scraping
"""

import logging
import time
from collections.abc import Callable

from fastapi import FastAPI, Request, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware

from tgclips.core.config import Settings

logger = logging.getLogger(__name__)


# API request metrics
api_requests_total = Counter(
    "tgclips_api_requests_total",
    "Total number of API requests",
    ["method", "endpoint", "status"],
)

api_request_duration_seconds = Histogram(
    "tgclips_api_request_duration_seconds",
    "API request latency in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30, float("inf")),
)

# Domain metrics
video_uploads_total = Counter(
    "tgclips_video_uploads_total",
    "Video uploads by outcome",
    ["status"],
)

moderation_checks_total = Counter(
    "tgclips_moderation_checks_total",
    "Moderation checks by verdict",
    ["verdict"],
)

# Store operation metrics
store_operations_total = Counter(
    "tgclips_store_operations_total",
    "Record and object store operations",
    ["store", "operation", "status"],
)

store_operation_duration_seconds = Histogram(
    "tgclips_store_operation_duration_seconds",
    "Record and object store operation latency in seconds",
    ["store", "operation"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, float("inf")),
)

app_info = Gauge(
    "tgclips_app_info",
    "Application information",
    ["version"],
)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware to collect Prometheus metrics for API requests."""

    def __init__(self, app, metrics_path: str = "/metrics") -> None:
        super().__init__(app)
        self.metrics_path = metrics_path

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path == self.metrics_path:
            return await call_next(request)

        start_time = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
        finally:
            duration = time.perf_counter() - start_time
            route = request.scope.get("route")
            # Unmatched paths collapse into one label to bound cardinality
            endpoint = getattr(route, "path", "unmatched")
            api_requests_total.labels(
                method=request.method,
                endpoint=endpoint,
                status=status_code,
            ).inc()
            api_request_duration_seconds.labels(
                method=request.method,
                endpoint=endpoint,
            ).observe(duration)

        return response


def setup_prometheus(app: FastAPI, settings: Settings) -> None:
    """Set up Prometheus metrics and endpoint.

    Args:
        app: FastAPI application
        settings: Application settings
    """
    if not settings.prometheus_enabled:
        logger.info("Prometheus metrics disabled")
        return

    from tgclips.core.constants import APP_VERSION

    app_info.labels(version=APP_VERSION).set(1)

    app.add_middleware(PrometheusMiddleware, metrics_path=settings.prometheus_path)

    @app.get(settings.prometheus_path, include_in_schema=False)
    async def metrics_endpoint() -> Response:
        """Prometheus metrics endpoint."""
        return Response(
            content=generate_latest(REGISTRY),
            status_code=200,
            media_type=CONTENT_TYPE_LATEST,
        )

    logger.info("Prometheus metrics enabled", extra={"path": settings.prometheus_path})


# Helper functions for recording metrics


def record_video_upload(status: str) -> None:
    """Record an upload outcome (accepted, rejected, failed)."""
    video_uploads_total.labels(status=status).inc()


def record_moderation_check(verdict: str) -> None:
    """Record a moderation outcome (approved, rejected, error)."""
    moderation_checks_total.labels(verdict=verdict).inc()


def record_store_operation(
    store: str,
    operation: str,
    duration_seconds: float,
    status: str = "success",
) -> None:
    """Record a record/object store round trip.

    Args:
        store: "records" or "objects"
        operation: Operation (select, insert, upsert, upload, remove, ...)
        duration_seconds: Operation duration
        status: "success" or "error"
    """
    store_operations_total.labels(store=store, operation=operation, status=status).inc()
    store_operation_duration_seconds.labels(store=store, operation=operation).observe(
        duration_seconds
    )
