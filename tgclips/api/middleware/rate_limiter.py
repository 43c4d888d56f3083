"""Rate limiting middleware using SlowAPI.

Applies a default per-client limit to every route. Counters live in memory
unless ``RATE_LIMIT_STORAGE_URI`` points at a shared backend.
"""

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from tgclips.api.models.errors import ErrorCodes
from tgclips.core.config import Settings

logger = logging.getLogger(__name__)


def get_rate_limit_key(request: Request) -> str:
    """Rate limit key: the connection's client address.

    Forwarded headers are not read here. Behind a reverse proxy, uvicorn's
    ``--proxy-headers`` with ``--forwarded-allow-ips`` rewrites the client
    address from trusted proxies only.
    """
    return f"ip:{get_remote_address(request)}"


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return a 429 in the standard error format."""
    retry_after = 60

    logger.warning(
        "Rate limit exceeded",
        extra={
            "key": get_rate_limit_key(request),
            "path": request.url.path,
            "limit": str(exc.detail),
        },
    )

    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={
            "error": "RATE_LIMIT_EXCEEDED",
            "error_code": ErrorCodes.RATE_LIMIT_EXCEEDED,
            "message": "Too many requests. Please slow down.",
            "details": {"limit": str(exc.detail), "retry_after_seconds": retry_after},
            "request_id": getattr(request.state, "request_id", None),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
        headers={"Retry-After": str(retry_after)},
    )


def get_limiter(settings: Settings) -> Limiter:
    """Create the rate limiter for ``settings``."""
    return Limiter(
        key_func=get_rate_limit_key,
        default_limits=[settings.rate_limit_default] if settings.rate_limit_enabled else [],
        storage_uri=settings.rate_limit_storage_uri,
        enabled=settings.rate_limit_enabled,
    )


def setup_rate_limiter(app: FastAPI, settings: Settings) -> Limiter:
    """Attach the limiter, its middleware and its 429 handler to ``app``."""
    limiter = get_limiter(settings)
    app.state.limiter = limiter

    if not settings.rate_limit_enabled:
        logger.info("Rate limiting is disabled")
        return limiter

    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)  # type: ignore[arg-type]
    app.add_middleware(SlowAPIMiddleware)

    logger.info(
        "Rate limiting enabled",
        extra={
            "default_limit": settings.rate_limit_default,
            "storage": settings.rate_limit_storage_uri,
        },
    )
    return limiter
