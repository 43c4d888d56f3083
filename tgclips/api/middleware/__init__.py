"""Middleware module for the API.

This module provides middleware components for:
- Error handling and standardization
- Request/response logging
- Rate limiting
- Prometheus metrics
"""

from tgclips.api.middleware.error_handler import ErrorHandlerMiddleware, setup_error_handler
from tgclips.api.middleware.logging import LoggingMiddleware, setup_logging_middleware
from tgclips.api.middleware.prometheus import (
    PrometheusMiddleware,
    record_moderation_check,
    record_store_operation,
    record_video_upload,
    setup_prometheus,
)
from tgclips.api.middleware.rate_limiter import get_limiter, setup_rate_limiter

__all__ = [
    "ErrorHandlerMiddleware",
    "setup_error_handler",
    "LoggingMiddleware",
    "setup_logging_middleware",
    "PrometheusMiddleware",
    "setup_prometheus",
    "setup_rate_limiter",
    "get_limiter",
    # Metrics helpers
    "record_moderation_check",
    "record_store_operation",
    "record_video_upload",
]
