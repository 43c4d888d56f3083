"""Error handler middleware for standardized error responses.

Converts domain errors, request validation errors, HTTP exceptions and any
unhandled exception into the ErrorResponse JSON format with the matching
HTTP status code.
"""

import logging
import uuid
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tgclips.api.models.errors import (
    ErrorCodes,
    ErrorResponse,
    InternalServerErrorResponse,
    ValidationErrorResponse,
)
from tgclips.core.exceptions import ClipsError

logger = logging.getLogger(__name__)

_HTTP_ERROR_TYPES: dict[int, tuple[str, str]] = {
    status.HTTP_400_BAD_REQUEST: ("BAD_REQUEST", ErrorCodes.VALIDATION_ERROR),
    status.HTTP_403_FORBIDDEN: ("FORBIDDEN", "FORBIDDEN"),
    status.HTTP_404_NOT_FOUND: ("NOT_FOUND", ErrorCodes.NOT_FOUND),
    status.HTTP_405_METHOD_NOT_ALLOWED: ("METHOD_NOT_ALLOWED", "METHOD_NOT_ALLOWED"),
    status.HTTP_429_TOO_MANY_REQUESTS: ("RATE_LIMIT_EXCEEDED", ErrorCodes.RATE_LIMIT_EXCEEDED),
}


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or request.headers.get(
        "X-Request-ID", str(uuid.uuid4())
    )


class ErrorHandlerMiddleware:
    """Global error handler for the FastAPI application.

    Usage:
        app = FastAPI()
        setup_error_handler(app)
    """

    def __init__(self, app: FastAPI) -> None:
        self.app = app
        self._register_exception_handlers()

    def _register_exception_handlers(self) -> None:
        """Register exception handlers for different exception types."""
        self.app.add_exception_handler(Exception, self._handle_generic_exception)
        self.app.add_exception_handler(ClipsError, self._handle_clips_error)  # type: ignore[arg-type]
        self.app.add_exception_handler(RequestValidationError, self._handle_validation_error)  # type: ignore[arg-type]
        self.app.add_exception_handler(StarletteHTTPException, self._handle_http_exception)  # type: ignore[arg-type]

    async def _handle_clips_error(self, request: Request, exc: ClipsError) -> JSONResponse:
        """Handle domain errors raised by services and store clients.

        Args:
            request: FastAPI request object
            exc: The domain error

        Returns:
            JSONResponse with the error's status code
        """
        request_id = _request_id(request)
        log_extra = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "error_code": exc.error_code,
            "details": exc.details,
        }
        if exc.status_code >= 500:
            logger.error("%s: %s", exc.error_code, exc.message, extra=log_extra)
        else:
            logger.info("%s: %s", exc.error_code, exc.message, extra=log_extra)

        error_response = ErrorResponse(
            error=exc.error,
            error_code=exc.error_code,
            message=exc.message,
            details=exc.details,
            request_id=request_id,
        )
        return JSONResponse(status_code=exc.status_code, content=error_response.model_dump())

    async def _handle_generic_exception(self, request: Request, exc: Exception) -> JSONResponse:
        """Handle generic unhandled exceptions."""
        request_id = _request_id(request)

        logger.exception(
            "Unhandled exception",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "client_ip": request.client.host if request.client else "unknown",
            },
        )

        error_response = InternalServerErrorResponse(
            request_id=request_id,
            details={"error_type": type(exc).__name__},
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_response.model_dump(),
        )

    async def _handle_validation_error(
        self,
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Handle validation errors from request parsing.

        Malformed or mistyped fields are client errors and map to 400.
        """
        request_id = _request_id(request)

        errors: list[dict[str, Any]] = [
            {
                "field": ".".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
                "type": error["type"],
            }
            for error in exc.errors()
        ]

        error_response = ValidationErrorResponse(
            error_code=ErrorCodes.VALIDATION_ERROR,
            message="Request validation failed",
            details={"errors": errors},
            request_id=request_id,
        )

        logger.info(
            "Validation error",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "validation_errors": errors,
            },
        )

        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_response.model_dump(),
        )

    async def _handle_http_exception(
        self,
        request: Request,
        exc: StarletteHTTPException,
    ) -> JSONResponse:
        """Handle HTTP exceptions (404 for unknown routes, 405, ...)."""
        request_id = _request_id(request)
        status_code = exc.status_code
        error_type, error_code = _HTTP_ERROR_TYPES.get(
            status_code, ("HTTP_ERROR", f"HTTP_{status_code}")
        )
        message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
        if status_code == status.HTTP_404_NOT_FOUND and message == "Not Found":
            message = "Route not found"

        error_response = ErrorResponse(
            error=error_type,
            error_code=error_code,
            message=message,
            request_id=request_id,
        )

        logger.info(
            "HTTP %s error",
            status_code,
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": status_code,
            },
        )

        return JSONResponse(
            status_code=status_code,
            content=error_response.model_dump(),
            headers=getattr(exc, "headers", None),
        )


def setup_error_handler(app: FastAPI) -> None:
    """Register the global exception handlers on ``app``."""
    ErrorHandlerMiddleware(app)
    logger.info("Error handler middleware initialized")
