"""Error response models for the API.

Every error leaves the API in one JSON shape carrying a request_id for
tracing.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response model.

    Attributes:
        error: Error type identifier (e.g., "VALIDATION_ERROR", "NOT_FOUND")
        error_code: Machine-readable error code for programmatic handling
        message: Human-readable error message
        details: Additional error context (upstream message, offending fields)
        request_id: Unique request identifier for tracing
        timestamp: ISO 8601 timestamp of when the error occurred
    """

    error: str = Field(
        ...,
        description="Error type identifier",
        examples=["VALIDATION_ERROR"],
    )
    error_code: str = Field(
        ...,
        description="Machine-readable error code",
        examples=["MISSING_REQUIRED_FIELD"],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
        examples=["Missing url or telegram_id"],
    )
    details: dict[str, Any] | None = Field(
        default=None,
        description="Additional error details and context",
        examples=[{"upstream": "duplicate key value violates unique constraint"}],
    )
    request_id: str = Field(
        ...,
        description="Unique request identifier for tracing",
        examples=["6f1c2d7e-0a4b-4f7e-9d9a-2b1f0c3e4d5a"],
    )
    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
        description="ISO 8601 timestamp of error occurrence",
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "error": "FORBIDDEN",
                "error_code": "NOT_VIDEO_OWNER",
                "message": "Unauthorized: you do not own this video",
                "details": None,
                "request_id": "6f1c2d7e-0a4b-4f7e-9d9a-2b1f0c3e4d5a",
                "timestamp": "2026-01-15T10:30:00Z",
            }
        }
    }


class ValidationErrorResponse(ErrorResponse):
    """Request body, query or form failed validation."""

    error: str = Field(default="VALIDATION_ERROR", frozen=True)
    details: dict[str, Any] = Field(  # type: ignore[assignment]
        default_factory=dict,
        description="Validation errors by field",
        examples=[{"errors": [{"field": "body.url", "message": "Field required"}]}],
    )


class InternalServerErrorResponse(ErrorResponse):
    """Unhandled exception; internal details are not leaked."""

    error: str = Field(default="INTERNAL_SERVER_ERROR", frozen=True)
    error_code: str = Field(default="INTERNAL_ERROR", frozen=True)
    message: str = Field(
        default="An unexpected error occurred. Please try again later.",
        description="Generic error message to avoid leaking internal details",
    )


class ErrorCodes:
    """Standardized error codes for the API."""

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
    INVALID_CHANNEL_LINK = "INVALID_CHANNEL_LINK"
    UNSUPPORTED_MEDIA_TYPE = "UNSUPPORTED_MEDIA_TYPE"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    FOREIGN_VIDEO_URL = "FOREIGN_VIDEO_URL"

    # Not found errors
    NOT_FOUND = "NOT_FOUND"
    VIDEO_NOT_FOUND = "VIDEO_NOT_FOUND"
    CHANNEL_NOT_FOUND = "CHANNEL_NOT_FOUND"

    # Authorization
    NOT_VIDEO_OWNER = "NOT_VIDEO_OWNER"

    # Moderation
    CONTENT_REJECTED = "CONTENT_REJECTED"
    MODERATION_DISABLED = "MODERATION_DISABLED"

    # Rate limiting
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Server errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    RECORD_STORE_ERROR = "RECORD_STORE_ERROR"
    OBJECT_STORE_ERROR = "OBJECT_STORE_ERROR"
    MODERATION_SERVICE_ERROR = "MODERATION_SERVICE_ERROR"
    PARTIAL_FAILURE = "PARTIAL_FAILURE"
