"""Custom exceptions for the TGClips API.

Each exception carries the HTTP status and machine-readable code the API
error handler reports for it.
"""

from typing import Any


class ClipsError(Exception):
    """Base exception for application errors."""

    status_code = 500
    error = "INTERNAL_SERVER_ERROR"
    error_code = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        *,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if error_code is not None:
            self.error_code = error_code
        self.details = details


class InvalidRequestError(ClipsError):
    """Missing or malformed request field."""

    status_code = 400
    error = "VALIDATION_ERROR"
    error_code = "MISSING_REQUIRED_FIELD"


class PayloadTooLargeError(ClipsError):
    """Uploaded file exceeds the size cap."""

    status_code = 413
    error = "PAYLOAD_TOO_LARGE"
    error_code = "FILE_TOO_LARGE"


class ForbiddenError(ClipsError):
    """Caller does not own the targeted record."""

    status_code = 403
    error = "FORBIDDEN"
    error_code = "NOT_VIDEO_OWNER"


class NotFoundError(ClipsError):
    """Referenced record does not exist."""

    status_code = 404
    error = "NOT_FOUND"
    error_code = "VIDEO_NOT_FOUND"


class ContentRejectedError(ClipsError):
    """Upload failed moderation."""

    status_code = 400
    error = "CONTENT_REJECTED"
    error_code = "CONTENT_REJECTED"


class ServiceUnavailableError(ClipsError):
    """Requested feature is switched off."""

    status_code = 503
    error = "SERVICE_UNAVAILABLE"
    error_code = "MODERATION_DISABLED"


class UpstreamError(ClipsError):
    """A hosted dependency failed."""

    error = "UPSTREAM_ERROR"
    error_code = "EXTERNAL_SERVICE_ERROR"


class RecordStoreError(UpstreamError):
    """Record store request failed."""

    error_code = "RECORD_STORE_ERROR"


class ObjectStoreError(UpstreamError):
    """Object store request failed."""

    error_code = "OBJECT_STORE_ERROR"


class ModerationServiceError(UpstreamError):
    """Moderation vendor request failed."""

    error_code = "MODERATION_SERVICE_ERROR"


class PartialFailureError(ClipsError):
    """Second step of a two-step operation failed.

    ``details`` records the failed step, the upstream message and whether
    the compensating action undid the first step.
    """

    error = "PARTIAL_FAILURE"
    error_code = "PARTIAL_FAILURE"
