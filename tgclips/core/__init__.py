"""Core package for the TGClips API."""

from tgclips.core.config import Settings, get_settings
from tgclips.core.exceptions import (
    ClipsError,
    ContentRejectedError,
    ForbiddenError,
    InvalidRequestError,
    ModerationServiceError,
    NotFoundError,
    ObjectStoreError,
    PartialFailureError,
    PayloadTooLargeError,
    RecordStoreError,
    ServiceUnavailableError,
    UpstreamError,
)
from tgclips.core.logging_config import log_store_event, setup_logging
from tgclips.core.schemas import ChannelLink, ModerationVerdict, VideoRecord

__all__ = [
    "Settings",
    "get_settings",
    # Schemas
    "ChannelLink",
    "ModerationVerdict",
    "VideoRecord",
    # Logging
    "setup_logging",
    "log_store_event",
    # Errors
    "ClipsError",
    "ContentRejectedError",
    "ForbiddenError",
    "InvalidRequestError",
    "ModerationServiceError",
    "NotFoundError",
    "ObjectStoreError",
    "PartialFailureError",
    "PayloadTooLargeError",
    "RecordStoreError",
    "ServiceUnavailableError",
    "UpstreamError",
]
