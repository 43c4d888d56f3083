"""API models module."""

from tgclips.api.models.errors import ErrorCodes, ErrorResponse
from tgclips.api.models.requests import (
    ChannelLinkResponse,
    DeleteVideoRequest,
    MessageResponse,
    ModerateVideoRequest,
    RegisterChannelRequest,
    RegisterChannelResponse,
    UpdateVideoRequest,
    UpdateVideoResponse,
    UploadVideoResponse,
)

__all__ = [
    "ErrorCodes",
    "ErrorResponse",
    "ChannelLinkResponse",
    "DeleteVideoRequest",
    "MessageResponse",
    "ModerateVideoRequest",
    "RegisterChannelRequest",
    "RegisterChannelResponse",
    "UpdateVideoRequest",
    "UpdateVideoResponse",
    "UploadVideoResponse",
]
