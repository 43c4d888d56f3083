"""Pydantic models for API requests and responses."""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from tgclips.core.schemas import ChannelLink, VideoRecord

# =============================================================================
# Request Models
# =============================================================================


class _TelegramIdMixin(BaseModel):
    @field_validator("telegram_id", mode="before", check_fields=False)
    @classmethod
    def stringify_id(cls, v):
        """Telegram ids arrive as numbers from some clients."""
        return str(v) if isinstance(v, int) else v


class UpdateVideoRequest(BaseModel):
    """Engagement update for one video.

    Every field except ``url`` is optional; only fields present in the body
    are written.
    """

    url: str | None = Field(
        default=None,
        description="Video url identifying the record",
        examples=["https://project.supabase.co/storage/v1/object/public/videos/42_1700000000000.mp4"],
    )
    description: str | None = None
    views: list[Any] | None = None
    likes: int | None = None
    dislikes: int | None = None
    user_likes: list[Any] | None = None
    user_dislikes: list[Any] | None = None
    comments: list[Any] | None = None
    shares: int | None = None
    view_time: float | None = None
    replays: int | None = None
    duration: float | None = None
    last_position: float | None = None
    chat_messages: list[Any] | None = None


class DeleteVideoRequest(_TelegramIdMixin):
    """Delete request; ``telegram_id`` must own the video."""

    url: str | None = Field(default=None, description="Video url")
    telegram_id: str | None = Field(default=None, description="Claimed owner", examples=["42"])


class RegisterChannelRequest(_TelegramIdMixin):
    """Link a Telegram user to a channel."""

    telegram_id: str | None = Field(default=None, examples=["42"])
    channel_link: str | None = Field(default=None, examples=["https://t.me/my_channel"])


class ModerateVideoRequest(BaseModel):
    """Moderate a remote video by URL."""

    videoUrl: str | None = Field(default=None, description="Publicly reachable video URL")


# =============================================================================
# Response Models
# =============================================================================


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str


class UploadVideoResponse(BaseModel):
    """Result of a successful upload."""

    message: str = "Video uploaded successfully"
    url: str = Field(..., description="Public URL of the stored video")


class UpdateVideoResponse(BaseModel):
    """Result of an engagement update."""

    success: bool = True
    data: list[VideoRecord] = Field(default_factory=list)


class RegisterChannelResponse(BaseModel):
    """Result of a channel registration."""

    message: str = "Channel registered successfully"
    data: list[ChannelLink] = Field(default_factory=list)


class ChannelLinkResponse(BaseModel):
    """Channel link lookup."""

    channel_link: str
