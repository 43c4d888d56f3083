"""Pydantic schemas for video records, channel links and moderation verdicts."""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tgclips.core.constants import LIST_FIELDS, NUMERIC_FIELDS


def utc_now_iso() -> str:
    """Current UTC instant as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


class VideoRecord(BaseModel):
    """Row of the public videos table."""

    model_config = ConfigDict(extra="allow")

    url: str = Field(..., description="Public location of the stored video, unique key")
    author_id: str | None = Field(default=None, description="Telegram id of the uploader")
    description: str | None = ""
    is_public: bool = True

    views: list[Any] = Field(default_factory=list)
    likes: int = 0
    dislikes: int = 0
    user_likes: list[Any] = Field(default_factory=list)
    user_dislikes: list[Any] = Field(default_factory=list)
    comments: list[Any] = Field(default_factory=list)
    shares: int = 0
    view_time: float = 0
    replays: int = 0
    duration: float = 0
    last_position: float = 0
    chat_messages: list[Any] = Field(default_factory=list)

    timestamp: str | None = None
    updated_at: str | None = None

    @field_validator(*LIST_FIELDS, mode="before")
    @classmethod
    def empty_sequence(cls, v):
        """Older rows stored empty objects or nulls where a list belongs."""
        if v is None or v == {}:
            return []
        return v

    @field_validator(*NUMERIC_FIELDS, mode="before")
    @classmethod
    def zero_counter(cls, v):
        return 0 if v is None else v

    @field_validator("is_public", mode="before")
    @classmethod
    def unknown_is_private(cls, v):
        """Rows written without a visibility flag are not published."""
        return False if v is None else v

    @field_validator("description", mode="before")
    @classmethod
    def empty_description(cls, v):
        return "" if v is None else v

    @field_validator("author_id", mode="before")
    @classmethod
    def stringify_author(cls, v):
        return str(v) if isinstance(v, int) else v

    @classmethod
    def new_upload(cls, url: str, author_id: str, description: str | None = None) -> "VideoRecord":
        """Build a freshly uploaded record with zeroed engagement."""
        now = utc_now_iso()
        return cls(
            url=url,
            author_id=author_id,
            description=description or "",
            is_public=True,
            timestamp=now,
            updated_at=now,
        )

    def model_dump_for_store(self) -> dict[str, Any]:
        """Convert to a JSON row suitable for the record store."""
        return self.model_dump(mode="json")


class ChannelLink(BaseModel):
    """Row of the channels table linking a Telegram user to a channel."""

    model_config = ConfigDict(extra="allow")

    telegram_id: str
    channel_link: str

    @field_validator("telegram_id", mode="before")
    @classmethod
    def stringify_id(cls, v):
        """Telegram ids arrive as numbers from some clients."""
        return str(v) if isinstance(v, int) else v


class ModerationVerdict(BaseModel):
    """Outcome of a moderation check."""

    approved: bool
    threshold: float
    scores: dict[str, float] = Field(default_factory=dict)
    flagged: list[str] = Field(default_factory=list)
    raw: dict[str, Any] | None = Field(default=None, exclude=True)
