"""FastAPI dependencies for the API module.

Store and moderation clients live on ``app.state`` (set by the lifespan or
injected into ``create_app``); services are built per request around them.
"""

from fastapi import Request

from tgclips.core.config import Settings
from tgclips.services import ChannelService, VideoService


def get_settings_dep(request: Request) -> Settings:
    """Dependency to get the settings the app was created with.

    Returns:
        Settings: Application settings instance
    """
    return request.app.state.settings  # type: ignore[no-any-return]


def get_video_service(request: Request) -> VideoService:
    """Dependency to get the video service.

    Returns:
        VideoService bound to the app's record, object and moderation clients
    """
    state = request.app.state
    return VideoService(
        records=state.record_store,
        objects=state.object_store,
        settings=state.settings,
        moderator=state.moderator,
    )


def get_channel_service(request: Request) -> ChannelService:
    """Dependency to get the channel service."""
    state = request.app.state
    return ChannelService(state.record_store, strict_links=state.settings.strict_channel_links)
