"""API routers module."""

from tgclips.api.routers.channels import router as channels_router
from tgclips.api.routers.health import router as health_router
from tgclips.api.routers.moderation import router as moderation_router
from tgclips.api.routers.videos import router as videos_router

__all__ = [
    "videos_router",
    "channels_router",
    "moderation_router",
    "health_router",
]
