"""Request handlers shared by the HTTP app and the CLI."""

from tgclips.services.channels import ChannelService
from tgclips.services.videos import VideoService

__all__ = [
    "ChannelService",
    "VideoService",
]
