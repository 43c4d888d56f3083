"""Application constants and metadata.

This module centralizes all application-wide constants for:
- Application metadata
- Accepted upload types
- Moderation categories
- Record defaults
"""

import re
from datetime import datetime, timezone

from tgclips import __version__

# Application start time (for uptime calculation)
START_TIME = datetime.now(timezone.utc)

# =============================================================================
# Application Metadata
# =============================================================================

APP_NAME = "TGClips API"
APP_DESCRIPTION = """
Backend for the TGClips short-video app.

## Features

- **Public feed**: List public videos, newest first
- **Uploads**: Store a video file and publish its record, with optional moderation
- **Engagement**: Update views, likes, comments and playback counters
- **Channels**: Link a Telegram user to their channel
"""
APP_VERSION = __version__
WELCOME_MESSAGE = "Welcome to the TGClips API"

API_PREFIX = "/api"

MAX_LIMIT = 1000

API_TAGS = [
    {"name": "videos", "description": "Video feed, uploads, engagement and downloads"},
    {"name": "channels", "description": "Telegram channel registration"},
    {"name": "moderation", "description": "Content moderation checks"},
    {"name": "health", "description": "Liveness and readiness checks"},
]

# =============================================================================
# Uploads
# =============================================================================

ALLOWED_VIDEO_TYPES: dict[str, str] = {
    "video/mp4": "mp4",
    "video/quicktime": "mov",
    "video/webm": "webm",
}

# =============================================================================
# Channels
# =============================================================================

CHANNEL_LINK_PATTERN = re.compile(r"^https://t\.me/[A-Za-z0-9_]+$")

# =============================================================================
# Moderation
# =============================================================================

MODERATION_MODELS = "nudity-2.1,offensive,weapon,gore-2.0,violence"

# category -> key holding the probability inside the category object
MODERATION_SCORE_KEYS: dict[str, str] = {
    "nudity": "raw",
    "offensive": "prob",
    "weapon": "prob",
    "gore": "prob",
    "violence": "prob",
}

# =============================================================================
# Video records
# =============================================================================

LIST_FIELDS = ("views", "user_likes", "user_dislikes", "comments", "chat_messages")
NUMERIC_FIELDS = (
    "likes",
    "dislikes",
    "shares",
    "view_time",
    "replays",
    "duration",
    "last_position",
)
