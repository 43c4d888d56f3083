"""Content moderation through the external classification vendor."""

from tgclips.moderation.client import ModerationClient, evaluate, extract_scores

__all__ = [
    "ModerationClient",
    "evaluate",
    "extract_scores",
]
