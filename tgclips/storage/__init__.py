"""Hosted record and object store clients.

Usage:
    async with httpx.AsyncClient() as client:
        records = RecordStore(client, settings.rest_url, settings.supabase_key)
        videos = await records.list_public_videos()
"""

from tgclips.storage.objects import ObjectStore
from tgclips.storage.records import RecordStore

__all__ = [
    "ObjectStore",
    "RecordStore",
]
