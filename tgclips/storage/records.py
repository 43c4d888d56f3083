"""Record store client.

Talks to the hosted database through its PostgREST interface. Two tables are
used: the public videos table (keyed by ``url``) and the channels table
(keyed by ``telegram_id``).
"""

import logging
import time
from typing import Any

import httpx

from tgclips.api.middleware.prometheus import record_store_operation
from tgclips.core.exceptions import RecordStoreError
from tgclips.core.logging_config import log_store_event
from tgclips.core.schemas import ChannelLink, VideoRecord

logger = logging.getLogger(__name__)

RETURN_ROWS = "return=representation"
MERGE_DUPLICATES = "resolution=merge-duplicates,return=representation"


def upstream_message(response: httpx.Response) -> str:
    """Pull the error message out of an upstream error response."""
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(payload, dict):
        for key in ("message", "error", "msg", "details"):
            if payload.get(key):
                return str(payload[key])
    return str(payload)


class RecordStore:
    """Manage record-store operations for videos and channel links.

    This class provides:
    - Public feed listing
    - Video lookup, insert, upsert and delete by ``url``
    - Channel link upsert and lookup by ``telegram_id``
    - A readiness ping

    The HTTP client is passed in and owned by the caller.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        rest_url: str,
        api_key: str,
        videos_table: str = "publicVideos",
        channels_table: str = "users",
    ) -> None:
        self.client = client
        self.rest_url = rest_url.rstrip("/")
        self.videos_table = videos_table
        self.channels_table = channels_table
        self._headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
        }

    async def _request(
        self,
        method: str,
        table: str,
        operation: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> list[dict[str, Any]]:
        """Send one PostgREST request and return the rows in its body.

        Raises:
            RecordStoreError: On transport failure or a non-2xx response
        """
        headers = dict(self._headers)
        if prefer:
            headers["Prefer"] = prefer

        start = time.perf_counter()
        try:
            response = await self.client.request(
                method,
                f"{self.rest_url}/{table}",
                params=params,
                json=json,
                headers=headers,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            message = upstream_message(e.response)
            self._record(operation, table, start, error=message)
            raise RecordStoreError(
                f"Record store {operation} on {table} failed",
                details={"upstream": message, "status": e.response.status_code},
            ) from e
        except httpx.HTTPError as e:
            self._record(operation, table, start, error=str(e))
            raise RecordStoreError(
                f"Record store {operation} on {table} failed",
                details={"upstream": str(e) or type(e).__name__},
            ) from e

        self._record(operation, table, start)

        if not response.content:
            return []
        data = response.json()
        return data if isinstance(data, list) else [data]

    def _record(self, operation: str, table: str, start: float, error: str | None = None) -> None:
        duration = time.perf_counter() - start
        record_store_operation(
            store="records",
            operation=operation,
            duration_seconds=duration,
            status="error" if error else "success",
        )
        log_store_event(logger, "records", operation, table, duration * 1000, error=error)

    # ------------------------------------------------------------------
    # Videos
    # ------------------------------------------------------------------

    async def list_public_videos(self, limit: int | None = None) -> list[VideoRecord]:
        """List public videos, newest first.

        Args:
            limit: Maximum rows to return (None for all)

        Returns:
            Public video records
        """
        params: dict[str, Any] = {
            "select": "*",
            "is_public": "eq.true",
            "order": "timestamp.desc",
        }
        if limit is not None:
            params["limit"] = limit

        rows = await self._request("GET", self.videos_table, "select", params=params)
        return [VideoRecord.model_validate(row) for row in rows]

    async def get_video(self, url: str) -> VideoRecord | None:
        """Fetch one video by its url.

        Args:
            url: Video url (unique key)

        Returns:
            The record, or None if absent
        """
        rows = await self._request(
            "GET",
            self.videos_table,
            "select",
            params={"select": "*", "url": f"eq.{url}", "limit": 1},
        )
        return VideoRecord.model_validate(rows[0]) if rows else None

    async def insert_video(self, record: VideoRecord) -> VideoRecord:
        """Insert a new video row.

        Args:
            record: Record to insert

        Returns:
            The stored record as returned by the store
        """
        rows = await self._request(
            "POST",
            self.videos_table,
            "insert",
            json=record.model_dump_for_store(),
            prefer=RETURN_ROWS,
        )
        return VideoRecord.model_validate(rows[0]) if rows else record

    async def upsert_video(self, fields: dict[str, Any]) -> list[VideoRecord]:
        """Insert or update a video row keyed by ``url``.

        Only the given columns are written; other columns keep their values.

        Args:
            fields: Column values, must include ``url``

        Returns:
            Affected records
        """
        rows = await self._request(
            "POST",
            self.videos_table,
            "upsert",
            params={"on_conflict": "url"},
            json=fields,
            prefer=MERGE_DUPLICATES,
        )
        return [VideoRecord.model_validate(row) for row in rows]

    async def delete_video(self, url: str) -> list[VideoRecord]:
        """Delete a video row by url.

        Returns:
            Deleted records
        """
        rows = await self._request(
            "DELETE",
            self.videos_table,
            "delete",
            params={"url": f"eq.{url}"},
            prefer=RETURN_ROWS,
        )
        return [VideoRecord.model_validate(row) for row in rows]

    # ------------------------------------------------------------------
    # Channels
    # ------------------------------------------------------------------

    async def upsert_channel(self, link: ChannelLink) -> list[ChannelLink]:
        """Insert or overwrite the channel link for a Telegram user."""
        rows = await self._request(
            "POST",
            self.channels_table,
            "upsert",
            params={"on_conflict": "telegram_id"},
            json=link.model_dump(),
            prefer=MERGE_DUPLICATES,
        )
        return [ChannelLink.model_validate(row) for row in rows]

    async def get_channel(self, telegram_id: str) -> ChannelLink | None:
        """Fetch the channel link for a Telegram user."""
        rows = await self._request(
            "GET",
            self.channels_table,
            "select",
            params={"select": "*", "telegram_id": f"eq.{telegram_id}", "limit": 1},
        )
        return ChannelLink.model_validate(rows[0]) if rows else None

    async def ping(self) -> None:
        """Check the videos table is reachable.

        Raises:
            RecordStoreError: If the store cannot be queried
        """
        await self._request(
            "GET",
            self.videos_table,
            "ping",
            params={"select": "url", "limit": 1},
        )
