"""Video operations shared by every hosting surface.

Upload and delete touch two stores. Both run as small sagas: when the second
step fails, the first is undone and a ``PartialFailureError`` reports whether
the undo worked.
"""

import logging
import mimetypes
import re
import time
from pathlib import PurePath
from typing import Any

import httpx

from tgclips.api.middleware.prometheus import record_video_upload
from tgclips.core.config import Settings
from tgclips.core.constants import ALLOWED_VIDEO_TYPES, LIST_FIELDS, NUMERIC_FIELDS
from tgclips.core.exceptions import (
    ClipsError,
    ContentRejectedError,
    ForbiddenError,
    InvalidRequestError,
    NotFoundError,
    PartialFailureError,
    PayloadTooLargeError,
    ServiceUnavailableError,
)
from tgclips.core.schemas import ModerationVerdict, VideoRecord, utc_now_iso
from tgclips.moderation.client import ModerationClient
from tgclips.storage.objects import ObjectStore
from tgclips.storage.records import RecordStore

logger = logging.getLogger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_-]")


def normalize_content_type(content_type: str | None, filename: str | None) -> str | None:
    """Resolve the MIME type of an upload.

    Strips parameters, and guesses from the file name when the client sent
    nothing useful.
    """
    if content_type:
        content_type = content_type.split(";", 1)[0].strip().lower()
    if not content_type or content_type == "application/octet-stream":
        guessed, _ = mimetypes.guess_type(filename or "")
        return guessed or content_type
    return content_type


def build_object_key(telegram_id: str, filename: str | None, content_type: str) -> str:
    """Generate a collision-resistant key ``{uploader}_{epoch_ms}.{ext}``."""
    ext = PurePath(filename or "").suffix.lstrip(".").lower()
    if not ext.isalnum() or len(ext) > 5:
        ext = ALLOWED_VIDEO_TYPES[content_type]
    owner = _UNSAFE_KEY_CHARS.sub("", telegram_id) or "anon"
    return f"{owner}_{int(time.time() * 1000)}.{ext}"


class VideoService:
    """Video feed, upload, engagement update, deletion and download resolution."""

    def __init__(
        self,
        records: RecordStore,
        objects: ObjectStore,
        settings: Settings,
        moderator: ModerationClient | None = None,
    ) -> None:
        self.records = records
        self.objects = objects
        self.settings = settings
        self.moderator = moderator

    async def list_public(self, limit: int | None = None) -> list[VideoRecord]:
        """List public videos, newest first.

        Args:
            limit: Optional cap; defaults to the configured feed limit

        Returns:
            Public records only
        """
        if limit is None:
            limit = self.settings.public_videos_limit
        videos = await self.records.list_public_videos(limit)
        return [video for video in videos if video.is_public]

    async def upload(
        self,
        telegram_id: str | None,
        data: bytes | None,
        filename: str | None,
        content_type: str | None,
        description: str | None = None,
    ) -> VideoRecord:
        """Moderate, store and publish an uploaded video.

        Args:
            telegram_id: Uploader id
            data: File content
            filename: Original file name
            content_type: MIME type reported by the client
            description: Optional description

        Returns:
            The inserted record

        Raises:
            InvalidRequestError: Missing uploader/file or unsupported type
            PayloadTooLargeError: File above the size cap
            ContentRejectedError: Moderation rejected the file
            ObjectStoreError: Blob upload failed (nothing persisted)
            PartialFailureError: Record insert failed after the blob was stored
        """
        if not telegram_id or not data:
            raise InvalidRequestError("Missing telegram_id or file")

        mime = normalize_content_type(content_type, filename)
        if mime not in ALLOWED_VIDEO_TYPES:
            raise InvalidRequestError(
                f"Unsupported file type: {mime or 'unknown'}",
                error_code="UNSUPPORTED_MEDIA_TYPE",
                details={"allowed": sorted(ALLOWED_VIDEO_TYPES)},
            )

        if len(data) > self.settings.max_upload_bytes:
            raise PayloadTooLargeError(
                f"File exceeds {self.settings.max_upload_mb} MB",
                details={"max_bytes": self.settings.max_upload_bytes},
            )

        if self.settings.moderation_enabled and self.moderator is not None:
            verdict = await self.moderator.check_bytes(data, filename or "video", mime)
            if not verdict.approved:
                record_video_upload("rejected")
                raise ContentRejectedError(
                    "Video failed moderation: disallowed content detected",
                    details={"flagged": verdict.flagged, "scores": verdict.scores},
                )

        key = build_object_key(telegram_id, filename, mime)
        try:
            public_url = await self.objects.upload(key, data, mime)
        except ClipsError:
            record_video_upload("failed")
            raise

        record = VideoRecord.new_upload(public_url, telegram_id, description)
        try:
            stored = await self.records.insert_video(record)
        except ClipsError as e:
            record_video_upload("failed")
            compensated = await self._undo_upload(key)
            raise PartialFailureError(
                "Video stored but its record could not be saved",
                details={
                    "step": "insert_record",
                    "upstream": e.message,
                    "compensated": compensated,
                    "url": public_url,
                },
            ) from e

        record_video_upload("accepted")
        logger.info("Video uploaded", extra={"url": public_url, "author_id": telegram_id})
        return stored

    async def _undo_upload(self, key: str) -> bool:
        try:
            await self.objects.remove(key)
        except ClipsError:
            logger.exception("Compensation failed, orphaned object %s", key)
            return False
        logger.warning("Compensated failed upload by removing %s", key)
        return True

    async def update_metadata(self, fields: dict[str, Any]) -> list[VideoRecord]:
        """Upsert engagement fields on the record identified by ``url``.

        Only supplied fields are written. A null list field becomes ``[]`` and
        a null counter becomes ``0``. No ownership check is made.

        Args:
            fields: ``url`` plus any engagement fields

        Returns:
            Affected records

        Raises:
            InvalidRequestError: If ``url`` is missing
        """
        fields = dict(fields)
        url = fields.pop("url", None)
        if not url:
            raise InvalidRequestError("Missing video url")

        for name in LIST_FIELDS:
            if name in fields and fields[name] is None:
                fields[name] = []
        for name in NUMERIC_FIELDS:
            if name in fields and fields[name] is None:
                fields[name] = 0
        if "description" in fields and fields["description"] is None:
            fields["description"] = ""
        fields = {name: value for name, value in fields.items() if value is not None}

        fields["url"] = url
        fields["updated_at"] = utc_now_iso()
        return await self.records.upsert_video(fields)

    async def delete(self, url: str | None, telegram_id: str | None) -> VideoRecord:
        """Delete a video owned by ``telegram_id``.

        The record goes first, then the blob. If the blob removal fails the
        saved record is inserted back.

        Returns:
            The deleted record

        Raises:
            InvalidRequestError: Missing url or telegram_id, or a url outside the bucket
            NotFoundError: No record for ``url``
            ForbiddenError: ``telegram_id`` is not the author, or the record has none
            PartialFailureError: Blob removal failed after the record was deleted
        """
        if not url or not telegram_id:
            raise InvalidRequestError("Missing url or telegram_id")

        video = await self.records.get_video(url)
        if video is None:
            raise NotFoundError("Video not found", details={"url": url})
        # Ownerless rows belong to nobody
        if video.author_id is None or video.author_id != telegram_id:
            logger.warning(
                "Delete refused for non-owner",
                extra={"url": url, "telegram_id": telegram_id},
            )
            raise ForbiddenError("Unauthorized: you do not own this video")

        key = self.objects.key_from_url(url)

        await self.records.delete_video(url)

        try:
            await self.objects.remove(key)
        except ClipsError as e:
            compensated = await self._undo_delete(video)
            raise PartialFailureError(
                "Video record deleted but its file could not be removed",
                details={
                    "step": "remove_object",
                    "upstream": e.message,
                    "compensated": compensated,
                    "url": url,
                },
            ) from e

        logger.info("Video deleted", extra={"url": url, "author_id": telegram_id})
        return video

    async def _undo_delete(self, video: VideoRecord) -> bool:
        try:
            await self.records.insert_video(video)
        except ClipsError:
            logger.exception("Compensation failed, record %s lost", video.url)
            return False
        logger.warning("Compensated failed delete by restoring %s", video.url)
        return True

    async def find(self, url: str | None) -> VideoRecord:
        """Fetch an existing video or raise.

        Raises:
            InvalidRequestError: Missing url
            NotFoundError: No record for ``url``
        """
        if not url:
            raise InvalidRequestError("Missing video url")
        video = await self.records.get_video(url)
        if video is None:
            raise NotFoundError("Video not found", details={"url": url})
        return video

    async def download_target(self, url: str | None) -> str:
        """URL a download request should be redirected to.

        ``signed`` mode issues a time-limited link; otherwise the stored
        public URL is returned.
        """
        video = await self.find(url)
        if self.settings.download_mode == "signed":
            key = self.objects.key_from_url(video.url)
            return await self.objects.create_signed_url(key, self.settings.signed_url_ttl)
        return video.url

    async def open_download(self, url: str | None) -> tuple[httpx.Response, str]:
        """Open a byte stream of a stored video.

        Only objects of the configured bucket are fetched.

        Returns:
            The streaming upstream response (caller closes it) and the file name
        """
        video = await self.find(url)
        key = self.objects.key_from_url(video.url)
        response = await self.objects.open_download(key)
        return response, key.rsplit("/", 1)[-1]

    async def moderate_url(self, video_url: str | None) -> ModerationVerdict:
        """Run moderation on a remote video without storing anything."""
        if not video_url:
            raise InvalidRequestError("Missing videoUrl")
        if not self.settings.moderation_enabled or self.moderator is None:
            raise ServiceUnavailableError("Moderation is not configured")
        return await self.moderator.check_url(video_url)
