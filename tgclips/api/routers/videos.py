"""Video endpoints.

This module provides endpoints for:
- Listing the public feed
- Uploading a video (multipart) with optional moderation
- Updating engagement metadata
- Deleting an owned video
- Downloading a stored video
"""

import logging

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import RedirectResponse, StreamingResponse
from starlette.background import BackgroundTask

from tgclips.api.dependencies import get_video_service
from tgclips.api.models.requests import (
    DeleteVideoRequest,
    MessageResponse,
    UpdateVideoRequest,
    UpdateVideoResponse,
    UploadVideoResponse,
)
from tgclips.core.constants import MAX_LIMIT
from tgclips.core.schemas import VideoRecord
from tgclips.services import VideoService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["videos"])


@router.get(
    "/public-videos",
    response_model=list[VideoRecord],
    summary="List public videos",
    description="Public videos, newest first.",
    operation_id="list_public_videos",
)
async def list_public_videos(
    limit: int | None = Query(default=None, ge=1, le=MAX_LIMIT, description="Maximum records"),
    service: VideoService = Depends(get_video_service),
) -> list[VideoRecord]:
    """List the public feed."""
    return await service.list_public(limit)


@router.post(
    "/upload-video",
    response_model=UploadVideoResponse,
    summary="Upload a video",
    description=(
        "Multipart upload of ``file`` for ``telegram_id``. The file is moderated "
        "when moderation is enabled, stored, and published as a public record."
    ),
    operation_id="upload_video",
    responses={
        400: {"description": "Missing field, unsupported type or rejected content"},
        413: {"description": "File too large"},
        500: {"description": "Storage failure or partial failure"},
    },
)
async def upload_video(
    file: UploadFile | None = File(default=None),
    telegram_id: str | None = Form(default=None),
    description: str | None = Form(default=None),
    service: VideoService = Depends(get_video_service),
) -> UploadVideoResponse:
    """Upload a video and return its public URL.

    Reads at most one byte past the size cap so oversize files are refused
    without buffering them whole.
    """
    data: bytes | None = None
    filename = content_type = None
    if file is not None:
        try:
            data = await file.read(service.settings.max_upload_bytes + 1)
        finally:
            await file.close()
        filename = file.filename
        content_type = file.content_type

    record = await service.upload(
        telegram_id=telegram_id,
        data=data,
        filename=filename,
        content_type=content_type,
        description=description,
    )
    return UploadVideoResponse(url=record.url)


@router.post(
    "/update-video",
    response_model=UpdateVideoResponse,
    summary="Update video metadata",
    description="Upsert engagement fields on the record identified by ``url``.",
    operation_id="update_video",
)
async def update_video(
    body: UpdateVideoRequest,
    service: VideoService = Depends(get_video_service),
) -> UpdateVideoResponse:
    """Write only the fields present in the body."""
    rows = await service.update_metadata(body.model_dump(exclude_unset=True))
    return UpdateVideoResponse(data=rows)


@router.post(
    "/delete-video",
    response_model=MessageResponse,
    summary="Delete a video",
    description="Delete the record and stored file of a video owned by ``telegram_id``.",
    operation_id="delete_video",
    responses={
        403: {"description": "Caller does not own the video"},
        404: {"description": "Video not found"},
    },
)
async def delete_video(
    body: DeleteVideoRequest,
    service: VideoService = Depends(get_video_service),
) -> MessageResponse:
    """Delete an owned video."""
    await service.delete(body.url, body.telegram_id)
    return MessageResponse(message="Video deleted successfully")


@router.get(
    "/download-video",
    summary="Download a video",
    description=(
        "Redirect to the stored file (or a signed link), or stream it as an "
        "attachment, depending on the configured download mode."
    ),
    operation_id="download_video",
    response_model=None,
    responses={307: {"description": "Redirect to the file"}, 404: {"description": "Video not found"}},
)
async def download_video(
    url: str | None = Query(default=None, description="Video url"),
    service: VideoService = Depends(get_video_service),
) -> RedirectResponse | StreamingResponse:
    """Resolve a stored video for download."""
    if service.settings.download_mode != "stream":
        target = await service.download_target(url)
        return RedirectResponse(target, status_code=status.HTTP_307_TEMPORARY_REDIRECT)

    upstream, filename = await service.open_download(url)
    return StreamingResponse(
        upstream.aiter_bytes(),
        media_type=upstream.headers.get("content-type", "application/octet-stream"),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        background=BackgroundTask(upstream.aclose),
    )
