"""Moderation endpoints."""

from fastapi import APIRouter, Depends

from tgclips.api.dependencies import get_video_service
from tgclips.api.models.requests import ModerateVideoRequest
from tgclips.core.schemas import ModerationVerdict
from tgclips.services import VideoService

router = APIRouter(tags=["moderation"])


@router.post(
    "/moderate-video",
    response_model=ModerationVerdict,
    summary="Moderate a remote video",
    description="Score a publicly reachable video without storing it.",
    operation_id="moderate_video",
    responses={503: {"description": "Moderation is not configured"}},
)
async def moderate_video(
    body: ModerateVideoRequest,
    service: VideoService = Depends(get_video_service),
) -> ModerationVerdict:
    """Run the moderation check on ``videoUrl``."""
    return await service.moderate_url(body.videoUrl)
