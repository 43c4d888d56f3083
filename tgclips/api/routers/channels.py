"""Channel registration endpoints."""

from fastapi import APIRouter, Depends, Query

from tgclips.api.dependencies import get_channel_service
from tgclips.api.models.requests import (
    ChannelLinkResponse,
    RegisterChannelRequest,
    RegisterChannelResponse,
)
from tgclips.services import ChannelService

router = APIRouter(tags=["channels"])


@router.post(
    "/register-channel",
    response_model=RegisterChannelResponse,
    summary="Register a channel",
    description="Link ``telegram_id`` to a Telegram channel. Registering again replaces the link.",
    operation_id="register_channel",
)
async def register_channel(
    body: RegisterChannelRequest,
    service: ChannelService = Depends(get_channel_service),
) -> RegisterChannelResponse:
    """Upsert the channel link for a user."""
    rows = await service.register(body.telegram_id, body.channel_link)
    return RegisterChannelResponse(data=rows)


@router.get(
    "/get-channel",
    response_model=ChannelLinkResponse,
    summary="Get a channel",
    operation_id="get_channel",
    responses={404: {"description": "No channel registered for this user"}},
)
async def get_channel(
    telegram_id: str | None = Query(default=None),
    service: ChannelService = Depends(get_channel_service),
) -> ChannelLinkResponse:
    link = await service.get(telegram_id)
    return ChannelLinkResponse(channel_link=link.channel_link)
