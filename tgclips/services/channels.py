"""Channel link registration."""

import logging

from tgclips.core.constants import CHANNEL_LINK_PATTERN
from tgclips.core.exceptions import InvalidRequestError, NotFoundError
from tgclips.core.schemas import ChannelLink
from tgclips.storage.records import RecordStore

logger = logging.getLogger(__name__)


class ChannelService:
    """Register and look up the Telegram channel linked to a user."""

    def __init__(self, records: RecordStore, strict_links: bool = True) -> None:
        self.records = records
        self.strict_links = strict_links

    async def register(self, telegram_id: str | None, channel_link: str | None) -> list[ChannelLink]:
        """Upsert the channel link for ``telegram_id``; the latest link wins.

        Raises:
            InvalidRequestError: Missing field, or malformed link in strict mode
        """
        if not telegram_id or not channel_link:
            raise InvalidRequestError("Missing telegram_id or channel_link")

        channel_link = channel_link.strip()
        if self.strict_links and not CHANNEL_LINK_PATTERN.match(channel_link):
            raise InvalidRequestError(
                "Invalid channel link, expected https://t.me/<name>",
                error_code="INVALID_CHANNEL_LINK",
                details={"channel_link": channel_link},
            )

        rows = await self.records.upsert_channel(
            ChannelLink(telegram_id=telegram_id, channel_link=channel_link)
        )
        logger.info("Channel registered", extra={"telegram_id": telegram_id})
        return rows

    async def get(self, telegram_id: str | None) -> ChannelLink:
        """Fetch the channel link for ``telegram_id``."""
        if not telegram_id:
            raise InvalidRequestError("Missing telegram_id")
        link = await self.records.get_channel(telegram_id)
        if link is None:
            raise NotFoundError(
                "Channel not found",
                error_code="CHANNEL_NOT_FOUND",
                details={"telegram_id": telegram_id},
            )
        return link
