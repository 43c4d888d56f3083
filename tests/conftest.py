"""Pytest fixtures and configuration.

This module provides:
- Settings built without touching the environment
- In-memory record store, object store and moderation doubles
- A FastAPI app and TestClient wired to those doubles
- Sample data fixtures
"""

from collections.abc import Generator
from typing import Any

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from tgclips.api.app import create_app
from tgclips.core.config import Settings
from tgclips.core.exceptions import InvalidRequestError, ObjectStoreError, RecordStoreError
from tgclips.core.schemas import ChannelLink, ModerationVerdict, VideoRecord

TEST_SUPABASE_URL = "https://test.supabase.co"
TEST_BUCKET = "videos"
PUBLIC_PREFIX = f"{TEST_SUPABASE_URL}/storage/v1/object/public/{TEST_BUCKET}/"


def make_settings(**overrides: Any) -> Settings:
    """Build settings for tests; rate limiting and metrics are off by default."""
    values: dict[str, Any] = {
        "supabase_url": TEST_SUPABASE_URL,
        "supabase_key": "test-service-key",
        "storage_bucket": TEST_BUCKET,
        "rate_limit_enabled": False,
        "prometheus_enabled": False,
        "max_upload_mb": 1,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


# =============================================================================
# In-memory doubles
# =============================================================================


class FakeRecordStore:
    """Record store kept in dictionaries; records every call it receives."""

    def __init__(self) -> None:
        self.videos: dict[str, dict[str, Any]] = {}
        self.channels: dict[str, dict[str, Any]] = {}
        self.calls: list[str] = []
        self.fail_on: set[str] = set()

    def _enter(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.fail_on:
            raise RecordStoreError(
                f"Record store {operation} failed",
                details={"upstream": f"{operation} refused"},
            )

    def add_video(self, **fields: Any) -> VideoRecord:
        record = VideoRecord.model_validate(fields)
        self.videos[record.url] = record.model_dump_for_store()
        return record

    async def list_public_videos(self, limit: int | None = None) -> list[VideoRecord]:
        self._enter("list_public_videos")
        # Hands back non-public rows too so callers must filter
        rows = sorted(self.videos.values(), key=lambda r: r.get("timestamp") or "", reverse=True)
        if limit is not None:
            rows = rows[:limit]
        return [VideoRecord.model_validate(row) for row in rows]

    async def get_video(self, url: str) -> VideoRecord | None:
        self._enter("get_video")
        row = self.videos.get(url)
        return VideoRecord.model_validate(row) if row else None

    async def insert_video(self, record: VideoRecord) -> VideoRecord:
        self._enter("insert_video")
        self.videos[record.url] = record.model_dump_for_store()
        return record

    async def upsert_video(self, fields: dict[str, Any]) -> list[VideoRecord]:
        self._enter("upsert_video")
        row = {**self.videos.get(fields["url"], {}), **fields}
        self.videos[fields["url"]] = VideoRecord.model_validate(row).model_dump_for_store()
        return [VideoRecord.model_validate(self.videos[fields["url"]])]

    async def delete_video(self, url: str) -> list[VideoRecord]:
        self._enter("delete_video")
        row = self.videos.pop(url, None)
        return [VideoRecord.model_validate(row)] if row else []

    async def upsert_channel(self, link: ChannelLink) -> list[ChannelLink]:
        self._enter("upsert_channel")
        self.channels[link.telegram_id] = link.model_dump()
        return [link]

    async def get_channel(self, telegram_id: str) -> ChannelLink | None:
        self._enter("get_channel")
        row = self.channels.get(telegram_id)
        return ChannelLink.model_validate(row) if row else None

    async def ping(self) -> None:
        self._enter("ping")


class FakeObjectStore:
    """Object store kept in a dictionary keyed by object key."""

    bucket = TEST_BUCKET

    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.content_types: dict[str, str] = {}
        self.downloads: list[httpx.Response] = []
        self.calls: list[str] = []
        self.fail_on: set[str] = set()

    def _enter(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.fail_on:
            raise ObjectStoreError(
                f"Object store {operation} failed",
                details={"upstream": f"{operation} refused"},
            )

    def public_url(self, key: str) -> str:
        return PUBLIC_PREFIX + key

    def key_from_url(self, url: str) -> str:
        if not url.startswith(PUBLIC_PREFIX) or url == PUBLIC_PREFIX:
            raise InvalidRequestError(
                "Video url does not point into the video bucket",
                error_code="FOREIGN_VIDEO_URL",
            )
        return url[len(PUBLIC_PREFIX):]

    async def open_download(self, key: str) -> httpx.Response:
        self._enter("download")
        response = httpx.Response(
            200,
            content=self.objects[key],
            headers={"content-type": self.content_types.get(key, "video/mp4")},
        )
        self.downloads.append(response)
        return response

    async def upload(self, key: str, data: bytes, content_type: str) -> str:
        self._enter("upload")
        self.objects[key] = data
        self.content_types[key] = content_type
        return self.public_url(key)

    async def remove(self, key: str) -> None:
        self._enter("remove")
        self.objects.pop(key, None)

    async def create_signed_url(self, key: str, expires_in: int) -> str:
        self._enter("sign")
        return f"{TEST_SUPABASE_URL}/storage/v1/object/sign/{self.bucket}/{key}?token=t&ttl={expires_in}"


class FakeModerator:
    """Moderation double returning a fixed verdict."""

    def __init__(self, flagged: list[str] | None = None) -> None:
        self.flagged = flagged or []
        self.checked: list[str] = []

    def _verdict(self) -> ModerationVerdict:
        scores = {"nudity": 0.01, "weapon": 0.02, "offensive": 0.0, "gore": 0.0, "violence": 0.0}
        for category in self.flagged:
            scores[category] = 0.97
        return ModerationVerdict(
            approved=not self.flagged,
            threshold=0.5,
            scores=scores,
            flagged=sorted(self.flagged),
        )

    async def check_bytes(self, data: bytes, filename: str, content_type: str) -> ModerationVerdict:
        self.checked.append(filename)
        return self._verdict()

    async def check_url(self, url: str) -> ModerationVerdict:
        self.checked.append(url)
        return self._verdict()


# =============================================================================
# Application Fixtures
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def record_store() -> FakeRecordStore:
    return FakeRecordStore()


@pytest.fixture
def object_store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def moderator() -> FakeModerator:
    return FakeModerator()


@pytest.fixture
def app(
    settings: Settings,
    record_store: FakeRecordStore,
    object_store: FakeObjectStore,
) -> FastAPI:
    """Create FastAPI application wired to the in-memory stores.

    Returns:
        FastAPI application instance
    """
    return create_app(settings, record_store=record_store, object_store=object_store)


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """Create test client for API requests.

    Yields:
        TestClient instance
    """
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture
def moderated_client(
    record_store: FakeRecordStore,
    object_store: FakeObjectStore,
    moderator: FakeModerator,
) -> Generator[TestClient, None, None]:
    """Client for an app with moderation enabled."""
    settings = make_settings(
        moderation_enabled=True,
        sightengine_api_user="user",
        sightengine_api_secret="secret",
    )
    app = create_app(
        settings,
        record_store=record_store,
        object_store=object_store,
        moderator=moderator,
    )
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


# =============================================================================
# Sample Data Fixtures
# =============================================================================


@pytest.fixture
def sample_video(record_store: FakeRecordStore) -> VideoRecord:
    """A public video owned by Telegram user 99."""
    return record_store.add_video(
        url=PUBLIC_PREFIX + "99_1700000000000.mp4",
        author_id="99",
        description="sunset",
        is_public=True,
        likes=3,
        timestamp="2024-01-02T00:00:00+00:00",
    )


@pytest.fixture
def mp4_bytes() -> bytes:
    return b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 64


# =============================================================================
# Pytest Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest markers."""
    config.addinivalue_line("markers", "integration: mark test as integration test")
