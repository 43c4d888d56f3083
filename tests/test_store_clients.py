"""Tests for the record store, object store and moderation HTTP clients.

Each client talks to an ``httpx.MockTransport`` standing in for the hosted
service, so these tests check the wire format and error mapping.
"""

import json

import httpx
import pytest

from tgclips.core.exceptions import (
    InvalidRequestError,
    ModerationServiceError,
    ObjectStoreError,
    RecordStoreError,
)
from tgclips.core.schemas import ChannelLink, VideoRecord
from tgclips.moderation import ModerationClient
from tgclips.storage import ObjectStore, RecordStore

REST_URL = "https://test.supabase.co/rest/v1"
STORAGE_URL = "https://test.supabase.co/storage/v1"
SIGHTENGINE_URL = "https://api.sightengine.com/1.0/video/check-sync.json"


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestRecordStore:
    """Test PostgREST requests made by RecordStore."""

    @pytest.mark.asyncio
    async def test_list_public_videos_query(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[{"url": "u1", "author_id": 42, "views": None}])

        async with mock_client(handler) as client:
            store = RecordStore(client, REST_URL, "key")
            videos = await store.list_public_videos(limit=5)

        request = seen[0]
        assert request.method == "GET"
        assert request.url.path == "/rest/v1/publicVideos"
        assert request.url.params["is_public"] == "eq.true"
        assert request.url.params["order"] == "timestamp.desc"
        assert request.url.params["limit"] == "5"
        assert request.headers["apikey"] == "key"
        assert request.headers["authorization"] == "Bearer key"
        assert videos[0].author_id == "42"
        assert videos[0].views == []

    @pytest.mark.asyncio
    async def test_upsert_video_merges_on_url(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, json=[{"url": "u1", "likes": 2}])

        async with mock_client(handler) as client:
            store = RecordStore(client, REST_URL, "key")
            rows = await store.upsert_video({"url": "u1", "likes": 2})

        request = seen[0]
        assert request.method == "POST"
        assert request.url.params["on_conflict"] == "url"
        assert "resolution=merge-duplicates" in request.headers["prefer"]
        assert json.loads(request.content) == {"url": "u1", "likes": 2}
        assert rows[0].likes == 2

    @pytest.mark.asyncio
    async def test_get_video_absent(self) -> None:
        async with mock_client(lambda request: httpx.Response(200, json=[])) as client:
            store = RecordStore(client, REST_URL, "key")
            assert await store.get_video("missing") is None

    @pytest.mark.asyncio
    async def test_delete_video_filter(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[{"url": "u1"}])

        async with mock_client(handler) as client:
            store = RecordStore(client, REST_URL, "key")
            await store.delete_video("u1")

        assert seen[0].method == "DELETE"
        assert seen[0].url.params["url"] == "eq.u1"

    @pytest.mark.asyncio
    async def test_upsert_channel(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, json=[json.loads(request.content)])

        async with mock_client(handler) as client:
            store = RecordStore(client, REST_URL, "key")
            rows = await store.upsert_channel(ChannelLink(telegram_id=42, channel_link="https://t.me/bar"))

        assert seen[0].url.path == "/rest/v1/users"
        assert seen[0].url.params["on_conflict"] == "telegram_id"
        assert rows == [ChannelLink(telegram_id="42", channel_link="https://t.me/bar")]

    @pytest.mark.asyncio
    async def test_error_carries_upstream_message(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(409, json={"message": "duplicate key value violates unique constraint"})

        async with mock_client(handler) as client:
            store = RecordStore(client, REST_URL, "key")
            with pytest.raises(RecordStoreError) as exc_info:
                await store.insert_video(VideoRecord(url="u1"))

        assert exc_info.value.details == {
            "upstream": "duplicate key value violates unique constraint",
            "status": 409,
        }

    @pytest.mark.asyncio
    async def test_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with mock_client(handler) as client:
            store = RecordStore(client, REST_URL, "key")
            with pytest.raises(RecordStoreError) as exc_info:
                await store.ping()

        assert exc_info.value.details["upstream"] == "connection refused"


class TestObjectStore:
    """Test storage API requests made by ObjectStore."""

    def test_public_url_and_key(self) -> None:
        store = ObjectStore(httpx.AsyncClient(), STORAGE_URL, "key", bucket="videos")

        url = store.public_url("42_1.mp4")

        assert url == f"{STORAGE_URL}/object/public/videos/42_1.mp4"
        assert store.key_from_url(url) == "42_1.mp4"

    @pytest.mark.parametrize(
        "url",
        [
            "https://evil.example/videos/42_1.mp4",
            "https://evil.example/storage/v1/object/public/videos/42_1.mp4",
            f"{STORAGE_URL}/object/public/other/42_1.mp4",
            f"{STORAGE_URL}/object/public/videos/",
            f"{STORAGE_URL}/object/public/videos/../other/42_1.mp4",
        ],
    )
    def test_key_from_foreign_url_rejected(self, url: str) -> None:
        """Keys are only recovered from public URLs of the configured bucket.

        Given: A URL outside the bucket's public prefix
        When: Recovering its object key
        Then: InvalidRequestError with FOREIGN_VIDEO_URL
        """
        store = ObjectStore(httpx.AsyncClient(), STORAGE_URL, "key", bucket="videos")

        with pytest.raises(InvalidRequestError) as exc_info:
            store.key_from_url(url)

        assert exc_info.value.error_code == "FOREIGN_VIDEO_URL"

    @pytest.mark.asyncio
    async def test_upload(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"Key": "videos/42_1.mp4"})

        async with mock_client(handler) as client:
            store = ObjectStore(client, STORAGE_URL, "key")
            url = await store.upload("42_1.mp4", b"data", "video/mp4")

        request = seen[0]
        assert request.method == "POST"
        assert request.url.path == "/storage/v1/object/videos/42_1.mp4"
        assert request.headers["content-type"] == "video/mp4"
        assert request.headers["x-upsert"] == "false"
        assert request.content == b"data"
        assert url == f"{STORAGE_URL}/object/public/videos/42_1.mp4"

    @pytest.mark.asyncio
    async def test_remove(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[{"name": "42_1.mp4"}])

        async with mock_client(handler) as client:
            await ObjectStore(client, STORAGE_URL, "key").remove("42_1.mp4")

        assert seen[0].method == "DELETE"
        assert seen[0].url.path == "/storage/v1/object/videos"
        assert json.loads(seen[0].content) == {"prefixes": ["42_1.mp4"]}

    @pytest.mark.asyncio
    async def test_signed_url(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert json.loads(request.content) == {"expiresIn": 60}
            return httpx.Response(200, json={"signedURL": "/object/sign/videos/42_1.mp4?token=abc"})

        async with mock_client(handler) as client:
            url = await ObjectStore(client, STORAGE_URL, "key").create_signed_url("42_1.mp4", 60)

        assert url == f"{STORAGE_URL}/object/sign/videos/42_1.mp4?token=abc"

    @pytest.mark.asyncio
    async def test_upload_refused(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"error": "Duplicate", "message": "The resource already exists"})

        async with mock_client(handler) as client:
            with pytest.raises(ObjectStoreError) as exc_info:
                await ObjectStore(client, STORAGE_URL, "key").upload("42_1.mp4", b"x", "video/mp4")

        assert exc_info.value.details["upstream"] == "The resource already exists"
        assert exc_info.value.details["status"] == 400

    @pytest.mark.asyncio
    async def test_signed_url_not_json(self) -> None:
        """A 2xx sign response that is not JSON is an object store failure.

        Given: The sign endpoint answers 200 with an HTML body
        When: Creating a signed URL
        Then: ObjectStoreError, not a bare decoding error
        """
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>gateway</html>")

        async with mock_client(handler) as client:
            with pytest.raises(ObjectStoreError) as exc_info:
                await ObjectStore(client, STORAGE_URL, "key").create_signed_url("42_1.mp4", 60)

        assert exc_info.value.details == {"upstream": "response was not JSON"}

    @pytest.mark.asyncio
    async def test_open_download_streams_public_object(self) -> None:
        """Downloads fetch the object's public URL as a stream.

        Given: A storage API serving the object bytes
        When: Opening a download and reading it
        Then: A GET to the public path, the bytes and content type come through
        """
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, content=b"video-bytes", headers={"content-type": "video/mp4"})

        async with mock_client(handler) as client:
            response = await ObjectStore(client, STORAGE_URL, "key").open_download("42_1.mp4")
            body = await response.aread()
            await response.aclose()

        assert seen[0].method == "GET"
        assert seen[0].url.path == "/storage/v1/object/public/videos/42_1.mp4"
        assert body == b"video-bytes"
        assert response.headers["content-type"] == "video/mp4"
        assert response.is_closed

    @pytest.mark.asyncio
    async def test_open_download_missing_object(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"error": "not_found", "message": "Object not found"})

        async with mock_client(handler) as client:
            with pytest.raises(ObjectStoreError) as exc_info:
                await ObjectStore(client, STORAGE_URL, "key").open_download("42_1.mp4")

        assert exc_info.value.details == {"upstream": "Object not found", "status": 404}

    @pytest.mark.asyncio
    async def test_open_download_unreachable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with mock_client(handler) as client:
            with pytest.raises(ObjectStoreError) as exc_info:
                await ObjectStore(client, STORAGE_URL, "key").open_download("42_1.mp4")

        assert exc_info.value.details == {"upstream": "connection refused"}


class TestModerationClient:
    """Test requests made to the moderation vendor."""

    @pytest.mark.asyncio
    async def test_check_bytes(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={"status": "success", "summary": {"violence": {"prob": 0.9}}},
            )

        async with mock_client(handler) as client:
            moderator = ModerationClient(client, "user", "secret", endpoint=SIGHTENGINE_URL)
            verdict = await moderator.check_bytes(b"video", "clip.mp4", "video/mp4")

        body = seen[0].content
        assert seen[0].method == "POST"
        assert b'name="models"' in body
        assert b"nudity-2.1,offensive,weapon,gore-2.0,violence" in body
        assert b'name="media"; filename="clip.mp4"' in body
        assert verdict.approved is False
        assert verdict.flagged == ["violence"]

    @pytest.mark.asyncio
    async def test_check_url(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"status": "success", "summary": {}})

        async with mock_client(handler) as client:
            moderator = ModerationClient(client, "user", "secret", endpoint=SIGHTENGINE_URL)
            verdict = await moderator.check_url("https://cdn.example.com/v.mp4")

        params = seen[0].url.params
        assert params["url"] == "https://cdn.example.com/v.mp4"
        assert params["api_user"] == "user"
        assert verdict.approved is True

    @pytest.mark.asyncio
    async def test_vendor_failure_status(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={"status": "failure", "error": {"type": "usage_limit", "message": "Daily limit reached"}},
            )

        async with mock_client(handler) as client:
            moderator = ModerationClient(client, "user", "secret", endpoint=SIGHTENGINE_URL)
            with pytest.raises(ModerationServiceError) as exc_info:
                await moderator.check_url("https://cdn.example.com/v.mp4")

        assert exc_info.value.details == {"upstream": "Daily limit reached"}

    @pytest.mark.asyncio
    async def test_response_not_an_object(self) -> None:
        """A JSON body that is not an object is a vendor failure.

        Given: The vendor answers 200 with a JSON list
        When: Checking a video
        Then: ModerationServiceError naming the unexpected type
        """
        async with mock_client(lambda request: httpx.Response(200, json=["success"])) as client:
            moderator = ModerationClient(client, "user", "secret", endpoint=SIGHTENGINE_URL)
            with pytest.raises(ModerationServiceError) as exc_info:
                await moderator.check_url("https://cdn.example.com/v.mp4")

        assert exc_info.value.details == {"upstream": "expected a JSON object, got list"}

    @pytest.mark.asyncio
    async def test_http_error(self) -> None:
        async with mock_client(lambda request: httpx.Response(502, text="bad gateway")) as client:
            moderator = ModerationClient(client, "user", "secret", endpoint=SIGHTENGINE_URL)
            with pytest.raises(ModerationServiceError) as exc_info:
                await moderator.check_bytes(b"video", "clip.mp4", "video/mp4")

        assert exc_info.value.status_code == 500
        assert exc_info.value.details["status"] == 502
