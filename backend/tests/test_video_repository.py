"""Tests for the MongoDB-backed video repository using an AsyncMock collection."""

import uuid

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from pymongo.errors import ServerSelectionTimeoutError

from mediavault.core.exceptions import NotFoundError, PersistError, RecordStoreError
from mediavault.models.video import VideoRecord
from mediavault.services.video_repository import VideoRepository


@pytest.fixture
def collection() -> MagicMock:
    collection = MagicMock()
    collection.find_one = AsyncMock()
    collection.update_one = AsyncMock(return_value=MagicMock(matched_count=1))
    return collection


@pytest.fixture
def video_repository(collection: MagicMock) -> VideoRepository:
    return VideoRepository(collection)


class TestGetVideo:
    @pytest.mark.asyncio
    async def test_returns_record(self, video_repository, collection) -> None:
        collection.find_one.return_value = {
            "_id": "0b6d4a8e-4c1f-4a53-9a55-5a9a1c1f0d11",
            "user_id": "2f1e2a9e-5b3e-4b5e-8d7e-0c6f1e2d3c4b",
            "title": "Demo",
            "video_url": "videos,landscape/a.mp4",
        }

        record = await video_repository.get_video("0b6d4a8e-4c1f-4a53-9a55-5a9a1c1f0d11")

        assert record.title == "Demo"
        assert record.video_url == "videos,landscape/a.mp4"
        collection.find_one.assert_awaited_once_with(
            {"_id": "0b6d4a8e-4c1f-4a53-9a55-5a9a1c1f0d11"}
        )

    @pytest.mark.asyncio
    async def test_uuid_ids_are_stringified(self, video_repository, collection) -> None:
        video_id, user_id = uuid.uuid4(), uuid.uuid4()
        collection.find_one.return_value = {"_id": video_id, "user_id": user_id}

        record = await video_repository.get_video(str(video_id))

        assert record.id == str(video_id)
        assert record.user_id == str(user_id)

    @pytest.mark.asyncio
    async def test_not_found(self, video_repository, collection) -> None:
        collection.find_one.return_value = None
        with pytest.raises(NotFoundError):
            await video_repository.get_video("missing")

    @pytest.mark.asyncio
    async def test_database_error(self, video_repository, collection) -> None:
        collection.find_one.side_effect = ServerSelectionTimeoutError("no servers")
        with pytest.raises(RecordStoreError):
            await video_repository.get_video("any")

    @pytest.mark.asyncio
    async def test_malformed_document(self, video_repository, collection) -> None:
        collection.find_one.return_value = {"_id": "v-1"}
        with pytest.raises(RecordStoreError):
            await video_repository.get_video("v-1")


class TestUpdateVideo:
    @pytest.mark.asyncio
    async def test_sets_mutable_fields(self, video_repository, collection) -> None:
        updated_at = datetime(2025, 2, 1, tzinfo=UTC)
        record = VideoRecord(
            id="v-1", user_id="u-1", video_url="videos,other/k.mp4", updated_at=updated_at
        )

        await video_repository.update_video(record)

        query, update = collection.update_one.await_args.args
        assert query == {"_id": "v-1"}
        assert update["$set"]["video_url"] == "videos,other/k.mp4"
        assert update["$set"]["updated_at"] == updated_at
        assert "user_id" not in update["$set"]

    @pytest.mark.asyncio
    async def test_missing_record(self, video_repository, collection) -> None:
        collection.update_one.return_value = MagicMock(matched_count=0)
        with pytest.raises(PersistError):
            await video_repository.update_video(VideoRecord(id="v-1", user_id="u-1"))

    @pytest.mark.asyncio
    async def test_database_error(self, video_repository, collection) -> None:
        collection.update_one.side_effect = ServerSelectionTimeoutError("no servers")
        with pytest.raises(PersistError):
            await video_repository.update_video(VideoRecord(id="v-1", user_id="u-1"))
