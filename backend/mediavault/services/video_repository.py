"""
Video record store backed by the MongoDB ``videos`` collection.

Records are created elsewhere on the platform; this repository only reads a
record by id and writes back the fields ingestion is allowed to change.
"""

import logging
import uuid

from typing import Any

from motor.motor_asyncio import AsyncIOMotorCollection
from pydantic import ValidationError
from pymongo.errors import PyMongoError

from mediavault.core.exceptions import NotFoundError, PersistError, RecordStoreError
from mediavault.models.video import VideoRecord


logger = logging.getLogger(__name__)


def _normalize_document(document: dict[str, Any]) -> dict[str, Any]:
    # Ids written with uuidRepresentation="standard" come back as uuid.UUID
    for field in ("_id", "user_id"):
        if isinstance(document.get(field), uuid.UUID):
            document[field] = str(document[field])
    return document


class VideoRepository:
    """
    Async access to VideoRecord documents.

    Attributes:
        collection: Motor collection holding the records

    Example usage:
        ```python
        repository = VideoRepository(db_client.get_videos_collection())
        record = await repository.get_video(video_id)
        ```
    """

    def __init__(self, collection: AsyncIOMotorCollection) -> None:
        self.collection = collection

    async def get_video(self, video_id: str) -> VideoRecord:
        """
        Load one record by id.

        Raises:
            NotFoundError: If no record has this id.
            RecordStoreError: If the query fails or the document is malformed.
        """
        try:
            document = await self.collection.find_one({"_id": video_id})
        except PyMongoError as e:
            logger.exception("Failed to load video record", extra={"video_id": video_id})
            raise RecordStoreError(f"Couldn't find video: {e}") from e

        if document is None:
            raise NotFoundError(f"Couldn't find video {video_id}")

        try:
            return VideoRecord.model_validate(_normalize_document(document))
        except ValidationError as e:
            logger.error("Stored video record is malformed", extra={"video_id": video_id})
            raise RecordStoreError(f"Stored video record {video_id} is malformed") from e

    async def update_video(self, record: VideoRecord) -> None:
        """
        Write the mutable fields of ``record`` back to its document.

        Raises:
            PersistError: If the update fails or the record no longer exists.
        """
        changes = {
            "title": record.title,
            "description": record.description,
            "video_url": record.video_url,
            "thumbnail_url": record.thumbnail_url,
            "updated_at": record.updated_at,
        }
        try:
            result = await self.collection.update_one({"_id": record.id}, {"$set": changes})
        except PyMongoError as e:
            logger.exception("Failed to update video record", extra={"video_id": record.id})
            raise PersistError(f"Couldn't update video: {e}") from e

        if result.matched_count == 0:
            raise PersistError(f"Couldn't update video {record.id}: record no longer exists")
