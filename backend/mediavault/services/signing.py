"""Replace a record's stored object reference with a short-lived signed URL."""

import asyncio
import logging

from mediavault.core.storage import StorageClient
from mediavault.models.video import VideoRecord


logger = logging.getLogger(__name__)


async def sign_video(record: VideoRecord, store: StorageClient, ttl_seconds: int) -> VideoRecord:
    """
    Return a copy of ``record`` whose ``video_url`` is a presigned GET URL.

    The input record is not modified. A record without a parseable
    ``bucket,key`` reference is returned as is.

    Raises:
        StoreError: If the object store cannot sign the URL.
    """
    ref = record.stored_object()
    if ref is None:
        logger.debug("Video has no stored object to sign", extra={"video_id": record.id})
        return record

    url = await asyncio.to_thread(
        store.generate_presigned_download_url, ref.bucket, ref.key, ttl_seconds
    )
    return record.model_copy(update={"video_url": url})
