"""
FastAPI Video Router for MediaVault

Endpoints:
- POST /video_upload/{video_id} - Upload the video file for an existing record
- GET /videos/{video_id} - Fetch an owned record with a signed retrieval URL

Authentication is resolved inside the ingestion workflow from the raw
Authorization header, so a missing or malformed credential fails the same
way as an invalid one. Errors are IngestionError subclasses and are rendered
by the application-level exception handler.

Presigned retrieval URLs expire after 15 minutes by default.
"""

import logging

from datetime import datetime

from fastapi import APIRouter, Depends, File, Header, UploadFile
from pydantic import BaseModel, Field

from mediavault.config import Settings, get_settings
from mediavault.core.auth import TokenAuthenticator
from mediavault.core.database import get_db_client
from mediavault.core.storage import StorageClient, get_storage_client
from mediavault.models.video import VideoRecord
from mediavault.services.ingestion_service import IngestionOrchestrator, IngestionRequest
from mediavault.services.media_tools import (
    FFmpegFastStartTranscoder,
    FFprobeProber,
    Prober,
    Transcoder,
)
from mediavault.services.video_repository import VideoRepository


# Configure module logger
logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Response Models
# ============================================================================


class VideoResponse(BaseModel):
    """
    Video record as returned to clients.

    ``video_url`` is a presigned GET URL when the record has a stored video.
    """

    id: str = Field(..., description="Video UUID")
    user_id: str = Field(..., description="Owning user's identifier")
    title: str = Field(default="", description="Video title")
    description: str = Field(default="", description="Video description")
    video_url: str | None = Field(default=None, description="Signed retrieval URL")
    thumbnail_url: str | None = Field(default=None, description="Thumbnail reference")
    created_at: datetime = Field(..., description="Creation timestamp (UTC)")
    updated_at: datetime = Field(..., description="Last update timestamp (UTC)")

    @classmethod
    def from_record(cls, record: VideoRecord) -> "VideoResponse":
        return cls.model_validate(record.model_dump())


# ============================================================================
# Dependency Injection Functions
# ============================================================================


def get_video_repository() -> VideoRepository:
    """Repository over the videos collection of the shared database client."""
    return VideoRepository(get_db_client().get_videos_collection())


def get_object_store(settings: Settings = Depends(get_settings)) -> StorageClient:
    """Shared S3-compatible storage client."""
    return get_storage_client(settings)


def get_prober(settings: Settings = Depends(get_settings)) -> Prober:
    return FFprobeProber.from_settings(settings)


def get_transcoder(settings: Settings = Depends(get_settings)) -> Transcoder:
    return FFmpegFastStartTranscoder.from_settings(settings)


def get_ingestion_orchestrator(
    settings: Settings = Depends(get_settings),
    repository: VideoRepository = Depends(get_video_repository),
    object_store: StorageClient = Depends(get_object_store),
    prober: Prober = Depends(get_prober),
    transcoder: Transcoder = Depends(get_transcoder),
) -> IngestionOrchestrator:
    """
    Dependency injection for IngestionOrchestrator.

    Builds a per-request orchestrator from the frozen settings and the
    shared infrastructure clients.

    Returns:
        IngestionOrchestrator: Configured orchestrator instance.
    """
    return IngestionOrchestrator(
        settings=settings,
        authenticator=TokenAuthenticator(settings),
        repository=repository,
        object_store=object_store,
        prober=prober,
        transcoder=transcoder,
    )


# ============================================================================
# Endpoints
# ============================================================================


@router.post(
    "/video_upload/{video_id}",
    response_model=VideoResponse,
    summary="Upload a video file",
    description=(
        "Upload the video for an existing record owned by the caller. The file is "
        "remuxed for fast start, stored under an unguessable key and the record is "
        "returned with a 15-minute signed retrieval URL."
    ),
)
async def upload_video(
    video_id: str,
    video: UploadFile | None = File(default=None, description="Video file (video/mp4)"),
    authorization: str | None = Header(default=None),
    orchestrator: IngestionOrchestrator = Depends(get_ingestion_orchestrator),
) -> VideoResponse:
    """
    Upload a video for a record.

    Args:
        video_id: UUID of the target record.
        video: Multipart ``video`` field.
        authorization: ``Bearer <jwt>`` header value.
        orchestrator: Injected ingestion orchestrator.

    Returns:
        VideoResponse: Updated record with a signed ``video_url``.
    """
    logger.info(
        "Video upload request",
        extra={"video_id": video_id, "upload_filename": video.filename if video else None},
    )

    request = IngestionRequest(
        video_id=video_id,
        authorization=authorization,
        content_type=video.content_type if video else None,
        stream=video,
        filename=video.filename if video else None,
    )
    try:
        result = await orchestrator.ingest(request)
    finally:
        if video is not None:
            await video.close()

    return VideoResponse.from_record(result.signed_record)


@router.get(
    "/videos/{video_id}",
    response_model=VideoResponse,
    summary="Get a video record",
    description="Fetch an owned record with its video URL signed for retrieval.",
)
async def get_video(
    video_id: str,
    authorization: str | None = Header(default=None),
    orchestrator: IngestionOrchestrator = Depends(get_ingestion_orchestrator),
) -> VideoResponse:
    record = await orchestrator.get_signed_video(video_id, authorization)
    return VideoResponse.from_record(record)
