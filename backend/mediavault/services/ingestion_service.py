"""
MediaVault Video Ingestion Service

This module implements the upload workflow for a single video record:

    authenticating → authorizing → validating → staging → inspecting →
    transcoding → key_derivation → uploading → persisting → signing → done

Each stage either completes or raises an IngestionError; the first failure
ends the workflow and the error is tagged with the stage it happened in.
Local files (the staged upload and its fast-start copy) are registered on an
ExitStack as soon as they are created, so they are removed on every exit path.

The durable record keeps the unsigned ``bucket,key`` reference. The caller
gets a copy of the record whose ``video_url`` is a presigned URL.

The upload body is streamed to the staging file with aiofiles. Other blocking
work (ffprobe/ffmpeg, boto3) runs in worker threads via asyncio.to_thread. Nothing is retried: if persisting fails after the upload,
the object stays in the bucket and the orphan is logged with its location.
"""

import asyncio
import logging
import os
import tempfile
import uuid

from collections.abc import Callable
from contextlib import ExitStack
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

import aiofiles

from mediavault.config import Settings
from mediavault.core.auth import TokenAuthenticator, get_bearer_token
from mediavault.core.exceptions import (
    ForbiddenError,
    IngestionError,
    InvalidRequestError,
    StagingError,
    StoreError,
    UnsupportedMediaTypeError,
    UploadTooLargeError,
)
from mediavault.core.storage import StorageClient
from mediavault.models.video import (
    AspectClassification,
    IngestionStage,
    StoredObjectRef,
    VideoRecord,
)
from mediavault.services.content_keys import generate_object_key
from mediavault.services.format_inspector import FormatInspector
from mediavault.services.media_tools import Prober, Transcoder, transcoded_path
from mediavault.services.media_types import parse_media_type, resolve_extension
from mediavault.services.signing import sign_video
from mediavault.services.video_repository import VideoRepository
from mediavault.utils.logger import add_log_context


logger = logging.getLogger(__name__)

STAGED_FILE_PREFIX = "video-upload-"
COPY_CHUNK_SIZE = 1024 * 1024


class UploadReader(Protocol):
    """Async byte source; FastAPI's UploadFile satisfies it."""

    async def read(self, size: int = -1) -> bytes: ...


# =============================================================================
# Request / Result
# =============================================================================


@dataclass
class IngestionRequest:
    """
    One upload as received by the HTTP layer.

    Attributes:
        video_id: Path parameter naming the target record
        authorization: Raw Authorization header value, if any
        content_type: Declared media type of the uploaded part
        stream: Async reader over the upload body, or None when the form field was absent
        filename: Client-supplied file name, informational only
    """

    video_id: str
    authorization: str | None
    content_type: str | None = None
    stream: UploadReader | None = None
    filename: str | None = None


@dataclass(frozen=True)
class IngestionResult:
    """Outcome of a successful ingestion."""

    record: VideoRecord
    signed_record: VideoRecord
    stored_ref: StoredObjectRef
    classification: AspectClassification


# =============================================================================
# Helpers
# =============================================================================


def _canonical_uuid(value: str) -> str | None:
    try:
        return str(uuid.UUID(value))
    except (TypeError, ValueError, AttributeError):
        return None


def _same_owner(record_owner: str, user_id: str) -> bool:
    return (_canonical_uuid(record_owner) or record_owner) == user_id


def _remove_file(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError:
        logger.warning("Failed to remove temporary file %s", path, exc_info=True)


# =============================================================================
# Orchestrator
# =============================================================================


class IngestionOrchestrator:
    """
    Runs the video ingestion workflow against injected collaborators.

    Attributes:
        settings: Frozen application settings
        authenticator: Resolves bearer tokens to user ids
        repository: Video record store
        object_store: S3-compatible store for processed videos
        inspector: FormatInspector over the injected Prober
        transcoder: Fast-start remuxer
        key_generator: Builds object keys from classification and extension

    Example usage:
        ```python
        orchestrator = IngestionOrchestrator(
            settings, TokenAuthenticator(settings), repository, storage,
            FFprobeProber.from_settings(settings),
            FFmpegFastStartTranscoder.from_settings(settings),
        )
        result = await orchestrator.ingest(request)
        ```
    """

    def __init__(
        self,
        settings: Settings,
        authenticator: TokenAuthenticator,
        repository: VideoRepository,
        object_store: StorageClient,
        prober: Prober,
        transcoder: Transcoder,
        key_generator: Callable[[AspectClassification, str], str] = generate_object_key,
    ) -> None:
        self.settings = settings
        self.authenticator = authenticator
        self.repository = repository
        self.object_store = object_store
        self.inspector = FormatInspector(prober)
        self.transcoder = transcoder
        self.key_generator = key_generator

    # -------------------------------------------------------------------------
    # Public operations
    # -------------------------------------------------------------------------

    async def ingest(self, request: IngestionRequest) -> IngestionResult:
        """
        Process one uploaded video end to end.

        Args:
            request: The upload as received by the HTTP layer.

        Returns:
            IngestionResult: Persisted record, signed copy and object location.

        Raises:
            IngestionError: Subclass describing the first failure, with
                ``stage`` set to the stage that failed.
        """
        log = add_log_context(logger, video_id=request.video_id)
        stage = IngestionStage.AUTHENTICATING

        try:
            with ExitStack() as cleanup:
                token = get_bearer_token(request.authorization)

                stage = self._advance(log, IngestionStage.AUTHORIZING)
                record = await self._authorize(token, request.video_id)
                log = add_log_context(logger, video_id=record.id, user_id=record.user_id)

                stage = self._advance(log, IngestionStage.VALIDATING)
                media_type, extension = self._validate(request)

                stage = self._advance(log, IngestionStage.STAGING)
                staged_path = self._create_staging_file(extension)
                cleanup.callback(_remove_file, staged_path)
                size = await self._copy_upload(request.stream, staged_path)
                log.info("Upload staged", extra={"size_bytes": size, "media_type": media_type})

                stage = self._advance(log, IngestionStage.INSPECTING)
                classification = await asyncio.to_thread(self.inspector.inspect, staged_path)

                stage = self._advance(log, IngestionStage.TRANSCODING)
                cleanup.callback(_remove_file, transcoded_path(staged_path))
                processed_path = await asyncio.to_thread(self.transcoder.transcode, staged_path)
                if processed_path != transcoded_path(staged_path):
                    cleanup.callback(_remove_file, processed_path)

                stage = self._advance(log, IngestionStage.KEY_DERIVATION)
                ref = StoredObjectRef(
                    bucket=self.settings.s3_bucket_name,
                    key=self.key_generator(classification, extension),
                )

                stage = self._advance(log, IngestionStage.UPLOADING)
                await asyncio.to_thread(self._upload, processed_path, ref, media_type)

                stage = self._advance(log, IngestionStage.PERSISTING)
                persisted = await self._persist(record, ref, log)

                stage = self._advance(log, IngestionStage.SIGNING)
                signed = await sign_video(
                    persisted,
                    self.object_store,
                    self.settings.presigned_url_expiration_seconds,
                )
        except IngestionError as e:
            if e.stage is None:
                e.stage = stage
            self._log_failure(log, e)
            raise

        log.info(
            "Video ingested",
            extra={
                "bucket": ref.bucket,
                "key": ref.key,
                "classification": classification.value,
            },
        )
        return IngestionResult(
            record=persisted,
            signed_record=signed,
            stored_ref=ref,
            classification=classification,
        )

    async def get_signed_video(self, video_id: str, authorization: str | None) -> VideoRecord:
        """
        Return the caller's record with ``video_url`` presigned for retrieval.

        Raises:
            UnauthenticatedError: If the bearer token is missing or invalid.
            InvalidRequestError: If ``video_id`` is not a UUID.
            NotFoundError: If the record does not exist.
            ForbiddenError: If the caller does not own the record.
            StoreError: If signing fails.
        """
        token = get_bearer_token(authorization)
        record = await self._authorize(token, video_id)
        return await sign_video(
            record, self.object_store, self.settings.presigned_url_expiration_seconds
        )

    # -------------------------------------------------------------------------
    # Stages
    # -------------------------------------------------------------------------

    @staticmethod
    def _advance(log: logging.LoggerAdapter, stage: IngestionStage) -> IngestionStage:
        log.debug("Entering ingestion stage %s", stage.value, extra={"stage": stage.value})
        return stage

    async def _authorize(self, token: str, video_id: str) -> VideoRecord:
        user_id = self.authenticator.authenticate(token)

        canonical_id = _canonical_uuid(video_id)
        if canonical_id is None:
            raise InvalidRequestError(f"Invalid video ID: {video_id!r}")

        record = await self.repository.get_video(canonical_id)
        if not _same_owner(record.user_id, user_id):
            logger.warning(
                "Video ownership mismatch",
                extra={"video_id": canonical_id, "user_id": user_id},
            )
            raise ForbiddenError("Not authorized to access this video")
        return record

    def _validate(self, request: IngestionRequest) -> tuple[str, str]:
        if request.stream is None:
            raise InvalidRequestError("Missing 'video' file in form data")

        media_type = parse_media_type(request.content_type)
        if media_type not in self.settings.accepted_video_types:
            raise UnsupportedMediaTypeError(f"Unsupported media type for video: {media_type}")
        return media_type, resolve_extension(media_type)

    def _create_staging_file(self, extension: str) -> str:
        try:
            fd, path = tempfile.mkstemp(
                prefix=STAGED_FILE_PREFIX,
                suffix=f".{extension}",
                dir=self.settings.staging_dir,
            )
        except OSError as e:
            raise StagingError(f"Couldn't create temp file: {e}") from e
        os.close(fd)
        return path

    async def _copy_upload(self, stream: UploadReader, path: str) -> int:
        limit = self.settings.max_upload_size_bytes
        written = 0
        try:
            async with aiofiles.open(path, "wb") as destination:
                while chunk := await stream.read(COPY_CHUNK_SIZE):
                    written += len(chunk)
                    if written > limit:
                        raise UploadTooLargeError(
                            f"Video exceeds the maximum size of "
                            f"{self.settings.max_upload_size_mb}MB"
                        )
                    await destination.write(chunk)
        except OSError as e:
            raise StagingError(f"Couldn't copy upload to temp file: {e}") from e
        return written

    def _upload(self, path: str, ref: StoredObjectRef, content_type: str) -> None:
        try:
            with open(path, "rb") as body:
                self.object_store.put_object(ref.bucket, ref.key, content_type, body)
        except OSError as e:
            raise StoreError(f"Couldn't open processed video: {e}") from e

    async def _persist(
        self, record: VideoRecord, ref: StoredObjectRef, log: logging.LoggerAdapter
    ) -> VideoRecord:
        updated = record.model_copy(
            update={"video_url": ref.encode(), "updated_at": datetime.now(UTC)}
        )
        try:
            await self.repository.update_video(updated)
        except IngestionError:
            log.error(
                "Stored object is not referenced by any record",
                extra={"bucket": ref.bucket, "key": ref.key},
            )
            raise
        return updated

    @staticmethod
    def _log_failure(log: logging.LoggerAdapter, error: IngestionError) -> None:
        extra = {
            "stage": error.stage.value if error.stage else None,
            "error_code": error.error_code,
            "status_code": error.status_code,
        }
        if error.status_code >= 500:
            log.error("Video ingestion failed: %s", error.message, extra=extra, exc_info=error)
        else:
            log.warning("Video ingestion rejected: %s", error.message, extra=extra)
