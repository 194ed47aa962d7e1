"""
Error taxonomy for the MediaVault video ingestion pipeline.

Every failure raised by the pipeline derives from IngestionError. Each class
declares the HTTP status and machine-readable code it is rendered with, so
the API layer needs a single exception handler. The orchestrator tags the
error with the stage it failed in before it propagates.
"""

from fastapi import status

from mediavault.models.video import IngestionStage


class IngestionError(Exception):
    """Base exception for video ingestion errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "internal_error"

    def __init__(self, message: str, stage: IngestionStage | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage

    def to_dict(self) -> dict[str, str]:
        return {"error": self.error_code, "message": self.message}


# =============================================================================
# Client errors
# =============================================================================


class UnauthenticatedError(IngestionError):
    """Raised when the bearer credential is missing, malformed or invalid."""

    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "unauthenticated"


class ForbiddenError(IngestionError):
    """
    Raised when the caller does not own the target record.

    Rendered as 401 rather than 403, matching how ownership failures are
    reported by the rest of the platform.
    """

    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "forbidden"


class NotFoundError(IngestionError):
    """Raised when the target video record does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    error_code = "not_found"


class InvalidRequestError(IngestionError):
    """Raised for malformed identifiers, form fields or headers."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "invalid_request"


class UnsupportedMediaTypeError(IngestionError):
    """Raised when the declared content type is not an accepted video type."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "unsupported_media_type"


class UploadTooLargeError(InvalidRequestError):
    """Raised when the uploaded body exceeds the configured size limit."""

    # Literal: the status constant was renamed across Starlette releases
    status_code = 413
    error_code = "file_too_large"


# =============================================================================
# Server errors
# =============================================================================


class StagingError(IngestionError):
    """Raised when the upload cannot be copied to local staging."""

    error_code = "staging_failed"


class ProbeError(IngestionError):
    """Raised when the probing tool fails or its report cannot be parsed."""

    error_code = "probe_failed"


class NoStreamsFoundError(ProbeError):
    """Raised when the probe report has no streams or no usable geometry."""

    error_code = "no_streams_found"


class TranscodeError(IngestionError):
    """Raised when the fast-start remux exits unsuccessfully."""

    error_code = "transcode_failed"


class StoreError(IngestionError):
    """Raised when an object-store put or presign call fails."""

    error_code = "storage_failed"


class RecordStoreError(IngestionError):
    """Raised when the video record store cannot be read."""

    error_code = "record_store_failed"


class PersistError(RecordStoreError):
    """Raised when the updated video record cannot be written."""

    error_code = "persist_failed"
