"""
Video Pydantic models for MediaVault.

This module defines the persisted VideoRecord document, the composite
reference to a stored object, the aspect classification used to namespace
storage keys, and the stages of the ingestion workflow.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


# Separator between bucket and key in a persisted object reference
OBJECT_REF_DELIMITER = ","


# =============================================================================
# ENUMS
# =============================================================================


class AspectClassification(str, Enum):
    """
    Coarse display geometry bucket of an uploaded video.

    The value doubles as the storage key prefix and is never persisted on
    its own.
    """

    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"
    OTHER = "other"


class IngestionStage(str, Enum):
    """
    Stages of the video ingestion workflow.

    Flow: AUTHENTICATING → AUTHORIZING → VALIDATING → STAGING → INSPECTING →
    TRANSCODING → KEY_DERIVATION → UPLOADING → PERSISTING → SIGNING → DONE.
    FAILED is reachable from every stage.
    """

    AUTHENTICATING = "authenticating"
    AUTHORIZING = "authorizing"
    VALIDATING = "validating"
    STAGING = "staging"
    INSPECTING = "inspecting"
    TRANSCODING = "transcoding"
    KEY_DERIVATION = "key_derivation"
    UPLOADING = "uploading"
    PERSISTING = "persisting"
    SIGNING = "signing"
    DONE = "done"
    FAILED = "failed"


# =============================================================================
# VALUE OBJECTS
# =============================================================================


@dataclass(frozen=True)
class StoredObjectRef:
    """
    Location of a stored object, persisted as ``"{bucket},{key}"``.

    Bucket names cannot contain a comma, so parsing splits on the first
    delimiter only and the key keeps any commas of its own.
    """

    bucket: str
    key: str

    def encode(self) -> str:
        return f"{self.bucket}{OBJECT_REF_DELIMITER}{self.key}"

    @classmethod
    def parse(cls, value: str) -> "StoredObjectRef":
        """
        Rebuild a reference from its persisted form.

        Raises:
            ValueError: If the value has no delimiter or an empty component.
        """
        bucket, sep, key = value.partition(OBJECT_REF_DELIMITER)
        if not sep or not bucket or not key:
            raise ValueError(f"Not a stored object reference: {value!r}")
        return cls(bucket=bucket, key=key)


# =============================================================================
# MODELS
# =============================================================================


class VideoRecord(BaseModel):
    """
    Pydantic model for a video record stored in the ``videos`` collection.

    Records are created by another part of the platform before any upload
    happens. Ingestion only ever rewrites ``video_url`` (and ``updated_at``);
    ``video_url`` holds the composite ``bucket,key`` reference in storage and
    a short-lived signed URL in API responses.

    Attributes:
        id: Externally assigned UUID string (aliased from _id)
        user_id: Identifier of the owning user
        title: Display title
        description: Free-form description
        video_url: Stored object reference or, in responses, signed URL
        thumbnail_url: Thumbnail reference, managed elsewhere
        created_at: Record creation timestamp (UTC)
        updated_at: Last modification timestamp (UTC)
    """

    id: str = Field(..., alias="_id", description="Video UUID")

    user_id: str = Field(..., min_length=1, description="Owning user's identifier")

    title: str = Field(default="", max_length=500, description="Video title")

    description: str = Field(default="", description="Video description")

    video_url: str | None = Field(
        default=None, description="Stored object reference or signed retrieval URL"
    )

    thumbnail_url: str | None = Field(default=None, description="Thumbnail reference")

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="Creation timestamp (UTC)"
    )

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="Last update timestamp (UTC)"
    )

    model_config = ConfigDict(populate_by_name=True)

    def stored_object(self) -> StoredObjectRef | None:
        """Return the parsed object reference, or None when unset or not a reference."""
        if not self.video_url:
            return None
        try:
            return StoredObjectRef.parse(self.video_url)
        except ValueError:
            return None

    def to_document(self) -> dict:
        """Serialize for MongoDB, keeping the ``_id`` key."""
        return self.model_dump(by_alias=True)
