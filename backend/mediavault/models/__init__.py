"""
Data models for the MediaVault backend.

- video: VideoRecord document, StoredObjectRef, AspectClassification and
  the IngestionStage enumeration
"""

from mediavault.models.video import (
    AspectClassification,
    IngestionStage,
    StoredObjectRef,
    VideoRecord,
)


__all__ = ["AspectClassification", "IngestionStage", "StoredObjectRef", "VideoRecord"]
