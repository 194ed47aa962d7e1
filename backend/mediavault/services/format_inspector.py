"""
Aspect classification of staged videos.

FormatInspector asks a Prober for the stream report of a file and reduces it
to an AspectClassification. An explicit display aspect ratio on the first
stream that declares one always wins; otherwise the first stream's pixel
geometry is compared to 16:9 and 9:16 within a small tolerance.
"""

import logging

from dataclasses import dataclass
from typing import Any

from mediavault.core.exceptions import NoStreamsFoundError, ProbeError
from mediavault.models.video import AspectClassification
from mediavault.services.media_tools import Prober


logger = logging.getLogger(__name__)

LANDSCAPE_RATIO = 16 / 9
PORTRAIT_RATIO = 9 / 16
RATIO_TOLERANCE = 1e-3

DAR_CLASSIFICATIONS: dict[str, AspectClassification] = {
    "16:9": AspectClassification.LANDSCAPE,
    "9:16": AspectClassification.PORTRAIT,
}


@dataclass(frozen=True)
class StreamGeometry:
    """Geometry fields of one probed stream. Missing values are zero or empty."""

    width: int = 0
    height: int = 0
    display_aspect_ratio: str = ""

    @classmethod
    def from_probe(cls, stream: dict[str, Any]) -> "StreamGeometry":
        """
        Build from one entry of an ffprobe ``streams`` array.

        Raises:
            ProbeError: If width or height is present but not an integer.
        """
        try:
            width = int(stream.get("width") or 0)
            height = int(stream.get("height") or 0)
        except (TypeError, ValueError) as e:
            raise ProbeError(f"Invalid stream dimensions in probe report: {e}") from e
        dar = stream.get("display_aspect_ratio") or ""
        return cls(width=width, height=height, display_aspect_ratio=str(dar).strip())


def parse_streams(report: dict[str, Any]) -> list[StreamGeometry]:
    """Extract stream geometry from a probe report, preserving probe order."""
    streams = report.get("streams") or []
    if not isinstance(streams, list):
        raise ProbeError("Probe report 'streams' is not a list")
    return [StreamGeometry.from_probe(stream) for stream in streams if isinstance(stream, dict)]


def classify_streams(streams: list[StreamGeometry]) -> AspectClassification:
    """
    Classify a list of streams.

    Raises:
        NoStreamsFoundError: If there are no streams, or the fallback stream
            has no usable height.
    """
    if not streams:
        raise NoStreamsFoundError("No streams found in video")

    for stream in streams:
        if stream.display_aspect_ratio:
            return DAR_CLASSIFICATIONS.get(
                stream.display_aspect_ratio, AspectClassification.OTHER
            )

    first = streams[0]
    if first.height <= 0:
        raise NoStreamsFoundError("No valid stream geometry found in video")

    ratio = first.width / first.height
    if abs(ratio - LANDSCAPE_RATIO) <= RATIO_TOLERANCE:
        return AspectClassification.LANDSCAPE
    if abs(ratio - PORTRAIT_RATIO) <= RATIO_TOLERANCE:
        return AspectClassification.PORTRAIT
    return AspectClassification.OTHER


class FormatInspector:
    """Classifies a local video file by probing its streams."""

    def __init__(self, prober: Prober) -> None:
        self.prober = prober

    def inspect(self, path: str) -> AspectClassification:
        """
        Probe ``path`` and classify its display geometry.

        Args:
            path: Local path of the staged video.

        Returns:
            AspectClassification: landscape, portrait or other.

        Raises:
            ProbeError: If probing fails or the report is malformed.
            NoStreamsFoundError: If the report has no usable stream.
        """
        streams = parse_streams(self.prober.probe(path))
        classification = classify_streams(streams)
        logger.debug(
            "Classified video geometry",
            extra={"path": path, "streams": len(streams), "classification": classification.value},
        )
        return classification
