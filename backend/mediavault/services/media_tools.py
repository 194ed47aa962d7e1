"""
ffprobe and ffmpeg wrappers used by the ingestion pipeline.

Both tools are modelled as small capabilities (Prober, Transcoder) so the
pipeline can run against fakes in tests. The real implementations shell out
with ``subprocess.run`` and block; async callers wrap them in
``asyncio.to_thread``.
"""

import json
import logging
import os
import subprocess

from typing import Any, Protocol

from mediavault.config import Settings
from mediavault.core.exceptions import ProbeError, TranscodeError


logger = logging.getLogger(__name__)

TRANSCODE_SUFFIX = ".processing"

# Keep only the tail of tool stderr in error messages
STDERR_TAIL_CHARS = 500


class Prober(Protocol):
    def probe(self, path: str) -> dict[str, Any]: ...


class Transcoder(Protocol):
    def transcode(self, path: str) -> str: ...


def transcoded_path(path: str) -> str:
    """Output location of the fast-start copy of ``path``."""
    return f"{path}{TRANSCODE_SUFFIX}"


def _stderr_tail(stderr: bytes | str | None) -> str:
    if not stderr:
        return ""
    if isinstance(stderr, bytes):
        stderr = stderr.decode("utf-8", errors="replace")
    return stderr.strip()[-STDERR_TAIL_CHARS:]


class FFprobeProber:
    """Reads stream metadata with ``ffprobe -print_format json -show_streams``."""

    def __init__(self, binary: str = "ffprobe", timeout: float | None = None) -> None:
        self.binary = binary
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "FFprobeProber":
        return cls(settings.ffprobe_binary, settings.media_tool_timeout_seconds)

    def build_command(self, path: str) -> list[str]:
        return [self.binary, "-v", "error", "-print_format", "json", "-show_streams", path]

    def probe(self, path: str) -> dict[str, Any]:
        """
        Run ffprobe on ``path`` and return the parsed JSON report.

        Raises:
            ProbeError: If ffprobe is missing, fails, times out or prints invalid JSON.
        """
        try:
            result = subprocess.run(
                self.build_command(path),
                capture_output=True,
                check=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise ProbeError(f"ffprobe executable not found: {self.binary}") from e
        except subprocess.TimeoutExpired as e:
            raise ProbeError(f"ffprobe timed out after {self.timeout}s") from e
        except subprocess.CalledProcessError as e:
            logger.warning(
                "ffprobe exited with %d", e.returncode, extra={"stderr": _stderr_tail(e.stderr)}
            )
            raise ProbeError(f"Error getting video info: {_stderr_tail(e.stderr)}") from e

        try:
            report = json.loads(result.stdout.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ProbeError(f"Could not parse ffprobe output: {e}") from e
        if not isinstance(report, dict):
            raise ProbeError("Unexpected ffprobe output")
        return report


class FFmpegFastStartTranscoder:
    """
    Remuxes a video into MP4 with the moov atom at the front.

    Streams are copied, never re-encoded, so the operation is cheap and
    lossless. The output is always written to ``<input>.processing``.
    """

    def __init__(self, binary: str = "ffmpeg", timeout: float | None = None) -> None:
        self.binary = binary
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "FFmpegFastStartTranscoder":
        return cls(settings.ffmpeg_binary, settings.media_tool_timeout_seconds)

    def build_command(self, source: str, destination: str) -> list[str]:
        return [
            self.binary,
            "-nostdin",
            "-y",
            "-i",
            source,
            "-c",
            "copy",
            "-movflags",
            "faststart",
            "-f",
            "mp4",
            destination,
        ]

    def transcode(self, path: str) -> str:
        """
        Write the fast-start copy of ``path`` and return its location.

        Any partial output is removed before an error is raised.

        Raises:
            TranscodeError: If ffmpeg is missing, fails or times out.
        """
        destination = transcoded_path(path)
        try:
            subprocess.run(
                self.build_command(path, destination),
                capture_output=True,
                check=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise TranscodeError(f"ffmpeg executable not found: {self.binary}") from e
        except subprocess.TimeoutExpired as e:
            _remove_quietly(destination)
            raise TranscodeError(f"ffmpeg timed out after {self.timeout}s") from e
        except subprocess.CalledProcessError as e:
            _remove_quietly(destination)
            logger.warning(
                "ffmpeg exited with %d", e.returncode, extra={"stderr": _stderr_tail(e.stderr)}
            )
            raise TranscodeError(f"Error processing video: {_stderr_tail(e.stderr)}") from e

        logger.debug("Fast-start remux complete", extra={"source": path, "output": destination})
        return destination


def _remove_quietly(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError:
        logger.warning("Could not remove partial output %s", path, exc_info=True)
