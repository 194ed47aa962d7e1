"""Tests for Content-Type normalization and extension lookup."""

import pytest

from mediavault.core.exceptions import InvalidRequestError, UnsupportedMediaTypeError
from mediavault.services.media_types import parse_media_type, resolve_extension


class TestParseMediaType:
    """Normalization of declared Content-Type values."""

    @pytest.mark.parametrize(
        ("header", "expected"),
        [
            ("video/mp4", "video/mp4"),
            ("Video/MP4", "video/mp4"),
            ("video/mp4; codecs=\"avc1.42E01E\"", "video/mp4"),
            ("  video/quicktime  ", "video/quicktime"),
        ],
    )
    def test_normalizes(self, header: str, expected: str) -> None:
        assert parse_media_type(header) == expected

    @pytest.mark.parametrize("header", [None, "", "video", "/mp4", "video/", "a/b/c"])
    def test_rejects_malformed(self, header) -> None:
        with pytest.raises(InvalidRequestError):
            parse_media_type(header)


class TestResolveExtension:
    """Extension lookup over the fixed allow-list."""

    def test_mp4(self) -> None:
        assert resolve_extension("video/mp4") == "mp4"

    def test_quicktime(self) -> None:
        assert resolve_extension("video/quicktime") == "mov"

    @pytest.mark.parametrize("media_type", ["video/webm", "image/png", "application/zip", ""])
    def test_unsupported(self, media_type: str) -> None:
        with pytest.raises(UnsupportedMediaTypeError) as exc_info:
            resolve_extension(media_type)
        assert exc_info.value.status_code == 400
