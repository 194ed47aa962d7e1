"""
Media type resolution for uploaded videos.

Maps a declared ``Content-Type`` to the file extension used for staging and
for the object key. The table is a fixed allow-list; the set of types the
upload endpoint currently accepts is narrower and lives in Settings.
"""

from mediavault.core.exceptions import InvalidRequestError, UnsupportedMediaTypeError


VIDEO_EXTENSIONS: dict[str, str] = {
    "video/mp4": "mp4",
    "video/quicktime": "mov",
}


def parse_media_type(header: str | None) -> str:
    """
    Normalize a Content-Type header value to its bare ``type/subtype``.

    Parameters such as ``codecs`` are dropped and the result is lower-cased.

    Raises:
        InvalidRequestError: If the header is empty or not a ``type/subtype`` pair.
    """
    if not header:
        raise InvalidRequestError("Missing content type for uploaded video")

    media_type = header.split(";", 1)[0].strip().lower()
    main, sep, sub = media_type.partition("/")
    if not sep or not main or not sub or "/" in sub:
        raise InvalidRequestError(f"Malformed content type: {header!r}")
    return media_type


def resolve_extension(media_type: str) -> str:
    """
    Return the file extension for a supported video media type.

    Args:
        media_type: Normalized media type, e.g. ``video/mp4``.

    Returns:
        str: Extension without the leading dot.

    Raises:
        UnsupportedMediaTypeError: If the type is not in VIDEO_EXTENSIONS.
    """
    try:
        return VIDEO_EXTENSIONS[media_type]
    except KeyError:
        raise UnsupportedMediaTypeError(
            f"Unsupported media type for video: {media_type}"
        ) from None
