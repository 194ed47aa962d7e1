"""Storage key generation for processed videos."""

import secrets

from mediavault.models.video import AspectClassification


# 32 random bytes encode to 43 URL-safe base64 characters without padding
KEY_TOKEN_BYTES = 32


def generate_object_key(classification: AspectClassification, extension: str) -> str:
    """
    Build an unguessable object key ``{classification}/{token}.{extension}``.

    The token comes from the OS CSPRNG. Keys are not checked against the
    bucket; collisions are treated as impossible.
    """
    token = secrets.token_urlsafe(KEY_TOKEN_BYTES)
    return f"{classification.value}/{token}.{extension}"
