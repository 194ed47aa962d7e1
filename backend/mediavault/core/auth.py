"""
MediaVault Bearer Token Authentication

This module resolves the bearer credential of an upload request to a user
identity. Tokens are HS256 (or HS384/HS512) JWTs signed with the shared
secret from Settings; the ``sub`` claim carries the user's UUID.

Issuing tokens belongs to the account service. create_access_token exists for
local development and tests only.

Usage:
    ```python
    from mediavault.core.auth import TokenAuthenticator, get_bearer_token

    authenticator = TokenAuthenticator(settings)
    user_id = authenticator.authenticate(get_bearer_token(request.headers.get("Authorization")))
    ```
"""

import logging
import uuid

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt

from mediavault.config import Settings
from mediavault.core.exceptions import UnauthenticatedError


# Configure module logger
logger = logging.getLogger(__name__)

BEARER_SCHEME = "bearer"

# Lifetime of tokens minted by create_access_token
DEFAULT_TOKEN_LIFETIME = timedelta(hours=1)


def get_bearer_token(authorization: str | None) -> str:
    """
    Extract the token from an ``Authorization: Bearer <token>`` header value.

    Args:
        authorization: Raw header value, or None when the header is absent.

    Returns:
        str: The bare token string.

    Raises:
        UnauthenticatedError: If the header is missing or not a bearer credential.
    """
    if not authorization:
        raise UnauthenticatedError("Couldn't find JWT: authorization header is missing")

    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != BEARER_SCHEME or not token or " " in token:
        raise UnauthenticatedError("Couldn't find JWT: malformed authorization header")
    return token


class TokenAuthenticator:
    """
    Validates bearer JWTs and returns the authenticated user's identifier.

    Attributes:
        secret: Shared signing secret
        algorithm: Expected JWT algorithm
    """

    def __init__(self, settings: Settings) -> None:
        self.secret = settings.jwt_secret
        self.algorithm = settings.jwt_algorithm

    def decode(self, token: str) -> dict[str, Any]:
        """
        Verify signature and expiry and return the token claims.

        Raises:
            UnauthenticatedError: If the token is expired or invalid.
        """
        try:
            return jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except ExpiredSignatureError as e:
            logger.warning("Bearer token has expired")
            raise UnauthenticatedError("Couldn't validate JWT: token has expired") from e
        except JWTError as e:
            logger.warning("Bearer token validation failed: %s", str(e))
            raise UnauthenticatedError("Couldn't validate JWT") from e

    def authenticate(self, token: str) -> str:
        """
        Resolve a bearer token to a user identifier.

        Args:
            token: The bare JWT string.

        Returns:
            str: Canonical string form of the user's UUID.

        Raises:
            UnauthenticatedError: If the token is invalid or its subject is not a UUID.
        """
        claims = self.decode(token)
        subject = claims.get("sub")
        if not subject:
            raise UnauthenticatedError("Couldn't validate JWT: missing subject")
        try:
            return str(uuid.UUID(str(subject)))
        except ValueError as e:
            raise UnauthenticatedError("Couldn't validate JWT: invalid subject") from e


def create_access_token(
    user_id: str,
    settings: Settings,
    expires_in: timedelta = DEFAULT_TOKEN_LIFETIME,
) -> str:
    """
    Mint a signed access token for ``user_id``.

    Used by tests and local tooling; production tokens come from the account
    service.
    """
    now = datetime.now(UTC)
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + expires_in,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)
