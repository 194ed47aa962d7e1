"""
Tests for bearer token extraction and validation.

Tokens are minted with the same shared secret the application validates
against; expiry and signature failures must map to UnauthenticatedError.
"""

import uuid

from datetime import timedelta

import pytest

from jose import jwt

from mediavault.config import Settings
from mediavault.core.auth import TokenAuthenticator, create_access_token, get_bearer_token
from mediavault.core.exceptions import UnauthenticatedError


class TestGetBearerToken:
    def test_extracts_token(self) -> None:
        assert get_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"

    def test_scheme_is_case_insensitive(self) -> None:
        assert get_bearer_token("bearer abc.def.ghi") == "abc.def.ghi"

    @pytest.mark.parametrize(
        "header", [None, "", "Bearer", "Bearer ", "Basic dXNlcjpwYXNz", "abc.def.ghi", "Bearer a b"]
    )
    def test_rejects_missing_or_malformed(self, header) -> None:
        with pytest.raises(UnauthenticatedError):
            get_bearer_token(header)


class TestTokenAuthenticator:
    def test_valid_token(self, test_settings: Settings, owner_id: str) -> None:
        token = create_access_token(owner_id, test_settings)
        assert TokenAuthenticator(test_settings).authenticate(token) == owner_id

    def test_subject_is_canonicalized(self, test_settings: Settings) -> None:
        user_id = uuid.uuid4()
        token = create_access_token(str(user_id).upper(), test_settings)
        assert TokenAuthenticator(test_settings).authenticate(token) == str(user_id)

    def test_expired_token(self, test_settings: Settings, owner_id: str) -> None:
        token = create_access_token(owner_id, test_settings, expires_in=timedelta(seconds=-10))
        with pytest.raises(UnauthenticatedError, match="expired"):
            TokenAuthenticator(test_settings).authenticate(token)

    def test_wrong_secret(self, test_settings: Settings, owner_id: str) -> None:
        token = jwt.encode({"sub": owner_id}, "another-secret-that-is-long-enough-32!", "HS256")
        with pytest.raises(UnauthenticatedError):
            TokenAuthenticator(test_settings).authenticate(token)

    def test_garbage_token(self, test_settings: Settings) -> None:
        with pytest.raises(UnauthenticatedError):
            TokenAuthenticator(test_settings).authenticate("not-a-jwt")

    def test_missing_subject(self, test_settings: Settings) -> None:
        token = jwt.encode({"scope": "upload"}, test_settings.jwt_secret, "HS256")
        with pytest.raises(UnauthenticatedError, match="subject"):
            TokenAuthenticator(test_settings).authenticate(token)

    def test_non_uuid_subject(self, test_settings: Settings) -> None:
        token = create_access_token("user-42", test_settings)
        with pytest.raises(UnauthenticatedError, match="subject"):
            TokenAuthenticator(test_settings).authenticate(token)
