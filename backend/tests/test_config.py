"""Tests for Settings defaults, validation and immutability."""

import pytest

from pydantic import ValidationError

from mediavault.config import Settings


def make_settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


class TestDefaults:
    def test_ingestion_defaults(self) -> None:
        settings = make_settings()
        assert settings.presigned_url_expiration_seconds == 900
        assert settings.accepted_video_types == ["video/mp4"]
        assert settings.staging_dir is None
        assert settings.max_upload_size_bytes == 1024 * 1024 * 1024

    def test_environment_flags(self) -> None:
        assert make_settings(app_env="development").is_development
        assert make_settings(app_env="PRODUCTION").is_production


class TestValidation:
    def test_accepted_types_from_comma_string(self) -> None:
        settings = make_settings(accepted_video_types="Video/MP4, video/quicktime,")
        assert settings.accepted_video_types == ["video/mp4", "video/quicktime"]

    def test_cors_origins_from_comma_string(self) -> None:
        settings = make_settings(cors_origins="http://a.test, http://b.test")
        assert settings.cors_origins == ["http://a.test", "http://b.test"]

    @pytest.mark.parametrize(
        "overrides",
        [
            {"log_level": "verbose"},
            {"app_env": "qa"},
            {"jwt_algorithm": "RS256"},
            {"jwt_secret": "too-short"},
            {"presigned_url_expiration_seconds": 30},
            {"s3_bucket_name": "ab"},
        ],
    )
    def test_rejects_invalid_values(self, overrides: dict) -> None:
        with pytest.raises(ValidationError):
            make_settings(**overrides)

    def test_jwt_algorithm_is_upper_cased(self) -> None:
        assert make_settings(jwt_algorithm="hs512").jwt_algorithm == "HS512"


class TestImmutability:
    def test_settings_are_frozen(self) -> None:
        settings = make_settings()
        with pytest.raises(ValidationError):
            settings.s3_bucket_name = "other-bucket"
