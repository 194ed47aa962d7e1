"""
MediaVault Configuration Management Module

This module provides configuration management for the MediaVault backend using
Pydantic Settings. It loads and validates all environment variables required for:
- Application settings (name, environment, debug mode, logging)
- Bearer token validation (shared JWT secret and algorithm)
- MongoDB connection for video records
- S3/MinIO object storage with presigned download URLs
- Video ingestion (accepted media types, upload limits, staging, media tools)

The Settings object is frozen once loaded. It is passed explicitly into the
ingestion pipeline at construction time; only the HTTP layer reaches for the
cached instance returned by get_settings().
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Configuration settings for the MediaVault backend.

    Values come from environment variables and an optional .env file, with
    full type validation. Instances are immutable; tests build their own
    instance with explicit overrides instead of mutating a shared one.

    Configuration Categories:
    - Application: Core app settings like name, environment, debug mode
    - Auth: JWT secret and algorithm used to validate bearer tokens
    - MongoDB: Record store connection URI and pool sizing
    - S3/MinIO: Object storage credentials, bucket and presign lifetime
    - Ingestion: Accepted media types, size limit, staging dir, tool binaries

    Example usage:
        ```python
        from mediavault.config import Settings

        settings = Settings(s3_bucket_name="videos-dev")
        print(settings.presigned_url_expiration_seconds)
        ```
    """

    # =========================================================================
    # Application Settings
    # =========================================================================

    app_name: str = Field(
        default="MediaVault",
        description="Application name displayed in API documentation and logs",
    )

    app_env: str = Field(
        default="development",
        description="Application environment (development, staging, production, testing)",
    )

    debug: bool = Field(default=False, description="Enable debug mode with hot-reload")

    log_level: str = Field(
        default="info", description="Logging level (debug, info, warning, error, critical)"
    )

    json_logs: bool = Field(
        default=True, description="Emit structured JSON log lines instead of plain text"
    )

    host: str = Field(default="0.0.0.0", description="Host address for the API server to bind to")

    port: int = Field(default=8091, description="Port number for the API server", ge=1, le=65535)

    cors_origins: list[str] = Field(
        default=["http://localhost:3000"],
        description="List of allowed CORS origins for frontend access",
    )

    # =========================================================================
    # Auth Settings
    # =========================================================================

    jwt_secret: str = Field(
        default="development-jwt-secret-change-in-production-32",
        description="Shared secret used to verify bearer JWTs",
        min_length=32,
    )

    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm (HS256/384/512)")

    # =========================================================================
    # MongoDB Configuration
    # =========================================================================

    mongodb_uri: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI (e.g., mongodb://localhost:27017)",
    )

    mongodb_db_name: str = Field(default="mediavault", description="MongoDB database name")

    mongodb_min_pool_size: int = Field(
        default=1, description="Minimum number of connections in MongoDB connection pool", ge=0
    )

    mongodb_max_pool_size: int = Field(
        default=50, description="Maximum number of connections in MongoDB connection pool", ge=1
    )

    # =========================================================================
    # S3/MinIO Storage Configuration
    # =========================================================================

    s3_endpoint_url: str | None = Field(
        default=None, description="S3-compatible endpoint URL for MinIO (None for AWS S3)"
    )

    s3_access_key_id: str | None = Field(
        default=None, description="S3/MinIO access key ID (None uses the default AWS chain)"
    )

    s3_secret_access_key: str | None = Field(
        default=None, description="S3/MinIO secret access key"
    )

    s3_bucket_name: str = Field(
        default="mediavault-videos",
        description="Bucket that receives processed videos",
        min_length=3,
        max_length=63,
    )

    s3_region: str = Field(default="us-east-1", description="Region for the S3 bucket")

    presigned_url_expiration_seconds: int = Field(
        default=900,
        description="Lifetime of signed retrieval URLs in seconds (15 minutes)",
        ge=60,
        le=3600,
    )

    # =========================================================================
    # Video Ingestion Settings
    # =========================================================================

    accepted_video_types: list[str] = Field(
        default=["video/mp4"],
        description="Media types the upload endpoint currently accepts",
    )

    max_upload_size_mb: int = Field(
        default=1024,
        description="Maximum accepted video size in megabytes",
        ge=1,
        le=10240,
    )

    staging_dir: str | None = Field(
        default=None,
        description="Directory for staged uploads (None uses the system temp dir)",
    )

    ffprobe_binary: str = Field(default="ffprobe", description="ffprobe executable")

    ffmpeg_binary: str = Field(default="ffmpeg", description="ffmpeg executable")

    media_tool_timeout_seconds: int | None = Field(
        default=None,
        description="Optional wall-clock limit for ffprobe/ffmpeg runs (None waits forever)",
        ge=1,
    )

    # =========================================================================
    # Model Configuration
    # =========================================================================

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log_level is a valid logging level."""
        valid_levels = {"debug", "info", "warning", "error", "critical"}
        normalized = v.lower()
        if normalized not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {', '.join(valid_levels)}")
        return normalized

    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        """Validate that app_env is a valid environment name."""
        valid_envs = {"development", "staging", "production", "testing"}
        normalized = v.lower()
        if normalized not in valid_envs:
            raise ValueError(f"Invalid app_env '{v}'. Must be one of: {', '.join(valid_envs)}")
        return normalized

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        """Only shared-secret algorithms are supported."""
        valid_algorithms = {"HS256", "HS384", "HS512"}
        if v.upper() not in valid_algorithms:
            raise ValueError(
                f"Invalid jwt_algorithm '{v}'. Must be one of: {', '.join(valid_algorithms)}"
            )
        return v.upper()

    @field_validator("cors_origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Parse CORS origins from comma-separated string if provided as string."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("accepted_video_types", mode="before")
    @classmethod
    def validate_accepted_video_types(cls, v: str | list[str]) -> list[str]:
        """Parse and normalize accepted media types (comma-separated string allowed)."""
        if isinstance(v, str):
            v = v.split(",")
        return [media_type.strip().lower() for media_type in v if media_type.strip()]

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def max_upload_size_bytes(self) -> int:
        """Maximum upload size in bytes."""
        return self.max_upload_size_mb * 1024 * 1024

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get the process-wide Settings instance.

    Settings are read from the environment once and reused. This accessor is
    meant for the FastAPI dependency layer; services receive their Settings
    through their constructors.

    Returns:
        Settings: The cached configuration instance.
    """
    return Settings()
