"""
MediaVault S3-Compatible Object Store Client

This module provides the object-store adapter used by the ingestion pipeline.
It wraps a boto3 S3 client that works against both MinIO (development) and
AWS S3 (production) through a configurable endpoint URL.

Operations:
- put_object: store a byte stream under a bucket/key with its content type
- generate_presigned_download_url: issue a time-limited GET URL

Both calls are blocking; async callers run them with asyncio.to_thread.
Failures surface as StoreError. The client performs a single attempt per call
(retries are left to the caller).
"""

import logging

from typing import BinaryIO

import boto3

from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from mediavault.config import Settings
from mediavault.core.exceptions import StoreError


# Configure module-level constants to avoid magic numbers
MIN_PRESIGNED_EXPIRATION_SECONDS = 1
MAX_PRESIGNED_EXPIRATION_SECONDS = 7 * 24 * 3600

# Configure module-level logger
logger = logging.getLogger(__name__)

# Singleton container for storage client instance
_singleton_container: dict[str, "StorageClient"] = {}


class StorageClient:
    """
    S3-compatible object store supporting both MinIO and AWS S3.

    Attributes:
        s3_client: Initialized boto3 S3 client
        default_bucket: Bucket configured in Settings

    Example usage:
        ```python
        storage = StorageClient(settings)
        with open(path, "rb") as body:
            storage.put_object("videos", "landscape/abc.mp4", "video/mp4", body)
        url = storage.generate_presigned_download_url("videos", "landscape/abc.mp4", 900)
        ```
    """

    def __init__(self, settings: Settings, s3_client=None) -> None:
        """
        Build the client from Settings.

        Args:
            settings: Application settings with the S3 configuration.
            s3_client: Optional pre-built boto3 client (used in tests).
        """
        self.default_bucket = settings.s3_bucket_name

        if s3_client is None:
            client_config = Config(
                signature_version="s3v4",
                s3={"addressing_style": "path"},  # Use path-style for MinIO compatibility
                retries={"max_attempts": 1, "mode": "standard"},
            )
            s3_client = boto3.client(
                "s3",
                endpoint_url=settings.s3_endpoint_url,
                aws_access_key_id=settings.s3_access_key_id,
                aws_secret_access_key=settings.s3_secret_access_key,
                region_name=settings.s3_region,
                config=client_config,
            )
            logger.info(
                "S3 storage client initialized",
                extra={
                    "bucket": self.default_bucket,
                    "region": settings.s3_region,
                    "endpoint": settings.s3_endpoint_url or "AWS S3 (default)",
                },
            )
        self.s3_client = s3_client

    def put_object(
        self,
        bucket: str,
        key: str,
        content_type: str,
        body: BinaryIO,
    ) -> None:
        """
        Store ``body`` at ``bucket``/``key``.

        Args:
            bucket: Target bucket name.
            key: Object key, e.g. "landscape/<token>.mp4".
            content_type: MIME type recorded on the object.
            body: Readable binary stream positioned at the start of the data.

        Raises:
            StoreError: If the put fails.
        """
        try:
            self.s3_client.put_object(
                Bucket=bucket,
                Key=key,
                Body=body,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            logger.exception(
                "Failed to upload object to S3",
                extra={"bucket": bucket, "key": key},
            )
            raise StoreError(f"Error uploading video to object storage: {e}") from e

        logger.info(
            "Uploaded object to S3",
            extra={"bucket": bucket, "key": key, "content_type": content_type},
        )

    def generate_presigned_download_url(
        self,
        bucket: str,
        key: str,
        expires_in: int,
    ) -> str:
        """
        Generate a presigned GET URL for a stored object.

        Args:
            bucket: Bucket holding the object.
            key: Object key.
            expires_in: URL lifetime in seconds.

        Returns:
            str: Presigned GET URL.

        Raises:
            ValueError: If expires_in is outside the range S3 accepts.
            StoreError: If URL generation fails.
        """
        if not MIN_PRESIGNED_EXPIRATION_SECONDS <= expires_in <= MAX_PRESIGNED_EXPIRATION_SECONDS:
            raise ValueError(
                f"expires_in must be between {MIN_PRESIGNED_EXPIRATION_SECONDS} and "
                f"{MAX_PRESIGNED_EXPIRATION_SECONDS} seconds, got {expires_in}"
            )

        try:
            presigned_url = self.s3_client.generate_presigned_url(
                ClientMethod="get_object",
                Params={"Bucket": bucket, "Key": key},
                ExpiresIn=expires_in,
            )
        except (ClientError, BotoCoreError) as e:
            logger.exception(
                "Failed to generate presigned download URL",
                extra={"bucket": bucket, "key": key},
            )
            raise StoreError(f"Error signing video URL: {e}") from e

        logger.debug(
            "Generated presigned download URL",
            extra={"bucket": bucket, "key": key, "expires_in": expires_in},
        )
        return presigned_url


def get_storage_client(settings: Settings) -> StorageClient:
    """
    Get the shared StorageClient instance, creating it on first use.

    boto3 clients are thread-safe, so one instance serves every request.
    """
    if "instance" not in _singleton_container:
        _singleton_container["instance"] = StorageClient(settings)
        logger.info("Created new StorageClient singleton instance")

    return _singleton_container["instance"]
