"""
Pytest Configuration and Test Fixtures for the MediaVault Backend

This module provides the shared fixtures used across the test suite:
- Test Settings with an isolated staging directory
- Signed bearer tokens for the record owner and for another user
- In-memory video repository standing in for MongoDB
- Mocked S3 storage client recording put/presign calls
- Fake ffprobe/ffmpeg capabilities
- A fully wired IngestionOrchestrator
- FastAPI TestClient with dependency overrides
"""

import os
import uuid

from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from unittest.mock import Mock

import pytest

from fastapi.testclient import TestClient

from mediavault.api.v1.videos import (
    get_object_store,
    get_prober,
    get_transcoder,
    get_video_repository,
)
from mediavault.config import Settings, get_settings
from mediavault.core.auth import TokenAuthenticator, create_access_token
from mediavault.core.exceptions import NotFoundError, PersistError, TranscodeError
from mediavault.core.storage import StorageClient
from mediavault.main import app
from mediavault.models.video import VideoRecord
from mediavault.services.ingestion_service import IngestionOrchestrator
from mediavault.services.media_tools import transcoded_path


TEST_JWT_SECRET = "test-secret-key-for-jwt-signing-minimum-32-chars"
TEST_BUCKET = "test-bucket"

LANDSCAPE_REPORT: dict[str, Any] = {
    "streams": [
        {"codec_type": "video", "width": 1920, "height": 1080, "display_aspect_ratio": "16:9"},
        {"codec_type": "audio"},
    ]
}


# ==============================================================================
# Fakes
# ==============================================================================


class InMemoryVideoRepository:
    """Dict-backed stand-in for VideoRepository."""

    def __init__(self, records: list[VideoRecord] | None = None) -> None:
        self.records: dict[str, VideoRecord] = {r.id: r for r in records or []}
        self.updates: list[VideoRecord] = []
        self.fail_updates = False

    async def get_video(self, video_id: str) -> VideoRecord:
        try:
            return self.records[video_id]
        except KeyError:
            raise NotFoundError(f"Couldn't find video {video_id}") from None

    async def update_video(self, record: VideoRecord) -> None:
        if self.fail_updates:
            raise PersistError("Couldn't update video: database unavailable")
        self.updates.append(record)
        self.records[record.id] = record


class FakeProber:
    """Returns a canned probe report and records the probed paths."""

    def __init__(self, report: dict[str, Any] | None = None, error: Exception | None = None):
        self.report = report if report is not None else LANDSCAPE_REPORT
        self.error = error
        self.paths: list[str] = []

    def probe(self, path: str) -> dict[str, Any]:
        self.paths.append(path)
        assert os.path.exists(path), "probe called on a missing file"
        if self.error is not None:
            raise self.error
        return self.report


class FakeTranscoder:
    """Copies the input to ``<input>.processing`` like the real remuxer."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.outputs: list[str] = []

    def transcode(self, path: str) -> str:
        destination = transcoded_path(path)
        if self.fail:
            raise TranscodeError("Error processing video: moov atom not found")
        with open(path, "rb") as source, open(destination, "wb") as target:
            target.write(b"faststart:" + source.read())
        self.outputs.append(destination)
        return destination


def make_store() -> Mock:
    """Mock StorageClient that keeps the uploaded bytes for inspection."""
    store = Mock(spec=StorageClient)
    store.uploaded = {}

    def put_object(bucket, key, content_type, body):
        store.uploaded[(bucket, key)] = (content_type, body.read())

    def presign(bucket, key, expires_in):
        return f"https://storage.test/{bucket}/{key}?X-Amz-Expires={expires_in}"

    store.put_object.side_effect = put_object
    store.generate_presigned_download_url.side_effect = presign
    return store


# ==============================================================================
# Settings and Identity Fixtures
# ==============================================================================


@pytest.fixture
def staging_dir(tmp_path: Path) -> Path:
    path = tmp_path / "staging"
    path.mkdir()
    return path


@pytest.fixture
def test_settings(staging_dir: Path) -> Settings:
    """
    Settings for tests: isolated staging dir, small upload limit, test bucket.

    Returns:
        Settings: Frozen settings instance independent of the environment file.
    """
    return Settings(
        _env_file=None,
        app_env="testing",
        app_name="MediaVault-Test",
        json_logs=False,
        jwt_secret=TEST_JWT_SECRET,
        mongodb_uri="mongodb://localhost:27017",
        mongodb_db_name="test_mediavault",
        s3_endpoint_url="http://localhost:9000",
        s3_access_key_id="test-access-key",
        s3_secret_access_key="test-secret-key",
        s3_bucket_name=TEST_BUCKET,
        max_upload_size_mb=1,
        staging_dir=str(staging_dir),
    )


@pytest.fixture
def owner_id() -> str:
    return str(uuid.uuid4())


@pytest.fixture
def other_user_id() -> str:
    return str(uuid.uuid4())


@pytest.fixture
def owner_token(owner_id: str, test_settings: Settings) -> str:
    return create_access_token(owner_id, test_settings)


@pytest.fixture
def auth_header(owner_token: str) -> str:
    return f"Bearer {owner_token}"


@pytest.fixture
def other_auth_header(other_user_id: str, test_settings: Settings) -> str:
    return f"Bearer {create_access_token(other_user_id, test_settings)}"


# ==============================================================================
# Record and Collaborator Fixtures
# ==============================================================================


@pytest.fixture
def video_record(owner_id: str) -> VideoRecord:
    now = datetime(2025, 1, 15, 10, 30, tzinfo=UTC)
    return VideoRecord(
        id=str(uuid.uuid4()),
        user_id=owner_id,
        title="Launch walkthrough",
        description="Product demo recording",
        created_at=now,
        updated_at=now,
    )


@pytest.fixture
def repository(video_record: VideoRecord) -> InMemoryVideoRepository:
    return InMemoryVideoRepository([video_record])


@pytest.fixture
def store() -> Mock:
    return make_store()


@pytest.fixture
def prober() -> FakeProber:
    return FakeProber()


@pytest.fixture
def transcoder() -> FakeTranscoder:
    return FakeTranscoder()


@pytest.fixture
def orchestrator(
    test_settings: Settings,
    repository: InMemoryVideoRepository,
    store: Mock,
    prober: FakeProber,
    transcoder: FakeTranscoder,
) -> IngestionOrchestrator:
    return IngestionOrchestrator(
        settings=test_settings,
        authenticator=TokenAuthenticator(test_settings),
        repository=repository,
        object_store=store,
        prober=prober,
        transcoder=transcoder,
    )


# ==============================================================================
# HTTP Client Fixtures
# ==============================================================================


@pytest.fixture
def test_client(
    test_settings: Settings,
    repository: InMemoryVideoRepository,
    store: Mock,
    prober: FakeProber,
    transcoder: FakeTranscoder,
) -> TestClient:
    """TestClient with settings, record store, object store and media tools overridden."""
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_video_repository] = lambda: repository
    app.dependency_overrides[get_object_store] = lambda: store
    app.dependency_overrides[get_prober] = lambda: prober
    app.dependency_overrides[get_transcoder] = lambda: transcoder

    client = TestClient(app)
    yield client

    app.dependency_overrides.clear()

