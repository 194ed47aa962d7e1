"""Tests for the request body size guard."""

import pytest

from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from mediavault.core.middleware import RequestSizeLimitMiddleware


BODY_LIMIT = 64


@pytest.fixture
def limited_client() -> TestClient:
    limited_app = FastAPI()
    limited_app.add_middleware(RequestSizeLimitMiddleware, max_body_bytes=BODY_LIMIT)
    calls: list[int] = []

    @limited_app.post("/echo")
    async def echo(request: Request) -> dict:
        body = await request.body()
        calls.append(len(body))
        return {"size": len(body)}

    @limited_app.get("/ping")
    async def ping() -> dict:
        return {"ok": True}

    client = TestClient(limited_app)
    client.calls = calls
    return client


class TestRequestSizeLimit:
    def test_small_body_passes(self, limited_client: TestClient) -> None:
        response = limited_client.post("/echo", content=b"x" * BODY_LIMIT)

        assert response.status_code == 200
        assert response.json() == {"size": BODY_LIMIT}

    def test_oversized_body_is_rejected_before_the_route(self, limited_client) -> None:
        response = limited_client.post("/echo", content=b"x" * (BODY_LIMIT + 1))

        assert response.status_code == 413
        assert response.json()["error"] == "file_too_large"
        assert limited_client.calls == []

    def test_get_requests_are_untouched(self, limited_client: TestClient) -> None:
        assert limited_client.get("/ping").status_code == 200
