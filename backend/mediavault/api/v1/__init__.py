"""
MediaVault API v1 Router Aggregator.

Combines the v1 endpoint routers into a single APIRouter that the FastAPI
application mounts under the /api/v1 prefix.

Router Structure:
    - /video_upload/{video_id}: Upload a video file for an existing record
    - /videos/{video_id}: Fetch a record with a signed retrieval URL
"""

from fastapi import APIRouter

from mediavault.api.v1.videos import router as videos_router


api_router = APIRouter()

api_router.include_router(videos_router, tags=["videos"])


__all__ = ["api_router"]
