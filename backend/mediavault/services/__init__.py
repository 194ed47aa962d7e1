"""
Business logic for the MediaVault backend.

- media_types: Content-Type normalization and extension lookup
- media_tools: ffprobe/ffmpeg capabilities
- format_inspector: Aspect classification of staged videos
- content_keys: Unguessable object key generation
- video_repository: MongoDB-backed video record store
- signing: Presigned retrieval URLs for stored videos
- ingestion_service: The upload workflow orchestrator
"""
