"""
Core infrastructure for the MediaVault backend.

- auth: Bearer JWT extraction and validation
- database: Motor client for the video record store
- exceptions: Ingestion error taxonomy with HTTP status mapping
- storage: boto3 S3-compatible object store adapter
"""
