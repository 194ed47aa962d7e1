"""MediaVault: authenticated video ingestion into S3-compatible storage."""

__version__ = "1.0.0"
