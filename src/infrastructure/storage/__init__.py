"""
Object storage integration for profile media.

Supports AWS S3 and S3-compatible endpoints via boto3.
Includes mock mode for local development without credentials.
"""

from .client import (
    MockStorageClient,
    ObjectURLUnavailableError,
    PROVIDER_ERRORS,
    S3StorageClient,
    StorageClient,
    StorageConfig,
    StorageError,
    create_storage_client,
)

__all__ = [
    "MockStorageClient",
    "ObjectURLUnavailableError",
    "PROVIDER_ERRORS",
    "S3StorageClient",
    "StorageClient",
    "StorageConfig",
    "StorageError",
    "create_storage_client",
]
