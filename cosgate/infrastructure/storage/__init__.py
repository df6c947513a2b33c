"""
Object storage integration for scene uploads.

Supports Tencent COS via its S3-compatible API.
Includes mock mode for local development without credentials.
"""

from .client import (
    CosStorageClient,
    MockStorageClient,
    StorageConfig,
    create_storage_client,
)

__all__ = [
    "CosStorageClient",
    "MockStorageClient",
    "StorageConfig",
    "create_storage_client",
]
