"""Object storage operations for S3-compatible services."""

from .base import ObjectStoreClient, UploadSource
from .clients import S3ClientConfig, S3ClientManager
from .facade import (
    MAX_PARTS,
    MAX_PRESIGN_EXPIRY,
    MIN_PART_SIZE,
    S3ObjectStore,
    validate_expiry,
)
from .models import BucketInfo, ObjectInfo

__all__ = [
    "BucketInfo",
    "MAX_PARTS",
    "MAX_PRESIGN_EXPIRY",
    "MIN_PART_SIZE",
    "ObjectInfo",
    "ObjectStoreClient",
    "S3ClientConfig",
    "S3ClientManager",
    "S3ObjectStore",
    "UploadSource",
    "validate_expiry",
]
