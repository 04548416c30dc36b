"""Async convenience wrapper for S3-compatible object storage.

This package exposes a handful of bucket and object operations (create and
delete buckets, upload and delete objects, presigned URLs) over boto3, with
errors normalized into a small exception hierarchy. It targets AWS S3 as well
as self-hosted stores such as MinIO.

Recommended Usage:
    >>> from s3_facade import S3ClientConfig, S3ObjectStore
    >>> store = S3ObjectStore(
    ...     S3ClientConfig(endpoint_url="http://127.0.0.1:9000")
    ... )
    >>> await store.create_bucket("sharks")
    >>> await store.upload_object("sharks", "shark.jpg", b"...")
    >>> url = await store.get_object_presigned("sharks", "shark.jpg", 3600)

Connection details default to ``S3_FACADE_*`` environment variables (see
``s3_facade.core.config``) and then to the standard AWS credential chain.
"""

__version__ = "0.1.0"

from .core.exceptions import ConfigError, IoError, RemoteError, S3FacadeError
from .objectstorage import (
    BucketInfo,
    ObjectInfo,
    ObjectStoreClient,
    S3ClientConfig,
    S3ClientManager,
    S3ObjectStore,
)

__all__ = [
    # Façade
    "ObjectStoreClient",
    "S3ObjectStore",
    "S3ClientConfig",
    "S3ClientManager",
    # Results
    "BucketInfo",
    "ObjectInfo",
    # Errors
    "S3FacadeError",
    "RemoteError",
    "IoError",
    "ConfigError",
]
