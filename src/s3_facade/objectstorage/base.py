"""Public contract for object-store clients."""

from typing import BinaryIO, Mapping, Optional, Protocol, Union

UploadSource = Union[bytes, bytearray, memoryview, BinaryIO]


class ObjectStoreClient(Protocol):
    """Bucket and object operations exposed to callers.

    Implementations issue one remote request per call and report failures
    as ``RemoteError``, ``IoError`` or ``ConfigError``.
    """

    async def create_bucket(self, name: str, exist_ok: bool = False) -> bool:
        """Create a bucket; returns False if ``exist_ok`` and it already existed."""
        ...

    async def delete_bucket(self, name: str, force: bool = False) -> None:
        """Delete a bucket, emptying it first when ``force`` is set."""
        ...

    async def upload_object(
        self,
        bucket: str,
        key: str,
        source: UploadSource,
        content_type: Optional[str] = None,
        metadata: Optional[Mapping[str, str]] = None,
    ) -> None:
        """Store ``source`` under ``key``, replacing any existing object."""
        ...

    async def get_object_presigned(
        self, bucket: str, key: str, expiry_seconds: int
    ) -> str:
        """Return a time-limited GET URL for the object."""
        ...

    async def delete_object(self, bucket: str, key: str) -> None:
        """Delete an object; absent keys are not an error."""
        ...
