"""Async façade over a boto3 S3 client.

Every public coroutine maps onto one S3 API request (the multipart branch of
``upload_object`` and the emptying step of a forced ``delete_bucket`` are the
two places that issue several). The blocking boto3 call runs in a worker
thread via ``asyncio.to_thread`` so the event loop stays free while the
request is in flight.

botocore errors are normalized into ``RemoteError``; local problems are
reported as ``IoError`` (unreadable upload source) or ``ConfigError`` (bad
parameters, rejected before touching the network). Nothing is retried here:
whatever retry policy botocore is configured with is the only one in effect.
"""

import asyncio
import io
import math
from os import PathLike
from typing import Any, AsyncIterator, Mapping, Optional, Union

from botocore.exceptions import BotoCoreError, ClientError

from s3_facade.core import get_logger, get_tracer, settings
from s3_facade.core.exceptions import ConfigError, IoError, RemoteError
from s3_facade.objectstorage.base import UploadSource
from s3_facade.objectstorage.clients import S3ClientConfig, S3ClientManager
from s3_facade.objectstorage.models import BucketInfo, ObjectInfo

logger = get_logger(__name__)
tracer = get_tracer(__name__)

# S3 rejects non-final multipart parts smaller than this.
MIN_PART_SIZE = 5 * 1024 * 1024
# SigV4 presigned URLs cannot outlive seven days.
MAX_PRESIGN_EXPIRY = 7 * 24 * 60 * 60
# ListObjectsV2 and DeleteObjects both cap at 1000 keys per request.
MAX_KEYS_PER_REQUEST = 1000
# A multipart upload may hold at most this many parts.
MAX_PARTS = 10_000


def validate_expiry(expiry_seconds: int) -> int:
    """Check a presigned URL lifetime.

    Raises:
        ConfigError: If the value is not an integer in 1..MAX_PRESIGN_EXPIRY
    """
    if isinstance(expiry_seconds, bool) or not isinstance(expiry_seconds, int):
        raise ConfigError(
            f"expiry_seconds must be an integer, got {type(expiry_seconds).__name__}"
        )
    if expiry_seconds <= 0:
        raise ConfigError(f"expiry_seconds must be positive, got {expiry_seconds}")
    if expiry_seconds > MAX_PRESIGN_EXPIRY:
        raise ConfigError(
            f"expiry_seconds must not exceed {MAX_PRESIGN_EXPIRY}, "
            f"got {expiry_seconds}"
        )
    return expiry_seconds


def _read_chunk(source: Any, size: int) -> bytes:
    """Read up to ``size`` bytes, looping over short reads until EOF."""
    chunks = []
    remaining = size
    while remaining > 0:
        data = source.read(remaining)
        if not data:
            break
        if not isinstance(data, (bytes, bytearray)):
            raise IoError(
                f"Upload source must produce bytes, got {type(data).__name__}"
            )
        chunks.append(bytes(data))
        remaining -= len(data)
    return b"".join(chunks)


def _remaining_size(source: Any) -> Optional[int]:
    """Bytes left in a seekable source, or None when it cannot be told."""
    try:
        if not source.seekable():
            return None
        position = source.tell()
        end = source.seek(0, io.SEEK_END)
        source.seek(position)
    except (AttributeError, OSError, ValueError):
        return None
    return end - position


def _raise_first_failure(tasks: list) -> None:
    for task in tasks:
        if task.done() and not task.cancelled() and task.exception():
            raise task.exception()


class S3ObjectStore:
    """Bucket and object operations against one S3-compatible endpoint.

    The boto3 client is created once, at construction, and shared by every
    call; botocore clients are thread-safe so concurrent coroutines need no
    locking.

    Example:
        store = S3ObjectStore(S3ClientConfig(endpoint_url="http://127.0.0.1:9000"))
        await store.create_bucket("sharks")
        with open("shark.jpg", "rb") as f:
            await store.upload_object("sharks", "shark.jpg", f)
        url = await store.get_object_presigned("sharks", "shark.jpg", 3600)
    """

    def __init__(
        self,
        config: Optional[S3ClientConfig] = None,
        part_size: Optional[int] = None,
        max_concurrency: Optional[int] = None,
    ):
        """Initialize the store.

        Args:
            config: Connection configuration; read from settings when omitted
            part_size: Multipart part size in bytes, never below 5 MiB
            max_concurrency: Parts uploaded in parallel per multipart upload
        """
        self.config = config or S3ClientConfig.from_settings()
        self.client_manager = S3ClientManager(self.config)
        self.client = self.client_manager.client
        self.part_size = max(part_size or settings.multipart_part_size, MIN_PART_SIZE)
        self.max_concurrency = max(max_concurrency or settings.max_concurrency, 1)

    async def __aenter__(self) -> "S3ObjectStore":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        """Release the underlying HTTP connection pool."""
        self.client.close()

    async def _call(self, operation: str, **params: Any) -> Any:
        """Run one boto3 client method in a worker thread.

        Raises:
            RemoteError: If botocore reports any failure
        """
        target = params.get("Params", params)
        bucket = target.get("Bucket")
        key = target.get("Key")

        with tracer.start_as_current_span(f"s3.{operation}") as span:
            if bucket:
                span.set_attribute("s3.bucket", bucket)
            if key:
                span.set_attribute("s3.key", key)

            try:
                return await asyncio.to_thread(
                    getattr(self.client, operation), **params
                )
            except (ClientError, BotoCoreError) as e:
                error = RemoteError.from_sdk_error(operation, e)
                logger.error(
                    "S3 request failed",
                    operation=operation,
                    bucket=bucket,
                    key=key,
                    code=error.code,
                    error=str(e),
                )
                raise error from e

    # Buckets

    async def bucket_exists(self, name: str) -> bool:
        """Return True if the bucket exists and is reachable."""
        try:
            await self._call("head_bucket", Bucket=name)
        except RemoteError as e:
            if e.is_not_found:
                return False
            raise
        return True

    async def list_buckets(self) -> list[BucketInfo]:
        """List every bucket visible to the configured credentials."""
        response = await self._call("list_buckets")
        buckets = [BucketInfo.from_response(b) for b in response.get("Buckets", [])]
        logger.debug("Buckets listed", bucket_count=len(buckets))
        return buckets

    async def create_bucket(self, name: str, exist_ok: bool = False) -> bool:
        """Create a bucket named ``name``.

        Args:
            name: Bucket name, validated by the remote store
            exist_ok: Return False instead of failing when the bucket exists

        Returns:
            True if the bucket was created, False if it already existed

        Raises:
            RemoteError: If the store rejects the bucket
        """
        if exist_ok and await self.bucket_exists(name):
            logger.info("Bucket already exists", bucket=name)
            return False

        params: dict[str, Any] = {"Bucket": name}
        if self.config.region_name != "us-east-1":
            params["CreateBucketConfiguration"] = {
                "LocationConstraint": self.config.region_name
            }

        await self._call("create_bucket", **params)
        logger.info("Bucket created", bucket=name)
        return True

    async def delete_bucket(self, name: str, force: bool = False) -> None:
        """Delete the bucket named ``name``.

        With ``force`` every object is deleted first. Emptying stops at the
        first failing batch and raises; objects already deleted stay deleted
        and the bucket itself is left in place.

        Raises:
            RemoteError: If the bucket is missing, non-empty (without
                ``force``), or any delete is rejected
        """
        if force:
            deleted = await self._empty_bucket(name)
            logger.info("Bucket emptied", bucket=name, deleted_count=deleted)

        await self._call("delete_bucket", Bucket=name)
        logger.info("Bucket deleted", bucket=name, force=force)

    async def _empty_bucket(self, name: str) -> int:
        # Always list from the start: keys just deleted never reappear, so
        # this terminates without depending on continuation tokens.
        deleted = 0
        while True:
            response = await self._call(
                "list_objects_v2", Bucket=name, MaxKeys=MAX_KEYS_PER_REQUEST
            )
            keys = [entry["Key"] for entry in response.get("Contents", [])]
            if not keys:
                return deleted

            result = await self._call(
                "delete_objects",
                Bucket=name,
                Delete={"Objects": [{"Key": k} for k in keys], "Quiet": True},
            )
            errors = result.get("Errors", [])
            if errors:
                first = errors[0]
                message = (
                    f"delete_objects failed for {len(errors)} of {len(keys)} "
                    f"objects in '{name}': {first.get('Key')}: "
                    f"{first.get('Code')}: {first.get('Message')}"
                )
                logger.error(message, bucket=name, deleted_count=deleted)
                raise RemoteError(
                    message,
                    operation="delete_objects",
                    code=first.get("Code"),
                    response=result,
                )
            deleted += len(keys)

    # Listing

    async def iter_object_pages(
        self, bucket: str, page_size: int = MAX_KEYS_PER_REQUEST, prefix: str = ""
    ) -> AsyncIterator[list[ObjectInfo]]:
        """Yield the bucket's objects one ListObjectsV2 page at a time."""
        if page_size <= 0 or page_size > MAX_KEYS_PER_REQUEST:
            raise ConfigError(
                f"page_size must be between 1 and {MAX_KEYS_PER_REQUEST}, "
                f"got {page_size}"
            )

        params: dict[str, Any] = {"Bucket": bucket, "MaxKeys": page_size}
        if prefix:
            params["Prefix"] = prefix

        while True:
            response = await self._call("list_objects_v2", **params)
            yield [ObjectInfo.from_response(e) for e in response.get("Contents", [])]

            if not response.get("IsTruncated"):
                return
            params["ContinuationToken"] = response["NextContinuationToken"]

    async def list_bucket_objects(
        self, bucket: str, prefix: str = ""
    ) -> list[ObjectInfo]:
        """List every object in ``bucket`` (optionally under ``prefix``)."""
        objects = []
        async for page in self.iter_object_pages(bucket, prefix=prefix):
            objects.extend(page)

        logger.debug(
            "Objects listed", bucket=bucket, prefix=prefix, object_count=len(objects)
        )
        return objects

    # Objects

    async def upload_object(
        self,
        bucket: str,
        key: str,
        source: UploadSource,
        content_type: Optional[str] = None,
        metadata: Optional[Mapping[str, str]] = None,
    ) -> None:
        """Upload ``source`` to ``bucket``/``key``, replacing any existing object.

        Payloads shorter than ``part_size`` go up in a single PutObject; longer
        ones switch to a multipart upload with parts sent concurrently.
        When the size of a seekable source is known up front the part size
        grows as needed to stay within the 10,000-part limit.

        Args:
            bucket: Target bucket
            key: Object key
            source: Bytes or a binary file-like object, read exactly once
            content_type: Optional Content-Type for the object
            metadata: Optional user metadata

        Raises:
            IoError: If ``source`` cannot be read
            ConfigError: If a stream of unknown size needs more than
                MAX_PARTS parts
            RemoteError: If the store rejects any request
        """
        if isinstance(source, (bytes, bytearray, memoryview)):
            source = io.BytesIO(source)
        elif not callable(getattr(source, "read", None)):
            raise IoError(
                f"Upload source for '{key}' is not readable: {type(source).__name__}"
            )

        extra: dict[str, Any] = {}
        if content_type:
            extra["ContentType"] = content_type
        if metadata:
            extra["Metadata"] = dict(metadata)

        part_size = self._part_size_for(_remaining_size(source))
        first_part = await self._read_part(source, part_size)
        if len(first_part) < part_size:
            await self._call(
                "put_object", Bucket=bucket, Key=key, Body=first_part, **extra
            )
            logger.info(
                "Object uploaded", bucket=bucket, key=key, size=len(first_part)
            )
            return

        await self._upload_multipart(
            bucket, key, source, part_size, first_part, extra
        )

    async def upload_file(
        self,
        bucket: str,
        key: str,
        path: Union[str, PathLike],
        content_type: Optional[str] = None,
        metadata: Optional[Mapping[str, str]] = None,
    ) -> None:
        """Upload a local file; see ``upload_object``."""
        try:
            handle = await asyncio.to_thread(open, path, "rb")
        except OSError as e:
            raise IoError(f"Cannot open upload source '{path}': {e}") from e

        try:
            await self.upload_object(bucket, key, handle, content_type, metadata)
        finally:
            handle.close()

    def _part_size_for(self, size: Optional[int]) -> int:
        if size is None:
            return self.part_size
        return max(self.part_size, math.ceil(size / MAX_PARTS))

    async def _read_part(self, source: Any, part_size: int) -> bytes:
        try:
            return await asyncio.to_thread(_read_chunk, source, part_size)
        except (OSError, ValueError) as e:
            raise IoError(f"Failed to read upload source: {e}") from e

    async def _upload_multipart(
        self,
        bucket: str,
        key: str,
        source: Any,
        part_size: int,
        first_part: bytes,
        extra: dict[str, Any],
    ) -> None:
        response = await self._call(
            "create_multipart_upload", Bucket=bucket, Key=key, **extra
        )
        upload_id = response["UploadId"]
        logger.debug("Multipart upload started", bucket=bucket, key=key)

        limiter = asyncio.Semaphore(self.max_concurrency)
        tasks: list[asyncio.Task] = []
        try:
            part_number, chunk = 1, first_part
            while chunk:
                if part_number > MAX_PARTS:
                    raise ConfigError(
                        f"Upload of '{key}' needs more than {MAX_PARTS} parts "
                        f"of {part_size} bytes"
                    )
                await limiter.acquire()
                _raise_first_failure(tasks)
                tasks.append(
                    asyncio.create_task(
                        self._upload_part(
                            bucket, key, upload_id, part_number, chunk, limiter
                        )
                    )
                )
                part_number += 1
                chunk = await self._read_part(source, part_size)

            parts = await asyncio.gather(*tasks)
            await self._call(
                "complete_multipart_upload",
                Bucket=bucket,
                Key=key,
                UploadId=upload_id,
                MultipartUpload={"Parts": list(parts)},
            )
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            await self._abort_multipart(bucket, key, upload_id)
            raise

        logger.info(
            "Object uploaded",
            bucket=bucket,
            key=key,
            part_count=len(parts),
            multipart=True,
        )

    async def _upload_part(
        self,
        bucket: str,
        key: str,
        upload_id: str,
        part_number: int,
        body: bytes,
        limiter: asyncio.Semaphore,
    ) -> dict[str, Any]:
        try:
            response = await self._call(
                "upload_part",
                Bucket=bucket,
                Key=key,
                UploadId=upload_id,
                PartNumber=part_number,
                Body=body,
            )
        finally:
            limiter.release()
        return {"ETag": response["ETag"], "PartNumber": part_number}

    async def _abort_multipart(self, bucket: str, key: str, upload_id: str) -> None:
        try:
            await self._call(
                "abort_multipart_upload", Bucket=bucket, Key=key, UploadId=upload_id
            )
        except RemoteError as e:
            # The upload error being propagated matters more than this one.
            logger.error(
                "Failed to abort multipart upload",
                bucket=bucket,
                key=key,
                upload_id=upload_id,
                error=str(e),
            )
        else:
            logger.warning("Multipart upload aborted", bucket=bucket, key=key)

    async def get_object(self, bucket: str, key: str) -> bytes:
        """Download the whole object body."""
        response = await self._call("get_object", Bucket=bucket, Key=key)
        body = response["Body"]
        try:
            data = await asyncio.to_thread(body.read)
        except (ClientError, BotoCoreError) as e:
            raise RemoteError.from_sdk_error("get_object", e) from e
        finally:
            body.close()

        logger.debug("Object downloaded", bucket=bucket, key=key, size=len(data))
        return data

    async def copy_object(
        self,
        bucket: str,
        key: str,
        new_key: str,
        destination_bucket: Optional[str] = None,
    ) -> None:
        """Server-side copy of ``bucket``/``key`` to ``new_key``."""
        target_bucket = destination_bucket or bucket
        await self._call(
            "copy_object",
            Bucket=target_bucket,
            Key=new_key,
            CopySource={"Bucket": bucket, "Key": key},
        )
        logger.info(
            "Object copied",
            bucket=bucket,
            key=key,
            destination_bucket=target_bucket,
            destination_key=new_key,
        )

    async def delete_object(self, bucket: str, key: str) -> None:
        """Delete ``bucket``/``key``.

        S3 answers success for keys that do not exist, so deleting twice is
        fine. Errors the store does report (``NoSuchBucket``, ``AccessDenied``)
        surface as ``RemoteError``; check ``is_not_found`` to tell them apart.
        """
        await self._call("delete_object", Bucket=bucket, Key=key)
        logger.info("Object deleted", bucket=bucket, key=key)

    # Presigned URLs

    async def _presign(
        self,
        client_method: str,
        params: dict[str, Any],
        expiry_seconds: int,
    ) -> str:
        validate_expiry(expiry_seconds)
        url = await self._call(
            "generate_presigned_url",
            ClientMethod=client_method,
            Params=params,
            ExpiresIn=expiry_seconds,
        )
        logger.info(
            "Presigned URL generated",
            method=client_method,
            bucket=params["Bucket"],
            key=params["Key"],
            expiry_seconds=expiry_seconds,
        )
        return url

    async def get_object_presigned(
        self, bucket: str, key: str, expiry_seconds: int
    ) -> str:
        """Return a GET URL valid for ``expiry_seconds`` from now.

        Signing happens locally; no request reaches the store.

        Raises:
            ConfigError: If ``expiry_seconds`` is not in 1..604800
        """
        return await self._presign(
            "get_object", {"Bucket": bucket, "Key": key}, expiry_seconds
        )

    async def upload_object_presigned(
        self,
        bucket: str,
        key: str,
        expiry_seconds: int,
        content_type: Optional[str] = None,
    ) -> str:
        """Return a PUT URL for uploading ``key`` directly."""
        params: dict[str, Any] = {"Bucket": bucket, "Key": key}
        if content_type:
            params["ContentType"] = content_type
        return await self._presign("put_object", params, expiry_seconds)

    async def delete_object_presigned(
        self, bucket: str, key: str, expiry_seconds: int
    ) -> str:
        """Return a DELETE URL for ``key``."""
        return await self._presign(
            "delete_object", {"Bucket": bucket, "Key": key}, expiry_seconds
        )
