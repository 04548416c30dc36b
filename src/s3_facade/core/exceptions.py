"""Exception hierarchy for s3-facade."""

from typing import Any, Optional

from botocore.exceptions import BotoCoreError, ClientError

NOT_FOUND_CODES = frozenset({"NoSuchKey", "NoSuchBucket", "NotFound", "404"})


class S3FacadeError(Exception):
    """Base exception for all s3-facade errors."""

    pass


class RemoteError(S3FacadeError):
    """Raised when the remote store rejects or fails to complete an operation.

    Carries the store's error payload so callers can tell causes apart
    (``code`` is the S3 error code, e.g. ``NoSuchBucket`` or
    ``BucketNotEmpty``).
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        response: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.code = code
        self.status_code = status_code
        self.response = response or {}

    @property
    def is_not_found(self) -> bool:
        """True when the store reported a missing bucket or key."""
        return self.code in NOT_FOUND_CODES or self.status_code == 404

    @classmethod
    def from_sdk_error(cls, operation: str, error: Exception) -> "RemoteError":
        """Wrap a botocore error raised by ``operation``."""
        if isinstance(error, ClientError):
            response = error.response
            details = response.get("Error", {})
            code = details.get("Code")
            status_code = response.get("ResponseMetadata", {}).get("HTTPStatusCode")
            message = details.get("Message") or str(error)
            return cls(
                f"{operation} failed: {code}: {message}",
                operation=operation,
                code=code,
                status_code=status_code,
                response=response,
            )

        if isinstance(error, BotoCoreError):
            return cls(
                f"{operation} failed: {error}",
                operation=operation,
                code=type(error).__name__,
            )

        return cls(f"{operation} failed: {error}", operation=operation)


class IoError(S3FacadeError):
    """Raised when an upload source cannot be opened or read."""

    pass


class ConfigError(S3FacadeError):
    """Raised when a parameter is rejected before any network call."""

    pass
