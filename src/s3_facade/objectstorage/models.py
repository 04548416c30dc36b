"""Value types returned by listing operations."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class BucketInfo:
    """A bucket as reported by ListBuckets."""

    name: str
    creation_date: Optional[datetime] = None

    @classmethod
    def from_response(cls, entry: Mapping[str, Any]) -> "BucketInfo":
        return cls(name=entry["Name"], creation_date=entry.get("CreationDate"))


@dataclass(frozen=True)
class ObjectInfo:
    """An object entry from a ListObjectsV2 page."""

    key: str
    size: int = 0
    etag: Optional[str] = None
    last_modified: Optional[datetime] = None

    @classmethod
    def from_response(cls, entry: Mapping[str, Any]) -> "ObjectInfo":
        return cls(
            key=entry["Key"],
            size=entry.get("Size", 0),
            etag=entry.get("ETag"),
            last_modified=entry.get("LastModified"),
        )
