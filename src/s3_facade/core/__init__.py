"""Core utilities and shared components for s3-facade."""

from .config import settings
from .exceptions import ConfigError, IoError, RemoteError, S3FacadeError
from .observability import get_logger, get_tracer

__all__ = [
    "settings",
    "S3FacadeError",
    "RemoteError",
    "IoError",
    "ConfigError",
    "get_logger",
    "get_tracer",
]
