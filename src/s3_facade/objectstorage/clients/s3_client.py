"""S3 client configuration and management.

This module provides S3 client configuration and management functionality
with support for multiple authentication methods and S3-compatible services.

The S3ClientManager handles the complexity of boto3 client creation with
different credential sources and provides utilities for S3 path parsing.

Authentication Methods Supported:
    1. Explicit credentials (access_key_id, secret_access_key)
    2. AWS CLI profiles (aws_profile)
    3. IAM roles / environment variables (no explicit credentials)
    4. Temporary credentials (session_token)

S3-Compatible Services:
    Supports custom endpoints for services like MinIO via endpoint_url. Path
    style addressing is the default since most self-hosted stores do not
    resolve virtual-host bucket names.
"""

from typing import Any, Dict, Optional
from urllib.parse import urlparse

import boto3
from botocore.config import Config
from pydantic import BaseModel, ConfigDict, Field

from s3_facade.core import get_logger
from s3_facade.core.config import Settings, settings
from s3_facade.core.exceptions import ConfigError

logger = get_logger(__name__)


class S3ClientConfig(BaseModel):
    """Connection settings for a single S3-compatible store.

    Authentication Priority:
        1. If aws_profile is provided, use profile-based authentication
        2. If explicit credentials are provided, use them
        3. Otherwise, fall back to default AWS credential chain

    Example:
        # MinIO endpoint
        config = S3ClientConfig(
            endpoint_url="http://localhost:9000",
            access_key_id="minioadmin",
            secret_access_key="minioadmin"
        )

        # Whatever S3_FACADE_* environment variables say
        config = S3ClientConfig.from_settings()
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    access_key_id: Optional[str] = Field(None, description="AWS access key ID")
    secret_access_key: Optional[str] = Field(None, description="AWS secret access key")
    session_token: Optional[str] = Field(
        None, description="AWS session token for temporary credentials"
    )
    region_name: str = Field("us-east-1", description="AWS region name")
    endpoint_url: Optional[str] = Field(
        None, description="Custom S3 endpoint URL for S3-compatible services"
    )
    aws_profile: Optional[str] = Field(
        None, description="AWS CLI profile name to use for credentials"
    )
    addressing_style: str = Field("path", description="'path', 'virtual' or 'auto'")
    connect_timeout: int = Field(60, gt=0, description="Socket connect timeout")
    read_timeout: int = Field(60, gt=0, description="Socket read timeout")

    @classmethod
    def from_settings(cls, source: Optional[Settings] = None) -> "S3ClientConfig":
        """Build a config from environment-derived settings."""
        source = source or settings
        return cls(
            access_key_id=source.access_key_id,
            secret_access_key=source.secret_access_key,
            session_token=source.session_token,
            region_name=source.region_name,
            endpoint_url=source.endpoint_url,
            aws_profile=source.aws_profile,
            addressing_style=source.addressing_style,
            connect_timeout=source.connect_timeout,
            read_timeout=source.read_timeout,
        )


class S3ClientManager:
    """Manages S3 client connections and provides utility methods."""

    def __init__(self, config: S3ClientConfig):
        """Initialize S3 client manager.

        Args:
            config: S3 client configuration
        """
        self.config = config
        self._client = None
        logger.info(
            "S3 client manager initialized",
            region=config.region_name,
            endpoint_url=config.endpoint_url,
        )

    @property
    def client(self):
        """Get or create S3 client instance."""
        if self._client is None:
            self._client = self._create_client()
        return self._client

    def _create_client(self):
        """Create boto3 S3 client with the configured settings."""
        kwargs: Dict[str, Any] = {
            "region_name": self.config.region_name,
            # SigV4 is required for presigned URLs to carry X-Amz-Expires
            "config": Config(
                signature_version="s3v4",
                s3={"addressing_style": self.config.addressing_style},
                connect_timeout=self.config.connect_timeout,
                read_timeout=self.config.read_timeout,
            ),
        }

        if self.config.endpoint_url:
            kwargs["endpoint_url"] = self.config.endpoint_url

        if self.config.aws_profile:
            session = boto3.Session(profile_name=self.config.aws_profile)
            client = session.client("s3", **kwargs)  # type: ignore
            logger.info(
                "S3 client created with profile", profile=self.config.aws_profile
            )
        else:
            if self.config.access_key_id and self.config.secret_access_key:
                kwargs.update(
                    {
                        "aws_access_key_id": self.config.access_key_id,
                        "aws_secret_access_key": self.config.secret_access_key,
                    }
                )
                if self.config.session_token:
                    kwargs["aws_session_token"] = self.config.session_token
                logger.info("S3 client created with explicit credentials")
            else:
                logger.info("S3 client created with default credential chain")

            client = boto3.client("s3", **kwargs)  # type: ignore

        return client

    @staticmethod
    def parse_s3_path(s3_path: str) -> tuple[str, str]:
        """Parse S3 path into bucket and key components.

        Args:
            s3_path: S3 path in format s3://bucket/key or s3://bucket

        Returns:
            Tuple of (bucket_name, key)

        Raises:
            ConfigError: If path format is invalid
        """
        if not s3_path.startswith("s3://"):
            raise ConfigError(f"S3 path must start with 's3://': {s3_path}")

        parsed = urlparse(s3_path)
        bucket = parsed.netloc
        key = parsed.path.lstrip("/")

        if not bucket:
            raise ConfigError(f"Invalid S3 path, missing bucket: {s3_path}")

        logger.debug("S3 path parsed", bucket=bucket, key=key)
        return bucket, key
