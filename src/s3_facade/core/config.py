"""Configuration management for s3-facade."""

from typing import Literal, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    log_level: str = "INFO"
    log_format: Literal["json", "console"] = "json"
    sdk_log_level: str = "WARNING"
    otel_enabled: bool = False
    otel_service_name: str = "s3-facade"

    # Connection
    endpoint_url: Optional[str] = None
    region_name: str = "us-east-1"
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    session_token: Optional[str] = None
    aws_profile: Optional[str] = None
    addressing_style: str = "path"
    connect_timeout: int = 60
    read_timeout: int = 60

    # Transfers
    multipart_part_size: int = 5 * 1024 * 1024
    max_concurrency: int = 4
    default_presign_expiry: int = 3600

    model_config = {
        "env_prefix": "S3_FACADE_",
        "case_sensitive": False,
    }


settings = Settings()
