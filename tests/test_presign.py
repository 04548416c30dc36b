"""Tests for presigned URL generation."""

import asyncio
from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

import pytest

from s3_facade.core.exceptions import ConfigError
from s3_facade.objectstorage import (
    MAX_PRESIGN_EXPIRY,
    S3ClientConfig,
    S3ObjectStore,
    validate_expiry,
)


class TestValidateExpiry:
    """Test expiry validation."""

    @pytest.mark.parametrize("expiry", [1, 1337, MAX_PRESIGN_EXPIRY])
    def test_valid_expiry(self, expiry):
        """Test values inside the allowed window pass through."""
        assert validate_expiry(expiry) == expiry

    @pytest.mark.parametrize("expiry", [0, -1, -3600])
    def test_non_positive_expiry(self, expiry):
        """Test zero and negative values are rejected."""
        with pytest.raises(ConfigError, match="must be positive"):
            validate_expiry(expiry)

    def test_expiry_above_maximum(self):
        """Test values above the SigV4 limit are rejected."""
        with pytest.raises(ConfigError, match="must not exceed"):
            validate_expiry(MAX_PRESIGN_EXPIRY + 1)

    @pytest.mark.parametrize("expiry", [1.5, "60", True])
    def test_non_integer_expiry(self, expiry):
        """Test non-integer values are rejected."""
        with pytest.raises(ConfigError, match="must be an integer"):
            validate_expiry(expiry)


class TestGetObjectPresigned:
    """Test presigned GET URLs."""

    def test_presigned_url_expiry(self, store, bucket):
        """Test the URL is signed for the requested lifetime."""
        url = asyncio.run(store.get_object_presigned(bucket, "shark.jpg", 1337))

        parsed = urlparse(url)
        query = parse_qs(parsed.query)
        assert parsed.path == f"/{bucket}/shark.jpg"
        assert query["X-Amz-Expires"] == ["1337"]
        assert query["X-Amz-Algorithm"] == ["AWS4-HMAC-SHA256"]
        assert "X-Amz-Signature" in query

    def test_presigned_url_uses_endpoint(self, mocked_s3):
        """Test a custom endpoint is reflected in the URL."""
        store = S3ObjectStore(
            S3ClientConfig(
                endpoint_url="http://127.0.0.1:9000",
                access_key_id="minioadmin",
                secret_access_key="minioadmin",
            )
        )

        url = asyncio.run(store.get_object_presigned("sharks", "shark.jpg", 3600))

        assert url.startswith("http://127.0.0.1:9000/sharks/shark.jpg?")

    @pytest.mark.parametrize("expiry", [0, -5, MAX_PRESIGN_EXPIRY + 1])
    def test_invalid_expiry_skips_sdk(self, store, expiry):
        """Test invalid expiries fail before the SDK is called."""
        with patch.object(store.client, "generate_presigned_url") as presign:
            with pytest.raises(ConfigError):
                asyncio.run(store.get_object_presigned("bucket", "key", expiry))

        presign.assert_not_called()


class TestOtherPresignedUrls:
    """Test presigned PUT and DELETE URLs."""

    def test_upload_object_presigned(self, store):
        """Test a PUT URL is signed with the content type."""
        with patch.object(
            store.client, "generate_presigned_url", return_value="https://signed"
        ) as presign:
            url = asyncio.run(
                store.upload_object_presigned(
                    "bucket", "key", 600, content_type="image/png"
                )
            )

        assert url == "https://signed"
        presign.assert_called_once_with(
            ClientMethod="put_object",
            Params={"Bucket": "bucket", "Key": "key", "ContentType": "image/png"},
            ExpiresIn=600,
        )

    def test_delete_object_presigned(self, store):
        """Test a DELETE URL is signed for the object."""
        url = asyncio.run(store.delete_object_presigned("bucket", "key", 60))

        query = parse_qs(urlparse(url).query)
        assert query["X-Amz-Expires"] == ["60"]

    def test_delete_object_presigned_rejects_zero(self, store):
        """Test the same expiry rules apply to DELETE URLs."""
        with pytest.raises(ConfigError):
            asyncio.run(store.delete_object_presigned("bucket", "key", 0))
