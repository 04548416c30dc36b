"""Test configuration and fixtures for s3-facade."""

import boto3
import pytest
from moto import mock_aws

from s3_facade.objectstorage import S3ClientConfig, S3ObjectStore

BUCKET = "test-bucket"


@pytest.fixture
def aws_credentials(monkeypatch):
    """Fake credentials so nothing can reach a real AWS account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "test_key")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "test_secret")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture
def mocked_s3(aws_credentials):
    """Activate moto's in-process S3 for the duration of a test."""
    with mock_aws():
        yield


@pytest.fixture
def s3_client(mocked_s3):
    """Plain boto3 client used to arrange and inspect remote state."""
    return boto3.client(
        "s3",
        aws_access_key_id="test_key",
        aws_secret_access_key="test_secret",
        region_name="us-east-1",
    )


@pytest.fixture
def client_config():
    return S3ClientConfig(
        access_key_id="test_key",
        secret_access_key="test_secret",
        region_name="us-east-1",
    )


@pytest.fixture
def store(mocked_s3, client_config):
    """Façade bound to the mocked store."""
    return S3ObjectStore(client_config)


@pytest.fixture
def bucket(s3_client):
    """An existing, empty bucket."""
    s3_client.create_bucket(Bucket=BUCKET)
    return BUCKET
