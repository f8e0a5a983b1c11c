"""Integration test fixtures and configuration."""

import os

import boto3
import pytest
from botocore.exceptions import BotoCoreError, ClientError


@pytest.fixture
def aws_test_region() -> str:
    """AWS region for integration tests."""
    return os.getenv("AWS_TEST_REGION", "us-east-1")


@pytest.fixture
def skip_if_no_aws_credentials(aws_test_region: str):
    """Skip test if AWS credentials are not available."""
    try:
        sts = boto3.client("sts", region_name=aws_test_region)
        sts.get_caller_identity()
    except (BotoCoreError, ClientError) as e:
        pytest.skip(f"AWS credentials not available: {e}")


@pytest.fixture
def hsmboot_test_cluster_id() -> str | None:
    """Existing cluster to describe (optional).

    Set HSMBOOT_TEST_CLUSTER_ID to exercise reads against a real cluster.
    """
    return os.getenv("HSMBOOT_TEST_CLUSTER_ID")
