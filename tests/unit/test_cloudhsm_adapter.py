"""Unit tests for CloudHSMAdapter.

All AWS SDK calls are mocked through a MagicMock AWSClient.
"""

import asyncio
import contextlib
import time
from unittest.mock import MagicMock, patch

import pytest

from hsmboot.adapters.cloudhsm_adapter import CloudHSMAdapter
from hsmboot.core.exceptions import AWSError
from hsmboot.core.models import ClusterSnapshot
from hsmboot.interfaces.exceptions import ProviderError


@pytest.fixture
def mock_client() -> MagicMock:
    client = MagicMock()
    client.region = "us-east-1"
    return client


class TestCloudHSMAdapterInit:
    """Tests for CloudHSMAdapter initialization."""

    @patch("hsmboot.adapters.cloudhsm_adapter.AWSClient")
    def test_init_with_defaults(self, mock_aws_client_class: MagicMock) -> None:
        adapter = CloudHSMAdapter()

        mock_aws_client_class.assert_called_once_with(region="us-east-1", profile=None)
        assert adapter.client == mock_aws_client_class.return_value

    @patch("hsmboot.adapters.cloudhsm_adapter.AWSClient")
    def test_init_with_region_and_profile(self, mock_aws_client_class: MagicMock) -> None:
        CloudHSMAdapter(region="eu-west-1", profile="hsm-admin")

        mock_aws_client_class.assert_called_once_with(region="eu-west-1", profile="hsm-admin")

    @patch("hsmboot.adapters.cloudhsm_adapter.AWSClient")
    def test_init_with_existing_client(
        self, mock_aws_client_class: MagicMock, mock_client: MagicMock
    ) -> None:
        adapter = CloudHSMAdapter(client=mock_client)

        mock_aws_client_class.assert_not_called()
        assert adapter.client is mock_client


class TestDescribeClusters:
    """Tests for describe_clusters."""

    @pytest.mark.asyncio
    async def test_maps_records_to_snapshots(self, mock_client, cluster_record) -> None:
        mock_client.describe_clusters.return_value = {
            "Clusters": [cluster_record("UNINITIALIZED", csr="CSR-PEM")]
        }
        adapter = CloudHSMAdapter(client=mock_client)

        clusters = await adapter.describe_clusters(["abc-123"])

        mock_client.describe_clusters.assert_called_once_with(["abc-123"])
        assert len(clusters) == 1
        assert isinstance(clusters[0], ClusterSnapshot)
        assert clusters[0].status == "UNINITIALIZED"
        assert clusters[0].cluster_csr == "CSR-PEM"

    @pytest.mark.asyncio
    async def test_missing_collection_returns_none(self, mock_client) -> None:
        mock_client.describe_clusters.return_value = {"ResponseMetadata": {}}
        adapter = CloudHSMAdapter(client=mock_client)

        assert await adapter.describe_clusters(["abc-123"]) is None

    @pytest.mark.asyncio
    async def test_empty_collection_returns_empty_list(self, mock_client) -> None:
        mock_client.describe_clusters.return_value = {"Clusters": []}
        adapter = CloudHSMAdapter(client=mock_client)

        assert await adapter.describe_clusters(["abc-123"]) == []

    @pytest.mark.asyncio
    async def test_queries_fresh_every_call(self, mock_client, cluster_record) -> None:
        mock_client.describe_clusters.side_effect = [
            {"Clusters": [cluster_record("CREATE_IN_PROGRESS")]},
            {"Clusters": [cluster_record("UNINITIALIZED")]},
        ]
        adapter = CloudHSMAdapter(client=mock_client)

        first = await adapter.describe_clusters(["abc-123"])
        second = await adapter.describe_clusters(["abc-123"])

        assert first[0].status == "CREATE_IN_PROGRESS"
        assert second[0].status == "UNINITIALIZED"
        assert mock_client.describe_clusters.call_count == 2

    @pytest.mark.asyncio
    async def test_client_error_becomes_provider_error(self, mock_client) -> None:
        mock_client.describe_clusters.side_effect = AWSError("AccessDeniedException")
        adapter = CloudHSMAdapter(client=mock_client)

        with pytest.raises(ProviderError, match="AccessDeniedException"):
            await adapter.describe_clusters(["abc-123"])

    @pytest.mark.asyncio
    async def test_blocking_read_does_not_stall_event_loop(
        self, mock_client, cluster_record
    ) -> None:
        def slow_describe(cluster_ids):
            # Stands in for a throttled read backing off inside tenacity
            time.sleep(0.3)
            return {"Clusters": [cluster_record("ACTIVE")]}

        mock_client.describe_clusters.side_effect = slow_describe
        adapter = CloudHSMAdapter(client=mock_client)
        ticks: list[float] = []

        async def ticker() -> None:
            while True:
                ticks.append(time.monotonic())
                await asyncio.sleep(0.02)

        task = asyncio.create_task(ticker())
        clusters = await adapter.describe_clusters(["abc-123"])
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

        assert clusters[0].status == "ACTIVE"
        assert len(ticks) >= 5
        assert max(b - a for a, b in zip(ticks, ticks[1:])) < 0.2


class TestCommands:
    """Tests for initialize_cluster, create_cluster and create_hsm."""

    @pytest.mark.asyncio
    async def test_initialize_cluster(self, mock_client) -> None:
        mock_client.initialize_cluster.return_value = "INITIALIZE_IN_PROGRESS"
        adapter = CloudHSMAdapter(client=mock_client)

        state = await adapter.initialize_cluster("abc-123", "SIGNED", "ANCHOR")

        assert state == "INITIALIZE_IN_PROGRESS"
        mock_client.initialize_cluster.assert_called_once_with("abc-123", "SIGNED", "ANCHOR")

    @pytest.mark.asyncio
    async def test_initialize_cluster_failure(self, mock_client) -> None:
        mock_client.initialize_cluster.side_effect = AWSError("InvalidRequestException")
        adapter = CloudHSMAdapter(client=mock_client)

        with pytest.raises(ProviderError, match="abc-123"):
            await adapter.initialize_cluster("abc-123", "SIGNED", "ANCHOR")

    @pytest.mark.asyncio
    async def test_create_cluster_returns_id(self, mock_client) -> None:
        mock_client.create_cluster.return_value = {
            "ClusterId": "abc-123",
            "State": "CREATE_IN_PROGRESS",
        }
        adapter = CloudHSMAdapter(client=mock_client)

        cluster_id = await adapter.create_cluster("hsm1.medium", ["subnet-1"])

        assert cluster_id == "abc-123"
        mock_client.create_cluster.assert_called_once_with(
            hsm_type="hsm1.medium",
            subnet_ids=["subnet-1"],
            backup_retention_days=None,
            tags=None,
        )

    @pytest.mark.asyncio
    async def test_create_hsm_returns_id(self, mock_client) -> None:
        mock_client.create_hsm.return_value = {"HsmId": "hsm-111", "State": "CREATE_IN_PROGRESS"}
        adapter = CloudHSMAdapter(client=mock_client)

        hsm_id = await adapter.create_hsm("abc-123", "us-east-1a")

        assert hsm_id == "hsm-111"
        mock_client.create_hsm.assert_called_once_with("abc-123", "us-east-1a")

    @pytest.mark.asyncio
    async def test_create_hsm_failure(self, mock_client) -> None:
        mock_client.create_hsm.side_effect = AWSError("CloudHsmInvalidRequestException")
        adapter = CloudHSMAdapter(client=mock_client)

        with pytest.raises(ProviderError):
            await adapter.create_hsm("abc-123", "us-east-1a")
