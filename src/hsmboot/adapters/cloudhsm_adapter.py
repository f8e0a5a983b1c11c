"""CloudHSM adapter implementing HsmProvider interface.

AWSClient calls block (including the throttle backoff), so they run in worker
threads.
"""

import asyncio

from hsmboot.clients.aws_client import AWSClient
from hsmboot.core.models import ClusterSnapshot
from hsmboot.interfaces.exceptions import ProviderError
from hsmboot.interfaces.hsm_provider import HsmProvider
from hsmboot.utils.logging import get_logger

logger = get_logger(__name__)


class CloudHSMAdapter(HsmProvider):
    """Adapter wrapping AWSClient to implement HsmProvider interface.

    This adapter hides AWS-specific implementation details (boto3, ClientError)
    behind the HsmProvider interface.
    """

    def __init__(
        self,
        region: str = "us-east-1",
        profile: str | None = None,
        client: AWSClient | None = None,
    ):
        """Initialize CloudHSM adapter.

        Args:
            region: AWS region
            profile: AWS profile name (optional)
            client: Existing AWSClient (optional, overrides region and profile)
        """
        self.client = client or AWSClient(region=region, profile=profile)
        logger.debug("cloudhsm_adapter_initialized", region=self.client.region)

    async def describe_clusters(self, cluster_ids: list[str]) -> list[ClusterSnapshot] | None:
        """Describe clusters matching the given ids.

        Args:
            cluster_ids: Cluster ids to filter on

        Returns:
            Snapshots built from the response, or None if it has no ``Clusters`` key

        Raises:
            ProviderError: If the query fails
        """
        try:
            response = await asyncio.to_thread(self.client.describe_clusters, cluster_ids)
        except Exception as e:
            logger.error("describe_clusters_failed", cluster_ids=cluster_ids, error=str(e))
            raise ProviderError(f"Failed to describe clusters: {e}") from e

        clusters = response.get("Clusters")
        if clusters is None:
            return None
        return [ClusterSnapshot.from_response(c) for c in clusters]

    async def initialize_cluster(self, cluster_id: str, signed_cert: str, trust_anchor: str) -> str:
        """Issue the one-shot initialize command.

        Raises:
            ProviderError: If the command fails
        """
        try:
            return await asyncio.to_thread(
                self.client.initialize_cluster, cluster_id, signed_cert, trust_anchor
            )
        except Exception as e:
            logger.error("initialize_cluster_failed", cluster_id=cluster_id, error=str(e))
            raise ProviderError(f"Failed to initialize cluster {cluster_id}: {e}") from e

    async def create_cluster(
        self,
        hsm_type: str,
        subnet_ids: list[str],
        backup_retention_days: int | None = None,
        tags: dict[str, str] | None = None,
    ) -> str:
        """Create a cluster and return its id.

        Raises:
            ProviderError: If creation fails
        """
        try:
            cluster = await asyncio.to_thread(
                self.client.create_cluster,
                hsm_type=hsm_type,
                subnet_ids=subnet_ids,
                backup_retention_days=backup_retention_days,
                tags=tags,
            )
            return cluster["ClusterId"]
        except Exception as e:
            logger.error("create_cluster_failed", hsm_type=hsm_type, error=str(e))
            raise ProviderError(f"Failed to create cluster: {e}") from e

    async def create_hsm(self, cluster_id: str, availability_zone: str) -> str:
        """Create an HSM in a cluster and return its id.

        Raises:
            ProviderError: If creation fails
        """
        try:
            hsm = await asyncio.to_thread(self.client.create_hsm, cluster_id, availability_zone)
            return hsm["HsmId"]
        except Exception as e:
            logger.error("create_hsm_failed", cluster_id=cluster_id, error=str(e))
            raise ProviderError(f"Failed to create HSM in cluster {cluster_id}: {e}") from e
