"""HSM provider interface for cluster control-plane operations."""

from abc import ABC, abstractmethod

from hsmboot.core.models import ClusterSnapshot


class HsmProvider(ABC):
    """Abstract interface for an HSM cluster control plane.

    Implementations hide provider-specific details (boto3 exceptions, response
    formats) and must query the control plane on every call; no client-side
    caching of cluster state.
    """

    @abstractmethod
    async def describe_clusters(self, cluster_ids: list[str]) -> list[ClusterSnapshot] | None:
        """Describe clusters matching the given ids.

        Args:
            cluster_ids: Cluster ids to filter on

        Returns:
            Matching snapshots, or None if the provider returned no collection

        Raises:
            ProviderError: If the query fails
        """

    @abstractmethod
    async def initialize_cluster(self, cluster_id: str, signed_cert: str, trust_anchor: str) -> str:
        """Issue the one-shot initialize command.

        Args:
            cluster_id: Cluster to initialize
            signed_cert: PEM certificate signed from the cluster CSR
            trust_anchor: PEM certificate of the issuing CA

        Returns:
            Immediate status from the provider (not authoritative)

        Raises:
            ProviderError: If the command fails
        """

    @abstractmethod
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

    @abstractmethod
    async def create_hsm(self, cluster_id: str, availability_zone: str) -> str:
        """Create an HSM in a cluster and return its id.

        Raises:
            ProviderError: If creation fails
        """
