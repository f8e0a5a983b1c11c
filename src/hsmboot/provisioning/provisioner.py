"""Declare the cluster and its HSM nodes to the provider."""

from collections.abc import Awaitable

from hsmboot.convergence.waiter import resolve_id
from hsmboot.core.config import ClusterSettings
from hsmboot.core.exceptions import ConfigurationError
from hsmboot.interfaces.hsm_provider import HsmProvider
from hsmboot.utils.logging import get_logger

logger = get_logger(__name__)


class ClusterProvisioner:
    """Creates clusters and HSM nodes from ClusterSettings."""

    def __init__(self, provider: HsmProvider, settings: ClusterSettings):
        """Initialize provisioner.

        Args:
            provider: HSM control plane
            settings: Desired cluster layout
        """
        self.provider = provider
        self.settings = settings

    async def create_cluster(self, dry_run: bool = False) -> str | None:
        """Create the cluster.

        Returns:
            New cluster id, or None in dry-run

        Raises:
            ConfigurationError: If no subnets are configured
            ProviderError: If creation fails
        """
        if not self.settings.subnet_ids:
            raise ConfigurationError("cluster.subnet_ids must list at least one subnet")

        if dry_run:
            logger.info("create_cluster_skipped_dry_run", hsm_type=self.settings.hsm_type)
            return None

        cluster_id = await self.provider.create_cluster(
            hsm_type=self.settings.hsm_type,
            subnet_ids=self.settings.subnet_ids,
            backup_retention_days=self.settings.backup_retention_days,
            tags=self.settings.tags or None,
        )
        logger.info("cluster_created", cluster_id=cluster_id)
        return cluster_id

    def resolve_availability_zone(self, override: str | None = None) -> str:
        """Zone for a new HSM: the override, else the configured zone.

        Raises:
            ConfigurationError: If neither is set
        """
        zone = override or self.settings.availability_zone
        if not zone:
            raise ConfigurationError("cluster.availability_zone is required to create an HSM")
        return zone

    async def create_hsm(
        self,
        cluster_id: str | Awaitable[str],
        availability_zone: str | None = None,
        dry_run: bool = False,
    ) -> str | None:
        """Create an HSM node in a cluster.

        ``cluster_id`` may be an awaitable, so node creation can be chained on
        a cluster id that only exists once an earlier step converges.

        Returns:
            New HSM id, or None in dry-run

        Raises:
            ConfigurationError: If no availability zone is known
            ProviderError: If creation fails
        """
        zone = self.resolve_availability_zone(availability_zone)

        if dry_run:
            logger.info("create_hsm_skipped_dry_run", availability_zone=zone)
            return None

        resolved_id = await resolve_id(cluster_id)
        hsm_id = await self.provider.create_hsm(resolved_id, zone)
        logger.info("hsm_created", cluster_id=resolved_id, hsm_id=hsm_id, availability_zone=zone)
        return hsm_id
