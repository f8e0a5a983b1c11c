"""Bootstrap engine: create, wait, certify, initialize, expand."""

import asyncio

from hsmboot.certificates.authority import build_certificate_material
from hsmboot.convergence.initializer import initialize_cluster
from hsmboot.convergence.waiter import wait_for_cluster_status, wait_for_hsm_status
from hsmboot.core.config import HsmBootConfig
from hsmboot.core.exceptions import CertificateError
from hsmboot.core.models import BootstrapResult, ClusterStatus, HsmStatus
from hsmboot.interfaces.hsm_provider import HsmProvider
from hsmboot.provisioning.provisioner import ClusterProvisioner
from hsmboot.utils.logging import get_logger

logger = get_logger(__name__)


class BootstrapEngine:
    """Drives a cluster from creation to INITIALIZED with two HSM nodes."""

    def __init__(self, provider: HsmProvider, config: HsmBootConfig):
        """Initialize bootstrap engine.

        Args:
            provider: HSM control plane
            config: Cluster, certificate and waiter settings
        """
        self.provider = provider
        self.config = config
        self.provisioner = ClusterProvisioner(provider, config.cluster)

    def _wait_kwargs(self, cancel_event: asyncio.Event | None) -> dict:
        return {
            "timeout_seconds": self.config.waiter.timeout_seconds,
            "delay_seconds": self.config.waiter.delay_seconds,
            "cancel_event": cancel_event,
        }

    async def plan(self, existing_cluster_id: str | None = None) -> BootstrapResult:
        """Describe the actions a bootstrap would take without contacting the provider.

        Raises:
            ConfigurationError: If the configuration cannot support a bootstrap
        """
        actions = []
        if existing_cluster_id:
            actions.append(f"adopt cluster {existing_cluster_id}")
        else:
            await self.provisioner.create_cluster(dry_run=True)
            actions.append(
                f"create {self.config.cluster.hsm_type} cluster in subnets "
                f"{', '.join(self.config.cluster.subnet_ids)}"
            )
        zone = self.provisioner.resolve_availability_zone()
        actions.extend(
            [
                f"wait for cluster status {ClusterStatus.UNINITIALIZED.value}",
                f"create first HSM in {zone}",
                f"wait for HSM status {HsmStatus.ACTIVE.value}",
                "sign cluster CSR with a generated certificate authority",
                "initialize cluster",
                f"wait for cluster status {ClusterStatus.INITIALIZED.value}",
                f"create second HSM in {zone}",
            ]
        )

        logger.info("bootstrap_planned", actions=len(actions))
        return BootstrapResult(
            cluster_id=existing_cluster_id, dry_run=True, planned_actions=actions
        )

    async def bootstrap(
        self,
        existing_cluster_id: str | None = None,
        dry_run: bool = False,
        cancel_event: asyncio.Event | None = None,
    ) -> BootstrapResult:
        """Run the full bootstrap.

        Args:
            existing_cluster_id: Adopt this cluster instead of creating one
            dry_run: Plan only; no provider calls
            cancel_event: Set to abort any wait in progress

        Returns:
            BootstrapResult with cluster id, CSR, states and HSM ids

        Raises:
            CertificateError: If the cluster never publishes a CSR
            ClusterNotFoundError: If the cluster disappears
            ConvergenceTimeoutError: If a wait budget is exhausted
            WaitCancelledError: If ``cancel_event`` is set
            ProviderError: If a provider call fails
        """
        if dry_run:
            return await self.plan(existing_cluster_id)

        wait_kwargs = self._wait_kwargs(cancel_event)

        cluster_id = existing_cluster_id or await self.provisioner.create_cluster()
        logger.info("bootstrap_started", cluster_id=cluster_id)

        uninitialized = await wait_for_cluster_status(
            self.provider, cluster_id, {ClusterStatus.UNINITIALIZED.value}, **wait_kwargs
        )

        if uninitialized.hsms:
            first_hsm_id = uninitialized.hsms[0].hsm_id
            logger.info("reusing_existing_hsm", cluster_id=cluster_id, hsm_id=first_hsm_id)
        else:
            first_hsm_id = await self.provisioner.create_hsm(cluster_id)

        await wait_for_hsm_status(
            self.provider, cluster_id, first_hsm_id, {HsmStatus.ACTIVE.value}, **wait_kwargs
        )

        # CSR is published once the first HSM is up; read it fresh
        with_csr = await wait_for_cluster_status(
            self.provider, cluster_id, {ClusterStatus.UNINITIALIZED.value}, **wait_kwargs
        )
        cluster_csr = with_csr.cluster_csr
        if not cluster_csr:
            raise CertificateError(f"Cluster {cluster_id} has not published a CSR")

        material = build_certificate_material(cluster_csr, self.config.certificates)

        initialized = await initialize_cluster(
            self.provider,
            cluster_id,
            material.signed_cert_pem,
            material.trust_anchor_pem,
            **wait_kwargs,
        )

        if len(uninitialized.hsms) >= 2:
            second_hsm_id = uninitialized.hsms[1].hsm_id
            logger.info(
                "reusing_existing_hsm", cluster_id=initialized.cluster_id, hsm_id=second_hsm_id
            )
        else:
            # Node creation keyed on the converged snapshot, never on the input id
            second_hsm_id = await self.provisioner.create_hsm(initialized.cluster_id)

        logger.info(
            "bootstrap_complete",
            cluster_id=initialized.cluster_id,
            final_state=initialized.status,
            hsm_ids=[first_hsm_id, second_hsm_id],
        )

        return BootstrapResult(
            cluster_id=initialized.cluster_id,
            cluster_state=uninitialized.status,
            cluster_csr=cluster_csr,
            final_state=initialized.status,
            hsm_ids=[first_hsm_id, second_hsm_id],
        )
