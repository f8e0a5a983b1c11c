"""One-shot cluster initialization followed by a wait for INITIALIZED."""

import asyncio
from collections.abc import Awaitable

from hsmboot.convergence.waiter import (
    DEFAULT_DELAY_SECONDS,
    DEFAULT_TIMEOUT_SECONDS,
    resolve_id,
    wait_for_cluster_status,
)
from hsmboot.core.models import ClusterSnapshot, ClusterStatus
from hsmboot.interfaces.hsm_provider import HsmProvider
from hsmboot.utils.logging import get_logger

logger = get_logger(__name__)


async def initialize_cluster(
    provider: HsmProvider,
    cluster_id: str | Awaitable[str],
    signed_cert: str,
    trust_anchor: str,
    *,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    delay_seconds: float = DEFAULT_DELAY_SECONDS,
    dry_run: bool = False,
    cancel_event: asyncio.Event | None = None,
) -> ClusterSnapshot | None:
    """Initialize a cluster and wait until it reports INITIALIZED.

    The initialize command is issued exactly once. Only the wait that follows
    polls. The state in the command's response is logged
    and discarded.

    Args:
        provider: HSM control plane
        cluster_id: Cluster id, or an awaitable resolving to it
        signed_cert: PEM certificate signed from the cluster CSR
        trust_anchor: PEM certificate of the CA that signed ``signed_cert``
        timeout_seconds: Polling budget for the wait
        delay_seconds: Suspension between queries
        dry_run: Return None without contacting the provider
        cancel_event: Set to abort the wait

    Returns:
        The INITIALIZED snapshot, or None in dry-run

    Raises:
        ProviderError: If the initialize command fails
        ClusterNotFoundError: If the cluster disappears while waiting
        ConvergenceTimeoutError: If the wait budget is exhausted
        WaitCancelledError: If ``cancel_event`` is set
    """
    if dry_run:
        logger.info("initialize_skipped_dry_run")
        return None

    resolved_id = await resolve_id(cluster_id)

    immediate_state = await provider.initialize_cluster(resolved_id, signed_cert, trust_anchor)
    logger.info(
        "initialize_command_issued",
        cluster_id=resolved_id,
        immediate_state=immediate_state,
    )

    return await wait_for_cluster_status(
        provider,
        resolved_id,
        {ClusterStatus.INITIALIZED.value},
        timeout_seconds,
        delay_seconds=delay_seconds,
        cancel_event=cancel_event,
    )
