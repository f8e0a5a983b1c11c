"""Poll the HSM control plane until a resource reaches a target status."""

import asyncio
import inspect
import math
from collections.abc import Awaitable, Callable, Iterable
from typing import TypeVar

from hsmboot.core.exceptions import (
    ClusterNotFoundError,
    ConvergenceTimeoutError,
    HsmNotFoundError,
    WaitCancelledError,
)
from hsmboot.core.models import ClusterSnapshot, HsmSnapshot
from hsmboot.interfaces.hsm_provider import HsmProvider
from hsmboot.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10 * 60
DEFAULT_DELAY_SECONDS = 10

# A freshly created HSM can be missing from the cluster record for a few reads
HSM_LISTING_GRACE_READS = 3
HSM_NOT_LISTED = "NOT_LISTED"

T = TypeVar("T", ClusterSnapshot, HsmSnapshot)


def compute_max_attempts(timeout_seconds: float, delay_seconds: float) -> int:
    """Number of queries that fit in ``timeout_seconds`` at one per ``delay_seconds``."""
    if delay_seconds <= 0:
        return 1
    return max(1, math.ceil(timeout_seconds / delay_seconds))


async def resolve_id(value: str | Awaitable[str]) -> str:
    """Await ``value`` if it is still pending, otherwise return it."""
    if inspect.isawaitable(value):
        return await value
    return value


def _normalize_targets(target_statuses: Iterable[str]) -> frozenset[str]:
    if isinstance(target_statuses, str):
        target_statuses = [target_statuses]
    targets = frozenset(str(getattr(s, "value", s)) for s in target_statuses)
    if not targets:
        raise ValueError("target_statuses must not be empty")
    return targets


def _check_cancelled(cancel_event: asyncio.Event | None, resource_id: str) -> None:
    if cancel_event is not None and cancel_event.is_set():
        logger.warning("wait_cancelled", resource_id=resource_id)
        raise WaitCancelledError(f"Wait for {resource_id} was cancelled")


async def _pause(delay_seconds: float, cancel_event: asyncio.Event | None) -> None:
    """Suspend between polls, waking early if the wait is cancelled."""
    if cancel_event is None:
        await asyncio.sleep(delay_seconds)
        return
    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=delay_seconds)
    except asyncio.TimeoutError:
        return


async def _converge(
    read: Callable[[], Awaitable[T]],
    resource_id: str,
    targets: frozenset[str],
    timeout_seconds: float,
    delay_seconds: float,
    cancel_event: asyncio.Event | None,
    status_of: Callable[[T], str],
) -> T:
    if timeout_seconds <= 0:
        raise ValueError("timeout_seconds must be positive")
    if delay_seconds < 0:
        raise ValueError("delay_seconds must not be negative")

    max_attempts = compute_max_attempts(timeout_seconds, delay_seconds)
    desired = ",".join(sorted(targets))
    attempts = 0

    while True:
        _check_cancelled(cancel_event, resource_id)

        snapshot = await read()
        status = status_of(snapshot)
        attempts += 1

        if status in targets:
            logger.info(
                "status_converged",
                resource_id=resource_id,
                status=status,
                attempts=attempts,
            )
            return snapshot

        if attempts >= max_attempts:
            logger.error(
                "status_convergence_timeout",
                resource_id=resource_id,
                observed=status,
                desired=desired,
                attempts=attempts,
            )
            raise ConvergenceTimeoutError(
                f"Unable to obtain desired state of {desired} for {resource_id} "
                f"in the allotted timeframe (last state {status})",
                resource_id=resource_id,
                target_statuses=targets,
                last_status=status,
                attempts=attempts,
            )

        logger.warning(
            "status_mismatch",
            resource_id=resource_id,
            observed=status,
            desired=desired,
            attempt=attempts,
            max_attempts=max_attempts,
        )
        await _pause(delay_seconds, cancel_event)


async def _describe_cluster(provider: HsmProvider, cluster_id: str) -> ClusterSnapshot:
    clusters = await provider.describe_clusters([cluster_id])

    if clusters is None:
        logger.error("cluster_collection_missing", cluster_id=cluster_id)
        raise ClusterNotFoundError(f"No cluster found for cluster id {cluster_id}")

    cluster = next((c for c in clusters if c.cluster_id == cluster_id), None)
    if cluster is None:
        logger.error("cluster_not_found", cluster_id=cluster_id)
        raise ClusterNotFoundError(f"Unable to find cluster by id {cluster_id}")

    return cluster


async def wait_for_cluster_status(
    provider: HsmProvider,
    cluster_id: str | Awaitable[str],
    target_statuses: Iterable[str],
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    *,
    delay_seconds: float = DEFAULT_DELAY_SECONDS,
    dry_run: bool = False,
    cancel_event: asyncio.Event | None = None,
) -> ClusterSnapshot | None:
    """Wait for a cluster to report one of ``target_statuses``.

    Every attempt is a fresh DescribeClusters query. A missing cluster fails
    immediately; a status outside the targets is logged and retried after
    ``delay_seconds`` until ``timeout_seconds / delay_seconds`` queries have
    been made.

    Args:
        provider: HSM control plane
        cluster_id: Cluster id, or an awaitable resolving to it
        target_statuses: Acceptable statuses
        timeout_seconds: Total polling budget
        delay_seconds: Suspension between queries
        dry_run: Return None without contacting the provider
        cancel_event: Set to abort the wait

    Returns:
        The first snapshot whose status is a target, or None in dry-run

    Raises:
        ClusterNotFoundError: If the cluster is absent from the listing
        ConvergenceTimeoutError: If the retry budget is exhausted
        WaitCancelledError: If ``cancel_event`` is set
        ProviderError: If a query fails
    """
    if dry_run:
        logger.info("cluster_wait_skipped_dry_run")
        return None

    targets = _normalize_targets(target_statuses)
    resolved_id = await resolve_id(cluster_id)

    logger.info(
        "waiting_for_cluster_status",
        cluster_id=resolved_id,
        target_statuses=sorted(targets),
        timeout_seconds=timeout_seconds,
    )

    return await _converge(
        lambda: _describe_cluster(provider, resolved_id),
        resolved_id,
        targets,
        timeout_seconds,
        delay_seconds,
        cancel_event,
        lambda snapshot: snapshot.status,
    )


async def wait_for_hsm_status(
    provider: HsmProvider,
    cluster_id: str | Awaitable[str],
    hsm_id: str | Awaitable[str],
    target_statuses: Iterable[str],
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    *,
    delay_seconds: float = DEFAULT_DELAY_SECONDS,
    dry_run: bool = False,
    cancel_event: asyncio.Event | None = None,
) -> HsmSnapshot | None:
    """Wait for an HSM node to report one of ``target_statuses``.

    Same polling budget as :func:`wait_for_cluster_status`. The node is read
    from its cluster's record. An HSM absent from that record counts as a
    ``NOT_LISTED`` mismatch for the first ``HSM_LISTING_GRACE_READS`` reads,
    then fails.

    Raises:
        ClusterNotFoundError: If the cluster is absent from the listing
        HsmNotFoundError: If the HSM stays absent from the cluster record
        ConvergenceTimeoutError: If the retry budget is exhausted
        WaitCancelledError: If ``cancel_event`` is set
    """
    if dry_run:
        logger.info("hsm_wait_skipped_dry_run")
        return None

    targets = _normalize_targets(target_statuses)
    resolved_cluster_id = await resolve_id(cluster_id)
    resolved_hsm_id = await resolve_id(hsm_id)

    missing_reads = 0

    async def _read() -> HsmSnapshot:
        nonlocal missing_reads
        cluster = await _describe_cluster(provider, resolved_cluster_id)
        hsm = cluster.get_hsm(resolved_hsm_id)
        if hsm is not None:
            return hsm

        missing_reads += 1
        if missing_reads > HSM_LISTING_GRACE_READS:
            logger.error(
                "hsm_not_found",
                cluster_id=resolved_cluster_id,
                hsm_id=resolved_hsm_id,
                reads=missing_reads,
            )
            raise HsmNotFoundError(
                f"Unable to find HSM {resolved_hsm_id} in cluster {resolved_cluster_id}"
            )
        return HsmSnapshot(hsm_id=resolved_hsm_id, state=HSM_NOT_LISTED)

    logger.info(
        "waiting_for_hsm_status",
        cluster_id=resolved_cluster_id,
        hsm_id=resolved_hsm_id,
        target_statuses=sorted(targets),
    )

    return await _converge(
        _read,
        resolved_hsm_id,
        targets,
        timeout_seconds,
        delay_seconds,
        cancel_event,
        lambda snapshot: snapshot.state,
    )
