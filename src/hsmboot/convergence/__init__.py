"""Convergence waiting and cluster initialization."""

from hsmboot.convergence.initializer import initialize_cluster
from hsmboot.convergence.waiter import (
    compute_max_attempts,
    wait_for_cluster_status,
    wait_for_hsm_status,
)

__all__ = [
    "compute_max_attempts",
    "initialize_cluster",
    "wait_for_cluster_status",
    "wait_for_hsm_status",
]
