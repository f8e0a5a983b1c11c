"""Custom exceptions for HSM Bootstrap."""

from collections.abc import Iterable


class HsmBootError(Exception):
    """Base exception for all HSM Bootstrap errors."""


class ConfigurationError(HsmBootError):
    """Configuration-related errors."""


class ClusterNotFoundError(HsmBootError):
    """Cluster absent from the provider's listing."""


class HsmNotFoundError(ClusterNotFoundError):
    """HSM absent from its cluster's record."""


class ConvergenceTimeoutError(HsmBootError):
    """Retry budget exhausted before a target status was observed.

    Attributes:
        resource_id: Identifier of the polled resource
        target_statuses: Statuses the caller was waiting for
        last_status: Status reported by the final query
        attempts: Number of queries performed
    """

    def __init__(
        self,
        message: str,
        resource_id: str,
        target_statuses: Iterable[str],
        last_status: str | None,
        attempts: int,
    ):
        """Initialize timeout error.

        Args:
            message: Error message
            resource_id: Identifier of the polled resource
            target_statuses: Statuses the caller was waiting for
            last_status: Status reported by the final query
            attempts: Number of queries performed
        """
        super().__init__(message)
        self.resource_id = resource_id
        self.target_statuses = sorted(target_statuses)
        self.last_status = last_status
        self.attempts = attempts


class WaitCancelledError(HsmBootError):
    """Caller aborted a wait before convergence."""


class CertificateError(HsmBootError):
    """Certificate material could not be derived."""


class AWSError(HsmBootError):
    """AWS operation failed."""


class AWSThrottlingError(AWSError):
    """AWS rejected a request due to throttling."""
