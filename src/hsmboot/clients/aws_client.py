"""AWS client for CloudHSM v2 and related operations."""

from typing import Any

import boto3
from botocore.exceptions import ClientError

from hsmboot.core.exceptions import AWSError, AWSThrottlingError
from hsmboot.utils.logging import get_logger
from hsmboot.utils.retry import retry_on_exception

logger = get_logger(__name__)

THROTTLING_ERROR_CODES = frozenset(
    {"ThrottlingException", "Throttling", "RequestLimitExceeded", "TooManyRequestsException"}
)


def _aws_error(e: ClientError, message: str) -> AWSError:
    error_code = e.response["Error"]["Code"]
    if error_code in THROTTLING_ERROR_CODES:
        return AWSThrottlingError(f"{message}: {error_code}")
    return AWSError(f"{message}: {error_code}")


class AWSClient:
    """AWS client for STS and CloudHSM v2 operations."""

    def __init__(
        self,
        region: str = "us-east-1",
        profile: str | None = None,
        session: boto3.Session | None = None,
    ):
        """Initialize AWS client.

        Args:
            region: AWS region
            profile: AWS profile name (optional)
            session: Existing boto3 session (optional, overrides profile)
        """
        self.region = region
        self.profile = profile

        if session:
            self.session = session
        elif profile:
            self.session = boto3.Session(profile_name=profile, region_name=region)
        else:
            self.session = boto3.Session(region_name=region)

        self.sts = self.session.client("sts")
        self.cloudhsm = self.session.client("cloudhsmv2")

        logger.debug("aws_client_initialized", region=region, profile=profile)

    def get_caller_identity(self) -> dict[str, Any]:
        """Return the identity behind the session's credentials.

        Raises:
            AWSError: If the identity cannot be resolved
        """
        try:
            response = self.sts.get_caller_identity()
            logger.debug("caller_identity_retrieved", account=response.get("Account"))
            return response
        except ClientError as e:
            logger.error("caller_identity_failed", error_code=e.response["Error"]["Code"])
            raise _aws_error(e, "Failed to get caller identity") from e

    @retry_on_exception(exceptions=(AWSThrottlingError,), max_attempts=3)
    def describe_clusters(self, cluster_ids: list[str]) -> dict[str, Any]:
        """Describe CloudHSM clusters filtered by id.

        Args:
            cluster_ids: Cluster ids to filter on

        Returns:
            Raw DescribeClusters response

        Raises:
            AWSError: If the request fails
        """
        try:
            logger.debug("describing_clusters", cluster_ids=cluster_ids)
            return self.cloudhsm.describe_clusters(Filters={"clusterIds": cluster_ids})
        except ClientError as e:
            logger.error(
                "describe_clusters_failed",
                cluster_ids=cluster_ids,
                error_code=e.response["Error"]["Code"],
            )
            raise _aws_error(e, f"Failed to describe clusters {', '.join(cluster_ids)}") from e

    def initialize_cluster(self, cluster_id: str, signed_cert: str, trust_anchor: str) -> str:
        """Issue InitializeCluster. Not retried.

        Args:
            cluster_id: Cluster to initialize
            signed_cert: PEM certificate signed from the cluster CSR
            trust_anchor: PEM certificate of the issuing CA

        Returns:
            State reported in the immediate response

        Raises:
            AWSError: If the request fails
        """
        try:
            logger.info("initializing_cluster", cluster_id=cluster_id)
            response = self.cloudhsm.initialize_cluster(
                ClusterId=cluster_id,
                SignedCert=signed_cert,
                TrustAnchor=trust_anchor,
            )
            return response.get("State", "")
        except ClientError as e:
            logger.error(
                "initialize_cluster_failed",
                cluster_id=cluster_id,
                error_code=e.response["Error"]["Code"],
            )
            raise _aws_error(e, f"Failed to initialize cluster {cluster_id}") from e

    def create_cluster(
        self,
        hsm_type: str,
        subnet_ids: list[str],
        backup_retention_days: int | None = None,
        tags: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Issue CreateCluster.

        Returns:
            The ``Cluster`` record from the response

        Raises:
            AWSError: If the request fails
        """
        params: dict[str, Any] = {"HsmType": hsm_type, "SubnetIds": subnet_ids}
        if backup_retention_days is not None:
            params["BackupRetentionPolicy"] = {
                "Type": "DAYS",
                "Value": str(backup_retention_days),
            }
        if tags:
            params["TagList"] = [{"Key": k, "Value": v} for k, v in tags.items()]

        try:
            logger.info("creating_cluster", hsm_type=hsm_type, subnet_ids=subnet_ids)
            response = self.cloudhsm.create_cluster(**params)
            return response["Cluster"]
        except ClientError as e:
            logger.error("create_cluster_failed", error_code=e.response["Error"]["Code"])
            raise _aws_error(e, "Failed to create cluster") from e

    def create_hsm(self, cluster_id: str, availability_zone: str) -> dict[str, Any]:
        """Issue CreateHsm.

        Returns:
            The ``Hsm`` record from the response

        Raises:
            AWSError: If the request fails
        """
        try:
            logger.info(
                "creating_hsm", cluster_id=cluster_id, availability_zone=availability_zone
            )
            response = self.cloudhsm.create_hsm(
                ClusterId=cluster_id, AvailabilityZone=availability_zone
            )
            return response["Hsm"]
        except ClientError as e:
            logger.error(
                "create_hsm_failed",
                cluster_id=cluster_id,
                error_code=e.response["Error"]["Code"],
            )
            raise _aws_error(e, f"Failed to create HSM in cluster {cluster_id}") from e
