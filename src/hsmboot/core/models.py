"""Core data models for HSM Bootstrap."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ClusterStatus(str, Enum):
    """CloudHSM cluster lifecycle status."""

    CREATE_IN_PROGRESS = "CREATE_IN_PROGRESS"
    UNINITIALIZED = "UNINITIALIZED"
    INITIALIZE_IN_PROGRESS = "INITIALIZE_IN_PROGRESS"
    INITIALIZED = "INITIALIZED"
    ACTIVE = "ACTIVE"
    UPDATE_IN_PROGRESS = "UPDATE_IN_PROGRESS"
    MODIFY_IN_PROGRESS = "MODIFY_IN_PROGRESS"
    ROLLBACK_IN_PROGRESS = "ROLLBACK_IN_PROGRESS"
    DELETE_IN_PROGRESS = "DELETE_IN_PROGRESS"
    DELETED = "DELETED"
    DEGRADED = "DEGRADED"


class HsmStatus(str, Enum):
    """CloudHSM node lifecycle status."""

    CREATE_IN_PROGRESS = "CREATE_IN_PROGRESS"
    ACTIVE = "ACTIVE"
    DEGRADED = "DEGRADED"
    DELETE_IN_PROGRESS = "DELETE_IN_PROGRESS"
    DELETED = "DELETED"


class ClusterCertificates(BaseModel):
    """Certificate bundle attached to a cluster record."""

    model_config = ConfigDict(frozen=True)

    cluster_csr: str | None = None
    hsm_certificate: str | None = None
    aws_hardware_certificate: str | None = None
    manufacturer_hardware_certificate: str | None = None
    cluster_certificate: str | None = None

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> "ClusterCertificates":
        """Build from the ``Certificates`` block of a DescribeClusters record."""
        return cls(
            cluster_csr=data.get("ClusterCsr"),
            hsm_certificate=data.get("HsmCertificate"),
            aws_hardware_certificate=data.get("AwsHardwareCertificate"),
            manufacturer_hardware_certificate=data.get("ManufacturerHardwareCertificate"),
            cluster_certificate=data.get("ClusterCertificate"),
        )


class HsmSnapshot(BaseModel):
    """Point-in-time read of a single HSM node."""

    model_config = ConfigDict(frozen=True)

    hsm_id: str
    state: str
    availability_zone: str | None = None
    subnet_id: str | None = None
    eni_ip: str | None = None

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> "HsmSnapshot":
        """Build from an entry of a cluster record's ``Hsms`` list."""
        return cls(
            hsm_id=data["HsmId"],
            state=data.get("State", ""),
            availability_zone=data.get("AvailabilityZone"),
            subnet_id=data.get("SubnetId"),
            eni_ip=data.get("EniIp"),
        )


class ClusterSnapshot(BaseModel):
    """Point-in-time read of a cluster.

    A new snapshot is produced by every provider query; snapshots are never
    updated in place.
    """

    model_config = ConfigDict(frozen=True)

    cluster_id: str
    status: str
    hsm_type: str | None = None
    certificates: ClusterCertificates | None = None
    hsms: tuple[HsmSnapshot, ...] = ()
    raw: dict[str, Any] = Field(default_factory=dict, repr=False)

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> "ClusterSnapshot":
        """Build from a single DescribeClusters record."""
        certificates = data.get("Certificates")
        return cls(
            cluster_id=data["ClusterId"],
            status=data.get("State", ""),
            hsm_type=data.get("HsmType"),
            certificates=(
                ClusterCertificates.from_response(certificates) if certificates else None
            ),
            hsms=tuple(HsmSnapshot.from_response(h) for h in data.get("Hsms", [])),
            raw=data,
        )

    @property
    def cluster_csr(self) -> str | None:
        """CSR published by the cluster, if any."""
        return self.certificates.cluster_csr if self.certificates else None

    def get_hsm(self, hsm_id: str) -> HsmSnapshot | None:
        """Find a member HSM by id."""
        return next((h for h in self.hsms if h.hsm_id == hsm_id), None)


class CertificateMaterial(BaseModel):
    """Key, trust anchor and signed certificate for one cluster initialization."""

    model_config = ConfigDict(frozen=True)

    ca_private_key_pem: str = Field(..., repr=False)
    trust_anchor_pem: str = Field(..., description="Self-signed CA certificate")
    signed_cert_pem: str = Field(..., description="Cluster certificate signed by the CA")


class BootstrapResult(BaseModel):
    """Outputs of a bootstrap run."""

    cluster_id: str | None = None
    cluster_state: str | None = Field(
        None, description="Status observed once the cluster was first ready"
    )
    cluster_csr: str | None = None
    final_state: str | None = None
    hsm_ids: list[str] = Field(default_factory=list)
    dry_run: bool = False
    planned_actions: list[str] = Field(default_factory=list)
