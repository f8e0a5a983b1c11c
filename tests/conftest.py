"""Pytest configuration and shared fixtures."""

from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID

from hsmboot.core.config import HsmBootConfig
from hsmboot.core.models import ClusterSnapshot
from hsmboot.interfaces.hsm_provider import HsmProvider


@pytest.fixture(scope="session")
def cluster_csr_pem() -> str:
    """A CSR shaped like the one CloudHSM publishes for an uninitialized cluster."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    csr = (
        x509.CertificateSigningRequestBuilder()
        .subject_name(
            x509.Name(
                [
                    x509.NameAttribute(NameOID.COMMON_NAME, "HSM:abc-123:PARTN:1"),
                    x509.NameAttribute(NameOID.ORGANIZATION_NAME, "AWS"),
                ]
            )
        )
        .sign(key, hashes.SHA256())
    )
    return csr.public_bytes(serialization.Encoding.PEM).decode("utf-8")


@pytest.fixture
def cluster_record() -> Callable[..., dict[str, Any]]:
    """Build a raw DescribeClusters record."""

    def _build(
        state: str,
        cluster_id: str = "abc-123",
        csr: str | None = None,
        hsms: list[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        record: dict[str, Any] = {
            "ClusterId": cluster_id,
            "State": state,
            "HsmType": "hsm1.medium",
            "Hsms": hsms or [],
        }
        if csr is not None:
            record["Certificates"] = {"ClusterCsr": csr}
        return record

    return _build


@pytest.fixture
def snapshot(cluster_record: Callable[..., dict[str, Any]]) -> Callable[..., ClusterSnapshot]:
    """Build a ClusterSnapshot from the same arguments as ``cluster_record``."""

    def _build(state: str, **kwargs: Any) -> ClusterSnapshot:
        return ClusterSnapshot.from_response(cluster_record(state, **kwargs))

    return _build


@pytest.fixture
def mock_provider() -> AsyncMock:
    """HsmProvider double; tests script ``describe_clusters.side_effect``."""
    provider = AsyncMock(spec=HsmProvider)
    provider.initialize_cluster.return_value = "INITIALIZE_IN_PROGRESS"
    return provider


@pytest.fixture
def sample_config() -> HsmBootConfig:
    """Configuration with a complete cluster layout."""
    return HsmBootConfig(
        aws={"region": "us-east-1", "profile": "test"},
        cluster={
            "hsm_type": "hsm1.medium",
            "subnet_ids": ["subnet-0a1", "subnet-0b2"],
            "availability_zone": "us-east-1a",
            "tags": {"Environment": "test"},
        },
        certificates={"key_size": 2048, "organization": "Test Org"},
        waiter={"timeout_seconds": 30, "delay_seconds": 10},
    )
