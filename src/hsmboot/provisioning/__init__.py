"""Resource declarations for clusters and HSM nodes."""

from hsmboot.provisioning.provisioner import ClusterProvisioner

__all__ = [
    "ClusterProvisioner",
]
