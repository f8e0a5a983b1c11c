"""Certificate material for cluster initialization."""

from hsmboot.certificates.authority import (
    build_certificate_material,
    create_self_signed_ca,
    generate_private_key,
    sign_csr,
)

__all__ = [
    "build_certificate_material",
    "create_self_signed_ca",
    "generate_private_key",
    "sign_csr",
]
