"""Local certificate authority for signing the cluster CSR."""

import datetime

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

from hsmboot.core.config import CertificateSettings
from hsmboot.core.exceptions import CertificateError
from hsmboot.core.models import CertificateMaterial
from hsmboot.utils.logging import get_logger

logger = get_logger(__name__)


def generate_private_key(key_size: int = 2048) -> rsa.RSAPrivateKey:
    """Generate an RSA private key."""
    return rsa.generate_private_key(public_exponent=65537, key_size=key_size)


def build_subject(settings: CertificateSettings) -> x509.Name:
    """Build the CA subject from certificate settings."""
    attributes = [
        x509.NameAttribute(NameOID.COUNTRY_NAME, settings.country),
        x509.NameAttribute(NameOID.ORGANIZATION_NAME, settings.organization),
    ]
    if settings.postal_code:
        attributes.append(x509.NameAttribute(NameOID.POSTAL_CODE, settings.postal_code))
    if settings.common_name:
        attributes.append(x509.NameAttribute(NameOID.COMMON_NAME, settings.common_name))
    return x509.Name(attributes)


def _validity(validity_hours: int) -> tuple[datetime.datetime, datetime.datetime]:
    now = datetime.datetime.now(datetime.timezone.utc)
    return now, now + datetime.timedelta(hours=validity_hours)


def create_self_signed_ca(
    private_key: rsa.RSAPrivateKey, subject: x509.Name, validity_hours: int
) -> x509.Certificate:
    """Create a self-signed CA certificate usable for cert and CRL signing.

    Args:
        private_key: Key that both owns and signs the certificate
        subject: Subject and issuer name
        validity_hours: Lifetime of the certificate

    Returns:
        The CA certificate
    """
    not_before, not_after = _validity(validity_hours)
    public_key = private_key.public_key()

    return (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(subject)
        .public_key(public_key)
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_before)
        .not_valid_after(not_after)
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .add_extension(
            x509.KeyUsage(
                digital_signature=True,
                content_commitment=False,
                key_encipherment=False,
                data_encipherment=False,
                key_agreement=False,
                key_cert_sign=True,
                crl_sign=True,
                encipher_only=False,
                decipher_only=False,
            ),
            critical=True,
        )
        .add_extension(x509.SubjectKeyIdentifier.from_public_key(public_key), critical=False)
        .sign(private_key, hashes.SHA256())
    )


def sign_csr(
    csr_pem: str,
    ca_key: rsa.RSAPrivateKey,
    ca_cert: x509.Certificate,
    validity_hours: int,
) -> x509.Certificate:
    """Issue a certificate for a PEM CSR, signed by the given CA.

    Args:
        csr_pem: PEM encoded certificate signing request
        ca_key: CA private key
        ca_cert: CA certificate, used as issuer
        validity_hours: Lifetime of the issued certificate

    Returns:
        The signed certificate

    Raises:
        CertificateError: If the CSR cannot be parsed or its signature is invalid
    """
    try:
        csr = x509.load_pem_x509_csr(csr_pem.encode("utf-8"))
    except ValueError as e:
        raise CertificateError(f"Invalid cluster CSR: {e}") from e

    if not csr.is_signature_valid:
        raise CertificateError("Cluster CSR signature is invalid")

    not_before, not_after = _validity(validity_hours)

    return (
        x509.CertificateBuilder()
        .subject_name(csr.subject)
        .issuer_name(ca_cert.subject)
        .public_key(csr.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_before)
        .not_valid_after(not_after)
        .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
        .add_extension(
            x509.KeyUsage(
                digital_signature=True,
                content_commitment=False,
                key_encipherment=True,
                data_encipherment=False,
                key_agreement=False,
                key_cert_sign=False,
                crl_sign=False,
                encipher_only=False,
                decipher_only=False,
            ),
            critical=True,
        )
        .add_extension(
            x509.ExtendedKeyUsage(
                [ExtendedKeyUsageOID.SERVER_AUTH, ExtendedKeyUsageOID.CLIENT_AUTH]
            ),
            critical=False,
        )
        .add_extension(
            x509.AuthorityKeyIdentifier.from_issuer_public_key(ca_key.public_key()),
            critical=False,
        )
        .sign(ca_key, hashes.SHA256())
    )


def _pem(cert: x509.Certificate) -> str:
    return cert.public_bytes(serialization.Encoding.PEM).decode("utf-8")


def build_certificate_material(csr_pem: str, settings: CertificateSettings) -> CertificateMaterial:
    """Generate a CA and sign the cluster CSR with it.

    The CA key signs both the CA certificate and the cluster certificate, so
    the returned trust anchor validates the returned signed certificate.

    Args:
        csr_pem: Cluster CSR
        settings: Key size, validity and subject

    Returns:
        CertificateMaterial for a single initialization

    Raises:
        CertificateError: If the CSR is missing or invalid
    """
    if not csr_pem or not csr_pem.strip():
        raise CertificateError("Cluster CSR is empty")

    ca_key = generate_private_key(settings.key_size)
    ca_cert = create_self_signed_ca(ca_key, build_subject(settings), settings.validity_hours)
    signed = sign_csr(csr_pem, ca_key, ca_cert, settings.validity_hours)

    logger.info(
        "certificate_material_generated",
        ca_subject=ca_cert.subject.rfc4514_string(),
        signed_subject=signed.subject.rfc4514_string(),
        not_after=signed.not_valid_after_utc.isoformat(),
    )

    key_pem = ca_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf-8")

    return CertificateMaterial(
        ca_private_key_pem=key_pem,
        trust_anchor_pem=_pem(ca_cert),
        signed_cert_pem=_pem(signed),
    )
