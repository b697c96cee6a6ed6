"""
Certificate Issuance

Issues a self-signed certificate authority and a server (leaf) certificate
signed by it. Both certificates carry the caller's subject and are valid for
ten years from the moment of issuance.

Every issuance draws a fresh key pair and a fresh random serial number.
The key and serial sources can be injected for reproducible fixtures.
"""

from __future__ import annotations

import ipaddress
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric.types import PrivateKeyTypes
from cryptography.x509.oid import ExtendedKeyUsageOID

from tlsbundle.exceptions import CertificateSigningError
from tlsbundle.keys import KeyGenerator, generate_key_pair
from tlsbundle.options import Subject, TLSOptions

logger = logging.getLogger(__name__)

VALIDITY_YEARS = 10
LEAF_SUBJECT_KEY_ID = bytes([1, 2, 3, 4, 6])

SerialGenerator = Callable[[], int]


@dataclass(frozen=True)
class IssuedCertificate:
    """A signed certificate together with the private key of its subject."""

    certificate: x509.Certificate
    private_key: PrivateKeyTypes

    @property
    def der(self) -> bytes:
        return self.certificate.public_bytes(serialization.Encoding.DER)

    @property
    def cert_pem(self) -> bytes:
        """The certificate as a ``CERTIFICATE`` PEM block."""
        return self.certificate.public_bytes(serialization.Encoding.PEM)

    @property
    def key_pem(self) -> bytes:
        """The private key in its traditional encoding (``RSA PRIVATE KEY`` for RSA)."""
        return self.private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.TraditionalOpenSSL,
            encryption_algorithm=serialization.NoEncryption(),
        )


@dataclass(frozen=True)
class GeneratedArtifacts:
    """PEM buffers produced by :func:`generate_certificate`.

    ``cert_pem`` and ``key_pem`` belong to the leaf certificate; the CA
    buffers are provided so clients can be told to trust the authority.
    """

    cert_pem: bytes
    key_pem: bytes
    ca_cert_pem: bytes
    ca_key_pem: bytes


def _add_years(moment: datetime, years: int) -> datetime:
    try:
        return moment.replace(year=moment.year + years)
    except ValueError:
        # Feb 29 rolls over to Mar 1 in a non-leap target year
        return moment.replace(year=moment.year + years, month=3, day=1)


def _validity_window() -> tuple[datetime, datetime]:
    now = datetime.now(timezone.utc)
    return now, _add_years(now, VALIDITY_YEARS)


def _subject_name(subject: Subject) -> x509.Name:
    try:
        return subject.to_x509_name()
    except ValueError as exc:
        raise CertificateSigningError(f"invalid certificate subject: {exc}") from exc


def _sign(builder: x509.CertificateBuilder, signing_key: PrivateKeyTypes) -> x509.Certificate:
    try:
        return builder.sign(signing_key, hashes.SHA256())
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise CertificateSigningError(f"failed to sign certificate: {exc}") from exc


def _san_entries(hosts: Iterable[str], subject: Subject) -> list[x509.GeneralName]:
    names = [h for h in hosts if h]
    if not names and subject.common_name:
        names = [subject.common_name]

    entries: list[x509.GeneralName] = []
    for name in names:
        try:
            entries.append(x509.IPAddress(ipaddress.ip_address(name)))
        except ValueError:
            entries.append(x509.DNSName(name))
    return entries


def _describe(subject: Subject) -> str:
    return subject.common_name or "<no common name>"


def issue_authority(
    subject: Subject,
    *,
    key_generator: KeyGenerator = generate_key_pair,
    serial_generator: SerialGenerator = x509.random_serial_number,
) -> IssuedCertificate:
    """Create a self-signed certificate authority.

    The CA may sign certificates and carries the client-auth and
    server-auth extended key usages.

    Args:
        subject: Naming attributes used as both subject and issuer.
        key_generator: Source of the CA key pair.
        serial_generator: Source of the certificate serial number.

    Returns:
        The CA certificate and its private key.

    Raises:
        KeyGenerationError: If the key pair cannot be generated.
        CertificateSigningError: If the template is rejected by the signer.
    """
    name = _subject_name(subject)
    private_key = key_generator()
    not_before, not_after = _validity_window()
    serial = serial_generator()

    try:
        builder = (
            x509.CertificateBuilder()
            .subject_name(name)
            .issuer_name(name)
            .public_key(private_key.public_key())
            .serial_number(serial)
            .not_valid_before(not_before)
            .not_valid_after(not_after)
            .add_extension(
                x509.BasicConstraints(ca=True, path_length=None),
                critical=True,
            )
            .add_extension(
                x509.KeyUsage(
                    digital_signature=True,
                    content_commitment=False,
                    key_encipherment=False,
                    data_encipherment=False,
                    key_agreement=False,
                    key_cert_sign=True,
                    crl_sign=False,
                    encipher_only=False,
                    decipher_only=False,
                ),
                critical=True,
            )
            .add_extension(
                x509.ExtendedKeyUsage([
                    ExtendedKeyUsageOID.CLIENT_AUTH,
                    ExtendedKeyUsageOID.SERVER_AUTH,
                ]),
                critical=False,
            )
            .add_extension(
                x509.SubjectKeyIdentifier.from_public_key(private_key.public_key()),
                critical=False,
            )
        )
    except (ValueError, TypeError) as exc:
        raise CertificateSigningError(f"invalid CA template: {exc}") from exc

    certificate = _sign(builder, private_key)
    logger.info("Issued CA certificate for %s (serial %x)", _describe(subject), serial)
    return IssuedCertificate(certificate=certificate, private_key=private_key)


def issue_leaf(
    subject: Subject,
    authority: IssuedCertificate,
    *,
    hosts: Iterable[str] = (),
    subject_key_id: Optional[bytes] = LEAF_SUBJECT_KEY_ID,
    key_generator: KeyGenerator = generate_key_pair,
    serial_generator: SerialGenerator = x509.random_serial_number,
) -> IssuedCertificate:
    """Create a server certificate signed by *authority*.

    Args:
        subject: Naming attributes of the leaf.
        authority: The issuing CA certificate and its private key.
        hosts: DNS names or IP addresses for the subject alternative name
            extension. Defaults to the subject's common name; when neither
            is given the extension is omitted.
        subject_key_id: Subject key identifier to embed. ``None`` derives it
            from the leaf public key.
        key_generator: Source of the leaf key pair.
        serial_generator: Source of the certificate serial number.

    Returns:
        The leaf certificate and its private key.

    Raises:
        KeyGenerationError: If the key pair cannot be generated.
        CertificateSigningError: If the template is rejected by the signer,
            including issuer/subject key algorithm combinations it does not
            support.
    """
    name = _subject_name(subject)
    private_key = key_generator()
    not_before, not_after = _validity_window()
    serial = serial_generator()
    ca_cert = authority.certificate

    if subject_key_id is None:
        ski = x509.SubjectKeyIdentifier.from_public_key(private_key.public_key())
    else:
        ski = x509.SubjectKeyIdentifier(subject_key_id)

    try:
        ca_ski = ca_cert.extensions.get_extension_for_class(x509.SubjectKeyIdentifier)
        aki = x509.AuthorityKeyIdentifier.from_issuer_subject_key_identifier(ca_ski.value)
    except x509.ExtensionNotFound:
        aki = None

    try:
        builder = (
            x509.CertificateBuilder()
            .subject_name(name)
            .issuer_name(ca_cert.subject)
            .public_key(private_key.public_key())
            .serial_number(serial)
            .not_valid_before(not_before)
            .not_valid_after(not_after)
            .add_extension(
                x509.KeyUsage(
                    digital_signature=True,
                    content_commitment=False,
                    key_encipherment=False,
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
                x509.ExtendedKeyUsage([
                    ExtendedKeyUsageOID.CLIENT_AUTH,
                    ExtendedKeyUsageOID.SERVER_AUTH,
                ]),
                critical=False,
            )
            .add_extension(ski, critical=False)
        )
        san = _san_entries(hosts, subject)
        if san:
            builder = builder.add_extension(x509.SubjectAlternativeName(san), critical=False)
        if aki is not None:
            builder = builder.add_extension(aki, critical=False)
    except (ValueError, TypeError) as exc:
        raise CertificateSigningError(f"invalid leaf template: {exc}") from exc

    certificate = _sign(builder, authority.private_key)
    logger.info(
        "Issued leaf certificate for %s (serial %x) signed by %s",
        _describe(subject),
        serial,
        ca_cert.subject.rfc4514_string(),
    )
    return IssuedCertificate(certificate=certificate, private_key=private_key)


def generate_certificate(
    options: TLSOptions,
    *,
    key_generator: KeyGenerator = generate_key_pair,
    serial_generator: SerialGenerator = x509.random_serial_number,
) -> GeneratedArtifacts:
    """Generate a new CA and a leaf certificate signed by it.

    Args:
        options: Supplies the subject and the leaf's hosts.
        key_generator: Source of both key pairs.
        serial_generator: Source of both serial numbers.

    Returns:
        The leaf certificate and key PEM buffers, plus the CA's.
    """
    authority = issue_authority(
        options.subject,
        key_generator=key_generator,
        serial_generator=serial_generator,
    )
    leaf = issue_leaf(
        options.subject,
        authority,
        hosts=options.hosts,
        key_generator=key_generator,
        serial_generator=serial_generator,
    )
    return GeneratedArtifacts(
        cert_pem=leaf.cert_pem,
        key_pem=leaf.key_pem,
        ca_cert_pem=authority.cert_pem,
        ca_key_pem=authority.key_pem,
    )
