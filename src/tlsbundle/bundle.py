"""Normalized certificate chain + private key pair handed to TLS consumers."""

from __future__ import annotations

from dataclasses import dataclass

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.types import PrivateKeyTypes

from tlsbundle.exceptions import EmptyCertificateError, MissingPrivateKeyError


@dataclass(frozen=True)
class CertificateBundle:
    """An ordered certificate chain paired with exactly one private key.

    Attributes:
        certificates: DER-encoded certificates, leaf first, followed by any
            intermediates or the CA, in the order they were supplied.
        private_key: The private key matching the leaf certificate.

    Raises:
        EmptyCertificateError: If ``certificates`` is empty.
        MissingPrivateKeyError: If ``private_key`` is None.
    """

    certificates: tuple[bytes, ...]
    private_key: PrivateKeyTypes

    def __post_init__(self) -> None:
        if not self.certificates:
            raise EmptyCertificateError("no certificate found")
        if self.private_key is None:
            raise MissingPrivateKeyError("no private key found")

    @property
    def leaf(self) -> x509.Certificate:
        """The parsed leaf (first) certificate."""
        return x509.load_der_x509_certificate(self.certificates[0])

    def parsed_chain(self) -> list[x509.Certificate]:
        return [x509.load_der_x509_certificate(der) for der in self.certificates]

    def chain_pem(self) -> bytes:
        """Return the whole chain as concatenated ``CERTIFICATE`` PEM blocks."""
        return b"".join(
            cert.public_bytes(serialization.Encoding.PEM) for cert in self.parsed_chain()
        )

    def key_pem(self) -> bytes:
        """Return the private key as an unencrypted PKCS#8 PEM block."""
        return self.private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
