"""
Certificate Loading

Loads an existing certificate/private-key pair for a TLS server from either
a PEM stream or a password-protected PKCS#12 keystore, and normalizes it
into a :class:`~tlsbundle.bundle.CertificateBundle`.

Sources may be given as filesystem paths or as binary streams. They are
read to completion once; I/O errors propagate unchanged.
"""

from __future__ import annotations

import logging
import os
from typing import BinaryIO, Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.serialization import pkcs12

from tlsbundle import pem
from tlsbundle.bundle import CertificateBundle
from tlsbundle.exceptions import (
    EmptyCertificateError,
    KeystoreDecodeError,
    MissingPrivateKeyError,
)
from tlsbundle.keys import parse_private_key

logger = logging.getLogger(__name__)

Source = Union[str, os.PathLike, BinaryIO]


def read_source(source: Source) -> bytes:
    """Read the whole of *source*, a path or a binary stream."""
    if hasattr(source, "read"):
        return source.read()
    with open(source, "rb") as f:
        return f.read()


def _source_name(source: Source) -> str:
    if hasattr(source, "read"):
        return getattr(source, "name", "<stream>")
    return os.fspath(source)


def bundle_from_pem_bytes(raw: bytes) -> CertificateBundle:
    """Build a bundle from PEM data already held in memory.

    ``CERTIFICATE`` blocks form the chain in the order they appear. Every
    other block is decoded as a private key; if several are present the
    last one is used.

    Raises:
        PrivateKeyParseError: If a key block matches no known encoding.
        UnsupportedKeyTypeError: If a PKCS#8 key block is neither RSA nor EC.
        EmptyCertificateError: If there is no ``CERTIFICATE`` block.
        MissingPrivateKeyError: If there is no key block.
    """
    certificates: list[bytes] = []
    private_key = None

    for block in pem.decode_blocks(raw):
        if block.type == pem.CERTIFICATE:
            certificates.append(block.data)
            continue
        if private_key is not None:
            logger.warning(
                "PEM data holds more than one private key block; using the %r block", block.type
            )
        private_key = parse_private_key(block.data)

    if not certificates:
        raise EmptyCertificateError("no certificate found")
    if private_key is None:
        raise MissingPrivateKeyError("no private key found")

    return CertificateBundle(certificates=tuple(certificates), private_key=private_key)


def from_pem(source: Source) -> CertificateBundle:
    """Load a certificate chain and private key from a PEM file or stream.

    Args:
        source: Path to, or binary stream of, PEM data.

    Returns:
        The loaded bundle.

    Raises:
        OSError: If the source cannot be read.
        KeyDecodeError: If a key block cannot be decoded.
        BundleError: If no certificate or no private key was found.
    """
    bundle = bundle_from_pem_bytes(read_source(source))
    logger.info(
        "Loaded %d certificate(s) from PEM source %s", len(bundle.certificates), _source_name(source)
    )
    return bundle


def from_p12(source: Source, password: str) -> CertificateBundle:
    """Load the certificate and private key held in a PKCS#12 keystore.

    Only the keystore's own certificate is used; any additional
    certificates in the container are ignored.

    Args:
        source: Path to, or binary stream of, the PKCS#12 data.
        password: Keystore password. An empty string means no password.

    Returns:
        A bundle with a single certificate and the keystore's private key.

    Raises:
        OSError: If the source cannot be read.
        KeystoreDecodeError: On a wrong password, corrupt data or an
            unsupported container algorithm.
        EmptyCertificateError: If the keystore holds no certificate.
        MissingPrivateKeyError: If the keystore holds no private key.
    """
    raw = read_source(source)
    secret = password.encode("utf-8") if password else None

    try:
        private_key, certificate, additional = pkcs12.load_key_and_certificates(raw, secret)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise KeystoreDecodeError(f"failed to decode PKCS#12 keystore: {exc}") from exc

    if certificate is None:
        raise EmptyCertificateError("no certificate found")
    if private_key is None:
        raise MissingPrivateKeyError("no private key found")
    if additional:
        logger.debug("Ignoring %d additional certificate(s) in PKCS#12 keystore", len(additional))

    bundle = CertificateBundle(
        certificates=(certificate.public_bytes(serialization.Encoding.DER),),
        private_key=private_key,
    )
    logger.info("Loaded certificate from PKCS#12 source %s", _source_name(source))
    return bundle
