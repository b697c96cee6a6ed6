"""
Server TLS Configuration

Selects where the server certificate comes from and turns the result into
a server-side ``ssl.SSLContext``:

- ``pem_file`` set: load the PEM file
- else ``p12_file`` set: load the PKCS#12 keystore with ``password``
- else: generate a CA and a leaf certificate for ``subject``

A failure on the selected path is final; no other path is tried.
"""

from __future__ import annotations

import logging
import os
import ssl
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from tlsbundle.bundle import CertificateBundle
from tlsbundle.issuer import generate_certificate
from tlsbundle.loader import bundle_from_pem_bytes, from_p12, from_pem
from tlsbundle.options import TLSOptions

logger = logging.getLogger(__name__)


@contextmanager
def _temporary_pem(data: bytes) -> Iterator[str]:
    """Write *data* to a private temporary file and remove it on exit."""
    fd, path = tempfile.mkstemp(suffix=".pem")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        yield path
    finally:
        os.unlink(path)


@dataclass(frozen=True)
class ServerTLSConfig:
    """Certificate material presented by a TLS server during the handshake."""

    certificates: tuple[CertificateBundle, ...]

    def create_ssl_context(self) -> ssl.SSLContext:
        """Create a server-side SSL context loaded with every bundle.

        ``ssl`` only loads key material from files, so each bundle is written
        to temporary files that are removed as soon as they are loaded.

        Returns:
            A configured ``ssl.SSLContext`` (TLS 1.2 or newer).
        """
        ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
        ctx.minimum_version = ssl.TLSVersion.TLSv1_2

        for bundle in self.certificates:
            with _temporary_pem(bundle.chain_pem()) as cert_file, _temporary_pem(
                bundle.key_pem()
            ) as key_file:
                ctx.load_cert_chain(cert_file, key_file)

        return ctx


def generate_server_tls(options: TLSOptions) -> ServerTLSConfig:
    """Generate a new CA and leaf certificate and wrap the leaf in a TLS config."""
    artifacts = generate_certificate(options)
    bundle = bundle_from_pem_bytes(artifacts.cert_pem + artifacts.key_pem)
    return ServerTLSConfig(certificates=(bundle,))


def get_server_tls(options: TLSOptions) -> ServerTLSConfig:
    """Build the server TLS configuration described by *options*.

    Raises:
        OSError: If a configured file cannot be read.
        TLSBundleError: If loading or generating the certificate fails.
    """
    if options.pem_file:
        logger.debug("Using PEM certificate source %s", options.pem_file)
        return ServerTLSConfig(certificates=(from_pem(options.pem_file),))

    if options.p12_file:
        logger.debug("Using PKCS#12 certificate source %s", options.p12_file)
        return ServerTLSConfig(certificates=(from_p12(options.p12_file, options.password),))

    logger.debug("No certificate source configured; generating one")
    return generate_server_tls(options)
