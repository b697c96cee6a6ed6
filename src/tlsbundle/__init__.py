"""
tlsbundle - Certificate issuance and loading for TLS servers

- Self-signed CA + leaf certificate generation
- PEM and PKCS#12 certificate/key loading
- Server-side SSL context construction

Version: 0.1.0
"""

__version__ = "0.1.0"

from .options import Subject, TLSOptions
from .bundle import CertificateBundle
from .keys import generate_key_pair, parse_private_key, SupportedPrivateKey
from .issuer import (
    IssuedCertificate,
    GeneratedArtifacts,
    issue_authority,
    issue_leaf,
    generate_certificate,
)
from .loader import from_pem, from_p12
from .server import ServerTLSConfig, get_server_tls, generate_server_tls

# Exceptions
from .exceptions import (
    TLSBundleError,
    KeyGenerationError,
    CertificateSigningError,
    KeyDecodeError,
    PrivateKeyParseError,
    UnsupportedKeyTypeError,
    BundleError,
    EmptyCertificateError,
    MissingPrivateKeyError,
    KeystoreDecodeError,
)

__all__ = [
    # Version
    "__version__",
    # Configuration
    "Subject",
    "TLSOptions",
    # Keys
    "generate_key_pair",
    "parse_private_key",
    "SupportedPrivateKey",
    # Issuance
    "IssuedCertificate",
    "GeneratedArtifacts",
    "issue_authority",
    "issue_leaf",
    "generate_certificate",
    # Loading
    "CertificateBundle",
    "from_pem",
    "from_p12",
    # Server
    "ServerTLSConfig",
    "get_server_tls",
    "generate_server_tls",
    # Exceptions
    "TLSBundleError",
    "KeyGenerationError",
    "CertificateSigningError",
    "KeyDecodeError",
    "PrivateKeyParseError",
    "UnsupportedKeyTypeError",
    "BundleError",
    "EmptyCertificateError",
    "MissingPrivateKeyError",
    "KeystoreDecodeError",
]
