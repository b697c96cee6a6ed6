"""
Private Keys

Key-pair generation for issued certificates and decoding of DER private
key blobs whose encoding is not known in advance.

Decoding tries, in order:

1. PKCS#1 (RSA only)
2. PKCS#8 (algorithm-tagged; only RSA and EC keys are accepted)
3. SEC1 (EC only)

Each attempt parses the blob strictly as its own encoding and reports
"not this format" as ``None``, so the chain falls through cleanly.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from tlsbundle import pem
from tlsbundle.exceptions import (
    KeyGenerationError,
    PrivateKeyParseError,
    UnsupportedKeyTypeError,
)

logger = logging.getLogger(__name__)

RSA_KEY_SIZE = 2048
RSA_PUBLIC_EXPONENT = 65537

SupportedPrivateKey = Union[rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey]
KeyGenerator = Callable[[], rsa.RSAPrivateKey]

PKCS1_LABEL = "RSA PRIVATE KEY"
PKCS8_LABEL = "PRIVATE KEY"
SEC1_LABEL = "EC PRIVATE KEY"


def generate_key_pair() -> rsa.RSAPrivateKey:
    """Generate a fresh 2048-bit RSA key pair.

    Every call draws new key material from the operating system's secure
    random source; nothing is cached between calls.

    Returns:
        The RSA private key (its public half is available via ``public_key()``).

    Raises:
        KeyGenerationError: If the underlying primitive fails.
    """
    try:
        return rsa.generate_private_key(
            public_exponent=RSA_PUBLIC_EXPONENT,
            key_size=RSA_KEY_SIZE,
        )
    except (ValueError, UnsupportedAlgorithm) as exc:
        raise KeyGenerationError(f"RSA key generation failed: {exc}") from exc


def _load_as(der: bytes, label: str) -> Optional[object]:
    """Parse *der* strictly as the encoding named by *label*.

    Returns ``None`` when the blob is not in that encoding.
    """
    try:
        return serialization.load_pem_private_key(pem.encode_block(label, der), password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm):
        logger.debug("Private key is not encoded as %s", label)
        return None


def _try_pkcs1(der: bytes) -> Optional[rsa.RSAPrivateKey]:
    key = _load_as(der, PKCS1_LABEL)
    return key if isinstance(key, rsa.RSAPrivateKey) else None


def _try_pkcs8(der: bytes) -> Optional[SupportedPrivateKey]:
    key = _load_as(der, PKCS8_LABEL)
    if key is None:
        return None
    if isinstance(key, (rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey)):
        return key
    raise UnsupportedKeyTypeError(
        f"found unknown private key type in PKCS#8 wrapping: {type(key).__name__}"
    )


def _try_sec1(der: bytes) -> Optional[ec.EllipticCurvePrivateKey]:
    key = _load_as(der, SEC1_LABEL)
    return key if isinstance(key, ec.EllipticCurvePrivateKey) else None


_DECODERS = (_try_pkcs1, _try_pkcs8, _try_sec1)


def parse_private_key(der: bytes) -> SupportedPrivateKey:
    """Decode a DER private key of unknown encoding.

    Args:
        der: PKCS#1, PKCS#8 or SEC1 encoded private key bytes.

    Returns:
        The decoded RSA or EC private key.

    Raises:
        UnsupportedKeyTypeError: If the blob is PKCS#8 but carries a key
            that is neither RSA nor EC.
        PrivateKeyParseError: If the blob matches none of the encodings.
    """
    for decode in _DECODERS:
        key = decode(der)
        if key is not None:
            return key
    raise PrivateKeyParseError("failed to parse private key")


def describe_key(key: object) -> str:
    """Return a short human-readable description such as ``RSA 2048``."""
    if isinstance(key, rsa.RSAPrivateKey):
        return f"RSA {key.key_size}"
    if isinstance(key, ec.EllipticCurvePrivateKey):
        return f"EC {key.curve.name}"
    return type(key).__name__
