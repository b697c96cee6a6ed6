# Copyright (c) tlsbundle Contributors. All rights reserved.
# Licensed under the MIT License.
"""Centralized exception hierarchy for tlsbundle.

All tlsbundle exceptions inherit from TLSBundleError, so callers that build
a TLS listener can refuse to start on any issuance or loading failure with a
single ``except`` clause. I/O errors raised while reading a configured source
are not wrapped.
"""


class TLSBundleError(Exception):
    """Base exception for all tlsbundle errors."""


class KeyGenerationError(TLSBundleError):
    """Key-pair creation failed (entropy or primality search)."""


class CertificateSigningError(TLSBundleError):
    """The signer rejected a certificate template."""


class KeyDecodeError(TLSBundleError):
    """Errors related to decoding a private key blob."""


class PrivateKeyParseError(KeyDecodeError):
    """The blob matched none of the known private key encodings."""


class UnsupportedKeyTypeError(KeyDecodeError):
    """A PKCS#8 envelope decoded, but holds a key algorithm other than RSA or EC."""


class BundleError(TLSBundleError):
    """A certificate bundle violates its invariants."""


class EmptyCertificateError(BundleError):
    """The bundle holds no certificate."""


class MissingPrivateKeyError(BundleError):
    """The bundle holds no private key."""


class KeystoreDecodeError(TLSBundleError):
    """A PKCS#12 keystore could not be decrypted or parsed."""


__all__ = [
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
