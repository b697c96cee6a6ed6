"""PEM block scanning and encoding.

``cryptography`` only loads PEM data whose block type it already expects, so
streams mixing certificates and keys of unknown encodings are split into
their individual blocks here first.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from dataclasses import dataclass, field
from typing import Iterator

logger = logging.getLogger(__name__)

CERTIFICATE = "CERTIFICATE"

_BLOCK_RE = re.compile(
    rb"-----BEGIN ([^\r\n-]+)-----[ \t]*\r?\n((?:(?!-----BEGIN ).)*?)-----END \1-----",
    re.DOTALL,
)
_LINE_LENGTH = 64


@dataclass(frozen=True)
class PemBlock:
    """A single decoded PEM block.

    Attributes:
        type: The label between ``BEGIN``/``END`` (e.g. ``"CERTIFICATE"``).
        data: The DER bytes carried by the block.
        headers: RFC 1421 style headers such as ``Proc-Type``, if any.
    """

    type: str
    data: bytes
    headers: dict[str, str] = field(default_factory=dict)


def _split_headers(lines: list[bytes]) -> tuple[dict[str, str], list[bytes]]:
    headers: dict[str, str] = {}
    if not lines or b":" not in lines[0]:
        return headers, lines
    for index, line in enumerate(lines):
        if not line.strip():
            return headers, lines[index + 1:]
        key, _, value = line.partition(b":")
        headers[key.strip().decode("ascii", "replace")] = value.strip().decode("ascii", "replace")
    return headers, []


def decode_blocks(raw: bytes) -> Iterator[PemBlock]:
    """Yield the PEM blocks found in *raw*, in order.

    Text outside of blocks is ignored. Blocks whose body is not valid
    base64 are skipped.
    """
    for match in _BLOCK_RE.finditer(raw):
        block_type = match.group(1).decode("ascii", "replace")
        headers, body = _split_headers(match.group(2).splitlines())
        try:
            data = base64.b64decode(b"".join(line.strip() for line in body), validate=True)
        except (binascii.Error, ValueError):
            logger.debug("Skipping PEM block %r with invalid base64 body", block_type)
            continue
        yield PemBlock(type=block_type, data=data, headers=headers)


def encode_block(block_type: str, data: bytes) -> bytes:
    """Armor *data* as a PEM block labelled *block_type*."""
    encoded = base64.b64encode(data)
    lines = [encoded[i:i + _LINE_LENGTH] for i in range(0, len(encoded), _LINE_LENGTH)]
    label = block_type.encode("ascii")
    return b"".join(
        [b"-----BEGIN " + label + b"-----\n"]
        + [line + b"\n" for line in lines]
        + [b"-----END " + label + b"-----\n"]
    )
