"""
CRX container parser.

Layout (all integers unsigned 32-bit little-endian):

    "Cr24" | version | key_length | signature_length | key | signature | payload

The payload is the ZIP archive holding the component files. The signature
is captured but never verified.
"""

from __future__ import annotations

import structlog

from crlget.codec.cursor import ByteCursor
from crlget.domain.errors import InvalidMagic
from crlget.domain.models import CrxContainer

log = structlog.get_logger()

CRX_MAGIC = b"Cr24"


def parse_crx(buffer: bytes) -> CrxContainer:
    """Split a CRX package into header fields and ZIP payload."""
    cursor = ByteCursor(buffer)

    magic = cursor.take(len(CRX_MAGIC))
    if magic != CRX_MAGIC:
        raise InvalidMagic(magic)

    version = cursor.take_u32le()
    public_key_length = cursor.take_u32le()
    signature_length = cursor.take_u32le()
    public_key = cursor.take_field(public_key_length)
    signature = cursor.take_field(signature_length)
    payload = cursor.take_rest()

    log.debug(
        "crx.parsed",
        version=version,
        public_key_length=public_key_length,
        signature_length=signature_length,
        payload_length=len(payload),
    )
    return CrxContainer(
        version=version,
        public_key=public_key,
        signature=signature,
        payload=payload,
    )
