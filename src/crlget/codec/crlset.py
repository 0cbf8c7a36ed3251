"""
CRLSet record decoder.

Format of the decompressed `crl-set` entry:

    header_length : 2 bytes, little-endian (read byte by byte)
    header        : header_length bytes of JSON (an object)
    repeated until the end of the data:
        spki_hash     : 32 bytes (SHA-256 of the issuer SubjectPublicKeyInfo)
        serial_count  : 4 bytes, little-endian (read byte by byte)
        serial_count times:
            serial_length : 1 byte (0 is accepted and yields an empty serial,
                            as in the Chromium CRLSet parser)
            serial        : serial_length bytes

A well-formed stream ends exactly on a record boundary; running out of bytes
inside a record is a TruncatedInput, never a shorter CRLSet.
"""

from __future__ import annotations

import json
from typing import Any

import structlog

from crlget.codec.cursor import ByteCursor
from crlget.domain.errors import MalformedHeader, TruncatedInput
from crlget.domain.models import SPKI_HASH_LENGTH, CrlSet

log = structlog.get_logger()


def _read_header(cursor: ByteCursor) -> dict[str, Any]:
    try:
        lo = cursor.take_u8()
        hi = cursor.take_u8()
        raw = cursor.take(lo + (hi << 8))
    except TruncatedInput as e:
        raise MalformedHeader(f"CRLSet header is missing or truncated: {e}") from e

    try:
        header = json.loads(raw)
    except ValueError as e:
        raise MalformedHeader(f"CRLSet header is not valid JSON: {e}") from e

    if not isinstance(header, dict):
        raise MalformedHeader(
            f"CRLSet header must be a JSON object, got {type(header).__name__}"
        )
    return header


def _read_serial_count(cursor: ByteCursor) -> int:
    b0, b1, b2, b3 = (cursor.take_u8() for _ in range(4))
    return b0 + (b1 << 8) + (b2 << 16) + (b3 << 24)


def decode_crlset(data: bytes) -> CrlSet:
    """Parse the JSON header and every (SPKI hash, serials) record."""
    cursor = ByteCursor(data)
    header = _read_header(cursor)

    certificates: dict[bytes, tuple[bytes, ...]] = {}
    while cursor.has_more():
        spki_hash = cursor.take(SPKI_HASH_LENGTH)
        serial_count = _read_serial_count(cursor)
        certificates[spki_hash] = tuple(
            cursor.take_field(cursor.take_u8()) for _ in range(serial_count)
        )

    crlset = CrlSet(header=header, certificates=certificates)
    log.debug(
        "crlset.decoded",
        sequence=crlset.sequence,
        parents=len(certificates),
        serials=crlset.total_serials,
    )
    return crlset
