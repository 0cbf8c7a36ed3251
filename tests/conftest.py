"""
Shared test fixtures and builders for the crlget test suite.

Everything binary is synthesised in memory:
  - build_crlset()      CRLSet record stream (header + SPKI/serial records)
  - build_zip()         minimal hand-written ZIP (any method code, raw names)
  - build_zipfile()     ZIP written by the standard zipfile module
  - build_crx()         CRX container around a ZIP payload
  - make_update()       UpdateCheck whose digest matches given bytes
  - pki fixture         issuer + leaf X.509 certificates (cryptography)
"""

from __future__ import annotations

import bz2
import datetime
import hashlib
import io
import json
import struct
import zipfile
import zlib
from dataclasses import dataclass
from typing import Any

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from crlget.domain.models import UpdateCheck

APP_ID = "hfnkpimlhhgieaddgfemjhofmfblmnib"
SPKI_A = bytes(range(32))
SPKI_B = b"\x11" * 32

# ─────────────────────── CRLSet records ───────────────────────


def build_crlset(
    header: dict[str, Any] | None = None,
    records: list[tuple[bytes, list[bytes]]] | None = None,
) -> bytes:
    """Header length (LE16) + JSON header + (spki, LE32 count, len-prefixed serials)*."""
    raw_header = json.dumps(header if header is not None else {"Version": 0}).encode()
    out = bytearray(struct.pack("<H", len(raw_header)) + raw_header)
    for spki, serials in records or []:
        out += spki + struct.pack("<I", len(serials))
        for serial in serials:
            out += bytes([len(serial)]) + serial
    return bytes(out)


# ─────────────────────── ZIP archives ───────────────────────

_LOCAL_HEADER = struct.Struct("<4sHHHHHIIIHH")
_CENTRAL_HEADER = struct.Struct("<4sHHHHHHIIIHHHHHII")
_END_OF_CENTRAL_DIRECTORY = struct.Struct("<4sHHHHIIH")


def compress(method: int, data: bytes) -> bytes:
    """Compress for a ZIP method code; unknown codes store the bytes as-is."""
    if method == 8:
        compressor = zlib.compressobj(9, zlib.DEFLATED, -zlib.MAX_WBITS)
        return compressor.compress(data) + compressor.flush()
    if method == 12:
        return bz2.compress(data)
    return data


def build_zip(entries: list[tuple[bytes | str, bytes, int]]) -> bytes:
    """
    Minimal ZIP: local headers + data, central directory, end record.

    Each entry is (name, uncompressed data, method). Names may be raw bytes so
    tests can plant signature bytes inside them.
    """
    body = bytearray()
    central = bytearray()
    for name, data, method in entries:
        raw_name = name.encode() if isinstance(name, str) else name
        packed = compress(method, data)
        crc = zlib.crc32(data)
        offset = len(body)
        body += _LOCAL_HEADER.pack(
            b"PK\x03\x04", 20, 0, method, 0, 0, crc, len(packed), len(data), len(raw_name), 0,
        )
        body += raw_name + packed
        central += _CENTRAL_HEADER.pack(
            b"PK\x01\x02", 20, 20, 0, method, 0, 0, crc, len(packed), len(data),
            len(raw_name), 0, 0, 0, 0, 0, offset,
        )
        central += raw_name
    end = _END_OF_CENTRAL_DIRECTORY.pack(
        b"PK\x05\x06", 0, 0, len(entries), len(entries), len(central), len(body), 0,
    )
    return bytes(body + central + end)


def build_zipfile(entries: dict[str, bytes], compression: int = zipfile.ZIP_STORED) -> bytes:
    """ZIP archive produced by the zipfile module."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=compression) as archive:
        for name, data in entries.items():
            archive.writestr(name, data)
    return buffer.getvalue()


# ─────────────────────── CRX container ───────────────────────


def build_crx(
    payload: bytes,
    version: int = 2,
    public_key: bytes = b"public-key",
    signature: bytes = b"signature",
) -> bytes:
    return (
        b"Cr24"
        + struct.pack("<III", version, len(public_key), len(signature))
        + public_key
        + signature
        + payload
    )


def build_crlset_crx(
    header: dict[str, Any] | None = None,
    records: list[tuple[bytes, list[bytes]]] | None = None,
    method: int = 8,
) -> bytes:
    """Complete CRLSet package: CRX around a ZIP holding a crl-set entry."""
    zipped = build_zip([
        ("manifest.json", b'{"name": "CRLSet"}', 0),
        ("crl-set", build_crlset(header, records), method),
    ])
    return build_crx(zipped)


# ─────────────────────── Update check ───────────────────────


def make_update(data: bytes = b"", **overrides: str) -> UpdateCheck:
    """UpdateCheck announcing `data` (its SHA-256 is the announced digest)."""
    fields = {
        "app_id": APP_ID,
        "status": "ok",
        "codebase": "http://cdn.example/crl-set-6123.crx",
        "fp": "6123",
        "hash": "",
        "hash_sha256": hashlib.sha256(data).hexdigest(),
        "size": str(len(data)),
        "version": "6123",
    }
    fields.update(overrides)
    return UpdateCheck(**fields)


def build_manifest(update: UpdateCheck | None = None, app_id: str = APP_ID) -> str:
    """Update-service XML answer announcing `update`."""
    update = update or make_update()
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<gupdate xmlns="http://www.google.com/update2/response" protocol="2.0" server="prod">'
        f'<daystart elapsed_seconds="5000"/><app appid="{app_id}" status="ok">'
        f'<updatecheck codebase="{update.codebase}" fp="{update.fp}" hash="{update.hash}" '
        f'hash_sha256="{update.hash_sha256}" size="{update.size}" '
        f'status="{update.status}" version="{update.version}"/>'
        "</app></gupdate>"
    )


# ─────────────────────── X.509 ───────────────────────


@dataclass(frozen=True)
class Pki:
    issuer_der: bytes
    leaf_der: bytes
    issuer_spki_hash: bytes
    leaf_spki_hash: bytes
    leaf_serial: bytes


def _spki_hash(key: ec.EllipticCurvePrivateKey) -> bytes:
    spki = key.public_key().public_bytes(
        serialization.Encoding.DER,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return hashlib.sha256(spki).digest()


def _certificate(
    subject: str,
    key: ec.EllipticCurvePrivateKey,
    issuer: str,
    signing_key: ec.EllipticCurvePrivateKey,
    serial: int,
) -> bytes:
    now = datetime.datetime.now(datetime.UTC)
    certificate = (
        x509.CertificateBuilder()
        .subject_name(x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, subject)]))
        .issuer_name(x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, issuer)]))
        .public_key(key.public_key())
        .serial_number(serial)
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=30))
        .sign(signing_key, hashes.SHA256())
    )
    return certificate.public_bytes(serialization.Encoding.DER)


@pytest.fixture(scope="session")
def pki() -> Pki:
    """
    An issuer CA and a leaf it signed.

    The leaf serial 0xA1B2 has its high bit set, so its DER INTEGER carries a
    leading 0x00 that CRLSet serials do not.
    """
    issuer_key = ec.generate_private_key(ec.SECP256R1())
    leaf_key = ec.generate_private_key(ec.SECP256R1())
    return Pki(
        issuer_der=_certificate("Test CA", issuer_key, "Test CA", issuer_key, 1),
        leaf_der=_certificate("leaf.example", leaf_key, "Test CA", issuer_key, 0xA1B2),
        issuer_spki_hash=_spki_hash(issuer_key),
        leaf_spki_hash=_spki_hash(leaf_key),
        leaf_serial=b"\xa1\xb2",
    )
