"""
Domain models — immutable value objects for the CRLSet decode chain.

Everything here is a frozen dataclass built once per decode call from a
single input buffer and never mutated afterwards:

  CrxContainer            → the unwrapped CRX package
  CentralDirectoryHeader  → one ZIP central-directory record
  CrlSet                  → the decoded revocation snapshot
  UpdateCheck             → the validated update-service answer
  CrxPackage              → downloaded bytes that passed the digest check
  CrlSetSnapshot          → update metadata + CRX header + CrlSet, what gets stored
"""

from __future__ import annotations

import base64
import binascii
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum, IntEnum, unique
from types import MappingProxyType
from typing import Any

from crlget.domain.errors import MalformedHeader, UnsupportedCompression

SPKI_HASH_LENGTH = 32


@dataclass(frozen=True, slots=True)
class CrxContainer:
    """
    A CRX (v2 layout) package: magic, version, key, signature, ZIP payload.

    The signature is kept for completeness only; it is never verified.
    """

    version: int
    public_key: bytes = field(repr=False)
    signature: bytes = field(repr=False)
    payload: bytes = field(repr=False)


@unique
class CompressionMethod(IntEnum):
    """ZIP compression methods the entry decompressor understands."""

    STORED = 0
    DEFLATE = 8
    BZIP2 = 12

    @classmethod
    def from_code(cls, code: int) -> CompressionMethod:
        """Map a raw method code, raising UnsupportedCompression for anything else."""
        try:
            return cls(code)
        except ValueError:
            raise UnsupportedCompression(code) from None


@dataclass(frozen=True, slots=True)
class CentralDirectoryHeader:
    """
    ZIP central-directory file header (fixed 46 bytes) plus the filename after it.

    `offset` is where the `PK\\x01\\x02` signature was found in the payload.
    """

    offset: int
    signature: bytes
    version_made_by: int
    version_needed: int
    flags: int
    method: int
    mod_time: int
    mod_date: int
    crc32: int
    compressed_size: int
    uncompressed_size: int
    name_length: int
    extra_length: int
    comment_length: int
    disk_number: int
    internal_attrs: int
    external_attrs: int
    local_header_offset: int
    name: bytes = b""

    @property
    def data_offset(self) -> int:
        """
        Start of the entry's compressed bytes.

        Assumes the local header's name/extra lengths equal the central ones.
        """
        return self.local_header_offset + 30 + self.name_length + self.extra_length


@dataclass(frozen=True, slots=True)
class CrlSet:
    """
    A decoded CRLSet: JSON header plus SPKI-hash → serial numbers.

    `certificates` keys are raw 32-byte SHA-256 hashes of an issuer's
    SubjectPublicKeyInfo; values are the revoked serial numbers (DER INTEGER
    content octets) in stream order. Dict order follows the stream too.

    Both mappings are copied into read-only views on construction, and the
    header's `BlockedSPKIs` list is decoded once; a bad entry there raises
    MalformedHeader.
    """

    header: Mapping[str, Any] = field(default_factory=dict)
    certificates: Mapping[bytes, tuple[bytes, ...]] = field(default_factory=dict, repr=False)
    blocked_spkis: tuple[bytes, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "header", MappingProxyType(dict(self.header)))
        object.__setattr__(self, "certificates", MappingProxyType(dict(self.certificates)))
        object.__setattr__(
            self,
            "blocked_spkis",
            _decode_blocked_spkis(self._header_value("BlockedSPKIs", "blocked_spkis")),
        )

    def _header_value(self, *keys: str) -> Any:
        for key in keys:
            if key in self.header:
                return self.header[key]
        return None

    @property
    def version(self) -> Any:
        return self._header_value("Version", "version")

    @property
    def content_type(self) -> str | None:
        return self._header_value("ContentType", "content_type")

    @property
    def sequence(self) -> int | None:
        return self._header_value("Sequence", "sequence")

    @property
    def delta_from(self) -> int | None:
        return self._header_value("DeltaFrom", "delta_from")

    @property
    def num_parents(self) -> int | None:
        return self._header_value("NumParents", "num_parents")

    @property
    def not_after(self) -> datetime | None:
        """Expiry from the header's `NotAfter` (seconds since the epoch), if present."""
        value = self._header_value("NotAfter", "not_after")
        if value is None:
            return None
        return datetime.fromtimestamp(int(value), tz=UTC)

    @property
    def total_serials(self) -> int:
        return sum(len(serials) for serials in self.certificates.values())

    def is_revoked(self, spki_hash: bytes, serial: bytes) -> bool:
        return serial in self.certificates.get(spki_hash, ())

    def is_blocked(self, spki_hash: bytes) -> bool:
        return spki_hash in self.blocked_spkis

    def as_base64(self) -> dict[str, list[str]]:
        """External rendering: base64 SPKI hash → base64 serials."""
        return {
            _b64(spki): [_b64(serial) for serial in serials]
            for spki, serials in self.certificates.items()
        }


def _decode_blocked_spkis(values: Any) -> tuple[bytes, ...]:
    if values is None:
        return ()
    if not isinstance(values, list):
        raise MalformedHeader(f"BlockedSPKIs must be a list, got {type(values).__name__}")
    try:
        return tuple(base64.b64decode(value, validate=True) for value in values)
    except (binascii.Error, TypeError, ValueError) as e:
        raise MalformedHeader(f"BlockedSPKIs holds an entry that is not base64: {e}") from e


def _b64(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


@dataclass(frozen=True, slots=True)
class UpdateCheck:
    """
    The `updatecheck` answer of the component update service.

    Only built from a manifest whose status is "ok". `codebase` is where the
    CRX lives; `hash_sha256` is the hex digest the download must match.
    `fp`, `hash`, `size` and `version` are passed through unchanged.
    """

    app_id: str
    status: str
    codebase: str
    fp: str
    hash: str
    hash_sha256: str
    size: str
    version: str


@dataclass(frozen=True, slots=True)
class CrxPackage:
    """Downloaded CRX bytes whose SHA-256 matched the update check."""

    update: UpdateCheck
    data: bytes = field(repr=False)


@dataclass(frozen=True, slots=True)
class CrlSetSnapshot:
    """
    Everything known about one successfully decoded CRLSet.

    This is the typed replacement for looking properties up by name: the
    update metadata, the CRX header fields and the CrlSet are all fields.
    """

    update: UpdateCheck
    crx_version: int
    public_key: bytes = field(repr=False)
    signature: bytes = field(repr=False)
    crlset: CrlSet = field(default_factory=CrlSet)

    @property
    def version(self) -> Any:
        return self.crlset.version

    @property
    def certificates(self) -> Mapping[bytes, tuple[bytes, ...]]:
        return self.crlset.certificates

    def summary(self) -> dict[str, Any]:
        """JSON-ready overview (used by the HTTP service)."""
        return {
            "app_id": self.update.app_id,
            "update_version": self.update.version,
            "codebase": self.update.codebase,
            "crx_version": self.crx_version,
            "header": dict(self.crlset.header),
            "parents": len(self.crlset.certificates),
            "serials": self.crlset.total_serials,
        }


@unique
class RevocationStatus(Enum):
    """Outcome of checking a certificate against a CrlSet."""

    GOOD = "good"
    REVOKED = "revoked"
    BLOCKED = "blocked"
