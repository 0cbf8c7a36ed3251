"""
Ports — Protocol-based interfaces for infrastructure adapters.

The pipeline depends on these contracts only; adapters satisfy them
structurally, without inheritance:

  Domain ← Ports (protocols) ← Adapters (implementations)

Sync flow:
  1. UpdateChecker      → UpdateCheck (where the CRX is, and its digest)
  2. PackageDownloader  → raw CRX bytes
  3. CrlSetDecoder      → CrlSetSnapshot (CRX → ZIP entry → CRLSet)
  4. CrlSetRepository   → atomic replace of the stored snapshot
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from railway.result import Result

from crlget.domain.models import (
    CrlSet,
    CrlSetSnapshot,
    CrxPackage,
    RevocationStatus,
    UpdateCheck,
)


@runtime_checkable
class UpdateChecker(Protocol):
    """
    Port: ask the component update service for the current CRLSet release.

    Returns Result[UpdateCheck]; only an update check with status "ok" and
    every required attribute is a success.
    """

    def check(self) -> Result[UpdateCheck]: ...


@runtime_checkable
class PackageDownloader(Protocol):
    """Port: fetch the CRX bytes from UpdateCheck.codebase."""

    def download(self, update: UpdateCheck) -> Result[bytes]: ...


@runtime_checkable
class CrlSetDecoder(Protocol):
    """
    Port: decode a verified CRX package into a CrlSetSnapshot.

    The implementation handles:
      1. CRX header unwrapping
      2. locating and decompressing the "crl-set" ZIP entry
      3. parsing the JSON header and the revocation records
    """

    def decode(self, package: CrxPackage) -> Result[CrlSetSnapshot]: ...


@runtime_checkable
class CrlSetRepository(Protocol):
    """
    Port: keep the latest good CRLSet snapshot.

    store() replaces the previous snapshot atomically: a failed store leaves
    the old snapshot intact, and a failed decode never reaches store().
    """

    def store(self, snapshot: CrlSetSnapshot) -> Result[int]:
        """Replace the stored snapshot. Returns Result[int] with rows written."""
        ...

    def latest(self) -> Result[CrlSetSnapshot]:
        """The stored snapshot, or Result.failure(NOT_FOUND) before the first store."""
        ...


@runtime_checkable
class RevocationChecker(Protocol):
    """Port: decide whether a DER certificate is revoked according to a CrlSet."""

    def check(
        self,
        crlset: CrlSet,
        certificate_der: bytes,
        issuer_der: bytes,
    ) -> Result[RevocationStatus]: ...
