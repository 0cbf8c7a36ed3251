"""
Pipeline — the ROP chain that fetches, verifies, decodes and stores a CRLSet.

Domain layer — no I/O of its own. All I/O is injected via ports.

Two stages, so decoding can run (and be tested) without the network:

  fetch_package(checker, downloader)
    check()                     → UpdateCheck
      → download(update)        → raw bytes
        → verify_package(...)   → CrxPackage (SHA-256 matched)

  run_pipeline(...)
    fetch_package(...)
      → decoder.decode(package) → CrlSetSnapshot
        → repository.store(...) → rows written

Each stage returns Result[T]; the first failure short-circuits the rest,
so a snapshot that failed to decode is never stored.
"""

from __future__ import annotations

from railway.result import Result

from crlget.domain.integrity import verify_package
from crlget.domain.models import CrlSetSnapshot, CrxPackage
from crlget.domain.ports import (
    CrlSetDecoder,
    CrlSetRepository,
    PackageDownloader,
    UpdateChecker,
)


def fetch_package(
    update_checker: UpdateChecker,
    downloader: PackageDownloader,
) -> Result[CrxPackage]:
    """Update check, download, digest verification."""
    return update_checker.check().flat_map(
        lambda update: downloader.download(update).flat_map(
            lambda data: verify_package(update, data)
        )
    )


def fetch_crlset(
    update_checker: UpdateChecker,
    downloader: PackageDownloader,
    decoder: CrlSetDecoder,
) -> Result[CrlSetSnapshot]:
    """fetch_package followed by decoding, without storing anything."""
    return fetch_package(update_checker, downloader).flat_map(decoder.decode)


def run_pipeline(
    update_checker: UpdateChecker,
    downloader: PackageDownloader,
    decoder: CrlSetDecoder,
    repository: CrlSetRepository,
) -> Result[int]:
    """
    Execute the full CRLSet sync.

    Flow:
      1. Update check (manifest must name our app, status "ok")
      2. Download the CRX from the announced codebase
      3. Verify its SHA-256 against the announced digest
      4. Decode CRX → ZIP entry → CRLSet
      5. Replace the stored snapshot

    Returns Result[int] with rows stored on success,
    or the failure of the first failing stage.
    """
    return fetch_crlset(update_checker, downloader, decoder).flat_map(repository.store)
