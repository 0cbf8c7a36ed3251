"""
Download integrity — the SHA-256 precondition checked before decoding.

The update check announces the package digest (`hash_sha256`, hex). The
downloaded bytes only become a CrxPackage once their digest matches it;
the decoder itself never re-verifies.
"""

from __future__ import annotations

from cryptography.hazmat.primitives import hashes
from railway import ResultFailures
from railway.result import Result

from crlget.domain.models import CrxPackage, UpdateCheck


def sha256_digest(data: bytes) -> bytes:
    digest = hashes.Hash(hashes.SHA256())
    digest.update(data)
    return digest.finalize()


def verify_package(update: UpdateCheck, data: bytes) -> Result[CrxPackage]:
    """Success(CrxPackage) when sha256(data) equals the announced hex digest."""
    actual = sha256_digest(data).hex()
    if actual != update.hash_sha256.strip().lower():
        return ResultFailures.validation_error(
            f"CRLSet package digest mismatch: expected {update.hash_sha256}, got {actual}"
        )
    return Result.success(CrxPackage(update=update, data=data))
