"""
CRLSet decoder adapter — CRX unwrap + ZIP entry extraction + record decoding.

Adapter layer — implements the CrlSetDecoder port on top of the pure codec:

  CrxPackage.data
    → parse_crx()      → CrxContainer (payload = ZIP archive)
    → extract_entry()  → decompressed "crl-set" bytes
    → decode_crlset()  → CrlSet
    → CrlSetSnapshot (domain model)

The codec raises typed DecodeError exceptions; they are caught here and
returned as VALIDATION_ERROR failures that keep the exception, so callers can
still tell which kind of decode failure happened.
"""

from __future__ import annotations

import structlog
from railway import ErrorCode, FailureDescription
from railway.result import Result

from crlget.codec.crlset import decode_crlset
from crlget.codec.crx import parse_crx
from crlget.codec.zip_entry import CRLSET_ENTRY_NAME, extract_entry
from crlget.domain.errors import DecodeError
from crlget.domain.models import CrlSet, CrlSetSnapshot, CrxContainer, CrxPackage

log = structlog.get_logger()


def decode_crx_crlset(
    buffer: bytes,
    entry_name: str = CRLSET_ENTRY_NAME,
) -> tuple[CrxContainer, CrlSet]:
    """
    Run the whole decode chain over one CRX buffer.

    Pure function of its input: no I/O, no shared state. Raises DecodeError.
    """
    crx = parse_crx(buffer)
    entry = extract_entry(crx.payload, entry_name)
    return crx, decode_crlset(entry)


def describe_decode_failure(failure: FailureDescription) -> FailureDescription:
    """
    Name the decode failure kind in the message.

    Exceptions that are not DecodeError are bugs, not bad input, and are
    reclassified as TECHNICAL_ERROR.
    """
    exc = failure.exception
    if isinstance(exc, DecodeError):
        return FailureDescription(
            code=failure.code,
            message=f"{failure.message}: {type(exc).__name__}: {exc}",
            exception=exc,
        )
    return FailureDescription(
        code=ErrorCode.TECHNICAL_ERROR,
        message=f"{failure.message}: {exc}",
        exception=exc,
    )


class CrxCrlSetDecoder:
    """
    Decode a downloaded CRX package into a CrlSetSnapshot.

    Implements the CrlSetDecoder port.
    """

    def __init__(self, entry_name: str = CRLSET_ENTRY_NAME) -> None:
        self._entry_name = entry_name

    def decode(self, package: CrxPackage) -> Result[CrlSetSnapshot]:
        """
        Returns Result[CrlSetSnapshot] on success.
        Returns Result.failure(VALIDATION_ERROR, ...) carrying the DecodeError otherwise.
        """
        return (
            Result.from_computation(
                lambda: self._do_decode(package),
                ErrorCode.VALIDATION_ERROR,
                "Failed to decode CRLSet package",
            )
            .map_failure(describe_decode_failure)
            .peek_failure(
                lambda failure: log.warning(
                    "decoder.failed",
                    kind=type(failure.exception).__name__,
                    error=failure.message,
                )
            )
        )

    def _do_decode(self, package: CrxPackage) -> CrlSetSnapshot:
        crx, crlset = decode_crx_crlset(package.data, self._entry_name)

        log.info(
            "decoder.complete",
            update_version=package.update.version,
            crx_version=crx.version,
            crlset_sequence=crlset.sequence,
            parents=len(crlset.certificates),
            serials=crlset.total_serials,
        )

        return CrlSetSnapshot(
            update=package.update,
            crx_version=crx.version,
            public_key=crx.public_key,
            signature=crx.signature,
            crlset=crlset,
        )
