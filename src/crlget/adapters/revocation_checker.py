"""
Revocation checker adapter — look a certificate up in a CrlSet.

Adapter layer — implements the RevocationChecker port using:
  - asn1crypto: certificate structure (SubjectPublicKeyInfo DER, raw serial octets)
  - cryptography (PyCA): SHA-256 of the SubjectPublicKeyInfo

A certificate is:
  BLOCKED  if its own SPKI hash or its issuer's is listed in BlockedSPKIs
  REVOKED  if its serial is listed under its issuer's SPKI hash
  GOOD     otherwise
"""

from __future__ import annotations

import structlog
from asn1crypto import x509 as asn1_x509
from railway import ErrorCode
from railway.result import Result

from crlget.domain.integrity import sha256_digest
from crlget.domain.models import CrlSet, RevocationStatus

log = structlog.get_logger()


def spki_hash(certificate: asn1_x509.Certificate) -> bytes:
    """SHA-256 over the DER SubjectPublicKeyInfo — the CRLSet parent key."""
    return sha256_digest(certificate.public_key.dump())


def serial_octets(certificate: asn1_x509.Certificate) -> bytes:
    """
    Serial number as CRLSet stores it: the DER INTEGER content octets
    without leading zero padding (a single 0x00 stays).
    """
    raw = certificate["tbs_certificate"]["serial_number"].contents
    stripped = raw.lstrip(b"\x00")
    return stripped or raw[-1:]


class X509RevocationChecker:
    """
    Check DER-encoded certificates against a decoded CrlSet.

    Implements the RevocationChecker port.
    Unparseable certificates become Result.failure(VALIDATION_ERROR, ...).
    """

    def check(
        self,
        crlset: CrlSet,
        certificate_der: bytes,
        issuer_der: bytes,
    ) -> Result[RevocationStatus]:
        return Result.from_computation(
            lambda: self._do_check(crlset, certificate_der, issuer_der),
            ErrorCode.VALIDATION_ERROR,
            "Failed to read certificate or issuer DER",
        )

    def _do_check(
        self,
        crlset: CrlSet,
        certificate_der: bytes,
        issuer_der: bytes,
    ) -> RevocationStatus:
        leaf = asn1_x509.Certificate.load(certificate_der)
        issuer = asn1_x509.Certificate.load(issuer_der)
        leaf_hash = spki_hash(leaf)
        issuer_hash = spki_hash(issuer)
        serial = serial_octets(leaf)

        if crlset.is_blocked(leaf_hash) or crlset.is_blocked(issuer_hash):
            status = RevocationStatus.BLOCKED
        elif crlset.is_revoked(issuer_hash, serial):
            status = RevocationStatus.REVOKED
        else:
            status = RevocationStatus.GOOD

        log.info(
            "revocation.checked",
            serial=serial.hex(),
            issuer_spki_hash=issuer_hash.hex(),
            status=status.value,
        )
        return status
