"""
PostgreSQL repository adapter — CRLSet snapshot persistence.

Adapter layer — implements the CrlSetRepository port using psycopg (v3)
for sync PostgreSQL access with parameterized queries.

Uses TRANSACTIONAL REPLACE:
  1. BEGIN transaction
  2. DELETE all rows (FK-safe order: child → parent)
  3. INSERT the snapshot, its parents and their serials
  4. COMMIT (or automatic ROLLBACK on failure → previous snapshot preserved)

Table mapping:
  UpdateCheck + CRX header + CRLSet header → crlset_snapshot (single row)
  CrlSet.certificates keys                 → crlset_parent
  CrlSet.certificates values               → crlset_serial

`position` columns keep stream order so latest() rebuilds an identical CrlSet.
No ORM — raw parameterized SQL.
"""

from __future__ import annotations

from typing import Any

import psycopg
import structlog
from psycopg.types.json import Jsonb
from railway import ErrorCode, ResultFailures
from railway.result import Result

from crlget.domain.models import CrlSet, CrlSetSnapshot, UpdateCheck

log = structlog.get_logger()

_INSERT_SNAPSHOT = """
INSERT INTO crlset_snapshot (
    app_id, status, codebase, fp, hash, hash_sha256, size, update_version,
    crx_version, public_key, signature, header, stored_at
) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, now())
"""

_INSERT_PARENT = """
INSERT INTO crlset_parent (spki_hash, position) VALUES (%s, %s)
"""

_INSERT_SERIAL = """
INSERT INTO crlset_serial (spki_hash, position, serial) VALUES (%s, %s, %s)
"""

_SELECT_SNAPSHOT = """
SELECT app_id, status, codebase, fp, hash, hash_sha256, size, update_version,
       crx_version, public_key, signature, header
FROM crlset_snapshot
"""

_SELECT_PARENTS = "SELECT spki_hash FROM crlset_parent ORDER BY position"

_SELECT_SERIALS = """
SELECT s.spki_hash, s.serial
FROM crlset_serial s JOIN crlset_parent p ON p.spki_hash = s.spki_hash
ORDER BY p.position, s.position
"""


class PsycopgCrlSetRepository:
    """
    Persist the latest CRLSet snapshot to PostgreSQL using transactional replace.

    Implements the CrlSetRepository port.
    All exceptions are caught at this adapter boundary via Result.from_computation().
    """

    def __init__(self, dsn: str) -> None:
        self._dsn = dsn

    def store(self, snapshot: CrlSetSnapshot) -> Result[int]:
        """
        Atomically replace the stored snapshot.

        Returns Result[int] with total rows written on success.
        On failure, the previous snapshot remains intact (transaction rolled back).
        """
        return Result.from_computation(
            lambda: self._transactional_replace(snapshot),
            ErrorCode.DATABASE_ERROR,
            "Failed to persist CRLSet snapshot to database",
        )

    def latest(self) -> Result[CrlSetSnapshot]:
        """Rebuild the stored snapshot, or NOT_FOUND when nothing was stored yet."""
        return Result.from_computation(
            lambda: self._load(),
            ErrorCode.DATABASE_ERROR,
            "Failed to load CRLSet snapshot from database",
        ).flat_map(
            lambda snapshot: (
                Result.success(snapshot)
                if snapshot is not None
                else ResultFailures.not_found("CRLSet snapshot", "latest")
            )
        )

    def _transactional_replace(self, snapshot: CrlSetSnapshot) -> int:
        """DELETE all → INSERT all in a single ACID transaction."""
        with psycopg.connect(self._dsn) as conn, conn.transaction(), conn.cursor() as cur:
            self._delete_all(cur)
            rows = self._insert_all(cur, snapshot)
            log.info(
                "repository.stored",
                sequence=snapshot.crlset.sequence,
                parents=len(snapshot.crlset.certificates),
                serials=snapshot.crlset.total_serials,
                total_rows=rows,
            )
            return rows

    def _delete_all(self, cur: psycopg.Cursor[Any]) -> None:
        """Delete all rows in FK-safe order: child → parent."""
        cur.execute("DELETE FROM crlset_serial")
        cur.execute("DELETE FROM crlset_parent")
        cur.execute("DELETE FROM crlset_snapshot")

    def _insert_all(self, cur: psycopg.Cursor[Any], snapshot: CrlSetSnapshot) -> int:
        update = snapshot.update
        cur.execute(
            _INSERT_SNAPSHOT,
            (
                update.app_id,
                update.status,
                update.codebase,
                update.fp,
                update.hash,
                update.hash_sha256,
                update.size,
                update.version,
                snapshot.crx_version,
                snapshot.public_key,
                snapshot.signature,
                Jsonb(dict(snapshot.crlset.header)),
            ),
        )
        certificates = snapshot.crlset.certificates
        parent_rows = [(spki, position) for position, spki in enumerate(certificates)]
        serial_rows = [
            (spki, position, serial)
            for spki, serials in certificates.items()
            for position, serial in enumerate(serials)
        ]
        if parent_rows:
            cur.executemany(_INSERT_PARENT, parent_rows)
        if serial_rows:
            cur.executemany(_INSERT_SERIAL, serial_rows)
        return 1 + len(parent_rows) + len(serial_rows)

    def _load(self) -> CrlSetSnapshot | None:
        with psycopg.connect(self._dsn) as conn, conn.cursor() as cur:
            row = cur.execute(_SELECT_SNAPSHOT).fetchone()
            if row is None:
                return None
            (
                app_id, status, codebase, fp, hash_, hash_sha256, size, update_version,
                crx_version, public_key, signature, header,
            ) = row

            certificates: dict[bytes, list[bytes]] = {
                bytes(spki): [] for (spki,) in cur.execute(_SELECT_PARENTS).fetchall()
            }
            for spki, serial in cur.execute(_SELECT_SERIALS).fetchall():
                certificates[bytes(spki)].append(bytes(serial))

        return CrlSetSnapshot(
            update=UpdateCheck(
                app_id=app_id,
                status=status,
                codebase=codebase,
                fp=fp,
                hash=hash_,
                hash_sha256=hash_sha256,
                size=size,
                version=update_version,
            ),
            crx_version=crx_version,
            public_key=bytes(public_key),
            signature=bytes(signature),
            crlset=CrlSet(
                header=header,
                certificates={spki: tuple(serials) for spki, serials in certificates.items()},
            ),
        )
