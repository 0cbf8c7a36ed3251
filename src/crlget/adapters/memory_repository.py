"""
In-memory repository adapter — used when no database is configured.

Implements the CrlSetRepository port by holding a single reference to the
latest snapshot. Replacing the reference is the whole "transaction", so a
reader always sees either the previous snapshot or the new one.
"""

from __future__ import annotations

import threading

import structlog
from railway import ResultFailures
from railway.result import Result

from crlget.domain.models import CrlSetSnapshot

log = structlog.get_logger()


class InMemoryCrlSetRepository:
    """Latest-snapshot holder shared by the scheduler thread and the web app."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._snapshot: CrlSetSnapshot | None = None

    def store(self, snapshot: CrlSetSnapshot) -> Result[int]:
        crlset = snapshot.crlset
        rows = 1 + len(crlset.certificates) + crlset.total_serials
        with self._lock:
            self._snapshot = snapshot
        log.info(
            "repository.stored",
            backend="memory",
            sequence=crlset.sequence,
            parents=len(crlset.certificates),
            serials=crlset.total_serials,
            total_rows=rows,
        )
        return Result.success(rows)

    def latest(self) -> Result[CrlSetSnapshot]:
        with self._lock:
            snapshot = self._snapshot
        if snapshot is None:
            return ResultFailures.not_found("CRLSet snapshot", "latest")
        return Result.success(snapshot)
