"""
FastAPI + Uvicorn ASGI application.

Runs crlget as a web service: the sync scheduler lives in a background
thread while the app answers probes and CRLSet lookups.

Endpoints:
  GET  /health          liveness (scheduler thread alive, no startup error)
  GET  /ready           readiness
  GET  /info            application metadata
  POST /trigger         run the sync pipeline now
  GET  /crlset          header and counts of the latest snapshot
  GET  /crlset/revoked  ?spki=<base64 SPKI hash>&serial=<hex serial>
  POST /crlset/check    {"certificate": <base64 DER>, "issuer": <base64 DER>}

CRLSet endpoints answer from the repository through railway Results, so
failures keep their ErrorCode → HTTP status mapping (404 before the first
successful sync, 400 for bad input).

Entry point for production: uvicorn crlget.asgi:app --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import asyncio
import base64
import threading
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

import structlog
from apscheduler.schedulers.blocking import BlockingScheduler
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from railway import ErrorCode
from railway.http_support import build_fastapi_response
from railway.result import Result

from crlget import __version__
from crlget.config import AppSettings
from crlget.domain.models import CrlSetSnapshot
from crlget.domain.ports import CrlSetRepository, RevocationChecker
from crlget.main import configure_structlog, create_adapters, wire_pipeline
from crlget.scheduler import create_scheduler

# ─────────────────────── Global State ───────────────────────
# Set during app startup; read by the probes and CRLSet endpoints.

_scheduler: BlockingScheduler | None = None
_scheduler_thread: threading.Thread | None = None
_scheduler_started = False
_scheduler_ready = False
_error_message: str | None = None
_pipeline_fn: Callable[[], Result[int]] | None = None
_repository: CrlSetRepository | None = None
_revocation_checker: RevocationChecker | None = None
log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Startup: load settings, create adapters, start the scheduler thread.
    Shutdown: stop the scheduler and join the thread.
    """
    global _scheduler_thread, _scheduler_ready, _error_message
    global _pipeline_fn, _repository, _revocation_checker

    log.info("asgi.startup")

    try:
        settings = AppSettings()
    except Exception as e:
        _error_message = f"Configuration error: {e}"
        log.error("asgi.startup_error", error=_error_message)
        raise

    configure_structlog(settings.log_level)

    log.info(
        "asgi.startup_config",
        version=__version__,
        log_level=settings.log_level,
        cron=settings.scheduler.cron,
        run_on_startup=settings.run_on_startup,
    )

    adapters = create_adapters(settings)
    _pipeline_fn = wire_pipeline(adapters)
    _repository = adapters.repository
    _revocation_checker = adapters.revocation_checker

    def run_scheduler() -> None:
        """Build and run the blocking scheduler (startup run included)."""
        global _scheduler, _scheduler_started, _error_message
        try:
            _scheduler_started = True
            log.info("asgi.scheduler_thread_started")
            _scheduler = create_scheduler(
                pipeline_fn=_pipeline_fn,
                cron=settings.scheduler.cron,
                run_on_startup=settings.run_on_startup,
                handle_signals=False,
            )
            _scheduler.start()
        except Exception as e:
            _error_message = f"Scheduler error: {e}"
            log.error("asgi.scheduler_error", error=_error_message)

    _scheduler_thread = threading.Thread(target=run_scheduler, daemon=True)
    _scheduler_thread.start()

    await asyncio.sleep(0.1)
    _scheduler_ready = True

    log.info("asgi.startup_complete")

    yield

    # ──── Shutdown ────
    log.info("asgi.shutdown")

    if _scheduler is not None and _scheduler.running:
        _scheduler.shutdown(wait=True)
        log.info("asgi.scheduler_shutdown_complete")

    if _scheduler_thread.is_alive():
        _scheduler_thread.join(timeout=5.0)
        if _scheduler_thread.is_alive():
            log.warning("asgi.scheduler_thread_timeout", timeout_seconds=5.0)

    log.info("asgi.shutdown_complete")


# ─────────────────────── FastAPI Application ───────────────────────

app = FastAPI(
    title="crlget",
    description="CRLSet retrieval and decoding service",
    version=__version__,
    lifespan=lifespan,
)


def _scheduler_running() -> bool:
    return _scheduler_thread is not None and _scheduler_thread.is_alive()


def _unavailable(reason: str) -> JSONResponse:
    return JSONResponse(
        status_code=503,
        content={"status": "unavailable", "reason": reason},
    )


@app.get("/health")
async def health() -> JSONResponse:
    """Liveness probe: 503 on a startup/scheduler error or a dead scheduler thread."""
    if _error_message:
        log.warning("health.check_failed", error=_error_message)
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "error": _error_message},
        )

    if not _scheduler_running():
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "reason": "scheduler thread not running"},
        )

    return JSONResponse(
        status_code=200,
        content={"status": "healthy", "scheduler_running": True},
    )


@app.get("/ready")
async def ready() -> JSONResponse:
    """Readiness probe: 202 while starting, 503 on error, 200 once the scheduler runs."""
    if not _scheduler_ready or not _scheduler_started:
        return JSONResponse(
            status_code=202,
            content={"status": "starting", "scheduler_started": _scheduler_started},
        )

    if _error_message:
        return JSONResponse(
            status_code=503,
            content={"status": "error", "error": _error_message},
        )

    return JSONResponse(
        status_code=200,
        content={"status": "ready", "scheduler_running": _scheduler_running()},
    )


@app.get("/info")
async def info() -> dict[str, Any]:
    return {
        "name": "crlget",
        "version": __version__,
        "scheduler_running": _scheduler_running(),
        "scheduler_started": _scheduler_started,
        "scheduler_ready": _scheduler_ready,
        "has_error": _error_message is not None,
    }


@app.post("/trigger")
async def trigger() -> JSONResponse:
    """
    Run the sync pipeline now, off the event loop.

    Returns 200 with rows_stored on success, 500 with the failure otherwise,
    503 before startup completed.
    """
    if _pipeline_fn is None:
        return _unavailable("Pipeline not initialized")

    log.info("trigger.manual_start", source="REST")

    try:
        result = await asyncio.to_thread(_pipeline_fn)
    except Exception as e:
        log.error("trigger.exception", error=str(e))
        return JSONResponse(
            status_code=500,
            content={"status": "error", "error": str(e)},
        )

    if result.is_success():
        rows = result.value()
        log.info("trigger.completed", rows_stored=rows)
        return JSONResponse(
            status_code=200,
            content={"status": "success", "rows_stored": rows},
        )

    failure = result.error()
    log.error("trigger.pipeline_failed", failure=str(failure))
    return JSONResponse(
        status_code=500,
        content={
            "status": "failed",
            "error_code": failure.code.value,
            "message": failure.message,
        },
    )


# ─────────────────────── CRLSet lookups ───────────────────────


class CheckRequest(BaseModel):
    """Body of POST /crlset/check: base64 DER certificates."""

    certificate: str
    issuer: str


def _decode_base64(value: str, field: str) -> Result[bytes]:
    return Result.from_computation(
        lambda: base64.b64decode(value, validate=True),
        ErrorCode.VALIDATION_ERROR,
        f"{field} is not valid base64",
    )


def _decode_hex(value: str, field: str) -> Result[bytes]:
    return Result.from_computation(
        lambda: bytes.fromhex(value),
        ErrorCode.VALIDATION_ERROR,
        f"{field} is not valid hex",
    )


def _lookup(snapshot: CrlSetSnapshot, spki_hash: bytes, serial: bytes) -> dict[str, Any]:
    crlset = snapshot.crlset
    return {
        "sequence": crlset.sequence,
        "spki": base64.b64encode(spki_hash).decode("ascii"),
        "serial": serial.hex(),
        "revoked": crlset.is_revoked(spki_hash, serial),
        "blocked": crlset.is_blocked(spki_hash),
    }


@app.get("/crlset")
async def crlset_summary() -> JSONResponse:
    if _repository is None:
        return _unavailable("Repository not initialized")
    result = await asyncio.to_thread(_repository.latest)
    return build_fastapi_response(result.map(lambda snapshot: snapshot.summary()))


@app.get("/crlset/revoked")
async def crlset_revoked(spki: str, serial: str) -> JSONResponse:
    """Is `serial` listed under the parent SPKI hash `spki`?"""
    if _repository is None:
        return _unavailable("Repository not initialized")
    repository = _repository

    def _query() -> Result[dict[str, Any]]:
        return Result.combine(
            _decode_base64(spki, "spki"),
            _decode_hex(serial, "serial"),
            lambda spki_hash, serial_bytes: (spki_hash, serial_bytes),
        ).flat_map(
            lambda key: repository.latest().map(
                lambda snapshot: _lookup(snapshot, *key)
            )
        )

    return build_fastapi_response(await asyncio.to_thread(_query))


@app.post("/crlset/check")
async def crlset_check(request: CheckRequest) -> JSONResponse:
    """Revocation status of a DER certificate issued by a DER issuer."""
    if _repository is None or _revocation_checker is None:
        return _unavailable("Repository not initialized")
    repository = _repository
    checker = _revocation_checker

    def _query() -> Result[dict[str, Any]]:
        return Result.combine(
            _decode_base64(request.certificate, "certificate"),
            _decode_base64(request.issuer, "issuer"),
            lambda certificate, issuer: (certificate, issuer),
        ).flat_map(
            lambda pair: repository.latest().flat_map(
                lambda snapshot: checker.check(snapshot.crlset, *pair).map(
                    lambda status: {
                        "sequence": snapshot.crlset.sequence,
                        "status": status.value,
                    }
                )
            )
        )

    return build_fastapi_response(await asyncio.to_thread(_query))


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "crlget.asgi:app",
        host="0.0.0.0",
        port=8000,
        reload=False,
        log_level="info",
    )
