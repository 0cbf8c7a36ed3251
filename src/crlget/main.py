"""
Application entry point — wires dependencies and starts the scheduler.

Composition root: creates concrete adapters, injects them into the
pipeline, and hands the pipeline to the scheduler.

This is the ONLY place where concrete classes are instantiated.
Everything else depends on Protocol interfaces.

Responsibilities:
  1. Configure structlog for structured logging
  2. Load and validate configuration from environment
  3. Create concrete adapter instances (update checker, downloader,
     decoder, repository, revocation checker)
  4. Wire the pipeline (partial application with ports)
  5. Create and start the scheduler
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from functools import partial

import structlog

from crlget import __version__
from crlget.adapters.crx_decoder import CrxCrlSetDecoder
from crlget.adapters.http_client import HttpPackageDownloader, HttpUpdateChecker
from crlget.adapters.memory_repository import InMemoryCrlSetRepository
from crlget.adapters.repository import PsycopgCrlSetRepository
from crlget.adapters.revocation_checker import X509RevocationChecker
from crlget.config import AppSettings
from crlget.domain.ports import CrlSetRepository
from crlget.pipeline import run_pipeline
from crlget.scheduler import create_scheduler


def configure_structlog(log_level: str = "INFO") -> None:
    """
    Configure structlog for structured logging.

    Colored, human-readable console output with ISO timestamps; events
    below `log_level` are dropped by the bound logger itself.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


@dataclass(frozen=True, slots=True)
class Adapters:
    """Concrete port implementations for one process."""

    update_checker: HttpUpdateChecker
    downloader: HttpPackageDownloader
    decoder: CrxCrlSetDecoder
    repository: CrlSetRepository
    revocation_checker: X509RevocationChecker


def create_repository(settings: AppSettings) -> CrlSetRepository:
    """PostgreSQL when a database is configured, otherwise in-memory."""
    if settings.database is None:
        return InMemoryCrlSetRepository()
    return PsycopgCrlSetRepository(dsn=settings.database.get_dsn())


def create_adapters(settings: AppSettings) -> Adapters:
    """Instantiate all concrete adapters from application settings."""
    return Adapters(
        update_checker=HttpUpdateChecker(
            update_url=settings.update.url,
            app_id=settings.update.app_id,
            version=settings.update.version,
            uc=settings.update.uc,
            timeout=settings.http_timeout_seconds,
        ),
        downloader=HttpPackageDownloader(timeout=settings.http_timeout_seconds),
        decoder=CrxCrlSetDecoder(),
        repository=create_repository(settings),
        revocation_checker=X509RevocationChecker(),
    )


def wire_pipeline(adapters: Adapters) -> partial:
    """Zero-argument pipeline callable for the scheduler and /trigger."""
    return partial(
        run_pipeline,
        update_checker=adapters.update_checker,
        downloader=adapters.downloader,
        decoder=adapters.decoder,
        repository=adapters.repository,
    )


def main() -> None:
    """Wire dependencies and launch the scheduled pipeline."""
    try:
        settings = AppSettings()
    except Exception as e:
        print(f"FATAL: Configuration error: {e}", file=sys.stderr)  # noqa: T201
        sys.exit(1)

    configure_structlog(settings.log_level)
    log = structlog.get_logger()

    log.info(
        "app.starting",
        version=__version__,
        log_level=settings.log_level,
        cron=settings.scheduler.cron,
        run_on_startup=settings.run_on_startup,
        persistence="postgres" if settings.database else "memory",
    )

    scheduler = create_scheduler(
        pipeline_fn=wire_pipeline(create_adapters(settings)),
        cron=settings.scheduler.cron,
        run_on_startup=settings.run_on_startup,
    )

    log.info("app.scheduler_starting", cron=settings.scheduler.cron)

    try:
        scheduler.start()
    except KeyboardInterrupt:
        log.info("app.shutdown", reason="signal received")
    except SystemExit:
        log.info("app.shutdown", reason="signal received")
        raise
    except Exception as e:
        log.error("app.fatal_error", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
