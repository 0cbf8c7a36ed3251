"""
Scheduler — periodic CRLSet synchronisation.

Infrastructure layer — APScheduler (3.x) BlockingScheduler with a CronTrigger
built from a standard 5-field cron expression. Each run executes inside a
LoggingExecutionContext, so start, duration and outcome are logged even when
the pipeline raises.

SIGINT/SIGTERM stop the scheduler without waiting for running jobs.
"""

from __future__ import annotations

import signal
import sys
from collections.abc import Callable

import structlog
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger
from railway import LoggingExecutionContext
from railway.result import Result

log = structlog.get_logger()

JOB_ID = "crlset_sync"


def cron_trigger(cron: str) -> CronTrigger:
    """CronTrigger from "minute hour dom month dow"."""
    minute, hour, dom, month, dow = cron.split()
    return CronTrigger(minute=minute, hour=hour, day=dom, month=month, day_of_week=dow)


def create_scheduler(
    pipeline_fn: Callable[[], Result[int]],
    cron: str = "0 */6 * * *",
    run_on_startup: bool = True,
    handle_signals: bool = True,
) -> BlockingScheduler:
    """
    Create a BlockingScheduler that runs `pipeline_fn` on a cron schedule.

    Args:
        pipeline_fn: Zero-argument callable returning Result[int] (rows stored).
        cron: 5-field cron expression; the default runs every 6 hours.
        run_on_startup: Run once right away, before the scheduler is started.
        handle_signals: Install SIGINT/SIGTERM handlers. The ASGI app leaves
            signals to uvicorn and passes False.

    Returns:
        The configured scheduler (call .start() to block on it).
    """
    scheduler = BlockingScheduler()
    ctx = LoggingExecutionContext(operation="CrlSetSync")

    def _job() -> None:
        result = ctx.execute(pipeline_fn)
        if result.is_success():
            log.info("scheduler.job_completed", rows_stored=result.value())
        else:
            log.error("scheduler.job_failed", failure=str(result.error()))

    scheduler.add_job(
        _job,
        trigger=cron_trigger(cron),
        id=JOB_ID,
        name="CRLSet sync",
        replace_existing=True,
    )

    if run_on_startup:
        log.info("scheduler.startup_run")
        _job()

    if handle_signals:
        _register_shutdown_signals(scheduler)

    return scheduler


def _register_shutdown_signals(scheduler: BlockingScheduler) -> None:
    def _shutdown(signum: int, frame: object) -> None:
        log.info("scheduler.shutdown_requested", signal=signal.Signals(signum).name)
        scheduler.shutdown(wait=False)
        sys.exit(0)

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)
