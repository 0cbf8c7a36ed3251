"""
Execution contexts — keep WHAT a pipeline does apart from HOW it is run.

A pipeline is a plain function returning Result[T]. An ExecutionContext wraps
its execution with cross-cutting behaviour (timing and structured logging
here) without the pipeline stages knowing about it:

    ctx = LoggingExecutionContext(operation="CrlSetSync")
    result = ctx.execute(pipeline_fn)
"""

from __future__ import annotations

import time
from typing import Callable, Protocol, TypeVar, runtime_checkable

import structlog

from railway.failure import ErrorCode, FailureDescription
from railway.result import Failure, Result

T = TypeVar("T")
log = structlog.get_logger("railway.execution")


@runtime_checkable
class ExecutionContext(Protocol):
    """Anything with execute(computation) -> Result[T]."""

    def execute(self, computation: Callable[[], Result[T]]) -> Result[T]: ...


class NoOpExecutionContext:
    """Runs the computation as-is. Used in tests and as the innermost context."""

    def execute(self, computation: Callable[[], Result[T]]) -> Result[T]:
        return computation()


class LoggingExecutionContext:
    """
    Logs start, outcome and duration of a computation.

    An exception escaping the computation is turned into a TECHNICAL_ERROR
    Failure so that a scheduler job never dies on an adapter bug.
    """

    def __init__(
        self,
        inner: ExecutionContext | None = None,
        operation: str = "unknown",
    ) -> None:
        self._inner = inner or NoOpExecutionContext()
        self._operation = operation

    def execute(self, computation: Callable[[], Result[T]]) -> Result[T]:
        log.info("execution.started", operation=self._operation)
        start = time.monotonic()

        try:
            result = self._inner.execute(computation)
        except Exception as e:
            elapsed = time.monotonic() - start
            log.error(
                "execution.crashed",
                operation=self._operation,
                elapsed_seconds=round(elapsed, 3),
                error=str(e),
            )
            return Failure(
                FailureDescription(ErrorCode.TECHNICAL_ERROR, f"Execution failed: {e}", e)
            )

        elapsed = time.monotonic() - start
        log.info(
            "execution.completed",
            operation=self._operation,
            elapsed_seconds=round(elapsed, 3),
            state="SUCCESS" if result.is_success() else "FAILURE",
        )
        return result
