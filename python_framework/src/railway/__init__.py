"""
Railway-Oriented Programming (ROP) support for crlget.

Explicit, composable error handling: every adapter returns a Result, stages
are chained with flat_map, and the first failure short-circuits the rest.

    from railway import Result, ErrorCode

    def require_ok(update: UpdateCheck) -> Result[UpdateCheck]:
        if update.status != "ok":
            return Result.failure(ErrorCode.BUSINESS_RULE_ERROR, "update check is not ok")
        return Result.success(update)
"""

from railway.result import Result, Success, Failure
from railway.failure import ErrorCode, FailureDescription
from railway.execution import (
    ExecutionContext,
    NoOpExecutionContext,
    LoggingExecutionContext,
)
from railway.result_failures import ResultFailures
from railway.assertions import ResultAssertions

__all__ = [
    "Result",
    "Success",
    "Failure",
    "ErrorCode",
    "FailureDescription",
    "ExecutionContext",
    "NoOpExecutionContext",
    "LoggingExecutionContext",
    "ResultFailures",
    "ResultAssertions",
]

__version__ = "1.1.0"
