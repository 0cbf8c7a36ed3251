"""
Shorthand factories for the failures adapters produce most often.

    ResultFailures.not_found("CRLSet snapshot", "latest")
    ResultFailures.validation_error("Update manifest has no app with appid ...")
"""

from __future__ import annotations

from railway.failure import ErrorCode
from railway.result import Result


class ResultFailures:
    """Factory methods for common failure types."""

    @staticmethod
    def validation_error(message: str, exception: BaseException | None = None) -> Result:
        return Result.failure(ErrorCode.VALIDATION_ERROR, message, exception)

    @staticmethod
    def not_found(resource_type: str, identifier: str) -> Result:
        return Result.failure(
            ErrorCode.NOT_FOUND,
            f"{resource_type} not found with identifier: {identifier}",
        )
