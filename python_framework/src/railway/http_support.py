"""
HTTP edge — ErrorCode → status mapping and FastAPI response building.

    @app.get("/crlset")
    async def crlset() -> JSONResponse:
        return build_fastapi_response(repository.latest().map(summarise))
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, TypeVar

from fastapi.responses import JSONResponse

from railway.failure import ErrorCode, FailureDescription
from railway.result import Result

T = TypeVar("T")


class HttpStatusMapper:
    """Maps ErrorCode values to HTTP status codes."""

    _CODE_TO_STATUS: dict[ErrorCode, int] = {
        ErrorCode.VALIDATION_ERROR: 400,
        ErrorCode.NOT_FOUND: 404,
        ErrorCode.BUSINESS_RULE_ERROR: 409,
        ErrorCode.TECHNICAL_ERROR: 500,
        ErrorCode.DATABASE_ERROR: 500,
        ErrorCode.CONFIGURATION_ERROR: 500,
        ErrorCode.EXTERNAL_SERVICE_ERROR: 502,
        ErrorCode.TIMEOUT_ERROR: 504,
        ErrorCode.UNKNOWN_ERROR: 500,
    }

    @classmethod
    def map_error_code(cls, code: ErrorCode) -> int:
        return cls._CODE_TO_STATUS.get(code, 500)

    @classmethod
    def map_failure(cls, failure: FailureDescription) -> int:
        return cls.map_error_code(failure.code)


@dataclass(frozen=True, slots=True)
class ErrorResponse:
    """
    Error body returned to HTTP clients.

        {"error_code": "NOT_FOUND", "message": "...", "timestamp": "2026-..."}
    """

    error_code: str
    message: str
    timestamp: str

    @staticmethod
    def from_failure(failure: FailureDescription) -> ErrorResponse:
        return ErrorResponse(
            error_code=failure.code.value,
            message=failure.message,
            timestamp=failure.timestamp.isoformat(),
        )

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


def build_response(
    result: Result[T],
    success_status: int = 200,
) -> tuple[Any, int]:
    """(body, status) for a Result — the value itself on success, an ErrorResponse otherwise."""
    return result.either(
        on_success=lambda value: (value, success_status),
        on_failure=lambda error: (
            ErrorResponse.from_failure(error).to_dict(),
            HttpStatusMapper.map_failure(error),
        ),
    )


def build_fastapi_response(result: Result[T], success_status: int = 200) -> JSONResponse:
    body, status = build_response(result, success_status)
    return JSONResponse(content=body, status_code=status)
