"""
Failure description — the payload carried on the failure track.

An ErrorCode classifies the failure (and maps onto an HTTP status at the
service edge); the FailureDescription adds a human message, the original
exception when there is one, and a UTC timestamp.
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum, unique


@unique
class ErrorCode(Enum):
    """
    Failure classification.

    Client-side codes describe bad input or unmet preconditions, server-side
    codes describe infrastructure trouble.
    """

    # --- Client-side (4xx) ---
    VALIDATION_ERROR = "VALIDATION_ERROR"
    """Input is malformed: bad bytes, bad XML, digest mismatch (→ 400)."""

    NOT_FOUND = "NOT_FOUND"
    """Requested resource does not exist yet (→ 404)."""

    BUSINESS_RULE_ERROR = "BUSINESS_RULE_ERROR"
    """Input is well-formed but refused by a domain rule (→ 409)."""

    # --- Server-side (5xx) ---
    TECHNICAL_ERROR = "TECHNICAL_ERROR"
    """Unexpected infrastructure issue (→ 500)."""

    DATABASE_ERROR = "DATABASE_ERROR"
    """Database connectivity or query failure (→ 500)."""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    """System misconfiguration (→ 500)."""

    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    """Remote service call failed (→ 502)."""

    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    """Operation exceeded its time limit (→ 504)."""

    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    """Unclassified failure (→ 500)."""


@dataclass(frozen=True, slots=True)
class FailureDescription:
    """
    Immutable failure descriptor.

    >>> desc = FailureDescription(ErrorCode.NOT_FOUND, "no snapshot stored yet")
    >>> desc.code
    <ErrorCode.NOT_FOUND: 'NOT_FOUND'>
    """

    code: ErrorCode
    message: str
    exception: BaseException | None = field(default=None, repr=False)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def full_stack_trace(self) -> str:
        """Message followed by the formatted exception chain, if any."""
        if self.exception is None:
            return self.message
        tb = "".join(
            traceback.format_exception(
                type(self.exception), self.exception, self.exception.__traceback__
            )
        )
        return f"{self.message}\n{tb}"

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"
