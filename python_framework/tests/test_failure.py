"""Tests for ErrorCode and FailureDescription."""

from datetime import UTC

import pytest

from railway import ErrorCode, FailureDescription


class TestErrorCode:
    def test_values_equal_names(self):
        for code in ErrorCode:
            assert code.value == code.name

    def test_lookup_by_value(self):
        assert ErrorCode("EXTERNAL_SERVICE_ERROR") is ErrorCode.EXTERNAL_SERVICE_ERROR


class TestFailureDescription:
    def test_defaults(self):
        desc = FailureDescription(ErrorCode.NOT_FOUND, "no snapshot stored yet")
        assert desc.exception is None
        assert desc.timestamp.tzinfo is UTC

    def test_is_frozen(self):
        desc = FailureDescription(ErrorCode.NOT_FOUND, "gone")
        with pytest.raises(AttributeError):
            desc.message = "changed"  # type: ignore[misc]

    def test_str(self):
        desc = FailureDescription(ErrorCode.VALIDATION_ERROR, "TruncatedInput")
        assert str(desc) == "VALIDATION_ERROR: TruncatedInput"

    def test_exception_not_in_repr(self):
        desc = FailureDescription(ErrorCode.DATABASE_ERROR, "down", RuntimeError("secret-dsn"))
        assert "secret-dsn" not in repr(desc)


class TestFullStackTrace:
    def test_without_exception_is_message(self):
        desc = FailureDescription(ErrorCode.NOT_FOUND, "gone")
        assert desc.full_stack_trace() == "gone"

    def test_with_exception_includes_traceback(self):
        try:
            raise ValueError("bad magic")
        except ValueError as e:
            desc = FailureDescription(ErrorCode.VALIDATION_ERROR, "decode failed", e)

        trace = desc.full_stack_trace()

        assert trace.startswith("decode failed\n")
        assert "ValueError: bad magic" in trace
        assert "Traceback" in trace
