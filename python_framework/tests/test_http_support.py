"""Tests for HTTP integration — status mapping and response builders."""

import json

import pytest

from railway import ErrorCode, FailureDescription, Result
from railway.http_support import (
    ErrorResponse,
    HttpStatusMapper,
    build_fastapi_response,
    build_response,
)


class TestHttpStatusMapper:
    @pytest.mark.parametrize(
        "code,expected_status",
        [
            (ErrorCode.VALIDATION_ERROR, 400),
            (ErrorCode.NOT_FOUND, 404),
            (ErrorCode.BUSINESS_RULE_ERROR, 409),
            (ErrorCode.TECHNICAL_ERROR, 500),
            (ErrorCode.DATABASE_ERROR, 500),
            (ErrorCode.CONFIGURATION_ERROR, 500),
            (ErrorCode.EXTERNAL_SERVICE_ERROR, 502),
            (ErrorCode.TIMEOUT_ERROR, 504),
            (ErrorCode.UNKNOWN_ERROR, 500),
        ],
    )
    def test_error_code_to_http_status(self, code, expected_status):
        assert HttpStatusMapper.map_error_code(code) == expected_status

    def test_map_failure_description(self):
        failure = FailureDescription(ErrorCode.NOT_FOUND, "missing")
        assert HttpStatusMapper.map_failure(failure) == 404


class TestErrorResponse:
    def test_from_failure(self):
        failure = FailureDescription(ErrorCode.VALIDATION_ERROR, "bad input")
        response = ErrorResponse.from_failure(failure)
        assert response.error_code == "VALIDATION_ERROR"
        assert response.message == "bad input"
        assert response.timestamp == failure.timestamp.isoformat()

    def test_to_dict(self):
        failure = FailureDescription(ErrorCode.NOT_FOUND, "missing")
        d = ErrorResponse.from_failure(failure).to_dict()
        assert set(d) == {"error_code", "message", "timestamp"}
        assert d["error_code"] == "NOT_FOUND"


class TestBuildResponse:
    def test_success_response(self):
        body, status = build_response(Result.success({"sequence": 6123}))
        assert status == 200
        assert body == {"sequence": 6123}

    def test_success_with_custom_status(self):
        _, status = build_response(Result.success({"rows": 3}), success_status=201)
        assert status == 201

    def test_failure_response(self):
        body, status = build_response(Result.failure(ErrorCode.NOT_FOUND, "no snapshot"))
        assert status == 404
        assert body["error_code"] == "NOT_FOUND"
        assert body["message"] == "no snapshot"

    def test_external_service_failure_is_502(self):
        _, status = build_response(Result.failure(ErrorCode.EXTERNAL_SERVICE_ERROR, "CDN down"))
        assert status == 502


class TestBuildFastapiResponse:
    def test_json_body_and_status(self):
        response = build_fastapi_response(Result.failure(ErrorCode.VALIDATION_ERROR, "bad spki"))
        assert response.status_code == 400
        assert json.loads(response.body)["message"] == "bad spki"

    def test_success(self):
        response = build_fastapi_response(Result.success({"revoked": True}))
        assert response.status_code == 200
        assert json.loads(response.body) == {"revoked": True}
