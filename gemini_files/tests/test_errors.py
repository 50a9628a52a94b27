"""
Tests for error classification.
"""

import httpx
import pytest
from pydantic import BaseModel, ValidationError

from gemini_files.core.errors import (
    ErrorCode,
    GeminiFilesError,
    GeminiFilesValidationError,
    normalize_error,
)


def status_error(status, body=None):
    request = httpx.Request("GET", "https://files.test/v1beta/files")
    response = httpx.Response(status, json=body, request=request)
    return httpx.HTTPStatusError("failed", request=request, response=response)


class TestNormalizeError:
    def test_classified_errors_pass_through(self):
        original = GeminiFilesValidationError("denied", details={"reason_code": "READ_ONLY_MODE"})

        assert normalize_error(original) is original

    def test_pydantic_errors_become_validation(self):
        class Model(BaseModel):
            name: str

        with pytest.raises(ValidationError) as exc_info:
            Model.model_validate({})

        error = normalize_error(exc_info.value)
        assert error.code is ErrorCode.VALIDATION
        assert error.message.startswith("Invalid arguments: name:")

    def test_http_message_taken_from_body(self):
        error = normalize_error(status_error(401, {"error": {"message": "bad key"}}))

        assert error.code is ErrorCode.AUTH
        assert error.message == "bad key"
        assert error.to_dict() == {
            "code": "AUTH_ERROR",
            "message": "bad key",
            "retryable": False,
            "details": {"status": 401, "details": {"error": {"message": "bad key"}}},
        }

    def test_http_without_body(self):
        error = normalize_error(status_error(502))

        assert error.code is ErrorCode.API
        assert error.retryable
        assert error.message == "HTTP 502 from Gemini Files API"

    def test_bool_status_attribute_ignored(self):
        exc = RuntimeError("odd")
        exc.status = True

        assert normalize_error(exc).code is ErrorCode.INTERNAL

    def test_request_error_is_network(self):
        error = normalize_error(httpx.ReadTimeout("timed out"))

        assert error.code is ErrorCode.NETWORK
        assert error.retryable

    def test_validation_error_to_dict(self):
        assert GeminiFilesValidationError("nope").to_dict() == {
            "code": "VALIDATION_ERROR",
            "message": "nope",
            "retryable": False,
        }

    def test_empty_message_uses_class_name(self):
        error = normalize_error(KeyError())

        assert isinstance(error, GeminiFilesError)
        assert error.message == "KeyError"
