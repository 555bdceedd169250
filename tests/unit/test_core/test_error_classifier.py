"""Tests for ErrorClassifier.

Verifies:
- Response-less failures always classify as NetworkFailure
- Status codes map to the fixed API codes and messages
- 400 responses become ValidationFailure with body fields
- pydantic validation errors become ValidationFailure
- Classified errors pass through unchanged
- Diagnostic context and exception chaining
"""

import asyncio
from types import SimpleNamespace

import httpx
import pytest
from pydantic import BaseModel, ValidationError

from opsentry.core.errors import (
    APIFailure,
    ErrorClassifier,
    ErrorKind,
    NetworkFailure,
    ValidationFailure,
    classify_error,
)

URL = "https://api.example.com/items"


def _status_error(status: int, **response_kwargs) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", URL)
    response = httpx.Response(status, request=request, **response_kwargs)
    return httpx.HTTPStatusError(f"HTTP {status}", request=request, response=response)


@pytest.fixture
def classifier():
    return ErrorClassifier()


class TestNetworkFailures:
    """Failures without a response are network failures."""

    @pytest.mark.parametrize(
        "raw",
        [
            httpx.ConnectError("connection refused"),
            httpx.ReadTimeout("read timed out"),
            OSError("network unreachable"),
            asyncio.TimeoutError(),
            RuntimeError("something odd"),
        ],
    )
    def test_response_less_failure_is_network(self, classifier, raw):
        error = classifier.classify(raw)

        assert isinstance(error, NetworkFailure)
        assert error.kind == ErrorKind.NETWORK
        assert error.code == "NETWORK_ERROR"
        assert error.message == "Network connection error"

    def test_explicit_none_response_is_network(self, classifier):
        raw = RuntimeError("no response")
        raw.response = None

        assert isinstance(classifier.classify(raw), NetworkFailure)

    def test_request_context_recorded(self, classifier):
        raw = httpx.ConnectError("refused", request=httpx.Request("POST", URL))

        error = classifier.classify(raw)

        assert error.context["exception_type"] == "ConnectError"
        assert error.context["method"] == "POST"
        assert error.context["url"] == URL

    def test_original_exception_is_chained(self, classifier):
        raw = OSError("unreachable")

        error = classifier.classify(raw)

        assert error.__cause__ is raw


class TestStatusCodeMapping:
    """Response-bearing failures map by status code."""

    @pytest.mark.parametrize(
        "status,code,message",
        [
            (401, "UNAUTHORIZED", "Authentication required"),
            (403, "FORBIDDEN", "Access denied"),
            (404, "NOT_FOUND", "Resource not found"),
            (429, "RATE_LIMIT", "Too many requests"),
            (500, "SERVER_ERROR", "Server error"),
            (503, "SERVER_ERROR", "Server error"),
            (599, "SERVER_ERROR", "Server error"),
        ],
    )
    def test_mapped_status(self, classifier, status, code, message):
        error = classifier.classify(_status_error(status))

        assert isinstance(error, APIFailure)
        assert error.kind == ErrorKind.API
        assert error.code == code
        assert error.message == message
        assert error.status_code == status

    def test_rate_limit_ignores_body_code(self, classifier):
        raw = _status_error(429, json={"code": "SLOW_DOWN", "message": "easy"})

        error = classifier.classify(raw)

        assert error.code == "RATE_LIMIT"
        assert error.message == "Too many requests"

    def test_unmapped_status_uses_body(self, classifier):
        raw = _status_error(418, json={"code": "TEAPOT", "message": "I am a teapot"})

        error = classifier.classify(raw)

        assert isinstance(error, APIFailure)
        assert error.code == "TEAPOT"
        assert error.message == "I am a teapot"

    def test_unmapped_status_without_body(self, classifier):
        error = classifier.classify(_status_error(409))

        assert error.code == "UNKNOWN_ERROR"
        assert error.message == "An unexpected error occurred"

    def test_context_has_status_and_request(self, classifier):
        error = classifier.classify(_status_error(404))

        assert error.context["status_code"] == 404
        assert error.context["method"] == "GET"
        assert error.context["url"] == URL
        assert error.context["exception_type"] == "HTTPStatusError"

    def test_duck_typed_response_with_status_and_data(self, classifier):
        raw = RuntimeError("request failed")
        raw.response = SimpleNamespace(status=404, data={"message": "gone"})

        error = classifier.classify(raw)

        assert isinstance(error, APIFailure)
        assert error.code == "NOT_FOUND"

    def test_raw_response_kept(self, classifier):
        raw = _status_error(500)

        error = classifier.classify(raw)

        assert error.raw_response is raw.response
        assert error.__cause__ is raw


class TestValidationFailures:
    """400 responses and local validation errors."""

    def test_bad_request_with_fields(self, classifier):
        raw = _status_error(
            400,
            json={"message": "Invalid input", "fields": {"email": "Email is invalid"}},
        )

        error = classifier.classify(raw)

        assert isinstance(error, ValidationFailure)
        assert error.code == "VALIDATION_ERROR"
        assert error.message == "Invalid input"
        assert error.fields == {"email": "Email is invalid"}

    def test_bad_request_without_body(self, classifier):
        error = classifier.classify(_status_error(400))

        assert isinstance(error, ValidationFailure)
        assert error.message == "An unexpected error occurred"
        assert error.fields == {}

    def test_pydantic_validation_error(self, classifier):
        class Payload(BaseModel):
            email: str
            age: int

        with pytest.raises(ValidationError) as exc_info:
            Payload(email="a@example.com", age="not a number")

        error = classifier.classify(exc_info.value)

        assert isinstance(error, ValidationFailure)
        assert "age" in error.fields
        assert error.__cause__ is exc_info.value


class TestPassThrough:
    def test_classified_error_returned_unchanged(self, classifier):
        original = APIFailure("Resource not found", code="NOT_FOUND", status_code=404)

        assert classifier.classify(original) is original

    def test_module_level_helper(self):
        assert isinstance(classify_error(OSError("down")), NetworkFailure)
