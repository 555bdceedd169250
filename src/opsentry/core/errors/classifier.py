"""Error classification.

Maps raw failures (transport errors, HTTP-like responses, local validation
errors) onto the closed ClassifiedError taxonomy.

Classification rules (applied in order):
    1. ``ClassifiedError`` → returned unchanged
    2. ``pydantic.ValidationError`` → ValidationFailure with per-field messages
    3. No ``response`` attribute (or ``None``) → NetworkFailure
    4. Response status 400 → ValidationFailure
    5. 401/403/404/429/5xx → APIFailure with a stable code
    6. Any other status → APIFailure with the body's code or UNKNOWN_ERROR

The classifier is pure: it performs no I/O beyond reading an already
received response body, and it never raises.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from opsentry.core.errors.classified import (
    APIFailure,
    ClassifiedError,
    NetworkFailure,
    ValidationFailure,
)

DEFAULT_API_MESSAGE = "An unexpected error occurred"

# Status code -> (code, message)
STATUS_CODE_MAP: Dict[int, tuple[str, str]] = {
    401: ("UNAUTHORIZED", "Authentication required"),
    403: ("FORBIDDEN", "Access denied"),
    404: ("NOT_FOUND", "Resource not found"),
    429: ("RATE_LIMIT", "Too many requests"),
}

SERVER_ERROR = ("SERVER_ERROR", "Server error")


def _response_status(response: Any) -> Optional[int]:
    status = getattr(response, "status_code", None)
    if status is None:
        status = getattr(response, "status", None)
    try:
        return int(status) if status is not None else None
    except (TypeError, ValueError):
        return None


def _response_body(response: Any) -> Mapping[str, Any]:
    """Read a JSON-ish body from a response, empty mapping when unreadable."""
    json_method = getattr(response, "json", None)
    if callable(json_method):
        try:
            data = json_method()
        except Exception:
            data = None
    else:
        data = getattr(response, "data", None)
    return data if isinstance(data, Mapping) else {}


def _request_context(error: BaseException, response: Any) -> Dict[str, Any]:
    context: Dict[str, Any] = {"exception_type": type(error).__name__}
    # httpx raises RuntimeError when .request is accessed on an unbound error
    for source in (response, error):
        if source is None:
            continue
        try:
            request = getattr(source, "request", None)
        except RuntimeError:
            request = None
        if request is not None:
            method = getattr(request, "method", None)
            url = getattr(request, "url", None)
            if method:
                context["method"] = str(method)
            if url is not None:
                context["url"] = str(url)
            break
    return context


def _fields_from_body(body: Mapping[str, Any]) -> Optional[Dict[str, str]]:
    fields = body.get("fields")
    if isinstance(fields, Mapping):
        return {str(k): str(v) for k, v in fields.items()}
    return None


def _fields_from_pydantic(error: PydanticValidationError) -> Dict[str, str]:
    fields: Dict[str, str] = {}
    for item in error.errors():
        loc = ".".join(str(part) for part in item.get("loc", ())) or "__root__"
        fields[loc] = str(item.get("msg", "invalid"))
    return fields


class ErrorClassifier:
    """Classify raw failures into ClassifiedError instances."""

    def classify(self, error: BaseException) -> ClassifiedError:
        """Classify a raw failure.

        Args:
            error: The exception raised by an operation.

        Returns:
            A ClassifiedError. The original exception is chained as
            ``__cause__`` when a new error is created.
        """
        if isinstance(error, ClassifiedError):
            return error

        if isinstance(error, PydanticValidationError):
            classified: ClassifiedError = ValidationFailure(
                "Validation failed",
                fields=_fields_from_pydantic(error),
                context={"exception_type": type(error).__name__},
            )
            classified.__cause__ = error
            return classified

        try:
            response = getattr(error, "response", None)
        except Exception:
            response = None

        if response is None:
            classified = NetworkFailure(context=_request_context(error, None))
            classified.__cause__ = error
            return classified

        classified = self._classify_response(error, response)
        classified.__cause__ = error
        return classified

    def _classify_response(self, error: BaseException, response: Any) -> ClassifiedError:
        status = _response_status(response)
        body = _response_body(response)
        context = _request_context(error, response)
        context["status_code"] = status

        message = str(body.get("message") or DEFAULT_API_MESSAGE)

        if status == 400:
            return ValidationFailure(message, fields=_fields_from_body(body), context=context)

        if status in STATUS_CODE_MAP:
            code, fixed_message = STATUS_CODE_MAP[status]
            return APIFailure(
                fixed_message,
                code=code,
                status_code=status,
                raw_response=response,
                context=context,
            )

        if status is not None and 500 <= status <= 599:
            code, fixed_message = SERVER_ERROR
            return APIFailure(
                fixed_message,
                code=code,
                status_code=status,
                raw_response=response,
                context=context,
            )

        return APIFailure(
            message,
            code=str(body.get("code") or "UNKNOWN_ERROR"),
            status_code=status,
            raw_response=response,
            context=context,
        )


_default_classifier = ErrorClassifier()


def classify_error(error: BaseException) -> ClassifiedError:
    """Classify with the default ErrorClassifier."""
    return _default_classifier.classify(error)
