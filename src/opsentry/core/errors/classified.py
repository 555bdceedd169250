"""Classified error taxonomy.

Every failure that leaves the retry executor or the instrumentation wrapper
is one of the classes defined here. The set is closed: NetworkFailure,
ValidationFailure and APIFailure, all produced by
``opsentry.core.errors.classifier``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Kinds of classified failures."""

    NETWORK = "network_failure"
    VALIDATION = "validation_failure"
    API = "api_failure"


class ClassifiedError(Exception):
    """Base class for normalized failures.

    Attributes:
        kind: The ErrorKind tag.
        message: Human-oriented message.
        code: Stable machine-oriented code.
        context: Diagnostic context (exception type, status code, url, ...).
        attempts: Number of attempts made before this error surfaced.
            Set by the retry executor; None when classified directly.
    """

    kind: ErrorKind
    default_code: str = "UNKNOWN_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.context: Dict[str, Any] = dict(context or {})
        self.attempts: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "kind": self.kind.value,
            "code": self.code,
            "message": self.message,
            "context": self.context,
            "attempts": self.attempts,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class NetworkFailure(ClassifiedError):
    """No transport response was received (connection, DNS, timeout)."""

    kind = ErrorKind.NETWORK
    default_code = "NETWORK_ERROR"

    def __init__(
        self,
        message: str = "Network connection error",
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, code=code, context=context)


class ValidationFailure(ClassifiedError):
    """Request or input rejected as invalid.

    Attributes:
        fields: Field name to message mapping, when the source provided one.
    """

    kind = ErrorKind.VALIDATION
    default_code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        fields: Optional[Dict[str, str]] = None,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, code=code, context=context)
        self.fields: Dict[str, str] = dict(fields or {})

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["fields"] = self.fields
        return data


class APIFailure(ClassifiedError):
    """A response was received but signalled failure.

    Attributes:
        status_code: HTTP-like status code of the response.
        raw_response: The response object, kept for diagnostics.
    """

    kind = ErrorKind.API

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        raw_response: Any = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, code=code, context=context)
        self.status_code = status_code
        self.raw_response = raw_response

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["status_code"] = self.status_code
        return data
