"""User-facing messages and debugging details for classified errors."""

from __future__ import annotations

import platform as _platform
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from opsentry.core.errors.classified import (
    APIFailure,
    ClassifiedError,
    NetworkFailure,
    ValidationFailure,
)

FALLBACK_MESSAGE = "An unexpected error occurred"

USER_MESSAGES: Dict[str, Any] = {
    "NetworkFailure": "Please check your internet connection and try again.",
    "ValidationFailure": "Please check your input and try again.",
    "APIFailure": {
        "UNAUTHORIZED": "Please log in to continue.",
        "FORBIDDEN": "You don't have permission to perform this action.",
        "NOT_FOUND": "The requested resource was not found.",
        "RATE_LIMIT": "Please try again later.",
        "SERVER_ERROR": "Something went wrong on our end. Please try again later.",
    },
}


def format_for_user(error: BaseException) -> str:
    """Return the message to show a user for ``error``.

    Deterministic and total: always returns a string, never raises.
    Unmapped APIFailure codes fall back to the error's own message.
    """
    if isinstance(error, NetworkFailure):
        return USER_MESSAGES["NetworkFailure"]

    if isinstance(error, ValidationFailure):
        if error.fields:
            return "\n".join(error.fields.values())
        return USER_MESSAGES["ValidationFailure"]

    if isinstance(error, APIFailure):
        return USER_MESSAGES["APIFailure"].get(error.code, error.message)

    return str(error) or FALLBACK_MESSAGE


def error_details(
    error: BaseException,
    *,
    platform: Optional[str] = None,
    include_traceback: bool = False,
) -> Dict[str, Any]:
    """Collect debugging details for an error report.

    Args:
        error: The error to describe.
        platform: Platform label; defaults to ``sys.platform``.
        include_traceback: Attach the formatted traceback (debug builds only).
    """
    details: Dict[str, Any] = {
        "name": type(error).__name__,
        "message": str(error),
        "code": getattr(error, "code", None),
        "kind": error.kind.value if isinstance(error, ClassifiedError) else None,
        "platform": platform or sys.platform,
        "version": _platform.python_version(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "traceback": None,
    }
    if include_traceback:
        details["traceback"] = "".join(
            traceback.format_exception(type(error), error, error.__traceback__)
        )
    return details
