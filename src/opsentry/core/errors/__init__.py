"""Error taxonomy for opsentry.

All failures that reach callers are ClassifiedError subclasses. This
__init__.py re-exports the taxonomy, the classifier and the formatting
helpers for convenient access.

Usage:
    from opsentry.core.errors import APIFailure, classify_error, format_for_user

    try:
        await fetch()
    except Exception as e:
        error = classify_error(e)
        print(format_for_user(error))
"""

from opsentry.core.errors.classified import (
    APIFailure,
    ClassifiedError,
    ErrorKind,
    NetworkFailure,
    ValidationFailure,
)
from opsentry.core.errors.classifier import (
    STATUS_CODE_MAP,
    ErrorClassifier,
    classify_error,
)
from opsentry.core.errors.formatting import (
    USER_MESSAGES,
    error_details,
    format_for_user,
)

__all__ = [
    # Taxonomy
    "APIFailure",
    "ClassifiedError",
    "ErrorKind",
    "NetworkFailure",
    "ValidationFailure",
    # Classification
    "STATUS_CODE_MAP",
    "ErrorClassifier",
    "classify_error",
    # Formatting
    "USER_MESSAGES",
    "error_details",
    "format_for_user",
]
