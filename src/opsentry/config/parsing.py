"""Parsing helpers for configuration values."""

import logging
from typing import Any, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

N = TypeVar("N", int, float)


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"true", "1", "yes", "on"}


def _try_parse_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    normalized = str(value).strip().lower()
    if normalized in {"true", "1", "yes", "on"}:
        return True
    if normalized in {"false", "0", "no", "off"}:
        return False
    return None


def _parse_env_number(raw: str, convert: Callable[[str], N], env_var: str) -> Optional[N]:
    """Convert an env var value, logging and returning None when it is malformed."""
    try:
        return convert(raw.strip())
    except ValueError:
        logger.warning("Ignoring %s: expected %s, got %r", env_var, convert.__name__, raw)
        return None
