"""OpsentryConfig dataclass.

Field declarations and simple accessors. Loading and validation logic lives
in the ``_ConfigLoader`` mixin (``loader.py``) which ``OpsentryConfig``
inherits from. There is no global instance: callers build one with
``OpsentryConfig.from_env()`` and pass it on.
"""

import logging
import sys
from dataclasses import dataclass, field
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_package_version
from typing import Any, Dict

from opsentry.config.domains import (
    MetricsConfig,
    RetryConfig,
    SamplerConfig,
    TracingConfig,
)
from opsentry.config.loader import _ConfigLoader
from opsentry.core.resilience import RetryPolicy


def _get_version() -> str:
    """Get package version from metadata (single source of truth: pyproject.toml)."""
    try:
        return get_package_version("opsentry")
    except PackageNotFoundError:
        return "0.1.0"  # Fallback for dev without install


_PACKAGE_VERSION = _get_version()


@dataclass
class OpsentryConfig(_ConfigLoader):
    """Runtime configuration with support for env vars and TOML overrides."""

    # Debug build flag; also the tracing default
    debug: bool = False

    # Logging configuration
    log_level: str = "INFO"
    structured_logging: bool = True

    tracing: TracingConfig = field(default_factory=TracingConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    sampler: SamplerConfig = field(default_factory=SamplerConfig)

    @property
    def tracing_enabled(self) -> bool:
        """Explicit [tracing] enabled wins; otherwise tracing is on outside debug builds."""
        if self.tracing.enabled is not None:
            return self.tracing.enabled
        return not self.debug

    @property
    def platform(self) -> str:
        return self.tracing.platform or sys.platform

    def retry_policy(self) -> RetryPolicy:
        """Build the default RetryPolicy from the [retry] section."""
        return RetryPolicy(
            max_attempts=self.retry.max_attempts,
            base_delay=self.retry.base_delay,
            backoff_multiplier=self.retry.backoff_multiplier,
            max_delay=self.retry.max_delay,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Resolved settings, for status output."""
        return {
            "debug": self.debug,
            "log_level": self.log_level,
            "structured_logging": self.structured_logging,
            "tracing": {"enabled": self.tracing_enabled, "platform": self.platform},
            "metrics": {"retention": self.metrics.retention},
            "retry": {
                "max_attempts": self.retry.max_attempts,
                "base_delay": self.retry.base_delay,
                "backoff_multiplier": self.retry.backoff_multiplier,
                "max_delay": self.retry.max_delay,
            },
            "sampler": {
                "enabled": self.sampler.enabled,
                "interval": self.sampler.interval,
                "key": self.sampler.key,
            },
            "version": _PACKAGE_VERSION,
        }

    def setup_logging(self) -> None:
        """Configure logging based on settings."""
        level = getattr(logging, self.log_level, logging.INFO)

        if self.structured_logging:
            # JSON-style structured logging
            formatter = logging.Formatter(
                '{"timestamp":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","message":"%(message)s"}'
            )
        else:
            formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

        handler = logging.StreamHandler()
        handler.setFormatter(formatter)

        package_logger = logging.getLogger("opsentry")
        package_logger.setLevel(level)
        for existing in list(package_logger.handlers):
            if getattr(existing, "_opsentry_handler", False):
                package_logger.removeHandler(existing)
        handler._opsentry_handler = True  # type: ignore[attr-defined]
        package_logger.addHandler(handler)
