"""Configuration package for opsentry.

Callers use ``from opsentry.config import OpsentryConfig``.

Sub-modules:
    parsing  – Boolean and env-number parsing helpers
    domains  – TracingConfig, MetricsConfig, RetryConfig, SamplerConfig
    settings – OpsentryConfig dataclass
    loader   – OpsentryConfig loading/validation mixin (_ConfigLoader)
"""

from opsentry.config.domains import (
    MetricsConfig,
    RetryConfig,
    SamplerConfig,
    TracingConfig,
)
from opsentry.config.loader import CONFIG_FILE_ENV_VAR
from opsentry.config.settings import _PACKAGE_VERSION, OpsentryConfig

__all__ = [
    "CONFIG_FILE_ENV_VAR",
    "MetricsConfig",
    "OpsentryConfig",
    "RetryConfig",
    "SamplerConfig",
    "TracingConfig",
    "_PACKAGE_VERSION",
]
