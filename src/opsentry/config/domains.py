"""Domain-specific configuration dataclasses.

Small, focused configuration classes for tracing, metrics retention, retry
defaults and the background sampler. Each one maps a TOML table of the same
name.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from opsentry.config.parsing import _parse_bool
from opsentry.core.metrics.sampler import DEFAULT_INTERVAL
from opsentry.core.metrics.store import DEFAULT_RETENTION


@dataclass
class TracingConfig:
    """Configuration for the trace registry.

    Attributes:
        enabled: Master switch; None defers to the build's debug flag
        platform: Platform label attached to reports (None = sys.platform)
    """

    enabled: Optional[bool] = None
    platform: Optional[str] = None

    @classmethod
    def from_toml_dict(cls, data: Dict[str, Any]) -> "TracingConfig":
        """Create config from TOML dict (typically [tracing] section)."""
        enabled = data.get("enabled")
        platform = data.get("platform")
        return cls(
            enabled=None if enabled is None else _parse_bool(enabled),
            platform=None if platform is None else str(platform),
        )


@dataclass
class MetricsConfig:
    """Configuration for the rolling metrics store.

    Attributes:
        retention: Samples kept per metric key
    """

    retention: int = DEFAULT_RETENTION

    @classmethod
    def from_toml_dict(cls, data: Dict[str, Any]) -> "MetricsConfig":
        """Create config from TOML dict (typically [metrics] section)."""
        return cls(retention=int(data.get("retention", DEFAULT_RETENTION)))


@dataclass
class RetryConfig:
    """Default retry policy settings.

    Attributes:
        max_attempts: Total attempts including the first
        base_delay: Seconds to wait after the first failure
        backoff_multiplier: Growth factor per attempt
        max_delay: Optional cap on a single wait (seconds)
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    backoff_multiplier: float = 2.0
    max_delay: Optional[float] = None

    @classmethod
    def from_toml_dict(cls, data: Dict[str, Any]) -> "RetryConfig":
        """Create config from TOML dict (typically [retry] section)."""
        max_delay = data.get("max_delay")
        return cls(
            max_attempts=int(data.get("max_attempts", 3)),
            base_delay=float(data.get("base_delay", 1.0)),
            backoff_multiplier=float(data.get("backoff_multiplier", 2.0)),
            max_delay=None if max_delay is None else float(max_delay),
        )


@dataclass
class SamplerConfig:
    """Configuration for the background sampler.

    Attributes:
        enabled: Whether the sampler runs
        interval: Seconds between samples
        key: Metric key samples are recorded under
    """

    enabled: bool = True
    interval: float = DEFAULT_INTERVAL
    key: str = "memory_usage"

    @classmethod
    def from_toml_dict(cls, data: Dict[str, Any]) -> "SamplerConfig":
        """Create config from TOML dict (typically [sampler] section)."""
        return cls(
            enabled=_parse_bool(data.get("enabled", True)),
            interval=float(data.get("interval", DEFAULT_INTERVAL)),
            key=str(data.get("key", "memory_usage")),
        )
