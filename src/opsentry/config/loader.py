"""OpsentryConfig loading and validation logic.

Provides ``_ConfigLoader``, a mixin class whose methods are inherited by
``OpsentryConfig`` (defined in ``settings.py``). Loading and validation live
here so ``settings.py`` stays focused on field definitions and accessors.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional, cast

from opsentry.config.domains import (
    MetricsConfig,
    RetryConfig,
    SamplerConfig,
    TracingConfig,
)
from opsentry.config.parsing import _parse_bool, _parse_env_number, _try_parse_bool

if TYPE_CHECKING:
    from opsentry.config.settings import OpsentryConfig

logger = logging.getLogger(__name__)

CONFIG_FILE_ENV_VAR = "OPSENTRY_CONFIG_FILE"


class _ConfigLoader:
    """Mixin providing config-loading methods for ``OpsentryConfig``.

    At runtime ``self`` is always an ``OpsentryConfig`` instance.
    """

    if TYPE_CHECKING:

        def __init_subclass__(cls, **kwargs: Any) -> None: ...

        debug: bool
        log_level: str
        structured_logging: bool
        tracing: TracingConfig
        metrics: MetricsConfig
        retry: RetryConfig
        sampler: SamplerConfig

    @classmethod
    def from_env(cls, config_file: Optional[str] = None) -> "OpsentryConfig":
        """
        Create configuration from environment variables and optional TOML file.

        Priority (highest to lowest):
        1. Environment variables
        2. Project TOML config (./opsentry.toml)
        3. User TOML config (~/.opsentry.toml)
        4. XDG config (~/.config/opsentry/config.toml)
        5. Default values

        An explicit ``config_file`` (or ``OPSENTRY_CONFIG_FILE``) replaces
        layers 2-4.

        Raises:
            ValueError: If the merged configuration is invalid
        """
        config = cls()

        toml_path = config_file or os.environ.get(CONFIG_FILE_ENV_VAR)
        if toml_path:
            config._load_toml(Path(toml_path))
        else:
            xdg_config_home = os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
            xdg_config = Path(xdg_config_home) / "opsentry" / "config.toml"
            if xdg_config.exists():
                config._load_toml(xdg_config)
                logger.debug(f"Loaded XDG config from {xdg_config}")

            home_config = Path.home() / ".opsentry.toml"
            if home_config.exists():
                config._load_toml(home_config)
                logger.debug(f"Loaded user config from {home_config}")

            project_config = Path("opsentry.toml")
            if project_config.exists():
                config._load_toml(project_config)
                logger.debug(f"Loaded project config from {project_config}")

        config._load_env()
        config.validate()

        return cast("OpsentryConfig", config)

    def _load_toml(self, path: Path) -> None:
        """Load configuration from TOML file."""
        if not path.exists():
            logger.warning(f"Config file not found: {path}")
            return

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)

            if "debug" in data:
                self.debug = _parse_bool(data["debug"])

            if "logging" in data:
                log = data["logging"]
                if "level" in log:
                    self.log_level = str(log["level"]).upper()
                if "structured" in log:
                    self.structured_logging = _parse_bool(log["structured"])

            if "tracing" in data:
                self.tracing = TracingConfig.from_toml_dict(data["tracing"])

            if "metrics" in data:
                self.metrics = MetricsConfig.from_toml_dict(data["metrics"])

            if "retry" in data:
                self.retry = RetryConfig.from_toml_dict(data["retry"])

            if "sampler" in data:
                self.sampler = SamplerConfig.from_toml_dict(data["sampler"])

        except Exception as e:
            logger.error(f"Error loading config file {path}: {e}")

    def _load_env(self) -> None:
        """Load configuration from environment variables."""
        if debug := os.environ.get("OPSENTRY_DEBUG"):
            self.debug = _parse_bool(debug)

        if level := os.environ.get("OPSENTRY_LOG_LEVEL"):
            self.log_level = level.upper()

        if tracing_enabled := os.environ.get("OPSENTRY_TRACING_ENABLED"):
            parsed = _try_parse_bool(tracing_enabled)
            if parsed is None:
                logger.warning(
                    "Ignoring OPSENTRY_TRACING_ENABLED: expected true/false, got %r",
                    tracing_enabled,
                )
            else:
                self.tracing.enabled = parsed

        if retention := os.environ.get("OPSENTRY_METRICS_RETENTION"):
            value = _parse_env_number(retention, int, "OPSENTRY_METRICS_RETENTION")
            if value is not None:
                self.metrics.retention = value

        if max_attempts := os.environ.get("OPSENTRY_RETRY_MAX_ATTEMPTS"):
            value = _parse_env_number(max_attempts, int, "OPSENTRY_RETRY_MAX_ATTEMPTS")
            if value is not None:
                self.retry.max_attempts = value

        if base_delay := os.environ.get("OPSENTRY_RETRY_BASE_DELAY"):
            delay = _parse_env_number(base_delay, float, "OPSENTRY_RETRY_BASE_DELAY")
            if delay is not None:
                self.retry.base_delay = delay

        if sampler_interval := os.environ.get("OPSENTRY_SAMPLER_INTERVAL"):
            interval = _parse_env_number(sampler_interval, float, "OPSENTRY_SAMPLER_INTERVAL")
            if interval is not None:
                self.sampler.interval = interval

        if sampler_enabled := os.environ.get("OPSENTRY_SAMPLER_ENABLED"):
            self.sampler.enabled = _parse_bool(sampler_enabled)

    def validate(self) -> None:
        """Check value ranges.

        Raises:
            ValueError: On the first out-of-range value
        """
        if self.metrics.retention < 1:
            raise ValueError(f"metrics.retention must be >= 1, got {self.metrics.retention}")
        if self.retry.max_attempts < 1:
            raise ValueError(f"retry.max_attempts must be >= 1, got {self.retry.max_attempts}")
        if self.retry.base_delay < 0:
            raise ValueError(f"retry.base_delay must be >= 0, got {self.retry.base_delay}")
        if self.retry.backoff_multiplier < 1:
            raise ValueError(
                f"retry.backoff_multiplier must be >= 1, got {self.retry.backoff_multiplier}"
            )
        if self.retry.max_delay is not None and self.retry.max_delay < 0:
            raise ValueError(f"retry.max_delay must be >= 0, got {self.retry.max_delay}")
        if self.sampler.interval <= 0:
            raise ValueError(f"sampler.interval must be > 0, got {self.sampler.interval}")
