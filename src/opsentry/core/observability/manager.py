"""Observability service wiring.

Builds one explicitly owned set of services (metrics store, trace registry,
retry executor, instrumentation wrapper and optional background sampler)
from an OpsentryConfig. Nothing here is a module-level singleton: the
application constructs a manager at startup, passes its services to the
code that needs them, and shuts it down on exit.
"""

import logging
from importlib.metadata import PackageNotFoundError, version
from typing import TYPE_CHECKING, Any, Dict, Optional

from opsentry.core.errors import ErrorClassifier
from opsentry.core.metrics.sampler import BackgroundSampler, SampleSource, process_memory_rss
from opsentry.core.metrics.store import MetricsStore
from opsentry.core.observability.instrumentation import Instrumentation
from opsentry.core.observability.reporter import Reporter
from opsentry.core.observability.trace import TraceRegistry
from opsentry.core.resilience import RetryExecutor, SleepFunc

if TYPE_CHECKING:
    from opsentry.config.settings import OpsentryConfig

logger = logging.getLogger(__name__)


def _psutil_available() -> bool:
    try:
        process_memory_rss()
    except Exception:
        return False
    return True


class ObservabilityManager:
    """Owner of the observability services for one process.

    Usage:
        config = OpsentryConfig.from_env()
        manager = ObservabilityManager.from_config(config, reporter=LoggingReporter())
        await manager.start()
        try:
            await manager.instrumentation.measure("load", fetch)
        finally:
            await manager.shutdown()
    """

    def __init__(
        self,
        store: MetricsStore,
        registry: TraceRegistry,
        instrumentation: Instrumentation,
        sampler: Optional[BackgroundSampler] = None,
    ):
        self.store = store
        self.registry = registry
        self.instrumentation = instrumentation
        self.sampler = sampler

    @classmethod
    def from_config(
        cls,
        config: "OpsentryConfig",
        reporter: Optional[Reporter] = None,
        sampler_source: Optional[SampleSource] = None,
        sleep_func: Optional[SleepFunc] = None,
    ) -> "ObservabilityManager":
        """Build the services described by ``config``.

        Args:
            config: Resolved configuration
            reporter: Sink for completed traces and samples
            sampler_source: Replaces the process RSS reader
            sleep_func: Replaces ``asyncio.sleep`` in the retry executor

        Raises:
            ValueError: If the configuration values are out of range
        """
        store = MetricsStore(retention=config.metrics.retention)
        registry = TraceRegistry(
            store,
            reporter,
            enabled=config.tracing_enabled,
            platform=config.platform,
        )
        executor = RetryExecutor(ErrorClassifier(), sleep_func=sleep_func)
        instrumentation = Instrumentation(registry, executor, config.retry_policy())

        sampler = None
        if config.sampler.enabled:
            sampler = BackgroundSampler(
                store,
                sampler_source or process_memory_rss,
                key=config.sampler.key,
                interval=config.sampler.interval,
                reporter=reporter,
                platform=config.platform,
            )

        logger.debug(
            "Observability services built (tracing=%s, retention=%d, sampler=%s)",
            registry.enabled,
            store.retention,
            sampler is not None,
        )
        return cls(store, registry, instrumentation, sampler)

    async def start(self) -> None:
        """Start background work. Safe to call more than once."""
        if self.sampler is not None:
            await self.sampler.start()

    async def shutdown(self, timeout: float = 5.0) -> None:
        """Stop background work. Safe to call more than once."""
        if self.sampler is not None:
            await self.sampler.stop(timeout=timeout)

    def reset(self) -> None:
        """Clear stored samples and active traces (test teardown)."""
        self.registry.reset()
        self.store.clear()

    def status(self) -> Dict[str, Any]:
        return get_observability_status(self)


def get_observability_status(manager: ObservabilityManager) -> Dict[str, Any]:
    """Get the current observability status.

    Returns:
        Dict with keys:
        - tracing_enabled: Whether the trace registry records anything
        - active_traces: Number of traces currently active
        - metric_keys: Keys with at least one retained sample
        - retention: Samples kept per key
        - sampler_running: Whether the background sampler task is alive
        - psutil_available: Whether the default RSS source can be read
        - version: opsentry version
    """
    try:
        pkg_version = version("opsentry")
    except PackageNotFoundError:
        pkg_version = "unknown"

    return {
        "tracing_enabled": manager.registry.enabled,
        "active_traces": manager.registry.active_count,
        "metric_keys": manager.store.keys(),
        "retention": manager.store.retention,
        "sampler_running": manager.sampler is not None and manager.sampler.is_running,
        "psutil_available": _psutil_available(),
        "version": pkg_version,
    }
