"""Background periodic sampler.

Reads an ambient system signal (process memory by default) on a fixed
interval and records it into a MetricsStore. Runs as a single asyncio task
with an explicit start/stop lifecycle.

DESIGN RULES:
- Sampling failures are logged and swallowed, never propagated
- Never blocks or cancels foreground traces
- start() and stop() are idempotent
"""

import asyncio
import inspect
import logging
import sys
import time
from typing import TYPE_CHECKING, Awaitable, Callable, Optional, Union

import psutil

from opsentry.core.metrics.store import MetricSample, MetricsStore

if TYPE_CHECKING:
    from opsentry.core.observability.reporter import Reporter

logger = logging.getLogger(__name__)

SampleSource = Callable[[], Union[float, int, Awaitable[Union[float, int]]]]

DEFAULT_INTERVAL = 60.0


def process_memory_rss() -> float:
    """Resident set size of the current process, in bytes."""
    return float(psutil.Process().memory_info().rss)


class BackgroundSampler:
    """Periodically record a signal into a MetricsStore."""

    def __init__(
        self,
        store: MetricsStore,
        source: SampleSource = process_memory_rss,
        *,
        key: str = "memory_usage",
        interval: float = DEFAULT_INTERVAL,
        reporter: Optional["Reporter"] = None,
        platform: Optional[str] = None,
    ):
        if interval <= 0:
            raise ValueError(f"interval must be > 0, got {interval}")
        self._store = store
        self._source = source
        self.key = key
        self.interval = interval
        self._reporter = reporter
        self._platform = platform or sys.platform
        self._task: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def sample_once(self) -> Optional[MetricSample]:
        """Read the source once and record it. Returns None on failure."""
        try:
            value = self._source()
            if inspect.isawaitable(value):
                value = await value
            sample = self._store.record(self.key, value)
        except Exception:
            logger.exception(f"Background sample for {self.key} failed")
            return None

        if self._reporter is not None:
            from opsentry.core.observability.reporter import TelemetryPayload, safe_report

            payload = TelemetryPayload(
                duration=0.0,
                metrics={self.key: sample.value},
                status="sampled",
                platform=self._platform,
                timestamp=sample.timestamp,
            )
            safe_report(self._reporter, f"{self.key}_metric", payload)
        return sample

    async def _run(self) -> None:
        while not self._stop_event.is_set():
            started = time.monotonic()
            await self.sample_once()
            remaining = max(0.0, self.interval - (time.monotonic() - started))
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=remaining)
            except asyncio.TimeoutError:
                pass

    async def start(self) -> None:
        """Schedule the sampling task on the running loop."""
        if self.is_running:
            return
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run(), name=f"opsentry-sampler-{self.key}")
        logger.debug(f"Background sampler {self.key} started (interval={self.interval}s)")

    async def stop(self, timeout: float = 5.0) -> None:
        """Stop the sampling task, cancelling it if it does not exit within ``timeout``."""
        task = self._task
        if task is None:
            return
        self._stop_event.set()
        try:
            await asyncio.wait_for(asyncio.shield(task), timeout=timeout)
        except asyncio.TimeoutError:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        finally:
            self._task = None
        logger.debug(f"Background sampler {self.key} stopped")
