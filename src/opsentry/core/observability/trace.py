"""Trace lifecycle management.

A trace is a named, time-bounded record of one operation. The registry
keeps the currently active traces keyed by name, accumulates metrics on
them, and on ``stop`` pushes the completed record into the MetricsStore
and the Reporter.

DESIGN RULES:
- Lifecycle is active -> stopped, never back
- Starting a name that is already active supersedes the older trace
- ``stop`` of an unknown or already stopped name is a no-op
- A disabled registry does nothing and reports nothing
- Reporter failures never reach the caller
"""

import logging
import sys
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Union

from ulid import ULID

from opsentry.core.metrics.store import MetricsStore
from opsentry.core.observability.reporter import (
    NullReporter,
    Reporter,
    TelemetryPayload,
    safe_report,
)

logger = logging.getLogger(__name__)

DURATION_METRIC = "duration_ms"

Number = Union[int, float, bool]


class TraceStatus(str, Enum):
    ACTIVE = "active"
    STOPPED = "stopped"


@dataclass(frozen=True)
class TraceHandle:
    """Reference to one started trace."""

    name: str
    trace_id: str


@dataclass
class Trace:
    """Mutable in-flight trace owned by the registry."""

    name: str
    trace_id: str
    started_at: float
    metrics: Dict[str, float] = field(default_factory=dict)
    attributes: Dict[str, str] = field(default_factory=dict)
    status: TraceStatus = TraceStatus.ACTIVE


@dataclass(frozen=True)
class CompletedTrace:
    """Record produced when a trace stops."""

    name: str
    trace_id: str
    duration_ms: float
    metrics: Dict[str, float]
    attributes: Dict[str, str]
    timestamp: float
    status: TraceStatus = TraceStatus.STOPPED

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for logging/export."""
        return {
            "name": self.name,
            "trace_id": self.trace_id,
            "duration_ms": self.duration_ms,
            "metrics": dict(self.metrics),
            "attributes": dict(self.attributes),
            "timestamp": self.timestamp,
            "status": self.status.value,
        }


class TraceRegistry:
    """Registry of active traces.

    Usage:
        registry = TraceRegistry(store, reporter=LoggingReporter())
        handle = registry.start("load_profile")
        registry.put_metric(handle, "items", 12)
        registry.stop("load_profile", {"success": 1})
    """

    def __init__(
        self,
        store: MetricsStore,
        reporter: Optional[Reporter] = None,
        *,
        enabled: bool = True,
        platform: Optional[str] = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        """
        Args:
            store: MetricsStore receiving one sample per metric on stop.
            reporter: Sink for completed traces. Defaults to NullReporter.
            enabled: Fixed for the registry's lifetime.
            platform: Platform label attached to reported payloads.
            clock: Monotonic clock in seconds used for durations.
        """
        self._store = store
        self._reporter: Reporter = reporter or NullReporter()
        self._enabled = enabled
        self._platform = platform or sys.platform
        self._clock = clock
        self._active: Dict[str, Trace] = {}
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        """Whether the registry records anything. Read-only."""
        return self._enabled

    @property
    def store(self) -> MetricsStore:
        return self._store

    @property
    def active_count(self) -> int:
        with self._lock:
            return len(self._active)

    def active_names(self) -> List[str]:
        with self._lock:
            return sorted(self._active)

    def start(self, name: str) -> Optional[TraceHandle]:
        """Start a trace. Returns None when the registry is disabled."""
        if not self._enabled:
            return None

        trace = Trace(name=name, trace_id=str(ULID()), started_at=self._clock())
        with self._lock:
            previous = self._active.get(name)
            self._active[name] = trace

        if previous is not None:
            logger.debug(f"Trace {name} ({previous.trace_id}) superseded by {trace.trace_id}")
        return TraceHandle(name=name, trace_id=trace.trace_id)

    def _current(self, handle: Optional[TraceHandle]) -> Optional[Trace]:
        # Caller holds self._lock
        if handle is None:
            return None
        trace = self._active.get(handle.name)
        if trace is None or trace.trace_id != handle.trace_id:
            return None
        return trace

    def put_metric(self, handle: Optional[TraceHandle], key: str, value: Number) -> None:
        """Attach a numeric metric to an active trace; no-op otherwise."""
        if not self._enabled:
            return
        with self._lock:
            trace = self._current(handle)
            if trace is not None:
                trace.metrics[key] = float(value)

    def put_attribute(self, handle: Optional[TraceHandle], key: str, value: str) -> None:
        """Attach a string attribute to an active trace; no-op otherwise."""
        if not self._enabled:
            return
        with self._lock:
            trace = self._current(handle)
            if trace is not None:
                trace.attributes[key] = str(value)

    def stop(
        self,
        name: str,
        extra_metrics: Optional[Mapping[str, Number]] = None,
        attributes: Optional[Mapping[str, Any]] = None,
    ) -> Optional[CompletedTrace]:
        """Stop the active trace called ``name``.

        Merges ``extra_metrics`` into the trace, records every metric into
        the store as ``{name}_{metric}`` and reports the completed record.

        Returns:
            The CompletedTrace, or None if nothing was active under ``name``.
        """
        if not self._enabled:
            return None
        with self._lock:
            trace = self._active.pop(name, None)
        return self._complete(trace, extra_metrics, attributes)

    def stop_handle(
        self,
        handle: Optional[TraceHandle],
        extra_metrics: Optional[Mapping[str, Number]] = None,
        attributes: Optional[Mapping[str, Any]] = None,
    ) -> Optional[CompletedTrace]:
        """Stop the trace behind ``handle`` only if it is still the active one."""
        if not self._enabled or handle is None:
            return None
        with self._lock:
            trace = self._current(handle)
            if trace is not None:
                del self._active[handle.name]
        return self._complete(trace, extra_metrics, attributes)

    def _complete(
        self,
        trace: Optional[Trace],
        extra_metrics: Optional[Mapping[str, Number]],
        attributes: Optional[Mapping[str, Any]],
    ) -> Optional[CompletedTrace]:
        if trace is None:
            return None

        duration_ms = (self._clock() - trace.started_at) * 1000
        trace.status = TraceStatus.STOPPED
        for key, value in (extra_metrics or {}).items():
            trace.metrics[key] = float(value)
        for key, value in (attributes or {}).items():
            trace.attributes[key] = str(value)
        trace.metrics.setdefault(DURATION_METRIC, duration_ms)

        timestamp = time.time()
        completed = CompletedTrace(
            name=trace.name,
            trace_id=trace.trace_id,
            duration_ms=duration_ms,
            metrics=dict(trace.metrics),
            attributes=dict(trace.attributes),
            timestamp=timestamp,
        )

        for key, value in completed.metrics.items():
            self._store.record(f"{trace.name}_{key}", value, timestamp)

        payload = TelemetryPayload(
            duration=duration_ms,
            metrics=completed.metrics,
            status=completed.status.value,
            platform=self._platform,
            timestamp=timestamp,
            attributes=completed.attributes,
        )
        safe_report(self._reporter, trace.name, payload)

        logger.debug(f"Trace {trace.name} stopped after {duration_ms:.2f}ms")
        return completed

    @contextmanager
    def trace(self, name: str) -> Iterator[Optional[TraceHandle]]:
        """Scoped trace: always stopped on exit, including cancellation.

        Records ``success`` as 1.0 or 0.0 and, on failure, the exception type.
        Stops by handle, so a trace superseded inside the block is left alone.
        """
        handle = self.start(name)
        try:
            yield handle
        except BaseException as e:
            self.stop_handle(handle, {"success": 0.0}, {"exception_type": type(e).__name__})
            raise
        else:
            self.stop_handle(handle, {"success": 1.0})

    def reset(self) -> None:
        """Drop all active traces without reporting them (test teardown)."""
        with self._lock:
            self._active.clear()
