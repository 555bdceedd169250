"""Shared fixtures for core unit tests."""

from typing import List, Tuple

import pytest

from opsentry.core.metrics.store import MetricsStore
from opsentry.core.observability.reporter import TelemetryPayload
from opsentry.core.observability.trace import TraceRegistry
from opsentry.core.resilience import RetryExecutor


class RecordingReporter:
    """Reporter that keeps every event it receives."""

    def __init__(self):
        self.events: List[Tuple[str, TelemetryPayload]] = []

    def report(self, event_name: str, payload: TelemetryPayload) -> None:
        self.events.append((event_name, payload))


class FakeClock:
    """Manually advanced monotonic clock (seconds)."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def store():
    return MetricsStore()


@pytest.fixture
def reporter():
    return RecordingReporter()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry(store, reporter, clock):
    return TraceRegistry(store, reporter, platform="test", clock=clock)


@pytest.fixture
def sleep_times():
    return []


@pytest.fixture
def executor(sleep_times):
    async def fake_sleep(seconds: float) -> None:
        sleep_times.append(seconds)

    return RetryExecutor(sleep_func=fake_sleep)
