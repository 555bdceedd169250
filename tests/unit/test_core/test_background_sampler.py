"""Tests for BackgroundSampler polling and lifecycle.

Verifies:
- Single samples from sync and async sources
- Source failures are logged and never raised
- Samples are reported as "{key}_metric"
- Lifecycle (start/stop) and idempotence
- A stuck source is cancelled on stop timeout
"""

from __future__ import annotations

import asyncio
import logging

import pytest

from opsentry.core.metrics.sampler import BackgroundSampler, process_memory_rss


class TestSampleOnce:
    @pytest.mark.asyncio
    async def test_sync_source(self, store):
        sampler = BackgroundSampler(store, lambda: 1024)

        sample = await sampler.sample_once()

        assert sample.key == "memory_usage"
        assert sample.value == 1024.0
        assert store.aggregate("memory_usage").count == 1

    @pytest.mark.asyncio
    async def test_async_source(self, store):
        async def read_queue_depth():
            return 17

        sampler = BackgroundSampler(store, read_queue_depth, key="queue_depth")

        await sampler.sample_once()

        assert store.aggregate("queue_depth").mean == 17.0

    @pytest.mark.asyncio
    async def test_failing_source_is_logged(self, store, caplog):
        def broken():
            raise PermissionError("no access to /proc")

        sampler = BackgroundSampler(store, broken)

        with caplog.at_level(logging.ERROR, logger="opsentry"):
            assert await sampler.sample_once() is None

        assert store.keys() == []
        assert any("memory_usage" in r.getMessage() for r in caplog.records)

    @pytest.mark.asyncio
    async def test_reports_sample(self, store, reporter):
        sampler = BackgroundSampler(store, lambda: 2048, reporter=reporter, platform="test")

        sample = await sampler.sample_once()

        assert len(reporter.events) == 1
        event_name, payload = reporter.events[0]
        assert event_name == "memory_usage_metric"
        assert payload.metrics == {"memory_usage": 2048.0}
        assert payload.platform == "test"
        assert payload.timestamp == sample.timestamp

    @pytest.mark.asyncio
    async def test_reporter_failure_does_not_drop_sample(self, store):
        class BrokenReporter:
            def report(self, event_name, payload):
                raise RuntimeError("sink down")

        sampler = BackgroundSampler(store, lambda: 1, reporter=BrokenReporter())

        assert await sampler.sample_once() is not None
        assert store.aggregate("memory_usage").count == 1


class TestSamplerLifecycle:
    def test_default_configuration(self, store):
        sampler = BackgroundSampler(store)

        assert sampler.key == "memory_usage"
        assert sampler.interval == 60.0
        assert not sampler.is_running

    @pytest.mark.parametrize("interval", [0, -1.0])
    def test_invalid_interval(self, store, interval):
        with pytest.raises(ValueError):
            BackgroundSampler(store, interval=interval)

    @pytest.mark.asyncio
    async def test_periodic_sampling(self, store):
        count = 0

        def source():
            nonlocal count
            count += 1
            return count

        sampler = BackgroundSampler(store, source, interval=0.01)

        await sampler.start()
        assert sampler.is_running
        await asyncio.sleep(0.08)
        await sampler.stop()

        assert count >= 2
        assert store.aggregate("memory_usage").count == count
        assert not sampler.is_running
        assert sampler._task is None

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self, store):
        sampler = BackgroundSampler(store, lambda: 1, interval=1.0)

        await sampler.start()
        task = sampler._task
        await sampler.start()

        assert sampler._task is task
        await sampler.stop()

    @pytest.mark.asyncio
    async def test_stop_without_start(self, store):
        sampler = BackgroundSampler(store, lambda: 1)

        await sampler.stop()
        await sampler.stop()

        assert not sampler.is_running

    @pytest.mark.asyncio
    async def test_restart_after_stop(self, store):
        sampler = BackgroundSampler(store, lambda: 1, interval=1.0)

        await sampler.start()
        await sampler.stop()
        await sampler.start()

        assert sampler.is_running
        await sampler.stop()

    @pytest.mark.asyncio
    async def test_loop_survives_failures(self, store):
        calls = 0

        def flaky():
            nonlocal calls
            calls += 1
            if calls % 2:
                raise OSError("transient")
            return calls

        sampler = BackgroundSampler(store, flaky, interval=0.01)

        await sampler.start()
        await asyncio.sleep(0.08)
        await sampler.stop()

        assert calls >= 3
        assert store.aggregate("memory_usage").count >= 1

    @pytest.mark.asyncio
    async def test_stuck_source_cancelled_on_timeout(self, store):
        entered = asyncio.Event()

        async def stuck():
            entered.set()
            await asyncio.sleep(10)
            return 1

        sampler = BackgroundSampler(store, stuck, interval=0.01)

        await sampler.start()
        await entered.wait()
        await sampler.stop(timeout=0.05)

        assert not sampler.is_running
        assert store.keys() == []


def test_process_memory_rss():
    assert process_memory_rss() > 0
