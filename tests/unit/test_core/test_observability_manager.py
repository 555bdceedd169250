"""Tests for ObservabilityManager wiring and status."""

import asyncio

import httpx
import pytest

from opsentry.config import OpsentryConfig
from opsentry.core.errors import NetworkFailure
from opsentry.core.observability.manager import ObservabilityManager, get_observability_status


class TestFromConfig:
    def test_defaults(self):
        manager = ObservabilityManager.from_config(OpsentryConfig())

        assert manager.registry.enabled is True
        assert manager.store.retention == 100
        assert manager.sampler is not None
        assert manager.sampler.interval == 60.0
        assert manager.instrumentation.default_policy.max_attempts == 3

    def test_debug_build_disables_tracing(self):
        manager = ObservabilityManager.from_config(OpsentryConfig(debug=True))

        assert manager.registry.enabled is False

    def test_explicit_tracing_flag_wins(self):
        config = OpsentryConfig(debug=True)
        config.tracing.enabled = True

        assert ObservabilityManager.from_config(config).registry.enabled is True

    def test_sampler_disabled(self):
        config = OpsentryConfig()
        config.sampler.enabled = False

        assert ObservabilityManager.from_config(config).sampler is None

    def test_custom_retention(self):
        config = OpsentryConfig()
        config.metrics.retention = 5

        assert ObservabilityManager.from_config(config).store.retention == 5

    def test_instances_are_independent(self):
        first = ObservabilityManager.from_config(OpsentryConfig())
        second = ObservabilityManager.from_config(OpsentryConfig())

        first.store.record("x", 1)

        assert first.store is not second.store
        assert second.store.keys() == []

    @pytest.mark.asyncio
    async def test_retry_policy_from_config(self):
        sleep_times = []

        async def fake_sleep(seconds):
            sleep_times.append(seconds)

        config = OpsentryConfig()
        config.retry.max_attempts = 2
        config.retry.base_delay = 0.5
        manager = ObservabilityManager.from_config(config, sleep_func=fake_sleep)

        async def down():
            raise httpx.ConnectError("refused")

        with pytest.raises(NetworkFailure) as exc_info:
            await manager.instrumentation.measure("fetch", down)

        assert exc_info.value.attempts == 2
        assert sleep_times == [0.5]
        assert manager.store.aggregate("fetch_attempts").mean == 2.0


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_start_and_shutdown(self):
        config = OpsentryConfig()
        config.sampler.interval = 0.01
        config.sampler.key = "rss"
        manager = ObservabilityManager.from_config(config, sampler_source=lambda: 4096)

        await manager.start()
        await manager.start()
        assert manager.status()["sampler_running"] is True
        await asyncio.sleep(0.03)
        await manager.shutdown()
        await manager.shutdown()

        assert manager.status()["sampler_running"] is False
        assert manager.store.aggregate("rss").mean == 4096.0

    @pytest.mark.asyncio
    async def test_lifecycle_without_sampler(self):
        config = OpsentryConfig()
        config.sampler.enabled = False
        manager = ObservabilityManager.from_config(config)

        await manager.start()
        await manager.shutdown()

        assert manager.status()["sampler_running"] is False

    def test_reset(self):
        manager = ObservabilityManager.from_config(OpsentryConfig())
        manager.registry.start("pending")
        manager.store.record("x", 1)

        manager.reset()

        assert manager.registry.active_count == 0
        assert manager.store.keys() == []


class TestStatus:
    def test_status_fields(self):
        manager = ObservabilityManager.from_config(OpsentryConfig())
        manager.registry.start("pending")
        manager.store.record("latency", 12)

        status = get_observability_status(manager)

        assert status["tracing_enabled"] is True
        assert status["active_traces"] == 1
        assert status["metric_keys"] == ["latency"]
        assert status["retention"] == 100
        assert status["sampler_running"] is False
        assert status["psutil_available"] is True
        assert "version" in status
        assert manager.status() == status
