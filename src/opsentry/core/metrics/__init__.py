"""
Metrics storage and sampling.

This package holds the in-process metrics infrastructure:
- store: MetricSample, MetricAggregate, MetricsStore (bounded per-key FIFO)
- sampler: BackgroundSampler, process_memory_rss
"""

from opsentry.core.metrics.sampler import (
    DEFAULT_INTERVAL,
    BackgroundSampler,
    process_memory_rss,
)
from opsentry.core.metrics.store import (
    DEFAULT_RETENTION,
    MetricAggregate,
    MetricSample,
    MetricsStore,
)

__all__ = [
    "DEFAULT_INTERVAL",
    "BackgroundSampler",
    "process_memory_rss",
    "DEFAULT_RETENTION",
    "MetricAggregate",
    "MetricSample",
    "MetricsStore",
]
