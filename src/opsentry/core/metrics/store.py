"""Bounded rolling metrics storage.

Keeps, per metric key, the most recent ``retention`` samples (FIFO eviction)
and answers aggregate queries over them.

Thread-safety: each key's bucket has its own lock, so operations on one key
are serialized while different keys proceed independently.
"""

import itertools
import logging
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, List, Optional, Tuple, Union

logger = logging.getLogger(__name__)

DEFAULT_RETENTION = 100


@dataclass(frozen=True)
class MetricSample:
    """One numeric observation. Immutable once recorded."""

    key: str
    value: float
    timestamp: float

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"key": self.key, "value": self.value, "timestamp": self.timestamp}


@dataclass(frozen=True)
class MetricAggregate:
    """Aggregate over a key's current bucket. Zeros when the bucket is empty."""

    mean: float = 0.0
    min: float = 0.0
    max: float = 0.0
    count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"mean": self.mean, "min": self.min, "max": self.max, "count": self.count}


class _Bucket:
    __slots__ = ("lock", "entries")

    def __init__(self, retention: int):
        self.lock = threading.Lock()
        # (sequence, sample); sequence gives a global insertion order
        self.entries: Deque[Tuple[int, MetricSample]] = deque(maxlen=retention)


class MetricsStore:
    """Per-key rolling store of numeric samples.

    Example:
        >>> store = MetricsStore(retention=3)
        >>> for v in (1, 2, 3, 4):
        ...     store.record("latency", v)
        >>> store.aggregate("latency")
        MetricAggregate(mean=3.0, min=2.0, max=4.0, count=3)
    """

    def __init__(self, retention: int = DEFAULT_RETENTION):
        if retention < 1:
            raise ValueError(f"retention must be >= 1, got {retention}")
        self._retention = retention
        self._buckets: Dict[str, _Bucket] = {}
        self._buckets_lock = threading.Lock()
        self._sequence = itertools.count()

    @property
    def retention(self) -> int:
        return self._retention

    def _bucket(self, key: str, create: bool = False) -> Optional[_Bucket]:
        bucket = self._buckets.get(key)
        if bucket is None and create:
            with self._buckets_lock:
                bucket = self._buckets.get(key)
                if bucket is None:
                    bucket = _Bucket(self._retention)
                    self._buckets[key] = bucket
        return bucket

    def record(
        self,
        key: str,
        value: Union[int, float, bool],
        timestamp: Optional[float] = None,
    ) -> MetricSample:
        """Append a sample to ``key``'s bucket, evicting the oldest beyond retention.

        Args:
            key: Metric key
            value: Numeric value (bools are stored as 1.0 / 0.0)
            timestamp: Unix epoch seconds; defaults to now

        Returns:
            The stored MetricSample
        """
        sample = MetricSample(
            key=key,
            value=float(value),
            timestamp=time.time() if timestamp is None else float(timestamp),
        )
        bucket = self._bucket(key, create=True)
        with bucket.lock:
            bucket.entries.append((next(self._sequence), sample))
        return sample

    def aggregate(self, key: str) -> MetricAggregate:
        """Mean/min/max/count over the key's current samples."""
        bucket = self._bucket(key)
        if bucket is None:
            return MetricAggregate()
        with bucket.lock:
            values = [sample.value for _, sample in bucket.entries]
        if not values:
            return MetricAggregate()
        return MetricAggregate(
            mean=sum(values) / len(values),
            min=min(values),
            max=max(values),
            count=len(values),
        )

    def samples(self, key: str) -> List[MetricSample]:
        """Samples currently retained for ``key``, oldest first."""
        bucket = self._bucket(key)
        if bucket is None:
            return []
        with bucket.lock:
            return [sample for _, sample in bucket.entries]

    def snapshot(self, limit: int) -> List[MetricSample]:
        """Most recent ``limit`` samples across all keys, most recent last."""
        if limit <= 0:
            return []
        with self._buckets_lock:
            buckets = list(self._buckets.values())
        entries: List[Tuple[int, MetricSample]] = []
        for bucket in buckets:
            with bucket.lock:
                entries.extend(bucket.entries)
        entries.sort(key=lambda entry: entry[0])
        return [sample for _, sample in entries[-limit:]]

    def keys(self) -> List[str]:
        """Keys that have at least one retained sample."""
        with self._buckets_lock:
            buckets = list(self._buckets.items())
        return sorted(key for key, bucket in buckets if bucket.entries)

    def summary(self) -> Dict[str, Dict[str, Any]]:
        """Aggregate for every key, keyed by metric name."""
        return {key: self.aggregate(key).to_dict() for key in self.keys()}

    def clear(self) -> None:
        """Drop all samples (test teardown)."""
        with self._buckets_lock:
            self._buckets.clear()
        logger.debug("Metrics store cleared")
