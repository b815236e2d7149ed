"""
Per-endpoint statistical baselines derived from the sample window.
"""

import threading
import time
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

import numpy as np

from .metric_sample import MetricSample


@dataclass(frozen=True)
class Baseline:
    """Latency baseline for one endpoint key"""

    mean: float
    std_dev: float
    p95: float
    p99: float
    sample_count: int


def compute_baseline(durations: List[float]) -> Baseline:
    """Population statistics and sort-based percentiles for one endpoint"""
    values = np.sort(np.asarray(durations, dtype=float))
    n = len(values)
    return Baseline(
        mean=float(values.mean()),
        std_dev=float(values.std()),  # ddof=0, population variance
        p95=float(values[min(int(n * 0.95), n - 1)]),
        p99=float(values[min(int(n * 0.99), n - 1)]),
        sample_count=n,
    )


def _group_durations(samples: Iterable[MetricSample]) -> Dict[str, List[float]]:
    grouped: Dict[str, List[float]] = defaultdict(list)
    for sample in samples:
        grouped[sample.endpoint_key].append(sample.duration)
    return grouped


class BaselineTracker:
    """Holds the most recent baseline snapshot for every endpoint.

    ``recompute`` replaces the whole snapshot from a training batch. ``merge``
    updates only the endpoints present in a smaller window and never swaps a
    baseline for one built from fewer samples.
    """

    def __init__(self):
        self._baselines: Dict[str, Baseline] = {}
        self._last_computed: Optional[float] = None
        self._lock = threading.RLock()

    def recompute(
        self, samples: Iterable[MetricSample], now: Optional[float] = None
    ) -> Dict[str, Baseline]:
        """Rebuild all baselines from a batch of samples"""
        grouped = _group_durations(samples)

        baselines = {
            key: compute_baseline(durations) for key, durations in grouped.items()
        }

        with self._lock:
            self._baselines = baselines
            self._last_computed = time.time() if now is None else now

        return dict(baselines)

    def merge(
        self, samples: Iterable[MetricSample], now: Optional[float] = None
    ) -> Dict[str, Baseline]:
        """Update baselines for the endpoints in ``samples``, keeping the rest.

        Returns the baselines that were added or replaced.
        """
        grouped = _group_durations(samples)

        with self._lock:
            updated = {}
            for key, durations in grouped.items():
                current = self._baselines.get(key)
                if current is None or len(durations) >= current.sample_count:
                    updated[key] = compute_baseline(durations)
            self._baselines = {**self._baselines, **updated}
            self._last_computed = time.time() if now is None else now

        return updated

    def get(self, key: str) -> Optional[Baseline]:
        with self._lock:
            return self._baselines.get(key)

    def snapshot(self) -> Dict[str, Baseline]:
        with self._lock:
            return dict(self._baselines)

    @property
    def last_computed(self) -> Optional[float]:
        with self._lock:
            return self._last_computed

    def age(self, now: Optional[float] = None) -> float:
        """Seconds since the last recomputation (infinite if never computed)"""
        with self._lock:
            if self._last_computed is None:
                return float("inf")
            now = time.time() if now is None else now
            return now - self._last_computed

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._baselines
