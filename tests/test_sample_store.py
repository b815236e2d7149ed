"""Tests for the metric sample store."""

import time

from hypothesis import given, settings
from hypothesis import strategies as st

from mloptimizer.monitoring import MetricSample, MetricSampleStore

from .conftest import NOW


def _sample(i: int, timestamp: float = NOW) -> MetricSample:
    return MetricSample(method="GET", path=f"/item/{i}", duration=float(i), timestamp=timestamp)


@given(total=st.integers(0, 200), n=st.integers(0, 300))
@settings(max_examples=200)
def test_recent_returns_min_n_total_in_insertion_order(total: int, n: int):
    """Property: recent(n) is the last min(n, total) samples, oldest first."""
    store = MetricSampleStore()
    samples = [_sample(i) for i in range(total)]
    for s in samples:
        store.record(s)

    result = store.recent(n)

    assert len(result) == min(n, total)
    assert result == samples[total - len(result):]


@given(ages=st.lists(st.integers(0, 7200), max_size=100))
@settings(max_examples=200)
def test_sweep_keeps_exactly_samples_within_horizon(ages):
    """Property: a sample survives iff now - timestamp <= horizon."""
    store = MetricSampleStore(retention_hours=1)
    for i, age in enumerate(ages):
        store.record(_sample(i, timestamp=NOW - age))

    removed = store.sweep(now=NOW)

    survivors = store.recent(len(ages))
    assert removed == sum(1 for a in ages if a > 3600)
    assert all(NOW - s.timestamp <= 3600 for s in survivors)
    assert len(survivors) == sum(1 for a in ages if a <= 3600)


class TestMetricSampleStore:
    def test_recent_returns_new_list(self):
        store = MetricSampleStore()
        store.record(_sample(1))
        snapshot = store.recent(10)
        store.record(_sample(2))

        assert len(snapshot) == 1
        assert len(store.recent(10)) == 2

    def test_non_positive_n_returns_empty(self):
        store = MetricSampleStore()
        store.record(_sample(1))

        assert store.recent(0) == []
        assert store.recent(-5) == []

    def test_current_load_counts_trailing_minute(self):
        store = MetricSampleStore()
        for age in (120, 61, 60, 59.9, 10, 0):
            store.record(_sample(0, timestamp=NOW - age))

        assert store.current_load(now=NOW) == 3

    def test_max_samples_bounds_ledger(self):
        store = MetricSampleStore(max_samples=5)
        for i in range(12):
            store.record(_sample(i))

        assert len(store) == 5
        assert store.total_recorded == 12
        assert [s.duration for s in store.recent(5)] == [7.0, 8.0, 9.0, 10.0, 11.0]

    def test_record_error_counts_separately(self):
        store = MetricSampleStore()
        store.record(_sample(1))
        store.record_error(_sample(2))

        assert len(store) == 2
        assert store.error_count == 1

    def test_recent_for_filters_by_endpoint(self):
        store = MetricSampleStore()
        store.record(_sample(1))
        store.record(_sample(2))
        store.record(_sample(1))

        assert len(store.recent_for("GET:/item/1", 10)) == 2

    def test_background_sweep_runs_and_stops(self):
        store = MetricSampleStore(retention_hours=1, sweep_interval=0.01)
        store.record(_sample(1, timestamp=time.time() - 7200))
        store.start()
        try:
            deadline = time.time() + 2
            while len(store) and time.time() < deadline:
                time.sleep(0.01)
            assert len(store) == 0
            assert store.is_running
        finally:
            store.stop()

        assert not store.is_running
