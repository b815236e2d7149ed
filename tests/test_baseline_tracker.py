"""Tests for per-endpoint baselines."""

import pytest

from mloptimizer.monitoring import BaselineTracker, compute_baseline

from .conftest import NOW


class TestComputeBaseline:
    def test_population_statistics(self):
        baseline = compute_baseline([10.0, 20.0, 30.0, 40.0])

        assert baseline.mean == pytest.approx(25.0)
        # population std of 10, 20, 30, 40
        assert baseline.std_dev == pytest.approx(11.1803398875)
        assert baseline.sample_count == 4

    def test_percentiles_use_floor_index_on_sorted_values(self):
        durations = [float(v) for v in range(100, 0, -1)]  # 100..1 unsorted
        baseline = compute_baseline(durations)

        assert baseline.p95 == 96.0  # sorted[95]
        assert baseline.p99 == 100.0  # sorted[99]

    def test_single_sample(self):
        baseline = compute_baseline([42.0])

        assert baseline.std_dev == 0.0
        assert baseline.p95 == baseline.p99 == 42.0


class TestBaselineTracker:
    def test_recompute_groups_by_endpoint(self, make_sample):
        tracker = BaselineTracker()
        samples = [make_sample(10.0), make_sample(30.0), make_sample(5.0, path="/orders")]

        tracker.recompute(samples, now=NOW)

        assert tracker.get("GET:/users").mean == pytest.approx(20.0)
        assert tracker.get("GET:/orders").sample_count == 1
        assert tracker.last_computed == NOW

    def test_recompute_replaces_snapshot_wholesale(self, make_sample):
        tracker = BaselineTracker()
        tracker.recompute([make_sample(10.0, path="/old")], now=NOW)
        tracker.recompute([make_sample(10.0, path="/new")], now=NOW + 1)

        assert "GET:/old" not in tracker
        assert "GET:/new" in tracker

    def test_recompute_is_idempotent(self, make_sample):
        tracker = BaselineTracker()
        samples = [make_sample(float(d)) for d in (5, 7, 9, 11)]

        first = tracker.recompute(samples, now=NOW)
        second = tracker.recompute(samples, now=NOW)

        assert first == second

    def test_age(self, make_sample):
        tracker = BaselineTracker()
        assert tracker.age(NOW) == float("inf")

        tracker.recompute([make_sample()], now=NOW)
        assert tracker.age(NOW + 3) == pytest.approx(3.0)

    def test_merge_keeps_endpoints_missing_from_the_window(self, make_sample):
        tracker = BaselineTracker()
        tracker.recompute(
            [make_sample(10.0, path="/rare"), make_sample(20.0, path="/rare")], now=NOW
        )

        updated = tracker.merge([make_sample(5.0, path="/hot")], now=NOW + 10)

        assert set(updated) == {"GET:/hot"}
        assert tracker.get("GET:/rare").mean == pytest.approx(15.0)
        assert tracker.last_computed == NOW + 10

    def test_merge_never_narrows_an_existing_baseline(self, make_sample):
        tracker = BaselineTracker()
        tracker.recompute([make_sample(float(d)) for d in (10, 12, 14)], now=NOW)

        tracker.merge([make_sample(500.0)], now=NOW + 10)
        assert tracker.get("GET:/users").sample_count == 3

        tracker.merge([make_sample(float(d)) for d in (30, 30, 30, 30)], now=NOW + 20)
        assert tracker.get("GET:/users").mean == pytest.approx(30.0)
