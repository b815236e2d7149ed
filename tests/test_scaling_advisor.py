"""Tests for replica recommendations."""

from mloptimizer.config import OptimizationThresholds, ScalingConfig
from mloptimizer.core import ScalingAdvisor
from mloptimizer.monitoring import MetricSample

from .conftest import NOW


def _window(count: int, duration: float):
    return [
        MetricSample(method="GET", path="/users", duration=duration, timestamp=NOW - 1)
        for _ in range(count)
    ]


class TestScalingAdvisor:
    def test_no_data_keeps_replicas(self):
        recommendation = ScalingAdvisor().recommend([], 3, now=NOW)

        assert recommendation.recommended_replicas == 3
        assert recommendation.reason == "No recent data"

    def test_high_latency_scales_up(self):
        advisor = ScalingAdvisor()

        recommendation = advisor.recommend(
            _window(10, 400.0), 2, OptimizationThresholds(target_latency=200), now=NOW
        )

        assert recommendation.recommended_replicas == 3
        assert recommendation.reason.startswith("Scale up")

    def test_low_latency_scales_down(self):
        recommendation = ScalingAdvisor().recommend(
            _window(10, 20.0), 3, OptimizationThresholds(target_latency=200), now=NOW
        )

        assert recommendation.recommended_replicas == 2

    def test_observed_rps_drives_replica_count(self):
        advisor = ScalingAdvisor(ScalingConfig(window_seconds=10, capacity_per_replica=2))

        # 100 requests in a 10s window = 10 req/s against 2 req/s per replica
        recommendation = advisor.recommend(_window(100, 50.0), 1, now=NOW)

        assert recommendation.recommended_replicas == 5

    def test_throughput_target_is_a_service_wide_trigger(self):
        advisor = ScalingAdvisor(ScalingConfig(window_seconds=10, capacity_per_replica=20))

        # 10 req/s fits on one replica at 20 req/s each, but exceeds the 8 req/s target
        recommendation = advisor.recommend(
            _window(100, 50.0), 1, OptimizationThresholds(throughput_target=8), now=NOW
        )

        assert recommendation.recommended_replicas == 2
        assert "Throughput above target" in recommendation.reason

    def test_replica_count_ignores_throughput_target(self):
        advisor = ScalingAdvisor(ScalingConfig(window_seconds=10, capacity_per_replica=2))

        # Under the 50 req/s target, so only per-replica capacity sizes the fleet
        recommendation = advisor.recommend(
            _window(100, 50.0), 1, OptimizationThresholds(throughput_target=50), now=NOW
        )

        assert recommendation.recommended_replicas == 5
        assert "Throughput above target" not in recommendation.reason

    def test_history_is_recorded(self):
        advisor = ScalingAdvisor()
        advisor.recommend(_window(5, 50.0), 1, now=NOW)

        history = advisor.get_scaling_history()

        assert len(history) == 1
        assert history[0]["current_replicas"] == 1
