"""Tests for the performance predictor."""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from mloptimizer.config import PredictorSettings, RecommendedAction
from mloptimizer.core import PerformancePredictor, exponential_smoothing

KEY = "GET:/users"


@given(
    start=st.floats(1, 1000),
    increments=st.lists(st.floats(0.01, 100), min_size=1, max_size=60),
)
@settings(max_examples=300)
def test_forecast_of_increasing_sequence_is_monotonic_and_bounded(start, increments):
    """Property: forecasts over an increasing sequence increase and stay in range."""
    values = [start]
    for inc in increments:
        values.append(values[-1] + inc)

    forecasts = [exponential_smoothing(values[: i + 1], 0.3) for i in range(len(values))]

    for earlier, later in zip(forecasts, forecasts[1:]):
        assert later >= earlier
    for forecast in forecasts:
        assert values[0] - 1e-9 <= forecast <= values[-1] + 1e-9


class TestExponentialSmoothing:
    def test_seeded_with_first_value(self):
        assert exponential_smoothing([42.0], 0.3) == 42.0

    def test_weighted_blend(self):
        assert exponential_smoothing([10.0, 20.0], 0.3) == pytest.approx(13.0)

    def test_empty_sequence_rejected(self):
        with pytest.raises(ValueError):
            exponential_smoothing([], 0.3)


class TestPerformancePredictor:
    def test_insufficient_history_returns_default(self, make_sample):
        predictor = PerformancePredictor()
        history = [make_sample(500.0) for _ in range(9)]

        result = predictor.predict(KEY, history, time_of_day=3)

        assert result.expected_duration == 50
        assert result.confidence == 0.3
        assert result.recommended_action == RecommendedAction.CACHE
        assert (result.resource_estimate.memory, result.resource_estimate.cpu,
                result.resource_estimate.io) == (10, 5, 5)

    def test_other_endpoints_are_ignored(self, make_sample):
        predictor = PerformancePredictor()
        history = [make_sample(10.0, path="/orders") for _ in range(30)]

        assert predictor.predict(KEY, history).confidence == 0.3

    def test_alternating_latency_has_low_confidence(self, make_sample):
        predictor = PerformancePredictor()
        history = [make_sample(10.0 if i % 2 == 0 else 200.0) for i in range(20)]

        result = predictor.predict(KEY, history, time_of_day=3)

        assert result.confidence < 0.5

    def test_latency_spike_recommends_throttle(self, make_sample):
        predictor = PerformancePredictor()
        history = [make_sample(10.0) for _ in range(15)]
        history += [make_sample(200.0) for _ in range(5)]

        result = predictor.predict(KEY, history, time_of_day=3)

        # forecast ~168ms against a 57.5ms average
        assert result.recommended_action == RecommendedAction.THROTTLE
        assert result.expected_duration == 168
        assert result.confidence == 0.0

    def test_slow_uncached_endpoint_recommends_cache(self, make_sample):
        predictor = PerformancePredictor()
        history = [make_sample(150.0, cache_hit=False) for _ in range(20)]

        result = predictor.predict(KEY, history, time_of_day=3)

        assert result.recommended_action == RecommendedAction.CACHE
        assert result.confidence == 1.0

    def test_business_hours_recommend_prefetch(self, make_sample):
        predictor = PerformancePredictor()
        history = [make_sample(20.0) for _ in range(20)]

        assert predictor.predict(KEY, history, time_of_day=9).recommended_action == (
            RecommendedAction.PREFETCH
        )
        assert predictor.predict(KEY, history, time_of_day=17).recommended_action == (
            RecommendedAction.PREFETCH
        )

    def test_long_history_recommends_optimize(self, make_sample):
        predictor = PerformancePredictor()
        history = [make_sample(60.0) for _ in range(51)]

        result = predictor.predict(KEY, history, time_of_day=22)

        assert result.recommended_action == RecommendedAction.OPTIMIZE

    def test_fallback_is_batch(self, make_sample):
        predictor = PerformancePredictor()
        history = [make_sample(20.0) for _ in range(20)]

        assert predictor.predict(KEY, history, time_of_day=3).recommended_action == (
            RecommendedAction.BATCH
        )

    def test_resource_estimate(self, make_sample):
        predictor = PerformancePredictor()
        history = [
            make_sample(40.0, memory_delta=3 * 1024 * 1024, cpu_delta=12.4)
            for _ in range(10)
        ]

        estimate = predictor.predict(KEY, history, time_of_day=3).resource_estimate

        assert estimate.memory == 3
        assert estimate.cpu == 12
        assert estimate.io == 4

    def test_constants_come_from_settings(self, make_sample):
        predictor = PerformancePredictor(PredictorSettings(min_history=2, default_confidence=0.1))

        assert predictor.predict(KEY, [make_sample()]).confidence == 0.1
        assert predictor.predict(KEY, [make_sample(), make_sample()]).confidence == 1.0

    def test_train_stores_sequences_per_endpoint(self, make_sample):
        predictor = PerformancePredictor()
        batch = [make_sample(10.0), make_sample(20.0), make_sample(5.0, path="/orders")]

        assert predictor.train(batch) == 2
        assert predictor.trained_endpoints() == ["GET:/orders", "GET:/users"]
        assert predictor.trained_forecast(KEY) == pytest.approx(13.0)
        assert predictor.trained_forecast("GET:/missing") is None
