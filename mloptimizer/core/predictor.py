"""
Performance Predictor

Forecasts the cost of an incoming request from the recent history of the same
endpoint using exponential smoothing, and recommends a mitigating action with
a small set of interpretable rules.
"""

import threading
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np

from mloptimizer.config.base_types import RecommendedAction
from mloptimizer.config.core_configs import PredictorSettings
from mloptimizer.monitoring.metric_sample import MetricSample

_BYTES_PER_MB = 1024 * 1024


@dataclass
class ResourceEstimate:
    """Expected resource cost of a request"""

    memory: int  # MB
    cpu: int  # ms
    io: int


@dataclass
class PredictionResult:
    """Forecast for one incoming request"""

    expected_duration: float
    confidence: float
    recommended_action: RecommendedAction
    resource_estimate: ResourceEstimate = field(
        default_factory=lambda: ResourceEstimate(0, 0, 0)
    )


def exponential_smoothing(values: Sequence[float], alpha: float) -> float:
    """Single exponential smoothing forecast.

    Seeds with the first value; every later forecast is
    ``alpha * actual + (1 - alpha) * previous``.
    """
    if not values:
        raise ValueError("exponential_smoothing requires at least one value")

    forecast = float(values[0])
    for value in values[1:]:
        forecast = alpha * value + (1 - alpha) * forecast
    return forecast


class PerformancePredictor:
    """Exponential-smoothing forecaster with rule-based action selection"""

    def __init__(self, settings: Optional[PredictorSettings] = None):
        self.settings = settings or PredictorSettings()
        self._patterns: Dict[str, List[float]] = {}
        self._lock = threading.RLock()

    def predict(
        self,
        endpoint_key: str,
        history: Sequence[MetricSample],
        time_of_day: Optional[int] = None,
    ) -> PredictionResult:
        """Forecast the cost of the next request to ``endpoint_key``.

        Args:
            endpoint_key: ``METHOD:path`` of the incoming request.
            history: Recent samples; samples for other endpoints are ignored.
            time_of_day: Hour of day (0-23); defaults to the local clock.

        Returns:
            ``PredictionResult``. With fewer than ``min_history`` samples a
            low-confidence default is returned instead of failing.
        """
        s = self.settings
        historical = [h for h in history if h.endpoint_key == endpoint_key]

        if len(historical) < s.min_history:
            return self._default_prediction()

        durations = np.asarray([h.duration for h in historical], dtype=float)
        forecast = exponential_smoothing(durations.tolist(), s.smoothing_alpha)

        # Heuristic: tighter history means a more trustworthy forecast
        variance = float(durations.var())
        confidence = min(max(0.0, 1 - variance / s.variance_scale), 1.0)

        hour = datetime.now().hour if time_of_day is None else time_of_day
        action = self._recommend_action(forecast, historical, hour)

        avg_memory = float(np.mean([h.memory_delta for h in historical]))
        avg_cpu = float(np.mean([h.cpu_delta for h in historical]))

        return PredictionResult(
            expected_duration=round(forecast),
            confidence=confidence,
            recommended_action=action,
            resource_estimate=ResourceEstimate(
                memory=round(avg_memory / _BYTES_PER_MB),
                cpu=round(avg_cpu),
                io=round(forecast / 10),
            ),
        )

    def _default_prediction(self) -> PredictionResult:
        s = self.settings
        return PredictionResult(
            expected_duration=s.default_duration,
            confidence=s.default_confidence,
            recommended_action=RecommendedAction.CACHE,
            resource_estimate=ResourceEstimate(
                memory=s.default_memory, cpu=s.default_cpu, io=s.default_io
            ),
        )

    def _recommend_action(
        self, forecast: float, historical: List[MetricSample], hour: int
    ) -> RecommendedAction:
        s = self.settings
        avg_duration = sum(h.duration for h in historical) / len(historical)
        cache_hit_rate = sum(1 for h in historical if h.cache_hit) / len(historical)
        start_hour, end_hour = s.business_hours

        if forecast > avg_duration * s.throttle_factor:
            return RecommendedAction.THROTTLE
        if forecast > s.cache_latency_ms and cache_hit_rate < s.cache_hit_rate_floor:
            return RecommendedAction.CACHE
        if start_hour <= hour <= end_hour:
            return RecommendedAction.PREFETCH
        if len(historical) > s.optimize_min_history and forecast > s.optimize_latency_ms:
            return RecommendedAction.OPTIMIZE
        return RecommendedAction.BATCH

    def train(self, samples: Iterable[MetricSample]) -> int:
        """Store the raw duration sequence of every endpoint in the batch.

        Returns the number of endpoints trained.
        """
        grouped: Dict[str, List[float]] = defaultdict(list)
        for sample in samples:
            grouped[sample.endpoint_key].append(sample.duration)

        with self._lock:
            self._patterns.update(grouped)

        return len(grouped)

    def trained_forecast(self, endpoint_key: str) -> Optional[float]:
        """Forecast from the last trained sequence, if any"""
        with self._lock:
            durations = self._patterns.get(endpoint_key)
            if not durations:
                return None
            durations = list(durations)
        return exponential_smoothing(durations, self.settings.smoothing_alpha)

    def trained_endpoints(self) -> List[str]:
        with self._lock:
            return sorted(self._patterns)
