"""
Anomaly Detector

Flags requests whose latency, memory or error behaviour deviates from the
endpoint's statistical baseline or from operator supplied targets.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from mloptimizer.config.base_types import AlertSeverity, AlertType
from mloptimizer.config.core_configs import AnomalySettings, OptimizationThresholds
from mloptimizer.monitoring.baseline_tracker import BaselineTracker
from mloptimizer.monitoring.metric_sample import MetricSample
from mloptimizer.utils.logger import get_logger

_BYTES_PER_MB = 1024 * 1024
_STD_EPSILON = 1e-9


@dataclass(frozen=True)
class AnomalyAlert:
    """A single detected anomaly"""

    severity: AlertSeverity
    type: AlertType
    message: str
    suggestion: str
    endpoint_key: str
    metrics: Dict[str, float] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "severity": self.severity.value,
            "type": self.type.value,
            "message": self.message,
            "suggestion": self.suggestion,
            "endpoint_key": self.endpoint_key,
            "metrics": dict(self.metrics),
            "timestamp": self.timestamp,
        }


class AnomalyDetector:
    """Z-score latency detection plus memory, error-rate and target checks"""

    def __init__(
        self,
        settings: Optional[AnomalySettings] = None,
        baselines: Optional[BaselineTracker] = None,
        load_window: float = 60.0,
    ):
        self.settings = settings or AnomalySettings()
        self.baselines = baselines or BaselineTracker()
        self.load_window = load_window
        self.logger = get_logger(__name__)

    def detect(
        self,
        sample: MetricSample,
        history: Sequence[MetricSample],
        thresholds: Optional[OptimizationThresholds] = None,
        now: Optional[float] = None,
        current_load: Optional[int] = None,
    ) -> List[AnomalyAlert]:
        """Evaluate one completed request.

        Args:
            sample: The request just observed.
            history: Recent samples (used for baselines and error counting).
            thresholds: Optional operator targets.
            now: Evaluation time; defaults to the wall clock.
            current_load: Requests in the trailing load window, for the
                throughput check.

        Returns:
            Alerts in evaluation order (latency, memory, error rate, cpu,
            throughput). Empty when nothing is anomalous.
        """
        thresholds = thresholds or OptimizationThresholds()
        now = time.time() if now is None else now
        key = sample.endpoint_key

        self._refresh_baselines(key, history, now)

        alerts: List[AnomalyAlert] = []

        latency_alert = self._check_latency(sample, thresholds, now)
        if latency_alert:
            alerts.append(latency_alert)

        if thresholds.max_memory is not None:
            limit = thresholds.max_memory * _BYTES_PER_MB
            if sample.memory_delta > limit:
                severity = (
                    AlertSeverity.CRITICAL
                    if sample.memory_delta > limit * self.settings.memory_critical_factor
                    else AlertSeverity.HIGH
                )
                alerts.append(
                    AnomalyAlert(
                        severity=severity,
                        type=AlertType.MEMORY,
                        message=(
                            f"High memory usage: "
                            f"{sample.memory_delta / _BYTES_PER_MB:.2f}MB"
                        ),
                        suggestion="Check for memory leaks or increase heap size",
                        endpoint_key=key,
                        metrics={
                            "memory_delta": sample.memory_delta,
                            "limit": limit,
                        },
                        timestamp=now,
                    )
                )

        if sample.is_server_error:
            error_alert = self._check_error_rate(sample, history, now)
            if error_alert:
                alerts.append(error_alert)

        if thresholds.cpu_threshold is not None and sample.duration > 0:
            cpu_share = sample.cpu_delta / sample.duration * 100
            if cpu_share > thresholds.cpu_threshold:
                alerts.append(
                    AnomalyAlert(
                        severity=AlertSeverity.MEDIUM,
                        type=AlertType.CPU,
                        message=f"High CPU usage: {cpu_share:.1f}% of request time",
                        suggestion="Move CPU-bound work off the request path",
                        endpoint_key=key,
                        metrics={
                            "cpu_share": cpu_share,
                            "threshold": thresholds.cpu_threshold,
                        },
                        timestamp=now,
                    )
                )

        if thresholds.throughput_target is not None and current_load is not None:
            rate = current_load / self.load_window
            if rate > thresholds.throughput_target:
                alerts.append(
                    AnomalyAlert(
                        severity=AlertSeverity.LOW,
                        type=AlertType.THROUGHPUT,
                        message=f"Throughput above target: {rate:.2f} req/s",
                        suggestion="Consider scaling out before latency degrades",
                        endpoint_key=key,
                        metrics={
                            "rate": rate,
                            "target": thresholds.throughput_target,
                        },
                        timestamp=now,
                    )
                )

        for alert in alerts:
            self.logger.warning(
                f"Anomaly detected on {key}: {alert.message}",
                severity=alert.severity.value,
                type=alert.type.value,
            )

        return alerts

    def score(self, sample: MetricSample) -> float:
        """Normalised latency deviation in [0, 1]"""
        baseline = self.baselines.get(sample.endpoint_key)
        if baseline is None:
            return 0.0
        return min(self._z_score(sample.duration, baseline) / self.settings.z_critical, 1.0)

    def _refresh_baselines(
        self, key: str, history: Sequence[MetricSample], now: float
    ) -> None:
        stale = self.baselines.age(now) > self.settings.baseline_refresh_seconds
        if stale or key not in self.baselines:
            window = list(history)[-self.settings.history_window:]
            if window:
                # Training batches cover more endpoints than this window
                self.baselines.merge(window, now=now)

    @staticmethod
    def _z_score(duration: float, baseline) -> float:
        if baseline.std_dev <= _STD_EPSILON:
            return 0.0
        return abs(duration - baseline.mean) / baseline.std_dev

    def _check_latency(
        self,
        sample: MetricSample,
        thresholds: OptimizationThresholds,
        now: float,
    ) -> Optional[AnomalyAlert]:
        s = self.settings
        key = sample.endpoint_key
        baseline = self.baselines.get(key)

        if baseline is not None:
            z = self._z_score(sample.duration, baseline)
            if z > s.z_high:
                severity = AlertSeverity.CRITICAL if z > s.z_critical else AlertSeverity.HIGH
                return AnomalyAlert(
                    severity=severity,
                    type=AlertType.LATENCY,
                    message=(
                        f"Abnormal latency detected: {sample.duration:.0f}ms "
                        f"(expected: {baseline.mean:.2f}ms)"
                    ),
                    suggestion="Consider enabling caching or optimizing database queries",
                    endpoint_key=key,
                    metrics={
                        "duration": sample.duration,
                        "mean": baseline.mean,
                        "std_dev": baseline.std_dev,
                        "z_score": z,
                    },
                    timestamp=now,
                )

        target = thresholds.target_latency
        if target is not None and sample.duration > target:
            severity = (
                AlertSeverity.MEDIUM if sample.duration > 2 * target else AlertSeverity.LOW
            )
            return AnomalyAlert(
                severity=severity,
                type=AlertType.LATENCY,
                message=(
                    f"Latency target exceeded: {sample.duration:.0f}ms "
                    f"(target: {target:.0f}ms)"
                ),
                suggestion="Profile the handler or raise the latency target",
                endpoint_key=key,
                metrics={"duration": sample.duration, "target": target},
                timestamp=now,
            )

        return None

    def _check_error_rate(
        self, sample: MetricSample, history: Sequence[MetricSample], now: float
    ) -> Optional[AnomalyAlert]:
        s = self.settings
        key = sample.endpoint_key
        recent_errors = sum(
            1
            for h in history
            if h.endpoint_key == key
            and h.is_server_error
            and now - h.timestamp < s.error_window_seconds
        )

        if recent_errors <= s.error_count_threshold:
            return None

        return AnomalyAlert(
            severity=AlertSeverity.CRITICAL,
            type=AlertType.ERROR_RATE,
            message=f"High error rate: {recent_errors} errors in last minute",
            suggestion="Check application logs and external dependencies",
            endpoint_key=key,
            metrics={"error_count": recent_errors},
            timestamp=now,
        )
