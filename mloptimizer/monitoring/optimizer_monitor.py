"""
Optimizer monitor: bounded decision histories and aggregate statistics.
"""

import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, List, Optional

from mloptimizer.utils.logger import get_logger

from .sample_store import MetricSampleStore

STATS_WINDOW = 1000


@dataclass
class OptimizerStats:
    """Aggregate view over the most recent samples"""

    total_requests: int
    avg_response_time: float  # ms
    error_rate: float
    anomalies_detected: int
    optimizations_applied: int
    current_load: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_requests": self.total_requests,
            "avg_response_time": self.avg_response_time,
            "error_rate": self.error_rate,
            "anomalies_detected": self.anomalies_detected,
            "optimizations_applied": self.optimizations_applied,
            "current_load": self.current_load,
        }


class OptimizerMonitor:
    """Keeps anomaly and optimization history and derives dashboard stats"""

    def __init__(
        self,
        store: MetricSampleStore,
        anomaly_history_size: int = 1000,
        optimization_history_size: int = 1000,
    ):
        self.store = store
        self._anomalies: Deque[Any] = deque(maxlen=anomaly_history_size)
        self._optimizations: Deque[Any] = deque(maxlen=optimization_history_size)
        self._anomaly_total = 0
        self._optimization_total = 0
        self._started_at = time.time()
        self._lock = threading.RLock()

        self.logger = get_logger(__name__)

    def record_anomalies(self, alerts: List[Any]) -> None:
        if not alerts:
            return
        with self._lock:
            self._anomalies.extend(alerts)
            self._anomaly_total += len(alerts)

    def record_optimization(self, decision: Any) -> None:
        with self._lock:
            self._optimizations.append(decision)
            self._optimization_total += 1

    def get_anomalies(
        self, limit: int = 100, severity: Optional[str] = None
    ) -> List[Any]:
        """Most recent alerts, newest last, optionally filtered by severity"""
        with self._lock:
            alerts = list(self._anomalies)
        if severity is not None:
            alerts = [a for a in alerts if a.severity.value == severity]
        return alerts[-limit:] if limit > 0 else []

    def get_optimization_history(self, limit: int = 100) -> List[Any]:
        with self._lock:
            history = list(self._optimizations)
        return history[-limit:] if limit > 0 else []

    def get_stats(self) -> OptimizerStats:
        """Stats over the last 1000 samples plus lifetime decision counts"""
        samples = self.store.recent(STATS_WINDOW)
        total = len(samples)

        if total:
            avg_response_time = sum(s.duration for s in samples) / total
            errors = sum(1 for s in samples if not s.is_success or s.error)
            error_rate = errors / total
        else:
            avg_response_time = 0.0
            error_rate = 0.0

        with self._lock:
            anomalies = self._anomaly_total
            optimizations = self._optimization_total

        return OptimizerStats(
            total_requests=total,
            avg_response_time=avg_response_time,
            error_rate=error_rate,
            anomalies_detected=anomalies,
            optimizations_applied=optimizations,
            current_load=self.store.current_load(),
        )

    def get_dashboard_data(self) -> Dict[str, Any]:
        """Get dashboard data"""
        stats = self.get_stats()
        recent_alerts = self.get_anomalies(limit=10)

        return {
            "stats": stats.to_dict(),
            "uptime_seconds": time.time() - self._started_at,
            "stored_samples": len(self.store),
            "recorded_errors": self.store.error_count,
            "recent_anomalies": [a.to_dict() for a in recent_alerts],
        }
