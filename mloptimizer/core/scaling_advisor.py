"""
Replica recommendations from observed load and latency.
"""

import statistics
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, List, Optional, Sequence

from mloptimizer.config.core_configs import OptimizationThresholds
from mloptimizer.config.system_configs import ScalingConfig
from mloptimizer.monitoring.metric_sample import MetricSample
from mloptimizer.utils.logger import get_logger


@dataclass
class ScalingRecommendation:
    current_replicas: int
    recommended_replicas: int
    reason: str
    metrics: Dict[str, float]
    timestamp: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_replicas": self.current_replicas,
            "recommended_replicas": self.recommended_replicas,
            "reason": self.reason,
            "metrics": dict(self.metrics),
            "timestamp": self.timestamp,
        }


class ScalingAdvisor:
    """Capacity planning over the sample window"""

    def __init__(self, config: Optional[ScalingConfig] = None):
        self.config = config or ScalingConfig()
        self.decisions: Deque[ScalingRecommendation] = deque(
            maxlen=self.config.history_size
        )
        self.logger = get_logger(__name__)

    def recommend(
        self,
        samples: Sequence[MetricSample],
        current_replicas: int,
        thresholds: Optional[OptimizationThresholds] = None,
        now: Optional[float] = None,
    ) -> ScalingRecommendation:
        """Recommend a replica count for the observed window"""
        thresholds = thresholds or OptimizationThresholds()
        now = time.time() if now is None else now
        current_replicas = max(1, current_replicas)

        window = [
            s for s in samples if now - s.timestamp <= self.config.window_seconds
        ]
        if not window:
            recommendation = ScalingRecommendation(
                current_replicas, current_replicas, "No recent data", {}, now
            )
            self.decisions.append(recommendation)
            return recommendation

        metrics = self._calculate_average_metrics(window)
        reasons = self._evaluate_scaling_conditions(metrics, thresholds)
        new_replicas, reason = self._make_scaling_decision(
            reasons, current_replicas, metrics["current_rps"]
        )

        recommendation = ScalingRecommendation(
            current_replicas=current_replicas,
            recommended_replicas=new_replicas,
            reason=reason,
            metrics=metrics,
            timestamp=now,
        )
        self.decisions.append(recommendation)

        if new_replicas != current_replicas:
            self.logger.info(
                f"Scaling recommendation {current_replicas} -> {new_replicas}: {reason}"
            )
        return recommendation

    def _calculate_average_metrics(self, window: List[MetricSample]) -> Dict[str, float]:
        return {
            "avg_response_time": statistics.mean(s.duration for s in window),
            "current_rps": len(window) / self.config.window_seconds,
            "error_rate": sum(1 for s in window if not s.is_success) / len(window),
        }

    def _evaluate_scaling_conditions(
        self, metrics: Dict[str, float], thresholds: OptimizationThresholds
    ) -> Dict[str, List[str]]:
        scale_up_reasons: List[str] = []
        scale_down_reasons: List[str] = []

        target = thresholds.target_latency
        if target is not None:
            if metrics["avg_response_time"] > target * self.config.scale_up_latency_factor:
                scale_up_reasons.append(
                    f"High response time: {metrics['avg_response_time']:.1f}ms"
                )
            elif metrics["avg_response_time"] < target * self.config.scale_down_latency_factor:
                scale_down_reasons.append(
                    f"Low response time: {metrics['avg_response_time']:.1f}ms"
                )

        throughput = thresholds.throughput_target
        if throughput is not None and metrics["current_rps"] > throughput:
            scale_up_reasons.append(f"Throughput above target: {metrics['current_rps']:.2f} req/s")

        return {"up": scale_up_reasons, "down": scale_down_reasons}

    def _make_scaling_decision(
        self,
        reasons: Dict[str, List[str]],
        current_replicas: int,
        current_rps: float,
    ) -> tuple[int, str]:
        needed_replicas = max(1, int(current_rps / self.config.capacity_per_replica))

        if needed_replicas > current_replicas:
            reasons["up"].append(f"Observed RPS: {current_rps:.1f}")
        elif needed_replicas < current_replicas * 0.7:
            reasons["down"].append(f"Low observed RPS: {current_rps:.1f}")

        if reasons["up"]:
            return (
                max(current_replicas + 1, needed_replicas),
                f"Scale up: {', '.join(reasons['up'])}",
            )
        if reasons["down"] and current_replicas > 1:
            return (
                max(1, current_replicas - 1),
                f"Scale down: {', '.join(reasons['down'])}",
            )
        return current_replicas, "No scaling needed"

    def get_scaling_history(self, limit: int = 20) -> List[Dict[str, Any]]:
        """Get recent scaling recommendations"""
        return [r.to_dict() for r in list(self.decisions)[-limit:]]
