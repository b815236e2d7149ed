"""
Adaptive Load Balancer

Rolling health score per logical endpoint from success rate and a smoothed
response time.
"""

import threading
import time
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Sequence

from mloptimizer.config.core_configs import LoadBalancerSettings


@dataclass
class EndpointHealth:
    """Observed behaviour of one endpoint"""

    total_requests: int = 0
    successful_requests: int = 0
    avg_response_time: float = 0.0  # ms, exponentially smoothed
    last_updated: float = field(default_factory=time.time)

    @property
    def success_rate(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return self.successful_requests / self.total_requests


class AdaptiveLoadBalancer:
    """Health scoring and weighted selection across endpoints"""

    def __init__(self, settings: Optional[LoadBalancerSettings] = None):
        self.settings = settings or LoadBalancerSettings()
        self._endpoints: Dict[str, EndpointHealth] = {}
        self._lock = threading.RLock()

    def update_metrics(self, endpoint: str, response_time: float, success: bool):
        alpha = self.settings.smoothing_alpha
        with self._lock:
            health = self._endpoints.get(endpoint)
            if health is None:
                health = self._endpoints[endpoint] = EndpointHealth(
                    avg_response_time=response_time
                )
            else:
                health.avg_response_time = (
                    alpha * response_time + (1 - alpha) * health.avg_response_time
                )

            health.total_requests += 1
            if success:
                health.successful_requests += 1
            health.last_updated = time.time()

    def get_health_score(self, endpoint: str) -> float:
        """0.7 * success rate + 0.3 * response-time factor, in [0, 1]"""
        s = self.settings
        with self._lock:
            health = self._endpoints.get(endpoint)
            if health is None or health.total_requests == 0:
                return s.unknown_score
            success_rate = health.success_rate
            avg_response_time = health.avg_response_time

        response_factor = max(0.0, 1 - avg_response_time / s.response_time_scale)
        return s.success_weight * success_rate + (1 - s.success_weight) * response_factor

    def get_endpoint_health(self, endpoint: str) -> Optional[EndpointHealth]:
        with self._lock:
            health = self._endpoints.get(endpoint)
            return replace(health) if health else None

    def get_weights(self, endpoints: Sequence[str]) -> Dict[str, float]:
        """Health scores normalised to sum to one"""
        scores = {e: self.get_health_score(e) for e in endpoints}
        total = sum(scores.values())
        if total <= 0:
            return {e: 1 / len(scores) for e in scores} if scores else {}
        return {e: score / total for e, score in scores.items()}

    def select_endpoint(self, candidates: Sequence[str]) -> Optional[str]:
        """Healthiest candidate; the first one wins ties"""
        best: Optional[str] = None
        best_score = -1.0
        for endpoint in candidates:
            score = self.get_health_score(endpoint)
            if score > best_score:
                best, best_score = endpoint, score
        return best

    def endpoints(self) -> List[str]:
        with self._lock:
            return sorted(self._endpoints)
