"""
Per-request state carried through the optimizer pipeline stage.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from mloptimizer.config.base_types import Priority
from mloptimizer.core.anomaly_detector import AnomalyAlert
from mloptimizer.core.predictor import PredictionResult
from mloptimizer.core.query_learner import QueryExecution
from mloptimizer.core.resource_allocator import AllocationDecision
from mloptimizer.monitoring.metric_sample import MetricSample, endpoint_key
from mloptimizer.monitoring.resource_metrics import ProcessSnapshot

HeaderValue = Union[str, Sequence[str]]

HEADER_CONFIDENCE = "x-ml-prediction-confidence"
HEADER_OPTIMIZATION = "x-optimization-applied"
HEADER_ANOMALY_SCORE = "x-anomaly-score"
HEADER_PRIORITY = "x-priority"


def priority_from_headers(headers: Mapping[str, HeaderValue]) -> str:
    """Request priority from ``x-priority``; the first value wins if repeated"""
    value: Optional[HeaderValue] = None
    for name, item in headers.items():
        if name.lower() == HEADER_PRIORITY:
            value = item
            break

    if value is None:
        return Priority.NORMAL
    if not isinstance(value, str):
        value = value[0] if value else Priority.NORMAL
    return value.strip().lower() or Priority.NORMAL


@dataclass
class OptimizationDecision:
    """A predictive optimization that was applied to a request"""

    action: str
    confidence: float
    impact: float  # predicted ms
    endpoint_key: str
    applied_at: float = field(default_factory=time.time)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action,
            "confidence": self.confidence,
            "impact": self.impact,
            "endpoint_key": self.endpoint_key,
            "applied_at": self.applied_at,
            "metadata": dict(self.metadata),
        }


@dataclass
class OptimizationContext:
    """Everything the stage knows about one in-flight request"""

    method: str
    path: str
    headers: Mapping[str, HeaderValue] = field(default_factory=dict)
    priority: str = Priority.NORMAL
    started_at: float = field(default_factory=time.perf_counter)
    timestamp: float = field(default_factory=time.time)
    start_snapshot: Optional[ProcessSnapshot] = None

    prediction: Optional[PredictionResult] = None
    allocation: Optional[AllocationDecision] = None
    prediction_confidence: float = 0.0
    optimization_applied: Optional[str] = None

    # Reported by the handler
    query_executions: List[QueryExecution] = field(default_factory=list)
    cache_hit: Optional[bool] = None

    # Filled on completion
    sample: Optional[MetricSample] = None
    anomalies: List[AnomalyAlert] = field(default_factory=list)
    anomaly_score: float = 0.0

    @property
    def endpoint_key(self) -> str:
        return endpoint_key(self.method, self.path)

    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self.started_at) * 1000

    def response_headers(self) -> Dict[str, str]:
        """Annotation headers for the outgoing response"""
        return {
            HEADER_CONFIDENCE: str(round(self.prediction_confidence * 100)),
            HEADER_OPTIMIZATION: self.optimization_applied or "none",
            HEADER_ANOMALY_SCORE: f"{self.anomaly_score:.4f}",
        }


@dataclass
class HandlerResult:
    """What a generic host handler reports back to ``OptimizerService.run``"""

    status_code: int = 200
    response_size: int = 0
    query_executions: List[QueryExecution] = field(default_factory=list)
    cache_hit: Optional[bool] = None
    body: Any = None
    headers: Dict[str, str] = field(default_factory=dict)
