"""
Optimizer service layer.
"""

from .optimizer_service import OptimizerService
from .request_context import (
    HEADER_ANOMALY_SCORE,
    HEADER_CONFIDENCE,
    HEADER_OPTIMIZATION,
    HEADER_PRIORITY,
    HandlerResult,
    OptimizationContext,
    OptimizationDecision,
    priority_from_headers,
)
from .training_scheduler import TrainingScheduler

__all__ = [
    "OptimizerService",
    "TrainingScheduler",
    "HandlerResult",
    "OptimizationContext",
    "OptimizationDecision",
    "priority_from_headers",
    "HEADER_ANOMALY_SCORE",
    "HEADER_CONFIDENCE",
    "HEADER_OPTIMIZATION",
    "HEADER_PRIORITY",
]
