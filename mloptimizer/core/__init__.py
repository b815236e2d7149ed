"""
Core learning components of the optimizer.
"""

from .anomaly_detector import AnomalyAlert, AnomalyDetector
from .load_balancer import AdaptiveLoadBalancer, EndpointHealth
from .predictor import (
    PerformancePredictor,
    PredictionResult,
    ResourceEstimate,
    exponential_smoothing,
)
from .query_learner import QueryExecution, QueryPattern, QueryPatternLearner
from .resource_allocator import AllocationDecision, ResourceAllocator
from .scaling_advisor import ScalingAdvisor, ScalingRecommendation

__all__ = [
    "AnomalyAlert",
    "AnomalyDetector",
    "AdaptiveLoadBalancer",
    "EndpointHealth",
    "PerformancePredictor",
    "PredictionResult",
    "ResourceEstimate",
    "exponential_smoothing",
    "QueryExecution",
    "QueryPattern",
    "QueryPatternLearner",
    "AllocationDecision",
    "ResourceAllocator",
    "ScalingAdvisor",
    "ScalingRecommendation",
]
