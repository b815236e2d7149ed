"""
Base types and enums for the optimizer
"""

from enum import Enum


class RecommendedAction(str, Enum):
    """Mitigating actions the predictor can recommend"""

    CACHE = "cache"
    PREFETCH = "prefetch"
    BATCH = "batch"
    OPTIMIZE = "optimize"
    THROTTLE = "throttle"


class AlertSeverity(str, Enum):
    """Anomaly alert severities, ordered from least to most severe"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    AlertSeverity.LOW: 0,
    AlertSeverity.MEDIUM: 1,
    AlertSeverity.HIGH: 2,
    AlertSeverity.CRITICAL: 3,
}


class AlertType(str, Enum):
    """Dimension an anomaly alert was raised on"""

    LATENCY = "latency"
    MEMORY = "memory"
    CPU = "cpu"
    ERROR_RATE = "error_rate"
    THROUGHPUT = "throughput"


class AllocationAction(str, Enum):
    """Actions available to the resource allocation policy"""

    INCREASE = "increase"
    DECREASE = "decrease"
    MAINTAIN = "maintain"
    ADAPTIVE = "adaptive"


class Priority:
    """Request priority constants"""

    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"


class Level:
    """Discretised load / resource level constants"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
