"""
Core configuration classes
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple


@dataclass
class FeatureFlags:
    """Per-feature enable flags for the pipeline stage"""

    performance_prediction: bool = True
    resource_allocation: bool = True
    anomaly_detection: bool = True
    query_optimization: bool = True
    load_balancing: bool = True
    auto_scaling: bool = True


@dataclass
class OptimizationThresholds:
    """Operator supplied optimization targets (all optional)"""

    target_latency: Optional[float] = None  # ms
    max_memory: Optional[float] = None  # MB
    cpu_threshold: Optional[float] = None  # 0-100
    throughput_target: Optional[float] = None  # req/s


@dataclass
class PredictorSettings:
    """Performance predictor constants"""

    smoothing_alpha: float = 0.3
    min_history: int = 10
    history_window: int = 100
    variance_scale: float = 1000.0

    # Low-confidence default returned with insufficient history
    default_duration: float = 50.0
    default_confidence: float = 0.3
    default_memory: int = 10
    default_cpu: int = 5
    default_io: int = 5

    # Action rules
    throttle_factor: float = 2.0
    cache_latency_ms: float = 100.0
    cache_hit_rate_floor: float = 0.3
    business_hours: Tuple[int, int] = (9, 17)
    optimize_min_history: int = 50
    optimize_latency_ms: float = 50.0


@dataclass
class AnomalySettings:
    """Anomaly detector constants"""

    z_high: float = 3.0
    z_critical: float = 5.0
    error_count_threshold: int = 10
    error_window_seconds: float = 60.0
    history_window: int = 1000
    baseline_refresh_seconds: float = 5.0
    memory_critical_factor: float = 2.0  # multiple of max_memory
    history_size: int = 1000  # alerts kept in memory


@dataclass
class AllocatorSettings:
    """Epsilon-greedy resource allocator constants"""

    epsilon: float = 0.1
    learning_rate: float = 0.1
    discount_factor: float = 0.9
    load_thresholds: Tuple[float, float] = (50.0, 80.0)
    memory_thresholds: Tuple[float, float] = (1000.0, 5000.0)
    base_fraction: float = 0.1
    base_workers: int = 1
    increase_multiplier: float = 1.3
    default_multiplier: float = 0.8
    priority_multipliers: Dict[str, float] = field(
        default_factory=lambda: {"high": 1.5, "normal": 1.0, "low": 0.5}
    )


@dataclass
class LoadBalancerSettings:
    """Adaptive load balancer constants"""

    smoothing_alpha: float = 0.2
    success_weight: float = 0.7
    response_time_scale: float = 1000.0  # ms
    unknown_score: float = 0.5


@dataclass
class QuerySettings:
    """Query pattern learner constants"""

    slow_query_ms: float = 100.0
    min_occurrences: int = 10
    max_examples: int = 5


@dataclass
class TrainingSettings:
    """Training scheduler settings"""

    batch_size: int = 10000
    join_timeout: float = 10.0
