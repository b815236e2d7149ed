"""
Configuration package initialization
"""

# Import base types first
from .base_types import (
    AlertSeverity,
    AlertType,
    AllocationAction,
    Level,
    Priority,
    RecommendedAction,
)

# Import core configs
from .core_configs import (
    AllocatorSettings,
    AnomalySettings,
    FeatureFlags,
    LoadBalancerSettings,
    OptimizationThresholds,
    PredictorSettings,
    QuerySettings,
    TrainingSettings,
)

# Import system configs
from .system_configs import (
    LoggingConfig,
    MetricsConfig,
    PrometheusConfig,
    ScalingConfig,
)

from .config_manager import (
    OptimizerConfig,
    create_sample_config,
    load_config,
)

__all__ = [
    # Base types
    "AlertSeverity",
    "AlertType",
    "AllocationAction",
    "Level",
    "Priority",
    "RecommendedAction",

    # Core configs
    "AllocatorSettings",
    "AnomalySettings",
    "FeatureFlags",
    "LoadBalancerSettings",
    "OptimizationThresholds",
    "PredictorSettings",
    "QuerySettings",
    "TrainingSettings",

    # System configs
    "LoggingConfig",
    "MetricsConfig",
    "PrometheusConfig",
    "ScalingConfig",

    # Config manager
    "OptimizerConfig",
    "load_config",
    "create_sample_config",
]
